from typing import Optional
from pydantic import BaseModel
from decimal import Decimal
from datetime import date

from app.core.constants import DEFAULT_SEARCH_LIMIT


# --- Form submission (create / full edit) ---
class SaleCreate(BaseModel):
    # Presence is checked by the validation layer so every problem is reported at once
    sale_date: Optional[date] = None
    value: Optional[Decimal] = None
    commission: Optional[Decimal] = None
    notes: Optional[str] = None
    property_id: Optional[int] = None
    client_id: Optional[int] = None
    agent_id: Optional[int] = None


class SaleUpdate(SaleCreate):
    pass


# --- Read models ---
class SaleRead(BaseModel):
    sale_id: int
    sale_date: date
    value: Decimal
    commission: Optional[Decimal] = None
    notes: Optional[str] = None
    property_id: int
    client_id: int
    agent_id: Optional[int] = None

    model_config = {"from_attributes": True}


class SaleDetail(SaleRead):
    property_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    client_first_name: Optional[str] = None
    client_last_name: Optional[str] = None
    agent_name: Optional[str] = None


class SaleSearchItem(BaseModel):
    id: int
    display_id: str
    sale_date: date
    value: Decimal
    commission: Optional[Decimal] = None
    property: str
    client: str
    agent: str
    label: str


# --- Query params ---
class SaleSearchParams(BaseModel):
    term: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    limit: int = DEFAULT_SEARCH_LIMIT
