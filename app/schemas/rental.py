from typing import Optional
from pydantic import BaseModel
from decimal import Decimal
from datetime import date

from app.core.constants import DEFAULT_SEARCH_LIMIT, DEFAULT_EXPIRING_DAYS


# --- Form submission (create / full edit) ---
class RentalCreate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[Decimal] = None
    deposit: Optional[Decimal] = None
    status: Optional[str] = None  # key of RENTAL_STATUS
    notes: Optional[str] = None
    property_id: Optional[int] = None
    client_id: Optional[int] = None
    agent_id: Optional[int] = None


class RentalUpdate(RentalCreate):
    pass


class RentalStatusUpdate(BaseModel):
    status: Optional[str] = None


# --- Read models ---
class RentalRead(BaseModel):
    rental_id: int
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Optional[Decimal] = None
    status: str
    notes: Optional[str] = None
    property_id: int
    client_id: int
    agent_id: Optional[int] = None

    model_config = {"from_attributes": True}


class RentalDetail(RentalRead):
    property_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    client_first_name: Optional[str] = None
    client_last_name: Optional[str] = None
    agent_name: Optional[str] = None


class RentalSearchItem(BaseModel):
    id: int
    display_id: str
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Optional[Decimal] = None
    status: str
    property: str
    client: str
    agent: str
    label: str


class ExpiringRentalItem(BaseModel):
    rental_id: int
    display_id: str
    end_date: date
    monthly_rent: Decimal
    address: str
    city: str
    client_first_name: str
    client_last_name: str
    days_remaining: int


# --- Query params ---
class RentalSearchParams(BaseModel):
    term: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_rent: Optional[Decimal] = None
    max_rent: Optional[Decimal] = None
    limit: int = DEFAULT_SEARCH_LIMIT


class ExpiringParams(BaseModel):
    days: int = DEFAULT_EXPIRING_DAYS
