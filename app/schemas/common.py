from typing import List, Optional, Literal
from pydantic import BaseModel, Field
from enum import Enum
from datetime import date, time


# --- Bulk actions ---
class BulkAction(str, Enum):
    DELETE = "delete"
    UPDATE_STATUS = "update_status"


class BulkActionRequest(BaseModel):
    action: BulkAction
    ids: List[int] = Field(default_factory=list)
    new_status: Optional[str] = None


class BulkItemResult(BaseModel):
    id: int
    success: bool
    message: str


# --- Single-field validation ---
class FieldValidationRequest(BaseModel):
    field: str
    value: Optional[str] = None
    # context used by the cross-record checks
    property_id: Optional[int] = None
    agent_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    visit_date: Optional[date] = None
    visit_time: Optional[time] = None
    exclude_id: Optional[int] = None


# --- Statistics ---
class SalesStatisticsParams(BaseModel):
    period: Literal["all", "year", "month"] = "all"
    year: Optional[int] = Field(default=None, ge=1900, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)
