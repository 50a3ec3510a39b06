from typing import Optional
from pydantic import BaseModel
from datetime import date, time

from app.core.constants import DEFAULT_SEARCH_LIMIT, DEFAULT_UPCOMING_DAYS


# --- Form submission (create / full edit) ---
class VisitCreate(BaseModel):
    visit_date: Optional[date] = None
    visit_time: Optional[time] = None
    status: Optional[str] = None  # key of VISIT_STATUS
    interest_rating: Optional[str] = None  # key of INTEREST_LEVELS
    notes: Optional[str] = None
    property_id: Optional[int] = None
    client_id: Optional[int] = None
    agent_id: Optional[int] = None


class VisitUpdate(VisitCreate):
    pass


class VisitStatusUpdate(BaseModel):
    status: Optional[str] = None


# --- Read models ---
class VisitRead(BaseModel):
    visit_id: int
    visit_date: date
    visit_time: time
    status: str
    interest_rating: Optional[str] = None
    notes: Optional[str] = None
    property_id: int
    client_id: int
    agent_id: int

    model_config = {"from_attributes": True}


class VisitDetail(VisitRead):
    property_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    client_first_name: Optional[str] = None
    client_last_name: Optional[str] = None
    agent_name: Optional[str] = None


class VisitSearchItem(BaseModel):
    id: int
    display_id: str
    visit_date: date
    visit_time: time
    status: str
    interest_rating: Optional[str] = None
    property: str
    client: str
    agent: str
    label: str


class ScheduledVisitItem(BaseModel):
    visit_id: int
    display_id: str
    visit_date: date
    visit_time: time
    status: str
    address: str
    city: str
    client_first_name: str
    client_last_name: str
    agent_name: str
    days_until: int


# --- Query params ---
class VisitSearchParams(BaseModel):
    term: Optional[str] = None
    status: Optional[str] = None
    agent_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    limit: int = DEFAULT_SEARCH_LIMIT


class UpcomingParams(BaseModel):
    days: int = DEFAULT_UPCOMING_DAYS
