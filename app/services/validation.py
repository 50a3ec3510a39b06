"""
Input validation for sales, rentals and visits.

Every validator runs all of its checks and returns the complete list of
error messages (empty when the input is acceptable), so a form can show every
problem in one round trip. Nothing here touches the database; cross-record
checks (overlapping rentals, agent double-booking) live in the services.
"""
from typing import Any, Iterable, List, Optional
from datetime import date, time
from decimal import Decimal, InvalidOperation

from app.core.constants import (
    RENTAL_STATUS,
    VISIT_STATUS,
    INTEREST_LEVELS,
    BUSINESS_HOURS_START,
    BUSINESS_HOURS_END,
)
from app.schemas.sale import SaleCreate
from app.schemas.rental import RentalCreate
from app.schemas.visit import VisitCreate


SALE_REQUIRED_FIELDS = ("sale_date", "value", "property_id", "client_id")
RENTAL_REQUIRED_FIELDS = ("start_date", "end_date", "monthly_rent", "status", "property_id", "client_id")
VISIT_REQUIRED_FIELDS = ("visit_date", "visit_time", "status", "property_id", "client_id", "agent_id")

BUSINESS_HOURS_MESSAGE = (
    f"Visits can only be scheduled between {BUSINESS_HOURS_START:02d}:00 and {BUSINESS_HOURS_END:02d}:00"
)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def check_required(payload: Any, fields: Iterable[str]) -> List[str]:
    return [f"The field {name} is required" for name in fields if _is_missing(getattr(payload, name, None))]


# --- Single checks (shared with single-field validation) ---
def check_positive_amount(name: str, amount: Optional[Decimal]) -> Optional[str]:
    if amount is not None and amount <= 0:
        return f"The {name} must be greater than 0"
    return None


def check_non_negative_amount(name: str, amount: Optional[Decimal]) -> Optional[str]:
    if amount is not None and amount < 0:
        return f"The {name} cannot be negative"
    return None


def check_date_order(start: Optional[date], end: Optional[date]) -> Optional[str]:
    if start is not None and end is not None and end <= start:
        return "The end_date must be after the start_date"
    return None


def check_not_past(visit_date: Optional[date], today: Optional[date] = None) -> Optional[str]:
    today = today or date.today()
    if visit_date is not None and visit_date < today:
        return "The visit_date cannot be earlier than today"
    return None


def check_business_hours(visit_time: Optional[time]) -> Optional[str]:
    if visit_time is not None and not BUSINESS_HOURS_START <= visit_time.hour <= BUSINESS_HOURS_END:
        return BUSINESS_HOURS_MESSAGE
    return None


def check_rental_status(status: Optional[str]) -> Optional[str]:
    if not _is_missing(status) and status not in RENTAL_STATUS:
        return f"Invalid rental status '{status}'; expected one of {', '.join(RENTAL_STATUS)}"
    return None


def check_visit_status(status: Optional[str]) -> Optional[str]:
    if not _is_missing(status) and status not in VISIT_STATUS:
        return f"Invalid visit status '{status}'; expected one of {', '.join(VISIT_STATUS)}"
    return None


def check_interest_rating(rating: Optional[str]) -> Optional[str]:
    if not _is_missing(rating) and rating not in INTEREST_LEVELS:
        return f"Invalid interest rating '{rating}'"
    return None


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a free-text amount; raises ValueError when it is not a number."""
    if _is_missing(raw):
        return None
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"'{raw}' is not a number")


def _collect(*messages: Optional[str]) -> List[str]:
    return [message for message in messages if message]


# --- Entity validators ---
def validate_sale(payload: SaleCreate) -> List[str]:
    errors = check_required(payload, SALE_REQUIRED_FIELDS)
    errors += _collect(
        check_positive_amount("value", payload.value),
        check_non_negative_amount("commission", payload.commission),
    )
    return errors


def validate_rental(payload: RentalCreate) -> List[str]:
    errors = check_required(payload, RENTAL_REQUIRED_FIELDS)
    errors += _collect(
        check_date_order(payload.start_date, payload.end_date),
        check_positive_amount("monthly_rent", payload.monthly_rent),
        check_non_negative_amount("deposit", payload.deposit),
        check_rental_status(payload.status),
    )
    return errors


def validate_visit(payload: VisitCreate, is_new: bool = True, today: Optional[date] = None) -> List[str]:
    """The past-date rule only applies when the visit is being created."""
    errors = check_required(payload, VISIT_REQUIRED_FIELDS)
    errors += _collect(
        check_not_past(payload.visit_date, today) if is_new else None,
        check_business_hours(payload.visit_time),
        check_visit_status(payload.status),
        check_interest_rating(payload.interest_rating),
    )
    return errors
