# app/core/constants.py
from enum import Enum


# --- Enumerations ---
class PropertyState(str, Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    RENTED = "Rented"


class RentalStatus(str, Enum):
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    DELINQUENT = "Delinquent"
    TERMINATED = "Terminated"


class VisitStatus(str, Enum):
    SCHEDULED = "Scheduled"
    RESCHEDULED = "Rescheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ContractType(str, Enum):
    SALE = "Sale"
    RENTAL = "Rental"


# --- Code -> label maps (only the key sets matter to the services) ---
PROPERTY_TYPES = {
    "House": "House",
    "Apartment": "Apartment",
    "Commercial": "Commercial Premises",
    "Office": "Office",
    "Lot": "Lot",
}

RENTAL_STATUS = {
    RentalStatus.ACTIVE.value: "Active",
    RentalStatus.OVERDUE.value: "Overdue (term ended)",
    RentalStatus.DELINQUENT.value: "Delinquent (payments behind)",
    RentalStatus.TERMINATED.value: "Terminated",
}

VISIT_STATUS = {
    VisitStatus.SCHEDULED.value: "Scheduled",
    VisitStatus.RESCHEDULED.value: "Rescheduled",
    VisitStatus.COMPLETED.value: "Completed",
    VisitStatus.CANCELLED.value: "Cancelled",
}

INTEREST_LEVELS = {
    "Very Interested": "Very Interested",
    "Interested": "Interested",
    "Slightly Interested": "Slightly Interested",
    "Not Interested": "Not Interested",
}

CONTRACT_STATUS = {
    "Draft": "Draft",
    "Active": "Active",
    "Finished": "Finished",
    "Cancelled": "Cancelled",
}

# --- Business rules ---
DELETABLE_RENTAL_STATUSES = (RentalStatus.TERMINATED.value, RentalStatus.OVERDUE.value)
OPEN_VISIT_STATUSES = (VisitStatus.SCHEDULED.value, VisitStatus.RESCHEDULED.value)

BUSINESS_HOURS_START = 8
BUSINESS_HOURS_END = 18

# --- Lookup limits ---
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50
DEFAULT_EXPIRING_DAYS = 30
MAX_EXPIRING_DAYS = 90
DEFAULT_UPCOMING_DAYS = 7
MAX_UPCOMING_DAYS = 30
TOP_AGENTS_LIMIT = 5

# --- Display ids (SAL001, REN012, ...) ---
SALE_PREFIX = "SAL"
RENTAL_PREFIX = "REN"
VISIT_PREFIX = "VIS"


def display_id(prefix: str, record_id: int) -> str:
    return f"{prefix}{record_id:03d}"
