from typing import Dict, Tuple
from pydantic import BaseModel

from app.core.constants import RentalStatus, VISIT_STATUS


# Rental status machine: current status -> statuses it may move to.
# Same -> same is never listed, so re-requesting the current status is refused.
RENTAL_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    RentalStatus.ACTIVE.value: (
        RentalStatus.TERMINATED.value,
        RentalStatus.DELINQUENT.value,
        RentalStatus.OVERDUE.value,
    ),
    RentalStatus.OVERDUE.value: (RentalStatus.TERMINATED.value, RentalStatus.ACTIVE.value),
    RentalStatus.DELINQUENT.value: (RentalStatus.ACTIVE.value, RentalStatus.TERMINATED.value),
    RentalStatus.TERMINATED.value: (),
}


class TransitionCheck(BaseModel):
    allowed: bool
    current_status: str
    requested_status: str
    valid_transitions: Tuple[str, ...]

    def conflict_detail(self) -> dict:
        return {
            "current_status": self.current_status,
            "requested_status": self.requested_status,
            "valid_transitions": list(self.valid_transitions),
        }


def allowed_rental_transitions(current_status: str) -> Tuple[str, ...]:
    return RENTAL_TRANSITIONS.get(current_status, ())


def check_rental_transition(current_status: str, requested_status: str) -> TransitionCheck:
    valid = allowed_rental_transitions(current_status)
    return TransitionCheck(
        allowed=requested_status in valid,
        current_status=current_status,
        requested_status=requested_status,
        valid_transitions=valid,
    )


def check_visit_transition(current_status: str, requested_status: str) -> TransitionCheck:
    # Visits have no restrictive table: any known status may be set from any other.
    valid = tuple(VISIT_STATUS)
    return TransitionCheck(
        allowed=requested_status in valid,
        current_status=current_status,
        requested_status=requested_status,
        valid_transitions=valid,
    )
