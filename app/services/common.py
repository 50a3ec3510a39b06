from typing import Awaitable, Callable, Dict, Optional
from functools import wraps
import logging
import traceback

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.crud import client as crud_client, agent as crud_agent
from app.schemas.common import BulkAction, BulkActionRequest, BulkItemResult
from app.schemas.result import OperationResult, ResultKind

logger = logging.getLogger(__name__)

BulkHandler = Callable[[int], Awaitable[OperationResult]]


def operation_boundary(failure_message: str):
    """
    Decorator for service operations: storage failures become an opaque
    ``database_failure`` result instead of escaping to the caller.

    The unit of work has already rolled back and logged the traceback when it
    raises ``DatabaseError``; a bare ``SQLAlchemyError`` (raised by a read
    outside any unit of work) is logged here.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except DatabaseError as e:
                logger.warning("%s: %s", failure_message, e.detail)
                return OperationResult.database_failure(failure_message)
            except SQLAlchemyError as e:
                logger.error("%s: %s\n%s", failure_message, e, traceback.format_exc())
                return OperationResult.database_failure(failure_message)
        return wrapper
    return decorator


def clamp_limit(requested: Optional[int], default: int, cap: int) -> int:
    """Non-positive or missing -> default; anything above the cap -> cap."""
    if not requested or requested <= 0:
        return default
    return min(requested, cap)


def person_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in (first_name, last_name) if part)


async def missing_party(db: AsyncSession, client_id: int, agent_id: Optional[int]) -> Optional[OperationResult]:
    """NotFound result for the first unknown client / agent reference, else None."""
    if not await crud_client.get_client_by_id(db, client_id):
        return OperationResult.not_found("Client not found", field="client_id")
    if agent_id and not await crud_agent.get_agent_by_id(db, agent_id):
        return OperationResult.not_found("Agent not found", field="agent_id")
    return None


def field_check_result(field: str, error: Optional[str]) -> OperationResult:
    """Outcome of a single-field check; the call itself succeeds either way."""
    if error:
        result = OperationResult.ok("Field is invalid", data={"field": field, "valid": False})
        result.errors = [error]
        return result
    return OperationResult.ok("Field is valid", data={"field": field, "valid": True})


async def run_bulk_action(
    request: BulkActionRequest,
    handlers: Dict[BulkAction, BulkHandler],
    entity_plural: str,
) -> OperationResult:
    """
    Apply one single-record operation to every id in the request.

    Each id goes through its own service call (and therefore its own unit of
    work), so one failure never undoes the others. The aggregate succeeds when
    at least one id did.
    """
    if not request.ids or any(record_id <= 0 for record_id in request.ids):
        return OperationResult.validation_failed(["At least one valid id is required"])

    handler = handlers.get(request.action)
    if handler is None:
        return OperationResult.validation_failed(
            [f"Unsupported bulk action '{request.action.value}' for {entity_plural}"]
        )

    items = []
    for record_id in request.ids:
        outcome = await handler(record_id)
        items.append(BulkItemResult(id=record_id, success=outcome.success, message=outcome.message))

    success_count = sum(1 for item in items if item.success)
    failures = [item for item in items if not item.success]
    logger.info(
        "Bulk %s on %s: %d succeeded, %d failed",
        request.action.value, entity_plural, success_count, len(failures),
    )

    return OperationResult(
        success=success_count > 0,
        message=f"Processed {success_count} of {len(items)} {entity_plural}",
        data={
            "success_count": success_count,
            "failure_count": len(failures),
            "results": [item.model_dump() for item in items],
        },
        errors=[f"{item.id}: {item.message}" for item in failures],
        kind=ResultKind.OK if success_count > 0 else ResultKind.CONFLICT,
    )
