from typing import Awaitable
from fastapi.responses import JSONResponse
import logging
import traceback

from app.schemas.result import OperationResult, ResultKind

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ResultKind.OK: 200,
    ResultKind.VALIDATION_ERROR: 400,
    ResultKind.NOT_FOUND: 404,
    ResultKind.CONFLICT: 409,
    ResultKind.DATABASE_ERROR: 500,
    ResultKind.INTERNAL_ERROR: 500,
}


def respond(result: OperationResult, success_status: int = 200) -> JSONResponse:
    status_code = success_status if result.kind == ResultKind.OK else STATUS_CODES[result.kind]
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


async def dispatch(action: str, call: Awaitable[OperationResult], success_status: int = 200) -> JSONResponse:
    """Await a service call and turn its result (or any stray exception) into a response."""
    try:
        result = await call
    except Exception as e:
        logger.error("Error in %s: %s\n%s", action, e, traceback.format_exc())
        result = OperationResult.internal_error()
    return respond(result, success_status)
