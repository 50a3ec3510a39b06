from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field


class ResultKind(str, Enum):
    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    DATABASE_ERROR = "database_error"
    INTERNAL_ERROR = "internal_error"


class OperationResult(BaseModel):
    """
    Uniform outcome of every back-office operation.

    Serialises to ``{success, message, data, errors}``. ``kind`` is kept off
    the wire and only tells the HTTP layer which status code to use.

    Validation failures, missing records and business conflicts are all
    ordinary results built through the constructors below, never exceptions.
    """

    success: bool
    message: str
    data: Optional[Any] = None
    errors: List[str] = Field(default_factory=list)
    kind: ResultKind = Field(default=ResultKind.OK, exclude=True)

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def validation_failed(cls, errors: List[str], message: str = "Validation failed") -> "OperationResult":
        return cls(success=False, message=message, errors=list(errors), kind=ResultKind.VALIDATION_ERROR)

    @classmethod
    def not_found(cls, message: str, field: Optional[str] = None) -> "OperationResult":
        return cls(
            success=False,
            message=message,
            data={"field": field} if field else None,
            errors=[message],
            kind=ResultKind.NOT_FOUND,
        )

    @classmethod
    def conflict(cls, message: str, **detail: Any) -> "OperationResult":
        """Business-rule refusal; ``detail`` explains the state that blocked it."""
        return cls(success=False, message=message, data=detail, errors=[message], kind=ResultKind.CONFLICT)

    @classmethod
    def database_failure(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message, kind=ResultKind.DATABASE_ERROR)

    @classmethod
    def internal_error(cls, message: str = "Internal Server Error") -> "OperationResult":
        return cls(success=False, message=message, kind=ResultKind.INTERNAL_ERROR)
