# app/core/exceptions.py


class EstateBackofficeError(Exception):
    """Base class for all back-office exceptions.

    Business refusals (validation, missing records, conflicts) are not
    exceptions: services return them as ``OperationResult`` values. Only
    failures the caller cannot correct derive from this class.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class DatabaseError(EstateBackofficeError):
    """Raised when the storage layer fails; the transaction has been rolled back."""

    def __init__(self, detail: str = "Database error"):
        super().__init__(detail)
