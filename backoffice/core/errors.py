"""
Error taxonomy shared by the services and routers.

Reads raise; writes report. List views must stay usable, so read paths only
ever raise StorageUnavailable, while create/update/delete hand back a
MutationResult the UI can render inline.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class BackofficeError(Exception):
    """Base exception for service errors"""

    code = "BackofficeError"


class ValidationError(BackofficeError):
    """Malformed or missing input on create/update"""

    code = "ValidationError"

    def __init__(self, errors: List[str], message: str = "Invalid input"):
        super().__init__(message)
        self.message = message
        self.errors = list(errors)


class NotFound(BackofficeError):
    """No record with the requested id"""

    code = "NotFound"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorageUnavailable(BackofficeError):
    """The database could not be reached or rejected the operation"""

    code = "StorageUnavailable"

    def __init__(self, message: str = "Storage is unavailable"):
        super().__init__(message)
        self.message = message


@dataclass
class MutationResult:
    success: bool
    message: str = ""
    errors: List[str] = field(default_factory=list)
    error: Optional[str] = None
    record: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str = "", record: Optional[Dict[str, Any]] = None) -> "MutationResult":
        return cls(success=True, message=message, record=record)

    @classmethod
    def failure(cls, exc: BackofficeError) -> "MutationResult":
        return cls(
            success=False,
            message=getattr(exc, "message", str(exc)),
            errors=list(getattr(exc, "errors", [])),
            error=exc.code,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.errors:
            data["errors"] = self.errors
        if self.error:
            data["error"] = self.error
        if self.record is not None:
            data["record"] = self.record
        return data


# HTTP status used by the routers for each failure kind
STATUS_BY_ERROR = {
    ValidationError.code: 422,
    NotFound.code: 404,
    StorageUnavailable.code: 503,
}
