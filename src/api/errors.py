"""Translate store results into HTTP errors."""

from fastapi import HTTPException, status

from core.exceptions import ErrorKind
from core.result import Result

_STATUS_BY_KIND = {
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.CONSTRAINT_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorKind.STORAGE_IO: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def raise_for_result(result: Result) -> None:
    """Raise the HTTPException matching a failed result; no-op on success."""
    if result.ok:
        return
    detail = result.detail
    if result.kind == ErrorKind.STORAGE_IO:
        # Engine messages are for operators, not clients
        detail = "Storage unavailable."
    raise HTTPException(status_code=_STATUS_BY_KIND[result.kind], detail=detail)
