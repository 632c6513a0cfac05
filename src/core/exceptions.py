"""Custom exception classes for the room access-control store.

Every store error carries an ``ErrorKind`` so callers can branch on the
failure category instead of parsing messages.
"""

from enum import Enum

from sqlalchemy.exc import DatabaseError, IntegrityError, SQLAlchemyError


class ErrorKind(str, Enum):
    """Failure categories reported by store operations."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    CONSTRAINT_VIOLATION = "constraint_violation"
    STORAGE_IO = "storage_io"


class RoomStoreError(Exception):
    """Base exception for all room store errors."""

    kind: ErrorKind = ErrorKind.STORAGE_IO

    def __init__(self, detail: str):
        """Initialize the exception.

        Args:
            detail: Human-readable description, meant for logs.
        """
        self.detail = detail
        super().__init__(detail)


class InvalidArgumentError(RoomStoreError):
    """Raised when a required identifier is missing or malformed."""

    kind = ErrorKind.INVALID_ARGUMENT


class NotFoundError(RoomStoreError):
    """Raised when an operation targets a room or code that does not exist."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(RoomStoreError):
    """Raised on a duplicate room name or a duplicate VIP code."""

    kind = ErrorKind.ALREADY_EXISTS


class ConstraintViolationError(RoomStoreError):
    """Raised for other uniqueness or foreign-key violations."""

    kind = ErrorKind.CONSTRAINT_VIOLATION


class StorageIOError(RoomStoreError):
    """Raised when the storage engine itself fails."""

    kind = ErrorKind.STORAGE_IO


def translate_db_error(exc: SQLAlchemyError) -> RoomStoreError:
    """Map a SQLAlchemy exception onto the store error taxonomy.

    Args:
        exc: The exception raised by SQLAlchemy or the DBAPI driver.

    Returns:
        The matching RoomStoreError instance.
    """
    if isinstance(exc, IntegrityError):
        return ConstraintViolationError(str(exc.orig))
    if isinstance(exc, DatabaseError):
        return StorageIOError(str(exc.orig))
    return StorageIOError(str(exc))
