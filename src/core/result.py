"""Typed results for mutating store operations.

Mutating manager methods never raise to their caller; they return a
``Result`` holding either the produced value or a ``RoomStoreError``.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import ErrorKind, RoomStoreError, translate_db_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a mutating store operation."""

    ok: bool
    value: Optional[T] = None
    error: Optional[RoomStoreError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: RoomStoreError) -> "Result[T]":
        return cls(ok=False, error=error)

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def detail(self) -> Optional[str]:
        return self.error.detail if self.error else None

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value


def returns_result(func: Callable[..., T]) -> Callable[..., Result[T]]:
    """Wrap a manager method so it returns a Result instead of raising.

    The wrapped method must live on an object with a ``db`` session
    attribute; the session is rolled back on any failure.
    """

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> Result[T]:
        try:
            return Result.success(func(self, *args, **kwargs))
        except RoomStoreError as exc:
            self.db.rollback()
            logger.info("%s failed (%s): %s", func.__name__, exc.kind.value, exc.detail)
            return Result.failure(exc)
        except SQLAlchemyError as exc:
            self.db.rollback()
            error = translate_db_error(exc)
            logger.error("%s failed (%s): %s", func.__name__, error.kind.value, error.detail)
            return Result.failure(error)

    return wrapper
