"""VIP code management utilities.

VIP codes are quota-limited invitations into a room. Codes share one
namespace across all rooms. Redemption is a single guarded UPDATE so that
concurrent viewers can never consume more uses than a code has.
"""

import logging
import secrets
from datetime import datetime
from typing import Any, List, Optional

import pytz
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import VIP_CODE_ALPHABET, VIP_CODE_GENERATION_ATTEMPTS, VIP_CODE_LENGTH
from core.exceptions import (
    AlreadyExistsError,
    ConstraintViolationError,
    InvalidArgumentError,
    NotFoundError,
    translate_db_error,
)
from core.result import returns_result
from models.room import RoomModel
from models.vip_code import VipCodeModel
from schemas.room import VipCode, VipCodeSummary, VipCodeUsage
from utils.converters import model_to_vip_code, summarize_vip_codes
from utils.room_manager import normalize_room_name

logger = logging.getLogger(__name__)


def normalize_vip_code(value: Any) -> str:
    if not value or not isinstance(value, str):
        return ""
    return value.strip().upper()


def generate_vip_code(length: int = VIP_CODE_LENGTH, alphabet: str = VIP_CODE_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


class VipCodeManager:
    """Manages VIP code issuance, redemption and deletion."""

    def __init__(self, db: Session):
        self.db = db

    def _room_exists(self, room_name: str) -> bool:
        return (
            self.db.query(RoomModel.room_name)
            .filter(RoomModel.room_name == room_name)
            .first()
            is not None
        )

    def _code_exists(self, code: str) -> bool:
        return (
            self.db.query(VipCodeModel.id)
            .filter(VipCodeModel.code == code)
            .first()
            is not None
        )

    @returns_result
    def add_code(self, room_name: str, code: str, max_uses: int) -> VipCode:
        """Issue a VIP code for a room.

        Args:
            room_name: Room the code grants entry to.
            code: The code itself; must be unused across all rooms.
            max_uses: Number of redemptions allowed, at least 1.

        Returns:
            Result holding the created VipCode.
        """
        name = normalize_room_name(room_name)
        normalized = normalize_vip_code(code)
        if not name or not normalized:
            raise InvalidArgumentError("Room and code are required.")
        if isinstance(max_uses, bool) or not isinstance(max_uses, int) or max_uses < 1:
            raise InvalidArgumentError("max_uses must be a positive integer.")
        if not self._room_exists(name):
            raise NotFoundError("Room not found.")
        if self._code_exists(normalized):
            raise AlreadyExistsError("VIP code already exists.")

        model = VipCodeModel(
            room_name=name,
            code=normalized,
            max_uses=max_uses,
            uses_left=max_uses,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(model)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if self._code_exists(normalized):
                raise AlreadyExistsError("VIP code already exists.") from exc
            raise translate_db_error(exc) from exc

        logger.info("Added VIP code for room %s (max_uses=%d)", name, max_uses)
        return model_to_vip_code(model)

    @returns_result
    def generate_code(
        self, room_name: str, max_uses: int, length: int = VIP_CODE_LENGTH
    ) -> VipCode:
        """Issue a freshly generated code, retrying on global collisions.

        Args:
            room_name: Room the code grants entry to.
            max_uses: Number of redemptions allowed, at least 1.
            length: Code length.

        Returns:
            Result holding the created VipCode.
        """
        for _ in range(VIP_CODE_GENERATION_ATTEMPTS):
            result = self.add_code(room_name, generate_vip_code(length), max_uses)
            if result.ok or not isinstance(result.error, AlreadyExistsError):
                return result.unwrap()
        raise ConstraintViolationError("Could not generate an unused VIP code.")

    def redeem(self, code: str) -> bool:
        """Consume one use of a code.

        Args:
            code: The VIP code.

        Returns:
            True if a use was consumed, False if the code does not exist or
            is exhausted.

        Raises:
            StorageIOError: If the database cannot be written.
        """
        normalized = normalize_vip_code(code)
        if not normalized:
            return False
        # Guarded decrement in one statement; never read-then-write here
        stmt = (
            update(VipCodeModel)
            .where(VipCodeModel.code == normalized, VipCodeModel.uses_left > 0)
            .values(uses_left=VipCodeModel.uses_left - 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise translate_db_error(exc) from exc
        return result.rowcount > 0

    def delete_code(self, room_name: str, code: str) -> None:
        """Delete a room's code. Missing codes are ignored."""
        name = normalize_room_name(room_name)
        normalized = normalize_vip_code(code)
        if not name or not normalized:
            return
        deleted = (
            self.db.query(VipCodeModel)
            .filter(VipCodeModel.room_name == name, VipCodeModel.code == normalized)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Deleted VIP code from room %s", name)

    def lookup(self, code: str) -> Optional[VipCode]:
        """Resolve a code to its record regardless of room."""
        normalized = normalize_vip_code(code)
        if not normalized:
            return None
        model = (
            self.db.query(VipCodeModel)
            .execution_options(populate_existing=True)
            .filter(VipCodeModel.code == normalized)
            .first()
        )
        if model is None:
            return None
        return model_to_vip_code(model)

    def list_codes(self, room_name: str) -> List[VipCodeSummary]:
        name = normalize_room_name(room_name)
        if not name:
            return []
        rows = (
            self.db.query(VipCodeModel.code, VipCodeModel.max_uses, VipCodeModel.uses_left)
            .filter(VipCodeModel.room_name == name)
            .order_by(VipCodeModel.id)
            .all()
        )
        return summarize_vip_codes(
            {
                row.code: VipCodeUsage(max_uses=row.max_uses, uses_left=row.uses_left)
                for row in rows
            }
        )
