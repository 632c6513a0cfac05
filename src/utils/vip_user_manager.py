"""VIP user allow-list management."""

import logging
from datetime import datetime
from typing import Set

import pytz
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from core.exceptions import InvalidArgumentError
from core.result import returns_result
from models.vip_user import VipUserModel
from utils.room_manager import normalize_room_name

logger = logging.getLogger(__name__)


def _require(room_name: str, user_name: str) -> tuple:
    name = normalize_room_name(room_name)
    user = user_name.strip() if isinstance(user_name, str) else ""
    if not name or not user:
        raise InvalidArgumentError("Room and user name are required.")
    return name, user


class VipUserManager:
    """Manages durable per-room VIP membership."""

    def __init__(self, db: Session):
        self.db = db

    @returns_result
    def grant(self, room_name: str, user_name: str) -> None:
        """Add a user to a room's VIP list. Granting twice is a no-op.

        Args:
            room_name: Room to grant access to; must exist.
            user_name: User to allow-list.
        """
        name, user = _require(room_name, user_name)
        stmt = (
            insert(VipUserModel.__table__)
            .values(
                room_name=name,
                user_name=user,
                added_at=datetime.now(pytz.utc).isoformat(),
            )
            .on_conflict_do_nothing(index_elements=["room_name", "user_name"])
        )
        result = self.db.execute(stmt)
        self.db.commit()
        if result.rowcount:
            logger.info("Granted VIP in room %s to %s", name, user)

    @returns_result
    def revoke(self, room_name: str, user_name: str) -> None:
        """Remove a user from a room's VIP list. Non-members are ignored."""
        name, user = _require(room_name, user_name)
        deleted = (
            self.db.query(VipUserModel)
            .filter(VipUserModel.room_name == name, VipUserModel.user_name == user)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Revoked VIP in room %s from %s", name, user)

    def list_users(self, room_name: str) -> Set[str]:
        name = normalize_room_name(room_name)
        if not name:
            return set()
        rows = (
            self.db.query(VipUserModel.user_name)
            .filter(VipUserModel.room_name == name)
            .all()
        )
        return {row.user_name for row in rows}

    def is_vip(self, room_name: str, user_name: str) -> bool:
        name = normalize_room_name(room_name)
        if not name or not user_name:
            return False
        return (
            self.db.query(VipUserModel.id)
            .filter(VipUserModel.room_name == name, VipUserModel.user_name == user_name.strip())
            .first()
            is not None
        )
