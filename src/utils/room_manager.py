"""Room management utilities.

This module provides room persistence: creation, lookup, merge updates,
deletion, the host claim flow, and the public-live query backing the
landing page directory.
"""

import logging
import secrets
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pytz
from pydantic import BaseModel
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from config import (
    PAYMENT_LABEL_MAX_LENGTH,
    PAYMENT_URL_MAX_LENGTH,
    ROOM_NAME_MAX_LENGTH,
    ROOM_UPDATE_MAX_RETRIES,
    TITLE_MAX_LENGTH,
)
from core.exceptions import (
    AlreadyExistsError,
    ConstraintViolationError,
    InvalidArgumentError,
    NotFoundError,
)
from core.result import returns_result
from models.room import RoomModel
from schemas.room import PaymentConfig, RelayConfig, Room, normalize_privacy
from utils.converters import model_to_room

logger = logging.getLogger(__name__)

RoomMutation = Callable[[Room], Optional[Room]]


def normalize_room_name(value: Any) -> str:
    if not value or not isinstance(value, str):
        return ""
    return value.strip()[:ROOM_NAME_MAX_LENGTH]


def normalize_payment_label(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip()[:PAYMENT_LABEL_MAX_LENGTH]


def normalize_payment_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip()[:PAYMENT_URL_MAX_LENGTH]


def normalize_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip()[:TITLE_MAX_LENGTH]


def sanitize_payment_config(config: PaymentConfig) -> PaymentConfig:
    """Normalize payment settings submitted by a host.

    Raises:
        InvalidArgumentError: If payments are enabled without a label or
            without an http(s) URL.
    """
    label = normalize_payment_label(config.label) or ""
    url = normalize_payment_url(config.url) or ""
    if config.enabled:
        if not label:
            raise InvalidArgumentError("Payment button label is required.")
        if not url.startswith(("http://", "https://")):
            raise InvalidArgumentError("Payment URL must start with http:// or https://.")
    return PaymentConfig(enabled=config.enabled, label=label, url=url)


def sanitize_relay_config(config: RelayConfig) -> RelayConfig:
    """Normalize relay settings submitted by a host.

    A disabled relay keeps no host or credentials.

    Raises:
        InvalidArgumentError: If the relay is enabled without host, port,
            username and password.
    """
    if not config.enabled:
        return RelayConfig()
    relay = RelayConfig(
        enabled=True,
        host=config.host.strip(),
        port=config.port,
        tls_port=config.tls_port or None,
        username=config.username.strip(),
        password=config.password.strip(),
    )
    if not (relay.host and relay.port and relay.username and relay.password):
        raise InvalidArgumentError("Relay host, port, username, and password are required.")
    return relay


def _coalesce(value: Any, column):
    """SQL ``COALESCE(value, column)``: a None value keeps the stored one."""
    return func.coalesce(value, column)


def _field(config: Optional[BaseModel], name: str) -> Any:
    return None if config is None else getattr(config, name, None)


class RoomManager:
    """Manages room persistence using SQLAlchemy."""

    def __init__(self, db: Session, max_update_retries: int = ROOM_UPDATE_MAX_RETRIES):
        """Initialize RoomManager.

        Args:
            db: SQLAlchemy Session.
            max_update_retries: Extra attempts update_room makes after losing
                a version race.
        """
        self.db = db
        self.max_update_retries = max_update_retries

    def _get_model(self, room_name: str) -> Optional[RoomModel]:
        # populate_existing: rows may have been changed by bulk updates or
        # by other sessions since this session last loaded them
        return (
            self.db.query(RoomModel)
            .options(selectinload(RoomModel.vip_codes), selectinload(RoomModel.vip_users))
            .execution_options(populate_existing=True)
            .filter(RoomModel.room_name == room_name)
            .first()
        )

    def get_room(self, room_name: str) -> Optional[Room]:
        """Get a room with its VIP codes and VIP users.

        Args:
            room_name: Name of the room.

        Returns:
            Room object if found, None otherwise.
        """
        name = normalize_room_name(room_name)
        if not name:
            return None
        model = self._get_model(name)
        if model is None:
            return None
        return model_to_room(model)

    @returns_result
    def create_room(
        self,
        room_name: str,
        owner_password: Optional[str] = None,
        privacy: Optional[str] = None,
    ) -> Room:
        """Create a new room with every unsupplied field at its default.

        Args:
            room_name: Unique room name.
            owner_password: Optional host secret; omitted leaves the room unclaimed.
            privacy: "private" for a private room, anything else is public.

        Returns:
            Result holding the created Room.
        """
        name = normalize_room_name(room_name)
        if not name:
            raise InvalidArgumentError("Invalid room name.")
        if self._get_model(name) is not None:
            raise AlreadyExistsError("Room already exists.")

        model = RoomModel(
            room_name=name,
            owner_password=str(owner_password) if owner_password else None,
            privacy=normalize_privacy(privacy),
            is_live=False,
            vip_required=False,
            created_at=datetime.now(pytz.utc).isoformat(),
            title=None,
            viewers=0,
            payment_enabled=False,
            payment_label="",
            payment_url="",
            relay_enabled=False,
            relay_host="",
            relay_port=None,
            relay_tls_port=None,
            relay_username="",
            relay_password="",
            version=0,
        )
        self.db.add(model)
        # Another writer may have created the same name after our check
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AlreadyExistsError("Room already exists.") from exc

        logger.info("Created room: %s (privacy=%s)", name, model.privacy)
        return self.get_room(name)

    def _coalesced_values(self, room: Room) -> Dict[str, Any]:
        viewers = None if room.viewers is None else max(0, int(room.viewers))
        privacy = None if room.privacy is None else normalize_privacy(room.privacy)
        # A missing sub-config behaves like one whose fields are all None
        payment = room.payment
        relay = room.relay
        values = {
            "owner_password": _coalesce(room.owner_password, RoomModel.owner_password),
            "privacy": _coalesce(privacy, RoomModel.privacy),
            "is_live": _coalesce(room.is_live, RoomModel.is_live),
            "vip_required": _coalesce(room.vip_required, RoomModel.vip_required),
            "title": _coalesce(normalize_title(room.title), RoomModel.title),
            "viewers": _coalesce(viewers, RoomModel.viewers),
            "payment_enabled": _coalesce(_field(payment, "enabled"), RoomModel.payment_enabled),
            "payment_label": _coalesce(
                normalize_payment_label(_field(payment, "label")), RoomModel.payment_label
            ),
            "payment_url": _coalesce(
                normalize_payment_url(_field(payment, "url")), RoomModel.payment_url
            ),
            "version": RoomModel.version + 1,
        }
        if _field(relay, "enabled") is False:
            # Disabling the relay drops its host, ports and credentials
            cleared = RelayConfig()
            values.update(
                relay_enabled=False,
                relay_host=cleared.host,
                relay_port=cleared.port,
                relay_tls_port=cleared.tls_port,
                relay_username=cleared.username,
                relay_password=cleared.password,
            )
        else:
            values.update(
                relay_enabled=_coalesce(_field(relay, "enabled"), RoomModel.relay_enabled),
                relay_host=_coalesce(_field(relay, "host"), RoomModel.relay_host),
                relay_port=_coalesce(_field(relay, "port"), RoomModel.relay_port),
                relay_tls_port=_coalesce(_field(relay, "tls_port"), RoomModel.relay_tls_port),
                relay_username=_coalesce(_field(relay, "username"), RoomModel.relay_username),
                relay_password=_coalesce(_field(relay, "password"), RoomModel.relay_password),
            )
        return values

    @returns_result
    def update_room(self, room_name: str, mutate: RoomMutation) -> Room:
        """Apply ``mutate`` to the stored room and write every field back.

        ``mutate`` receives a copy of the current record and either edits it
        in place or returns a replacement. Fields left as None keep their
        stored value, and a disabled relay is written back empty. The write
        only lands if nobody else updated the room since it was read;
        otherwise the record is reloaded and ``mutate`` is applied again, so
        it may run more than once. VIP codes and VIP users on the record are
        ignored.

        Args:
            room_name: Name of the room to update.
            mutate: Transformation of the room record.

        Returns:
            Result holding the room as stored after the update.
        """
        name = normalize_room_name(room_name)
        if not name:
            raise InvalidArgumentError("Invalid room name.")

        for attempt in range(self.max_update_retries + 1):
            current = self.get_room(name)
            if current is None:
                raise NotFoundError("Room not found.")

            draft = current.model_copy(deep=True)
            updated = mutate(draft)
            if updated is None:
                updated = draft
            if not isinstance(updated, Room):
                raise InvalidArgumentError("Room mutation must return a Room or None.")
            if updated.room_name != current.room_name:
                raise InvalidArgumentError("Room name cannot be changed.")

            stmt = (
                update(RoomModel)
                .where(
                    RoomModel.room_name == name,
                    RoomModel.version == current.version,
                )
                .values(**self._coalesced_values(updated))
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
            self.db.commit()
            if result.rowcount == 1:
                return self.get_room(name)

            logger.warning(
                "Version conflict updating room %s (attempt %d)", name, attempt + 1
            )

        raise ConstraintViolationError(
            f"Concurrent update of room '{name}' did not settle"
        )

    @returns_result
    def delete_room(self, room_name: str) -> None:
        """Delete a room; its VIP codes and VIP users go with it.

        Args:
            room_name: Name of the room to delete.
        """
        name = normalize_room_name(room_name)
        if not name:
            raise InvalidArgumentError("Invalid room name.")
        model = self.db.query(RoomModel).filter(RoomModel.room_name == name).first()
        if model is None:
            raise NotFoundError("Room not found.")
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted room: %s", name)

    def list_public_live(self) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(
                RoomModel.room_name,
                RoomModel.viewers,
                RoomModel.title,
                RoomModel.is_live,
            )
            .filter(RoomModel.privacy == "public", RoomModel.is_live.is_(True))
            .all()
        )
        return [
            {
                "room_name": row.room_name,
                "viewers": row.viewers,
                "title": row.title,
                "is_live": bool(row.is_live),
            }
            for row in rows
        ]

    @returns_result
    def claim_room(
        self, room_name: str, password: str, privacy: Optional[str] = None
    ) -> Room:
        """Claim a room for a host, or confirm an existing claim.

        An absent room is created with the password. An unclaimed room takes
        the password and privacy. A claimed room only succeeds when the
        password matches.

        Args:
            room_name: Room to claim.
            password: Host secret.
            privacy: Requested privacy for a new or unclaimed room.

        Returns:
            Result holding the claimed Room.
        """
        name = normalize_room_name(room_name)
        if not name or not password:
            raise InvalidArgumentError("Room name and password are required.")

        existing = self.get_room(name)
        if existing is None:
            return self.create_room(name, password, privacy).unwrap()
        if existing.is_claimed:
            if not self._password_matches(existing, password):
                raise AlreadyExistsError("Room already exists.")
            return existing

        def claim(room: Room) -> None:
            if room.owner_password is None:
                room.owner_password = str(password)
                room.privacy = normalize_privacy(privacy)

        claimed = self.update_room(name, claim).unwrap()
        # Someone else may have claimed it between our read and write
        if not self._password_matches(claimed, password):
            raise AlreadyExistsError("Room already exists.")
        logger.info("Claimed room: %s", name)
        return claimed

    def authenticate_host(self, room_name: str, password: Optional[str]) -> bool:
        """Check a host password. Unknown and unclaimed rooms never match."""
        room = self.get_room(room_name)
        if room is None or password is None:
            return False
        return self._password_matches(room, password)

    @staticmethod
    def _password_matches(room: Room, password: str) -> bool:
        if room.owner_password is None:
            return False
        return secrets.compare_digest(
            room.owner_password.encode("utf-8"), str(password).encode("utf-8")
        )
