"""Room schema definitions.

This module defines the Room, VIP code and public directory data models.
"""

from datetime import datetime
from typing import Dict, Literal, Optional, Set

import pytz
from pydantic import BaseModel, Field

Privacy = Literal["public", "private"]


def normalize_privacy(value: Optional[str]) -> str:
    """Anything other than an explicit "private" is public."""
    return "private" if value == "private" else "public"


class PaymentConfig(BaseModel):
    enabled: bool = False
    label: str = ""
    url: str = ""


class RelayConfig(BaseModel):
    """Media relay (TURN) settings a host can attach to a room."""

    enabled: bool = False
    host: str = ""
    port: Optional[int] = None
    tls_port: Optional[int] = None
    username: str = ""
    password: str = ""


class VipCodeUsage(BaseModel):
    max_uses: int
    uses_left: int


class Room(BaseModel):
    room_name: str = Field(
        description="Unique room name; immutable once created.",
    )
    owner_password: Optional[str] = Field(
        default=None,
        description="Host secret. None means the room is unclaimed.",
    )
    privacy: Privacy = Field(default="public")
    is_live: bool = False
    vip_required: bool = False
    created_at: str = Field(
        description="The time when the room was created.",
        default_factory=lambda: datetime.now(pytz.utc).isoformat(),
    )
    title: Optional[str] = None
    viewers: int = 0
    payment: PaymentConfig = Field(default_factory=PaymentConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)

    vip_codes: Dict[str, VipCodeUsage] = Field(
        default_factory=dict,
        description="VIP codes of this room, keyed by code. Read-only here.",
    )
    vip_users: Set[str] = Field(
        default_factory=set,
        description="Allow-listed VIP user names. Read-only here.",
    )
    version: int = Field(
        default=0,
        description="Row version the record was loaded at.",
    )

    @property
    def is_claimed(self) -> bool:
        return self.owner_password is not None


class VipCode(BaseModel):
    code: str
    room_name: str
    max_uses: int
    uses_left: int
    created_at: str


class VipCodeSummary(BaseModel):
    code: str
    max_uses: int
    uses_left: int
    used: int


class PublicRoomEntry(BaseModel):
    """What unauthenticated visitors of the landing page may see."""

    name: str
    viewers: int = 0
    title: Optional[str] = None
    live: bool = False
