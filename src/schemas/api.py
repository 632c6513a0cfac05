"""Request and response bodies of the HTTP API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.room import PaymentConfig, RelayConfig, VipCodeSummary


class ClaimRoomRequest(BaseModel):
    name: str = Field(description="Room to claim.")
    password: str = Field(description="Host password.")
    privacy: Optional[str] = Field(default=None, description="'public' or 'private'.")


class RoomInfo(BaseModel):
    """Non-secret facts about a room, for viewers deciding how to join."""

    room_name: str
    exists: bool
    has_owner_password: bool = False
    privacy: str = "public"
    vip_required: bool = False
    is_live: bool = False


class UpdateRoomRequest(BaseModel):
    """Host edits. Omitted fields stay as they are."""

    title: Optional[str] = None
    privacy: Optional[str] = None
    is_live: Optional[bool] = None
    vip_required: Optional[bool] = None
    viewers: Optional[int] = Field(default=None, ge=0)
    payment: Optional[PaymentConfig] = None
    relay: Optional[RelayConfig] = None


class GenerateVipCodeRequest(BaseModel):
    max_uses: int = Field(default=1, ge=1, description="Number of redemptions allowed.")


class VipCodeListResponse(BaseModel):
    codes: List[VipCodeSummary]


class RedeemVipCodeRequest(BaseModel):
    code: str
    user_name: Optional[str] = Field(
        default=None,
        description="When given, the user is also added to the room's VIP list.",
    )


class RedeemVipCodeResponse(BaseModel):
    room_name: str
    role: str = "vip"
    user_name: Optional[str] = None


class VipUserRequest(BaseModel):
    user_name: str


class VipUserListResponse(BaseModel):
    users: List[str]
