"""VIP routes: code issuance and redemption, VIP allow-list management."""

import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, status

from api.errors import raise_for_result
from api.routes.rooms import require_host
from core.dependencies import RoomManagerDep, VipCodeManagerDep, VipUserManagerDep
from schemas.api import (
    GenerateVipCodeRequest,
    RedeemVipCodeRequest,
    RedeemVipCodeResponse,
    VipCodeListResponse,
    VipUserListResponse,
    VipUserRequest,
)
from schemas.room import VipCode

logger = logging.getLogger(__name__)

router = APIRouter(tags=["VIP"])

# Same answer for unknown and exhausted codes, so codes cannot be probed
_REDEEM_FAILED = "Invalid or expired code."


@router.post(
    "/api/rooms/{name}/vip-codes",
    response_model=VipCode,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a VIP code",
)
def generate_vip_code(
    name: str,
    req: GenerateVipCodeRequest,
    room_manager: RoomManagerDep,
    vip_code_manager: VipCodeManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> VipCode:
    room_name = require_host(room_manager, name, x_room_password)
    room = room_manager.get_room(room_name)
    if room is None or room.privacy != "private":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="VIP codes are only available for private rooms.",
        )
    result = vip_code_manager.generate_code(room_name, req.max_uses)
    raise_for_result(result)
    return result.value


@router.get(
    "/api/rooms/{name}/vip-codes",
    response_model=VipCodeListResponse,
    summary="List VIP codes",
)
def list_vip_codes(
    name: str,
    room_manager: RoomManagerDep,
    vip_code_manager: VipCodeManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> VipCodeListResponse:
    room_name = require_host(room_manager, name, x_room_password)
    return VipCodeListResponse(codes=vip_code_manager.list_codes(room_name))


@router.delete(
    "/api/rooms/{name}/vip-codes/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a VIP code",
)
def revoke_vip_code(
    name: str,
    code: str,
    room_manager: RoomManagerDep,
    vip_code_manager: VipCodeManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> None:
    room_name = require_host(room_manager, name, x_room_password)
    vip_code_manager.delete_code(room_name, code)


@router.post(
    "/api/vip/redeem",
    response_model=RedeemVipCodeResponse,
    summary="Redeem a VIP code",
)
def redeem_vip_code(
    req: RedeemVipCodeRequest,
    vip_code_manager: VipCodeManagerDep,
    vip_user_manager: VipUserManagerDep,
) -> RedeemVipCodeResponse:
    """Consume one use of a code and, optionally, remember the viewer as VIP."""
    vip_code = vip_code_manager.lookup(req.code)
    if vip_code is None or not vip_code_manager.redeem(vip_code.code):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_REDEEM_FAILED)

    user_name = req.user_name.strip() if req.user_name else None
    if user_name:
        granted = vip_user_manager.grant(vip_code.room_name, user_name)
        if not granted.ok:
            # The use is already spent; entry still goes ahead for this visit
            logger.warning(
                "Redeemed code for room %s but could not persist VIP user: %s",
                vip_code.room_name,
                granted.detail,
            )
    return RedeemVipCodeResponse(room_name=vip_code.room_name, user_name=user_name)


@router.get(
    "/api/rooms/{name}/vip-users",
    response_model=VipUserListResponse,
    summary="List VIP users",
)
def list_vip_users(
    name: str,
    room_manager: RoomManagerDep,
    vip_user_manager: VipUserManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> VipUserListResponse:
    room_name = require_host(room_manager, name, x_room_password)
    return VipUserListResponse(users=sorted(vip_user_manager.list_users(room_name)))


@router.post(
    "/api/rooms/{name}/vip-users",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Grant VIP access",
)
def grant_vip_user(
    name: str,
    req: VipUserRequest,
    room_manager: RoomManagerDep,
    vip_user_manager: VipUserManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> None:
    room_name = require_host(room_manager, name, x_room_password)
    raise_for_result(vip_user_manager.grant(room_name, req.user_name))


@router.delete(
    "/api/rooms/{name}/vip-users/{user_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke VIP access",
)
def revoke_vip_user(
    name: str,
    user_name: str,
    room_manager: RoomManagerDep,
    vip_user_manager: VipUserManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> None:
    room_name = require_host(room_manager, name, x_room_password)
    raise_for_result(vip_user_manager.revoke(room_name, user_name))
