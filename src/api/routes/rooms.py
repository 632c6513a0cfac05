"""Room routes: public directory, host claim, room settings."""

from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, status

from api.errors import raise_for_result
from core.dependencies import PublicRoomDirectoryDep, RoomManagerDep
from core.exceptions import InvalidArgumentError
from schemas.api import ClaimRoomRequest, RoomInfo, UpdateRoomRequest
from schemas.room import PublicRoomEntry, Room, normalize_privacy
from utils.room_manager import (
    RoomManager,
    normalize_room_name,
    normalize_title,
    sanitize_payment_config,
    sanitize_relay_config,
)

router = APIRouter(prefix="/api/rooms", tags=["Room"])

# Secrets stay server-side even for the host
_HOST_VIEW_EXCLUDE = {"owner_password"}


def require_host(
    room_manager: RoomManager, name: str, password: Optional[str]
) -> str:
    """Authenticate the host of ``name`` or raise 401.

    The message is the same whether the room or the password was wrong.
    """
    if not room_manager.authenticate_host(name, password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unable to authenticate.",
        )
    return normalize_room_name(name)


@router.get("/public", response_model=List[PublicRoomEntry], summary="List public live rooms")
def list_public_rooms(directory: PublicRoomDirectoryDep) -> List[PublicRoomEntry]:
    return directory.list_public()


@router.post(
    "/claim",
    response_model=Room,
    response_model_exclude=_HOST_VIEW_EXCLUDE,
    summary="Claim or authenticate a room",
)
def claim_room(req: ClaimRoomRequest, room_manager: RoomManagerDep) -> Room:
    """Claim a room as its host.

    A new or unclaimed room is taken over with the given password; an
    already-claimed room only answers to its own password.
    """
    result = room_manager.claim_room(req.name, req.password, req.privacy)
    raise_for_result(result)
    return result.value


@router.get("/{name}", response_model=RoomInfo, summary="Public facts about a room")
def get_room_info(name: str, room_manager: RoomManagerDep) -> RoomInfo:
    room_name = normalize_room_name(name)
    room = room_manager.get_room(room_name)
    if room is None:
        return RoomInfo(room_name=room_name, exists=False)
    return RoomInfo(
        room_name=room.room_name,
        exists=True,
        has_owner_password=room.is_claimed,
        privacy=room.privacy,
        # VIP gating only applies to private rooms
        vip_required=room.vip_required if room.privacy == "private" else False,
        is_live=room.is_live,
    )


@router.patch(
    "/{name}",
    response_model=Room,
    response_model_exclude=_HOST_VIEW_EXCLUDE,
    summary="Update room settings",
)
def update_room(
    name: str,
    req: UpdateRoomRequest,
    room_manager: RoomManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> Room:
    room_name = require_host(room_manager, name, x_room_password)

    if req.vip_required:
        current = room_manager.get_room(room_name)
        if current is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found.")
        target_privacy = (
            normalize_privacy(req.privacy) if req.privacy is not None else current.privacy
        )
        if target_privacy != "private":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="VIP access requires a private room.",
            )

    try:
        payment = sanitize_payment_config(req.payment) if req.payment is not None else None
        relay = sanitize_relay_config(req.relay) if req.relay is not None else None
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.detail) from exc

    def apply(room: Room) -> None:
        if req.title is not None:
            room.title = normalize_title(req.title)
        if req.privacy is not None:
            room.privacy = normalize_privacy(req.privacy)
            if room.privacy != "private":
                room.vip_required = False
        if req.vip_required is not None:
            room.vip_required = req.vip_required and room.privacy == "private"
        if req.is_live is not None:
            room.is_live = req.is_live
        if req.viewers is not None:
            room.viewers = req.viewers
        if payment is not None:
            room.payment = payment
        if relay is not None:
            room.relay = relay

    result = room_manager.update_room(room_name, apply)
    raise_for_result(result)
    return result.value


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a room")
def delete_room(
    name: str,
    room_manager: RoomManagerDep,
    x_room_password: Optional[str] = Header(default=None),
) -> None:
    room_name = require_host(room_manager, name, x_room_password)
    raise_for_result(room_manager.delete_room(room_name))
