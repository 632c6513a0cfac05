"""Conversions between ORM models and schema objects."""

from typing import Dict, List

from models.room import RoomModel
from models.vip_code import VipCodeModel
from schemas.room import (
    PaymentConfig,
    RelayConfig,
    Room,
    VipCode,
    VipCodeSummary,
    VipCodeUsage,
    normalize_privacy,
)


def model_to_room(model: RoomModel) -> Room:
    """Materialize a room row together with its VIP codes and users."""
    return Room(
        room_name=model.room_name,
        owner_password=model.owner_password,
        privacy=normalize_privacy(model.privacy),
        is_live=bool(model.is_live),
        vip_required=bool(model.vip_required),
        created_at=model.created_at,
        title=model.title,
        viewers=model.viewers or 0,
        payment=PaymentConfig(
            enabled=bool(model.payment_enabled),
            label=model.payment_label or "",
            url=model.payment_url or "",
        ),
        relay=RelayConfig(
            enabled=bool(model.relay_enabled),
            host=model.relay_host or "",
            port=model.relay_port,
            tls_port=model.relay_tls_port,
            username=model.relay_username or "",
            password=model.relay_password or "",
        ),
        vip_codes={
            c.code: VipCodeUsage(max_uses=c.max_uses, uses_left=c.uses_left)
            for c in model.vip_codes
        },
        vip_users={u.user_name for u in model.vip_users},
        version=model.version or 0,
    )


def model_to_vip_code(model: VipCodeModel) -> VipCode:
    return VipCode(
        code=model.code,
        room_name=model.room_name,
        max_uses=model.max_uses,
        uses_left=model.uses_left,
        created_at=model.created_at,
    )


def summarize_vip_codes(vip_codes: Dict[str, VipCodeUsage]) -> List[VipCodeSummary]:
    """Display projection of a room's codes; ``used`` never goes negative."""
    return [
        VipCodeSummary(
            code=code,
            max_uses=usage.max_uses,
            uses_left=usage.uses_left,
            used=max(0, usage.max_uses - usage.uses_left),
        )
        for code, usage in vip_codes.items()
    ]
