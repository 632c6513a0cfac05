from .base import Base
from .room import RoomModel
from .vip_code import VipCodeModel
from .vip_user import VipUserModel

__all__ = ["Base", "RoomModel", "VipCodeModel", "VipUserModel"]
