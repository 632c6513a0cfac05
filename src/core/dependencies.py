"""Dependency injection module for FastAPI.

The application holds one opened ``Store`` on ``app.state``; each request
gets its own session from it, and managers are built around that session.
"""

from typing import Annotated, Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.database import Store
from utils.public_directory import PublicRoomDirectory
from utils.room_manager import RoomManager
from utils.vip_code_manager import VipCodeManager
from utils.vip_user_manager import VipUserManager


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(store: Store = Depends(get_store)) -> Iterator[Session]:
    """Dependency for getting a database session."""
    db = store.new_session()
    try:
        yield db
    finally:
        db.close()


def get_room_manager(db: Session = Depends(get_db)) -> RoomManager:
    """Get RoomManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        RoomManager instance.
    """
    return RoomManager(db)


def get_vip_code_manager(db: Session = Depends(get_db)) -> VipCodeManager:
    """Get VipCodeManager instance with request-scoped DB session."""
    return VipCodeManager(db)


def get_vip_user_manager(db: Session = Depends(get_db)) -> VipUserManager:
    """Get VipUserManager instance with request-scoped DB session."""
    return VipUserManager(db)


def get_public_directory(
    room_manager: RoomManager = Depends(get_room_manager),
) -> PublicRoomDirectory:
    return PublicRoomDirectory(room_manager)


# Type aliases for dependency injection
RoomManagerDep = Annotated[RoomManager, Depends(get_room_manager)]
VipCodeManagerDep = Annotated[VipCodeManager, Depends(get_vip_code_manager)]
VipUserManagerDep = Annotated[VipUserManager, Depends(get_vip_user_manager)]
PublicRoomDirectoryDep = Annotated[PublicRoomDirectory, Depends(get_public_directory)]
