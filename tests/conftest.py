"""Shared pytest fixtures: a fresh store on disk per test and its managers."""

import pytest

from core.database import Store
from utils.public_directory import PublicRoomDirectory
from utils.room_manager import RoomManager
from utils.vip_code_manager import VipCodeManager
from utils.vip_user_manager import VipUserManager


@pytest.fixture()
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'rooms.db'}"


@pytest.fixture()
def store(db_url):
    with Store(db_url) as opened:
        yield opened


@pytest.fixture()
def db(store):
    with store.session() as session:
        yield session


@pytest.fixture()
def room_manager(db) -> RoomManager:
    return RoomManager(db)


@pytest.fixture()
def vip_code_manager(db) -> VipCodeManager:
    return VipCodeManager(db)


@pytest.fixture()
def vip_user_manager(db) -> VipUserManager:
    return VipUserManager(db)


@pytest.fixture()
def directory(room_manager) -> PublicRoomDirectory:
    return PublicRoomDirectory(room_manager)
