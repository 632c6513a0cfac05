"""Public room directory shown on the landing page."""

from typing import List

from schemas.room import PublicRoomEntry
from utils.room_manager import RoomManager


class PublicRoomDirectory:
    """Read-only listing of rooms that are public and live right now.

    Entries carry only name, viewer count, title and live flag; passwords,
    relay credentials and payment settings never leave the room store.
    """

    def __init__(self, room_manager: RoomManager):
        self.room_manager = room_manager

    def list_public(self) -> List[PublicRoomEntry]:
        return [
            PublicRoomEntry(
                name=row["room_name"],
                viewers=row["viewers"] or 0,
                title=row["title"] or None,
                live=bool(row["is_live"]),
            )
            for row in self.room_manager.list_public_live()
        ]
