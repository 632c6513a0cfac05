"""PublicRoomDirectory: what anonymous visitors can discover."""

from schemas.room import PaymentConfig, RelayConfig


def _go_live(room):
    room.is_live = True


def test_lists_only_public_live_rooms(room_manager, directory):
    room_manager.create_room("show", "p1")
    room_manager.create_room("hidden", "p2", "private")
    room_manager.create_room("idle", "p3")
    room_manager.update_room("show", _go_live)
    room_manager.update_room("hidden", _go_live)

    entries = directory.list_public()

    assert [e.name for e in entries] == ["show"]
    assert entries[0].live is True
    assert entries[0].viewers == 0
    assert entries[0].title is None


def test_entries_never_carry_secrets(room_manager, directory):
    room_manager.create_room("show", "secret-pass")

    def configure(room):
        room.is_live = True
        room.title = "Hello"
        room.payment = PaymentConfig(enabled=True, label="tip", url="https://pay.example")
        room.relay = RelayConfig(enabled=True, host="turn", username="u", password="relay-secret")

    room_manager.update_room("show", configure)

    (entry,) = directory.list_public()
    dumped = entry.model_dump()

    assert set(dumped) == {"name", "viewers", "title", "live"}
    assert dumped["title"] == "Hello"
    assert "secret" not in repr(dumped)


def test_empty_title_defaults_to_none(room_manager, directory):
    room_manager.create_room("show")

    def configure(room):
        room.is_live = True
        room.title = ""

    room_manager.update_room("show", configure)

    assert directory.list_public()[0].title is None
