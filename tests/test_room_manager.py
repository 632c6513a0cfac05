"""RoomManager: creation defaults, merge updates, deletion and host claims."""

import pytest

from core.exceptions import ErrorKind, InvalidArgumentError
from schemas.room import PaymentConfig, RelayConfig
from utils.room_manager import RoomManager, sanitize_payment_config, sanitize_relay_config


class TestCreateAndGet:
    def test_create_then_get_round_trips_with_defaults(self, room_manager):
        result = room_manager.create_room("alpha", owner_password="p1")

        assert result.ok
        room = room_manager.get_room("alpha")
        assert room == result.value
        assert room.room_name == "alpha"
        assert room.owner_password == "p1"
        assert room.privacy == "public"
        assert room.is_live is False
        assert room.vip_required is False
        assert room.viewers == 0
        assert room.title is None
        assert room.created_at
        assert room.payment == PaymentConfig()
        assert room.relay == RelayConfig()
        assert room.vip_codes == {}
        assert room.vip_users == set()

    def test_privacy_is_public_unless_explicitly_private(self, room_manager):
        room_manager.create_room("a", privacy="private")
        room_manager.create_room("b", privacy="PRIVATE")
        room_manager.create_room("c", privacy="secret")

        assert room_manager.get_room("a").privacy == "private"
        assert room_manager.get_room("b").privacy == "public"
        assert room_manager.get_room("c").privacy == "public"

    def test_room_without_password_is_unclaimed(self, room_manager):
        room = room_manager.create_room("alpha").unwrap()

        assert room.owner_password is None
        assert not room.is_claimed

    def test_duplicate_name_fails_and_keeps_first_room(self, room_manager):
        first = room_manager.create_room("alpha", "p1", "private").unwrap()

        second = room_manager.create_room("alpha", "p2", "public")

        assert not second.ok
        assert second.kind == ErrorKind.ALREADY_EXISTS
        assert room_manager.get_room("alpha") == first

    def test_empty_name_is_invalid(self, room_manager):
        for name in ("", "   ", None):
            result = room_manager.create_room(name)
            assert result.kind == ErrorKind.INVALID_ARGUMENT

    def test_names_are_trimmed_and_capped(self, room_manager):
        long_name = "x" * 80
        room_manager.create_room("  alpha  ")
        room_manager.create_room(long_name)

        assert room_manager.get_room("alpha").room_name == "alpha"
        assert room_manager.get_room(long_name).room_name == "x" * 50

    def test_get_missing_room_returns_none(self, room_manager):
        assert room_manager.get_room("nope") is None
        assert room_manager.get_room("") is None


class TestUpdate:
    def _configured_room(self, room_manager):
        room_manager.create_room("alpha", "p1")

        def configure(room):
            room.title = "Night stream"
            room.payment = PaymentConfig(enabled=True, label="Tip jar", url="https://pay.example/a")
            room.relay = RelayConfig(
                enabled=True,
                host="turn.example",
                port=3478,
                tls_port=5349,
                username="relay-user",
                password="relay-pass",
            )

        return room_manager.update_room("alpha", configure).unwrap()

    def test_toggling_live_leaves_config_identical(self, room_manager):
        before = self._configured_room(room_manager)

        def go_live(room):
            room.is_live = True

        after = room_manager.update_room("alpha", go_live).unwrap()

        assert after.is_live is True
        assert after.payment == before.payment
        assert after.relay == before.relay
        assert after.title == before.title
        assert after.owner_password == before.owner_password
        assert after.created_at == before.created_at

    def test_none_fields_keep_stored_values(self, room_manager):
        before = self._configured_room(room_manager)

        def blank(room):
            room.title = None
            room.relay.port = None
            room.owner_password = None

        after = room_manager.update_room("alpha", blank).unwrap()

        assert after.title == "Night stream"
        assert after.relay.port == before.relay.port
        assert after.owner_password == "p1"

    def test_none_privacy_keeps_private_room_private(self, room_manager):
        room_manager.create_room("alpha", "p1", "private")

        def go_live(room):
            room.privacy = None
            room.is_live = True

        after = room_manager.update_room("alpha", go_live).unwrap()

        assert after.privacy == "private"
        assert after.is_live is True
        assert room_manager.list_public_live() == []

    def test_missing_sub_configs_keep_stored_settings(self, room_manager):
        before = self._configured_room(room_manager)

        def drop(room):
            room.payment = None
            room.relay = None

        result = room_manager.update_room("alpha", drop)

        assert result.ok
        assert result.value.payment == before.payment
        assert result.value.relay == before.relay

    def test_mutation_returning_a_non_room_is_invalid(self, room_manager):
        room_manager.create_room("alpha")

        result = room_manager.update_room("alpha", lambda room: {"is_live": True})

        assert result.kind == ErrorKind.INVALID_ARGUMENT
        assert room_manager.get_room("alpha").is_live is False

    def test_disabling_relay_clears_its_settings(self, room_manager):
        self._configured_room(room_manager)

        def disable(room):
            room.relay.enabled = False

        after = room_manager.update_room("alpha", disable).unwrap()

        assert after.relay == RelayConfig()

    def test_title_is_trimmed_and_capped(self, room_manager):
        room_manager.create_room("alpha")

        def retitle(room):
            room.title = "  " + "t" * 150

        assert room_manager.update_room("alpha", retitle).unwrap().title == "t" * 100

    def test_mutation_may_return_a_new_record(self, room_manager):
        room_manager.create_room("alpha")

        result = room_manager.update_room(
            "alpha", lambda room: room.model_copy(update={"viewers": 12})
        )

        assert result.value.viewers == 12

    def test_update_normalizes_fields(self, room_manager):
        room_manager.create_room("alpha")

        def messy(room):
            room.viewers = -4
            room.privacy = "hidden"
            room.payment.label = "  " + "l" * 100

        room = room_manager.update_room("alpha", messy).unwrap()

        assert room.viewers == 0
        assert room.privacy == "public"
        assert room.payment.label == "l" * 80

    def test_update_missing_room_is_not_found(self, room_manager):
        result = room_manager.update_room("ghost", lambda room: None)

        assert result.kind == ErrorKind.NOT_FOUND

    def test_room_name_cannot_change(self, room_manager):
        room_manager.create_room("alpha")

        def rename(room):
            room.room_name = "beta"

        result = room_manager.update_room("alpha", rename)

        assert result.kind == ErrorKind.INVALID_ARGUMENT
        assert room_manager.get_room("beta") is None

    def test_each_update_bumps_version(self, room_manager):
        created = room_manager.create_room("alpha").unwrap()

        updated = room_manager.update_room("alpha", lambda room: None).unwrap()

        assert updated.version == created.version + 1

    def test_concurrent_write_is_merged_not_lost(self, store, room_manager):
        room_manager.create_room("alpha", "p1")
        seen_versions = []

        def go_live(room):
            seen_versions.append(room.version)
            if len(seen_versions) == 1:
                # Another writer sneaks in between our read and our write
                with store.session() as other:
                    def retitle(r):
                        r.title = "from other writer"

                    RoomManager(other).update_room("alpha", retitle).unwrap()
            room.is_live = True

        room = room_manager.update_room("alpha", go_live).unwrap()

        assert seen_versions == [0, 1]
        assert room.is_live is True
        assert room.title == "from other writer"
        assert room.version == 2

    def test_conflict_reported_when_retries_run_out(self, store, db):
        manager = RoomManager(db, max_update_retries=0)
        manager.create_room("alpha")

        def always_race(room):
            with store.session() as other:
                def bump(r):
                    r.viewers = (r.viewers or 0) + 1

                RoomManager(other).update_room("alpha", bump).unwrap()
            room.is_live = True

        result = manager.update_room("alpha", always_race)

        assert result.kind == ErrorKind.CONSTRAINT_VIOLATION
        assert manager.get_room("alpha").is_live is False


class TestDelete:
    def test_delete_removes_room(self, room_manager):
        room_manager.create_room("alpha")

        assert room_manager.delete_room("alpha").ok
        assert room_manager.get_room("alpha") is None

    def test_delete_missing_room_is_not_found(self, room_manager):
        assert room_manager.delete_room("ghost").kind == ErrorKind.NOT_FOUND


class TestPublicLive:
    def test_only_public_and_live_rooms_are_listed(self, room_manager):
        room_manager.create_room("public-live")
        room_manager.create_room("public-idle")
        room_manager.create_room("private-live", privacy="private")

        def go_live(room):
            room.is_live = True
            room.viewers = 3

        room_manager.update_room("public-live", go_live)
        room_manager.update_room("private-live", go_live)

        rows = room_manager.list_public_live()

        assert rows == [
            {"room_name": "public-live", "viewers": 3, "title": None, "is_live": True}
        ]


class TestClaim:
    def test_claim_creates_missing_room(self, room_manager):
        room = room_manager.claim_room("alpha", "p1", "private").unwrap()

        assert room.owner_password == "p1"
        assert room.privacy == "private"

    def test_claim_takes_over_unclaimed_room(self, room_manager):
        room_manager.create_room("alpha")

        room = room_manager.claim_room("alpha", "p1", "private").unwrap()

        assert room.owner_password == "p1"
        assert room.privacy == "private"

    def test_claim_with_matching_password_succeeds(self, room_manager):
        room_manager.claim_room("alpha", "p1")

        assert room_manager.claim_room("alpha", "p1").ok

    def test_claim_with_wrong_password_reports_existing_room(self, room_manager):
        room_manager.claim_room("alpha", "p1")

        result = room_manager.claim_room("alpha", "p2")

        assert result.kind == ErrorKind.ALREADY_EXISTS
        assert result.detail == "Room already exists."
        assert room_manager.get_room("alpha").owner_password == "p1"

    def test_claim_requires_name_and_password(self, room_manager):
        assert room_manager.claim_room("alpha", "").kind == ErrorKind.INVALID_ARGUMENT
        assert room_manager.claim_room("", "p1").kind == ErrorKind.INVALID_ARGUMENT

    def test_authenticate_host(self, room_manager):
        room_manager.create_room("claimed", "p1")
        room_manager.create_room("open")

        assert room_manager.authenticate_host("claimed", "p1")
        assert not room_manager.authenticate_host("claimed", "p2")
        assert not room_manager.authenticate_host("claimed", None)
        assert not room_manager.authenticate_host("open", "")
        assert not room_manager.authenticate_host("ghost", "p1")


class TestSanitizeSettings:
    def test_enabled_payment_needs_label_and_http_url(self):
        with pytest.raises(InvalidArgumentError):
            sanitize_payment_config(PaymentConfig(enabled=True, label="", url="https://pay.example"))
        with pytest.raises(InvalidArgumentError):
            sanitize_payment_config(
                PaymentConfig(enabled=True, label="Tip", url="javascript:alert(1)")
            )

    def test_payment_fields_are_trimmed_and_capped(self):
        payment = sanitize_payment_config(
            PaymentConfig(enabled=True, label=" Tip ", url=" https://pay.example/" + "u" * 600)
        )

        assert payment.label == "Tip"
        assert len(payment.url) == 500
        assert payment.url.startswith("https://pay.example/")

    def test_disabled_payment_is_not_validated(self):
        payment = sanitize_payment_config(PaymentConfig(enabled=False, url="ftp://x"))

        assert payment == PaymentConfig(enabled=False, label="", url="ftp://x")

    def test_enabled_relay_needs_host_port_and_credentials(self):
        with pytest.raises(InvalidArgumentError):
            sanitize_relay_config(RelayConfig(enabled=True))
        with pytest.raises(InvalidArgumentError):
            sanitize_relay_config(
                RelayConfig(enabled=True, host="turn.example", port=3478, username="u")
            )

    def test_disabled_relay_is_emptied(self):
        relay = sanitize_relay_config(
            RelayConfig(enabled=False, host="turn.example", port=3478, password="secret")
        )

        assert relay == RelayConfig()

    def test_valid_relay_is_trimmed(self):
        relay = sanitize_relay_config(
            RelayConfig(enabled=True, host=" turn.example ", port=3478, username=" u ", password=" p ")
        )

        assert relay == RelayConfig(
            enabled=True, host="turn.example", port=3478, username="u", password="p"
        )
