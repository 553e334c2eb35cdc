"""Tests for SessionManager and ValkeySessionStore."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from auth.config import SessionConfig
from auth.session import SessionManager, ValkeySessionStore
from utils.timezone import now_utc


class FakeValkey:
    """Just enough of ValkeyClient for session storage."""

    def __init__(self):
        self.docs: dict[str, dict] = {}
        self.ttls: dict[str, int] = {}

    def get_json(self, key):
        return self.docs.get(key)

    def set_json(self, key, value, expire_seconds):
        self.docs[key] = value
        self.ttls[key] = expire_seconds

    def delete(self, key):
        self.ttls.pop(key, None)
        return self.docs.pop(key, None) is not None


@pytest.fixture
def valkey():
    return FakeValkey()


@pytest.fixture
def manager(valkey):
    return SessionManager(valkey, SessionConfig(session_expiry_hours=2))


class TestCreate:
    def test_new_session_is_persisted_with_ttl(self, manager, valkey):
        store = manager.create()

        key = f"session:{store.session_id}"
        assert key in valkey.docs
        assert valkey.ttls[key] == 2 * 3600
        assert valkey.docs[key]["data"] == {}

    def test_ids_are_unique(self, manager):
        assert manager.create().session_id != manager.create().session_id

    def test_returns_store(self, manager):
        assert isinstance(manager.create(), ValkeySessionStore)


class TestOpen:
    def test_round_trips_data(self, manager):
        store = manager.create()
        store.set("logged_in", "abc")

        reopened = manager.open(store.session_id)

        assert reopened.session_id == store.session_id
        assert reopened.get("logged_in") == "abc"

    @pytest.mark.parametrize("session_id", [None, "", "no-such-session"])
    def test_missing_starts_new(self, manager, session_id):
        store = manager.open(session_id)
        assert store.session_id != session_id
        assert store.get("logged_in") is None

    def test_expired_record_replaced(self, manager, valkey):
        store = manager.create()
        key = f"session:{store.session_id}"
        valkey.docs[key]["expires_at"] = (now_utc() - timedelta(minutes=1)).isoformat()

        reopened = manager.open(store.session_id)

        assert reopened.session_id != store.session_id
        assert key not in valkey.docs

    def test_open_slides_expiry(self, manager, valkey):
        store = manager.create()
        key = f"session:{store.session_id}"
        soon = now_utc() + timedelta(minutes=1)
        valkey.docs[key]["expires_at"] = soon.isoformat()

        reopened = manager.open(store.session_id)

        assert reopened.record.expires_at > soon + timedelta(minutes=30)


class TestStore:
    def test_set_persists_immediately(self, manager, valkey):
        store = manager.create()
        store.set("logged_in", "u1")
        assert valkey.docs[f"session:{store.session_id}"]["data"] == {"logged_in": "u1"}

    def test_clear(self, manager, valkey):
        store = manager.create()
        store.set("logged_in", "u1")
        store.clear("logged_in")

        assert store.get("logged_in") is None
        assert valkey.docs[f"session:{store.session_id}"]["data"] == {}

    def test_clear_missing_key_is_noop(self, manager):
        manager.create().clear("nothing")


class TestDestroy:
    def test_destroy(self, manager, valkey):
        store = manager.create()
        manager.destroy(store.session_id)
        assert valkey.docs == {}

    def test_destroy_unknown(self, manager):
        manager.destroy("never-existed")


class TestFromVault:
    def test_connects_to_vault_valkey_url(self):
        valkey = FakeValkey()
        with patch("auth.session.get_valkey_url", return_value="redis://vault-valkey") as url, \
                patch("auth.session.ValkeyClient", return_value=valkey) as client_cls:
            manager = SessionManager.from_vault(SessionConfig())

        url.assert_called_once_with()
        client_cls.assert_called_once_with("redis://vault-valkey")
        manager.create()
        assert len(valkey.docs) == 1
