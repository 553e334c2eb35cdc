"""Server-side session storage in Valkey.

Each session is one JSON blob under "session:<id>" with a TTL matching
session expiry. The TTL slides forward on every write and on open().
Session ids are cryptographically random (secrets.token_urlsafe).
"""

import logging
import secrets
from datetime import timedelta

from auth.config import SessionConfig
from auth.types import SessionRecord
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_valkey_url
from utils.timezone import is_past, now_utc, parse_iso

logger = logging.getLogger(__name__)


class ValkeySessionStore:
    """
    get/set/clear over a single session's data.

    Referenced (not owned) by the authenticators through the request
    context.
    """

    def __init__(self, manager: "SessionManager", record: SessionRecord):
        self._manager = manager
        self._record = record

    @property
    def session_id(self) -> str:
        return self._record.session_id

    @property
    def record(self) -> SessionRecord:
        return self._record

    def get(self, key: str) -> str | None:
        return self._record.data.get(key)

    def set(self, key: str, value: str) -> None:
        self._record.data[key] = value
        self._record = self._manager.save(self._record)

    def clear(self, key: str) -> None:
        if key in self._record.data:
            del self._record.data[key]
            self._record = self._manager.save(self._record)


class SessionManager:
    """Session lifecycle management.

    Sessions are stored in Valkey with TTL matching session expiry.
    """

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: SessionConfig):
        self._valkey = valkey
        self._config = config

    @classmethod
    def from_vault(cls, config: SessionConfig) -> "SessionManager":
        """Connect to the Valkey URL held in Vault."""
        return cls(ValkeyClient(get_valkey_url()), config)

    @property
    def _ttl_seconds(self) -> int:
        return self._config.session_expiry_hours * 3600

    def _key(self, session_id: str) -> str:
        """Generate Valkey key for session id."""
        return f"{self.KEY_PREFIX}{session_id}"

    def create(self) -> ValkeySessionStore:
        """Start a new, empty session."""
        now = now_utc()
        record = SessionRecord(
            session_id=secrets.token_urlsafe(32),
            created_at=now,
            expires_at=now + timedelta(seconds=self._ttl_seconds),
            last_activity_at=now,
        )
        return ValkeySessionStore(self, self.save(record))

    def open(self, session_id: str | None) -> ValkeySessionStore:
        """
        Open an existing session, or start a new one if the id is
        missing, unknown or expired. Extends expiry (sliding window).
        """
        if not session_id:
            return self.create()

        data = self._valkey.get_json(self._key(session_id))
        if data is None:
            return self.create()

        record = SessionRecord(
            session_id=session_id,
            data=data["data"],
            created_at=parse_iso(data["created_at"]),
            expires_at=parse_iso(data["expires_at"]),
            last_activity_at=parse_iso(data["last_activity_at"]),
        )

        # Belt and suspenders - Valkey TTL should handle this
        if is_past(record.expires_at):
            self._valkey.delete(self._key(session_id))
            return self.create()

        return ValkeySessionStore(self, self.save(record))

    def save(self, record: SessionRecord) -> SessionRecord:
        """Persist the record and push expiry forward."""
        now = now_utc()
        updated = record.model_copy(update={
            "expires_at": now + timedelta(seconds=self._ttl_seconds),
            "last_activity_at": now,
        })
        self._valkey.set_json(
            self._key(updated.session_id),
            {
                "data": updated.data,
                "created_at": updated.created_at.isoformat(),
                "expires_at": updated.expires_at.isoformat(),
                "last_activity_at": updated.last_activity_at.isoformat(),
            },
            expire_seconds=self._ttl_seconds,
        )
        return updated

    def destroy(self, session_id: str) -> None:
        """Delete a session. Safe to call with a nonexistent id."""
        self._valkey.delete(self._key(session_id))
