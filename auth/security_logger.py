"""Security event logging for the authentication audit trail.

Append-only log to the security_events table. Includes log rotation to
archive old events to file.
"""

import json
import logging
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    """Auth security event types."""

    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    REMEMBER_TOKEN_ISSUED = "remember_token_issued"
    REMEMBER_TOKEN_ROTATED = "remember_token_rotated"
    REMEMBER_TOKEN_EXPIRED = "remember_token_expired"
    REMEMBER_TOKEN_REPLAY = "remember_token_replay"
    ACCESS_TOKEN_ISSUED = "access_token_issued"
    ACCESS_TOKEN_REJECTED = "access_token_rejected"
    ACCESS_TOKEN_REVOKED = "access_token_revoked"
    PASSWORD_REHASHED = "password_rehashed"
    PASSWORD_CHANGED = "password_changed"
    USER_REGISTERED = "user_registered"


# Also written to process logs, so they survive a failed DB write
_ALERT_EVENTS = {SecurityEvent.REMEMBER_TOKEN_REPLAY}


class SecurityLogger:
    """Append-only security event logger with rotation."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        login: str | None = None,
        user_id: UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log security event to database."""
        if event in _ALERT_EVENTS:
            logger.warning(
                f"Security alert {event.value}: user_id={user_id} ip={ip_address}"
            )

        self._db.execute_returning(
            """INSERT INTO security_events
               (event_type, login, user_id, ip_address, user_agent, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                login,
                str(user_id) if user_id else None,
                ip_address,
                user_agent,
                Json(details) if details else None,
                now_utc(),
            ),
        )

    def get_recent_events(
        self,
        login: str | None = None,
        user_id: UUID | None = None,
        event_type: SecurityEvent | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Query recent security events with optional filters."""
        conditions = []
        params = []

        if login:
            conditions.append("login = %s")
            params.append(login)

        if user_id:
            conditions.append("user_id = %s")
            params.append(str(user_id))

        if event_type:
            conditions.append("event_type = %s")
            params.append(event_type.value)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        params.append(limit)

        return self._db.execute(
            f"""SELECT id, event_type, login, user_id, ip_address, user_agent, details, created_at
                FROM security_events
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s""",
            tuple(params),
        )

    def rotate_logs(self, older_than_days: int, output_path: Path) -> int:
        """Archive old events to a JSON lines file and delete them from the database.

        Returns:
            Number of events archived and deleted
        """
        cutoff = now_utc() - timedelta(days=older_than_days)

        events = self._db.execute(
            """SELECT id, event_type, login, user_id, ip_address, user_agent, details, created_at
               FROM security_events
               WHERE created_at < %s
               ORDER BY created_at ASC""",
            (cutoff,),
        )

        if not events:
            return 0

        with open(output_path, "a") as f:
            for event in events:
                record = {
                    "id": str(event["id"]),
                    "event_type": event["event_type"],
                    "login": event["login"],
                    "user_id": str(event["user_id"]) if event["user_id"] else None,
                    "ip_address": str(event["ip_address"]) if event["ip_address"] else None,
                    "user_agent": event["user_agent"],
                    "details": event["details"],
                    "created_at": event["created_at"].isoformat(),
                }
                f.write(json.dumps(record) + "\n")

        self._db.execute_returning(
            "DELETE FROM security_events WHERE created_at < %s RETURNING id",
            (cutoff,),
        )

        return len(events)
