"""Database operations for authentication.

Tables: users, auth_remember_tokens, auth_access_tokens.
Implements the UserStore, RememberTokenStore and AccessTokenStore
contracts from auth.stores.
"""

from datetime import datetime
from uuid import UUID

from psycopg2.extras import Json

from auth.types import AccessToken, RememberToken, User
from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

_USER_COLUMNS = (
    "id, email, username, password_hash, personal_fields, is_active, created_at, last_login_at"
)
_ACCESS_TOKEN_COLUMNS = (
    "id, user_id, name, token_hash, scopes, created_at, last_used_at, expires_at, revoked_at"
)


def _uuid(value) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def _user_from_row(row: dict) -> User:
    return User(
        id=_uuid(row["id"]),
        email=row["email"],
        username=row["username"],
        password_hash=row["password_hash"],
        personal_fields=row["personal_fields"] or {},
        is_active=row["is_active"],
        created_at=row["created_at"],
        last_login_at=row["last_login_at"],
    )


def _access_token_from_row(row: dict) -> AccessToken:
    return AccessToken(
        id=_uuid(row["id"]),
        user_id=_uuid(row["user_id"]),
        name=row["name"],
        token_hash=row["token_hash"],
        scopes=list(row["scopes"] or []),
        created_at=row["created_at"],
        last_used_at=row["last_used_at"],
        expires_at=row["expires_at"],
        revoked_at=row["revoked_at"],
    )


class AuthDatabase:
    """Database operations for authentication."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    # Users

    def find_by_login_field(self, field: str, value: str) -> User | None:
        """Find user by a login field. Email compares case-insensitively."""
        if field == "email":
            query = f"SELECT {_USER_COLUMNS} FROM users WHERE email = lower(%s)"
            params = (value,)
        elif field == "username":
            query = f"SELECT {_USER_COLUMNS} FROM users WHERE username = %s"
            params = (value,)
        else:
            # Custom login fields live in personal_fields; the key is a parameter
            query = f"SELECT {_USER_COLUMNS} FROM users WHERE personal_fields ->> %s = %s"
            params = (field, value)

        row = self._db.execute_single(query, params)
        if row is None:
            return None
        return _user_from_row(row)

    def find_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            (str(user_id),),
        )
        if row is None:
            return None
        return _user_from_row(row)

    def save(self, user: User) -> None:
        """Insert or update a user (email lowercased)."""
        self._db.execute_returning(
            """INSERT INTO users
                   (id, email, username, password_hash, personal_fields,
                    is_active, created_at, last_login_at)
               VALUES (%s, lower(%s), %s, %s, %s, %s, %s, %s)
               ON CONFLICT (id) DO UPDATE SET
                   email = EXCLUDED.email,
                   username = EXCLUDED.username,
                   password_hash = EXCLUDED.password_hash,
                   personal_fields = EXCLUDED.personal_fields,
                   is_active = EXCLUDED.is_active,
                   last_login_at = EXCLUDED.last_login_at
               RETURNING id""",
            (
                str(user.id),
                user.email,
                user.username,
                user.password_hash,
                Json(user.personal_fields),
                user.is_active,
                user.created_at,
                user.last_login_at,
            ),
        )

    # Remember-me tokens

    def find_remember_token(self, selector: str) -> RememberToken | None:
        row = self._db.execute_single(
            """SELECT selector, user_id, hashed_validator, expires_at
               FROM auth_remember_tokens WHERE selector = %s""",
            (selector,),
        )
        if row is None:
            return None
        return RememberToken(
            selector=row["selector"],
            user_id=_uuid(row["user_id"]),
            hashed_validator=row["hashed_validator"],
            expires_at=row["expires_at"],
        )

    def insert_remember_token(self, token: RememberToken) -> None:
        self._db.execute_returning(
            """INSERT INTO auth_remember_tokens (selector, user_id, hashed_validator, expires_at)
               VALUES (%s, %s, %s, %s)
               RETURNING selector""",
            (token.selector, str(token.user_id), token.hashed_validator, token.expires_at),
        )

    def rotate_remember_token(
        self,
        selector: str,
        expected_hash: str,
        new_hash: str,
        new_expires_at: datetime,
    ) -> bool:
        """
        Compare-and-swap the validator hash.

        The WHERE clause on the current hash makes this a single atomic
        conditional write: of two concurrent rotations of the same token,
        exactly one matches a row.

        Returns:
            True if this call rotated the token, False if it lost.
        """
        rows = self._db.execute_returning(
            """UPDATE auth_remember_tokens
               SET hashed_validator = %s, expires_at = %s
               WHERE selector = %s AND hashed_validator = %s
               RETURNING selector""",
            (new_hash, new_expires_at, selector, expected_hash),
        )
        return len(rows) > 0

    def delete_remember_token(self, selector: str) -> None:
        self._db.execute_returning(
            "DELETE FROM auth_remember_tokens WHERE selector = %s RETURNING selector",
            (selector,),
        )

    def revoke_remember_tokens(self, user_id: UUID) -> int:
        """Delete every remember token of a user. Returns count deleted."""
        rows = self._db.execute_returning(
            "DELETE FROM auth_remember_tokens WHERE user_id = %s RETURNING selector",
            (str(user_id),),
        )
        return len(rows)

    def cleanup_expired_remember_tokens(self) -> int:
        """Delete expired remember tokens. Returns count deleted."""
        rows = self._db.execute_returning(
            "DELETE FROM auth_remember_tokens WHERE expires_at < %s RETURNING selector",
            (now_utc(),),
        )
        return len(rows)

    # Access tokens

    def find_access_token(self, token_hash: str) -> AccessToken | None:
        row = self._db.execute_single(
            f"SELECT {_ACCESS_TOKEN_COLUMNS} FROM auth_access_tokens WHERE token_hash = %s",
            (token_hash,),
        )
        if row is None:
            return None
        return _access_token_from_row(row)

    def insert_access_token(self, token: AccessToken) -> None:
        self._db.execute_returning(
            """INSERT INTO auth_access_tokens
                   (id, user_id, name, token_hash, scopes, created_at, expires_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                str(token.id),
                str(token.user_id),
                token.name,
                token.token_hash,
                Json(token.scopes),
                token.created_at,
                token.expires_at,
            ),
        )

    def touch_access_token(self, token_id: UUID, used_at: datetime) -> None:
        """Record last use."""
        self._db.execute_returning(
            "UPDATE auth_access_tokens SET last_used_at = %s WHERE id = %s RETURNING id",
            (used_at, str(token_id)),
        )

    def revoke_access_token(self, token_id: UUID, revoked_at: datetime) -> bool:
        """
        Returns:
            True if an unrevoked token was found and revoked.
        """
        rows = self._db.execute_returning(
            """UPDATE auth_access_tokens SET revoked_at = %s
               WHERE id = %s AND revoked_at IS NULL
               RETURNING id""",
            (revoked_at, str(token_id)),
        )
        return len(rows) > 0

    def list_access_tokens(self, user_id: UUID) -> list[AccessToken]:
        rows = self._db.execute(
            f"""SELECT {_ACCESS_TOKEN_COLUMNS} FROM auth_access_tokens
                WHERE user_id = %s ORDER BY created_at DESC""",
            (str(user_id),),
        )
        return [_access_token_from_row(row) for row in rows]
