"""Collaborator contracts consumed by the authenticators.

Anything implementing these methods can back the core. AuthDatabase
(Postgres) and ValkeySessionStore are the bundled implementations.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from auth.types import AccessToken, RememberToken, User


class UserStore(Protocol):
    def find_by_login_field(self, field: str, value: str) -> User | None: ...

    def find_by_id(self, user_id: UUID) -> User | None: ...

    def save(self, user: User) -> None: ...


class RememberTokenStore(Protocol):
    def find_remember_token(self, selector: str) -> RememberToken | None: ...

    def insert_remember_token(self, token: RememberToken) -> None: ...

    def rotate_remember_token(
        self,
        selector: str,
        expected_hash: str,
        new_hash: str,
        new_expires_at: datetime,
    ) -> bool:
        """Replace the validator hash only if it still equals expected_hash."""
        ...

    def delete_remember_token(self, selector: str) -> None: ...

    def revoke_remember_tokens(self, user_id: UUID) -> int: ...


class AccessTokenStore(Protocol):
    def find_access_token(self, token_hash: str) -> AccessToken | None: ...

    def insert_access_token(self, token: AccessToken) -> None: ...

    def touch_access_token(self, token_id: UUID, used_at: datetime) -> None: ...

    def revoke_access_token(self, token_id: UUID, revoked_at: datetime) -> bool: ...

    def list_access_tokens(self, user_id: UUID) -> list[AccessToken]: ...


class SessionStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...
