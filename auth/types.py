"""Pydantic models for the auth domain."""

from datetime import datetime
from enum import Enum
from typing import Mapping
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

# Caller-supplied login data: one login field plus a secret or a token.
Credentials = Mapping[str, str]


class User(BaseModel):
    """A registered user of the system."""

    id: UUID
    email: EmailStr | None = None
    username: str | None = None
    password_hash: str = Field(..., repr=False)
    personal_fields: dict[str, str] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}

    def login_value(self, field: str) -> str | None:
        """Value of a login field, falling back to personal fields for custom ones."""
        if field in ("email", "username"):
            return getattr(self, field)
        return self.personal_fields.get(field)


class FailureReason(str, Enum):
    """Why an attempt failed. Deliberately coarse for credential errors."""

    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DISABLED = "account_disabled"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_REVOKED = "token_revoked"


class AuthResult(BaseModel):
    """Outcome of Authenticator.attempt(). Immutable once produced."""

    success: bool
    user: User | None = None
    reason: FailureReason | None = None
    reasons: tuple[FailureReason, ...] = ()

    model_config = {"frozen": True}

    @classmethod
    def succeeded(cls, user: User) -> "AuthResult":
        return cls(success=True, user=user)

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        reasons: tuple[FailureReason, ...] | None = None,
    ) -> "AuthResult":
        return cls(success=False, reason=reason, reasons=reasons if reasons is not None else (reason,))


class RememberToken(BaseModel):
    """
    A remember-me token row.

    The cookie carries "<selector>:<validator>"; only the SHA-256 of the
    validator is stored.
    """

    selector: str
    user_id: UUID
    hashed_validator: str = Field(..., repr=False)
    expires_at: datetime


class AccessToken(BaseModel):
    """A bearer token row. The raw token is only ever shown once, at issue time."""

    id: UUID
    user_id: UUID
    name: str
    token_hash: str = Field(..., repr=False)
    scopes: list[str] = Field(default_factory=lambda: ["*"])
    created_at: datetime
    last_used_at: datetime | None = None
    expires_at: datetime | None = None
    revoked_at: datetime | None = None

    def can(self, scope: str) -> bool:
        """True if the token carries the scope, or the '*' wildcard."""
        return "*" in self.scopes or scope in self.scopes

    def cant(self, scope: str) -> bool:
        return not self.can(scope)


class SessionRecord(BaseModel):
    """A server-side session held in Valkey."""

    session_id: str
    data: dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime
