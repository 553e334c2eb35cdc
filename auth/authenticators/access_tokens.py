"""Bearer access-token authenticator.

Tokens are high-entropy random strings shown to the user once at issue
time; only their SHA-256 is stored. Expired and revoked tokens fail
with their own reasons, distinct from "not found".
"""

import secrets
from datetime import timedelta
from typing import Iterable
from uuid import UUID, uuid4

from auth.authenticators.base import Authenticator, sha256_hex
from auth.exceptions import (
    AccountDisabledError,
    InvalidCredentialsError,
    TokenExpiredError,
    TokenRevokedError,
)
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.stores import AccessTokenStore, UserStore
from auth.types import AccessToken, AuthResult, Credentials, FailureReason, User
from utils.request_context import get_request_context
from utils.timezone import is_past, now_utc


class AccessTokensAuthenticator(Authenticator):
    """Authenticates a request by bearer token, with per-token scopes."""

    TOKEN_FIELD = "token"
    STATE_TOKEN = "access_token"
    STATE_USER = "access_token_user"

    def __init__(
        self,
        users: UserStore,
        tokens: AccessTokenStore,
        security_logger: SecurityLogger,
    ):
        super().__init__(security_logger)
        self._users = users
        self._tokens = tokens

    @staticmethod
    def bearer_token() -> str | None:
        """Token from the current request's Authorization header."""
        header = get_request_context().header("Authorization")
        if not header:
            return None
        scheme, _, value = header.strip().partition(" ")
        if scheme.lower() != "bearer" or not value.strip():
            return None
        return value.strip()

    def attempt(self, credentials: Credentials) -> AuthResult:
        """
        Authenticate with credentials["token"], falling back to the
        Authorization header. Updates the token's last-used timestamp.

        Presenting no token at all fails without a security event.
        """
        raw = credentials.get(self.TOKEN_FIELD) or self.bearer_token()
        if not raw:
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)

        try:
            user, token = self._verify(raw)
        except InvalidCredentialsError:
            return self._reject(FailureReason.INVALID_CREDENTIALS)
        except TokenExpiredError:
            return self._reject(FailureReason.TOKEN_EXPIRED)
        except TokenRevokedError:
            return self._reject(FailureReason.TOKEN_REVOKED)
        except AccountDisabledError:
            return self._reject(FailureReason.ACCOUNT_DISABLED)

        now = now_utc()
        self._tokens.touch_access_token(token.id, now)

        state = get_request_context().state
        state[self.STATE_TOKEN] = token.model_copy(update={"last_used_at": now})
        state[self.STATE_USER] = user
        return AuthResult.succeeded(user)

    def _reject(self, reason: FailureReason) -> AuthResult:
        self._log(SecurityEvent.ACCESS_TOKEN_REJECTED, details={"reason": reason.value})
        return AuthResult.failed(reason)

    def _verify(self, raw: str | None) -> tuple[User, AccessToken]:
        if not raw:
            raise InvalidCredentialsError("No access token presented")

        token = self._tokens.find_access_token(sha256_hex(raw))
        if token is None:
            raise InvalidCredentialsError("Unknown access token")
        if token.revoked_at is not None:
            raise TokenRevokedError("Access token revoked")
        if is_past(token.expires_at):
            raise TokenExpiredError("Access token expired")

        user = self._users.find_by_id(token.user_id)
        if user is None:
            raise InvalidCredentialsError("Access token owner not found")
        if not user.is_active:
            raise AccountDisabledError("User account is deactivated")

        return user, token

    def logged_in(self) -> User | None:
        state = get_request_context().state
        if self.STATE_USER in state:
            return state[self.STATE_USER]
        if self.bearer_token() is None:
            return None
        return self.attempt({}).user

    def logout(self) -> None:
        """Forget the token for this request. The token itself stays valid."""
        state = get_request_context().state
        state.pop(self.STATE_TOKEN, None)
        state.pop(self.STATE_USER, None)

    def current_token(self) -> AccessToken | None:
        """The token that authenticated the current request, if any."""
        return get_request_context().state.get(self.STATE_TOKEN)

    # Token management

    def issue_token(
        self,
        user: User,
        name: str,
        scopes: Iterable[str] = ("*",),
        expires_in: timedelta | None = None,
    ) -> tuple[AccessToken, str]:
        """
        Create a token for a user.

        Returns:
            Tuple of (stored token, raw token). The raw value is not
            recoverable later.
        """
        raw = secrets.token_urlsafe(32)
        now = now_utc()
        token = AccessToken(
            id=uuid4(),
            user_id=user.id,
            name=name,
            token_hash=sha256_hex(raw),
            scopes=list(scopes),
            created_at=now,
            expires_at=now + expires_in if expires_in is not None else None,
        )
        self._tokens.insert_access_token(token)
        self._security_logger.log(
            SecurityEvent.ACCESS_TOKEN_ISSUED,
            user_id=user.id,
            details={"name": name, "scopes": token.scopes},
        )
        return token, raw

    def revoke_token(self, token_id: UUID) -> bool:
        revoked = self._tokens.revoke_access_token(token_id, now_utc())
        if revoked:
            self._security_logger.log(
                SecurityEvent.ACCESS_TOKEN_REVOKED,
                details={"token_id": str(token_id)},
            )
        return revoked

    def tokens_for(self, user: User) -> list[AccessToken]:
        return self._tokens.list_access_tokens(user.id)
