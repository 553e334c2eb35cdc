"""Session authenticator with remember-me.

Password login writes the user id into the session store under
config.session.field. With remember-me, a "<selector>:<validator>"
cookie is issued; the token row stores only sha256(validator).

Re-entry through a remember cookie verifies the validator and rotates
it with a conditional write keyed by the current hash. A validator that
no longer matches, or a lost rotation race, means the token was
already consumed: every remember token of that user is revoked.
"""

import hmac
import secrets
from datetime import timedelta
from uuid import UUID

from auth.authenticators.base import Authenticator, sha256_hex
from auth.config import AuthConfig
from auth.exceptions import (
    AccountDisabledError,
    InvalidCredentialsError,
    TokenExpiredError,
    TokenReplayDetectedError,
)
from auth.hasher import Hasher
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.stores import RememberTokenStore, UserStore
from auth.types import AuthResult, Credentials, FailureReason, RememberToken, User
from utils.request_context import get_request_context
from utils.timezone import is_past, now_utc


class SessionAuthenticator(Authenticator):
    """Password login into a server-side session, plus remember-me."""

    PASSWORD_FIELD = "password"
    REMEMBER_FIELD = "remember_token"
    REMEMBER_FLAG = "remember"
    _TRUTHY = frozenset({"1", "true", "on", "yes"})

    def __init__(
        self,
        config: AuthConfig,
        users: UserStore,
        remember_tokens: RememberTokenStore,
        hasher: Hasher,
        security_logger: SecurityLogger,
    ):
        super().__init__(security_logger)
        self._config = config
        self._session_config = config.session
        self._users = users
        self._remember_tokens = remember_tokens
        self._hasher = hasher
        # Unknown logins still pay for one verify
        self._dummy_hash = hasher.hash(secrets.token_urlsafe(16))

    # Password login

    def attempt(self, credentials: Credentials, remember: bool = False) -> AuthResult:
        """
        Log in with a login field + password, or with a remember artifact
        passed as credentials["remember_token"].

        Remember-me is requested with remember=True or with a truthy
        credentials["remember"] ("1", "true", "on", "yes"), which is how
        callers going through a pipeline ask for it.

        Credentials that carry no login field or no password are not a
        password attempt (a bearer request passing through a pipeline,
        say) and fail without a security event.

        All checks run before any write; the session is written last.
        """
        if credentials.get(self.REMEMBER_FIELD):
            return self._attempt_remembered(credentials[self.REMEMBER_FIELD])

        if not self._login_of(credentials) or not credentials.get(self.PASSWORD_FIELD):
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)

        flag = str(credentials.get(self.REMEMBER_FLAG, "")).strip().lower()
        remember = remember or flag in self._TRUTHY

        try:
            user, password, login = self._verify_password(credentials)
        except InvalidCredentialsError:
            self._log(SecurityEvent.LOGIN_FAILED, login=self._login_of(credentials),
                      details={"reason": "invalid_credentials"})
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)
        except AccountDisabledError:
            self._log(SecurityEvent.LOGIN_FAILED, login=self._login_of(credentials),
                      details={"reason": "account_disabled"})
            return AuthResult.failed(FailureReason.ACCOUNT_DISABLED)

        updates = {"last_login_at": now_utc()}
        rehashed = self._hasher.needs_rehash(user.password_hash)
        if rehashed:
            updates["password_hash"] = self._hasher.hash(password)
        user = user.model_copy(update=updates)

        self._users.save(user)
        if rehashed:
            self._log(SecurityEvent.PASSWORD_REHASHED, login=login, user_id=user.id)
        if remember and self._session_config.allow_remembering:
            self._issue_remember_token(user)
        self._start_session(user)

        self._log(SecurityEvent.LOGIN_SUCCEEDED, login=login, user_id=user.id)
        return AuthResult.succeeded(user)

    def check(self, credentials: Credentials) -> AuthResult:
        """Verify a login field + password without logging in."""
        try:
            user, _, _ = self._verify_password(credentials)
        except InvalidCredentialsError:
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)
        except AccountDisabledError:
            return AuthResult.failed(FailureReason.ACCOUNT_DISABLED)
        return AuthResult.succeeded(user)

    def _login_of(self, credentials: Credentials) -> str | None:
        for field in self._config.valid_fields:
            if credentials.get(field):
                return credentials[field]
        return None

    def _verify_password(self, credentials: Credentials) -> tuple[User, str, str]:
        """
        Raises:
            InvalidCredentialsError: Malformed credentials, unknown login, wrong password.
            AccountDisabledError: Correct password for a deactivated account.
        """
        present = [f for f in self._config.valid_fields if credentials.get(f)]
        password = credentials.get(self.PASSWORD_FIELD)
        if len(present) != 1 or not password:
            raise InvalidCredentialsError("Exactly one login field and a password are required")

        field = present[0]
        login = credentials[field]
        user = self._users.find_by_login_field(field, login)

        if user is None:
            self._hasher.verify(password, self._dummy_hash)
            raise InvalidCredentialsError("Invalid credentials")

        if not self._hasher.verify(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        # Only after the password matched, so status never leaks to guessers
        if not user.is_active:
            raise AccountDisabledError("User account is deactivated")

        return user, password, login

    def _start_session(self, user: User) -> None:
        get_request_context().session.set(self._session_config.field, str(user.id))

    # Remember-me

    def _issue_remember_token(self, user: User) -> None:
        ctx = get_request_context()
        cookie_name = self._session_config.remember_cookie_name

        # One token per device: replace whatever this client held
        previous = ctx.cookies.get(cookie_name)
        if previous:
            self._remember_tokens.delete_remember_token(previous.partition(":")[0])

        selector = secrets.token_hex(12)
        validator = secrets.token_hex(32)
        self._remember_tokens.insert_remember_token(RememberToken(
            selector=selector,
            user_id=user.id,
            hashed_validator=sha256_hex(validator),
            expires_at=now_utc() + timedelta(seconds=self._session_config.remember_length),
        ))
        ctx.set_cookie(cookie_name, f"{selector}:{validator}", self._session_config.remember_length)
        self._log(SecurityEvent.REMEMBER_TOKEN_ISSUED, user_id=user.id)

    def _attempt_remembered(self, artifact: str) -> AuthResult:
        ctx = get_request_context()
        cookie_name = self._session_config.remember_cookie_name

        if not self._session_config.allow_remembering:
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)

        try:
            user = self._consume_remember_token(artifact)
        except TokenReplayDetectedError as e:
            revoked = self._remember_tokens.revoke_remember_tokens(e.user_id)
            ctx.delete_cookie(cookie_name)
            self._log(SecurityEvent.REMEMBER_TOKEN_REPLAY, user_id=e.user_id,
                      details={"revoked_tokens": revoked})
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)
        except TokenExpiredError:
            ctx.delete_cookie(cookie_name)
            return AuthResult.failed(FailureReason.TOKEN_EXPIRED)
        except AccountDisabledError:
            ctx.delete_cookie(cookie_name)
            return AuthResult.failed(FailureReason.ACCOUNT_DISABLED)
        except InvalidCredentialsError:
            ctx.delete_cookie(cookie_name)
            return AuthResult.failed(FailureReason.INVALID_CREDENTIALS)

        user = user.model_copy(update={"last_login_at": now_utc()})
        self._users.save(user)
        self._start_session(user)
        self._log(SecurityEvent.LOGIN_SUCCEEDED, user_id=user.id, details={"via": "remember"})
        return AuthResult.succeeded(user)

    def _consume_remember_token(self, artifact: str) -> User:
        """
        Verify and rotate a remember artifact. The conditional rotate is
        the only gate between two concurrent uses of the same token.

        Raises:
            InvalidCredentialsError: Malformed artifact, unknown selector or user.
            TokenReplayDetectedError: Validator already consumed, or rotation lost.
            TokenExpiredError: Token past expiry (row is deleted).
            AccountDisabledError: Owner deactivated.
        """
        selector, sep, validator = artifact.partition(":")
        if not sep or not selector or not validator:
            raise InvalidCredentialsError("Malformed remember token")

        token = self._remember_tokens.find_remember_token(selector)
        if token is None:
            raise InvalidCredentialsError("Unknown remember token")

        if not hmac.compare_digest(sha256_hex(validator), token.hashed_validator):
            raise TokenReplayDetectedError(token.user_id)

        now = now_utc()
        if is_past(token.expires_at, now):
            self._remember_tokens.delete_remember_token(selector)
            self._log(SecurityEvent.REMEMBER_TOKEN_EXPIRED, user_id=token.user_id)
            raise TokenExpiredError("Remember token expired")

        user = self._users.find_by_id(token.user_id)
        if user is None:
            self._remember_tokens.delete_remember_token(selector)
            raise InvalidCredentialsError("Remember token owner not found")
        if not user.is_active:
            raise AccountDisabledError("User account is deactivated")

        new_validator = secrets.token_hex(32)
        length = self._session_config.remember_length
        rotated = self._remember_tokens.rotate_remember_token(
            selector,
            expected_hash=token.hashed_validator,
            new_hash=sha256_hex(new_validator),
            new_expires_at=now + timedelta(seconds=length),
        )
        if not rotated:
            raise TokenReplayDetectedError(user.id)

        get_request_context().set_cookie(
            self._session_config.remember_cookie_name,
            f"{selector}:{new_validator}",
            length,
        )
        self._log(SecurityEvent.REMEMBER_TOKEN_ROTATED, user_id=user.id)
        return user

    # Current identity

    def logged_in(self) -> User | None:
        """
        User from the session, or re-established from a remember cookie
        when the session holds none.
        """
        ctx = get_request_context()
        field = self._session_config.field
        stored = ctx.session.get(field)

        if stored:
            try:
                user = self._users.find_by_id(UUID(stored))
            except ValueError:
                user = None
            if user is not None and user.is_active:
                return user
            ctx.session.clear(field)
            return None

        if self._session_config.allow_remembering:
            artifact = ctx.cookies.get(self._session_config.remember_cookie_name)
            if artifact:
                return self._attempt_remembered(artifact).user

        return None

    def logout(self) -> None:
        """Clear the session key and delete this device's remember token."""
        ctx = get_request_context()
        field = self._session_config.field
        stored = ctx.session.get(field)
        ctx.session.clear(field)

        cookie_name = self._session_config.remember_cookie_name
        artifact = ctx.cookies.get(cookie_name)
        if artifact:
            self._remember_tokens.delete_remember_token(artifact.partition(":")[0])
            ctx.delete_cookie(cookie_name)

        if stored:
            self._log(SecurityEvent.LOGOUT, details={"user_id": stored})
