"""Authenticator contract."""

import hashlib
from abc import ABC, abstractmethod
from typing import Any

from auth.security_logger import SecurityEvent, SecurityLogger
from auth.types import AuthResult, Credentials, User
from utils.request_context import get_request_context


def sha256_hex(value: str) -> str:
    """Fast one-way hash for high-entropy tokens (never for passwords)."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class Authenticator(ABC):
    """
    A strategy that verifies credentials and establishes an identity.

    Instances are process-wide and hold no per-request state; the
    current request is read from utils.request_context. Per-request
    failures come back as AuthResult, never as exceptions.
    """

    def __init__(self, security_logger: SecurityLogger):
        self._security_logger = security_logger

    @abstractmethod
    def attempt(self, credentials: Credentials) -> AuthResult:
        """Verify credentials and, on success, log the user in."""

    @abstractmethod
    def logged_in(self) -> User | None:
        """The user authenticated for the current request, if any."""

    @abstractmethod
    def logout(self) -> None:
        """Forget the current request's identity."""

    def _log(self, event: SecurityEvent, **kwargs: Any) -> None:
        ctx = get_request_context()
        self._security_logger.log(
            event,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
            **kwargs,
        )
