"""Alias -> authenticator mapping, built once at startup."""

import logging
import threading
from types import MappingProxyType

from auth.authenticators import (
    AccessTokensAuthenticator,
    Authenticator,
    PipelineAuthenticator,
    SessionAuthenticator,
)
from auth.config import AuthConfig
from auth.exceptions import ConfigurationError
from auth.hasher import Hasher
from auth.security_logger import SecurityLogger
from auth.stores import AccessTokenStore, RememberTokenStore, UserStore

logger = logging.getLogger(__name__)


class AuthenticatorRegistry:
    """
    register() while building, freeze(), then read-only lookups.

    Lookups before freeze() and registrations after it both raise
    ConfigurationError, so no request can observe a half-built registry.
    """

    def __init__(self, default_alias: str):
        self._default_alias = default_alias
        self._authenticators: dict[str, Authenticator] = {}
        self._frozen = False
        self._lock = threading.Lock()

    def register(self, alias: str, authenticator: Authenticator) -> None:
        with self._lock:
            if self._frozen:
                raise ConfigurationError(f"Registry is frozen; cannot register '{alias}'")
            if alias in self._authenticators:
                raise ConfigurationError(f"Authenticator alias '{alias}' registered twice")
            self._authenticators[alias] = authenticator

    def freeze(self) -> "AuthenticatorRegistry":
        with self._lock:
            if self._default_alias not in self._authenticators:
                raise ConfigurationError(
                    f"Default authenticator '{self._default_alias}' is not registered"
                )
            self._authenticators = MappingProxyType(dict(self._authenticators))
            self._frozen = True
        logger.info(f"Authenticator registry ready: {', '.join(self._authenticators)}")
        return self

    @property
    def aliases(self) -> tuple[str, ...]:
        return tuple(self._authenticators)

    @property
    def default_alias(self) -> str:
        return self._default_alias

    def get(self, alias: str) -> Authenticator:
        if not self._frozen:
            raise ConfigurationError("Registry used before initialization finished")
        try:
            return self._authenticators[alias]
        except KeyError:
            raise ConfigurationError(f"Unknown authenticator alias: {alias}") from None

    def get_default(self) -> Authenticator:
        return self.get(self._default_alias)


def build_registry(
    config: AuthConfig,
    users: UserStore,
    remember_tokens: RememberTokenStore,
    access_tokens: AccessTokenStore,
    hasher: Hasher,
    security_logger: SecurityLogger,
) -> AuthenticatorRegistry:
    """Construct every configured alias, wire pipelines, and freeze."""
    built: dict[str, Authenticator] = {}

    for alias, kind in config.authenticators.items():
        if kind == "session":
            built[alias] = SessionAuthenticator(config, users, remember_tokens, hasher, security_logger)
        elif kind == "tokens":
            built[alias] = AccessTokensAuthenticator(users, access_tokens, security_logger)

    for alias, kind in config.authenticators.items():
        if kind == "pipeline":
            built[alias] = PipelineAuthenticator([built[m] for m in config.pipeline_members])

    registry = AuthenticatorRegistry(config.default_authenticator)
    for alias in config.authenticators:
        registry.register(alias, built[alias])
    return registry.freeze()
