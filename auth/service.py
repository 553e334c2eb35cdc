"""Authentication service - the boundary a hosting application calls."""

from typing import Mapping
from uuid import uuid4

from auth.authenticators import Authenticator
from auth.config import AuthConfig, resolve_user_provider
from auth.exceptions import RegistrationDisabledError
from auth.hasher import Hasher
from auth.passwords import (
    ChainResult,
    DictionaryValidator,
    PasswordContext,
    ValidationChain,
)
from auth.registry import AuthenticatorRegistry, build_registry
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.stores import RememberTokenStore, UserStore
from auth.types import User
from clients.postgres_client import PostgresClient
from clients.pwned_client import PwnedPasswordsClient
from clients.vault_client import get_database_url
from utils.timezone import now_utc


class AuthService:
    """Orchestrates authentication and password management.

    Handles:
    - Authenticator lookup by alias (or the default)
    - Registration (gated by allow_registration and the password chain)
    - Password changes (chain, hash, revoke remember-me)
    """

    def __init__(
        self,
        config: AuthConfig,
        registry: AuthenticatorRegistry,
        users: UserStore,
        remember_tokens: RememberTokenStore,
        hasher: Hasher,
        chain: ValidationChain,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._registry = registry
        self._users = users
        self._remember_tokens = remember_tokens
        self._hasher = hasher
        self._chain = chain
        self._security_logger = security_logger

    @classmethod
    def from_config(
        cls,
        config: AuthConfig,
        postgres: PostgresClient,
        dictionary: DictionaryValidator | None = None,
        pwned_client: PwnedPasswordsClient | None = None,
    ) -> "AuthService":
        """Wire the Postgres-backed stores, hasher, chain and registry."""
        provider = resolve_user_provider(config)
        store = provider(postgres)
        hasher = Hasher.from_config(config)
        security_logger = SecurityLogger(postgres)
        registry = build_registry(
            config,
            users=store,
            remember_tokens=store,
            access_tokens=store,
            hasher=hasher,
            security_logger=security_logger,
        )
        chain = ValidationChain.from_config(config, dictionary=dictionary, pwned_client=pwned_client)
        return cls(config, registry, store, store, hasher, chain, security_logger)

    @classmethod
    def from_vault(
        cls,
        config: AuthConfig,
        dictionary: DictionaryValidator | None = None,
        pwned_client: PwnedPasswordsClient | None = None,
    ) -> "AuthService":
        """Like from_config(), connecting to the database URL held in Vault."""
        postgres = PostgresClient(get_database_url())
        return cls.from_config(config, postgres, dictionary=dictionary, pwned_client=pwned_client)

    @property
    def hasher(self) -> Hasher:
        return self._hasher

    @property
    def chain(self) -> ValidationChain:
        return self._chain

    def auth(self, alias: str | None = None) -> Authenticator:
        """Authenticator by alias, or the configured default.

        Raises:
            ConfigurationError: If alias is unknown.
        """
        if alias is None:
            return self._registry.get_default()
        return self._registry.get(alias)

    def password_context_for(self, user: User) -> PasswordContext:
        return PasswordContext.from_user(user, self._config)

    def validate_password(self, password: str, fields: Mapping[str, str]) -> ChainResult:
        """Run the chain against submitted fields without raising."""
        return self._chain.validate(password, PasswordContext.from_fields(fields, self._config))

    def register(self, fields: Mapping[str, str], password: str) -> User:
        """Create a user after the password passes every validator.

        Raises:
            RegistrationDisabledError: If registration is switched off.
            ValueError: If no login field is given or one is already taken.
            ValidationFailedError: If the password is rejected.
        """
        if not self._config.allow_registration:
            raise RegistrationDisabledError("Registration is disabled")

        logins = {f: fields[f] for f in self._config.valid_fields if fields.get(f)}
        if not logins:
            raise ValueError(
                f"At least one of {', '.join(self._config.valid_fields)} is required"
            )
        for field, value in logins.items():
            if self._users.find_by_login_field(field, value) is not None:
                raise ValueError(f"That {field} is already registered")

        self._chain.enforce(password, PasswordContext.from_fields(fields, self._config))

        custom = [f for f in self._config.valid_fields if f not in ("email", "username")]
        personal = {
            f: fields[f]
            for f in custom + self._config.personal_fields
            if fields.get(f)
        }
        user = User(
            id=uuid4(),
            email=fields.get("email"),
            username=fields.get("username"),
            password_hash=self._hasher.hash(password),
            personal_fields=personal,
            created_at=now_utc(),
        )
        self._users.save(user)
        self._security_logger.log(SecurityEvent.USER_REGISTERED, user_id=user.id)
        return user

    def change_password(self, user: User, new_password: str) -> User:
        """Validate, hash and store a new password. Revokes remember-me tokens.

        Raises:
            ValidationFailedError: If the password is rejected.
        """
        self._chain.enforce(new_password, self.password_context_for(user))

        updated = user.model_copy(update={"password_hash": self._hasher.hash(new_password)})
        self._users.save(updated)
        self._remember_tokens.revoke_remember_tokens(user.id)
        self._security_logger.log(SecurityEvent.PASSWORD_CHANGED, user_id=user.id)
        return updated
