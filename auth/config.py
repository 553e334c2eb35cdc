"""Authentication configuration."""

import importlib
from pathlib import Path
from typing import Any, Literal, Mapping

from pydantic import BaseModel, Field, ValidationError, model_validator

from auth.exceptions import ConfigurationError

AuthenticatorKind = Literal["session", "tokens", "pipeline"]
ValidatorName = Literal["composition", "nothing_personal", "dictionary", "pwned"]
HashAlgorithm = Literal["default", "bcrypt", "argon2i", "argon2id"]

DAY_SECONDS = 86400


class SessionConfig(BaseModel):
    """
    Settings for the session authenticator.

    - field: session key the logged-in user id is stored under
    - allow_remembering: whether "remember-me" may be issued
    - remember_cookie_name: cookie carrying the remember artifact
    - remember_length: lifetime of the remember artifact, in seconds
    """

    field: str = Field(default="logged_in", min_length=1)
    allow_remembering: bool = True
    remember_cookie_name: str = Field(default="remember", min_length=1)
    remember_length: int = Field(
        default=30 * DAY_SECONDS,
        description="Remember-me lifetime in seconds",
        ge=60,
    )
    session_expiry_hours: int = Field(
        default=2160,  # 90 days
        description="Server-side session lifetime in hours (sliding)",
        ge=1,
        le=2160,
    )


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Built once at startup. Anything that fails validation here is a
    ConfigurationError, never a per-request failure.
    """

    # Authenticators
    authenticators: dict[str, AuthenticatorKind] = Field(
        default_factory=lambda: {
            "tokens": "tokens",
            "session": "session",
            "pipeline": "pipeline",
        },
        description="Alias -> authenticator variant",
    )
    default_authenticator: str = Field(
        default="session",
        description="Alias used when the caller names none",
    )
    pipeline_members: list[str] = Field(
        default_factory=lambda: ["session", "tokens"],
        description="Aliases a pipeline authenticator tries, in order",
    )
    allow_registration: bool = True

    session: SessionConfig = Field(default_factory=SessionConfig)

    # Password policy
    minimum_password_length: int = Field(default=8, ge=1, le=128)
    minimum_character_classes: int = Field(
        default=0,
        description="Distinct classes (lower, upper, digit, symbol) required; 0 disables",
        ge=0,
        le=4,
    )
    password_validators: list[ValidatorName] = Field(
        default_factory=lambda: ["composition", "nothing_personal", "dictionary"],
    )
    valid_fields: list[str] = Field(
        default_factory=lambda: ["email", "username"],
        min_length=1,
    )
    personal_fields: list[str] = Field(default_factory=list)
    max_similarity: int = Field(
        default=50,
        description="Reject at or above this similarity score; 0 skips the check",
        ge=0,
        le=100,
    )
    dictionary_path: Path | None = None
    pwned_api_url: str = "https://api.pwnedpasswords.com/range/"
    pwned_timeout_seconds: float = Field(default=5.0, gt=0, le=60)

    # Hashing
    hash_algorithm: HashAlgorithm = "default"
    hash_memory_cost: int = Field(default=2048, description="Argon2 memory in KiB", ge=8)
    hash_time_cost: int = Field(default=4, ge=1)
    hash_threads: int = Field(default=4, ge=1, le=255)
    hash_cost: int = Field(default=10, description="bcrypt cost factor", ge=4, le=31)

    user_provider: str = "auth.database.AuthDatabase"

    @model_validator(mode="after")
    def _check_aliases(self) -> "AuthConfig":
        if self.default_authenticator not in self.authenticators:
            raise ValueError(
                f"default_authenticator '{self.default_authenticator}' is not a configured alias"
            )
        if "pipeline" in self.authenticators.values():
            for alias in self.pipeline_members:
                kind = self.authenticators.get(alias)
                if kind is None:
                    raise ValueError(f"pipeline member '{alias}' is not a configured alias")
                if kind == "pipeline":
                    raise ValueError(f"pipeline member '{alias}' cannot itself be a pipeline")
            if not self.pipeline_members:
                raise ValueError("pipeline_members must not be empty")
        if len(set(self.password_validators)) != len(self.password_validators):
            raise ValueError("password_validators contains duplicates")
        if self.hash_memory_cost < 8 * self.hash_threads:
            raise ValueError("hash_memory_cost must be at least 8 KiB per thread")
        return self


def load_config(data: Mapping[str, Any] | None = None) -> AuthConfig:
    """Build an AuthConfig, turning validation failures into ConfigurationError."""
    try:
        return AuthConfig(**dict(data or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid auth configuration: {e}") from e


def resolve_user_provider(config: AuthConfig) -> type:
    """Import the class named by config.user_provider."""
    module_name, _, class_name = config.user_provider.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"user_provider must be a dotted path: {config.user_provider}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load user_provider '{config.user_provider}': {e}") from e
