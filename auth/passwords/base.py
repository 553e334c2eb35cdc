"""Validator contract and result types."""

from abc import ABC, abstractmethod
from typing import Mapping

from pydantic import BaseModel, Field

from auth.config import AuthConfig
from auth.types import User


class PasswordContext(BaseModel):
    """What a validator may compare the candidate password against."""

    login_values: dict[str, str] = Field(default_factory=dict)
    personal_values: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_fields(cls, fields: Mapping[str, str | None], config: AuthConfig) -> "PasswordContext":
        """Split submitted registration/profile fields into login and personal values."""
        login = {f: fields[f] for f in config.valid_fields if fields.get(f)}
        personal = {f: fields[f] for f in config.personal_fields if fields.get(f)}
        return cls(login_values=login, personal_values=personal)

    @classmethod
    def from_user(cls, user: User, config: AuthConfig) -> "PasswordContext":
        fields = {f: user.login_value(f) for f in config.valid_fields}
        fields.update({f: user.personal_fields.get(f) for f in config.personal_fields})
        return cls.from_fields(fields, config)

    def all_values(self) -> list[str]:
        return list(self.login_values.values()) + list(self.personal_values.values())


class ValidationResult(BaseModel):
    """Outcome of a single validator."""

    validator: str
    passed: bool
    reason: str | None = None
    skipped: bool = False

    model_config = {"frozen": True}


class ChainResult(BaseModel):
    """Ordered results of a chain run. Fails if any member failed."""

    results: tuple[ValidationResult, ...]

    model_config = {"frozen": True}

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def reasons(self) -> list[str]:
        return [r.reason for r in self.results if not r.passed and r.reason]


class Validator(ABC):
    """A single password-policy rule."""

    name: str = "validator"

    @abstractmethod
    def check(self, password: str, context: PasswordContext) -> ValidationResult:
        """Evaluate the rule. Must not raise for a rejected password."""

    def _pass(self) -> ValidationResult:
        return ValidationResult(validator=self.name, passed=True)

    def _fail(self, reason: str) -> ValidationResult:
        return ValidationResult(validator=self.name, passed=False, reason=reason)
