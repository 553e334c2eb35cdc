"""Ordered password validation."""

import logging
from typing import Iterable

from auth.config import AuthConfig
from auth.exceptions import ValidationFailedError
from auth.passwords.base import ChainResult, PasswordContext, Validator
from auth.passwords.composition import CompositionValidator
from auth.passwords.dictionary import DictionaryValidator
from auth.passwords.nothing_personal import NothingPersonalValidator
from auth.passwords.pwned import PwnedValidator
from clients.pwned_client import PwnedPasswordsClient

logger = logging.getLogger(__name__)


class ValidationChain:
    """
    Runs every validator, in order, with no short-circuit.

    Callers get every violated rule at once; the overall result passes
    only if all members pass.
    """

    def __init__(self, validators: Iterable[Validator]):
        self._validators = tuple(validators)

    @property
    def validators(self) -> tuple[Validator, ...]:
        return self._validators

    @classmethod
    def from_config(
        cls,
        config: AuthConfig,
        dictionary: DictionaryValidator | None = None,
        pwned_client: PwnedPasswordsClient | None = None,
    ) -> "ValidationChain":
        """Build the chain named by config.password_validators, in that order."""
        validators: list[Validator] = []
        for name in config.password_validators:
            if name == "composition":
                validators.append(CompositionValidator(
                    min_length=config.minimum_password_length,
                    min_character_classes=config.minimum_character_classes,
                ))
            elif name == "nothing_personal":
                validators.append(NothingPersonalValidator(max_similarity=config.max_similarity))
            elif name == "dictionary":
                validators.append(
                    dictionary if dictionary is not None
                    else DictionaryValidator.from_file(config.dictionary_path)
                )
            elif name == "pwned":
                validators.append(PwnedValidator(pwned_client or PwnedPasswordsClient(
                    api_url=config.pwned_api_url,
                    timeout_seconds=config.pwned_timeout_seconds,
                )))
        return cls(validators)

    def validate(self, password: str, context: PasswordContext | None = None) -> ChainResult:
        context = context or PasswordContext()
        results = tuple(v.check(password, context) for v in self._validators)
        result = ChainResult(results=results)
        if not result.passed:
            logger.info(
                "Password rejected by: "
                + ", ".join(r.validator for r in results if not r.passed)
            )
        return result

    def enforce(self, password: str, context: PasswordContext | None = None) -> ChainResult:
        """
        Like validate(), but raise on failure.

        Raises:
            ValidationFailedError: Carrying every failed reason in order.
        """
        result = self.validate(password, context)
        if not result.passed:
            raise ValidationFailedError(result.reasons)
        return result
