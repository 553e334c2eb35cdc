"""Reject passwords present in a public breach corpus."""

import hashlib
import logging

from auth.passwords.base import PasswordContext, ValidationResult, Validator
from clients.pwned_client import PwnedLookupError, PwnedPasswordsClient

logger = logging.getLogger(__name__)


class PwnedValidator(Validator):
    """
    Looks the password up by SHA-1 prefix.

    If the corpus cannot be reached the validator is skipped: an
    outage must never block users from choosing a password.
    """

    name = "pwned"

    def __init__(self, client: PwnedPasswordsClient):
        self._client = client

    def check(self, password: str, context: PasswordContext) -> ValidationResult:
        digest = hashlib.sha1(password.encode("utf-8")).hexdigest().upper()
        prefix, suffix = digest[:5], digest[5:]

        try:
            counts = self._client.range(prefix)
        except PwnedLookupError as e:
            logger.warning(f"Skipping breach check, corpus unreachable: {e}")
            return ValidationResult(validator=self.name, passed=True, skipped=True)

        count = counts.get(suffix, 0)
        if count:
            return self._fail(
                f"Password has appeared in {count:,} data breaches and must not be used."
            )
        return self._pass()
