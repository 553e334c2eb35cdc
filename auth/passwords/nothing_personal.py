"""Reject passwords built from the user's own login or personal data."""

from auth.passwords.base import PasswordContext, ValidationResult, Validator
from auth.passwords.similarity import normalize, similarity


class NothingPersonalValidator(Validator):
    """
    Compares the normalized password against every login and personal
    value (and the local part of email addresses).

    Exact matches, forwards or reversed, always fail. The similarity
    sub-check fails at score >= max_similarity; max_similarity == 0
    skips it. All fields are treated the same way.
    """

    name = "nothing_personal"

    def __init__(self, max_similarity: int = 50):
        if not 0 <= max_similarity <= 100:
            raise ValueError("max_similarity must be between 0 and 100")
        self.max_similarity = max_similarity

    @staticmethod
    def _needles(context: PasswordContext) -> set[str]:
        needles = set()
        for value in context.all_values():
            needles.add(normalize(value))
            if "@" in value:
                needles.add(normalize(value.split("@", 1)[0]))
        needles.discard("")
        return needles

    def check(self, password: str, context: PasswordContext) -> ValidationResult:
        candidate = normalize(password)
        if not candidate:
            return self._pass()

        needles = self._needles(context)
        reversed_candidate = candidate[::-1]

        for needle in needles:
            if candidate == needle or reversed_candidate == needle:
                return self._fail("Password must not match your personal information.")

        if self.max_similarity == 0:
            return self._pass()

        for needle in needles:
            if similarity(candidate, needle) >= self.max_similarity:
                return self._fail("Password is too similar to your personal information.")

        return self._pass()
