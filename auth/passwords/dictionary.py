"""Reject passwords found in a wordlist of common passwords."""

import logging
from pathlib import Path
from typing import Iterable

from auth.passwords.base import PasswordContext, ValidationResult, Validator

logger = logging.getLogger(__name__)

_LEET = str.maketrans({
    "0": "o",
    "1": "l",
    "3": "e",
    "4": "a",
    "5": "s",
    "7": "t",
    "8": "b",
    "9": "g",
    "@": "a",
    "$": "s",
    "!": "i",
    "+": "t",
})


def leet_variants(password: str) -> set[str]:
    """The lowercased password plus its de-leeted forms ('1' read as 'l' and as 'i')."""
    lowered = password.lower()
    de_leeted = lowered.translate(_LEET)
    return {lowered, de_leeted, lowered.replace("1", "i").translate(_LEET)}


class DictionaryValidator(Validator):
    name = "dictionary"

    def __init__(self, words: Iterable[str] = ()):
        self._words = frozenset(w.strip().lower() for w in words if w.strip())

    @classmethod
    def from_file(cls, path: Path | str | None) -> "DictionaryValidator":
        """Load one word per line. No path means an empty (always passing) list."""
        if path is None:
            return cls()
        path = Path(path)
        with path.open(encoding="utf-8", errors="ignore") as f:
            validator = cls(f)
        logger.info(f"Loaded {len(validator)} dictionary words from {path}")
        return validator

    def __len__(self) -> int:
        return len(self._words)

    def check(self, password: str, context: PasswordContext) -> ValidationResult:
        if self._words and leet_variants(password) & self._words:
            return self._fail("Password is too common: it appears in a list of known passwords.")
        return self._pass()
