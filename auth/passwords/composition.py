"""Length and character-class rules."""

from auth.passwords.base import PasswordContext, ValidationResult, Validator


def character_classes(password: str) -> int:
    """Count of distinct classes present: lowercase, uppercase, digit, other."""
    classes = 0
    classes += any(c.islower() for c in password)
    classes += any(c.isupper() for c in password)
    classes += any(c.isdigit() for c in password)
    classes += any(not c.isalnum() for c in password)
    return classes


class CompositionValidator(Validator):
    name = "composition"

    def __init__(self, min_length: int = 8, min_character_classes: int = 0):
        if min_length < 1:
            raise ValueError("min_length must be at least 1")
        if not 0 <= min_character_classes <= 4:
            raise ValueError("min_character_classes must be between 0 and 4")
        self.min_length = min_length
        self.min_character_classes = min_character_classes

    def check(self, password: str, context: PasswordContext) -> ValidationResult:
        if len(password) < self.min_length:
            return self._fail(
                f"Password is too short: use at least {self.min_length} characters."
            )
        if self.min_character_classes and character_classes(password) < self.min_character_classes:
            return self._fail(
                "Password is too simple: mix at least "
                f"{self.min_character_classes} of lowercase, uppercase, digits and symbols."
            )
        return self._pass()
