"""Typed exceptions for auth failures.

Authenticators raise these internally and convert them to an AuthResult
at the attempt() boundary. ConfigurationError is fatal at startup.
"""


class AuthError(Exception):
    """Base class for authentication errors."""


class ConfigurationError(AuthError):
    """Unknown alias, malformed cost parameters, or unloadable provider."""


class InvalidCredentialsError(AuthError):
    """
    Login value unknown or secret mismatch.

    Note: Never tell the caller which of the two it was.
    """


class AccountDisabledError(AuthError):
    """User account is deactivated. Login not permitted."""


class TokenExpiredError(AuthError):
    """Remember-me or access token is past its expiry."""


class TokenRevokedError(AuthError):
    """Access token was explicitly revoked."""


class TokenReplayDetectedError(AuthError):
    """
    A remember-me token was presented after it had already been consumed.

    Treated as a compromise signal: every remember token of the user is
    revoked. Reported to the caller as invalid credentials.
    """

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"Remember token replay detected for user {user_id}")


class ValidationFailedError(AuthError):
    """Password rejected by one or more validators."""

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        super().__init__("Password rejected: " + "; ".join(self.reasons))


class RegistrationDisabledError(AuthError):
    """Registration is switched off in configuration."""
