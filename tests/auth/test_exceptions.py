"""Tests for auth/exceptions.py - Typed exceptions for auth failures."""

from uuid import uuid4

import pytest

from auth.exceptions import (
    AccountDisabledError,
    AuthError,
    ConfigurationError,
    InvalidCredentialsError,
    RegistrationDisabledError,
    TokenExpiredError,
    TokenReplayDetectedError,
    TokenRevokedError,
    ValidationFailedError,
)


class TestExceptionInheritance:
    """All auth exceptions should inherit from AuthError."""

    @pytest.mark.parametrize("exc", [
        ConfigurationError,
        InvalidCredentialsError,
        AccountDisabledError,
        TokenExpiredError,
        TokenRevokedError,
        TokenReplayDetectedError,
        ValidationFailedError,
        RegistrationDisabledError,
    ])
    def test_inherits(self, exc):
        assert issubclass(exc, AuthError)


class TestValidationFailedError:
    """ValidationFailedError should carry every reason in order."""

    def test_stores_reasons(self):
        err = ValidationFailedError(["too short", "too common"])
        assert err.reasons == ["too short", "too common"]

    def test_message_lists_reasons(self):
        err = ValidationFailedError(["too short", "too common"])
        assert "too short; too common" in str(err)


class TestTokenReplayDetectedError:
    def test_stores_user_id(self):
        user_id = uuid4()
        err = TokenReplayDetectedError(user_id)
        assert err.user_id == user_id
        assert str(user_id) in str(err)
