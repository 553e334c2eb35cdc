"""Tests for PipelineAuthenticator."""

from unittest.mock import Mock

import pytest

from auth.authenticators.access_tokens import AccessTokensAuthenticator
from auth.authenticators.base import Authenticator
from auth.authenticators.pipeline import PipelineAuthenticator
from auth.authenticators.session import SessionAuthenticator
from auth.exceptions import ConfigurationError
from auth.security_logger import SecurityEvent
from auth.types import AuthResult, FailureReason
from conftest import (
    InMemorySessionStore,
    TEST_USER_EMAIL,
    TEST_USER_ID,
    TEST_USER_PASSWORD,
)
from utils.request_context import RequestContext, request_context


def _member(result: AuthResult | None = None, user=None) -> Mock:
    member = Mock(spec=Authenticator)
    member.attempt.return_value = result or AuthResult.failed(FailureReason.INVALID_CREDENTIALS)
    member.logged_in.return_value = user
    return member


class TestAttempt:
    def test_first_success_wins(self, test_user):
        first = _member()
        second = _member(AuthResult.succeeded(test_user))
        third = _member(AuthResult.succeeded(test_user))

        result = PipelineAuthenticator([first, second, third]).attempt({"token": "x"})

        assert result.success is True
        third.attempt.assert_not_called()

    def test_all_fail_reports_last_and_every_reason(self):
        first = _member(AuthResult.failed(FailureReason.TOKEN_EXPIRED))
        second = _member(AuthResult.failed(FailureReason.INVALID_CREDENTIALS))

        result = PipelineAuthenticator([first, second]).attempt({})

        assert result.success is False
        assert result.reason == FailureReason.INVALID_CREDENTIALS
        assert result.reasons == (FailureReason.TOKEN_EXPIRED, FailureReason.INVALID_CREDENTIALS)

    def test_credentials_passed_to_each(self):
        members = [_member(), _member()]
        PipelineAuthenticator(members).attempt({"email": "a@b.c", "password": "p"})
        for m in members:
            m.attempt.assert_called_once_with({"email": "a@b.c", "password": "p"})

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError):
            PipelineAuthenticator([])


class TestIdentity:
    def test_logged_in_first_non_none(self, test_user):
        pipeline = PipelineAuthenticator([_member(), _member(user=test_user)])
        assert pipeline.logged_in() is test_user

    def test_nobody(self):
        assert PipelineAuthenticator([_member()]).logged_in() is None

    def test_logout_reaches_every_member(self):
        members = [_member(), _member()]
        PipelineAuthenticator(members).logout()
        for m in members:
            m.logout.assert_called_once_with()


class TestSessionThenTokens:
    """The default pipeline shape, with real members."""

    @pytest.fixture
    def members(self, config, users, remember_tokens, access_tokens, hasher, security_logger):
        session = SessionAuthenticator(config, users, remember_tokens, hasher, security_logger)
        tokens = AccessTokensAuthenticator(users, access_tokens, security_logger)
        return session, tokens

    @pytest.fixture
    def pipeline(self, members):
        return PipelineAuthenticator(list(members))

    def test_bearer_login_leaves_no_failed_login_event(self, pipeline, members, ctx, test_user, security_logger):
        _, tokens = members
        _, raw = tokens.issue_token(test_user, "ci")
        security_logger.reset_mock()

        result = pipeline.attempt({"token": raw})

        assert result.success is True
        assert security_logger.log.call_args_list == []

    def test_bearer_header_login_leaves_no_events(self, pipeline, members, ctx, test_user, security_logger):
        _, tokens = members
        _, raw = tokens.issue_token(test_user, "ci")
        security_logger.reset_mock()
        ctx.headers["Authorization"] = f"Bearer {raw}"

        assert pipeline.attempt({}).success is True
        security_logger.log.assert_not_called()

    def test_password_login_leaves_no_rejected_token_event(self, pipeline, ctx, test_user, security_logger):
        result = pipeline.attempt({"email": TEST_USER_EMAIL, "password": TEST_USER_PASSWORD})

        assert result.success is True
        events = [c.args[0] for c in security_logger.log.call_args_list]
        assert events == [SecurityEvent.LOGIN_SUCCEEDED]

    def test_wrong_password_still_audited(self, pipeline, ctx, test_user, security_logger):
        result = pipeline.attempt({"email": TEST_USER_EMAIL, "password": "wrong"})

        assert result.success is False
        events = [c.args[0] for c in security_logger.log.call_args_list]
        assert events == [SecurityEvent.LOGIN_FAILED]

    @pytest.mark.parametrize("flag", ["1", "true", "on", "yes", "TRUE"])
    def test_remember_me_through_pipeline(self, pipeline, ctx, test_user, remember_tokens, flag):
        result = pipeline.attempt(
            {"email": TEST_USER_EMAIL, "password": TEST_USER_PASSWORD, "remember": flag}
        )

        assert result.success is True
        assert len(remember_tokens.for_user(TEST_USER_ID)) == 1
        assert ctx.response_cookies["remember"].max_age > 0

    @pytest.mark.parametrize("flag", ["", "0", "false", "no"])
    def test_remember_flag_off(self, pipeline, ctx, test_user, remember_tokens, flag):
        pipeline.attempt({"email": TEST_USER_EMAIL, "password": TEST_USER_PASSWORD, "remember": flag})
        assert remember_tokens.tokens == {}

    def test_remembered_cookie_reentry_through_pipeline(self, pipeline, ctx, test_user):
        pipeline.attempt({"email": TEST_USER_EMAIL, "password": TEST_USER_PASSWORD, "remember": "1"})
        cookie = ctx.cookies["remember"]

        context = RequestContext(session=InMemorySessionStore())
        context.cookies["remember"] = cookie
        with request_context(context):
            assert pipeline.logged_in().id == TEST_USER_ID
