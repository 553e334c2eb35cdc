"""Tests for utils/request_context.py - per-request state via contextvars."""

import pytest

from conftest import InMemorySessionStore
from utils.request_context import (
    RequestContext,
    clear_request_context,
    get_request_context,
    request_context,
    set_request_context,
)


def _context(**kwargs) -> RequestContext:
    return RequestContext(session=InMemorySessionStore(), **kwargs)


class TestAccess:
    def test_raises_when_unset(self):
        with pytest.raises(RuntimeError, match="No request context"):
            get_request_context()

    def test_set_and_clear(self):
        ctx = _context()
        set_request_context(ctx)
        assert get_request_context() is ctx
        clear_request_context()
        with pytest.raises(RuntimeError):
            get_request_context()

    def test_context_manager_restores_previous(self):
        outer, inner = _context(), _context()
        with request_context(outer):
            with request_context(inner):
                assert get_request_context() is inner
            assert get_request_context() is outer
        with pytest.raises(RuntimeError):
            get_request_context()

    def test_cleared_after_exception(self):
        with pytest.raises(KeyError):
            with request_context(_context()):
                raise KeyError("boom")
        with pytest.raises(RuntimeError):
            get_request_context()


class TestRequestContext:
    def test_header_case_insensitive(self):
        ctx = _context(headers={"Authorization": "Bearer x"})
        assert ctx.header("authorization") == "Bearer x"
        assert ctx.header("X-Missing") is None

    def test_set_cookie(self):
        ctx = _context()
        ctx.set_cookie("remember", "a:b", 60)
        assert ctx.cookies["remember"] == "a:b"
        instruction = ctx.response_cookies["remember"]
        assert instruction.max_age == 60
        assert instruction.http_only is True
        assert instruction.is_deletion is False

    def test_delete_cookie(self):
        ctx = _context(cookies={"remember": "a:b"})
        ctx.delete_cookie("remember")
        assert "remember" not in ctx.cookies
        assert ctx.response_cookies["remember"].is_deletion is True
