"""Propagate the current request through the call stack using contextvars.

Authenticators are process-wide objects. Everything that belongs to a
single request (session store, cookies, headers, client metadata) is
carried here instead of on the authenticator.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from auth.stores import SessionStore


@dataclass
class CookieInstruction:
    """A cookie the hosting application must set (or expire) on the response."""

    name: str
    value: str
    max_age: int
    http_only: bool = True
    secure: bool = True

    @property
    def is_deletion(self) -> bool:
        return self.max_age <= 0


@dataclass
class RequestContext:
    """Per-request state consumed by authenticators."""

    session: "SessionStore"
    cookies: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    response_cookies: dict[str, CookieInstruction] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def set_cookie(self, name: str, value: str, max_age: int) -> None:
        self.cookies[name] = value
        self.response_cookies[name] = CookieInstruction(name=name, value=value, max_age=max_age)

    def delete_cookie(self, name: str) -> None:
        self.cookies.pop(name, None)
        self.response_cookies[name] = CookieInstruction(name=name, value="", max_age=0)


_current_request: ContextVar[RequestContext | None] = ContextVar("current_request", default=None)


def get_request_context() -> RequestContext:
    """
    Get the current request context.

    Raises RuntimeError if no request context is set.
    This is fail-fast behavior - authenticating outside of a request
    is a bug in the calling code.
    """
    ctx = _current_request.get()
    if ctx is None:
        raise RuntimeError(
            "No request context set. Authenticators must be called inside "
            "request_context(...)."
        )
    return ctx


def set_request_context(ctx: RequestContext) -> None:
    """Set current request context. Called by the hosting application per request."""
    _current_request.set(ctx)


def clear_request_context() -> None:
    """
    Clear request context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_request.set(None)


@contextmanager
def request_context(ctx: RequestContext):
    """
    Context manager for scoping a request context.

    Example:
        with request_context(RequestContext(session=store, cookies=cookies)):
            user = registry.get_default().logged_in()
    """
    previous = _current_request.get()
    set_request_context(ctx)
    try:
        yield ctx
    finally:
        if previous is None:
            clear_request_context()
        else:
            set_request_context(previous)
