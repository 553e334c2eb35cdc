"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, parse_iso, is_past
from utils.request_context import (
    CookieInstruction,
    RequestContext,
    get_request_context,
    set_request_context,
    clear_request_context,
    request_context,
)
