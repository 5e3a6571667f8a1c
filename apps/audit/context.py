"""Request context used to attribute audit entries to a user."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Optional

_current_request: ContextVar[Optional[object]] = ContextVar("audit_current_request", default=None)


def set_current_request(request) -> Token:
    return _current_request.set(request)


def reset_current_request(token: Token) -> None:
    _current_request.reset(token)


def get_current_user():
    """The authenticated user of the request being served, if any."""
    request = _current_request.get()
    # DRF authenticates lazily and copies the user onto the Django request.
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return user
