"""Propagate owner identity through the call stack using contextvars."""

from contextvars import ContextVar
from contextlib import contextmanager

_current_owner_id: ContextVar[str | None] = ContextVar("current_owner_id", default=None)


def get_current_owner_id() -> str:
    """
    Get current owner ID from context.

    Raises RuntimeError if no owner context is set.
    This is fail-fast behavior - if you're in a code path that
    requires an owner and it's not set, that's a bug.
    """
    owner_id = _current_owner_id.get()
    if owner_id is None:
        raise RuntimeError(
            "No owner context set. This usually means you're calling "
            "owner-scoped code outside of an authenticated request."
        )
    return owner_id


def set_current_owner_id(owner_id: str) -> None:
    """
    Set current owner ID in context.

    Called by auth middleware after validating session.
    """
    _current_owner_id.set(owner_id)


def clear_current_owner_id() -> None:
    """
    Clear owner context.

    Must be called in finally block to prevent context leakage.
    """
    _current_owner_id.set(None)


@contextmanager
def owner_context(owner_id: str):
    """
    Context manager for temporarily setting owner context.

    Example:
        with owner_context("user_2abc"):
            invoices = invoice_service.list_for_owner()
    """
    previous = _current_owner_id.get()
    set_current_owner_id(owner_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_owner_id()
        else:
            set_current_owner_id(previous)
