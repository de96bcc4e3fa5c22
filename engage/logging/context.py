"""Scoped logging context.

Fields pushed here (run_id, need_id, org_id, recipient_id, ...) are merged
into every log record emitted inside the scope by ContextualFilter. Storage
is a ContextVar, so concurrent requests and threads each see their own
context.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("engage_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**fields: Any) -> Token:
    """Layer new fields over the active context.

    Args:
        **fields: Key-value pairs to add; existing keys are shadowed

    Returns:
        Token to hand to pop_log_context() to restore the previous layer

    Example:
        >>> token = push_log_context(need_id="need-42", org_id="grace")
        >>> pop_log_context(token)
    """
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context layer that was active before push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field. Mostly useful in tests."""
    LogContextVar.set({})


class log_context:
    """Context manager that scopes logging fields to a block.

    Example:
        >>> with log_context(run_id="a1b2", need_id="need-42"):
        ...     logger.info("Approving need")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
