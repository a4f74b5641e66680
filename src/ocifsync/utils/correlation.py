# ocifsync/utils/correlation.py
"""
Correlation id tracking for log records.

The id lives in a ContextVar so that concurrent asyncio tasks each see their
own value. It is only used to tie log lines together.
"""

import uuid
from contextvars import ContextVar

_correlation_id: ContextVar[str | None] = ContextVar('ocifsync_correlation_id', default=None)


def get_correlation_id() -> str:
    """
    Return the correlation id of the current context.

    A fresh UUID4 string is generated and stored on first use.
    """
    current: str | None = _correlation_id.get()
    if current is None:
        current = str(uuid.uuid4())
        _correlation_id.set(current)
    return current


def set_correlation_id(value: str) -> None:
    """Override the correlation id for the current context (e.g. from x-request-id)."""
    _correlation_id.set(value)
