"""Ambient diagnostic context for log lines.

A context variable holds key/value pairs (job id, attempt, worker version)
that every log record emitted in that context carries. asyncio tasks inherit
it automatically; threads need `contextvars.copy_context().run(...)`, which
is how the heartbeat server keeps the worker's context.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar("relay_log_context", default={})

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(log_context)s- %(message)s"


@contextmanager
def bind(**values: object) -> Iterator[dict[str, str]]:
    """Add key/value pairs to the log context for the duration of the block."""
    merged = {**LOG_CONTEXT.get(), **{k: str(v) for k, v in values.items()}}
    token = LOG_CONTEXT.set(merged)
    try:
        yield merged
    finally:
        LOG_CONTEXT.reset(token)


class ContextFilter(logging.Filter):
    """Renders the current log context onto each record as `log_context`."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = LOG_CONTEXT.get()
        record.log_context = "".join(f"{k}={v} " for k, v in sorted(context.items()))
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        handler.addFilter(ContextFilter())
