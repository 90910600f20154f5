"""Error types raised by the worker bootstrap and its handlers.

Startup errors (ConfigurationError, ProgrammingError, HandlerConstructionError)
are fatal: the runner logs them and exits non-zero before any task queue
starts polling. Runtime errors (ConnectorProcessError, OrchestratorError) are
raised from inside activities and left for Temporal's retry policy to handle.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for every error raised by the worker."""


class ConfigurationError(RelayError):
    """Required settings are missing or invalid, or the host can't be resolved."""


class ProgrammingError(RelayError):
    """A caller broke a lifecycle rule, e.g. started a task queue twice."""


class HandlerConstructionError(RelayError):
    """A handler (or one of its collaborators) failed to construct."""

    def __init__(self, category: str, cause: BaseException) -> None:
        self.category = category
        self.cause = cause
        super().__init__(f"Failed to build handlers for '{category}': {cause}")


class ConnectorProcessError(RelayError):
    """A connector process exited non-zero or produced no usable output."""

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        self.exit_code = exit_code
        super().__init__(message)


class OrchestratorError(RelayError):
    """A delegated job failed or left no output in the document store."""
