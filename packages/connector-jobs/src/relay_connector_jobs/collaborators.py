"""Interfaces of the persistence collaborators handlers depend on.

relay_job_persistence provides the database-backed implementations; tests
pass in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


class JobPersistence(Protocol):
    async def create_job(self, connection_id: str) -> str: ...

    async def get_job(self, job_id: str) -> dict[str, Any] | None: ...

    async def create_attempt(self, job_id: str, log_path: str) -> int: ...

    async def succeed_attempt(self, job_id: str, attempt_id: int, output: dict[str, Any]) -> None: ...

    async def fail_attempt(self, job_id: str, attempt_id: int | None, reason: str) -> None: ...

    async def fail_job(self, job_id: str, reason: str) -> None: ...

    async def cancel_job(self, job_id: str, attempt_id: int | None = None) -> None: ...

    async def get_last_job_created_at(self, connection_id: str) -> datetime | None: ...


class ConfigRepository(Protocol):
    async def get_connection(self, connection_id: str) -> dict[str, Any] | None: ...

    async def get_state(self, connection_id: str) -> dict[str, Any] | None: ...

    async def update_connection_state(self, connection_id: str, state: dict[str, Any]) -> None: ...

    async def deprecate_connection(self, connection_id: str) -> None: ...
