"""Job and connection persistence over SQLAlchemy Core.

Every method opens its own transaction (`engine.begin()`), so instances are
safe to share between concurrently running activities.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncEngine

from relay_job_persistence.tables import attempts, connection_state, connections, jobs


class JobStatus:
    PENDING = "pending"
    RUNNING = "running"
    INCOMPLETE = "incomplete"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobPersistence:
    """Creates jobs and attempts and records how they end."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def create_job(self, connection_id: str) -> str:
        now = datetime.now(UTC)
        async with self.engine.begin() as conn:
            result = await conn.execute(
                insert(jobs)
                .values(
                    connection_id=connection_id,
                    status=JobStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                )
                .returning(jobs.c.id)
            )
            return str(result.scalar())

    async def get_job(self, job_id: str) -> dict[str, Any] | None:
        async with self.engine.begin() as conn:
            result = await conn.execute(select(jobs).where(jobs.c.id == int(job_id)))
            row = result.mappings().first()
            return dict(row) if row else None

    async def create_attempt(self, job_id: str, log_path: str) -> int:
        """Add the next attempt to a job and mark the job running.

        Attempt numbers start at 0 and increase by one per attempt.
        """
        now = datetime.now(UTC)
        async with self.engine.begin() as conn:
            count = await conn.execute(
                select(func.count()).select_from(attempts).where(attempts.c.job_id == int(job_id))
            )
            attempt_number = int(count.scalar() or 0)
            await conn.execute(
                insert(attempts).values(
                    job_id=int(job_id),
                    attempt_number=attempt_number,
                    log_path=log_path,
                    status=JobStatus.RUNNING,
                    created_at=now,
                )
            )
            await conn.execute(
                update(jobs)
                .where(jobs.c.id == int(job_id))
                .values(status=JobStatus.RUNNING, updated_at=now)
            )
            return attempt_number

    async def _end_attempt(
        self,
        job_id: str,
        attempt_id: int | None,
        attempt_status: str,
        job_status: str,
        output: dict[str, Any] | None = None,
        reason: str | None = None,
    ) -> None:
        now = datetime.now(UTC)
        async with self.engine.begin() as conn:
            if attempt_id is not None:
                await conn.execute(
                    update(attempts)
                    .where(attempts.c.job_id == int(job_id))
                    .where(attempts.c.attempt_number == attempt_id)
                    .values(status=attempt_status, output=output, failure_reason=reason, ended_at=now)
                )
            await conn.execute(
                update(jobs)
                .where(jobs.c.id == int(job_id))
                .values(status=job_status, failure_reason=reason, updated_at=now)
            )

    async def succeed_attempt(self, job_id: str, attempt_id: int, output: dict[str, Any]) -> None:
        await self._end_attempt(
            job_id, attempt_id, JobStatus.SUCCEEDED, JobStatus.SUCCEEDED, output=output
        )

    async def fail_attempt(self, job_id: str, attempt_id: int | None, reason: str) -> None:
        """Fail one attempt; the job stays retryable ('incomplete')."""
        await self._end_attempt(
            job_id, attempt_id, JobStatus.FAILED, JobStatus.INCOMPLETE, reason=reason
        )

    async def fail_job(self, job_id: str, reason: str) -> None:
        await self._end_attempt(job_id, None, JobStatus.FAILED, JobStatus.FAILED, reason=reason)

    async def cancel_job(self, job_id: str, attempt_id: int | None = None) -> None:
        await self._end_attempt(job_id, attempt_id, JobStatus.CANCELLED, JobStatus.CANCELLED)

    async def get_last_job_created_at(self, connection_id: str) -> datetime | None:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                select(func.max(jobs.c.created_at)).where(jobs.c.connection_id == connection_id)
            )
            return result.scalar()


class ConfigRepository:
    """Reads connection configuration and persists connection state."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def get_connection(self, connection_id: str) -> dict[str, Any] | None:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                select(connections).where(connections.c.id == connection_id)
            )
            row = result.mappings().first()
            return dict(row) if row else None

    async def get_state(self, connection_id: str) -> dict[str, Any] | None:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                select(connection_state.c.state).where(
                    connection_state.c.connection_id == connection_id
                )
            )
            return result.scalar()

    async def update_connection_state(self, connection_id: str, state: dict[str, Any]) -> None:
        now = datetime.now(UTC)
        stmt = pg_insert(connection_state).values(
            connection_id=connection_id, state=state, updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[connection_state.c.connection_id],
            set_={"state": state, "updated_at": now},
        )
        async with self.engine.begin() as conn:
            await conn.execute(stmt)

    async def deprecate_connection(self, connection_id: str) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(
                update(connections)
                .where(connections.c.id == connection_id)
                .values(status="deprecated", updated_at=datetime.now(UTC))
            )
