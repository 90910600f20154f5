"""Test fixtures for job persistence.

MockEngine mimics `AsyncEngine.begin()`: each statement executed on the
connection is recorded (compiled against PostgreSQL) and answered with the
next canned MockResult, so tests can assert on both.
"""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.dialects import postgresql


class MockResult:
    def __init__(self, scalar: Any = None, rows: list[dict[str, Any]] | None = None) -> None:
        self._scalar = scalar
        self._rows = rows or []

    def scalar(self) -> Any:
        return self._scalar

    def mappings(self) -> MockResult:
        return self

    def first(self) -> dict[str, Any] | None:
        return self._rows[0] if self._rows else None


class MockConnection:
    def __init__(self, engine: MockEngine) -> None:
        self._engine = engine

    async def execute(self, statement: Any) -> MockResult:
        compiled = statement.compile(dialect=postgresql.dialect())
        self._engine.executed.append((str(compiled), dict(compiled.params)))
        if self._engine.results:
            return self._engine.results.pop(0)
        return MockResult()


class MockBegin:
    def __init__(self, engine: MockEngine) -> None:
        self._engine = engine

    async def __aenter__(self) -> MockConnection:
        return MockConnection(self._engine)

    async def __aexit__(self, *exc: object) -> None:
        self._engine.transactions += 1


class MockEngine:
    def __init__(self) -> None:
        self.executed: list[tuple[str, dict[str, Any]]] = []
        self.results: list[MockResult] = []
        self.transactions = 0

    def queue(self, scalar: Any = None, rows: list[dict[str, Any]] | None = None) -> None:
        """Answer the next executed statement with this result."""
        self.results.append(MockResult(scalar=scalar, rows=rows))

    def begin(self) -> MockBegin:
        return MockBegin(self)


@pytest.fixture
def engine() -> MockEngine:
    return MockEngine()
