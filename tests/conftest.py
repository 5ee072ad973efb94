"""Test configuration and shared fixtures."""

from __future__ import annotations

import shlex
import sys
from collections.abc import AsyncIterator

import pytest

from taskkit import Database, ExecutionEngine, TaskStore

PYTHON = shlex.quote(sys.executable)


def python_command(code: str) -> str:
    """Build a command running a Python snippet with the test interpreter."""
    return f'{PYTHON} -u -c "{code}"'


@pytest.fixture
async def database() -> AsyncIterator[Database]:
    """Initialized in-memory database."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.init()
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture
def store(database: Database) -> TaskStore:
    """Task store without retry backoff."""
    return TaskStore(database, max_retries=2, retry_backoff=0.0)


@pytest.fixture
def engine(store: TaskStore) -> ExecutionEngine:
    """Execution engine with short limits suited to tests."""
    return ExecutionEngine(store, timeout=10.0, max_output_chars=10_000, max_concurrency=4)
