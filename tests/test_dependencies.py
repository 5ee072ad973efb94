"""Tests for dependency injection utilities."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

import taskkit.core.api.dependencies as deps
from taskkit import Database, ExecutionEngine, TaskStore
from taskkit.api import get_execution_engine, get_task_store, set_execution_engine, set_task_store
from taskkit.core.api.dependencies import get_database, set_database


def test_get_database_uninitialized() -> None:
    """Test get_database raises error when database is not initialized."""
    original_db = deps._database
    deps._database = None

    try:
        with pytest.raises(RuntimeError, match="Database not initialized"):
            get_database()
    finally:
        deps._database = original_db


async def test_set_and_get_database() -> None:
    """Test setting and getting the database instance."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.init()
    original_db = deps._database

    try:
        set_database(db)
        assert get_database() is db
    finally:
        deps._database = original_db
        await db.dispose()


def test_task_store_dependency() -> None:
    """The task store getter fails until a store is set."""
    with pytest.raises(RuntimeError, match="Task store not initialized"):
        get_task_store()

    store = Mock(spec=TaskStore)
    try:
        set_task_store(store)
        assert get_task_store() is store
    finally:
        set_task_store(None)


def test_execution_engine_dependency() -> None:
    """The execution engine getter fails until an engine is set."""
    with pytest.raises(RuntimeError, match="Execution engine not initialized"):
        get_execution_engine()

    engine = Mock(spec=ExecutionEngine)
    try:
        set_execution_engine(engine)
        assert get_execution_engine() is engine
    finally:
        set_execution_engine(None)
