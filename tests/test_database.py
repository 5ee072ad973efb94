import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import cast

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

import taskkit.core.database as database_module
from taskkit import Database, TaskCreate, TaskStore


def test_install_sqlite_pragmas(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure SQLite connect pragmas are installed on new connections."""

    captured: dict[str, object] = {}

    def fake_listen(target: object, event_name: str, handler: object) -> None:
        captured["target"] = target
        captured["event_name"] = event_name
        captured["handler"] = handler

    fake_engine = cast(AsyncEngine, SimpleNamespace(sync_engine=object()))
    monkeypatch.setattr(database_module.event, "listen", fake_listen)

    database_module._install_sqlite_connect_pragmas(fake_engine)

    assert captured["target"] is fake_engine.sync_engine
    assert captured["event_name"] == "connect"
    handler = captured["handler"]
    assert callable(handler)

    class DummyCursor:
        def __init__(self) -> None:
            self.commands: list[str] = []
            self.closed = False

        def execute(self, sql: str) -> None:
            self.commands.append(sql)

        def close(self) -> None:
            self.closed = True

    class DummyConnection:
        def __init__(self) -> None:
            self._cursor = DummyCursor()

        def cursor(self) -> DummyCursor:
            return self._cursor

    connection = DummyConnection()
    handler(connection, None)

    assert connection._cursor.commands == [
        "PRAGMA foreign_keys=ON;",
        "PRAGMA synchronous=NORMAL;",
        "PRAGMA busy_timeout=30000;",
        "PRAGMA temp_store=MEMORY;",
    ]
    assert connection._cursor.closed is True


async def table_names(db: Database) -> list[str]:
    async with db.session() as session:
        result = await session.execute(text("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"))
        return [row[0] for row in result.fetchall()]


class TestDatabase:
    """Tests for the Database class."""

    async def test_init_creates_task_tables(self) -> None:
        """init() creates the task and execution tables."""
        db = Database("sqlite+aiosqlite:///:memory:")
        await db.init()

        tables = await table_names(db)
        assert "tasks" in tables
        assert "task_executions" in tables

        await db.dispose()

    async def test_init_is_idempotent(self) -> None:
        """Calling init() twice keeps existing rows."""
        db = Database("sqlite+aiosqlite:///:memory:")
        await db.init()
        await TaskStore(db).upsert(TaskCreate(name="a", owner="o", command="echo a"))

        await db.init()

        assert len(await TaskStore(db).list()) == 1
        await db.dispose()

    async def test_foreign_keys_enforced(self) -> None:
        """The connect pragmas are active on live connections."""
        db = Database("sqlite+aiosqlite:///:memory:")
        await db.init()

        async with db.session() as session:
            result = await session.execute(text("PRAGMA foreign_keys"))
            assert result.scalar() == 1

        await db.dispose()

    async def test_echo_parameter(self) -> None:
        """Test that echo parameter is passed to engine."""
        db_echo = Database("sqlite+aiosqlite:///:memory:", echo=True)
        db_no_echo = Database("sqlite+aiosqlite:///:memory:", echo=False)

        assert db_echo.engine.echo is True
        assert db_no_echo.engine.echo is False

        await db_echo.dispose()
        await db_no_echo.dispose()

    async def test_session_factory_configuration(self) -> None:
        """Sessions keep loaded attributes after commit."""
        db = Database("sqlite+aiosqlite:///:memory:")

        assert db.url == "sqlite+aiosqlite:///:memory:"
        assert db._session_factory.kw.get("expire_on_commit") is False

        await db.dispose()

    async def test_file_database_persists_across_instances(self) -> None:
        """A file-backed database uses WAL and keeps tasks between restarts."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            url = f"sqlite+aiosqlite:///{Path(tmp_dir) / 'tasks.db'}"

            first = Database(url)
            await first.init()
            async with first.session() as session:
                result = await session.execute(text("PRAGMA journal_mode"))
                assert result.scalar() == "wal"
            created = await TaskStore(first).upsert(TaskCreate(name="kept", owner="o", command="echo kept"))
            await first.dispose()

            second = Database(url)
            await second.init()
            tasks = await TaskStore(second).list()
            await second.dispose()

            assert [task.id for task in tasks] == [created.id]
