"""Task store: the single shared, validated collection of tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from ulid import ULID

from taskkit.core import Database
from taskkit.core.exceptions import NotFoundError, StoreUnavailableError, UnsafeCommandError, ValidationError
from taskkit.core.logging import get_logger

from .models import Task, TaskExecution
from .repository import TaskRepository
from .schemas import TaskCreate, TaskExecutionOut, TaskOut, TaskRequest, TaskUpdate
from .validator import ensure_safe

logger = get_logger(__name__)


def _is_transient(error: DBAPIError) -> bool:
    """Decide whether a driver error is worth retrying."""
    return isinstance(error, (OperationalError, InterfaceError)) or error.connection_invalidated


def parse_task_id(value: ULID | str) -> ULID:
    """Parse a task id, treating malformed ids as unknown ones."""
    if isinstance(value, ULID):
        return value
    try:
        return ULID.from_str(value)
    except ValueError:
        raise NotFoundError(f"Task {value} not found") from None


class TaskStore:
    """Keyed task collection that refuses unsafe commands.

    Each operation runs in its own short session under one store-wide lock.
    The lock is only ever held for a single unit of database work, never
    while a command is running, so executions of any task proceed in parallel
    and their records are appended in completion order.
    """

    def __init__(self, database: Database, *, max_retries: int = 2, retry_backoff: float = 0.1) -> None:
        """Initialize task store with a database and retry policy for transient failures."""
        self.database = database
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self._lock = asyncio.Lock()

    async def _run[R](self, operation: str, work: Callable[[TaskRepository], Awaitable[R]]) -> R:
        """Run one unit of work, retrying transient driver errors a bounded number of times."""
        attempt = 0
        while True:
            try:
                async with self._lock:
                    async with self.database.session() as session:
                        return await work(TaskRepository(session))
            except DBAPIError as e:
                if not _is_transient(e):
                    raise
                if attempt >= self.max_retries:
                    logger.error("store.unavailable", operation=operation, attempts=attempt + 1, error=str(e))
                    raise StoreUnavailableError("Task store is temporarily unavailable") from e
                attempt += 1
                logger.warning("store.retrying", operation=operation, attempt=attempt, error=str(e))
                if self.retry_backoff > 0:
                    await asyncio.sleep(self.retry_backoff * attempt)

    # --------------------------------------------------------------------- Queries

    async def list(self) -> list[TaskOut]:
        """Return all tasks in creation order."""

        async def work(repo: TaskRepository) -> list[TaskOut]:
            return [TaskOut.from_entity(task) for task in await repo.find_all()]

        return await self._run("list", work)

    async def search(self, name: str) -> list[TaskOut]:
        """Return tasks whose name contains the given substring (case-sensitive)."""

        async def work(repo: TaskRepository) -> list[TaskOut]:
            return [TaskOut.from_entity(task) for task in await repo.find_by_name_containing(name)]

        return await self._run("search", work)

    async def get(self, task_id: ULID | str) -> TaskOut:
        """Return one task or raise NotFoundError."""
        id = parse_task_id(task_id)

        async def work(repo: TaskRepository) -> TaskOut:
            return TaskOut.from_entity(await self._require(repo, id))

        return await self._run("get", work)

    # --------------------------------------------------------------------- Mutations

    async def upsert(self, request: TaskRequest) -> TaskOut:
        """Create or update a task; the command is validated before anything is written."""
        self._check_fields(request)
        try:
            ensure_safe(request.command)
        except UnsafeCommandError as e:
            logger.warning("task.rejected_unsafe", name=request.name, characters=e.characters)
            raise

        match request:
            case TaskCreate():
                return await self._run("create", lambda repo: self._create(repo, request))
            case TaskUpdate():
                id = parse_task_id(request.id)
                return await self._run("update", lambda repo: self._update(repo, id, request))
            case _:
                raise TypeError(f"Unsupported task request {type(request).__name__}")

    async def delete(self, task_id: ULID | str) -> None:
        """Remove a task together with all of its executions."""
        id = parse_task_id(task_id)

        async def work(repo: TaskRepository) -> None:
            task = await self._require(repo, id)
            await repo.delete(task)
            await repo.commit()

        await self._run("delete", work)
        logger.info("task.deleted", task_id=str(id))

    async def append_execution(self, task_id: ULID | str, execution: TaskExecutionOut) -> TaskOut:
        """Append one execution record and return the updated task."""
        id = parse_task_id(task_id)
        if execution.end_time < execution.start_time:
            raise ValidationError("Execution end time precedes its start time")

        async def work(repo: TaskRepository) -> TaskOut:
            task = await self._require(repo, id)
            record = TaskExecution(
                start_time=execution.start_time,
                end_time=execution.end_time,
                output=execution.output,
                exit_code=execution.exit_code,
                timed_out=execution.timed_out,
            )
            await repo.add_execution(task, record)
            await repo.commit()
            return TaskOut.from_entity(task)

        return await self._run("append_execution", work)

    # --------------------------------------------------------------------- Helpers

    async def _create(self, repo: TaskRepository, request: TaskCreate) -> TaskOut:
        task = Task(name=request.name, owner=request.owner, command=request.command, executions=[])
        await repo.save(task)
        await repo.commit()
        logger.info("task.created", task_id=str(task.id), name=task.name)
        return TaskOut.from_entity(task)

    async def _update(self, repo: TaskRepository, id: ULID, request: TaskUpdate) -> TaskOut:
        task = await self._require(repo, id)
        task.name = request.name
        task.owner = request.owner
        task.command = request.command
        await repo.commit()
        logger.info("task.updated", task_id=str(id), name=task.name)
        return TaskOut.from_entity(task)

    @staticmethod
    async def _require(repo: TaskRepository, id: ULID) -> Task:
        task = await repo.find_by_id(id)
        if task is None:
            raise NotFoundError(f"Task {id} not found")
        return task

    @staticmethod
    def _check_fields(request: TaskRequest) -> None:
        for field in ("name", "owner", "command"):
            if not getattr(request, field).strip():
                raise ValidationError(f"Task {field} must not be empty")
