"""Task repository for database access and querying."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from taskkit.core.repository import BaseRepository

from .models import Task, TaskExecution


def name_search_statement(fragment: str) -> Select[tuple[Task]]:
    """Select candidate tasks whose name contains fragment, with LIKE wildcards escaped."""
    return select(Task).where(Task.name.contains(fragment, autoescape=True)).order_by(Task.created_at, Task.id)


class TaskRepository(BaseRepository[Task, ULID]):
    """Repository for Task entities and their execution records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task repository with database session."""
        super().__init__(session, Task)

    async def find_all(self) -> Sequence[Task]:
        """Return all tasks in creation order."""
        result = await self.s.scalars(select(Task).order_by(Task.created_at, Task.id))
        return result.all()

    async def find_by_name_containing(self, fragment: str) -> Sequence[Task]:
        """Return tasks whose name contains fragment, case-sensitively."""
        result = await self.s.scalars(name_search_statement(fragment))
        # LIKE folds case on some backends
        return [task for task in result.all() if fragment in task.name]

    async def add_execution(self, task: Task, execution: TaskExecution) -> None:
        """Append an execution record to the task's history."""
        task.executions.append(execution)
        await self.s.flush()
