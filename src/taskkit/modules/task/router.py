"""Task REST router: list, search, upsert, delete and execute."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from fastapi import Depends, Query, Response, status

from taskkit.core.api.router import Router
from taskkit.core.exceptions import NotFoundError

from .engine import ExecutionEngine
from .schemas import TaskCreate, TaskIn, TaskOut
from .store import TaskStore


class TaskRouter(Router):
    """Router exposing the task store and execution engine."""

    def __init__(
        self,
        prefix: str,
        tags: Sequence[str],
        store_factory: Callable[..., TaskStore],
        engine_factory: Callable[..., ExecutionEngine],
        **kwargs: Any,
    ) -> None:
        """Initialize task router with store and engine dependency factories."""
        self.store_factory = store_factory
        self.engine_factory = engine_factory
        super().__init__(prefix=prefix, tags=tags, **kwargs)

    def _register_routes(self) -> None:
        """Register task routes; literal paths come before /{task_id}."""
        store_dependency = Depends(self.store_factory)
        engine_dependency = Depends(self.engine_factory)

        @self.router.get("", summary="List tasks", response_model=list[TaskOut])
        async def list_tasks(store: TaskStore = store_dependency) -> list[TaskOut]:
            return await store.list()

        @self.router.get(
            "/search",
            summary="Search tasks by name",
            response_model=list[TaskOut],
            responses={404: {"description": "No task name contains the given text"}},
        )
        async def search_tasks(
            name: str = Query(description="Case-sensitive substring of the task name"),
            store: TaskStore = store_dependency,
        ) -> list[TaskOut]:
            tasks = await store.search(name)
            if not tasks:
                raise NotFoundError(f"No tasks found with name containing '{name}'")
            return tasks

        @self.router.get("/{task_id}", summary="Get task by ID", response_model=TaskOut)
        async def get_task(task_id: str, store: TaskStore = store_dependency) -> TaskOut:
            return await store.get(task_id)

        @self.router.put(
            "",
            summary="Create or update task",
            response_model=TaskOut,
            responses={
                201: {"description": "Task created", "model": TaskOut},
                400: {"description": "Unsafe command", "content": {"text/plain": {}}},
                404: {"description": "No task with the given id"},
            },
        )
        async def upsert_task(body: TaskIn, response: Response, store: TaskStore = store_dependency) -> TaskOut:
            request = body.to_request()
            task = await store.upsert(request)
            if isinstance(request, TaskCreate):
                response.status_code = status.HTTP_201_CREATED
            return task

        @self.router.delete("/{task_id}", summary="Delete task", status_code=status.HTTP_204_NO_CONTENT)
        async def delete_task(task_id: str, store: TaskStore = store_dependency) -> Response:
            await store.delete(task_id)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        @self.router.put(
            "/{task_id}/executions",
            summary="Execute task",
            description="Run the task's command to completion and return the task with its new execution",
            response_model=TaskOut,
            responses={
                400: {"description": "Unsafe command", "content": {"text/plain": {}}},
                404: {"description": "No task with the given id"},
                500: {"description": "Command could not be launched"},
            },
        )
        async def execute_task(task_id: str, engine: ExecutionEngine = engine_dependency) -> TaskOut:
            return await engine.execute_task(task_id)
