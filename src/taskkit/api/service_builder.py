"""Service builder with task module integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Self

from fastapi import FastAPI

from taskkit.core import Database, TaskkitSettings
from taskkit.core.api.routers.health import HealthCheck, HealthState
from taskkit.core.api.service_builder import BaseServiceBuilder, ServiceInfo
from taskkit.core.logging import get_logger
from taskkit.modules.task import ExecutionEngine, TaskRouter, TaskStore

from .dependencies import (
    get_execution_engine,
    get_task_store,
    set_execution_engine,
    set_task_store,
)

logger = get_logger(__name__)


@dataclass(slots=True)
class _TaskOptions:
    """Internal task options for ServiceBuilder."""

    prefix: str = "/tasks"
    tags: List[str] = field(default_factory=lambda: ["Tasks"])
    timeout: float = 60.0
    max_output_chars: int = 100_000
    max_concurrency: int = 4
    store_max_retries: int = 2
    store_retry_backoff: float = 0.1


class ServiceBuilder(BaseServiceBuilder):
    """Service builder with integrated task store and execution engine."""

    def __init__(self, **kwargs: Any) -> None:
        """Initialize service builder with module-specific state."""
        super().__init__(**kwargs)
        self._task_options: _TaskOptions | None = None

    # --------------------------------------------------------------------- Module-specific fluent methods

    def with_tasks(
        self,
        *,
        prefix: str = "/tasks",
        tags: List[str] | None = None,
        timeout: float = 60.0,
        max_output_chars: int = 100_000,
        max_concurrency: int = 4,
        store_max_retries: int = 2,
        store_retry_backoff: float = 0.1,
    ) -> Self:
        """Enable task CRUD, search and execution endpoints."""
        self._task_options = _TaskOptions(
            prefix=prefix,
            tags=list(tags) if tags else ["Tasks"],
            timeout=timeout,
            max_output_chars=max_output_chars,
            max_concurrency=max_concurrency,
            store_max_retries=store_max_retries,
            store_retry_backoff=store_retry_backoff,
        )
        return self

    # --------------------------------------------------------------------- Extension point implementations

    def _validate_module_configuration(self) -> None:
        """Validate module-specific configuration."""
        options = self._task_options
        if options is None:
            return

        if options.timeout <= 0:
            raise ValueError("Task execution timeout must be positive.")
        if options.max_concurrency < 1:
            raise ValueError("Task execution concurrency must be at least 1.")
        if options.max_output_chars < 1:
            raise ValueError("Task output limit must be at least 1 character.")

        if self._health_options:
            prefix, tags, checks = self._health_options
            if "executions" not in checks:
                checks = {**checks, "executions": self._create_execution_health_check()}
                self._health_options = (prefix, tags, checks)

    def _register_module_routers(self, app: FastAPI) -> None:
        """Register the task router."""
        if self._task_options:
            task_options = self._task_options
            task_router = TaskRouter.create(
                prefix=task_options.prefix,
                tags=task_options.tags,
                store_factory=get_task_store,
                engine_factory=get_execution_engine,
            )
            app.include_router(task_router)

    async def _start_modules(self, app: FastAPI, database: Database) -> None:
        """Create the task store and execution engine on top of the database."""
        options = self._task_options
        if options is None:
            return

        store = TaskStore(
            database,
            max_retries=options.store_max_retries,
            retry_backoff=options.store_retry_backoff,
        )
        engine = ExecutionEngine(
            store,
            timeout=options.timeout,
            max_output_chars=options.max_output_chars,
            max_concurrency=options.max_concurrency,
        )
        set_task_store(store)
        set_execution_engine(engine)
        app.state.task_store = store
        app.state.execution_engine = engine
        logger.info(
            "tasks.enabled",
            prefix=options.prefix,
            timeout=options.timeout,
            max_concurrency=options.max_concurrency,
        )

    async def _stop_modules(self, app: FastAPI) -> None:
        """Release the task store and execution engine."""
        if self._task_options is None:
            return
        set_execution_engine(None)
        set_task_store(None)
        app.state.execution_engine = None
        app.state.task_store = None

    # --------------------------------------------------------------------- Helpers

    @staticmethod
    def _create_execution_health_check() -> HealthCheck:
        """Report degraded health while every execution slot is taken."""

        async def check_executions() -> tuple[HealthState, str | None]:
            engine = get_execution_engine()
            message = f"{engine.active_executions}/{engine.max_concurrency} execution slots in use"
            if engine.active_executions >= engine.max_concurrency:
                return (HealthState.DEGRADED, message)
            return (HealthState.HEALTHY, message)

        return check_executions

    # --------------------------------------------------------------------- Convenience

    @classmethod
    def from_settings(cls, settings: TaskkitSettings, *, info: ServiceInfo | None = None) -> Self:
        """Create a builder with health, logging and tasks configured from settings."""
        builder = cls(info=info or ServiceInfo(display_name="Task Execution Service"))
        return (
            builder.with_database(settings.database_url)
            .with_logging(level=settings.log_level, fmt=settings.log_format)
            .with_health()
            .with_tasks(
                timeout=settings.execution_timeout,
                max_output_chars=settings.max_output_chars,
                max_concurrency=settings.max_concurrent_executions,
                store_max_retries=settings.store_max_retries,
                store_retry_backoff=settings.store_retry_backoff,
            )
        )
