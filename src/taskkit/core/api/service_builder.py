"""Fluent builder assembling a FastAPI service around one database."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable, List, Self

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel, ConfigDict
from sqlalchemy import text

from taskkit.core import Database
from taskkit.core.logging import configure_logging, get_logger

from .dependencies import get_database, set_database
from .middleware import add_error_handlers, add_logging_middleware
from .routers import HealthRouter
from .routers.health import HealthCheck, HealthState

logger = get_logger(__name__)

Hook = Callable[[FastAPI], Awaitable[None]]


class ServiceInfo(BaseModel):
    """Service metadata published in the OpenAPI document and at /api/v1/info."""

    display_name: str
    version: str = "1.0.0"
    summary: str | None = None
    description: str | None = None
    contact: dict[str, str] | None = None
    license_info: dict[str, str] | None = None

    model_config = ConfigDict(extra="forbid")


class BaseServiceBuilder:
    """Builds the app shell: database lifecycle, error mapping, logging, health and info."""

    def __init__(self, *, info: ServiceInfo, database_url: str = "sqlite+aiosqlite:///:memory:") -> None:
        """Initialize builder with service metadata and the database URL."""
        self.info = info
        self._database_url = database_url
        self._logging: tuple[str, str] | None = None
        self._health_options: tuple[str, List[str], dict[str, HealthCheck]] | None = None
        self._custom_routers: List[APIRouter] = []
        self._startup_hooks: List[Hook] = []
        self._shutdown_hooks: List[Hook] = []

    # --------------------------------------------------------------------- Fluent configuration

    def with_database(self, url: str) -> Self:
        """Use the given SQLAlchemy async URL."""
        self._database_url = url
        return self

    def with_logging(self, enabled: bool = True, *, level: str = "INFO", fmt: str = "console") -> Self:
        """Configure structlog at startup and log every request with its id."""
        self._logging = (level, fmt) if enabled else None
        return self

    def with_health(
        self,
        *,
        prefix: str = "/api/v1/health",
        tags: List[str] | None = None,
        checks: dict[str, HealthCheck] | None = None,
        include_database_check: bool = True,
    ) -> Self:
        """Expose aggregated health checks; a database check is added by default."""
        health_checks = dict(checks or {})
        if include_database_check:
            health_checks["database"] = self._check_database
        self._health_options = (prefix, list(tags) if tags is not None else ["health"], health_checks)
        return self

    def include_router(self, router: APIRouter) -> Self:
        self._custom_routers.append(router)
        return self

    def on_startup(self, hook: Hook) -> Self:
        """Run hook after the database and modules are ready."""
        self._startup_hooks.append(hook)
        return self

    def on_shutdown(self, hook: Hook) -> Self:
        """Run hook before modules are stopped."""
        self._shutdown_hooks.append(hook)
        return self

    # --------------------------------------------------------------------- Build mechanics

    def build(self) -> FastAPI:
        """Validate the configuration and assemble the application."""
        self._validate_configuration()
        self._validate_module_configuration()

        info = self.info
        app = FastAPI(
            title=info.display_name,
            summary=info.summary,
            description=info.description or "",
            version=info.version,
            contact=info.contact,
            license_info=info.license_info,
            lifespan=self._build_lifespan(),
        )
        add_error_handlers(app)
        if self._logging is not None:
            add_logging_middleware(app)

        if self._health_options:
            prefix, tags, checks = self._health_options
            app.include_router(HealthRouter.create(prefix=prefix, tags=tags, checks=checks))

        self._register_module_routers(app)
        for router in self._custom_routers:
            app.include_router(router)

        @app.get("/api/v1/info", include_in_schema=False, response_model=ServiceInfo)
        async def get_info() -> ServiceInfo:
            return info

        return app

    # --------------------------------------------------------------------- Extension points

    def _validate_module_configuration(self) -> None:
        """Hook for subclasses to reject inconsistent module options."""

    def _register_module_routers(self, app: FastAPI) -> None:
        """Hook for subclasses to mount their routers."""

    async def _start_modules(self, app: FastAPI, database: Database) -> None:
        """Hook for subclasses to create services once the database is ready."""

    async def _stop_modules(self, app: FastAPI) -> None:
        """Hook for subclasses to release services at shutdown."""

    # --------------------------------------------------------------------- Core helpers

    def _validate_configuration(self) -> None:
        if not self._health_options:
            return
        _, _, checks = self._health_options
        for name in checks:
            if not name.replace("_", "").replace("-", "").isalnum():
                raise ValueError(
                    f"Health check name '{name}' contains invalid characters. "
                    "Only alphanumeric characters, underscores, and hyphens are allowed."
                )

    def _build_lifespan(self) -> Callable[[FastAPI], AsyncContextManager[None]]:
        database_url = self._database_url
        logging_options = self._logging
        startup_hooks = list(self._startup_hooks)
        shutdown_hooks = list(self._shutdown_hooks)
        service = self.info.display_name

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            if logging_options is not None:
                configure_logging(*logging_options)

            database = Database(database_url)
            await database.init()
            set_database(database)
            app.state.database = database

            await self._start_modules(app, database)
            logger.info("service.started", service=service, version=self.info.version)
            for hook in startup_hooks:
                await hook(app)
            try:
                yield
            finally:
                for hook in shutdown_hooks:
                    await hook(app)
                await self._stop_modules(app)
                app.state.database = None
                await database.dispose()
                logger.info("service.stopped", service=service)

        return lifespan

    @staticmethod
    async def _check_database() -> tuple[HealthState, str | None]:
        """Round-trip a trivial query; failures are reported by the health router."""
        async with get_database().session() as session:
            await session.execute(text("SELECT 1"))
        return (HealthState.HEALTHY, None)

    # --------------------------------------------------------------------- Convenience

    @classmethod
    def create(cls, *, info: ServiceInfo, **kwargs: Any) -> FastAPI:
        """Create and build a FastAPI application in one call."""
        return cls(info=info, **kwargs).build()
