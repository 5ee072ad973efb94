"""Tests for ServiceBuilder functionality."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from taskkit import ExecutionEngine, TaskkitSettings
from taskkit.api import ServiceBuilder, ServiceInfo, get_task_store, set_execution_engine
from taskkit.core.api.routers.health import HealthState


@pytest.fixture
def service_info() -> ServiceInfo:
    """Provide basic service info for tests."""
    return ServiceInfo(
        display_name="Test Service",
        version="1.0.0",
        summary="Test service for unit tests",
    )


def test_service_builder_creates_basic_app(service_info: ServiceInfo) -> None:
    """Test that ServiceBuilder creates a minimal FastAPI app."""
    app = ServiceBuilder.create(info=service_info)

    assert isinstance(app, FastAPI)
    assert app.title == "Test Service"
    assert app.version == "1.0.0"
    assert app.summary == "Test service for unit tests"


def test_service_builder_with_health_endpoint(service_info: ServiceInfo) -> None:
    """Test that with_health() adds health endpoint with a database check."""
    app = ServiceBuilder(info=service_info).with_health().build()

    with TestClient(app) as client:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["state"] == "healthy"


def test_service_builder_with_tasks_registers_routes(service_info: ServiceInfo) -> None:
    """with_tasks() wires the store and engine into the task routes."""
    app = ServiceBuilder(info=service_info).with_health().with_tasks().build()

    with TestClient(app) as client:
        assert client.get("/tasks").json() == []

        created = client.put("/tasks", json={"name": "hello", "owner": "o", "command": "echo hello"})
        assert created.status_code == 201

        executed = client.put(f"/tasks/{created.json()['id']}/executions")
        assert executed.status_code == 200
        assert "hello" in executed.json()["taskExecutions"][0]["output"]

        health = client.get("/api/v1/health").json()
        assert health["checks"]["executions"] == {"state": "healthy", "message": "0/4 execution slots in use"}


def test_service_builder_custom_task_prefix(service_info: ServiceInfo) -> None:
    app = ServiceBuilder(info=service_info).with_tasks(prefix="/api/v1/tasks").build()

    with TestClient(app) as client:
        assert client.get("/api/v1/tasks").status_code == 200
        assert client.get("/tasks").status_code == 404


def test_service_builder_releases_task_services_on_shutdown(service_info: ServiceInfo) -> None:
    """Store and engine are only available while the app is running."""
    app = ServiceBuilder(info=service_info).with_tasks().build()

    with TestClient(app):
        assert app.state.task_store is get_task_store()

    assert app.state.task_store is None
    with pytest.raises(RuntimeError, match="Task store not initialized"):
        get_task_store()


@pytest.mark.parametrize(
    ("options", "message"),
    [
        ({"timeout": 0}, "timeout must be positive"),
        ({"max_concurrency": 0}, "concurrency must be at least 1"),
        ({"max_output_chars": 0}, "output limit must be at least 1"),
    ],
)
def test_with_tasks_rejects_invalid_limits(service_info: ServiceInfo, options: dict, message: str) -> None:
    """Invalid execution limits fail at build time."""
    with pytest.raises(ValueError, match=message):
        ServiceBuilder(info=service_info).with_tasks(**options).build()


async def test_execution_health_check_degrades_when_slots_are_full() -> None:
    """The executions check reports degraded while no slot is free."""
    engine = Mock(spec=ExecutionEngine)
    engine.max_concurrency = 2
    check = ServiceBuilder._create_execution_health_check()

    try:
        engine.active_executions = 1
        set_execution_engine(engine)
        assert await check() == (HealthState.HEALTHY, "1/2 execution slots in use")

        engine.active_executions = 2
        assert await check() == (HealthState.DEGRADED, "2/2 execution slots in use")
    finally:
        set_execution_engine(None)


def test_service_builder_invalid_health_check_name(service_info: ServiceInfo) -> None:
    """Test that invalid health check names are rejected."""

    async def check() -> tuple[HealthState, str | None]:
        return (HealthState.HEALTHY, None)

    with pytest.raises(ValueError, match="invalid characters"):
        ServiceBuilder(info=service_info).with_health(checks={"invalid name!": check}).build()


def test_service_builder_custom_router_integration(service_info: ServiceInfo) -> None:
    """Test including custom routers."""
    custom_router = APIRouter(prefix="/custom", tags=["custom"])

    @custom_router.get("/test")
    async def custom_endpoint() -> dict[str, str]:
        return {"message": "custom"}

    app = ServiceBuilder(info=service_info).include_router(custom_router).build()

    client = TestClient(app)
    response = client.get("/custom/test")

    assert response.status_code == 200
    assert response.json() == {"message": "custom"}


def test_service_builder_info_endpoint(service_info: ServiceInfo) -> None:
    """Test that /api/v1/info endpoint is created."""
    app = ServiceBuilder.create(info=service_info)

    client = TestClient(app)
    response = client.get("/api/v1/info")

    assert response.status_code == 200
    data = response.json()
    assert data["display_name"] == "Test Service"
    assert data["version"] == "1.0.0"


def test_service_builder_startup_and_shutdown_hooks(service_info: ServiceInfo) -> None:
    """Test that lifecycle hooks run in order."""
    calls: list[str] = []

    async def startup_hook(app: FastAPI) -> None:
        calls.append("startup")

    async def shutdown_hook(app: FastAPI) -> None:
        calls.append("shutdown")

    app = ServiceBuilder(info=service_info).on_startup(startup_hook).on_shutdown(shutdown_hook).build()

    with TestClient(app):
        assert calls == ["startup"]

    assert calls == ["startup", "shutdown"]


def test_service_builder_logging_adds_request_id(service_info: ServiceInfo) -> None:
    """with_logging() installs the request logging middleware."""
    app = ServiceBuilder(info=service_info).with_logging().build()

    with TestClient(app) as client:
        response = client.get("/api/v1/info", headers={"X-Request-ID": "abc"})

    assert response.headers["X-Request-ID"] == "abc"


def test_from_settings_applies_limits() -> None:
    """from_settings() carries execution limits into the running engine."""
    settings = TaskkitSettings(execution_timeout=5.0, max_concurrent_executions=2, max_output_chars=500)
    app = ServiceBuilder.from_settings(settings).build()

    with TestClient(app) as client:
        engine = app.state.execution_engine
        assert (engine.timeout, engine.max_concurrency, engine.max_output_chars) == (5.0, 2, 500)
        assert client.get("/api/v1/health").json()["status"] == "healthy"


def test_service_info_contact_and_license_reach_openapi() -> None:
    """Contact and license metadata are published in the OpenAPI document."""
    info = ServiceInfo(
        display_name="Test Service",
        contact={"name": "Ops", "email": "ops@example.com"},
        license_info={"name": "MIT"},
    )
    app = ServiceBuilder.create(info=info)

    schema = TestClient(app).get("/openapi.json").json()

    assert schema["info"]["contact"] == {"name": "Ops", "email": "ops@example.com"}
    assert schema["info"]["license"] == {"name": "MIT"}


def test_with_health_leaves_caller_checks_untouched(service_info: ServiceInfo) -> None:
    """Built-in checks are added to a copy of the caller's mapping."""

    async def check_queue() -> tuple[HealthState, str | None]:
        return (HealthState.HEALTHY, None)

    checks = {"queue": check_queue}
    app = ServiceBuilder(info=service_info).with_health(checks=checks).with_tasks().build()

    assert checks == {"queue": check_queue}
    with TestClient(app) as client:
        assert set(client.get("/api/v1/health").json()["checks"]) == {"queue", "database", "executions"}
