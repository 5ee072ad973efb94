"""FastAPI service demonstrating task storage, validation and execution."""

from __future__ import annotations

from fastapi import FastAPI

from taskkit import TaskCreate, TaskStore
from taskkit.api import ServiceBuilder, ServiceInfo

SEED_TASKS = [
    # Simple directory listing
    TaskCreate(name="list tmp", owner="ops", command="ls -la /tmp"),
    # Echo command with output
    TaskCreate(name="echo greeting", owner="alice", command='echo "Hello from task execution!"'),
    # Date command
    TaskCreate(name="current date", owner="bob", command="date -u"),
    # Interpreter version
    TaskCreate(name="python version", owner="alice", command="python3 --version"),
    # Non-zero exit is recorded, not treated as a failure
    TaskCreate(name="missing directory", owner="ops", command="ls /nonexistent/directory"),
]


async def seed_example_tasks(app: FastAPI) -> None:
    """Seed example tasks into an empty store."""
    store: TaskStore | None = getattr(app.state, "task_store", None)
    if store is None:
        return

    if await store.list():
        return  # Skip seeding if tasks already exist

    for request in SEED_TASKS:
        await store.upsert(request)


info = ServiceInfo(
    display_name="Task Execution Service",
    summary="Example service storing shell-command tasks and recording their executions",
    version="1.0.0",
)

app = (
    ServiceBuilder(info=info)
    .with_logging()
    .with_health()
    .with_tasks(max_concurrency=3, timeout=30.0)  # Limit concurrent task execution
    .on_startup(seed_example_tasks)
    .build()
)

if __name__ == "__main__":
    from taskkit.api import run_app

    run_app("task_execution_api:app")
