"""Default task execution service and the `taskkit` console entry point."""

from __future__ import annotations

import argparse

from fastapi import FastAPI

from taskkit.api import ServiceBuilder, ServiceInfo, run_app
from taskkit.core import TaskkitSettings, get_settings

INFO = ServiceInfo(
    display_name="Task Execution Service",
    summary="Store shell-command tasks, run them safely and keep their execution history",
)


def create_app(settings: TaskkitSettings | None = None) -> FastAPI:
    """Build the service from settings (environment by default)."""
    return ServiceBuilder.from_settings(settings or get_settings(), info=INFO).build()


def main(argv: list[str] | None = None) -> None:
    """Run the service with uvicorn."""
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="taskkit", description=INFO.summary)
    parser.add_argument("--host", default=settings.host, help="Interface to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on (default: %(default)s)")
    parser.add_argument("--database-url", default=settings.database_url, help="SQLAlchemy async database URL")
    args = parser.parse_args(argv)

    settings = settings.model_copy(update={"database_url": args.database_url})
    run_app(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
