"""FastAPI routers and related presentation logic."""

from taskkit.core.api import Router
from taskkit.core.api.middleware import (
    add_error_handlers,
    add_logging_middleware,
    domain_error_handler,
    store_unavailable_handler,
    unsafe_command_handler,
)
from taskkit.core.api.routers import HealthRouter, HealthState, HealthStatus
from taskkit.core.api.service_builder import ServiceInfo
from taskkit.core.api.utilities import run_app
from taskkit.core.logging import (
    add_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    reset_request_context,
)
from taskkit.modules.task import TaskRouter

from .dependencies import get_execution_engine, get_task_store, set_execution_engine, set_task_store
from .service_builder import ServiceBuilder

__all__ = [
    # Base classes
    "Router",
    # Routers
    "HealthRouter",
    "HealthStatus",
    "HealthState",
    "TaskRouter",
    # Dependencies
    "get_task_store",
    "set_task_store",
    "get_execution_engine",
    "set_execution_engine",
    # Middleware
    "add_error_handlers",
    "add_logging_middleware",
    "domain_error_handler",
    "store_unavailable_handler",
    "unsafe_command_handler",
    # Logging
    "configure_logging",
    "get_logger",
    "add_request_context",
    "clear_request_context",
    "reset_request_context",
    # Builders
    "ServiceBuilder",
    "ServiceInfo",
    # Utilities
    "run_app",
]
