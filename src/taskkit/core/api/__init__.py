"""FastAPI framework layer - routers, middleware, utilities."""

from .dependencies import get_database, set_database
from .middleware import (
    ERROR_CODE_HEADER,
    REQUEST_ID_HEADER,
    add_error_handlers,
    add_logging_middleware,
    domain_error_handler,
    store_unavailable_handler,
    unsafe_command_handler,
)
from .router import Router
from .routers import HealthRouter, HealthState, HealthStatus
from .service_builder import BaseServiceBuilder, ServiceInfo
from .utilities import run_app

__all__ = [
    # Base router class
    "Router",
    # Service builder
    "BaseServiceBuilder",
    "ServiceInfo",
    # Dependencies
    "get_database",
    "set_database",
    # Middleware
    "ERROR_CODE_HEADER",
    "REQUEST_ID_HEADER",
    "add_error_handlers",
    "add_logging_middleware",
    "domain_error_handler",
    "store_unavailable_handler",
    "unsafe_command_handler",
    # Routers
    "HealthRouter",
    "HealthState",
    "HealthStatus",
    # Utilities
    "run_app",
]
