"""Core framework - database, models, repository, errors, settings and logging."""

from .config import TaskkitSettings, get_settings
from .database import Database
from .exceptions import (
    ExecutionFault,
    NotFoundError,
    StoreUnavailableError,
    TaskkitError,
    UnsafeCommandError,
    ValidationError,
)
from .models import Base, Entity
from .repository import BaseRepository
from .types import ULIDType, UTCDateTime, utc_now

__all__ = [
    "Base",
    "BaseRepository",
    "Database",
    "Entity",
    "ExecutionFault",
    "NotFoundError",
    "StoreUnavailableError",
    "TaskkitError",
    "TaskkitSettings",
    "ULIDType",
    "UTCDateTime",
    "UnsafeCommandError",
    "ValidationError",
    "get_settings",
    "utc_now",
]
