"""Taskkit - validated shell-command tasks with recorded executions over REST."""

# Core framework
from taskkit.core import (
    Base,
    BaseRepository,
    Database,
    Entity,
    ExecutionFault,
    NotFoundError,
    StoreUnavailableError,
    TaskkitError,
    TaskkitSettings,
    ULIDType,
    UnsafeCommandError,
    ValidationError,
    get_settings,
)

# Task feature
from taskkit.modules.task import (
    CommandVerdict,
    ExecutionEngine,
    Task,
    TaskCreate,
    TaskExecution,
    TaskExecutionOut,
    TaskIn,
    TaskOut,
    TaskRepository,
    TaskStore,
    TaskUpdate,
    validate_command,
)

__all__ = [
    # Core framework
    "Database",
    "BaseRepository",
    "Base",
    "Entity",
    "ULIDType",
    "TaskkitSettings",
    "get_settings",
    # Errors
    "TaskkitError",
    "ValidationError",
    "UnsafeCommandError",
    "NotFoundError",
    "ExecutionFault",
    "StoreUnavailableError",
    # Task feature
    "Task",
    "TaskExecution",
    "TaskIn",
    "TaskOut",
    "TaskExecutionOut",
    "TaskCreate",
    "TaskUpdate",
    "TaskRepository",
    "TaskStore",
    "ExecutionEngine",
    "CommandVerdict",
    "validate_command",
]
