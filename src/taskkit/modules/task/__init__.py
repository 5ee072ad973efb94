"""Task feature - validated command definitions, execution engine and REST router."""

from .engine import ExecutionEngine, OutputCapture, split_command
from .models import Task, TaskExecution
from .repository import TaskRepository
from .router import TaskRouter
from .schemas import TaskCreate, TaskExecutionOut, TaskIn, TaskOut, TaskRequest, TaskUpdate
from .store import TaskStore
from .validator import UNSAFE_CHARACTERS, CommandVerdict, ensure_safe, unsafe_characters, validate_command

__all__ = [
    "UNSAFE_CHARACTERS",
    "CommandVerdict",
    "ExecutionEngine",
    "OutputCapture",
    "Task",
    "TaskCreate",
    "TaskExecution",
    "TaskExecutionOut",
    "TaskIn",
    "TaskOut",
    "TaskRepository",
    "TaskRequest",
    "TaskRouter",
    "TaskStore",
    "TaskUpdate",
    "ensure_safe",
    "split_command",
    "unsafe_characters",
    "validate_command",
]
