"""Domain error taxonomy shared by the store, the engine and the API layer."""

from __future__ import annotations


class TaskkitError(Exception):
    """Base class for all taskkit domain errors."""

    code: str = "taskkit_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskkitError):
    """Client-correctable input error."""

    code = "validation_error"


class UnsafeCommandError(ValidationError):
    """Command contains shell metacharacters and must not be stored or run."""

    code = "unsafe_command"

    def __init__(self, command: str, characters: list[str] | None = None) -> None:
        super().__init__("Unsafe command")
        self.command = command
        self.characters = characters or []


class NotFoundError(TaskkitError):
    """Referenced task does not exist."""

    code = "not_found"


class ExecutionFault(TaskkitError):
    """The command's process could not be launched at all."""

    code = "execution_fault"


class StoreUnavailableError(TaskkitError):
    """Backing store failed after all retries were exhausted."""

    code = "store_unavailable"
