"""Task schemas for the REST contract and for store requests."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from ulid import ULID

from .models import Task, TaskExecution


class CamelModel(BaseModel):
    """Base schema exposing camelCase JSON while accepting snake_case too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskExecutionOut(CamelModel):
    """Immutable record of one task run."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime = Field(description="UTC timestamp of process launch")
    end_time: datetime = Field(description="UTC timestamp of process completion")
    output: str = Field(default="", description="Combined stdout and stderr text")
    exit_code: int | None = Field(default=None, description="Process exit status, null if killed on timeout")
    timed_out: bool = Field(default=False, description="Whether the run was terminated at the timeout")

    @classmethod
    def from_entity(cls, execution: TaskExecution) -> TaskExecutionOut:
        return cls(
            start_time=execution.start_time,
            end_time=execution.end_time,
            output=execution.output,
            exit_code=execution.exit_code,
            timed_out=execution.timed_out,
        )


class TaskOut(CamelModel):
    """Output schema for a task and its execution history (oldest first)."""

    id: ULID = Field(description="Task identifier")
    name: str
    owner: str
    command: str
    task_executions: list[TaskExecutionOut] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, task: Task) -> TaskOut:
        return cls(
            id=task.id,
            name=task.name,
            owner=task.owner,
            command=task.command,
            task_executions=[TaskExecutionOut.from_entity(execution) for execution in task.executions],
        )


class TaskCreate(BaseModel):
    """Request to insert a new task under a freshly assigned id."""

    model_config = ConfigDict(frozen=True)

    name: str
    owner: str
    command: str


class TaskUpdate(BaseModel):
    """Request to replace name, owner and command of an existing task."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    owner: str
    command: str


type TaskRequest = TaskCreate | TaskUpdate


class TaskIn(CamelModel):
    """Request body for PUT /tasks; an absent or empty id means create."""

    id: str | None = Field(default=None, description="Existing task id, omit to create")
    name: str = Field(min_length=1, description="Display name")
    owner: str = Field(min_length=1, description="Owner display name")
    command: str = Field(min_length=1, description="Command to execute; shell metacharacters are rejected")

    def to_request(self) -> TaskRequest:
        """Resolve the body into an explicit create or update request."""
        if not self.id:
            return TaskCreate(name=self.name, owner=self.owner, command=self.command)
        return TaskUpdate(id=self.id, name=self.name, owner=self.owner, command=self.command)
