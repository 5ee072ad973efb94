"""Task and TaskExecution ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import Boolean, String, Text
from ulid import ULID

from taskkit.core.models import Base, Entity
from taskkit.core.types import ULIDType, UTCDateTime


class Task(Entity):
    """ORM model for a named, owned command definition and its run history."""

    __tablename__ = "tasks"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    command: Mapped[str] = mapped_column(Text, nullable=False)

    executions: Mapped[list[TaskExecution]] = relationship(
        back_populates="task",
        order_by="TaskExecution.seq",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class TaskExecution(Base):
    """One completed run of a task's command; never updated once written."""

    __tablename__ = "task_executions"

    # Autoincrement key doubles as the append order within a task
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[ULID] = mapped_column(
        ULIDType,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    output: Mapped[str] = mapped_column(Text, nullable=False, default="")
    exit_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    timed_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    task: Mapped[Task] = relationship(back_populates="executions")
