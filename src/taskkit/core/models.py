"""Declarative base and common entity columns."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID

from .types import ULIDType, UTCDateTime, utc_now


class Base(AsyncAttrs, DeclarativeBase):
    """Root declarative base for all ORM models."""


class Entity(Base):
    """Abstract base with ULID primary key and audit timestamps."""

    __abstract__ = True

    id: Mapped[ULID] = mapped_column(ULIDType, primary_key=True, default=ULID)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False)
