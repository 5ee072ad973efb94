"""Base class for class-based FastAPI routers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from fastapi import APIRouter


class Router(ABC):
    """Wraps an APIRouter and registers its routes on construction."""

    default_response_model_exclude_none: bool = False

    def __init__(self, prefix: str, tags: Sequence[str], **kwargs: Any) -> None:
        """Initialize the underlying APIRouter and register routes."""
        self.router = APIRouter(prefix=prefix, tags=list(tags), **kwargs)
        self._register_routes()

    @classmethod
    def create(cls, **kwargs: Any) -> APIRouter:
        """Instantiate the router and return the configured APIRouter."""
        return cls(**kwargs).router

    @abstractmethod
    def _register_routes(self) -> None:
        """Register routes on self.router."""
        ...
