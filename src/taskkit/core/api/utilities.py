"""Utilities for running FastAPI services."""

from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI


def run_app(app: FastAPI | str, *, host: str = "127.0.0.1", port: int = 8080, **kwargs: Any) -> None:
    """Serve an app (or an import string such as "module:app") with uvicorn."""
    # Logging is configured by the service lifespan; keep uvicorn from replacing it
    kwargs.setdefault("log_config", None)
    uvicorn.run(app, host=host, port=port, **kwargs)
