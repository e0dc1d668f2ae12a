"""HTTP API for the metric tracking service."""

from .app import create_app
from .routes import router as metrics_router

__all__ = ["create_app", "metrics_router"]
