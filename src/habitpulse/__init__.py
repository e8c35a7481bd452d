"""HabitPulse scheduled job runner package."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .context import WorkerContext, create_app_context

__all__ = ["BaseConfig", "DevConfig", "WorkerContext", "create_app_context"]
