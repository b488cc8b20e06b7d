"""Core module — config, types, logging."""

from stagewatch.core.config import (
    Settings,
    StageDescriptor,
    get_settings,
    load_settings,
    reset_settings,
)
from stagewatch.core.logging import setup_logging
from stagewatch.core.types import StageExecutionEvent, StageState

__all__ = [
    "Settings",
    "StageDescriptor",
    "StageExecutionEvent",
    "StageState",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
