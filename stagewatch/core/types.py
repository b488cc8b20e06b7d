"""Domain types for pipeline stage transitions."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from stagewatch.core.config import STAGE_CHANGE_DETAIL_TYPE


class StageState(StrEnum):
    """Stage execution states known to be emitted upstream.

    Events carry ``state`` as a plain string, so values outside this enum
    pass through untouched.
    """

    STARTED = "STARTED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    RESUMED = "RESUMED"
    CANCELED = "CANCELED"
    STOPPED = "STOPPED"
    STOPPING = "STOPPING"
    SUPERSEDED = "SUPERSEDED"


class StageExecutionEvent(BaseModel):
    """One observed state transition of one stage of one pipeline run."""

    pipeline_name: str
    stage_name: str
    state: str
    occurred_at: str  # ISO-8601 as supplied by the emitter, never reformatted
    source: str
    detail_type: str = STAGE_CHANGE_DETAIL_TYPE
    execution_id: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
