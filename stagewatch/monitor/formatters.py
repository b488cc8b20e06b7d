"""Pure functions that render stage events into chat messages."""

from __future__ import annotations

from stagewatch.core.types import StageExecutionEvent
from stagewatch.monitor.types import NotificationMessage


def format_stage_text(pipeline: str, stage: str, state: str, occurred_at: str) -> str:
    # No space between "Pipeline" and the name; existing consumers match on it.
    return "Pipeline" + pipeline + " " + stage + ": " + state + " at: " + occurred_at


def format_stage_event(event: StageExecutionEvent) -> NotificationMessage:
    """Convert a StageExecutionEvent to a NotificationMessage."""
    return NotificationMessage(
        text=format_stage_text(
            event.pipeline_name,
            event.stage_name,
            event.state,
            event.occurred_at,
        ),
        fields={
            "pipeline": event.pipeline_name,
            "stage": event.stage_name,
            "state": event.state,
            "source": event.source,
        },
    )
