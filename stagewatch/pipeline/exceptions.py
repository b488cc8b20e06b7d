"""Exception hierarchy for the pipeline state model and inbound mapping."""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline model errors."""


class UnknownStageError(PipelineError):
    """Stage name is not part of the pipeline definition."""


class IllegalTransitionError(PipelineError):
    """Requested state change is not allowed from the current state."""


class StageOrderError(PipelineError):
    """Stage started before the preceding stage succeeded."""


class MalformedInboundEventError(PipelineError):
    """Inbound trigger is missing required fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"inbound event missing required fields: {', '.join(missing)}")
