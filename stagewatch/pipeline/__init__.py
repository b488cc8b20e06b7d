"""Pipeline stage model, inbound mapping and event filtering."""

from stagewatch.pipeline.exceptions import (
    IllegalTransitionError,
    MalformedInboundEventError,
    PipelineError,
    StageOrderError,
    UnknownStageError,
)
from stagewatch.pipeline.filters import EventFilter
from stagewatch.pipeline.inbound import parse_stage_event
from stagewatch.pipeline.model import PipelineRun, StageExecution

__all__ = [
    "EventFilter",
    "IllegalTransitionError",
    "MalformedInboundEventError",
    "PipelineError",
    "PipelineRun",
    "StageExecution",
    "StageOrderError",
    "UnknownStageError",
    "parse_stage_event",
]
