"""Map inbound pipeline-engine notifications onto ``StageExecutionEvent``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from stagewatch.core.config import InboundConfig
from stagewatch.core.types import StageExecutionEvent
from stagewatch.pipeline.exceptions import MalformedInboundEventError

_REQUIRED_DETAIL = ("pipeline", "stage", "state")

_DEFAULT_INBOUND = InboundConfig()


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _optional(payload: Mapping[str, Any], key: str, default: str) -> str:
    # Only an absent key takes the default.
    if key not in payload:
        return default
    value = payload[key]
    return value if isinstance(value, str) else str(value)


def parse_stage_event(
    payload: Mapping[str, Any],
    config: InboundConfig | None = None,
) -> StageExecutionEvent:
    """Build a ``StageExecutionEvent`` from an inbound trigger.

    Required: ``detail.pipeline``, ``detail.stage``, ``detail.state`` and a
    top-level ``time``, all strings. Empty strings are accepted. An absent
    ``source`` or ``detail-type`` falls back to the *config* default; a present
    one is kept as-is, stringified if needed. Every other key is ignored.

    Raises:
        MalformedInboundEventError: one or more required fields are absent.
    """
    cfg = config or _DEFAULT_INBOUND
    if not isinstance(payload, Mapping):
        raise MalformedInboundEventError(["detail", "time"])

    detail = payload.get("detail")
    missing: list[str] = []
    if not isinstance(detail, Mapping):
        missing.extend(f"detail.{key}" for key in _REQUIRED_DETAIL)
        detail = {}
    else:
        missing.extend(
            f"detail.{key}" for key in _REQUIRED_DETAIL if _string(detail.get(key)) is None
        )

    occurred_at = _string(payload.get("time"))
    if occurred_at is None:
        missing.append("time")

    if missing:
        raise MalformedInboundEventError(missing)

    return StageExecutionEvent(
        pipeline_name=detail["pipeline"],
        stage_name=detail["stage"],
        state=detail["state"],
        occurred_at=occurred_at,
        source=_optional(payload, "source", cfg.default_source),
        detail_type=_optional(payload, "detail-type", cfg.default_detail_type),
        execution_id=_string(detail.get("execution-id")),
        raw=dict(payload),
    )
