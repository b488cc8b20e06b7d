"""Linear pipeline state model — ordered stages, per-stage state machine.

Each legal transition synthesizes exactly one ``StageExecutionEvent`` and
hands it to the registered callbacks, the same way a live pipeline engine
would publish it. The model records halts (a ``FAILED`` stage) but never
retries or skips stages itself.

Usage::

    run = PipelineRun(settings.pipeline)
    run.on_event(dispatcher.on_stage_event)
    await run.start_stage("Source")
    await run.succeed_stage("Source")
    await run.start_stage("Build")
"""

from __future__ import annotations

import asyncio
import datetime
import uuid
from collections.abc import Awaitable, Callable

import structlog

from stagewatch.core.config import PipelineConfig, StageDescriptor
from stagewatch.core.types import StageExecutionEvent, StageState
from stagewatch.pipeline.exceptions import (
    IllegalTransitionError,
    StageOrderError,
    UnknownStageError,
)

logger = structlog.stdlib.get_logger()

StageEventCallback = Callable[[StageExecutionEvent], Awaitable[object] | object]
Clock = Callable[[], str]

# None is the "not yet started" state; states absent as keys are terminal.
_TRANSITIONS: dict[str | None, frozenset[str]] = {
    None: frozenset({StageState.STARTED}),
    StageState.STARTED: frozenset({StageState.SUCCEEDED, StageState.FAILED}),
}


def utc_now_iso() -> str:
    """Current UTC time in the second-precision form upstream events use."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%SZ")


class StageExecution:
    """State of a single stage within one run."""

    def __init__(self, stage: StageDescriptor) -> None:
        self.stage = stage
        self.state: str | None = None
        self.history: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self.stage.name

    @property
    def terminal(self) -> bool:
        return self.state is not None and self.state not in _TRANSITIONS

    def can_transition(self, new_state: str) -> bool:
        return new_state in _TRANSITIONS.get(self.state, frozenset())

    def transition(self, new_state: str, occurred_at: str) -> None:
        if not self.can_transition(new_state):
            raise IllegalTransitionError(
                f"stage {self.name!r}: {self.state or 'NOT_STARTED'} -> {new_state}"
            )
        self.state = new_state
        self.history.append((new_state, occurred_at))


class PipelineRun:
    """One execution of an ordered, linear pipeline."""

    def __init__(
        self,
        config: PipelineConfig,
        source: str = "aws.codepipeline",
        execution_id: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not config.stages:
            raise ValueError("pipeline needs at least one stage")
        self._config = config
        self._source = source
        self._execution_id = execution_id or str(uuid.uuid4())
        self._clock = clock or utc_now_iso
        self._stages = [StageExecution(s) for s in config.stages]
        self._index = {s.name: i for i, s in enumerate(self._stages)}
        self._callbacks: list[StageEventCallback] = []

    @property
    def pipeline_name(self) -> str:
        return self._config.name

    @property
    def execution_id(self) -> str:
        return self._execution_id

    @property
    def stages(self) -> list[StageExecution]:
        return list(self._stages)

    @property
    def halted(self) -> bool:
        return any(s.state == StageState.FAILED for s in self._stages)

    @property
    def complete(self) -> bool:
        return all(s.state == StageState.SUCCEEDED for s in self._stages)

    @property
    def next_stage(self) -> StageDescriptor | None:
        """The stage that may start now, or None if halted, busy or done."""
        for execution in self._stages:
            if execution.state is None:
                return execution.stage
            if execution.state != StageState.SUCCEEDED:
                return None
        return None

    def stage(self, name: str) -> StageExecution:
        try:
            return self._stages[self._index[name]]
        except KeyError:
            raise UnknownStageError(name) from None

    def state_of(self, name: str) -> str | None:
        return self.stage(name).state

    def on_event(self, callback: StageEventCallback) -> None:
        """Register a callback for synthesized stage events."""
        self._callbacks.append(callback)

    async def start_stage(self, name: str) -> StageExecutionEvent:
        return await self.transition(name, StageState.STARTED)

    async def succeed_stage(self, name: str) -> StageExecutionEvent:
        return await self.transition(name, StageState.SUCCEEDED)

    async def fail_stage(self, name: str) -> StageExecutionEvent:
        return await self.transition(name, StageState.FAILED)

    async def transition(self, name: str, state: str) -> StageExecutionEvent:
        """Move stage *name* to *state* and emit the resulting event.

        Raises:
            UnknownStageError: *name* is not a configured stage.
            StageOrderError: starting a stage whose predecessor has not succeeded.
            IllegalTransitionError: *state* is not reachable from the current state.
        """
        execution = self.stage(name)
        if state == StageState.STARTED:
            position = self._index[name]
            if position > 0:
                previous = self._stages[position - 1]
                if previous.state != StageState.SUCCEEDED:
                    raise StageOrderError(
                        f"stage {name!r} requires {previous.name!r} to succeed first"
                    )

        occurred_at = self._clock()
        execution.transition(state, occurred_at)
        logger.info(
            "stage_transition",
            pipeline=self.pipeline_name,
            execution_id=self._execution_id,
            stage=name,
            state=state,
        )

        event = StageExecutionEvent(
            pipeline_name=self.pipeline_name,
            stage_name=name,
            state=str(state),
            occurred_at=occurred_at,
            source=self._source,
            execution_id=self._execution_id,
        )
        await self._emit(event)
        return event

    async def _emit(self, event: StageExecutionEvent) -> None:
        for cb in self._callbacks:
            try:
                result = cb(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception(
                    "stage_event_callback_error",
                    pipeline=event.pipeline_name,
                    stage=event.stage_name,
                    state=event.state,
                )
