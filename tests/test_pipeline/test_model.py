"""Tests for PipelineRun — stage ordering, state machine, event synthesis."""

from __future__ import annotations

import pytest

from stagewatch.core.config import PipelineConfig, StageDescriptor
from stagewatch.core.types import StageExecutionEvent, StageState
from stagewatch.pipeline.exceptions import (
    IllegalTransitionError,
    StageOrderError,
    UnknownStageError,
)
from stagewatch.pipeline.model import PipelineRun, StageExecution, utc_now_iso


# ── Helpers ─────────────────────────────────────────────────────


def _run(**kw: object) -> PipelineRun:
    defaults: dict[str, object] = {
        "config": PipelineConfig(),
        "execution_id": "exec-1",
        "clock": lambda: "2024-03-01T10:00:00Z",
    }
    defaults.update(kw)
    return PipelineRun(**defaults)  # type: ignore[arg-type]


class Recorder:
    def __init__(self) -> None:
        self.events: list[StageExecutionEvent] = []

    async def __call__(self, event: StageExecutionEvent) -> None:
        self.events.append(event)


# ── StageExecution ──────────────────────────────────────────────


class TestStageExecution:
    def test_started_is_only_initial_state(self) -> None:
        ex = StageExecution(StageDescriptor(name="Source"))
        assert ex.can_transition(StageState.STARTED)
        assert not ex.can_transition(StageState.SUCCEEDED)
        assert not ex.can_transition(StageState.FAILED)

    def test_started_to_terminal(self) -> None:
        for terminal in (StageState.SUCCEEDED, StageState.FAILED):
            ex = StageExecution(StageDescriptor(name="Build"))
            ex.transition(StageState.STARTED, "t0")
            ex.transition(terminal, "t1")
            assert ex.state == terminal
            assert ex.terminal
            assert ex.history == [("STARTED", "t0"), (terminal.value, "t1")]

    def test_terminal_states_are_final(self) -> None:
        ex = StageExecution(StageDescriptor(name="Build"))
        ex.transition(StageState.STARTED, "t0")
        ex.transition(StageState.FAILED, "t1")
        with pytest.raises(IllegalTransitionError):
            ex.transition(StageState.STARTED, "t2")

    def test_unknown_state_is_illegal(self) -> None:
        ex = StageExecution(StageDescriptor(name="Build"))
        ex.transition(StageState.STARTED, "t0")
        with pytest.raises(IllegalTransitionError):
            ex.transition("PAUSED", "t1")


# ── PipelineRun ─────────────────────────────────────────────────


class TestPipelineRun:
    async def test_happy_path_emits_one_event_per_transition(self) -> None:
        run = _run()
        rec = Recorder()
        run.on_event(rec)

        await run.start_stage("Source")
        await run.succeed_stage("Source")
        await run.start_stage("Build")
        await run.succeed_stage("Build")

        assert [(e.stage_name, e.state) for e in rec.events] == [
            ("Source", "STARTED"),
            ("Source", "SUCCEEDED"),
            ("Build", "STARTED"),
            ("Build", "SUCCEEDED"),
        ]
        assert run.complete
        assert not run.halted
        assert run.next_stage is None

    async def test_event_fields(self) -> None:
        run = _run(source="aws.codepipeline")
        event = await run.start_stage("Source")
        assert event.pipeline_name == "devops-pro-pipes"
        assert event.occurred_at == "2024-03-01T10:00:00Z"
        assert event.source == "aws.codepipeline"
        assert event.execution_id == "exec-1"
        assert type(event.state) is str

    async def test_build_requires_source_success(self) -> None:
        run = _run()
        with pytest.raises(StageOrderError):
            await run.start_stage("Build")

        await run.start_stage("Source")
        with pytest.raises(StageOrderError):
            await run.start_stage("Build")

    async def test_failure_halts(self) -> None:
        run = _run()
        await run.start_stage("Source")
        await run.fail_stage("Source")
        assert run.halted
        assert run.next_stage is None
        assert run.state_of("Build") is None
        with pytest.raises(StageOrderError):
            await run.start_stage("Build")

    async def test_next_stage_progression(self) -> None:
        run = _run()
        assert run.next_stage is not None and run.next_stage.name == "Source"
        await run.start_stage("Source")
        assert run.next_stage is None  # Source in flight
        await run.succeed_stage("Source")
        assert run.next_stage is not None and run.next_stage.name == "Build"

    async def test_illegal_transition_emits_nothing(self) -> None:
        run = _run()
        rec = Recorder()
        run.on_event(rec)
        with pytest.raises(IllegalTransitionError):
            await run.succeed_stage("Source")
        assert rec.events == []

    async def test_unknown_stage(self) -> None:
        run = _run()
        with pytest.raises(UnknownStageError):
            await run.start_stage("Deploy")
        with pytest.raises(UnknownStageError):
            run.state_of("Deploy")

    async def test_third_stage_is_configuration_only(self) -> None:
        config = PipelineConfig(
            name="p",
            stages=[
                StageDescriptor(name="Source"),
                StageDescriptor(name="Build"),
                StageDescriptor(name="Deploy"),
            ],
        )
        run = _run(config=config)
        for name in ("Source", "Build"):
            await run.start_stage(name)
            await run.succeed_stage(name)
        assert run.next_stage is not None and run.next_stage.name == "Deploy"
        await run.start_stage("Deploy")
        await run.succeed_stage("Deploy")
        assert run.complete

    async def test_callback_error_does_not_block_others(self) -> None:
        run = _run()
        rec = Recorder()

        def boom(event: StageExecutionEvent) -> None:
            raise RuntimeError("callback failed")

        run.on_event(boom)
        run.on_event(rec)
        await run.start_stage("Source")
        assert len(rec.events) == 1
        assert run.state_of("Source") == StageState.STARTED

    async def test_sync_callback_supported(self) -> None:
        run = _run()
        seen: list[str] = []
        run.on_event(lambda e: seen.append(e.state))
        await run.start_stage("Source")
        assert seen == ["STARTED"]

    def test_empty_pipeline_rejected(self) -> None:
        with pytest.raises(ValueError):
            PipelineRun(PipelineConfig(name="empty", stages=[]))

    def test_generated_execution_id(self) -> None:
        run = PipelineRun(PipelineConfig())
        assert len(run.execution_id) == 36


class TestClock:
    def test_utc_now_iso_shape(self) -> None:
        value = utc_now_iso()
        assert len(value) == 20
        assert value.endswith("Z")
        assert value[10] == "T"
