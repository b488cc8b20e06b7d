"""Event filter — decides whether a stage transition is worth reporting."""

from __future__ import annotations

from collections.abc import Iterable

from stagewatch.core.config import FilterConfig
from stagewatch.core.types import StageExecutionEvent


class EventFilter:
    """Pure allow-list predicate over source, state and detail type.

    Rejection is not an error: callers drop rejected events silently.
    """

    def __init__(
        self,
        sources: Iterable[str],
        states: Iterable[str],
        detail_types: Iterable[str] = (),
    ) -> None:
        self._sources = frozenset(sources)
        self._states = frozenset(states)
        self._detail_types = frozenset(detail_types)

    @classmethod
    def from_config(cls, config: FilterConfig) -> EventFilter:
        return cls(config.sources, config.states, config.detail_types)

    @property
    def sources(self) -> frozenset[str]:
        return self._sources

    @property
    def states(self) -> frozenset[str]:
        return self._states

    def accept(self, event: StageExecutionEvent) -> bool:
        if event.source not in self._sources:
            return False
        if event.state not in self._states:
            return False
        if self._detail_types and event.detail_type not in self._detail_types:
            return False
        return True
