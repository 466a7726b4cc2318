"""Ingestion run lifecycle.

IDLE -> CLONED -> DISCOVERED -> PROCESSING -> COMMITTING -> COMMITTED
                                     |              |
                                     +--------------+--> ROLLED_BACK
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.records import IngestionState
from observability import events
from observability.events import EventSink, default_event_sink


_ALLOWED: dict[IngestionState, frozenset[IngestionState]] = {
    IngestionState.IDLE: frozenset({IngestionState.CLONED}),
    IngestionState.CLONED: frozenset({IngestionState.DISCOVERED}),
    IngestionState.DISCOVERED: frozenset({IngestionState.PROCESSING}),
    IngestionState.PROCESSING: frozenset({IngestionState.COMMITTING, IngestionState.ROLLED_BACK}),
    IngestionState.COMMITTING: frozenset({IngestionState.COMMITTED, IngestionState.ROLLED_BACK}),
    IngestionState.COMMITTED: frozenset(),
    IngestionState.ROLLED_BACK: frozenset(),
}

TERMINAL_STATES = frozenset({IngestionState.COMMITTED, IngestionState.ROLLED_BACK})


class InvalidStateTransition(RuntimeError):
    pass


@dataclass
class IngestionRun:
    repo_url: str
    sink: EventSink = field(default_factory=default_event_sink)
    state: IngestionState = IngestionState.IDLE
    history: list[IngestionState] = field(default_factory=lambda: [IngestionState.IDLE])

    def advance(self, new_state: IngestionState) -> None:
        if new_state not in _ALLOWED[self.state]:
            raise InvalidStateTransition(f"{self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)
        self.sink.emit(events.INGEST_STATE, repo_url=self.repo_url, state=new_state.value)

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES
