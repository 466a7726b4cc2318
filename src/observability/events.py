"""Structured ingestion events.

The pipeline reports what happened (file processed, specifier dropped,
transaction committed, ...) through an `EventSink` instead of logging inline,
so operators can route diagnostics without touching control flow. None of
these events are returned to the caller of an ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol

import structlog


INGEST_START = "ingest.start"
INGEST_STATE = "ingest.state"
INGEST_DONE = "ingest.done"
INGEST_FAILED = "ingest.failed"
WORKSPACE_RETAINED = "ingest.workspace_retained"
REPO_CLONED = "repo.cloned"
FILES_DISCOVERED = "files.discovered"
FILE_PROCESSED = "file.processed"
FILE_PARSE_FAILED = "file.parse_failed"
NOTEBOOK_DECODE_FAILED = "notebook.decode_failed"
QUERY_COMPILE_FAILED = "query.compile_failed"
SPECIFIER_RESOLVED = "specifier.resolved"
SPECIFIER_DROPPED = "specifier.dropped"
SPECIFIER_TARGET_UNPARSED = "specifier.target_unparsed"
GRAPH_CLEARED = "graph.cleared"
TRANSACTION_COMMITTED = "transaction.committed"
TRANSACTION_ROLLED_BACK = "transaction.rolled_back"
GRAPH_READ = "graph.read"
GRAMMAR_DEGRADED = "grammar.degraded"

_WARNING_EVENTS = frozenset(
    {
        FILE_PARSE_FAILED,
        NOTEBOOK_DECODE_FAILED,
        QUERY_COMPILE_FAILED,
        GRAMMAR_DEGRADED,
        TRANSACTION_ROLLED_BACK,
    }
)
_ERROR_EVENTS = frozenset({INGEST_FAILED})
_DEBUG_EVENTS = frozenset({SPECIFIER_RESOLVED, SPECIFIER_DROPPED, SPECIFIER_TARGET_UNPARSED})


class EventSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None:
        """Record one ingestion event."""


class StructlogEventSink:
    """Default sink: one structlog line per event, level chosen by event kind."""

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("ingestion.events")

    def emit(self, event: str, **fields: Any) -> None:
        if event in _ERROR_EVENTS:
            self._logger.error(event, **fields)
        elif event in _WARNING_EVENTS:
            self._logger.warning(event, **fields)
        elif event in _DEBUG_EVENTS:
            self._logger.debug(event, **fields)
        else:
            self._logger.info(event, **fields)


@dataclass
class RecordingEventSink:
    """In-memory sink; handy for tests and for callers that want a run report."""

    events: list[tuple[str, dict]] = field(default_factory=list)

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def named(self, event: str) -> list[dict]:
        return [f for name, f in self.events if name == event]


@lru_cache()
def default_event_sink() -> EventSink:
    return StructlogEventSink()
