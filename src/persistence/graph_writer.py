"""Transactional full rebuild of the file dependency graph in Neo4j.

One explicit transaction per run: clear everything, merge a File node per
parsed file, merge DEPENDS_ON edges, commit. Any exception rolls the whole
transaction back so readers only ever see the previous run or the new one.
"""

from __future__ import annotations

from typing import Callable, Iterable

import structlog
from neo4j.exceptions import DriverError, Neo4jError

from core.discovery import path_set
from core.errors import TransactionFailure
from core.records import DiscoveredFile, IngestionState, ParsedFile, RebuildStats, ResolvedEdge
from core.resolver import resolve_edge
from core.run_state import IngestionRun
from observability import events
from observability.events import EventSink, default_event_sink
from utils.neo4j_client import Neo4jClient


logger = structlog.get_logger(__name__)

CLEAR_GRAPH_QUERY = "MATCH (n) DETACH DELETE n"

MERGE_FILE_QUERY = """
MERGE (f:File {path: $path})
SET f.snippet = $snippet
"""

MERGE_DEPENDENCY_QUERY = """
MATCH (f:File {path: $from_path})
MERGE (t:File {path: $to_path})
MERGE (f)-[:DEPENDS_ON]->(t)
"""


def file_params(parsed: ParsedFile, snippet_length: int) -> dict:
    return {"path": parsed.path, "snippet": parsed.content[:snippet_length]}


def edge_params(edge: ResolvedEdge) -> dict:
    return {"from_path": edge.from_path, "to_path": edge.to_path}


class GraphRebuilder:
    """Writes one ingestion run into Neo4j as a single transaction."""

    def __init__(
        self,
        neo4j_client: Neo4jClient,
        *,
        snippet_length: int = 200,
        sink: EventSink | None = None,
    ):
        self.neo4j_client = neo4j_client
        self.snippet_length = snippet_length
        self.sink = sink or default_event_sink()

    def rebuild(
        self,
        files: list[DiscoveredFile],
        process: Callable[[DiscoveredFile], ParsedFile | None],
        run: IngestionRun | None = None,
    ) -> RebuildStats:
        """Replace the stored graph with the graph of `files`.

        Raises TransactionFailure after rolling back when anything fails.
        """

        known_paths = path_set(files)
        if run is not None:
            run.advance(IngestionState.PROCESSING)
        with self.neo4j_client.get_session() as session:
            tx = None
            try:
                tx = session.begin_transaction()
                tx.run(CLEAR_GRAPH_QUERY)
                self.sink.emit(events.GRAPH_CLEARED)

                parsed_paths: set[str] = set()
                skipped: list[str] = []
                pending: dict[tuple[str, str], ResolvedEdge] = {}
                for file in files:
                    parsed = process(file)
                    if parsed is None:
                        skipped.append(file.path)
                        continue
                    tx.run(MERGE_FILE_QUERY, file_params(parsed, self.snippet_length))
                    parsed_paths.add(parsed.path)
                    self.sink.emit(
                        events.FILE_PROCESSED, path=parsed.path, specifiers=len(parsed.specifiers)
                    )
                    for edge in self._resolve(parsed, known_paths):
                        pending.setdefault((edge.from_path, edge.to_path), edge)

                edges_written = self._write_edges(tx, pending.values(), parsed_paths)

                if run is not None:
                    run.advance(IngestionState.COMMITTING)
                tx.commit()
            except Exception as e:
                if tx is not None:
                    self._rollback(tx)
                if run is not None:
                    run.advance(IngestionState.ROLLED_BACK)
                self.sink.emit(events.TRANSACTION_ROLLED_BACK, error=str(e), error_type=type(e).__name__)
                raise TransactionFailure(f"Graph rebuild rolled back: {e}") from e

        if run is not None:
            run.advance(IngestionState.COMMITTED)
        stats = RebuildStats(
            discovered=len(files),
            nodes_written=len(parsed_paths),
            edges_written=edges_written,
            skipped_files=tuple(skipped),
        )
        self.sink.emit(
            events.TRANSACTION_COMMITTED,
            nodes=stats.nodes_written,
            edges=stats.edges_written,
            skipped=len(stats.skipped_files),
        )
        return stats

    def _resolve(self, parsed: ParsedFile, known_paths: frozenset[str]) -> list[ResolvedEdge]:
        edges: list[ResolvedEdge] = []
        for spec in parsed.specifiers:
            edge = resolve_edge(parsed.path, spec, known_paths)
            if edge is None:
                self.sink.emit(events.SPECIFIER_DROPPED, path=parsed.path, specifier=spec)
                continue
            self.sink.emit(events.SPECIFIER_RESOLVED, path=parsed.path, specifier=spec, target=edge.to_path)
            edges.append(edge)
        return edges

    def _write_edges(self, tx, edges: Iterable[ResolvedEdge], parsed_paths: set[str]) -> int:
        written = 0
        for edge in edges:
            # A target that failed to parse has no node and gets no edge.
            if edge.to_path not in parsed_paths:
                self.sink.emit(
                    events.SPECIFIER_TARGET_UNPARSED, path=edge.from_path, target=edge.to_path
                )
                continue
            tx.run(MERGE_DEPENDENCY_QUERY, edge_params(edge))
            written += 1
        return written

    def _rollback(self, tx) -> None:
        try:
            tx.rollback()
        except (DriverError, Neo4jError) as e:
            # A failed commit can leave the transaction already closed.
            logger.warning("Rollback after failed rebuild raised", error=str(e))
