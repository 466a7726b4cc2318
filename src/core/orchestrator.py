"""Ingestion orchestrator.

Pipeline:
clone -> discover -> (single transaction) clear + per-file normalize/parse/extract/resolve + write -> commit
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import structlog

from config import CodeGraphSettings, get_code_graph_settings
from core.discovery import discover_files
from core.errors import AcquisitionFailure, IngestionError
from core.ignore_rules import build_ignore_rules
from core.processing import FileProcessor
from core.records import IngestionState, RebuildStats
from core.repo_materializer import GitMaterializationResult, materialize_git
from core.run_state import IngestionRun
from core.workspace import Workspace
from observability import events
from observability.events import EventSink, default_event_sink
from observability.tracing import get_tracer, stage_span
from parsing.grammars import GrammarRegistry
from persistence.graph_writer import GraphRebuilder
from utils.neo4j_client import Neo4jClient


logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

Materializer = Callable[..., GitMaterializationResult]


class IngestionService:
    """Runs ingestions one at a time against a shared Neo4j client.

    Runs are serialized with a lock: two overlapping clear-and-rebuild
    transactions would otherwise interleave into a mixed graph.
    """

    def __init__(
        self,
        neo4j_client: Neo4jClient,
        registry: GrammarRegistry,
        *,
        settings: CodeGraphSettings | None = None,
        sink: EventSink | None = None,
        materialize: Materializer = materialize_git,
    ):
        self.settings = settings or get_code_graph_settings()
        self.sink = sink or default_event_sink()
        self.workspace = Workspace(root=Path(self.settings.WORKSPACE_ROOT))
        self.processor = FileProcessor(registry, sink=self.sink)
        self.rebuilder = GraphRebuilder(
            neo4j_client, snippet_length=self.settings.SNIPPET_LENGTH, sink=self.sink
        )
        self._materialize = materialize
        self._lock = threading.Lock()

    def ingest(self, repo_url: str) -> RebuildStats:
        """Replace the stored graph with the graph of `repo_url`.

        Returns once the rebuild transaction commits; raises an IngestionError
        subclass otherwise, in which case the stored graph is unchanged.
        """

        with self._lock:
            run = IngestionRun(repo_url=repo_url, sink=self.sink)
            return self._run(run)

    def _run(self, run: IngestionRun) -> RebuildStats:
        repo_url = run.repo_url
        self.sink.emit(events.INGEST_START, repo_url=repo_url)
        repo_root: Path | None = None
        try:
            with stage_span(tracer, "run", repo_url=repo_url) as span:
                with stage_span(tracer, "clone", depth=self.settings.CLONE_DEPTH) as clone_span:
                    repo_root = self._new_run_dir(repo_url)
                    res = self._materialize(
                        git_url=repo_url, dest_dir=repo_root, depth=self.settings.CLONE_DEPTH
                    )
                    if res.head_commit:
                        clone_span.set_attribute("head_commit", res.head_commit)
                    run.advance(IngestionState.CLONED)
                    self.sink.emit(
                        events.REPO_CLONED, repo_url=repo_url, repo_root=str(res.repo_root), head_commit=res.head_commit
                    )

                with stage_span(tracer, "discovery"):
                    ignore = build_ignore_rules(self.settings.EXTRA_IGNORE_PATTERNS)
                    files = discover_files(
                        res.repo_root, max_files=self.settings.MAX_DISCOVERED_FILES, ignore=ignore
                    )
                    run.advance(IngestionState.DISCOVERED)
                    span.set_attribute("files", len(files))
                    self.sink.emit(events.FILES_DISCOVERED, repo_url=repo_url, count=len(files))

                with stage_span(tracer, "rebuild"):
                    stats = self.rebuilder.rebuild(files, self.processor, run)
        except IngestionError as e:
            self.sink.emit(
                events.INGEST_FAILED,
                repo_url=repo_url,
                state=run.state.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise
        finally:
            if repo_root is not None:
                self.sink.emit(events.WORKSPACE_RETAINED, repo_root=str(repo_root))

        self.sink.emit(
            events.INGEST_DONE,
            repo_url=repo_url,
            nodes=stats.nodes_written,
            edges=stats.edges_written,
            skipped=len(stats.skipped_files),
        )
        return stats

    def _new_run_dir(self, repo_url: str) -> Path:
        try:
            return self.workspace.new_run_dir()
        except OSError as e:
            raise AcquisitionFailure(repo_url, f"cannot create workspace: {e}") from e
