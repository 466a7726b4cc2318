import threading
import time
from pathlib import Path

import pytest

from config import CodeGraphSettings
from conftest import write_files
from core.errors import AcquisitionFailure, DiscoveryFailure, DiscoveryLimitExceeded, TransactionFailure
from core.orchestrator import IngestionService
from core.records import IngestionState
from core.repo_materializer import GitMaterializationResult
from observability import events


REPO_URL = "https://example.com/acme/app.git"


class FakeMaterializer:
    """Writes a fixed file tree into the run directory instead of cloning."""

    def __init__(self, files: dict):
        self.files = files
        self.calls = []

    def __call__(self, *, git_url: str, dest_dir: Path, depth):
        self.calls.append({"git_url": git_url, "dest_dir": dest_dir, "depth": depth})
        write_files(dest_dir, self.files)
        return GitMaterializationResult(repo_root=dest_dir, head_commit="0" * 40)


def _failing_materializer(*, git_url: str, dest_dir: Path, depth):
    raise AcquisitionFailure(git_url, "repository not found")


@pytest.fixture
def settings(tmp_path) -> CodeGraphSettings:
    return CodeGraphSettings(WORKSPACE_ROOT=str(tmp_path / "workspace"), MAX_DISCOVERED_FILES=5)


def _service(neo4j_client, grammar_registry, settings, event_sink, materialize) -> IngestionService:
    return IngestionService(
        neo4j_client, grammar_registry, settings=settings, sink=event_sink, materialize=materialize
    )


def test_ingest_rebuilds_graph(neo4j_client, graph_store, grammar_registry, settings, event_sink) -> None:
    materializer = FakeMaterializer({"src/a.js": "import { b } from './b';\n", "src/b.js": "", "docs/README.md": "x"})
    service = _service(neo4j_client, grammar_registry, settings, event_sink, materializer)

    stats = service.ingest(REPO_URL)

    nodes, edges = graph_store.snapshot()
    assert set(nodes) == {"src/a.js", "src/b.js"}
    assert edges == [("src/a.js", "src/b.js", "DEPENDS_ON")]
    assert stats.nodes_written == 2
    assert materializer.calls[0]["git_url"] == REPO_URL
    assert materializer.calls[0]["depth"] == 1
    assert [e["state"] for e in event_sink.named(events.INGEST_STATE)] == [
        "cloned",
        "discovered",
        "processing",
        "committing",
        "committed",
    ]
    assert len(event_sink.named(events.INGEST_DONE)) == 1


def test_run_directory_is_retained(neo4j_client, grammar_registry, settings, event_sink) -> None:
    materializer = FakeMaterializer({"a.py": "import os\n"})
    service = _service(neo4j_client, grammar_registry, settings, event_sink, materializer)

    service.ingest(REPO_URL)

    dest = materializer.calls[0]["dest_dir"]
    assert dest.parent == Path(settings.WORKSPACE_ROOT)
    assert (dest / "a.py").is_file()
    [retained] = event_sink.named(events.WORKSPACE_RETAINED)
    assert retained["repo_root"] == str(dest)


def test_each_run_gets_a_fresh_directory(neo4j_client, grammar_registry, settings, event_sink) -> None:
    materializer = FakeMaterializer({"a.js": ""})
    service = _service(neo4j_client, grammar_registry, settings, event_sink, materializer)

    service.ingest(REPO_URL)
    service.ingest(REPO_URL)

    first, second = (c["dest_dir"] for c in materializer.calls)
    assert first != second


def test_too_many_files_rejected_before_any_transaction(
    neo4j_client, graph_store, grammar_registry, settings, event_sink
) -> None:
    graph_store.seed(["prev.js"])
    before = graph_store.snapshot()
    materializer = FakeMaterializer({f"f{i}.js": "" for i in range(6)})
    service = _service(neo4j_client, grammar_registry, settings, event_sink, materializer)

    with pytest.raises(DiscoveryLimitExceeded) as exc_info:
        service.ingest(REPO_URL)

    assert exc_info.value.count == 6
    assert exc_info.value.limit == 5
    assert graph_store.transactions_begun == 0
    assert graph_store.snapshot() == before
    [failed] = event_sink.named(events.INGEST_FAILED)
    assert failed["error_type"] == "DiscoveryLimitExceeded"
    assert failed["state"] == IngestionState.CLONED.value


def test_acquisition_failure_leaves_store_untouched(
    neo4j_client, graph_store, grammar_registry, settings, event_sink
) -> None:
    graph_store.seed(["prev.js"])
    service = _service(neo4j_client, grammar_registry, settings, event_sink, _failing_materializer)

    with pytest.raises(AcquisitionFailure):
        service.ingest(REPO_URL)

    assert graph_store.transactions_begun == 0
    assert set(graph_store.snapshot()[0]) == {"prev.js"}
    assert event_sink.named(events.INGEST_STATE) == []
    assert event_sink.named(events.INGEST_FAILED)[0]["state"] == "idle"


def test_transaction_failure_propagates(neo4j_client, graph_store, grammar_registry, settings, event_sink) -> None:
    graph_store.seed(["prev.js"])
    before = graph_store.snapshot()
    materializer = FakeMaterializer({"a.js": "", "bad.js": b"\xc3\x28"})
    service = _service(neo4j_client, grammar_registry, settings, event_sink, materializer)

    with pytest.raises(TransactionFailure):
        service.ingest(REPO_URL)

    assert graph_store.snapshot() == before
    assert event_sink.named(events.INGEST_STATE)[-1]["state"] == "rolled_back"
    assert event_sink.named(events.INGEST_DONE) == []


def test_clone_depth_setting_is_passed_through(neo4j_client, grammar_registry, tmp_path, event_sink) -> None:
    settings = CodeGraphSettings(WORKSPACE_ROOT=str(tmp_path / "ws"), CLONE_DEPTH=None)
    materializer = FakeMaterializer({"a.js": ""})

    _service(neo4j_client, grammar_registry, settings, event_sink, materializer).ingest(REPO_URL)

    assert materializer.calls[0]["depth"] is None


class SlowMaterializer:
    """Per-URL file trees; records how many clones are in flight at once."""

    def __init__(self, trees: dict, delay: float = 0.2):
        self.trees = trees
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def __call__(self, *, git_url: str, dest_dir: Path, depth):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            write_files(dest_dir, self.trees[git_url])
            return GitMaterializationResult(repo_root=dest_dir, head_commit=None)
        finally:
            with self._guard:
                self.active -= 1


def test_concurrent_ingests_are_serialized(neo4j_client, graph_store, grammar_registry, settings, event_sink) -> None:
    trees = {
        "https://example.com/one.git": {"one/a.js": "import './b';\n", "one/b.js": ""},
        "https://example.com/two.git": {"two/main.py": "import util\n", "two/util.py": ""},
    }
    materializer = SlowMaterializer(trees)
    service = _service(neo4j_client, grammar_registry, settings, event_sink, materializer)
    errors = []

    def ingest(url: str) -> None:
        try:
            service.ingest(url)
        except Exception as e:  # surfaced through `errors`
            errors.append(e)

    threads = [threading.Thread(target=ingest, args=(url,)) for url in trees]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    assert materializer.max_active == 1
    lifecycle = [name for name, _ in event_sink.events if name in (events.INGEST_START, events.INGEST_DONE)]
    assert lifecycle == [events.INGEST_START, events.INGEST_DONE] * 2

    nodes, edges = graph_store.snapshot()
    assert set(nodes) in ({"one/a.js", "one/b.js"}, {"two/main.py", "two/util.py"})
    assert len(edges) == 1
    assert graph_store.commits == 2


def test_unreadable_checkout_is_an_ingestion_failure(
    neo4j_client, graph_store, grammar_registry, settings, event_sink
) -> None:
    def vanished_checkout(*, git_url: str, dest_dir: Path, depth):
        return GitMaterializationResult(repo_root=dest_dir / "missing", head_commit=None)

    service = _service(neo4j_client, grammar_registry, settings, event_sink, vanished_checkout)

    with pytest.raises(DiscoveryFailure):
        service.ingest(REPO_URL)

    assert graph_store.transactions_begun == 0
    [failed] = event_sink.named(events.INGEST_FAILED)
    assert failed["error_type"] == "DiscoveryFailure"
    assert failed["state"] == "cloned"
