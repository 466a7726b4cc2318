"""
Shared fixtures: an in-memory stand-in for the Neo4j driver surface the
graph writer and reader use, plus small repository builders.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from neo4j.exceptions import ServiceUnavailable

from observability.events import RecordingEventSink
from parsing.grammars import build_grammar_registry
from persistence.graph_reader import READ_GRAPH_QUERY
from persistence.graph_writer import CLEAR_GRAPH_QUERY, MERGE_DEPENDENCY_QUERY, MERGE_FILE_QUERY


@dataclass
class FakeNode:
    element_id: str
    props: dict

    def __getitem__(self, key):
        return self.props[key]


@dataclass
class FakeRelationship:
    type: str


@dataclass
class FakeGraphStore:
    """Committed graph state: File nodes keyed by path, edges as (from, to, type)."""

    nodes: dict = field(default_factory=dict)
    edges: list = field(default_factory=list)
    transactions_begun: int = 0
    commits: int = 0
    rollbacks: int = 0
    fail_on_commit: bool = False
    _next_id: int = 0

    def new_id(self) -> str:
        self._next_id += 1
        return f"4:fake:{self._next_id}"

    def snapshot(self):
        return (
            {p: dict(v["props"]) for p, v in self.nodes.items()},
            sorted(self.edges),
        )

    def seed(self, paths, edges=()):
        for p in paths:
            self.nodes[p] = {"id": self.new_id(), "props": {"path": p, "snippet": ""}}
        for a, b in edges:
            self.edges.append((a, b, "DEPENDS_ON"))


class FakeTransaction:
    def __init__(self, store: FakeGraphStore):
        self.store = store
        self.nodes = {p: {"id": v["id"], "props": dict(v["props"])} for p, v in store.nodes.items()}
        self.edges = list(store.edges)
        self.queries = []
        self.closed = False

    def run(self, query, parameters=None, **kwargs):
        params = dict(parameters or {}, **kwargs)
        self.queries.append((query, params))
        if query == CLEAR_GRAPH_QUERY:
            self.nodes = {}
            self.edges = []
        elif query == MERGE_FILE_QUERY:
            node = self.nodes.setdefault(
                params["path"], {"id": self.store.new_id(), "props": {"path": params["path"]}}
            )
            node["props"]["snippet"] = params["snippet"]
        elif query == MERGE_DEPENDENCY_QUERY:
            if params["from_path"] not in self.nodes:
                return []
            self.nodes.setdefault(
                params["to_path"], {"id": self.store.new_id(), "props": {"path": params["to_path"]}}
            )
            edge = (params["from_path"], params["to_path"], "DEPENDS_ON")
            if edge not in self.edges:
                self.edges.append(edge)
        else:
            raise AssertionError(f"Unexpected query in transaction: {query!r}")
        return []

    def commit(self):
        if self.store.fail_on_commit:
            self.closed = True
            raise ServiceUnavailable("connection lost during commit")
        self.store.nodes = self.nodes
        self.store.edges = self.edges
        self.store.commits += 1
        self.closed = True

    def rollback(self):
        self.store.rollbacks += 1
        self.closed = True


class FakeSession:
    def __init__(self, store: FakeGraphStore):
        self.store = store

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def begin_transaction(self):
        self.store.transactions_begun += 1
        return FakeTransaction(self.store)

    def run(self, query, parameters=None, **kwargs):
        assert query == READ_GRAPH_QUERY, f"Unexpected read query: {query!r}"
        params = dict(parameters or {}, **kwargs)
        rows = []
        for path, node in self.store.nodes.items():
            n = FakeNode(node["id"], node["props"])
            outgoing = [e for e in self.store.edges if e[0] == path]
            if not outgoing:
                rows.append({"n": n, "r": None, "m": None})
            for _, to, rel_type in outgoing:
                target = self.store.nodes[to]
                rows.append({"n": n, "r": FakeRelationship(rel_type), "m": FakeNode(target["id"], target["props"])})
        return rows[: params["limit"]]


class FakeNeo4jClient:
    def __init__(self, store: FakeGraphStore | None = None):
        self.store = store or FakeGraphStore()

    def get_session(self, database=None):
        return FakeSession(self.store)

    def verify_connectivity(self):
        return None

    def close(self):
        return None


@pytest.fixture
def graph_store() -> FakeGraphStore:
    return FakeGraphStore()


@pytest.fixture
def neo4j_client(graph_store) -> FakeNeo4jClient:
    return FakeNeo4jClient(graph_store)


@pytest.fixture
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture(scope="session")
def grammar_registry():
    return build_grammar_registry(sink=RecordingEventSink())


def write_files(root: Path, files: dict) -> Path:
    """Create `files` ({relative path: str | bytes}) under `root`."""
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            p.write_bytes(content)
        else:
            p.write_text(content, encoding="utf-8")
    return root


def notebook(*cells) -> str:
    """Serialize a minimal notebook from (cell_type, source) pairs."""
    return json.dumps(
        {
            "cells": [{"cell_type": t, "metadata": {}, "source": s} for t, s in cells],
            "metadata": {},
            "nbformat": 4,
            "nbformat_minor": 5,
        }
    )
