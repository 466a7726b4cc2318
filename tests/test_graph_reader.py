from conftest import FakeNode, FakeRelationship
from observability import events
from persistence.graph_reader import read_graph, snapshot_from_records


def test_read_graph_returns_nodes_and_links(neo4j_client, graph_store, event_sink) -> None:
    graph_store.seed(["a.js", "b.js", "c.py"], [("a.js", "b.js")])

    snapshot = read_graph(neo4j_client, sink=event_sink).as_dict()

    assert sorted(n["id"] for n in snapshot["nodes"]) == ["a.js", "b.js", "c.py"]
    assert all(n["group"] == "file" for n in snapshot["nodes"])
    assert snapshot["links"] == [{"source": "a.js", "target": "b.js", "type": "DEPENDS_ON"}]
    [read] = event_sink.named(events.GRAPH_READ)
    assert read["nodes"] == 3
    assert read["links"] == 1


def test_empty_store_reads_empty_snapshot(neo4j_client, event_sink) -> None:
    assert read_graph(neo4j_client, sink=event_sink).as_dict() == {"nodes": [], "links": []}


def test_nodes_deduplicated_by_store_identity() -> None:
    a = FakeNode("4:x:1", {"path": "a.js"})
    b = FakeNode("4:x:2", {"path": "b.js"})
    c = FakeNode("4:x:3", {"path": "c.js"})
    rel = FakeRelationship("DEPENDS_ON")
    records = [
        {"n": a, "r": rel, "m": b},
        {"n": a, "r": rel, "m": c},
        {"n": b, "r": None, "m": None},
        {"n": c, "r": None, "m": None},
    ]

    snapshot = snapshot_from_records(records)

    assert [n.id for n in snapshot.nodes] == ["a.js", "b.js", "c.js"]
    assert [(l.source, l.target) for l in snapshot.links] == [("a.js", "b.js"), ("a.js", "c.js")]


def test_row_limit_bounds_the_snapshot(neo4j_client, graph_store, event_sink) -> None:
    graph_store.seed([f"f{i}.js" for i in range(10)])

    snapshot = read_graph(neo4j_client, limit=4, sink=event_sink)

    assert len(snapshot.nodes) == 4
    assert event_sink.named(events.GRAPH_READ)[0]["limit"] == 4


def test_link_target_outside_row_window_still_appears_as_node(neo4j_client, graph_store, event_sink) -> None:
    graph_store.seed(["a.js", "z.js"], [("a.js", "z.js")])

    snapshot = read_graph(neo4j_client, limit=1, sink=event_sink)

    assert sorted(n.id for n in snapshot.nodes) == ["a.js", "z.js"]
    assert len(snapshot.links) == 1
