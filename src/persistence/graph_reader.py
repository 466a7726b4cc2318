"""Bounded read of the stored file graph for visualization."""

from __future__ import annotations

from core.records import DEPENDS_ON, GraphLinkView, GraphNodeView, GraphSnapshot
from observability import events
from observability.events import EventSink, default_event_sink
from utils.neo4j_client import Neo4jClient


DEFAULT_ROW_LIMIT = 1000

# OPTIONAL MATCH keeps files without outgoing edges in the result.
READ_GRAPH_QUERY = """
MATCH (n:File)
OPTIONAL MATCH (n)-[r]->(m)
RETURN n, r, m
LIMIT $limit
"""


def _node_key(node) -> str:
    return str(getattr(node, "element_id", None) or node.id)


def snapshot_from_records(records) -> GraphSnapshot:
    """Build nodes/links from (n, r, m) rows, de-duplicating nodes by store identity."""

    nodes: dict[str, GraphNodeView] = {}
    links: list[GraphLinkView] = []
    for record in records:
        n = record["n"]
        r = record["r"]
        m = record["m"]

        key = _node_key(n)
        if key not in nodes:
            nodes[key] = GraphNodeView(id=n["path"])

        if r is not None and m is not None:
            m_key = _node_key(m)
            if m_key not in nodes:
                nodes[m_key] = GraphNodeView(id=m["path"])
            links.append(GraphLinkView(source=n["path"], target=m["path"], type=r.type or DEPENDS_ON))

    return GraphSnapshot(nodes=list(nodes.values()), links=links)


def read_graph(
    neo4j_client: Neo4jClient,
    *,
    limit: int = DEFAULT_ROW_LIMIT,
    sink: EventSink | None = None,
) -> GraphSnapshot:
    with neo4j_client.get_session() as session:
        result = session.run(READ_GRAPH_QUERY, {"limit": limit})
        snapshot = snapshot_from_records(list(result))
    (sink or default_event_sink()).emit(
        events.GRAPH_READ, nodes=len(snapshot.nodes), links=len(snapshot.links), limit=limit
    )
    return snapshot
