"""Graph snapshot endpoint for the visualization client."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.schemas import GraphResponse
from config import get_code_graph_settings
from persistence.graph_reader import read_graph
from utils.app_factory import get_neo4j_client_from_state
from utils.neo4j_client import Neo4jClient


router = APIRouter(tags=["Graph"])


@router.get("/graph", response_model=GraphResponse)
def graph_endpoint(
    client: Neo4jClient = Depends(get_neo4j_client_from_state),
) -> GraphResponse:
    limit = get_code_graph_settings().GRAPH_ROW_LIMIT
    snapshot = read_graph(client, limit=limit)
    return GraphResponse.model_validate(snapshot.as_dict())
