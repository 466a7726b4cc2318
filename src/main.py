"""Repository dependency graph service FastAPI application.

Startup order: settings, logging, tracing, the Neo4j client, the grammar
registry, then the ingestion service that shares the client. The lifespan
refuses to serve when Neo4j is unreachable.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI

from configuration.common_config import get_app_settings
from configuration.logging_config import configure_logging
from core.orchestrator import IngestionService
from observability.tracing import init_tracing
from parsing.grammars import build_grammar_registry
from utils.app_factory import FastAPIFactory
from utils.neo4j_client import get_neo4j_client

from api.routers.graph import router as graph_router
from api.routers.ingest import router as ingest_router

settings = get_app_settings()
configure_logging(settings.LOG_LEVEL)
logger = structlog.get_logger(__name__)
init_tracing(settings.SERVICE_NAME)

neo4j_client = get_neo4j_client()

app: FastAPI = FastAPIFactory.create_app(
    title="Code Dependency Graph Service",
    description="Clones a git repository and stores its file-level import graph in Neo4j",
    version="0.1.0",
    neo4j_client=neo4j_client,
)

grammar_registry = build_grammar_registry()
if grammar_registry.degraded_tags():
    logger.warning("Running with fallback grammars", tags=grammar_registry.degraded_tags())

app.state.grammar_registry = grammar_registry
app.state.ingestion_service = IngestionService(neo4j_client, grammar_registry)

app.include_router(ingest_router)
app.include_router(graph_router)


def serve() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.API_PORT)


if __name__ == "__main__":
    serve()
