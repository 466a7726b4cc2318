"""FastAPI application factory for the graph service."""

from contextlib import asynccontextmanager
from typing import Optional
import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from utils.error_handler import ErrorHandler
from utils.neo4j_client import Neo4jClient, Neo4jHealthChecker

logger = structlog.get_logger(__name__)


def get_neo4j_client_from_state(request: Request) -> Neo4jClient:
    """Dependency returning the store client attached to the app."""
    return request.app.state.neo4j_client


class FastAPIFactory:
    """Builds the service app around a store client owned by the caller."""

    @staticmethod
    def create_app(
        title: str,
        description: str,
        version: str,
        neo4j_client: Optional[Neo4jClient] = None,
        verify_store_on_startup: bool = True,
        enable_cors: bool = True,
    ) -> FastAPI:
        """Create the app, attach `neo4j_client` to `app.state` and register health routes.

        The lifespan verifies the store before serving (raising
        StoreConnectivityFailure when it is unreachable) and closes the client
        on shutdown.
        """

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            client = getattr(app.state, "neo4j_client", None)
            if client is not None and verify_store_on_startup:
                client.verify_connectivity()
            logger.info("Application started", title=title, version=version)

            yield

            client = getattr(app.state, "neo4j_client", None)
            if client is not None:
                try:
                    client.close()
                except Exception as e:
                    logger.warning("Failed to close Neo4j client on shutdown", error=str(e))
            logger.info("Application stopped", title=title)

        app = FastAPI(title=title, description=description, version=version, lifespan=lifespan)
        ErrorHandler().register_exception_handlers(app)

        if enable_cors:
            app.add_middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )

        @app.get("/health", tags=["Health"])
        def health_check():
            return {"status": "ok"}

        if neo4j_client is not None:
            app.state.neo4j_client = neo4j_client

            @app.get("/health/neo4j", tags=["Health"])
            def neo4j_health_check(client: Neo4jClient = Depends(get_neo4j_client_from_state)):
                """Store reachability, server version and stored graph size."""
                return Neo4jHealthChecker.check_health_with_details(client)

        return app
