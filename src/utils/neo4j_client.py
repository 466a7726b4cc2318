"""Neo4j driver ownership and store health reporting.

The entry point builds one `Neo4jClient` per process and hands it to the
ingestion service, the graph endpoint and the app lifespan.
"""

from functools import lru_cache
import structlog
from neo4j import GraphDatabase, Driver, Session
from neo4j.exceptions import DriverError, Neo4jError
from configuration.neo4j_config import Neo4jSettings
from configuration.common_config import get_app_settings
from core.errors import StoreConnectivityFailure

logger = structlog.get_logger(__name__)

PING_QUERY = "RETURN 1 AS ok"
COMPONENTS_QUERY = "CALL dbms.components() YIELD name, versions, edition RETURN name, versions, edition"
GRAPH_SIZE_QUERY = """
MATCH (f:File)
OPTIONAL MATCH (f)-[d:DEPENDS_ON]->()
RETURN count(DISTINCT f) AS files, count(d) AS dependencies
"""


def driver_options(settings: Neo4jSettings) -> dict:
    """Keyword arguments for `GraphDatabase.driver`."""
    options = {
        "auth": (settings.NEO4J_USERNAME, settings.NEO4J_PASSWORD),
        "max_connection_lifetime": settings.NEO4J_CONNECTION_TIMEOUT,
        "max_connection_pool_size": settings.NEO4J_MAX_CONNECTION_POOL_SIZE,
        "max_transaction_retry_time": settings.NEO4J_MAX_TRANSACTION_RETRY_TIME,
    }
    # The driver rejects `encrypted` alongside a +s/+ssc scheme.
    if not settings.uses_secure_scheme:
        options["encrypted"] = False
    return options


class Neo4jClientFactory:
    """Builds drivers from settings."""

    @staticmethod
    def create_driver(settings: Neo4jSettings) -> Driver:
        driver = GraphDatabase.driver(settings.NEO4J_URI, **driver_options(settings))
        logger.info("Neo4j driver created", uri=settings.NEO4J_URI, database=settings.NEO4J_DATABASE)
        return driver


class Neo4jClient:
    """Process-wide handle on the graph store.

    Creating the client does not open a connection; call
    `verify_connectivity()` to fail fast.
    """

    def __init__(self, settings: Neo4jSettings):
        self.settings = settings
        self._driver = Neo4jClientFactory.create_driver(settings)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def driver(self) -> Driver:
        return self._driver

    def close(self):
        if self._driver is None:
            return
        self._driver.close()
        self._driver = None
        logger.info("Neo4j driver closed", uri=self.settings.NEO4J_URI)

    def get_session(self, database: str = None) -> Session:
        """Open a session on `database`, or on the configured one."""
        return self.driver.session(database=database or self.settings.NEO4J_DATABASE)

    def verify_connectivity(self) -> None:
        """
        Raises:
            StoreConnectivityFailure: the server could not be reached or refused the credentials
        """
        try:
            self.driver.verify_connectivity()
        except (DriverError, Neo4jError, OSError) as e:
            logger.error("Neo4j unreachable", uri=self.settings.NEO4J_URI, error=str(e))
            raise StoreConnectivityFailure(f"Neo4j unreachable at {self.settings.NEO4J_URI}: {e}") from e
        logger.info("Neo4j reachable", uri=self.settings.NEO4J_URI)


@lru_cache()
def get_neo4j_client() -> Neo4jClient:
    """Process-wide client built from the app settings."""
    return Neo4jClient(get_app_settings().neo4j)


class Neo4jHealthChecker:
    """Reports store reachability, server version and stored graph size."""

    @staticmethod
    def check_health_with_details(client: Neo4jClient) -> dict:
        details = {
            "database": client.settings.NEO4J_DATABASE,
            "uri": client.settings.NEO4J_URI,
        }
        try:
            with client.get_session() as session:
                session.run(PING_QUERY).single()
                component = session.run(COMPONENTS_QUERY).single()
                size = session.run(GRAPH_SIZE_QUERY).single()
        except Exception as e:
            details.update(healthy=False, error=str(e))
            logger.error("Neo4j health check failed", **details)
            return details

        details.update(
            healthy=True,
            name=component["name"],
            version=component["versions"][0],
            edition=component["edition"],
            file_nodes=size["files"],
            dependency_edges=size["dependencies"],
        )
        logger.info("Neo4j health check passed", **details)
        return details
