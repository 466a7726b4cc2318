"""
Process-level settings: HTTP port, log level, service identity, plus the
composed Neo4j group.
"""
from functools import lru_cache
from pydantic import Field
from dotenv import load_dotenv
from .base_config import BaseConfig
from .neo4j_config import Neo4jSettings

# Exported so nested settings groups built later see the same values.
load_dotenv()

class AppSettings(BaseConfig):
    """
    Settings read by the entry point before anything else is built.
    """

    API_PORT: int = Field(default=3000, description="Port the HTTP API listens on")

    LOG_LEVEL: str = Field(default="INFO", description="Root log level name, e.g. DEBUG or WARNING")

    SERVICE_NAME: str = Field(
        default="code-dependency-graph-service",
        description="service.name resource attribute on emitted spans",
    )

    neo4j: Neo4jSettings = Field(default_factory=Neo4jSettings)

@lru_cache()
def get_app_settings() -> AppSettings:
    """
    Load the process settings once.
    """
    return AppSettings()
