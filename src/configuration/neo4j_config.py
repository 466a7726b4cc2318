"""
Connection settings for the Neo4j store that holds the file graph.
"""

from pydantic import Field, field_validator
from .base_config import BaseConfig

SUPPORTED_SCHEMES = ("bolt", "bolt+s", "bolt+ssc", "neo4j", "neo4j+s", "neo4j+ssc")

class Neo4jSettings(BaseConfig):
    """
    Driver settings shared by the graph writer, the graph reader and the
    health checks.
    """
    NEO4J_URI: str = Field(default="bolt://localhost:7687", description="Bolt or neo4j routing URI")
    NEO4J_USERNAME: str = Field(default="neo4j", description="Basic auth user")
    NEO4J_PASSWORD: str = Field(default="password", description="Basic auth password")
    NEO4J_DATABASE: str = Field(default="neo4j", description="Database the File graph lives in")
    NEO4J_CONNECTION_TIMEOUT: float = Field(default=30.0, description="Maximum pooled connection lifetime, seconds")
    NEO4J_MAX_CONNECTION_POOL_SIZE: int = Field(default=50, description="Upper bound on pooled connections")
    NEO4J_MAX_TRANSACTION_RETRY_TIME: float = Field(default=30.0, description="Driver retry budget for managed transactions, seconds")

    @field_validator('NEO4J_URI')
    @classmethod
    def validate_scheme(cls, v: str):
        """Reject URIs the driver cannot open."""
        scheme = v.split("://", 1)[0] if "://" in v else ""
        if scheme not in SUPPORTED_SCHEMES:
            raise ValueError(f"Unsupported Neo4j URI scheme {scheme!r}; expected one of {SUPPORTED_SCHEMES}")
        return v

    @field_validator(
        'NEO4J_CONNECTION_TIMEOUT',
        'NEO4J_MAX_CONNECTION_POOL_SIZE',
        'NEO4J_MAX_TRANSACTION_RETRY_TIME',
    )
    @classmethod
    def validate_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got {v}")
        return v

    @property
    def uses_secure_scheme(self) -> bool:
        """True for `+s` / `+ssc` schemes, which fix encryption in the URI itself."""
        return self.NEO4J_URI.split("://", 1)[0].endswith(("+s", "+ssc"))
