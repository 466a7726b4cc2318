"""Service-specific configuration for the dependency graph service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field

from configuration.base_config import BaseConfig


class CodeGraphSettings(BaseConfig):
    """Settings specific to repository ingestion and graph reads."""

    WORKSPACE_ROOT: str = Field(
        default="temp_repos",
        description="Base directory for per-run clone directories. Run directories are kept after ingestion.",
    )

    MAX_DISCOVERED_FILES: int = Field(
        default=500,
        description="Ingestion is rejected before any parsing when a repository holds more eligible files than this.",
        ge=1,
    )

    GRAPH_ROW_LIMIT: int = Field(
        default=1000,
        description="Maximum (node, edge, neighbor) rows fetched for one graph snapshot.",
        ge=1,
    )

    SNIPPET_LENGTH: int = Field(
        default=200,
        description="Number of leading characters of normalized content stored on each File node.",
        ge=0,
    )

    CLONE_DEPTH: int | None = Field(
        default=1,
        description="Shallow clone depth; unset for a full clone.",
        ge=1,
    )

    EXTRA_IGNORE_PATTERNS: list[str] = Field(
        default_factory=list,
        description="Additional gitwildmatch patterns excluded from discovery.",
    )


@lru_cache()
def get_code_graph_settings() -> CodeGraphSettings:
    """Return cached service settings instance."""

    return CodeGraphSettings()
