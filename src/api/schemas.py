"""Pydantic request/response models for the ingestion and graph API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class IngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_url: str = Field(alias="repoUrl", min_length=1)


class IngestResponse(BaseModel):
    status: Literal["Ingestion complete"] = "Ingestion complete"


class GraphNode(BaseModel):
    id: str
    group: str = "file"


class GraphLink(BaseModel):
    source: str
    target: str
    type: str


class GraphResponse(BaseModel):
    nodes: list[GraphNode]
    links: list[GraphLink]
