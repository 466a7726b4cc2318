"""Ingestion API endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.schemas import IngestRequest, IngestResponse
from core.orchestrator import IngestionService


router = APIRouter(tags=["Ingestion"])


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


# Sync handler: FastAPI runs it in the threadpool, so a long ingestion does not block /graph.
@router.post("/ingest", response_model=IngestResponse)
def ingest_endpoint(payload: IngestRequest, request: Request) -> IngestResponse:
    get_ingestion_service(request).ingest(payload.repo_url)
    return IngestResponse()
