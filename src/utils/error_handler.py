"""Exception to JSON response mapping for the graph service API.

Every error body has the shape `{"status": "error", "detail": str}`. A failed
ingestion always answers with the same fixed detail; its cause only goes to
the logs.
"""

import re
from typing import Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import neo4j
import structlog

from core.errors import IngestionError

logger = structlog.get_logger(__name__)

INGESTION_FAILED = "Ingestion failed"

# Checked in order; subclasses first.
NEO4J_ERROR_LABELS = (
    (neo4j.exceptions.ServiceUnavailable, "Neo4j service unavailable"),
    (neo4j.exceptions.SessionExpired, "Neo4j session expired"),
    (neo4j.exceptions.AuthError, "Neo4j authentication failed"),
    (neo4j.exceptions.ClientError, "Neo4j client error"),
    (neo4j.exceptions.TransientError, "Neo4j transient error"),
    (neo4j.exceptions.Neo4jError, "Neo4j error"),
    (neo4j.exceptions.DriverError, "Neo4j driver error"),
)

_REDACTIONS = (
    (re.compile(r'(password|token|key|secret)=\S+', re.IGNORECASE), r'\1=[REDACTED]'),
    (re.compile(r'://[^/\s:@]+:[^/\s@]+@'), '://[REDACTED]@'),
)


def sanitize_error_message(message: str) -> str:
    """Redact credentials that drivers and git transports echo back."""
    for pattern, replacement in _REDACTIONS:
        message = pattern.sub(replacement, message)
    return message


def classify_neo4j_error(error: Exception) -> str:
    for error_type, label in NEO4J_ERROR_LABELS:
        if isinstance(error, error_type):
            return label
    return "Unexpected error"


def _error_response(status_code: int, detail: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "detail": detail}, headers=headers)


def _with_context(message: str, context: Optional[str]) -> str:
    return f"{message}: {context}" if context and context.strip() else message


class ErrorHandler:
    """Formats and registers the service's exception handlers."""

    def format_ingestion_error(self, error: IngestionError) -> JSONResponse:
        logger.error(
            "Ingestion failed",
            error_type=type(error).__name__,
            message=sanitize_error_message(str(error)),
        )
        return _error_response(500, INGESTION_FAILED)

    def format_neo4j_error(self, error: Exception) -> JSONResponse:
        """Neo4j server errors and driver-side errors (unavailable, expired session)."""
        label = classify_neo4j_error(error)
        message = sanitize_error_message(str(error))
        logger.error("Neo4j error", error_type=label, message=message)
        return _error_response(500, _with_context(label, message))

    def format_generic_error(self, error: Exception) -> JSONResponse:
        message = sanitize_error_message(str(error))
        logger.error("Unhandled error", error_type=type(error).__name__, message=message)
        return _error_response(500, _with_context("Unexpected error", message))

    def format_http_exception(self, error: HTTPException) -> JSONResponse:
        message = sanitize_error_message(str(error.detail))
        logger.warning("HTTP error", status_code=error.status_code, message=message)
        return _error_response(
            error.status_code,
            _with_context("HTTP error", message),
            headers=getattr(error, "headers", None) or {},
        )

    def format_validation_error(self, error: RequestValidationError) -> JSONResponse:
        """The request body is not echoed back; field locations go to the log only."""
        logger.warning("Request validation error", locations=[e.get("loc") for e in error.errors()])
        return _error_response(422, "Validation error: Request validation failed")

    def register_exception_handlers(self, app: FastAPI) -> None:
        handlers = (
            (HTTPException, self.format_http_exception),
            (RequestValidationError, self.format_validation_error),
            (IngestionError, self.format_ingestion_error),
            (neo4j.exceptions.Neo4jError, self.format_neo4j_error),
            (neo4j.exceptions.DriverError, self.format_neo4j_error),
            (Exception, self.format_generic_error),
        )
        for exc_class, formatter in handlers:
            app.add_exception_handler(exc_class, self._adapt(formatter))

    @staticmethod
    def _adapt(formatter):
        def handler(_: Request, exc: Exception) -> JSONResponse:
            return formatter(exc)

        return handler
