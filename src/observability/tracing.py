"""OpenTelemetry spans for ingestion stages.

No exporter is wired here. Spans are recorded in-process unless the
deployment installs its own provider, which is then left in place.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider


@lru_cache()
def init_tracing(service_name: str) -> TracerProvider | None:
    """Install an SDK provider tagged with `service_name`; returns None if one was already set."""

    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return None
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    trace.set_tracer_provider(provider)
    return provider


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


@contextmanager
def stage_span(tracer: trace.Tracer, stage: str, **attributes: Any) -> Iterator[trace.Span]:
    """Span named `ingest.<stage>`. None-valued attributes are left off."""

    with tracer.start_as_current_span(f"ingest.{stage}") as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span
