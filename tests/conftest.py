"""
tests.conftest

Shared fixtures for observation core and demo tests.

Responsibilities:
- Provide a recording handler and a registry wired with it.
- Provide an in-memory OpenTelemetry tracer provider and a private Prometheus registry.
"""

from __future__ import annotations

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry

from observation_demo.observation import ObservationRegistry
from tests.support import RecordingHandler


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def registry(recorder: RecordingHandler) -> ObservationRegistry:
    return ObservationRegistry().observation_handler(recorder)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> TracerProvider:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    return CollectorRegistry()


# --- Module Notes -----------------------------------------------------------
# Each test gets its own CollectorRegistry so metric names never collide across tests.
