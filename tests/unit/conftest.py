"""Unit test fixtures for otel-bootstrap.

Unit tests:
- Run without external services (no collector, no Google Cloud)
- Use mocks/fakes for exporters that would need a backend
- Reset OpenTelemetry and structlog global state around every test
"""

from __future__ import annotations

from collections.abc import Generator
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.trace import TracerProvider


class InMemoryRegistry:
    """GlobalRegistry that records registrations instead of touching globals."""

    def __init__(self) -> None:
        self.tracer_provider: TracerProvider | None = None
        self.propagator: TextMapPropagator | None = None
        self.calls: list[str] = []

    def get_tracer_provider(self) -> TracerProvider | None:
        return self.tracer_provider

    def set_tracer_provider(self, provider: TracerProvider) -> None:
        self.calls.append("set_tracer_provider")
        self.tracer_provider = provider

    def get_propagator(self) -> TextMapPropagator | None:
        return self.propagator

    def set_propagator(self, propagator: TextMapPropagator) -> None:
        self.calls.append("set_propagator")
        self.propagator = propagator


@pytest.fixture
def registry() -> InMemoryRegistry:
    """Return an isolated global registry."""
    return InMemoryRegistry()


@pytest.fixture(autouse=True)
def reset_otel_global_state() -> Generator[None, None, None]:
    """Reset OpenTelemetry global state before and after each test.

    The OpenTelemetry API only lets a process set the global tracer provider
    once. Resetting the set-once guard lets each test register its own.
    Before the test the provider is cleared to None, so lookups fall back to
    the API proxy instead of a fresh ProxyTracerProvider delegating to itself.

    Uses an SDK TracerProvider after the test to avoid recursion issues that
    can occur with ProxyTracerProvider when no real provider is configured.

    Yields:
        None after resetting state.
    """
    from opentelemetry import trace
    from opentelemetry.propagate import get_global_textmap, set_global_textmap
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.util._once import Once

    original_propagator = get_global_textmap()

    trace._TRACER_PROVIDER_SET_ONCE = Once()
    trace._TRACER_PROVIDER = None  # type: ignore[assignment]

    yield

    trace._TRACER_PROVIDER_SET_ONCE = Once()
    trace._TRACER_PROVIDER = TracerProvider()
    set_global_textmap(original_propagator)


@pytest.fixture(autouse=True)
def reset_structlog_after_test() -> Generator[None, None, None]:
    """Reset structlog configuration after each test.

    Tests that call configure_logging() must not leak their configuration
    into later tests.
    """
    import structlog

    yield

    structlog.reset_defaults()
