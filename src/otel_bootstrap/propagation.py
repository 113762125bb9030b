"""W3C Trace Context and Baggage propagation.

The default codec is a composite of W3C Trace Context (traceparent,
tracestate) and W3C Baggage. The helpers below inject and extract context
with an explicit propagator, typically TracingProvider.propagator, instead of
reading the process-wide default.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

if TYPE_CHECKING:
    from collections.abc import Mapping

    from opentelemetry.context import Context
    from opentelemetry.propagators.textmap import TextMapPropagator


def default_propagator() -> CompositePropagator:
    """Build the default W3C Trace Context + Baggage propagator.

    Examples:
        >>> propagator = default_propagator()
        >>> sorted(propagator.fields)
        ['baggage', 'traceparent', 'tracestate']
    """
    return CompositePropagator(
        [
            TraceContextTextMapPropagator(),
            W3CBaggagePropagator(),
        ]
    )


def inject_headers(
    propagator: TextMapPropagator,
    ctx: Context | None = None,
) -> dict[str, str]:
    """Create outgoing headers carrying trace context and baggage.

    Args:
        propagator: Codec to encode with.
        ctx: Context to inject. Uses the current context if not provided.

    Returns:
        Header dictionary (e.g. traceparent, baggage).
    """
    carrier: dict[str, str] = {}
    propagator.inject(carrier, context=ctx)
    return carrier


def extract_context(
    propagator: TextMapPropagator,
    carrier: Mapping[str, str],
) -> Context:
    """Extract trace context and baggage from incoming headers.

    Args:
        propagator: Codec to decode with.
        carrier: Incoming headers.

    Returns:
        Context holding the remote span context and baggage.

    Examples:
        >>> ctx = extract_context(default_propagator(), {
        ...     "traceparent": "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01",
        ... })
    """
    return propagator.extract(dict(carrier))


__all__ = ["default_propagator", "extract_context", "inject_headers"]
