"""Network instrumentation helpers.

Thin wrappers over the OpenTelemetry instrumentation libraries for HTTP
(ASGI servers, httpx clients) and gRPC. Extra keyword arguments such as
tracer_provider are passed straight through.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry.instrumentation.asgi import OpenTelemetryMiddleware
from opentelemetry.instrumentation.grpc import client_interceptor, server_interceptor
from opentelemetry.instrumentation.grpc.grpcext import intercept_channel
from opentelemetry.instrumentation.httpx import SyncOpenTelemetryTransport

if TYPE_CHECKING:
    import grpc

# Server span name used when no operation name is given
DEFAULT_HTTP_OPERATION = "http.request"


def http_handler(app: Any, operation: str = "", **kwargs: Any) -> OpenTelemetryMiddleware:
    """Wrap an ASGI application with server-side tracing.

    Args:
        app: ASGI application.
        operation: Span name for incoming requests; blank means
            DEFAULT_HTTP_OPERATION.
        **kwargs: Passed to OpenTelemetryMiddleware.

    Returns:
        Instrumented ASGI application.
    """
    operation = operation.strip() or DEFAULT_HTTP_OPERATION

    def span_details(scope: dict[str, Any]) -> tuple[str, dict[str, Any]]:  # noqa: ARG001
        return operation, {}

    return OpenTelemetryMiddleware(app, default_span_details=span_details, **kwargs)


def http_transport(
    base: httpx.BaseTransport | None = None, **kwargs: Any
) -> SyncOpenTelemetryTransport:
    """Wrap an httpx transport with client-side tracing.

    Args:
        base: Transport to wrap; defaults to httpx.HTTPTransport().
        **kwargs: Passed to SyncOpenTelemetryTransport.
    """
    if base is None:
        base = httpx.HTTPTransport()
    return SyncOpenTelemetryTransport(base, **kwargs)


def grpc_server_interceptor(**kwargs: Any) -> grpc.ServerInterceptor:
    """Return a gRPC server interceptor that traces incoming calls.

    Pass it to grpc.server(..., interceptors=[...]).
    """
    return server_interceptor(**kwargs)


def grpc_client_channel(channel: grpc.Channel, **kwargs: Any) -> grpc.Channel:
    """Wrap a gRPC channel so outgoing calls are traced.

    Args:
        channel: Channel to wrap.
        **kwargs: Passed to the OpenTelemetry client interceptor.
    """
    return intercept_channel(channel, client_interceptor(**kwargs))


__all__ = [
    "DEFAULT_HTTP_OPERATION",
    "grpc_client_channel",
    "grpc_server_interceptor",
    "http_handler",
    "http_transport",
]
