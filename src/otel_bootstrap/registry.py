"""Process-wide tracer provider and propagator registration.

Global registration is a side effect on shared process state, so setup
performs it through an injectable GlobalRegistry. Production code uses
OpenTelemetryGlobalRegistry, which writes the OpenTelemetry API globals;
tests can substitute an isolated registry.

Registration is last-writer-wins and unsynchronized: concurrent setups that
both register globally race, and shutting a pipeline down does not undo it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog
from opentelemetry import propagate, trace

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator

logger = structlog.get_logger(__name__)


@runtime_checkable
class GlobalRegistry(Protocol):
    """Holder of the process-wide tracer provider and propagator."""

    def get_tracer_provider(self) -> trace.TracerProvider: ...

    def set_tracer_provider(self, provider: trace.TracerProvider) -> None: ...

    def get_propagator(self) -> TextMapPropagator: ...

    def set_propagator(self, propagator: TextMapPropagator) -> None: ...


class DelegatingTracerProvider(trace.TracerProvider):
    """Process-wide tracer provider that forwards to a swappable delegate.

    The OpenTelemetry API accepts a global tracer provider only once per
    process. OpenTelemetryGlobalRegistry installs this provider once and then
    repoints it, so the most recently registered pipeline serves every
    global tracer, including tracers handed out before the swap.

    Attributes other than get_tracer (resource, force_flush, ...) are read
    from the current delegate.
    """

    def __init__(self, delegate: trace.TracerProvider) -> None:
        self.delegate = delegate

    def get_tracer(
        self,
        instrumenting_module_name: str,
        instrumenting_library_version: str | None = None,
        schema_url: str | None = None,
        attributes: Any = None,
    ) -> trace.Tracer:
        return _DelegatingTracer(
            self,
            instrumenting_module_name,
            instrumenting_library_version,
            schema_url,
            attributes,
        )

    def __getattr__(self, name: str) -> Any:
        if name == "delegate":
            raise AttributeError(name)
        return getattr(self.delegate, name)


class _DelegatingTracer(trace.Tracer):
    """Tracer resolved against the provider's current delegate on each use."""

    def __init__(self, provider: DelegatingTracerProvider, *args: Any) -> None:
        self._provider = provider
        self._args = args
        self._cached: tuple[trace.TracerProvider, trace.Tracer] | None = None

    def _tracer(self) -> trace.Tracer:
        delegate = self._provider.delegate
        if self._cached is None or self._cached[0] is not delegate:
            self._cached = (delegate, delegate.get_tracer(*self._args))
        return self._cached[1]

    def start_span(self, *args: Any, **kwargs: Any) -> trace.Span:
        return self._tracer().start_span(*args, **kwargs)

    def start_as_current_span(self, *args: Any, **kwargs: Any) -> Any:
        return self._tracer().start_as_current_span(*args, **kwargs)


class OpenTelemetryGlobalRegistry:
    """GlobalRegistry backed by the OpenTelemetry API globals.

    The first registration installs a DelegatingTracerProvider as the API's
    global tracer provider; later registrations repoint it. If something
    else already claimed the global tracer provider, the API ignores the
    registration and a warning is logged.
    """

    def get_tracer_provider(self) -> trace.TracerProvider:
        current = trace.get_tracer_provider()
        if isinstance(current, DelegatingTracerProvider):
            return current.delegate
        return current

    def set_tracer_provider(self, provider: trace.TracerProvider) -> None:
        current = trace.get_tracer_provider()
        if isinstance(current, DelegatingTracerProvider):
            current.delegate = provider
            return

        delegating = DelegatingTracerProvider(provider)
        trace.set_tracer_provider(delegating)
        if trace.get_tracer_provider() is not delegating:
            logger.warning(
                "tracing.global.provider_not_replaced",
                reason="global tracer provider was already set outside otel-bootstrap",
            )

    def get_propagator(self) -> TextMapPropagator:
        return propagate.get_global_textmap()

    def set_propagator(self, propagator: TextMapPropagator) -> None:
        propagate.set_global_textmap(propagator)


def register_global(
    registry: GlobalRegistry,
    provider: trace.TracerProvider,
    propagator: TextMapPropagator,
) -> None:
    """Install provider and propagator as process-wide defaults.

    Args:
        registry: Target registry.
        provider: Tracer provider to install.
        propagator: Propagation codec to install.
    """
    registry.set_tracer_provider(provider)
    registry.set_propagator(propagator)
    logger.info("tracing.global.registered", registry=type(registry).__name__)


__all__ = [
    "DelegatingTracerProvider",
    "GlobalRegistry",
    "OpenTelemetryGlobalRegistry",
    "register_global",
]
