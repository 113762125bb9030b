"""TracingProvider: handle owning an assembled tracing pipeline.

The handle returned by setup_tracing() exposes the SDK TracerProvider and the
propagation codec, and owns shutdown of both the span exporter and the
provider. The caller must shut it down exactly once before process exit,
otherwise the batching worker thread and any exporter connection leak.

Example:
    >>> with setup_tracing(TracingConfig(service_name="orders")) as provider:
    ...     tracer = provider.get_tracer(__name__)
    ...     with tracer.start_as_current_span("checkout"):
    ...         pass
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from otel_bootstrap.errors import ShutdownError

if TYPE_CHECKING:
    from types import TracebackType

    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SpanExporter
    from opentelemetry.trace import Tracer

logger = structlog.get_logger(__name__)

# Flush budget when shutdown() is called without a timeout (SDK default)
_DEFAULT_FLUSH_TIMEOUT = 30.0


class TracingProvider:
    """Handle bundling the TracerProvider, propagator and shutdown.

    Attributes:
        tracer_provider: SDK TracerProvider with sampler, resource and
            batching processor configured.
        propagator: Propagation codec chosen during setup.
    """

    def __init__(
        self,
        tracer_provider: TracerProvider,
        propagator: TextMapPropagator,
        exporter: SpanExporter,
    ) -> None:
        """Initialize the handle.

        Args:
            tracer_provider: Assembled SDK tracer provider.
            propagator: Propagation codec.
            exporter: Span exporter feeding the provider's batch processor.
        """
        self.tracer_provider = tracer_provider
        self.propagator = propagator
        self._exporter = exporter

    def get_tracer(self, name: str, version: str | None = None) -> Tracer:
        """Return a tracer from this pipeline's provider.

        Args:
            name: Instrumentation scope name, usually the module __name__.
            version: Optional instrumentation scope version.
        """
        return self.tracer_provider.get_tracer(name, version)

    def shutdown(self, timeout: float | None = None) -> None:
        """Flush and shut down the exporter, then the tracer provider.

        Every step always runs. Failures are collected and raised together:
        a flush that fails or does not finish in time, or an exporter that
        fails to close, is the exporter-side failure; a failing provider
        shutdown is the provider-side failure.

        Calling shutdown more than once is not supported; the outcome is
        whatever the exporter and provider do on a second shutdown.

        Args:
            timeout: Seconds allowed for flushing buffered spans, or None for
                the SDK default (30 seconds).

        Raises:
            ShutdownError: If the exporter or the provider failed to shut down.
        """
        exporter_error: Exception | None = None
        provider_error: Exception | None = None

        # Drain batched spans while the exporter is still open
        try:
            flush_seconds = timeout if timeout is not None else _DEFAULT_FLUSH_TIMEOUT
            flush_millis = int(flush_seconds * 1000)
            if not self.tracer_provider.force_flush(timeout_millis=flush_millis):
                exporter_error = TimeoutError(
                    f"span flush did not complete within {flush_millis} ms"
                )
        except Exception as e:
            exporter_error = e

        try:
            self._exporter.shutdown()
        except Exception as e:
            if exporter_error is not None:
                logger.warning("tracing.shutdown.flush_failed", error=str(exporter_error))
            exporter_error = e

        try:
            self.tracer_provider.shutdown()
        except Exception as e:
            provider_error = e

        if exporter_error is not None or provider_error is not None:
            logger.error(
                "tracing.shutdown.failed",
                exporter_error=str(exporter_error) if exporter_error else None,
                provider_error=str(provider_error) if provider_error else None,
            )
            raise ShutdownError(exporter_error, provider_error)

        logger.debug("tracing.shutdown.completed")

    def __enter__(self) -> TracingProvider:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Shut the pipeline down when leaving the with block."""
        self.shutdown()


__all__ = ["TracingProvider"]
