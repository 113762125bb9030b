"""Tracing pipeline assembly.

setup_tracing() is the entry point of otel-bootstrap. It turns a
TracingConfig into a running pipeline:

    sanitize -> validate -> build exporter -> compose resource
    -> resolve sampler -> TracerProvider + BatchSpanProcessor
    -> choose propagator -> (optional) global registration

and returns a TracingProvider that owns shutdown.

Setup is synchronous. The optional timeout bounds the blocking steps
(exporter construction and resource detection); expiry surfaces as an
ExporterError or ResourceError. Nothing is retried. If any step after
exporter construction fails, everything built so far is shut down before
the error propagates.

Example:
    >>> provider = setup_tracing({"serviceName": "orders", "exporter": "stdout"})
    >>> tracer = provider.get_tracer("orders.checkout")
    >>> provider.shutdown()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pydantic import ValidationError

from otel_bootstrap.config import TracingConfig, sanitize_config, validate_config
from otel_bootstrap.deadline import Deadline
from otel_bootstrap.errors import ConfigValidationError
from otel_bootstrap.exporters import build_exporter
from otel_bootstrap.options import resolve_options
from otel_bootstrap.propagation import default_propagator
from otel_bootstrap.provider import TracingProvider
from otel_bootstrap.registry import register_global
from otel_bootstrap.resource import compose_resource
from otel_bootstrap.sampling import build_sampler, resolve_sampling_ratio

if TYPE_CHECKING:
    from opentelemetry.sdk.trace.export import SpanExporter

    from otel_bootstrap.logging import Logger
    from otel_bootstrap.options import SetupDirective

_logger = structlog.get_logger(__name__)

# Batch span processor settings
BATCH_SCHEDULE_DELAY_MILLIS = 5000
BATCH_MAX_EXPORT_SIZE = 512


def setup_tracing(
    config: TracingConfig | Mapping[str, Any],
    *options: SetupDirective | None,
    logger: Logger | None = None,
    timeout: float | None = None,
) -> TracingProvider:
    """Assemble a tracing pipeline from configuration.

    Args:
        config: TracingConfig, or a mapping using the JSON field names
            (serviceName, samplingRatio, ...).
        *options: Setup directives (with_global(), with_propagator(), ...),
            applied in order. None entries are ignored.
        logger: Optional structured logger for setup events.
        timeout: Seconds allowed for exporter construction and resource
            detection, or None for no bound.

    Returns:
        TracingProvider owning the pipeline. Call shutdown() exactly once.

    Raises:
        ConfigValidationError: If the configuration is invalid.
        ExporterError: If the exporter cannot be constructed.
        ResourceError: If the resource cannot be composed.
    """
    log = logger if logger is not None else _logger

    cfg = sanitize_config(_coerce_config(config))
    validate_config(cfg)

    opts = resolve_options(options)
    deadline = Deadline(timeout)

    exporter = build_exporter(cfg, deadline, log)
    tracer_provider: TracerProvider | None = None
    try:
        resource = compose_resource(cfg, opts.resource_detectors, deadline)
        ratio = resolve_sampling_ratio(cfg, opts.sampler_hook)

        tracer_provider = TracerProvider(
            sampler=build_sampler(ratio),
            resource=resource,
        )
        tracer_provider.add_span_processor(
            BatchSpanProcessor(
                exporter,
                schedule_delay_millis=BATCH_SCHEDULE_DELAY_MILLIS,
                max_export_batch_size=BATCH_MAX_EXPORT_SIZE,
            )
        )

        propagator = opts.propagator if opts.propagator is not None else default_propagator()

        if opts.register_global:
            register_global(opts.registry, tracer_provider, propagator)
    except Exception:
        _release(exporter, tracer_provider, log)
        raise

    log.info(
        "tracing.setup.completed",
        service_name=cfg.service_name,
        exporter=cfg.exporter_kind.value,
        sampling_ratio=ratio,
        global_registration=opts.register_global,
    )
    return TracingProvider(tracer_provider, propagator, exporter)


def _release(
    exporter: SpanExporter,
    tracer_provider: TracerProvider | None,
    log: Logger,
) -> None:
    """Release what setup built before failing.

    The tracer provider's batch processor owns the exporter once attached, so
    shutting the provider down also shuts the exporter down. A cleanup
    failure is logged and the original setup error is what propagates.
    """
    try:
        if tracer_provider is not None:
            tracer_provider.shutdown()
        else:
            exporter.shutdown()
    except Exception as e:
        log.warning("tracing.setup.cleanup_failed", error=str(e))


def _coerce_config(config: TracingConfig | Mapping[str, Any]) -> TracingConfig:
    if isinstance(config, TracingConfig):
        return config
    try:
        return TracingConfig.model_validate(config)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "config"
        raise ConfigValidationError(field, f"{field}: {first['msg']}") from e


__all__ = [
    "BATCH_MAX_EXPORT_SIZE",
    "BATCH_SCHEDULE_DELAY_MILLIS",
    "setup_tracing",
]
