"""Configuration-driven OpenTelemetry tracing bootstrap.

otel-bootstrap assembles a tracing pipeline from a declarative configuration:

- TracingConfig: Validated configuration (service identity, exporter,
  sampling ratio, exporter connection settings, extra resource attributes)
- setup_tracing(): Builds exporter, resource, sampler, TracerProvider and
  propagator, optionally registering them as process-wide defaults
- TracingProvider: Handle owning the pipeline and its shutdown

Supported exporters: stdout (console), otlp (gRPC collector) and
cloudtrace (Google Cloud Trace).

Example:
    >>> from otel_bootstrap import TracingConfig, setup_tracing, with_global
    >>> config = TracingConfig(service_name="orders", exporter="otlp",
    ...                        endpoint="otel-collector:4317", insecure=True)
    >>> provider = setup_tracing(config, with_global(), timeout=10.0)
    >>> try:
    ...     with provider.get_tracer(__name__).start_as_current_span("work"):
    ...         pass
    ... finally:
    ...     provider.shutdown()
"""

from __future__ import annotations

from otel_bootstrap.bootstrap import (
    BATCH_MAX_EXPORT_SIZE,
    BATCH_SCHEDULE_DELAY_MILLIS,
    setup_tracing,
)
from otel_bootstrap.config import (
    ExporterKind,
    TracingConfig,
    sanitize_config,
    validate_config,
)
from otel_bootstrap.errors import (
    ConfigValidationError,
    ExporterError,
    ResourceError,
    ShutdownError,
    TracingError,
)
from otel_bootstrap.exporters import CLOUDTRACE_TIMEOUT_SECONDS, build_exporter
from otel_bootstrap.logging import Logger, add_trace_context, configure_logging
from otel_bootstrap.options import (
    SetupOptions,
    resolve_options,
    with_global,
    with_propagator,
    with_resource_detectors,
    with_sampler_hook,
)
from otel_bootstrap.propagation import default_propagator, extract_context, inject_headers
from otel_bootstrap.provider import TracingProvider
from otel_bootstrap.registry import GlobalRegistry, OpenTelemetryGlobalRegistry
from otel_bootstrap.resource import (
    HostResourceDetector,
    StaticResourceDetector,
    compose_resource,
)
from otel_bootstrap.sampling import (
    DEFAULT_SAMPLING_RATIO,
    build_sampler,
    resolve_sampling_ratio,
)

__all__: list[str] = [
    # Setup
    "setup_tracing",
    "TracingProvider",
    "BATCH_SCHEDULE_DELAY_MILLIS",
    "BATCH_MAX_EXPORT_SIZE",
    # Configuration
    "TracingConfig",
    "ExporterKind",
    "sanitize_config",
    "validate_config",
    # Options
    "SetupOptions",
    "resolve_options",
    "with_global",
    "with_propagator",
    "with_resource_detectors",
    "with_sampler_hook",
    # Exporters
    "build_exporter",
    "CLOUDTRACE_TIMEOUT_SECONDS",
    # Resource
    "compose_resource",
    "HostResourceDetector",
    "StaticResourceDetector",
    # Sampling
    "DEFAULT_SAMPLING_RATIO",
    "resolve_sampling_ratio",
    "build_sampler",
    # Propagation
    "default_propagator",
    "inject_headers",
    "extract_context",
    # Global registration
    "GlobalRegistry",
    "OpenTelemetryGlobalRegistry",
    # Logging
    "Logger",
    "add_trace_context",
    "configure_logging",
    # Errors
    "TracingError",
    "ConfigValidationError",
    "ExporterError",
    "ResourceError",
    "ShutdownError",
]
