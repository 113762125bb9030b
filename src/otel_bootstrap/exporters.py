"""Span exporter factory.

build_exporter() turns a validated TracingConfig into a live SpanExporter:

- stdout: ConsoleSpanExporter, pretty JSON per span (local development).
- otlp: OTLPSpanExporter over gRPC, honoring the caller's deadline.
- cloudtrace: CloudTraceSpanExporter, constructed under a fixed 10 second
  deadline independent of the caller's.

Every construction failure is raised as ExporterError prefixed with the
variant name ("otlp exporter: ..."), with the original exception chained.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter
from typing_extensions import assert_never

from otel_bootstrap.config import ExporterKind
from otel_bootstrap.deadline import Deadline
from otel_bootstrap.errors import ExporterError

if TYPE_CHECKING:
    from opentelemetry.sdk.trace.export import SpanExporter

    from otel_bootstrap.config import TracingConfig
    from otel_bootstrap.logging import Logger

logger = structlog.get_logger(__name__)

# Cloud Trace client construction timeout, in seconds
CLOUDTRACE_TIMEOUT_SECONDS = 10.0


def build_exporter(
    config: TracingConfig,
    deadline: Deadline | None = None,
    log: Logger | None = None,
) -> SpanExporter:
    """Construct the span exporter selected by the configuration.

    Args:
        config: Sanitized and validated configuration.
        deadline: Caller deadline for blocking construction steps.
        log: Optional logger; defaults to this module's structlog logger.

    Returns:
        A live SpanExporter owned by the caller.

    Raises:
        ExporterError: If the exporter cannot be constructed.
        ConfigValidationError: If the exporter selector is unsupported.
    """
    log = log if log is not None else logger
    deadline = deadline if deadline is not None else Deadline()
    kind = config.exporter_kind

    if kind is ExporterKind.STDOUT:
        return _build_stdout(log)
    elif kind is ExporterKind.OTLP:
        return _build_otlp(config, deadline, log)
    elif kind is ExporterKind.CLOUDTRACE:
        return _build_cloudtrace(config, log)
    else:
        assert_never(kind)


def _build_stdout(log: Logger) -> SpanExporter:
    try:
        exporter = ConsoleSpanExporter()
    except Exception as e:
        raise ExporterError(ExporterKind.STDOUT.value, e) from e
    log.debug("tracing.exporter.stdout.enabled")
    return exporter


def _build_otlp(config: TracingConfig, deadline: Deadline, log: Logger) -> SpanExporter:
    kwargs: dict[str, object] = {}
    if config.endpoint:
        kwargs["endpoint"] = config.endpoint
    if config.insecure:
        kwargs["insecure"] = True
    if config.headers:
        kwargs["headers"] = dict(config.headers)

    try:
        deadline.check("otlp exporter construction")
        exporter = OTLPSpanExporter(**kwargs)
    except Exception as e:
        raise ExporterError(ExporterKind.OTLP.value, e) from e

    # The gRPC channel may have taken the whole budget to set up
    try:
        deadline.check("otlp exporter construction")
    except TimeoutError as e:
        exporter.shutdown()
        raise ExporterError(ExporterKind.OTLP.value, e) from e

    log.info(
        "tracing.exporter.otlp.enabled",
        endpoint=config.endpoint or None,
        insecure=config.insecure,
    )
    return exporter


def _build_cloudtrace(config: TracingConfig, log: Logger) -> SpanExporter:
    deadline = Deadline(CLOUDTRACE_TIMEOUT_SECONDS)
    try:
        exporter = CloudTraceSpanExporter(project_id=config.gcp_project_id)
    except Exception as e:
        raise ExporterError(ExporterKind.CLOUDTRACE.value, e) from e

    try:
        deadline.check("cloudtrace exporter construction")
    except TimeoutError as e:
        exporter.shutdown()
        raise ExporterError(ExporterKind.CLOUDTRACE.value, e) from e

    log.info("tracing.exporter.cloudtrace.enabled", project_id=config.gcp_project_id)
    return exporter


__all__ = ["CLOUDTRACE_TIMEOUT_SECONDS", "build_exporter"]
