"""Tracing configuration model (Pydantic v2) and its validation rules.

TracingConfig is the declarative input to setup_tracing(). It accepts both the
Python field names and the JSON names used by service manifests
(serviceName, samplingRatio, gcpProjectId, ...).

Validation is split in two pure steps, mirroring how setup consumes it:

1. sanitize_config() trims text fields and lowercases the exporter.
2. validate_config() checks semantic rules; the first violation wins.

Example:
    >>> cfg = TracingConfig.model_validate({"serviceName": " orders ", "exporter": "OTLP"})
    >>> cfg = sanitize_config(cfg)
    >>> cfg.service_name, cfg.exporter
    ('orders', 'otlp')
    >>> validate_config(cfg)
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from otel_bootstrap.errors import ConfigValidationError


class ExporterKind(str, Enum):
    """Supported span exporter backends.

    Values:
        STDOUT: Human-readable spans on the local console.
        OTLP: OTLP over gRPC to a collector.
        CLOUDTRACE: Google Cloud Trace.
    """

    STDOUT = "stdout"
    OTLP = "otlp"
    CLOUDTRACE = "cloudtrace"


# Empty selector is accepted and means STDOUT.
_SUPPORTED_EXPORTERS = frozenset({""} | {kind.value for kind in ExporterKind})


class TracingConfig(BaseModel):
    """Configuration for a tracing pipeline.

    Attributes:
        service_name: Service identifier, required after trimming.
        service_version: Optional service version.
        environment: Optional deployment environment (dev, staging, prod...).
        exporter: Exporter selector; "" means stdout.
        sampling_ratio: Ratio in [0, 1] for new traces. None means the
            default ratio, 0.0 means no new traces are sampled.
        endpoint: OTLP collector endpoint (otlp only).
        insecure: Disable transport security for OTLP.
        gcp_project_id: Google Cloud project (required for cloudtrace).
        headers: Extra OTLP request headers.
        resource_attrs: Extra resource attributes; whitespace-only keys
            are dropped.

    Examples:
        >>> config = TracingConfig(service_name="orders", sampling_ratio=0.25)
        >>> config.exporter_kind
        <ExporterKind.STDOUT: 'stdout'>
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    service_name: str = Field(default="", alias="serviceName")
    service_version: str = Field(default="", alias="serviceVersion")
    environment: str = Field(default="")
    exporter: str = Field(default="", description="stdout, otlp or cloudtrace")
    sampling_ratio: float | None = Field(default=None, alias="samplingRatio")
    endpoint: str = Field(default="")
    insecure: bool = Field(default=False)
    gcp_project_id: str = Field(default="", alias="gcpProjectId")
    headers: dict[str, str] = Field(default_factory=dict)
    resource_attrs: dict[str, str] = Field(default_factory=dict, alias="resourceAttrs")

    @property
    def exporter_kind(self) -> ExporterKind:
        """Resolve the exporter selector to an ExporterKind.

        Raises:
            ConfigValidationError: If the selector is not supported.
        """
        if self.exporter == "":
            return ExporterKind.STDOUT
        try:
            return ExporterKind(self.exporter)
        except ValueError:
            raise ConfigValidationError(
                "exporter", f"unsupported exporter {self.exporter!r}"
            ) from None


def sanitize_config(config: TracingConfig) -> TracingConfig:
    """Return a normalized copy of the configuration.

    Trims leading/trailing whitespace from all text fields and lowercases the
    exporter selector. Applying it twice yields the same result as once.

    Args:
        config: Raw configuration.

    Returns:
        A new, normalized TracingConfig.
    """
    return config.model_copy(
        update={
            "service_name": config.service_name.strip(),
            "service_version": config.service_version.strip(),
            "environment": config.environment.strip(),
            "endpoint": config.endpoint.strip(),
            "gcp_project_id": config.gcp_project_id.strip(),
            "exporter": config.exporter.strip().lower(),
        }
    )


def validate_config(config: TracingConfig) -> None:
    """Validate a sanitized configuration.

    Rules are checked in order and the first violation is raised.

    Args:
        config: Configuration produced by sanitize_config().

    Raises:
        ConfigValidationError: If any rule is violated.
    """
    if config.service_name == "":
        raise ConfigValidationError("serviceName", "serviceName is required")

    if config.exporter not in _SUPPORTED_EXPORTERS:
        raise ConfigValidationError(
            "exporter", f"unsupported exporter {config.exporter!r}"
        )

    ratio = config.sampling_ratio
    if ratio is not None and (math.isnan(ratio) or not 0.0 <= ratio <= 1.0):
        raise ConfigValidationError(
            "samplingRatio", f"samplingRatio must be within [0,1], got {ratio}"
        )

    if config.exporter == ExporterKind.CLOUDTRACE.value and config.gcp_project_id == "":
        raise ConfigValidationError(
            "gcpProjectId", "gcpProjectId is required when exporter=cloudtrace"
        )


__all__ = [
    "ExporterKind",
    "TracingConfig",
    "sanitize_config",
    "validate_config",
]
