"""Service Resource composition.

compose_resource() builds the Resource attached to every span, merging in
this order (later entries override earlier keys with the same name):

1. Schema URL, SDK telemetry facts and OTEL_RESOURCE_ATTRIBUTES /
   OTEL_SERVICE_NAME from the environment.
2. Detected host and OS facts, and best-effort process/runtime facts.
3. Service identity from the configuration.
4. Extra resource attributes from the configuration.
5. Detectors supplied through setup options.
"""

from __future__ import annotations

import platform
import socket
import threading
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

import structlog
from opentelemetry.sdk.resources import (
    OsResourceDetector,
    ProcessResourceDetector,
    Resource,
    ResourceDetector,
    get_aggregated_resources,
)

from otel_bootstrap.conventions import (
    DEPLOYMENT_ENVIRONMENT,
    HOST_ARCH,
    HOST_NAME,
    SCHEMA_URL,
    SERVICE_NAME,
    SERVICE_VERSION,
)
from otel_bootstrap.deadline import Deadline
from otel_bootstrap.errors import ResourceError

if TYPE_CHECKING:
    from otel_bootstrap.config import TracingConfig

logger = structlog.get_logger(__name__)

# Per-detector timeout when the caller sets no deadline (SDK default)
_DEFAULT_DETECTOR_TIMEOUT = 5.0


class HostResourceDetector(ResourceDetector):
    """Detect host facts (host.name, host.arch).

    Operating system facts come from the SDK's OsResourceDetector.
    """

    def __init__(self, raise_on_error: bool = True) -> None:
        super().__init__(raise_on_error=raise_on_error)

    def detect(self) -> Resource:
        return Resource(
            {
                HOST_NAME: socket.gethostname(),
                HOST_ARCH: platform.machine(),
            }
        )


class _SchemaCheckedDetector(ResourceDetector):
    """Reject detected resources tagged with a different schema URL.

    Resource.merge() keeps the left side on a schema conflict and drops the
    detected attributes, so the conflict is raised here instead.
    """

    def __init__(self, detector: ResourceDetector) -> None:
        super().__init__(raise_on_error=detector.raise_on_error)
        self._detector = detector

    def detect(self) -> Resource:
        resource = self._detector.detect()
        if resource.schema_url and resource.schema_url != SCHEMA_URL:
            raise ValueError(
                f"{type(self._detector).__name__}: conflicting schema URL "
                f"{resource.schema_url!r}, expected {SCHEMA_URL!r}"
            )
        return resource


class StaticResourceDetector(ResourceDetector):
    """Detector returning a fixed set of attributes.

    Lets callers append plain attributes through with_resource_detectors().

    Example:
        >>> detector = StaticResourceDetector({"team": "payments"})
        >>> detector.detect().attributes["team"]
        'payments'
    """

    def __init__(self, attributes: Mapping[str, str]) -> None:
        super().__init__(raise_on_error=True)
        self._attributes = dict(attributes)

    def detect(self) -> Resource:
        return Resource(self._attributes)


def identity_attributes(config: TracingConfig) -> dict[str, str]:
    """Return service identity attributes for the configuration.

    Args:
        config: Sanitized configuration.

    Returns:
        service.name always; service.version and deployment.environment
        only when configured.
    """
    attrs = {SERVICE_NAME: config.service_name}
    if config.service_version:
        attrs[SERVICE_VERSION] = config.service_version
    if config.environment:
        attrs[DEPLOYMENT_ENVIRONMENT] = config.environment
    return attrs


def extra_attributes(config: TracingConfig) -> dict[str, str]:
    """Return configured extra attributes, dropping whitespace-only keys."""
    return {k: v for k, v in config.resource_attrs.items() if k.strip()}


def compose_resource(
    config: TracingConfig,
    detectors: Sequence[ResourceDetector] = (),
    deadline: Deadline | None = None,
) -> Resource:
    """Compose the service Resource.

    Args:
        config: Sanitized and validated configuration.
        detectors: Extra detectors appended after the configured attributes.
        deadline: Caller deadline bounding detector execution.

    Returns:
        The merged Resource.

    Raises:
        ResourceError: If a detector fails, reports a conflicting schema URL,
            or the deadline expires.
    """
    deadline = deadline if deadline is not None else Deadline()
    try:
        resource = _run_detectors(
            [
                HostResourceDetector(),
                OsResourceDetector(raise_on_error=True),
                ProcessResourceDetector(raise_on_error=False),
            ],
            Resource.create(schema_url=SCHEMA_URL),
            deadline,
        )
        resource = resource.merge(Resource(identity_attributes(config)))
        resource = resource.merge(Resource(extra_attributes(config)))
        if detectors:
            resource = _run_detectors(list(detectors), resource, deadline)
    except Exception as e:
        raise ResourceError(e) from e

    logger.debug(
        "tracing.resource.composed",
        attribute_count=len(resource.attributes),
        schema_url=resource.schema_url,
    )
    return resource


def _run_detectors(
    detectors: list[ResourceDetector],
    initial: Resource,
    deadline: Deadline,
) -> Resource:
    deadline.check("resource detection")
    checked: list[ResourceDetector] = [_SchemaCheckedDetector(d) for d in detectors]
    result_holder: list[Resource] = []
    exception_holder: list[Exception | None] = [None]

    def _detect() -> None:
        try:
            result_holder.append(
                get_aggregated_resources(
                    checked,
                    initial_resource=initial,
                    timeout=deadline.remaining(_DEFAULT_DETECTOR_TIMEOUT),
                )
            )
        except Exception as e:
            exception_holder[0] = e

    # get_aggregated_resources() joins every detector before returning, so it
    # runs in a daemon thread that is abandoned once the deadline passes.
    thread = threading.Thread(target=_detect, name="otel-resource-detection", daemon=True)
    thread.start()
    thread.join(timeout=deadline.remaining())

    if thread.is_alive():
        logger.warning(
            "tracing.resource.detection_timed_out",
            detectors=[type(d).__name__ for d in detectors],
        )
        raise TimeoutError("deadline exceeded during resource detection")

    if exception_holder[0] is not None:
        raise exception_holder[0]

    return result_holder[0]


__all__ = [
    "HostResourceDetector",
    "StaticResourceDetector",
    "compose_resource",
    "extra_attributes",
    "identity_attributes",
]
