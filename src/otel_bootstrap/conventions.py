"""Resource attribute keys and schema used by otel-bootstrap.

Keys follow the OpenTelemetry semantic conventions that match
SCHEMA_URL, so every Resource composed here is self-consistent.
"""

from __future__ import annotations

# Semantic conventions schema the resource attributes conform to
SCHEMA_URL = "https://opentelemetry.io/schemas/1.24.0"

# Service identity
SERVICE_NAME = "service.name"
SERVICE_VERSION = "service.version"
DEPLOYMENT_ENVIRONMENT = "deployment.environment"

# Host and operating system facts
HOST_NAME = "host.name"
HOST_ARCH = "host.arch"
OS_TYPE = "os.type"

# SDK facts (populated by the OpenTelemetry SDK)
TELEMETRY_SDK_LANGUAGE = "telemetry.sdk.language"

__all__ = [
    "SCHEMA_URL",
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "DEPLOYMENT_ENVIRONMENT",
    "HOST_NAME",
    "HOST_ARCH",
    "OS_TYPE",
    "TELEMETRY_SDK_LANGUAGE",
]
