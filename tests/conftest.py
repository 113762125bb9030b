"""Shared pytest fixtures for otel-bootstrap tests.

For unit-specific fixtures (OpenTelemetry global state reset, fake
registries), see unit/conftest.py.

NOTE: Do NOT add __init__.py to test directories - pytest runs in
importlib mode and __init__.py files cause namespace collisions.
"""

from __future__ import annotations

from typing import Any

import pytest

from otel_bootstrap import TracingConfig


@pytest.fixture
def raw_config() -> dict[str, Any]:
    """Return a JSON-style configuration mapping.

    Returns:
        Mapping using the external field names (serviceName, ...).
    """
    return {
        "serviceName": "orders",
        "serviceVersion": "1.4.2",
        "environment": "staging",
        "exporter": "stdout",
        "resourceAttrs": {"team": "payments"},
    }


@pytest.fixture
def stdout_config() -> TracingConfig:
    """Return a minimal valid configuration using the stdout exporter."""
    return TracingConfig(service_name="svc")
