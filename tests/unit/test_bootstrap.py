"""Unit tests for setup_tracing().

Tests cover:
- End-to-end assembly with the stdout exporter
- Configuration coercion from mappings and validation before any I/O
- Sampling decisions from the resolved ratio
- Propagator override and global registration
- Cleanup of everything built when a later step fails
"""

from __future__ import annotations

import threading
import time
from typing import Any
from unittest.mock import MagicMock, Mock, patch

import pytest
from opentelemetry import propagate, trace
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.resources import Resource, ResourceDetector
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from otel_bootstrap import (
    ConfigValidationError,
    ExporterError,
    OpenTelemetryGlobalRegistry,
    ResourceError,
    StaticResourceDetector,
    TracingConfig,
    TracingProvider,
    setup_tracing,
    with_global,
    with_propagator,
    with_resource_detectors,
    with_sampler_hook,
)
from otel_bootstrap.registry import DelegatingTracerProvider


class FailingDetector(ResourceDetector):
    """Detector that always fails."""

    def __init__(self) -> None:
        super().__init__(raise_on_error=True)

    def detect(self) -> Resource:
        raise RuntimeError("metadata server unreachable")


class BlockingDetector(ResourceDetector):
    """Detector that blocks until released."""

    def __init__(self, release: threading.Event) -> None:
        super().__init__(raise_on_error=True)
        self._release = release

    def detect(self) -> Resource:
        self._release.wait(timeout=10.0)
        return Resource({})


class BrokenRegistry:
    """GlobalRegistry whose tracer provider slot rejects writes."""

    def get_tracer_provider(self) -> Any:
        return None

    def set_tracer_provider(self, provider: Any) -> None:
        raise RuntimeError("registry is read-only")

    def get_propagator(self) -> Any:
        return None

    def set_propagator(self, propagator: Any) -> None:
        raise RuntimeError("registry is read-only")


class TestSetupTracing:
    """Tests for successful pipeline assembly."""

    def test_orders_scenario(self) -> None:
        """Default exporter and absent ratio produce a working pipeline."""
        seen: list[float] = []
        provider = setup_tracing(
            {"serviceName": "orders", "exporter": ""}, with_sampler_hook(seen.append)
        )

        assert isinstance(provider, TracingProvider)
        assert isinstance(provider.tracer_provider, TracerProvider)
        assert provider.propagator is not None
        assert seen == [0.1]
        provider.shutdown()

    def test_accepts_tracing_config(self, stdout_config: TracingConfig) -> None:
        """A TracingConfig instance is accepted directly."""
        with setup_tracing(stdout_config) as provider:
            assert provider.tracer_provider.resource.attributes["service.name"] == "svc"

    def test_json_config_resource(self, raw_config: dict[str, Any]) -> None:
        """Identity and extra attributes from a mapping reach the resource."""
        with setup_tracing(raw_config) as provider:
            attrs = provider.tracer_provider.resource.attributes

        assert attrs["service.name"] == "orders"
        assert attrs["service.version"] == "1.4.2"
        assert attrs["deployment.environment"] == "staging"
        assert attrs["team"] == "payments"

    def test_config_is_sanitized(self) -> None:
        """Padded values and exporter case are normalized before use."""
        with setup_tracing(
            TracingConfig(service_name="  svc  ", exporter=" STDOUT ")
        ) as provider:
            assert provider.tracer_provider.resource.attributes["service.name"] == "svc"

    def test_zero_ratio_drops_root_spans(self) -> None:
        """An explicit ratio of 0 produces non-recording root spans."""
        with setup_tracing(TracingConfig(service_name="svc", sampling_ratio=0.0)) as provider:
            span = provider.get_tracer("test").start_span("root")
            assert not span.is_recording()
            assert not span.get_span_context().trace_flags.sampled
            span.end()

    def test_full_ratio_records_root_spans(self) -> None:
        """A ratio of 1 samples every root span."""
        with setup_tracing(TracingConfig(service_name="svc", sampling_ratio=1.0)) as provider:
            span = provider.get_tracer("test").start_span("root")
            assert span.is_recording()
            assert span.resource.attributes["service.name"] == "svc"
            span.end()

    def test_child_follows_sampled_parent(self) -> None:
        """A child of a sampled remote parent is sampled even at ratio 0."""
        with setup_tracing(TracingConfig(service_name="svc", sampling_ratio=0.0)) as provider:
            ctx = provider.propagator.extract(
                {"traceparent": "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"}
            )
            span = provider.get_tracer("test").start_span("child", context=ctx)
            assert span.is_recording()
            span.end()

    def test_default_propagator(self, stdout_config: TracingConfig) -> None:
        """The default propagator carries trace context and baggage."""
        with setup_tracing(stdout_config) as provider:
            assert isinstance(provider.propagator, CompositePropagator)
            assert {"traceparent", "tracestate", "baggage"} <= set(provider.propagator.fields)

    def test_propagator_override(self, stdout_config: TracingConfig) -> None:
        """with_propagator() replaces the default codec."""
        custom = TraceContextTextMapPropagator()
        with setup_tracing(stdout_config, with_propagator(custom)) as provider:
            assert provider.propagator is custom

    def test_resource_detectors_option(self, stdout_config: TracingConfig) -> None:
        """Option detectors contribute to the resource."""
        with setup_tracing(
            stdout_config,
            with_resource_detectors(StaticResourceDetector({"cloud.region": "eu-west1"})),
        ) as provider:
            assert provider.tracer_provider.resource.attributes["cloud.region"] == "eu-west1"

    def test_none_options_ignored(self, stdout_config: TracingConfig) -> None:
        """None entries among the options are skipped."""
        with setup_tracing(stdout_config, None, None) as provider:
            assert provider.tracer_provider is not None

    def test_logs_completion(self, stdout_config: TracingConfig) -> None:
        """The caller's logger receives the completion event."""
        log = Mock()
        with setup_tracing(stdout_config, logger=log):
            pass

        log.info.assert_called_once_with(
            "tracing.setup.completed",
            service_name="svc",
            exporter="stdout",
            sampling_ratio=0.1,
            global_registration=False,
        )


class TestGlobalRegistration:
    """Tests for the global registration overlay."""

    def test_not_registered_by_default(self, stdout_config: TracingConfig) -> None:
        """Without with_global() the process globals are untouched."""
        before = propagate.get_global_textmap()
        with setup_tracing(stdout_config) as provider:
            assert trace.get_tracer_provider() is not provider.tracer_provider
            assert propagate.get_global_textmap() is before

    def test_registers_into_given_registry(
        self, stdout_config: TracingConfig, registry: Any
    ) -> None:
        """with_global(registry) installs provider and propagator there."""
        with setup_tracing(stdout_config, with_global(registry)) as provider:
            assert registry.tracer_provider is provider.tracer_provider
            assert registry.propagator is provider.propagator
            assert registry.calls == ["set_tracer_provider", "set_propagator"]

    def test_registers_opentelemetry_globals(self, stdout_config: TracingConfig) -> None:
        """with_global() installs the OpenTelemetry API globals."""
        registry = OpenTelemetryGlobalRegistry()
        with setup_tracing(stdout_config, with_global()) as provider:
            assert registry.get_tracer_provider() is provider.tracer_provider
            assert propagate.get_global_textmap() is provider.propagator

    def test_global_registration_is_last_writer_wins(self) -> None:
        """A second global setup replaces the first for every global lookup."""
        registry = OpenTelemetryGlobalRegistry()
        first = setup_tracing(
            TracingConfig(service_name="first", sampling_ratio=1.0), with_global()
        )
        early_tracer = trace.get_tracer("early")
        second = setup_tracing(
            TracingConfig(service_name="second", sampling_ratio=1.0), with_global()
        )
        try:
            assert registry.get_tracer_provider() is second.tracer_provider
            assert propagate.get_global_textmap() is second.propagator

            span = trace.get_tracer("late").start_span("op")
            assert span.resource.attributes["service.name"] == "second"
            span.end()

            with early_tracer.start_as_current_span("op") as early_span:
                assert early_span.resource.attributes["service.name"] == "second"
        finally:
            first.shutdown()
            second.shutdown()

    def test_global_provider_exposes_current_pipeline(
        self, stdout_config: TracingConfig
    ) -> None:
        """The installed global provider reads attributes from the latest pipeline."""
        with setup_tracing(stdout_config, with_global()) as provider:
            global_provider = trace.get_tracer_provider()
            assert isinstance(global_provider, DelegatingTracerProvider)
            assert global_provider.resource is provider.tracer_provider.resource

    def test_foreign_global_provider_is_kept(self, stdout_config: TracingConfig) -> None:
        """A provider installed outside otel-bootstrap is not displaced."""
        foreign = TracerProvider()
        trace.set_tracer_provider(foreign)
        with setup_tracing(stdout_config, with_global()):
            assert trace.get_tracer_provider() is foreign

    def test_later_registration_replaces_propagator(
        self, stdout_config: TracingConfig, registry: Any
    ) -> None:
        """Registration is last-writer-wins."""
        first = setup_tracing(stdout_config, with_global(registry))
        second = setup_tracing(stdout_config, with_global(registry))
        try:
            assert registry.propagator is second.propagator
            assert registry.tracer_provider is second.tracer_provider
        finally:
            first.shutdown()
            second.shutdown()


class TestSetupFailures:
    """Tests for setup failure paths."""

    def test_invalid_config_builds_nothing(self) -> None:
        """Validation fails before any exporter is constructed."""
        with patch("otel_bootstrap.bootstrap.build_exporter") as mock_build:
            with pytest.raises(ConfigValidationError, match="serviceName"):
                setup_tracing({"serviceName": "  "})
        mock_build.assert_not_called()

    def test_mapping_with_unknown_field(self) -> None:
        """Unknown mapping keys are reported as ConfigValidationError."""
        with pytest.raises(ConfigValidationError) as exc_info:
            setup_tracing({"serviceName": "svc", "samplingRate": 0.5})
        assert exc_info.value.field == "samplingRate"

    def test_mapping_with_wrong_type(self) -> None:
        """Type errors name the offending JSON field."""
        with pytest.raises(ConfigValidationError, match="samplingRatio"):
            setup_tracing({"serviceName": "svc", "samplingRatio": "often"})

    def test_exporter_failure_propagates(self) -> None:
        """Exporter construction errors reach the caller unchanged."""
        with patch(
            "otel_bootstrap.exporters.OTLPSpanExporter", side_effect=RuntimeError("boom")
        ):
            with pytest.raises(ExporterError, match="otlp exporter: boom"):
                setup_tracing(TracingConfig(service_name="svc", exporter="otlp"))

    def test_resource_failure_shuts_down_exporter(
        self, stdout_config: TracingConfig, registry: Any
    ) -> None:
        """A resource failure releases the exporter and registers nothing."""
        exporter = MagicMock()
        with patch("otel_bootstrap.bootstrap.build_exporter", return_value=exporter):
            with pytest.raises(ResourceError):
                setup_tracing(
                    stdout_config,
                    with_resource_detectors(FailingDetector()),
                    with_global(registry),
                )

        exporter.shutdown.assert_called_once_with()
        assert registry.calls == []

    def test_timeout_expiry_surfaces_as_exporter_error(self) -> None:
        """A zero timeout fails OTLP construction instead of hanging."""
        with pytest.raises(ExporterError, match="deadline exceeded"):
            setup_tracing(TracingConfig(service_name="svc", exporter="otlp"), timeout=0)

    def test_registration_failure_releases_pipeline(
        self, stdout_config: TracingConfig
    ) -> None:
        """A failing global registration shuts down the provider and exporter."""
        exporter = MagicMock()
        with patch("otel_bootstrap.bootstrap.build_exporter", return_value=exporter):
            with pytest.raises(RuntimeError, match="registry is read-only"):
                setup_tracing(stdout_config, with_global(BrokenRegistry()))

        exporter.shutdown.assert_called_once_with()

    def test_cleanup_failure_keeps_original_error(
        self, stdout_config: TracingConfig
    ) -> None:
        """An exporter that fails to close does not mask the setup error."""
        exporter = MagicMock()
        exporter.shutdown.side_effect = RuntimeError("close failed")
        log = Mock()
        with patch("otel_bootstrap.bootstrap.build_exporter", return_value=exporter):
            with pytest.raises(ResourceError, match="metadata server unreachable"):
                setup_tracing(
                    stdout_config,
                    with_resource_detectors(FailingDetector()),
                    logger=log,
                )

        log.warning.assert_called_once_with(
            "tracing.setup.cleanup_failed", error="close failed"
        )

    def test_blocking_detector_bounded_by_timeout(
        self, stdout_config: TracingConfig
    ) -> None:
        """A stuck detector fails setup once the timeout passes."""
        release = threading.Event()
        exporter = MagicMock()
        start = time.monotonic()
        try:
            with patch("otel_bootstrap.bootstrap.build_exporter", return_value=exporter):
                with pytest.raises(ResourceError, match="deadline exceeded"):
                    setup_tracing(
                        stdout_config,
                        with_resource_detectors(BlockingDetector(release)),
                        timeout=0.5,
                    )
            elapsed = time.monotonic() - start
        finally:
            release.set()

        assert elapsed < 2.0
        exporter.shutdown.assert_called_once_with()
