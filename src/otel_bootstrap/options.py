"""Setup options: directives reduced into an immutable SetupOptions.

setup_tracing() accepts an ordered sequence of directives. They are folded
left to right into a SetupOptions value: scalar settings take the last
directive's value, list settings accumulate.

Example:
    >>> opts = resolve_options(
    ...     [with_global(), with_resource_detectors(StaticResourceDetector({"a": "1"}))]
    ... )
    >>> opts.register_global, len(opts.resource_detectors)
    (True, 1)
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Union

from typing_extensions import assert_never

from otel_bootstrap.registry import GlobalRegistry, OpenTelemetryGlobalRegistry

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.sdk.resources import ResourceDetector


@dataclass(frozen=True)
class SetGlobal:
    """Register the built provider and propagator as process-wide defaults."""

    registry: GlobalRegistry | None = None


@dataclass(frozen=True)
class OverridePropagator:
    """Use this propagator instead of the W3C default."""

    propagator: TextMapPropagator


@dataclass(frozen=True)
class AppendResourceDetectors:
    """Append detectors run after the configured resource attributes."""

    detectors: tuple[ResourceDetector, ...]


@dataclass(frozen=True)
class SetSamplerHook:
    """Observe the resolved sampling ratio (test seam, no effect on sampling)."""

    hook: Callable[[float], None]


SetupDirective = Union[SetGlobal, OverridePropagator, AppendResourceDetectors, SetSamplerHook]


@dataclass(frozen=True)
class SetupOptions:
    """Auxiliary setup behaviour outside TracingConfig.

    Attributes:
        register_global: Install the pipeline as process-wide default.
        registry: Registry written when register_global is set.
        propagator: Override propagation codec, or None for the default.
        resource_detectors: Extra detectors, in directive order.
        sampler_hook: Observer of the resolved sampling ratio.
    """

    register_global: bool = False
    registry: GlobalRegistry = field(default_factory=OpenTelemetryGlobalRegistry)
    propagator: TextMapPropagator | None = None
    resource_detectors: tuple[ResourceDetector, ...] = ()
    sampler_hook: Callable[[float], None] | None = None

    def apply(self, directive: SetupDirective) -> SetupOptions:
        """Return a copy of these options with the directive applied."""
        if isinstance(directive, SetGlobal):
            if directive.registry is None:
                return replace(self, register_global=True)
            return replace(self, register_global=True, registry=directive.registry)
        elif isinstance(directive, OverridePropagator):
            return replace(self, propagator=directive.propagator)
        elif isinstance(directive, AppendResourceDetectors):
            return replace(
                self, resource_detectors=self.resource_detectors + directive.detectors
            )
        elif isinstance(directive, SetSamplerHook):
            return replace(self, sampler_hook=directive.hook)
        else:
            assert_never(directive)


def resolve_options(directives: Iterable[SetupDirective | None]) -> SetupOptions:
    """Fold directives into SetupOptions, skipping None entries."""
    return functools.reduce(
        lambda opts, d: opts.apply(d),
        (d for d in directives if d is not None),
        SetupOptions(),
    )


def with_global(registry: GlobalRegistry | None = None) -> SetGlobal:
    """Register the pipeline globally, optionally into a specific registry."""
    return SetGlobal(registry)


def with_propagator(propagator: TextMapPropagator) -> OverridePropagator:
    """Override the default propagation codec."""
    return OverridePropagator(propagator)


def with_resource_detectors(*detectors: ResourceDetector) -> AppendResourceDetectors:
    """Append resource detectors, merged after configured attributes."""
    return AppendResourceDetectors(tuple(detectors))


def with_sampler_hook(hook: Callable[[float], None]) -> SetSamplerHook:
    """Observe the resolved sampling ratio. Intended for tests."""
    return SetSamplerHook(hook)


__all__ = [
    "AppendResourceDetectors",
    "OverridePropagator",
    "SetGlobal",
    "SetSamplerHook",
    "SetupDirective",
    "SetupOptions",
    "resolve_options",
    "with_global",
    "with_propagator",
    "with_resource_detectors",
    "with_sampler_hook",
]
