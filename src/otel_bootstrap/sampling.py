"""Sampling ratio resolution.

The resolved ratio parameterizes a parent-based sampler: spans whose parent
already carries a sampling decision inherit it, and only root spans consult
the ratio.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from opentelemetry.sdk.trace.sampling import ParentBased, Sampler, TraceIdRatioBased

if TYPE_CHECKING:
    from otel_bootstrap.config import TracingConfig

# Ratio used when the configuration leaves samplingRatio unset
DEFAULT_SAMPLING_RATIO = 0.1


def resolve_sampling_ratio(
    config: TracingConfig,
    hook: Callable[[float], None] | None = None,
) -> float:
    """Resolve the effective sampling ratio.

    An explicit 0.0 is honored; only an absent ratio falls back to
    DEFAULT_SAMPLING_RATIO.

    Args:
        config: Validated configuration.
        hook: Optional observer, called exactly once with the result.

    Returns:
        Ratio in [0, 1].
    """
    ratio = config.sampling_ratio
    if ratio is None:
        ratio = DEFAULT_SAMPLING_RATIO
    if hook is not None:
        hook(ratio)
    return ratio


def build_sampler(ratio: float) -> Sampler:
    """Wrap the ratio in a parent-based sampler."""
    return ParentBased(root=TraceIdRatioBased(ratio))


__all__ = ["DEFAULT_SAMPLING_RATIO", "build_sampler", "resolve_sampling_ratio"]
