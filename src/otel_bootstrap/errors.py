"""Exception hierarchy for otel-bootstrap.

All exceptions raised by tracing setup inherit from TracingError, so callers
can catch every bootstrap failure with a single except clause and still
branch on the concrete type.

Exception Hierarchy:
    TracingError (base)
    ├── ConfigValidationError  # Configuration rejected before any I/O
    ├── ExporterError          # Exporter construction failed
    ├── ResourceError          # Resource detection/composition failed
    └── ShutdownError          # Exporter and/or provider shutdown failed

Example:
    >>> from otel_bootstrap.errors import ConfigValidationError
    >>> raise ConfigValidationError("serviceName", "serviceName is required")
    Traceback (most recent call last):
        ...
    ConfigValidationError: serviceName is required
"""

from __future__ import annotations


class TracingError(Exception):
    """Base exception for all tracing bootstrap errors."""

    pass


class ConfigValidationError(TracingError, ValueError):
    """Raised when a TracingConfig fails validation.

    Always raised before any exporter or resource I/O happens.

    Attributes:
        field: JSON name of the offending field (e.g. "samplingRatio").

    Example:
        >>> raise ConfigValidationError("exporter", 'unsupported exporter "zipkin"')
        Traceback (most recent call last):
            ...
        ConfigValidationError: unsupported exporter "zipkin"
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigValidationError.

        Args:
            field: JSON name of the offending field.
            message: Human-readable description, naming the field.
        """
        self.field = field
        super().__init__(message)


class ExporterError(TracingError):
    """Raised when a span exporter cannot be constructed.

    The message always starts with "<exporter> exporter:" so callers can
    branch on the variant (for example, to fall back to the stdout exporter).
    The underlying exception is chained as __cause__.

    Attributes:
        exporter: Exporter variant name ("stdout", "otlp", "cloudtrace").
        cause: The underlying exception.
    """

    def __init__(self, exporter: str, cause: BaseException) -> None:
        self.exporter = exporter
        self.cause = cause
        super().__init__(f"{exporter} exporter: {cause}")


class ResourceError(TracingError):
    """Raised when the service Resource cannot be composed.

    Typically caused by a failing resource detector or an expired deadline.

    Attributes:
        cause: The underlying exception.
    """

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"build resource: {cause}")


class ShutdownError(TracingError):
    """Raised when shutting down the tracing pipeline fails.

    Carries both independent failures; neither masks the other.

    Attributes:
        exporter_error: Failure from the span exporter, or None.
        provider_error: Failure from the tracer provider, or None.

    Example:
        >>> err = ShutdownError(RuntimeError("conn reset"), RuntimeError("flush"))
        >>> str(err)
        'shutdown failed: exporter: conn reset; tracer provider: flush'
    """

    def __init__(
        self,
        exporter_error: BaseException | None,
        provider_error: BaseException | None,
    ) -> None:
        """Initialize ShutdownError.

        Args:
            exporter_error: Exception raised by the exporter shutdown, if any.
            provider_error: Exception raised by the provider shutdown, if any.
        """
        self.exporter_error = exporter_error
        self.provider_error = provider_error
        parts = []
        if exporter_error is not None:
            parts.append(f"exporter: {exporter_error}")
        if provider_error is not None:
            parts.append(f"tracer provider: {provider_error}")
        super().__init__("shutdown failed: " + "; ".join(parts))

    @property
    def exceptions(self) -> tuple[BaseException, ...]:
        """Return all underlying failures, exporter first."""
        return tuple(
            e for e in (self.exporter_error, self.provider_error) if e is not None
        )


__all__ = [
    "TracingError",
    "ConfigValidationError",
    "ExporterError",
    "ResourceError",
    "ShutdownError",
]
