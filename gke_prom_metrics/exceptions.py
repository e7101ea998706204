"""Exceptions raised by gke_prom_metrics."""


class ValidationError(ValueError):
    """Invalid configuration or metric/label name."""


class MetricsError(Exception):
    """Base class for registry and series errors."""


class DuplicateNameError(MetricsError):
    """A metric name is already registered with a different descriptor."""


class LabelCardinalityError(MetricsError):
    """The supplied label names do not match the declared label names."""


class InvalidOperationError(MetricsError):
    """Operation not allowed for the metric kind or value."""


class EncodingError(MetricsError):
    """Snapshot contents could not be rendered to the exposition format."""
