from .config import Config
from .exceptions import (
    DuplicateNameError,
    EncodingError,
    InvalidOperationError,
    LabelCardinalityError,
    MetricsError,
    ValidationError,
)
from .exposition import CONTENT_TYPE, encode
from .logger import Logger, get_logger
from .metrics import LabeledSeries, Metric, MetricDescriptor, MetricKind
from .registry import MetricSnapshot, Registry, Sample
from .server import MetricsServer

__all__ = [
    "Config",
    "Logger",
    "get_logger",
    "ValidationError",
    "MetricsError",
    "DuplicateNameError",
    "LabelCardinalityError",
    "InvalidOperationError",
    "EncodingError",
    "MetricKind",
    "MetricDescriptor",
    "Metric",
    "LabeledSeries",
    "Registry",
    "MetricSnapshot",
    "Sample",
    "CONTENT_TYPE",
    "encode",
    "MetricsServer",
]
