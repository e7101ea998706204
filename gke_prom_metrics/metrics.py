"""Metric primitives: descriptors, metrics and their labeled series."""
import enum
import math
import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import InvalidOperationError, LabelCardinalityError, ValidationError

Number = Union[int, float]

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class MetricKind(enum.Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDescriptor:
    """Immutable identity of a metric.

    Two descriptors are equal when name, kind, help and label names all
    match; registering an equal descriptor twice returns the same metric.
    """

    name: str
    kind: MetricKind
    help: str = ""
    label_names: Tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.kind, MetricKind):
            try:
                object.__setattr__(self, "kind", MetricKind(self.kind))
            except ValueError:
                raise ValidationError(f"Unknown metric kind: {self.kind!r}")
        if not isinstance(self.name, str) or not _METRIC_NAME_RE.match(self.name):
            raise ValidationError(f"Invalid metric name: {self.name!r}")
        if not isinstance(self.help, str):
            raise ValidationError(f"Help text for metric {self.name} must be a string, got {type(self.help).__name__}")
        if isinstance(self.label_names, str):
            raise ValidationError("label_names must be a sequence of names, not a string")
        label_names = tuple(self.label_names)
        for label in label_names:
            if not isinstance(label, str) or not _LABEL_NAME_RE.match(label) or label.startswith("__"):
                raise ValidationError(f"Invalid label name {label!r} for metric {self.name}")
        if len(set(label_names)) != len(label_names):
            raise ValidationError(f"Duplicate label names for metric {self.name}: {label_names}")
        object.__setattr__(self, "label_names", label_names)


def _check_number(value) -> Number:
    # bool is an int subclass but never a meaningful sample
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidOperationError(f"Metric values must be int or float, got {type(value).__name__}")
    return value


class LabeledSeries:
    """One time series of a metric: a fixed set of label values and a value."""

    def __init__(self, descriptor: MetricDescriptor, labels: Dict[str, str]):
        self.descriptor = descriptor
        self.labels = labels
        self._value: Number = 0
        self._lock = threading.Lock()

    @property
    def key(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(sorted(self.labels.items()))

    @property
    def value(self) -> Number:
        with self._lock:
            return self._value

    def _require_gauge(self, operation: str) -> None:
        if self.descriptor.kind is not MetricKind.GAUGE:
            raise InvalidOperationError(
                f"{operation}() is only valid for gauges; {self.descriptor.name} is a {self.descriptor.kind.value}"
            )

    def inc(self, delta: Number = 1) -> None:
        delta = _check_number(delta)
        if self.descriptor.kind is MetricKind.COUNTER and (delta < 0 or math.isnan(delta)):
            raise InvalidOperationError(f"Counter {self.descriptor.name} cannot be incremented by {delta}")
        with self._lock:
            self._value += delta

    def dec(self, delta: Number = 1) -> None:
        self._require_gauge("dec")
        delta = _check_number(delta)
        with self._lock:
            self._value -= delta

    def set(self, value: Number) -> None:
        self._require_gauge("set")
        value = _check_number(value)
        with self._lock:
            self._value = value

    def reset(self) -> None:
        """Put the value back to zero. The only way a counter goes down."""
        with self._lock:
            self._value = 0

    def __repr__(self):
        return f"LabeledSeries({self.descriptor.name}, {self.labels!r})"


class Metric:
    """A registered metric and all of its labeled series.

    Obtain instances through ``Registry.register``; handles are shared by
    every caller that registers an equal descriptor.
    """

    def __init__(self, descriptor: MetricDescriptor):
        self.descriptor = descriptor
        self._series: Dict[Tuple[Tuple[str, str], ...], LabeledSeries] = {}
        self._lock = threading.Lock()
        if not descriptor.label_names:
            self.with_labels()

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def kind(self) -> MetricKind:
        return self.descriptor.kind

    def with_labels(self, values: Optional[Mapping[str, object]] = None, /, **kwargs) -> LabeledSeries:
        labels = dict(values or {})
        labels.update(kwargs)
        expected = set(self.descriptor.label_names)
        if set(labels) != expected:
            missing = sorted(expected - set(labels))
            extra = sorted(set(labels) - expected)
            raise LabelCardinalityError(
                f"Metric {self.name} expects labels {list(self.descriptor.label_names)}; "
                f"missing={missing} unexpected={extra}"
            )
        labels = {name: str(labels[name]) for name in self.descriptor.label_names}
        key = tuple(sorted(labels.items()))
        with self._lock:
            series = self._series.get(key)
            if series is None:
                series = LabeledSeries(self.descriptor, labels)
                self._series[key] = series
            return series

    # shortcuts for unlabeled metrics
    def _default(self) -> LabeledSeries:
        if self.descriptor.label_names:
            raise LabelCardinalityError(
                f"Metric {self.name} has labels {list(self.descriptor.label_names)}; use with_labels()"
            )
        return self.with_labels()

    def inc(self, delta: Number = 1) -> None:
        self._default().inc(delta)

    def dec(self, delta: Number = 1) -> None:
        self._default().dec(delta)

    def set(self, value: Number) -> None:
        self._default().set(value)

    def reset(self) -> None:
        self._default().reset()

    @property
    def value(self) -> Number:
        return self._default().value

    def series(self) -> List[LabeledSeries]:
        """Series in creation order, copied under the metric lock."""
        with self._lock:
            return list(self._series.values())

    def __repr__(self):
        return f"Metric({self.name}, {self.kind.value})"
