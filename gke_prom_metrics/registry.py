"""Process-wide collection of metrics, passed explicitly to whoever needs it."""
import logging
import threading
from typing import Dict, List, NamedTuple, Tuple

from .exceptions import DuplicateNameError
from .metrics import Metric, MetricDescriptor, Number

logger = logging.getLogger(__name__)


class Sample(NamedTuple):
    labels: Tuple[Tuple[str, str], ...]
    value: Number


class MetricSnapshot(NamedTuple):
    descriptor: MetricDescriptor
    samples: Tuple[Sample, ...]


class Registry:
    """Owns every registered metric and hands out point-in-time snapshots."""

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}
        self._lock = threading.Lock()

    def get_or_create(self, descriptor: MetricDescriptor) -> Metric:
        """Return the metric for ``descriptor``, creating it on first use.

        Raises DuplicateNameError if the name is already taken by a
        different descriptor. The existing metric is left untouched.
        """
        with self._lock:
            existing = self._metrics.get(descriptor.name)
            if existing is None:
                metric = Metric(descriptor)
                self._metrics[descriptor.name] = metric
                logger.debug(f"Registered {descriptor.kind.value} {descriptor.name}")
                return metric
        if existing.descriptor != descriptor:
            raise DuplicateNameError(
                f"Metric {descriptor.name} already registered as {existing.descriptor}; got {descriptor}"
            )
        return existing

    register = get_or_create

    def get(self, name: str) -> Metric:
        with self._lock:
            return self._metrics[name]

    def names(self) -> List[str]:
        with self._lock:
            return list(self._metrics)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._metrics

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def snapshot(self) -> List[MetricSnapshot]:
        """Copy current values, in registration order.

        Only the per-series locks are taken while values are read, so
        writers on other series are never blocked by a scrape.
        """
        with self._lock:
            metrics = list(self._metrics.values())

        result = []
        for metric in metrics:
            names = metric.descriptor.label_names
            samples = tuple(
                Sample(tuple((name, series.labels[name]) for name in names), series.value)
                for series in metric.series()
            )
            result.append(MetricSnapshot(metric.descriptor, samples))
        return result
