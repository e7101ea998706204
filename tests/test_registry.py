import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gke_prom_metrics import DuplicateNameError, MetricDescriptor, MetricKind, Registry

REQUESTS = MetricDescriptor("requests_total", MetricKind.COUNTER, "Total requests", ("method",))


@pytest.fixture
def registry():
    return Registry()


def test_register_is_idempotent(registry):
    """Registering an identical descriptor twice yields one metric, one series."""
    first = registry.register(REQUESTS)
    first.with_labels(method="GET").inc()
    second = registry.register(MetricDescriptor("requests_total", MetricKind.COUNTER, "Total requests", ["method"]))
    assert first is second
    second.with_labels(method="GET").inc()

    snapshot = registry.snapshot()
    assert len(snapshot) == 1
    assert snapshot[0].samples == (((("method", "GET"),), 2),)
    assert len(snapshot[0].samples) == 1


@pytest.mark.parametrize("conflict", [
    MetricDescriptor("requests_total", MetricKind.GAUGE, "Total requests", ("method",)),
    MetricDescriptor("requests_total", MetricKind.COUNTER, "Other help", ("method",)),
    MetricDescriptor("requests_total", MetricKind.COUNTER, "Total requests", ("method", "path")),
])
def test_conflicting_descriptor_fails_and_keeps_original(registry, conflict):
    original = registry.register(REQUESTS)
    original.with_labels(method="GET").inc(3)

    with pytest.raises(DuplicateNameError):
        registry.register(conflict)

    assert registry.get("requests_total") is original
    assert registry.get("requests_total").descriptor == REQUESTS
    assert original.with_labels(method="GET").value == 3


def test_get_missing_raises_key_error(registry):
    with pytest.raises(KeyError):
        registry.get("nope")


def test_names_len_contains(registry):
    registry.register(REQUESTS)
    registry.register(MetricDescriptor("queue_depth", MetricKind.GAUGE))
    assert registry.names() == ["requests_total", "queue_depth"]
    assert len(registry) == 2
    assert "queue_depth" in registry
    assert "other" not in registry


def test_snapshot_in_registration_order(registry):
    for name in ("zeta_total", "alpha_total", "mid_total"):
        registry.register(MetricDescriptor(name, MetricKind.COUNTER))
    assert [m.descriptor.name for m in registry.snapshot()] == ["zeta_total", "alpha_total", "mid_total"]


def test_snapshot_series_in_creation_order_with_declared_label_order(registry):
    metric = registry.register(MetricDescriptor("hits_total", MetricKind.COUNTER, "", ("path", "method")))
    metric.with_labels(method="POST", path="/b").inc()
    metric.with_labels(method="GET", path="/a").inc(2)

    samples = registry.snapshot()[0].samples
    assert [s.labels for s in samples] == [
        (("path", "/b"), ("method", "POST")),
        (("path", "/a"), ("method", "GET")),
    ]
    assert [s.value for s in samples] == [1, 2]


def test_snapshot_is_a_copy(registry):
    metric = registry.register(MetricDescriptor("requests_total", MetricKind.COUNTER))
    metric.inc(5)
    snapshot = registry.snapshot()
    metric.inc(5)
    assert snapshot[0].samples[0].value == 5
    assert registry.snapshot()[0].samples[0].value == 10


def test_gauge_snapshot_shows_latest_value(registry):
    queue = registry.register(MetricDescriptor("queue_depth", MetricKind.GAUGE, "", ("queue",)))
    queue.with_labels(queue="jobs").set(3)
    queue.with_labels(queue="jobs").set(7)
    assert registry.snapshot()[0].samples == (((("queue", "jobs"),), 7),)


def test_concurrent_increments_lose_no_updates(registry):
    """N threads x M increments of 1 ends at exactly N*M."""
    metric = registry.register(MetricDescriptor("requests_total", MetricKind.COUNTER))
    threads_count, per_thread = 8, 2000
    start = threading.Barrier(threads_count)

    def work():
        start.wait()
        for _ in range(per_thread):
            metric.inc()

    threads = [threading.Thread(target=work) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert metric.value == threads_count * per_thread


def test_concurrent_registration_returns_one_instance(registry):
    results = []
    errors = []
    start = threading.Barrier(8)

    def work(descriptor):
        start.wait()
        try:
            results.append(registry.get_or_create(descriptor))
        except DuplicateNameError as e:
            errors.append(e)

    threads = [threading.Thread(target=work, args=(REQUESTS,)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len({id(m) for m in results}) == 1


def test_concurrent_conflicting_registration_first_writer_wins(registry):
    gauge = MetricDescriptor("requests_total", MetricKind.GAUGE, "Total requests", ("method",))
    outcomes = []
    start = threading.Barrier(8)

    def work(descriptor):
        start.wait()
        try:
            registry.get_or_create(descriptor)
            outcomes.append(descriptor)
        except DuplicateNameError:
            outcomes.append(None)

    threads = [threading.Thread(target=work, args=(REQUESTS if i % 2 else gauge,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winner = registry.get("requests_total").descriptor
    assert all(o is None or o == winner for o in outcomes)
    assert outcomes.count(None) == 4


def test_snapshot_during_writes_sees_monotonic_counter(registry):
    metric = registry.register(MetricDescriptor("requests_total", MetricKind.COUNTER))
    done = threading.Event()

    def writer():
        while not done.is_set():
            metric.inc()

    t = threading.Thread(target=writer)
    t.start()
    try:
        values = [registry.snapshot()[0].samples[0].value for _ in range(200)]
    finally:
        done.set()
        t.join()
    assert values == sorted(values)
