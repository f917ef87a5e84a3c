"""
Prometheus metrics collection for the fieldops pipeline

Instruments deduplication, bulk import submissions, order fetches,
date resolution and work-order store writes.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


REGISTRY = CollectorRegistry()


# =======================
# DEDUPLICATION METRICS
# =======================

orders_deduplicated_total = Counter(
    name="fieldops_orders_deduplicated_total",
    documentation="Raw orders seen by the deduplicator",
    labelnames=["outcome"],  # outcome: unique, duplicate, unkeyable
    registry=REGISTRY,
)

# =======================
# IMPORT METRICS
# =======================

import_submissions_total = Counter(
    name="fieldops_import_submissions_total",
    documentation="Bulk import submissions by outcome",
    labelnames=["outcome"],  # outcome: success, partial, failure, transport_error
    registry=REGISTRY,
)

import_orders_total = Counter(
    name="fieldops_import_orders_total",
    documentation="Orders reported by the import transport",
    labelnames=["result"],  # result: imported, duplicate, error
    registry=REGISTRY,
)

import_duration_seconds = Histogram(
    name="fieldops_import_duration_seconds",
    documentation="Time spent waiting on the import transport",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

import_batch_size = Histogram(
    name="fieldops_import_batch_size_orders",
    documentation="Number of orders per import submission",
    buckets=[1, 10, 25, 50, 100, 250, 500, 1000],
    registry=REGISTRY,
)

# =======================
# FETCH / TRANSFORM METRICS
# =======================

fetch_requests_total = Counter(
    name="fieldops_fetch_requests_total",
    documentation="Order fetch requests by outcome",
    labelnames=["outcome"],  # outcome: success, warning, failure
    registry=REGISTRY,
)

date_resolution_total = Counter(
    name="fieldops_date_resolution_total",
    documentation="Which source supplied a work order's resolved date",
    labelnames=["source"],  # source: end_time, search_date, timestamp, none
    registry=REGISTRY,
)

status_bucket_orders = Gauge(
    name="fieldops_status_bucket_orders",
    documentation="Work orders per status bucket at last aggregation",
    labelnames=["bucket"],
    registry=REGISTRY,
)

# =======================
# STORE METRICS
# =======================

store_writes_total = Counter(
    name="fieldops_store_writes_total",
    documentation="Work orders written to the store",
    labelnames=["operation"],  # operation: insert, upsert, status_update
    registry=REGISTRY,
)

errors_total = Counter(
    name="fieldops_errors_total",
    documentation="Total number of errors",
    labelnames=["component", "error_type"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric, skipping zero increments

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if value <= 0:
        return
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    gauge.labels(**labels).set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    if labels:
        histogram.labels(**labels).observe(value)
    else:
        histogram.observe(value)


# =======================
# PIPELINE HELPERS
# =======================

def record_dedup(unique: int, duplicates: int, unkeyable: int) -> None:
    """
    Record the outcome of one deduplication pass.

    Args:
        unique: Orders kept
        duplicates: Orders dropped because their key was already seen
        unkeyable: Orders dropped because no key could be extracted
    """
    increment_counter(orders_deduplicated_total, unique, outcome="unique")
    increment_counter(orders_deduplicated_total, duplicates, outcome="duplicate")
    increment_counter(orders_deduplicated_total, unkeyable, outcome="unkeyable")


def record_import_result(
    outcome: str,
    batch_orders: int,
    imported: int,
    duplicates: int,
    errors: int,
    duration_seconds: float,
) -> None:
    """
    Record one bulk import submission.

    Args:
        outcome: success, partial, failure or transport_error
        batch_orders: Number of orders submitted
        imported: Orders the transport imported
        duplicates: Orders the transport skipped as duplicates
        errors: Orders the transport failed on
        duration_seconds: Time spent in the transport call
    """
    increment_counter(import_submissions_total, 1, outcome=outcome)
    increment_counter(import_orders_total, imported, result="imported")
    increment_counter(import_orders_total, duplicates, result="duplicate")
    increment_counter(import_orders_total, errors, result="error")
    observe_histogram(import_batch_size, batch_orders)
    observe_histogram(import_duration_seconds, duration_seconds)


def record_status_counts(counts: dict[str, int]) -> None:
    for bucket, value in counts.items():
        set_gauge(status_bucket_orders, value, bucket=bucket)
