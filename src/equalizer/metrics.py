"""
Prometheus metrics for reconciliation runs.

Tracks run outcomes, durations, row classifications and partition shapes.
"""

from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram

# Metrics
try:
    EQUALIZER_RUNS = Counter(
        "equalizer_runs_total",
        "Total reconciliation runs",
        ["status"],  # success, failed
        registry=REGISTRY
    )
except ValueError:
    # Metric already registered, get existing one
    EQUALIZER_RUNS = REGISTRY._names_to_collectors.get("equalizer_runs_total")

try:
    EQUALIZER_RUN_TIME = Histogram(
        "equalizer_run_seconds",
        "Time to reconcile a source and a target dataset",
        buckets=[0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300],
        registry=REGISTRY
    )
except ValueError:
    EQUALIZER_RUN_TIME = REGISTRY._names_to_collectors.get("equalizer_run_seconds")

try:
    ROWS_CLASSIFIED = Counter(
        "equalizer_rows_classified_total",
        "Total rows classified by a reconciliation run",
        ["classification"],  # insert, update, delete, equalized
        registry=REGISTRY
    )
except ValueError:
    ROWS_CLASSIFIED = REGISTRY._names_to_collectors.get("equalizer_rows_classified_total")

try:
    PARTITIONS_PROCESSED = Counter(
        "equalizer_partitions_total",
        "Total row-key hash partitions matched",
        registry=REGISTRY
    )
except ValueError:
    PARTITIONS_PROCESSED = REGISTRY._names_to_collectors.get("equalizer_partitions_total")

try:
    PARTITION_COLLISIONS = Counter(
        "equalizer_partition_collisions_total",
        "Partitions whose rows did not all share one logical key",
        registry=REGISTRY
    )
except ValueError:
    PARTITION_COLLISIONS = REGISTRY._names_to_collectors.get("equalizer_partition_collisions_total")


def get_run_stats() -> dict[str, Any]:
    """
    Get current reconciliation statistics.

    Returns:
        Dictionary with current metric values

    Example:
        >>> stats = get_run_stats()
        >>> print(f"Inserted rows: {stats['rows']['insert']}")
    """
    return {
        "runs": {
            status: REGISTRY.get_sample_value("equalizer_runs_total", {"status": status}) or 0
            for status in ("success", "failed")
        },
        "rows": {
            classification: REGISTRY.get_sample_value(
                "equalizer_rows_classified_total", {"classification": classification}
            )
            or 0
            for classification in ("insert", "update", "delete", "equalized")
        },
        "partitions": REGISTRY.get_sample_value("equalizer_partitions_total") or 0,
        "collisions": REGISTRY.get_sample_value("equalizer_partition_collisions_total") or 0,
    }
