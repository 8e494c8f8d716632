"""
Hash-partitioned row matching.

Rows on each side are bucketed by their row-key hash. Only rows sharing a
bucket can carry the same key, so matching runs bucket by bucket instead of
over every source/target pair. Inside a bucket every pair is re-checked with
exact key equality, so hash collisions never change the classification.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from opentelemetry import trace

from equalizer.hasher import RowKeyHasher, compute_row_key_hash
from equalizer.metrics import PARTITION_COLLISIONS, PARTITIONS_PROCESSED
from equalizer.specs import ColumnarTable, TableSpec, newer_than, same_keys
from equalizer.transposer import row_count
from utils.tracing import trace_operation

logger = logging.getLogger(__name__)

PartitionMap = dict[int, list[int]]

# Partitions handed to a worker per task, as a fraction of the total
TASKS_PER_WORKER = 4


@dataclass
class PartitionResult:
    """Row indices classified by matching one or more partitions."""

    insert: list[int] = field(default_factory=list)
    update: list[int] = field(default_factory=list)
    delete: list[int] = field(default_factory=list)
    equalized: list[int] = field(default_factory=list)

    def extend(self, other: "PartitionResult") -> None:
        self.insert.extend(other.insert)
        self.update.extend(other.update)
        self.delete.extend(other.delete)
        self.equalized.extend(other.equalized)

    def counts(self) -> dict[str, int]:
        return {
            "insert": len(self.insert),
            "update": len(self.update),
            "delete": len(self.delete),
            "equalized": len(self.equalized),
        }


def build_partition_map(spec: TableSpec, table: ColumnarTable) -> PartitionMap:
    """
    Bucket every row of a canonical table by its row-key hash.

    Returns:
        Mapping of hash to the row indices hashing to it, in row order
    """
    partitions: PartitionMap = {}
    hasher = RowKeyHasher()
    for i in range(row_count(table)):
        key_hash = compute_row_key_hash(hasher, spec, table, i)
        partitions.setdefault(key_hash, []).append(i)
    logger.debug(f"Built partition map for '{spec.name}': {len(partitions)} partitions")
    return partitions


def merge_hashes(source_map: PartitionMap, target_map: PartitionMap) -> list[int]:
    """Union of both maps' hashes: source hashes first, then target-only hashes."""
    merged = list(source_map)
    merged.extend(h for h in target_map if h not in source_map)
    return merged


def match_partition(
    source_spec: TableSpec,
    target_spec: TableSpec,
    source_table: ColumnarTable,
    target_table: ColumnarTable,
    source_indices: Sequence[int],
    target_indices: Sequence[int],
) -> PartitionResult:
    """
    Classify the rows of one partition.

    Every source row is compared with every target row of the partition. A
    matched source row is an update when it is newer than at least one of its
    matching target rows and equalized otherwise. Unmatched source rows are
    inserts and unmatched target rows are deletes. Each source row is
    classified exactly once, even when its key is duplicated on the target.
    """
    result = PartitionResult()
    matched_targets = set()

    for s in source_indices:
        matched = False
        newer = False
        for t in target_indices:
            if not same_keys(source_spec, target_spec, source_table, target_table, s, t):
                continue
            matched = True
            matched_targets.add(t)
            if not newer:
                newer = newer_than(source_spec, target_spec, source_table, target_table, s, t)
        if not matched:
            result.insert.append(s)
        elif newer:
            result.update.append(s)
        else:
            result.equalized.append(s)

    result.delete.extend(t for t in target_indices if t not in matched_targets)
    return result


def match_partitions(
    source_spec: TableSpec,
    target_spec: TableSpec,
    source_table: ColumnarTable,
    target_table: ColumnarTable,
    source_map: PartitionMap,
    target_map: PartitionMap,
    hashes: Sequence[int],
    max_workers: int = 1,
) -> PartitionResult:
    """
    Match every partition and accumulate the classifications.

    With max_workers > 1 the partitions are split into batches and matched on
    a thread pool. Batch results are merged in hash order, so the output is
    identical to the sequential path. The first error aborts the run.

    Args:
        source_spec: Source table spec
        target_spec: Target table spec
        source_table: Canonical source table
        target_table: Canonical target table
        source_map: Source partition map
        target_map: Target partition map
        hashes: Merged partition hashes, in processing order
        max_workers: Worker threads (1 = sequential)

    Returns:
        Accumulated classification of all rows
    """
    def match_batch(batch: Iterable[int]) -> PartitionResult:
        batch_result = PartitionResult()
        for key_hash in batch:
            source_indices = source_map.get(key_hash, [])
            target_indices = target_map.get(key_hash, [])
            partition_result = match_partition(
                source_spec, target_spec, source_table, target_table,
                source_indices, target_indices,
            )
            logger.debug(
                f"Partition {key_hash}: source={source_indices} target={target_indices} "
                f"-> {partition_result.counts()}"
            )
            if source_indices and target_indices and (partition_result.insert or partition_result.delete):
                PARTITION_COLLISIONS.inc()
            batch_result.extend(partition_result)
        PARTITIONS_PROCESSED.inc(len(batch))
        return batch_result

    with trace_operation(
        "match_partitions",
        kind=trace.SpanKind.INTERNAL,
        partition_count=len(hashes),
        max_workers=max_workers,
    ):
        if max_workers <= 1 or len(hashes) <= 1:
            return match_batch(hashes)

        batch_size = max(1, math.ceil(len(hashes) / (max_workers * TASKS_PER_WORKER)))
        batches = [hashes[i:i + batch_size] for i in range(0, len(hashes), batch_size)]
        logger.info(
            f"Matching {len(hashes)} partitions in {len(batches)} batches "
            f"with {max_workers} workers"
        )

        result = PartitionResult()
        executor = ThreadPoolExecutor(max_workers=max_workers)
        try:
            futures = [executor.submit(match_batch, batch) for batch in batches]
            for future in futures:
                result.extend(future.result())
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        return result
