"""
Table equalizer: batch reconciliation of a source and a target table.

Given two table specs and two datasets, computes the rows that must be
inserted, updated or deleted in the target (and the rows that are already
equalized) so that it matches the source.

Components:
- specs: Table and column specs, equalizability rules
- hasher: Deterministic row-key hashing
- transposer: Row/columnar format detection and conversion
- partition: Hash-partitioned row matching
- engine: Reconciliation orchestrator
- batch: Work-directory batch driver
- dirlock: Advisory directory lock
- config: Environment-backed settings
- jsonio: JSON file helpers
- metrics: Prometheus metrics
- cli: Command-line interface

Usage:
    from equalizer.engine import reconcile
    from equalizer.specs import read_spec_file

    result = reconcile(source_spec, target_spec, source_data, target_data)
"""

__version__ = "1.0.0"
__all__ = [
    "specs", "hasher", "transposer", "partition", "engine",
    "batch", "dirlock", "config", "jsonio", "metrics", "exceptions", "cli",
]
