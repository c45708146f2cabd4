"""Backup verification: content snapshots and comparison.

Provides snapshot comparison (``compare_snapshots``), live database
introspection (``SnapshotIntrospector``) and the combined
``verify_backup`` helper.

Usage:
    from db_hotbackup.schema import verify_backup, compare_snapshots
"""

from db_hotbackup.schema.comparator import compare_snapshots
from db_hotbackup.schema.introspector import SnapshotIntrospector, verify_backup
from db_hotbackup.schema.models import TableDiff, TableSnapshot, VerificationResult

__all__ = [
    "compare_snapshots",
    "SnapshotIntrospector",
    "verify_backup",
    "TableSnapshot",
    "TableDiff",
    "VerificationResult",
]
