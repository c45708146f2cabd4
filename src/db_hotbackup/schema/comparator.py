"""Snapshot comparison using set operations.

Compares table snapshots of a source database with those of its backup.
Pure logic -- no I/O, no database connections.

Usage:
    from db_hotbackup.schema.comparator import compare_snapshots
    from db_hotbackup.schema.introspector import SnapshotIntrospector

    with SnapshotIntrospector("app.db") as introspector:
        source = introspector.snapshot()
    with SnapshotIntrospector("backup.db") as introspector:
        dest = introspector.snapshot()

    result = compare_snapshots(source, dest)
    print(result.format_report())
"""

from db_hotbackup.schema.models import TableDiff, TableSnapshot, VerificationResult


def compare_snapshots(
    source: dict[str, TableSnapshot],
    dest: dict[str, TableSnapshot],
) -> VerificationResult:
    """Compare source and destination snapshots table by table.

    A backup is valid when both sides have the same set of tables and every
    table has the same row count and checksum.

    Args:
        source: Table name to snapshot for the source database.
        dest: Table name to snapshot for the backup.

    Returns:
        ``VerificationResult`` listing missing, extra and mismatched tables.

    Examples:
        >>> snap = TableSnapshot(name="t", row_count=3, checksum="abc")
        >>> compare_snapshots({"t": snap}, {"t": snap}).valid
        True
        >>> compare_snapshots({"t": snap}, {}).missing_tables
        ['t']
    """
    source_tables: set[str] = set(source.keys())
    dest_tables: set[str] = set(dest.keys())

    missing_tables: list[str] = sorted(source_tables - dest_tables)
    extra_tables: list[str] = sorted(dest_tables - source_tables)

    mismatched: list[TableDiff] = []
    for name in sorted(source_tables & dest_tables):
        src_snap = source[name]
        dest_snap = dest[name]
        if src_snap.row_count != dest_snap.row_count:
            message = "Row counts differ"
        elif src_snap.checksum != dest_snap.checksum:
            message = "Row contents differ"
        else:
            continue
        mismatched.append(
            TableDiff(
                table=name,
                source_rows=src_snap.row_count,
                dest_rows=dest_snap.row_count,
                message=message,
            )
        )

    return VerificationResult(
        valid=not (missing_tables or extra_tables or mismatched),
        missing_tables=missing_tables,
        extra_tables=extra_tables,
        mismatched_tables=mismatched,
    )
