"""SQLite content introspection via SQLAlchemy.

Opens a database file read-only through a SQLAlchemy engine and computes,
for every user table, its row count and an order-insensitive checksum of
its rows.  Used to check that a finished backup holds the same rows as its
source.

Usage:
    from db_hotbackup.schema.introspector import SnapshotIntrospector, verify_backup

    with SnapshotIntrospector("app.db") as introspector:
        snapshots = introspector.snapshot()

    result = verify_backup("app.db", "backups/app.db")
"""

import hashlib
from pathlib import Path

from sqlalchemy import create_engine, inspect, literal_column, select, table
from sqlalchemy.engine import URL, Engine

from db_hotbackup.schema.comparator import compare_snapshots
from db_hotbackup.schema.models import TableSnapshot, VerificationResult


class SnapshotIntrospector:
    """Introspects table contents of a SQLite database file.

    Usage:
        with SnapshotIntrospector("app.db") as introspector:
            tables = introspector.get_table_names()
            snapshots = introspector.snapshot()
    """

    def __init__(self, database_path: str | Path):
        """Initialize with database file path.

        Args:
            database_path: Path to an existing SQLite database file
        """
        self._database_path = Path(database_path)
        self._engine: Engine | None = None

    def __enter__(self) -> "SnapshotIntrospector":
        """Context manager entry - creates a read-only engine."""
        if not self._database_path.exists():
            raise FileNotFoundError(f"Database not found: {self._database_path}")

        # mode=ro so a missing or misspelled path is never created.  as_uri()
        # percent-encodes "?", "#" and "%"; URL.create keeps them out of URL
        # parsing.
        url = URL.create(
            "sqlite",
            database=self._database_path.resolve().as_uri(),
            query={"mode": "ro", "uri": "true"},
        )
        self._engine = create_engine(url)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - disposes the engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

    def get_table_names(self) -> list[str]:
        """Get user table names (SQLite internal tables excluded)."""
        if not self._engine:
            raise RuntimeError("Introspector not connected. Use with statement.")
        return sorted(inspect(self._engine).get_table_names())

    def snapshot(self) -> dict[str, TableSnapshot]:
        """Snapshot every user table.

        Returns:
            Dict mapping table name to ``TableSnapshot``
        """
        if not self._engine:
            raise RuntimeError("Introspector not connected. Use with statement.")

        result: dict[str, TableSnapshot] = {}
        with self._engine.connect() as conn:
            for name in self.get_table_names():
                query = select(literal_column("*")).select_from(table(name))
                digests = sorted(
                    hashlib.sha256(repr(tuple(row)).encode()).hexdigest()
                    for row in conn.execute(query)
                )
                checksum = hashlib.sha256("".join(digests).encode()).hexdigest()
                result[name] = TableSnapshot(
                    name=name,
                    row_count=len(digests),
                    checksum=checksum,
                )
        return result


def verify_backup(source_path: str | Path, dest_path: str | Path) -> VerificationResult:
    """Compare the contents of a source database file with its backup.

    Raises:
        FileNotFoundError: If either file does not exist
    """
    with SnapshotIntrospector(source_path) as introspector:
        source = introspector.snapshot()
    with SnapshotIntrospector(dest_path) as introspector:
        dest = introspector.snapshot()
    return compare_snapshots(source, dest)
