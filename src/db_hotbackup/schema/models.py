"""Pydantic models for backup verification.

- Snapshot model: TableSnapshot
- Comparison models: TableDiff, VerificationResult
"""

from pydantic import BaseModel, Field


# ============================================================================
# Snapshot Models
# ============================================================================


class TableSnapshot(BaseModel):
    """Row count and order-insensitive content checksum of one table."""

    name: str
    row_count: int
    checksum: str


# ============================================================================
# Comparison Models
# ============================================================================


class TableDiff(BaseModel):
    """A table whose contents differ between source and destination."""

    table: str
    source_rows: int
    dest_rows: int
    message: str = ""


class VerificationResult(BaseModel):
    """Result of comparing a source database with its backup.

    Example:
        >>> result = VerificationResult(valid=True)
        >>> result.error_count
        0
        >>> result.format_report()
        'Backup matches source'
    """

    valid: bool
    missing_tables: list[str] = Field(default_factory=list)
    extra_tables: list[str] = Field(default_factory=list)
    mismatched_tables: list[TableDiff] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.missing_tables) + len(self.extra_tables) + len(self.mismatched_tables)

    def format_report(self) -> str:
        """Format verification result as human-readable report."""
        if self.valid:
            return "Backup matches source"

        lines = ["Backup verification failed:"]

        if self.missing_tables:
            lines.append(f"\n  Missing tables ({len(self.missing_tables)}):")
            for table in self.missing_tables:
                lines.append(f"    - {table}")

        if self.extra_tables:
            lines.append(f"\n  Extra tables ({len(self.extra_tables)}):")
            for table in self.extra_tables:
                lines.append(f"    - {table}")

        if self.mismatched_tables:
            lines.append(f"\n  Mismatched tables ({len(self.mismatched_tables)}):")
            for diff in self.mismatched_tables:
                lines.append(
                    f"    - {diff.table}: {diff.source_rows} source rows, "
                    f"{diff.dest_rows} backup rows"
                )

        return "\n".join(lines)
