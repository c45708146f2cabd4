"""Progress and result models for the backup step loop.

Usage:
    from db_hotbackup.backup.models import BackupProgress, BackupResult

    def show(progress: BackupProgress) -> None:
        print(f"{progress.percent:.0f}% ({progress.remaining} pages left)")
"""

from pydantic import BaseModel

from db_hotbackup.backup.driver import StepStatus


class BackupProgress(BaseModel):
    """Snapshot of backup progress after one step.

    Example:
        >>> p = BackupProgress(status=StepStatus.OK, remaining=25, total=100, step=3)
        >>> p.copied, p.percent
        (75, 75.0)
    """

    status: StepStatus
    remaining: int
    total: int
    step: int  # 1-based step number

    @property
    def copied(self) -> int:
        return max(self.total - self.remaining, 0)

    @property
    def percent(self) -> float:
        """Percentage of source pages copied (100.0 for an empty source)."""
        if self.total <= 0:
            return 100.0
        return 100.0 * self.copied / self.total


class BackupResult(BaseModel):
    """Result of ``run_backup()`` / ``backup_file()``."""

    success: bool
    source: str = ""
    destination: str = ""
    status: StepStatus | None = None  # last status returned by step()
    steps: int = 0
    busy_count: int = 0  # BUSY/LOCKED statuses seen in total
    total_pages: int = 0
    remaining_pages: int = 0
    elapsed_seconds: float = 0.0
    error: str | None = None
    error_code: int | None = None
