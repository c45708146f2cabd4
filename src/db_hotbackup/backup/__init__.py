"""Online backup driver and step loop.

Usage:
    from db_hotbackup.backup import Backup, StepStatus
    from db_hotbackup.backup import run_backup, backup_file
"""

from db_hotbackup.backup.driver import Backup, StepStatus
from db_hotbackup.backup.models import BackupProgress, BackupResult
from db_hotbackup.backup.runner import backup_file, run_backup

__all__ = [
    "Backup",
    "StepStatus",
    "BackupProgress",
    "BackupResult",
    "run_backup",
    "backup_file",
]
