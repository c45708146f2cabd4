"""db-hotbackup: online page-by-page SQLite backups.

Provides a ``Backup`` driver over the SQLite hot-backup API (via apsw), a
step loop with progress reporting, TOML backup profiles, post-copy
verification, and a command line tool.

Usage:
    from db_hotbackup import Backup, StepStatus, SQLiteConnection
    from db_hotbackup import run_backup, backup_file, verify_backup
    from db_hotbackup import BackupError, BackupInitError, BackupStepError
"""

__version__ = "0.1.0"

# Adapters
from db_hotbackup.adapters.base import EngineConnection
from db_hotbackup.adapters.sqlite import SQLiteConnection

# Backup
from db_hotbackup.backup.driver import Backup, StepStatus
from db_hotbackup.backup.models import BackupProgress, BackupResult
from db_hotbackup.backup.runner import backup_file, run_backup

# Config
from db_hotbackup.config.loader import get_profile, load_backup_config
from db_hotbackup.config.models import BackupConfig, BackupProfile

# Errors
from db_hotbackup.errors import (
    BackupClosedError,
    BackupError,
    BackupInitError,
    BackupStepError,
    ProfileNotFoundError,
)

# Verification
from db_hotbackup.schema.comparator import compare_snapshots
from db_hotbackup.schema.introspector import verify_backup
from db_hotbackup.schema.models import VerificationResult

__all__ = [
    # Adapters
    "EngineConnection",
    "SQLiteConnection",
    # Backup
    "Backup",
    "StepStatus",
    "BackupProgress",
    "BackupResult",
    "run_backup",
    "backup_file",
    # Config
    "load_backup_config",
    "get_profile",
    "BackupConfig",
    "BackupProfile",
    # Errors
    "BackupError",
    "BackupInitError",
    "BackupStepError",
    "BackupClosedError",
    "ProfileNotFoundError",
    # Verification
    "compare_snapshots",
    "verify_backup",
    "VerificationResult",
]
