"""Configuration management: backup profiles, TOML loading, and config models.

Usage:
    >>> from db_hotbackup.config import load_backup_config, BackupProfile, BackupConfig
"""

from db_hotbackup.config.loader import get_profile, load_backup_config
from db_hotbackup.config.models import BackupConfig, BackupProfile

__all__ = ["load_backup_config", "get_profile", "BackupConfig", "BackupProfile"]
