"""TOML configuration loading for backup profiles.

Usage:
    from db_hotbackup.config.loader import load_backup_config, get_profile

    config = load_backup_config()                # $HOTBACKUP_CONFIG or ./hotbackup.toml
    name, profile = get_profile(config, "nightly")
"""

import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from db_hotbackup.config.models import BackupConfig, BackupProfile
from db_hotbackup.errors import ProfileNotFoundError

CONFIG_ENV_VAR = "HOTBACKUP_CONFIG"
PROFILE_ENV_VAR = "HOTBACKUP_PROFILE"
DEFAULT_CONFIG_NAME = "hotbackup.toml"


def default_config_path() -> Path:
    """Config path from ``HOTBACKUP_CONFIG``, else ``./hotbackup.toml``."""
    configured = os.environ.get(CONFIG_ENV_VAR)
    if configured:
        return Path(configured)
    return Path.cwd() / DEFAULT_CONFIG_NAME


def load_backup_config(config_path: Path | None = None) -> BackupConfig:
    """Load backup configuration from TOML file.

    Relative ``source``, ``destination`` and ``attach`` paths are resolved
    against the directory containing the config file.

    Args:
        config_path: Path to hotbackup.toml (default: ``default_config_path()``)

    Returns:
        BackupConfig with all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = default_config_path()
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Backup config not found: {config_path}\n"
            f"Create {DEFAULT_CONFIG_NAME} with a [profiles.<name>] table."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    base_dir = config_path.resolve().parent

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        try:
            profile = BackupProfile(**profile_data)
        except ValidationError as e:
            raise ValueError(f"Invalid profile '{name}' in {config_path}:\n{e}") from e
        profile.source = str(_resolve(base_dir, profile.source))
        profile.destination = str(_resolve(base_dir, profile.destination))
        profile.attach = {
            alias: str(_resolve(base_dir, path)) for alias, path in profile.attach.items()
        }
        profiles[name] = profile

    return BackupConfig(profiles=profiles)


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def get_profile(
    config: BackupConfig,
    profile_name: str | None = None,
) -> tuple[str, BackupProfile]:
    """Select a profile by name.

    Priority:
    1. *profile_name* argument
    2. ``HOTBACKUP_PROFILE`` env var
    3. Raise ProfileNotFoundError

    Returns:
        Tuple of (profile_name, BackupProfile)

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not defined
    """
    if profile_name is None:
        profile_name = os.environ.get(PROFILE_ENV_VAR)

    if not profile_name:
        raise ProfileNotFoundError(
            "No backup profile selected.\n"
            f"Pass --profile <name> or set {PROFILE_ENV_VAR}."
        )

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found.\n"
            f"Available profiles: {available}"
        )

    return profile_name, config.profiles[profile_name]
