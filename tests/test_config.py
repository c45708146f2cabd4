"""Tests for backup profile configuration.

Verifies that load_backup_config() parses hotbackup.toml into validated
models, resolves relative paths against the config file, and reports bad
input as ValueError; and that get_profile() selects profiles by argument
or environment variable.
"""

import textwrap
from pathlib import Path

import pytest

from db_hotbackup.config.loader import (
    CONFIG_ENV_VAR,
    PROFILE_ENV_VAR,
    default_config_path,
    get_profile,
    load_backup_config,
)
from db_hotbackup.config.models import BackupConfig, BackupProfile
from db_hotbackup.errors import ProfileNotFoundError


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "hotbackup.toml"
    path.write_text(textwrap.dedent(body))
    return path


# ============================================================================
# Models
# ============================================================================


class TestBackupProfile:
    """Verify BackupProfile defaults and validation."""

    def test_defaults(self):
        profile = BackupProfile(source="a.db", destination="b.db")
        assert profile.source_schema == "main"
        assert profile.attach == {}
        assert profile.source_file == "a.db"
        assert profile.pages_per_step == -1
        assert profile.busy_retries == 0
        assert profile.busy_sleep == 0.25
        assert profile.verify is False
        assert profile.description == ""

    def test_zero_pages_rejected(self):
        with pytest.raises(ValueError, match="non-zero"):
            BackupProfile(source="a.db", destination="b.db", pages_per_step=0)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            BackupProfile(source="a.db", destination="b.db", busy_retries=-1)

    def test_empty_schema_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            BackupProfile(source="a.db", destination="b.db", source_schema="")

    def test_missing_required_fields(self):
        with pytest.raises(ValueError):
            BackupProfile(source="a.db")

    def test_attached_schema(self):
        profile = BackupProfile(
            source="a.db",
            destination="b.db",
            source_schema="old",
            attach={"old": "old.db"},
            verify=True,
        )
        assert profile.source_file == "old.db"

    def test_unattached_schema_rejected(self):
        """A schema other than main/temp must be listed in attach."""
        with pytest.raises(ValueError, match="not main, temp, or an alias"):
            BackupProfile(source="a.db", destination="b.db", source_schema="old")

    @pytest.mark.parametrize("alias", ["main", "TEMP", ""])
    def test_reserved_alias_rejected(self, alias):
        with pytest.raises(ValueError, match="alias"):
            BackupProfile(source="a.db", destination="b.db", attach={alias: "x.db"})

    def test_temp_schema_cannot_be_verified(self):
        with pytest.raises(ValueError, match="temp schema"):
            BackupProfile(
                source="a.db", destination="b.db", source_schema="temp", verify=True
            )


# ============================================================================
# Loader
# ============================================================================


class TestLoadBackupConfig:
    """Verify TOML loading."""

    def test_loads_profiles(self, tmp_path: Path):
        path = _write_config(
            tmp_path,
            """
            [profiles.nightly]
            source = "/data/app.db"
            destination = "/backups/app.db"
            pages_per_step = 100
            busy_retries = 5
            busy_sleep = 0.1
            verify = true
            description = "Nightly copy"

            [profiles.attached]
            source = "/data/app.db"
            destination = "/backups/aux.db"
            source_schema = "aux"
            attach = { aux = "/data/aux.db" }
            """,
        )

        config = load_backup_config(path)

        assert isinstance(config, BackupConfig)
        assert set(config.profiles) == {"nightly", "attached"}
        nightly = config.profiles["nightly"]
        assert nightly.pages_per_step == 100
        assert nightly.busy_retries == 5
        assert nightly.busy_sleep == 0.1
        assert nightly.verify is True
        assert nightly.description == "Nightly copy"
        attached = config.profiles["attached"]
        assert attached.source_schema == "aux"
        assert attached.attach == {"aux": "/data/aux.db"}
        assert attached.source_file == "/data/aux.db"

    def test_relative_paths_resolved_against_config_dir(self, tmp_path: Path):
        path = _write_config(
            tmp_path,
            """
            [profiles.local]
            source = "data/app.db"
            destination = "backups/app.db"
            source_schema = "old"
            attach = { old = "data/old.db" }
            """,
        )

        profile = load_backup_config(path).profiles["local"]

        base = tmp_path.resolve()
        assert profile.source == str(base / "data" / "app.db")
        assert profile.destination == str(base / "backups" / "app.db")
        assert profile.attach == {"old": str(base / "data" / "old.db")}

    def test_absolute_paths_unchanged(self, tmp_path: Path):
        src = tmp_path / "src.db"
        path = _write_config(
            tmp_path,
            f"""
            [profiles.abs]
            source = "{src.as_posix()}"
            destination = "{(tmp_path / 'dst.db').as_posix()}"
            """,
        )
        assert load_backup_config(path).profiles["abs"].source == str(src)

    def test_no_profiles_table(self, tmp_path: Path):
        path = _write_config(tmp_path, "title = 'empty'\n")
        assert load_backup_config(path).profiles == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Backup config not found"):
            load_backup_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path):
        path = _write_config(tmp_path, "[profiles.broken\n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_backup_config(path)

    def test_invalid_profile(self, tmp_path: Path):
        path = _write_config(
            tmp_path,
            """
            [profiles.bad]
            source = "a.db"
            destination = "b.db"
            pages_per_step = 0
            """,
        )
        with pytest.raises(ValueError, match="Invalid profile 'bad'"):
            load_backup_config(path)

    def test_env_var_config_path(self, tmp_path: Path, monkeypatch):
        path = _write_config(
            tmp_path,
            """
            [profiles.env]
            source = "a.db"
            destination = "b.db"
            """,
        )
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert default_config_path() == path
        assert "env" in load_backup_config().profiles

    def test_default_path_in_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert default_config_path() == tmp_path / "hotbackup.toml"


# ============================================================================
# Profile selection
# ============================================================================


class TestGetProfile:
    """Verify get_profile() selection priority and errors."""

    @pytest.fixture
    def config(self) -> BackupConfig:
        return BackupConfig(
            profiles={
                "nightly": BackupProfile(source="a.db", destination="b.db"),
                "hourly": BackupProfile(source="a.db", destination="c.db"),
            }
        )

    def test_by_name(self, config, monkeypatch):
        monkeypatch.setenv(PROFILE_ENV_VAR, "hourly")
        name, profile = get_profile(config, "nightly")
        assert name == "nightly"
        assert profile.destination == "b.db"

    def test_from_env(self, config, monkeypatch):
        monkeypatch.setenv(PROFILE_ENV_VAR, "hourly")
        name, profile = get_profile(config)
        assert name == "hourly"
        assert profile.destination == "c.db"

    def test_none_selected(self, config, monkeypatch):
        monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
        with pytest.raises(ProfileNotFoundError, match="No backup profile selected"):
            get_profile(config)

    def test_unknown_name_lists_available(self, config):
        with pytest.raises(ProfileNotFoundError) as exc_info:
            get_profile(config, "weekly")
        message = str(exc_info.value)
        assert "'weekly' not found" in message
        assert "nightly" in message and "hourly" in message
