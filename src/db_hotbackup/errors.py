"""Exception hierarchy for db-hotbackup.

Engine failures carry the SQLite primary result code, the extended result
code and the engine's message.  Transient contention (``SQLITE_BUSY`` and
``SQLITE_LOCKED``) is never raised -- ``Backup.step()`` returns it as a
status value.

Usage:
    from db_hotbackup.errors import BackupError, BackupInitError, BackupStepError

    try:
        backup = Backup(dest, "main", src, "does_not_exist")
    except BackupInitError as e:
        print(e.code, e.message)
"""

import apsw

# Step codes after which retrying the same step cannot succeed
FATAL_STEP_CODES = frozenset({apsw.SQLITE_IOERR, apsw.SQLITE_NOMEM, apsw.SQLITE_READONLY})


class BackupError(Exception):
    """Base class for errors reported by the backup engine.

    Attributes:
        message: Engine-reported message.
        code: Primary SQLite result code, or ``None`` when the failure did
            not come with one (e.g. a closed connection).
        extended_code: Extended SQLite result code, or ``None``.
    """

    def __init__(
        self,
        message: str,
        code: int | None = None,
        extended_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.extended_code = extended_code

    @property
    def code_name(self) -> str:
        """Symbolic name of the most specific code (e.g. ``SQLITE_IOERR_WRITE``)."""
        for value in (self.extended_code, self.code):
            if value is not None and value in apsw.mapping_result_codes:
                return apsw.mapping_result_codes[value]
            if value is not None and value in apsw.mapping_extended_result_codes:
                return apsw.mapping_extended_result_codes[value]
        return "UNKNOWN"

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"{self.message} ({self.code_name})"


class BackupInitError(BackupError):
    """Raised when the engine refuses to create a backup handle."""

    pass


class BackupStepError(BackupError):
    """Raised when a backup step fails with a non-transient code."""

    @property
    def fatal(self) -> bool:
        """True for I/O, out-of-memory and read-only failures."""
        return self.code in FATAL_STEP_CODES


class BackupClosedError(BackupError):
    """Raised when a released backup is used."""

    pass


class ProfileNotFoundError(Exception):
    """Raised when no backup profile is selected or the name is unknown."""

    pass
