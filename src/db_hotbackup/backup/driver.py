"""Online backup driver over the SQLite hot-backup API.

``Backup`` owns one engine backup handle for its whole lifetime.  It is
created from a destination and a source connection, advanced in bounded
steps, and released on ``close()`` or at the end of a ``with`` block.

Usage:
    from db_hotbackup.backup.driver import Backup, StepStatus

    with Backup(dest, "main", src, "main") as backup:
        while backup.step(100) is not StepStatus.DONE:
            print(backup.remaining_pages(), "/", backup.total_pages())

Thread-safety: a ``Backup`` must not be shared between threads.  SQLite
only guarantees safety when a connection is used by one thread at a time,
and each step mutates both borrowed connections.  Keep the backup and both
connections on the same thread.
"""

from enum import IntEnum
from typing import overload

import apsw

from db_hotbackup.adapters.base import EngineConnection
from db_hotbackup.adapters.sqlite import quote_identifier
from db_hotbackup.errors import BackupClosedError, BackupInitError, BackupStepError

MAIN_SCHEMA = "main"


class StepStatus(IntEnum):
    """Non-error outcomes of ``Backup.step()``, valued as SQLite result codes."""

    OK = apsw.SQLITE_OK
    DONE = apsw.SQLITE_DONE
    BUSY = apsw.SQLITE_BUSY
    LOCKED = apsw.SQLITE_LOCKED

    @property
    def transient(self) -> bool:
        """True for contention the caller may retry after a delay."""
        return self in (StepStatus.BUSY, StepStatus.LOCKED)


def _check_schema_name(value: object, role: str) -> str:
    if value is None:
        raise ValueError(f"{role} schema name must not be None")
    if not isinstance(value, str):
        raise TypeError(f"{role} schema name must be str, got {type(value).__name__}")
    if not value:
        raise ValueError(f"{role} schema name must not be empty")
    return value


class Backup:
    """RAII-style owner of a SQLite backup handle.

    Construction forms:

    - ``Backup(dest, dest_name, src, src_name)``
    - ``Backup(dest, src)`` -- both schema names are ``"main"``

    Schema names are ``"main"``, ``"temp"``, or an alias given to
    ``ATTACH``.  If the engine cannot create the handle, ``BackupInitError``
    is raised and no ``Backup`` exists.  That includes a closed connection
    and the same connection given as both source and destination.

    Both connections are borrowed and must stay open until the backup is
    closed.  Backups cannot be copied or pickled.

    Raises:
        BackupInitError: The engine refused to start the backup, a
            connection is closed, or *src* and *dest* are one connection.
        ValueError: A schema name is ``None`` or empty.
        TypeError: Wrong number of arguments or a non-``str`` schema name.
    """

    @overload
    def __init__(self, dest: EngineConnection, src: EngineConnection, /) -> None: ...

    @overload
    def __init__(
        self,
        dest: EngineConnection,
        dest_name: str,
        src: EngineConnection,
        src_name: str,
        /,
    ) -> None: ...

    def __init__(self, dest, *args) -> None:
        # Set first so close()/__del__ work if construction fails below
        self._handle: apsw.Backup | None = None
        self._done = False
        self._stepped = False
        self._initial_pages: int | None = None

        if len(args) == 1:
            dest_name, src, src_name = MAIN_SCHEMA, args[0], MAIN_SCHEMA
        elif len(args) == 3:
            dest_name, src, src_name = args
        else:
            raise TypeError(
                "Backup() takes (dest, src) or (dest, dest_name, src, src_name), "
                f"got {1 + len(args)} arguments"
            )

        self._dest = dest
        self._src = src
        self._dest_name = _check_schema_name(dest_name, "destination")
        self._src_name = _check_schema_name(src_name, "source")

        dest_handle = dest.get_handle()
        src_handle = src.get_handle()
        try:
            handle = dest_handle.backup(self._dest_name, src_handle, self._src_name)
        except (apsw.Error, ValueError) as e:
            # apsw reports a closed source, or src being dest, as ValueError
            raise dest.make_error(e, BackupInitError) from e

        self._handle = handle
        try:
            self._initial_pages = self._read_source_pages(src_handle)
        except apsw.Error as e:
            self.close()
            raise src.make_error(e, BackupInitError) from e

    def _read_source_pages(self, src_handle: apsw.Connection) -> int | None:
        """Page count of the source schema at construction time.

        Returns ``None`` when the source is locked by another writer; the
        accessors then report the engine's counters, which stay at zero
        until the first step.
        """
        cursor = src_handle.cursor()
        try:
            row = cursor.execute(
                f"PRAGMA {quote_identifier(self._src_name)}.page_count"
            ).fetchone()
        except (apsw.BusyError, apsw.LockedError):
            return None
        finally:
            cursor.close()
        return row[0] if row else None

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the backup handle.

        Finalizes the engine handle even when the last step failed.  The
        finalize result is discarded: any failure was already reported by
        ``step()``.  Never raises; calling it again does nothing.
        """
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close(force=True)

    def __enter__(self) -> "Backup":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        # Attribute may be missing if __init__ never ran
        if getattr(self, "_handle", None) is not None:
            self.close()

    def __copy__(self):
        raise TypeError("Backup objects cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("Backup objects cannot be copied")

    def __reduce_ex__(self, protocol):
        raise TypeError("Backup objects cannot be pickled")

    def __repr__(self) -> str:
        if self._handle is None:
            return f"<Backup {self._src_name!r} -> {self._dest_name!r} (closed)>"
        return (
            f"<Backup {self._src_name!r} -> {self._dest_name!r} "
            f"remaining={self.remaining_pages()} total={self.total_pages()}>"
        )

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def done(self) -> bool:
        """True once a step has returned ``StepStatus.DONE``."""
        return self._done

    @property
    def dest_name(self) -> str:
        return self._dest_name

    @property
    def src_name(self) -> str:
        return self._src_name

    def _live_handle(self) -> apsw.Backup:
        if self._handle is None:
            raise BackupClosedError("Backup has been closed")
        return self._handle

    # ------------------------------------------------------------------
    # Stepping and progress
    # ------------------------------------------------------------------

    def step(self, pages: int = -1) -> StepStatus:
        """Copy up to *pages* source pages to the destination.

        Args:
            pages: Number of pages to copy.  A negative value copies all
                remaining pages; zero copies nothing and only refreshes the
                counters.

        Returns:
            ``StepStatus.OK`` when pages remain, ``StepStatus.DONE`` when
            the copy is complete, ``StepStatus.BUSY`` / ``StepStatus.LOCKED``
            when the engine could not take a lock.  Contention is not retried
            here; the caller decides whether to wait and step again.

        Raises:
            BackupStepError: The engine reported an error.  ``fatal`` is set
                for I/O, out-of-memory and read-only failures, where
                retrying the step cannot succeed.  The backup stays open and
                must still be closed.
            BackupClosedError: The backup has been closed.
        """
        handle = self._live_handle()
        if self._done:
            return StepStatus.DONE

        try:
            finished = handle.step(pages)
        except apsw.BusyError:
            return StepStatus.BUSY
        except apsw.LockedError:
            return StepStatus.LOCKED
        except apsw.Error as e:
            raise self._dest.make_error(e, BackupStepError) from e

        self._stepped = True
        if finished:
            self._done = True
            return StepStatus.DONE
        return StepStatus.OK

    def remaining_pages(self) -> int:
        """Source pages still to copy as of the last step.

        Before the first step this is the source page count read at
        construction.
        """
        handle = self._live_handle()
        if not self._stepped and self._initial_pages is not None:
            return self._initial_pages
        return handle.remaining

    def total_pages(self) -> int:
        """Total source pages as last reported by the engine.

        The value can change between steps while another connection writes
        to the source, so ``remaining / total`` is not guaranteed monotonic.
        """
        handle = self._live_handle()
        if not self._stepped and self._initial_pages is not None:
            return self._initial_pages
        return handle.page_count

    # ------------------------------------------------------------------
    # Raw handle
    # ------------------------------------------------------------------

    def get_handle(self) -> apsw.Backup:
        """Return the underlying ``apsw.Backup`` for advanced use.

        Ownership stays with this object: do not close or finish the
        returned handle.
        """
        return self._live_handle()

    @property
    def handle(self) -> apsw.Backup:
        return self.get_handle()
