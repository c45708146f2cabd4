"""SQLite connection adapter backed by apsw.

Provides ``SQLiteConnection``, an implementation of the ``EngineConnection``
protocol over ``apsw.Connection``.  Besides the two operations the backup
driver needs, it offers just enough statement execution for callers and
tests to create, fill and query databases.

Usage:
    from db_hotbackup.adapters.sqlite import SQLiteConnection

    with SQLiteConnection("data/app.db") as conn:
        conn.execute("CREATE TABLE t (a INTEGER)")
        rows = conn.query("SELECT a FROM t")
"""

from pathlib import Path
from typing import Any, TypeVar

import apsw

from db_hotbackup.errors import BackupError

E = TypeVar("E", bound=BackupError)

DEFAULT_OPEN_FLAGS = apsw.SQLITE_OPEN_READWRITE | apsw.SQLITE_OPEN_CREATE | apsw.SQLITE_OPEN_URI

# Primary codes for apsw exception classes, used when an exception instance
# carries no ``result`` attribute (e.g. one raised from a Python VFS)
_EXCEPTION_CODES: dict[type, int] = {
    apsw.IOError: apsw.SQLITE_IOERR,
    apsw.NoMemError: apsw.SQLITE_NOMEM,
    apsw.ReadOnlyError: apsw.SQLITE_READONLY,
    apsw.FullError: apsw.SQLITE_FULL,
    apsw.CorruptError: apsw.SQLITE_CORRUPT,
    apsw.BusyError: apsw.SQLITE_BUSY,
    apsw.LockedError: apsw.SQLITE_LOCKED,
    apsw.SQLError: apsw.SQLITE_ERROR,
}


def quote_identifier(name: str) -> str:
    """Quote an SQL identifier such as a schema name or attach alias."""
    return '"' + name.replace('"', '""') + '"'


def _result_code(cause: BaseException, attribute: str) -> int | None:
    value = getattr(cause, attribute, None)
    if isinstance(value, int) and value >= 0:
        return value
    return None


class SQLiteConnection:
    """apsw-backed implementation of the ``EngineConnection`` protocol.

    Every statement runs on a cursor that is closed before the method
    returns.  apsw refuses to start a backup into a connection that still
    has open cursors, so no cursor ever outlives a call.

    Args:
        filename: Database path, ``":memory:"``, or a ``file:`` URI.
        flags: apsw open flags.  Defaults to read/write, create, URI.
        vfs: Name of a registered VFS to open the database with.
        busy_timeout_ms: Optional busy timeout installed after opening.

    Example:
        conn = SQLiteConnection("app.db", busy_timeout_ms=500)
        conn.execute("INSERT INTO t VALUES (?)", (1,))
        conn.close()
    """

    def __init__(
        self,
        filename: str | Path,
        flags: int = DEFAULT_OPEN_FLAGS,
        vfs: str | None = None,
        busy_timeout_ms: int | None = None,
    ) -> None:
        self._filename = str(filename)
        self._conn: apsw.Connection = apsw.Connection(self._filename, flags=flags, vfs=vfs)
        self._closed = False
        if busy_timeout_ms is not None:
            self._conn.set_busy_timeout(busy_timeout_ms)

    @classmethod
    def wrap(cls, connection: apsw.Connection) -> "SQLiteConnection":
        """Adopt an already-open ``apsw.Connection``.

        The wrapper takes over closing: ``close()`` closes *connection*.
        """
        self = cls.__new__(cls)
        self._filename = connection.filename
        self._conn = connection
        self._closed = False
        return self

    def __enter__(self) -> "SQLiteConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<SQLiteConnection {self._filename!r} ({state})>"

    @property
    def filename(self) -> str:
        """Filename the connection was opened with."""
        return self._filename

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # EngineConnection protocol
    # ------------------------------------------------------------------

    def get_handle(self) -> apsw.Connection:
        """Return the underlying ``apsw.Connection`` (borrowed)."""
        return self._conn

    def make_error(self, cause: BaseException, error_type: type[E] = BackupError) -> E:
        """Build a structured error from an apsw exception.

        apsw attaches ``result`` and ``extendedresult`` to errors that come
        from SQLite.  When they are missing the primary code is derived from
        the exception class.  Errors raised by apsw itself (for example
        ``ConnectionClosedError``) map to no code at all.
        """
        code = _result_code(cause, "result")
        if code is None:
            for exc_type, exc_code in _EXCEPTION_CODES.items():
                if isinstance(cause, exc_type):
                    code = exc_code
                    break
        extended = _result_code(cause, "extendedresult")
        if extended is None:
            extended = code
        message = str(cause) or type(cause).__name__
        return error_type(message, code=code, extended_code=extended)

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    def execute(self, sql: str, bindings: Any = None) -> None:
        """Execute one or more statements, discarding any rows.

        Args:
            sql: SQL text.  Several ``;``-separated statements are allowed
                when *bindings* is ``None``.
            bindings: Optional sequence or dict of parameter values.
        """
        cursor = self._conn.cursor()
        try:
            for _ in cursor.execute(sql, bindings):
                pass
        finally:
            cursor.close()

    def query(self, sql: str, bindings: Any = None) -> list[tuple]:
        """Run a query and return all rows as tuples."""
        cursor = self._conn.cursor()
        try:
            return [tuple(row) for row in cursor.execute(sql, bindings)]
        finally:
            cursor.close()

    def query_value(self, sql: str, bindings: Any = None) -> Any:
        """Run a query and return the first column of the first row.

        Returns ``None`` when the query produces no rows.
        """
        rows = self.query(sql, bindings)
        return rows[0][0] if rows else None

    def page_count(self, schema: str = "main") -> int:
        """Number of pages in *schema* (``PRAGMA <schema>.page_count``)."""
        return self.query_value(f"PRAGMA {quote_identifier(schema)}.page_count")

    def attach(self, path: str | Path, alias: str) -> None:
        """Attach another database file under *alias*."""
        self.execute(f"ATTACH DATABASE ? AS {quote_identifier(alias)}", (str(path),))

    def close(self) -> None:
        """Close the connection.  Safe to call more than once."""
        if not self._closed:
            self._conn.close()
            self._closed = True
