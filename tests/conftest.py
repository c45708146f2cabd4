"""Shared fixtures: file-backed SQLite databases opened through apsw."""

import threading
from pathlib import Path

import apsw
import pytest

from db_hotbackup.adapters.sqlite import SQLiteConnection


def create_small_source(path: Path) -> None:
    """Create a database with table t(a INTEGER) holding rows 1, 2, 3."""
    with SQLiteConnection(path) as conn:
        conn.execute("CREATE TABLE t (a INTEGER)")
        conn.execute("INSERT INTO t (a) VALUES (1), (2), (3)")


def create_large_source(path: Path, rows: int = 300) -> None:
    """Create a database with small pages and at least 100 of them."""
    with SQLiteConnection(path) as conn:
        conn.execute("PRAGMA page_size = 1024")
        conn.execute("CREATE TABLE big (id INTEGER PRIMARY KEY, payload BLOB)")
        conn.execute(
            "WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n WHERE i < ?) "
            "INSERT INTO big (id, payload) SELECT i, randomblob(800) FROM n",
            (rows,),
        )


@pytest.fixture
def source_path(tmp_path: Path) -> Path:
    path = tmp_path / "source.db"
    create_small_source(path)
    return path


@pytest.fixture
def large_source_path(tmp_path: Path) -> Path:
    path = tmp_path / "large.db"
    create_large_source(path)
    return path


@pytest.fixture
def source(source_path: Path):
    conn = SQLiteConnection(source_path)
    yield conn
    conn.close()


@pytest.fixture
def large_source(large_source_path: Path):
    conn = SQLiteConnection(large_source_path)
    yield conn
    conn.close()


@pytest.fixture
def dest_path(tmp_path: Path) -> Path:
    return tmp_path / "dest.db"


@pytest.fixture
def dest(dest_path: Path):
    conn = SQLiteConnection(dest_path)
    yield conn
    conn.close()


class ExclusiveLockHolder:
    """Holds an exclusive transaction on a database from another thread.

    Usage:
        with ExclusiveLockHolder(path):
            ...  # other connections get SQLITE_BUSY here
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._locked = threading.Event()
        self._release = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self.error: BaseException | None = None

    def _run(self) -> None:
        try:
            conn = SQLiteConnection(self._path)
            try:
                conn.execute("BEGIN EXCLUSIVE")
                self._locked.set()
                self._release.wait(timeout=30)
                conn.execute("COMMIT")
            finally:
                conn.close()
        except apsw.Error as e:
            self.error = e
            self._locked.set()

    def __enter__(self) -> "ExclusiveLockHolder":
        self._thread.start()
        assert self._locked.wait(timeout=10), "lock holder thread did not start"
        assert self.error is None, f"lock holder failed: {self.error}"
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._release.set()
        self._thread.join(timeout=10)


class FailingWritesVFS(apsw.VFS):
    """VFS over the default one whose writes fail once ``fail_writes`` is set."""

    def __init__(self, name: str = "failing-writes") -> None:
        self.fail_writes = False
        super().__init__(name, "")

    def xOpen(self, name, flags):
        return FailingWritesFile(self, name, flags)


class FailingWritesFile(apsw.VFSFile):
    def __init__(self, vfs: FailingWritesVFS, name, flags) -> None:
        self._vfs = vfs
        super().__init__("", name, flags)

    def xWrite(self, data, offset):
        if self._vfs.fail_writes:
            error = apsw.IOError("simulated write failure")
            error.result = apsw.SQLITE_IOERR
            error.extendedresult = apsw.SQLITE_IOERR_WRITE
            raise error
        super().xWrite(data, offset)


@pytest.fixture
def failing_vfs():
    vfs = FailingWritesVFS()
    yield vfs
    vfs.fail_writes = False
    vfs.unregister()
