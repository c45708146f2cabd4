"""Step loop that drives a ``Backup`` to completion.

``Backup`` itself never retries, sleeps or logs.  This module is the
caller-side loop: it steps in fixed increments, reports progress after
every step, and decides what to do about contention.

Usage:
    from db_hotbackup.backup.runner import backup_file, run_backup

    # Between two open connections
    result = run_backup(dest, src, pages_per_step=100, busy_retries=10)

    # Between two files
    result = backup_file("data/app.db", "backups/app.db", pages_per_step=100)
    if not result.success:
        print(result.error)
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path

import apsw

from db_hotbackup.adapters.base import EngineConnection
from db_hotbackup.adapters.sqlite import SQLiteConnection
from db_hotbackup.backup.driver import MAIN_SCHEMA, Backup, StepStatus
from db_hotbackup.backup.models import BackupProgress, BackupResult
from db_hotbackup.errors import BackupError, BackupInitError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BackupProgress], None]


def run_backup(
    dest: EngineConnection,
    src: EngineConnection,
    *,
    dest_name: str = MAIN_SCHEMA,
    src_name: str = MAIN_SCHEMA,
    pages_per_step: int = -1,
    busy_retries: int = 0,
    busy_sleep: float = 0.25,
    progress: ProgressCallback | None = None,
) -> BackupResult:
    """Copy *src_name* on *src* into *dest_name* on *dest*.

    Steps until the engine reports ``DONE``.  When a step returns ``BUSY``
    or ``LOCKED`` the loop sleeps *busy_sleep* seconds and steps again, at
    most *busy_retries* times in a row; the counter resets after any step
    that makes progress.

    Args:
        dest: Destination connection.
        src: Source connection.
        dest_name: Destination schema name.
        src_name: Source schema name.
        pages_per_step: Pages per step; negative copies everything in one
            step.  Must not be zero.
        busy_retries: Consecutive contention retries before giving up.
        busy_sleep: Seconds to wait before retrying after contention.
        progress: Optional callback invoked after every step.

    Returns:
        ``BackupResult``.  Engine errors are reported through ``error`` and
        ``error_code`` rather than raised.

    Raises:
        ValueError: *pages_per_step* is zero, *busy_retries* is negative, or
            a schema name is ``None`` or empty.
        TypeError: A schema name is not a ``str``.
    """
    if pages_per_step == 0:
        raise ValueError("pages_per_step must be non-zero (negative copies all pages)")
    if busy_retries < 0:
        raise ValueError("busy_retries must be >= 0")

    result = BackupResult(success=False)
    started = time.monotonic()
    consecutive_busy = 0

    try:
        with Backup(dest, dest_name, src, src_name) as backup:
            while True:
                status = backup.step(pages_per_step)
                result.steps += 1
                result.status = status
                result.remaining_pages = backup.remaining_pages()
                result.total_pages = backup.total_pages()

                if progress is not None:
                    progress(
                        BackupProgress(
                            status=status,
                            remaining=result.remaining_pages,
                            total=result.total_pages,
                            step=result.steps,
                        )
                    )

                if status is StepStatus.DONE:
                    result.success = True
                    break

                if status.transient:
                    result.busy_count += 1
                    consecutive_busy += 1
                    if consecutive_busy > busy_retries:
                        result.error = (
                            f"Source or destination still {status.name.lower()} "
                            f"after {busy_retries} retries"
                        )
                        result.error_code = int(status)
                        logger.warning(result.error)
                        break
                    logger.warning(
                        f"Backup step {result.steps} returned {status.name}; "
                        f"retry {consecutive_busy}/{busy_retries} in {busy_sleep}s"
                    )
                    time.sleep(busy_sleep)
                    continue

                consecutive_busy = 0
                logger.debug(
                    f"Backup step {result.steps}: "
                    f"{result.remaining_pages}/{result.total_pages} pages remaining"
                )
    except BackupError as e:
        result.error = str(e)
        result.error_code = e.code
        logger.error(f"Backup failed: {e}")

    result.elapsed_seconds = time.monotonic() - started
    if result.success:
        logger.info(
            f"Backup complete: {result.total_pages} pages in {result.steps} steps "
            f"({result.elapsed_seconds:.2f}s)"
        )
    return result


def backup_file(
    src_path: str | Path,
    dest_path: str | Path,
    *,
    attach: dict[str, str | Path] | None = None,
    **kwargs,
) -> BackupResult:
    """Back up the SQLite file at *src_path* into *dest_path*.

    Creates the destination's parent directory if needed.  Both connections
    are opened for the duration of the copy and closed afterwards.  Keyword
    arguments are forwarded to ``run_backup()``.

    Args:
        src_path: Source database file.
        dest_path: Destination database file.
        attach: Alias to database file, attached to the source connection
            before the copy so that ``src_name`` can name an attached
            schema.

    Raises:
        FileNotFoundError: *src_path* or an attached file does not exist.
        BackupInitError: The engine refused to attach a file.

    Example:
        result = backup_file("data/app.db", "backups/archive.db",
                             attach={"archive": "data/archive.db"},
                             src_name="archive")
    """
    src_path = Path(src_path)
    dest_path = Path(dest_path)
    if not src_path.exists():
        raise FileNotFoundError(f"Source database not found: {src_path}")
    attach = {alias: Path(path) for alias, path in (attach or {}).items()}
    for alias, path in attach.items():
        # ATTACH would silently create a missing file
        if not path.exists():
            raise FileNotFoundError(f"Attached database '{alias}' not found: {path}")
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    with SQLiteConnection(src_path) as src, SQLiteConnection(dest_path) as dest:
        for alias, path in attach.items():
            try:
                src.attach(path, alias)
            except apsw.Error as e:
                raise src.make_error(e, BackupInitError) from e
        result = run_backup(dest, src, **kwargs)

    result.source = str(src_path)
    result.destination = str(dest_path)
    return result
