"""Engine connection protocol definition.

Defines the ``EngineConnection`` Protocol the backup driver borrows from.
The driver needs exactly two things from a connection: the engine's raw
connection handle, and a way to turn an engine failure into a structured
error carrying the result code and message.

Usage:
    from db_hotbackup.adapters.base import EngineConnection

    def copy(dest: EngineConnection, src: EngineConnection) -> None:
        with Backup(dest, src) as backup:
            backup.step(-1)
"""

from typing import Protocol, TypeVar

import apsw

from db_hotbackup.errors import BackupError

E = TypeVar("E", bound=BackupError)


class EngineConnection(Protocol):
    """Connection interface consumed by ``Backup``.

    The driver never opens, closes or owns the connection.  Callers keep
    it open for the whole lifetime of any backup that references it.
    """

    def get_handle(self) -> apsw.Connection:
        """Return the engine connection handle.

        The handle is borrowed: callers must not close it.
        """
        ...

    def make_error(self, cause: BaseException, error_type: type[E] = BackupError) -> E:
        """Build a structured error from an engine failure on this connection.

        Args:
            cause: Exception raised by the engine.
            error_type: ``BackupError`` subclass to instantiate.

        Returns:
            Error carrying the engine's result code, extended result code
            and message.
        """
        ...
