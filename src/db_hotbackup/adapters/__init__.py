"""Connection adapters package.

Provides the ``EngineConnection`` Protocol consumed by the backup driver
and ``SQLiteConnection``, its apsw-backed implementation.

Usage:
    from db_hotbackup.adapters import EngineConnection, SQLiteConnection
"""

from db_hotbackup.adapters.base import EngineConnection
from db_hotbackup.adapters.sqlite import SQLiteConnection

__all__ = [
    "EngineConnection",
    "SQLiteConnection",
]
