"""
Persistence module: relational, flat-file and disabled backends.
"""

from .database import DatabaseManager, SQLiteDatabase, PostgreSQLDatabase, DatabaseFactory
from .backends import PersistenceBackend, RelationalBackend, DisabledBackend, LoadedData, build_snapshot
from .flat_file import FlatFileBackend
from .manager import PersistenceManager

__all__ = [
    "DatabaseManager",
    "SQLiteDatabase",
    "PostgreSQLDatabase",
    "DatabaseFactory",
    "PersistenceBackend",
    "RelationalBackend",
    "FlatFileBackend",
    "DisabledBackend",
    "PersistenceManager",
    "LoadedData",
    "build_snapshot",
]
