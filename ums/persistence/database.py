"""
Database management and connection handling.
"""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

try:
    import psycopg2
    from psycopg2.extras import RealDictCursor
    PSYCOPG2_AVAILABLE = True
except ImportError:
    PSYCOPG2_AVAILABLE = False

from ..core.exceptions import PersistenceError, ConfigurationError


class DatabaseManager(ABC):
    """Abstract base class for database management.

    A connection is opened for every call and closed on every exit path;
    nothing is held open between calls.
    """

    @property
    @abstractmethod
    def description(self) -> str:
        """Human readable location of the database."""
        pass

    @abstractmethod
    def ping(self) -> None:
        """Open a connection and run a trivial query; raise PersistenceError on failure."""
        pass

    @abstractmethod
    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Execute a query and return results."""
        pass

    @abstractmethod
    def execute_update(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute an update query and return affected rows."""
        pass

    @abstractmethod
    def execute_transaction(self, queries: List[tuple]) -> bool:
        """Execute multiple queries in a transaction."""
        pass

    @abstractmethod
    def create_tables(self, schema: Dict[str, str]) -> None:
        """Create database tables from schema."""
        pass

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        pass


class SQLiteDatabase(DatabaseManager):
    """SQLite database implementation."""

    def __init__(self, database_path: str = "ums.db", timeout: float = 5.0):
        self._database_path = database_path
        self._timeout = timeout

    @property
    def description(self) -> str:
        return f"sqlite:{self._database_path}"

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper cleanup."""
        conn = None
        try:
            conn = sqlite3.connect(self._database_path, timeout=self._timeout)
            conn.row_factory = sqlite3.Row
            yield conn
        except PersistenceError:
            if conn:
                conn.rollback()
            raise
        except Exception as e:
            if conn:
                conn.rollback()
            raise PersistenceError(f"Database error: {str(e)}") from e
        finally:
            if conn:
                conn.close()

    def ping(self) -> None:
        with self._get_connection() as conn:
            conn.execute("SELECT 1").fetchone()

    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Execute a query and return results."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params or ())
            return [dict(row) for row in cursor.fetchall()]

    def execute_update(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute an update query and return affected rows."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params or ())
            conn.commit()
            return cursor.rowcount

    def execute_transaction(self, queries: List[tuple]) -> bool:
        """Execute multiple queries in a transaction."""
        with self._get_connection() as conn:
            try:
                cursor = conn.cursor()
                for query, params in queries:
                    cursor.execute(query, params or ())
                conn.commit()
                return True
            except Exception as e:
                conn.rollback()
                raise PersistenceError(f"Transaction failed: {str(e)}") from e

    def create_tables(self, schema: Dict[str, str]) -> None:
        """Create database tables from schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            for table_schema in schema.values():
                cursor.execute(table_schema)
            conn.commit()

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        query = "SELECT name FROM sqlite_master WHERE type='table' AND name=?"
        results = self.execute_query(query, (table_name,))
        return len(results) > 0


class PostgreSQLDatabase(DatabaseManager):
    """PostgreSQL database implementation.

    Queries are written with SQLite-style ``?`` placeholders and translated
    to ``%s`` before execution.
    """

    def __init__(self, host: str = "localhost", port: int = 5432,
                 database: str = "ums", user: str = "ums", password: str = "",
                 connect_timeout: int = 5):
        if not PSYCOPG2_AVAILABLE:
            raise ConfigurationError("psycopg2 is required for PostgreSQL support")

        self._host = host
        self._port = port
        self._database = database
        self._user = user
        self._password = password
        self._connect_timeout = connect_timeout

    @property
    def description(self) -> str:
        return f"postgresql://{self._user}@{self._host}:{self._port}/{self._database}"

    def _get_connection_string(self) -> str:
        """Get PostgreSQL connection string."""
        return (f"host={self._host} port={self._port} dbname={self._database} "
                f"user={self._user} password={self._password} "
                f"connect_timeout={self._connect_timeout}")

    @staticmethod
    def _adapt(query: str) -> str:
        return query.replace("?", "%s")

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper cleanup."""
        conn = None
        try:
            conn = psycopg2.connect(self._get_connection_string())
            yield conn
        except PersistenceError:
            if conn:
                conn.rollback()
            raise
        except Exception as e:
            if conn:
                conn.rollback()
            raise PersistenceError(f"Database error: {str(e)}") from e
        finally:
            if conn:
                conn.close()

    def ping(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.fetchone()

    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Execute a query and return results."""
        with self._get_connection() as conn:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            cursor.execute(self._adapt(query), params or ())
            return [dict(row) for row in cursor.fetchall()]

    def execute_update(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute an update query and return affected rows."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(self._adapt(query), params or ())
            conn.commit()
            return cursor.rowcount

    def execute_transaction(self, queries: List[tuple]) -> bool:
        """Execute multiple queries in a transaction."""
        with self._get_connection() as conn:
            try:
                cursor = conn.cursor()
                for query, params in queries:
                    cursor.execute(self._adapt(query), params or ())
                conn.commit()
                return True
            except Exception as e:
                conn.rollback()
                raise PersistenceError(f"Transaction failed: {str(e)}") from e

    def create_tables(self, schema: Dict[str, str]) -> None:
        """Create database tables from schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            for table_schema in schema.values():
                cursor.execute(table_schema)
            conn.commit()

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        query = "SELECT table_name FROM information_schema.tables WHERE table_name = ?"
        results = self.execute_query(query, (table_name.lower(),))
        return len(results) > 0


class DatabaseFactory:
    """Factory for creating database instances."""

    @staticmethod
    def create_database(database_type: str, **kwargs) -> DatabaseManager:
        """Create a database instance based on type."""
        try:
            if database_type.lower() == "sqlite":
                return SQLiteDatabase(**kwargs)
            elif database_type.lower() in ("postgresql", "postgres"):
                return PostgreSQLDatabase(**kwargs)
        except TypeError as e:
            raise ConfigurationError(f"Invalid {database_type} settings: {e}") from e
        raise ConfigurationError(f"Unsupported database type: {database_type}")
