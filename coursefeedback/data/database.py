"""
DuckDB database interface for the feedback table.

Owns one DuckDB connection per database file and hands each thread its own
cursor, so calls dispatched from worker threads never share a cursor.
Reads go through execute_safe(), which refuses write statements.
"""

import duckdb
import logging
from pathlib import Path
from typing import Optional, Any, Union
from dataclasses import dataclass
import threading
import re

from coursefeedback.config import DUCKDB_PATH


logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


@dataclass
class QueryResult:
    """Result from a database query."""
    columns: list[str]
    rows: list[tuple]
    row_count: int

    def to_dicts(self) -> list[dict]:
        """Convert rows to list of dictionaries."""
        return [dict(zip(self.columns, row)) for row in self.rows]


class FeedbackDatabase:
    """
    Thread-safe DuckDB interface.

    Features:
    - Read-only query execution for lookups (blocks INSERT, UPDATE, DELETE, DROP)
    - One cursor per thread over a single shared connection
    - Parameterized query support
    """

    # SQL patterns that indicate write operations
    WRITE_PATTERNS = re.compile(
        r'\b(INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|TRUNCATE|REPLACE|MERGE)\b',
        re.IGNORECASE
    )

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        """
        Initialize database handle. The connection opens on first use.

        Args:
            db_path: Path to DuckDB file, or ":memory:". Defaults to data/feedback.duckdb
        """
        self.db_path = db_path or DUCKDB_PATH
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._connect_lock = threading.Lock()
        self._local = threading.local()
        self._cursors: list[duckdb.DuckDBPyConnection] = []

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Open the shared connection once."""
        if self._connection is None:
            with self._connect_lock:
                if self._connection is None:
                    if not self.in_memory:
                        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                    self._connection = duckdb.connect(str(self.db_path))
                    logger.debug(f"Opened DuckDB database at {self.db_path}")
        return self._connection

    def _get_cursor(self) -> duckdb.DuckDBPyConnection:
        """Get thread-local cursor on the shared connection."""
        if getattr(self._local, 'cursor', None) is None:
            cursor = self._get_connection().cursor()
            with self._connect_lock:
                self._cursors.append(cursor)
            self._local.cursor = cursor
        return self._local.cursor

    def _is_write_query(self, sql: str) -> bool:
        """Check if SQL contains write operations."""
        return bool(self.WRITE_PATTERNS.search(sql))

    def execute_safe(self, sql: str, params: Optional[tuple] = None) -> QueryResult:
        """
        Execute a read-only SQL query safely.

        Raises:
            PermissionError: If query contains write operations
            duckdb.Error: If query execution fails
        """
        if self._is_write_query(sql):
            raise PermissionError(
                "Write operations (INSERT, UPDATE, DELETE, DROP, etc.) are not allowed "
                "through execute_safe()."
            )
        return self.execute(sql, params)

    def execute(self, sql: str, params: Optional[tuple] = None) -> QueryResult:
        """Execute SQL query (no write blocking)."""
        cursor = self._get_cursor()

        if params:
            result = cursor.execute(sql, params)
        else:
            result = cursor.execute(sql)

        if result.description:
            rows = result.fetchall()
            columns = [desc[0] for desc in result.description]
            return QueryResult(columns=columns, rows=rows, row_count=len(rows))

        return QueryResult(columns=[], rows=[], row_count=0)

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        result = self.execute_safe("SHOW TABLES")
        return [row[0] for row in result.rows]

    def get_row_count(self, table_name: str) -> int:
        """Get row count for a table."""
        if not IDENTIFIER.match(table_name):
            raise ValueError(f"Invalid table name: {table_name}")
        result = self.execute_safe(f"SELECT COUNT(*) FROM {table_name}")
        return result.rows[0][0] if result.rows else 0

    def health_check(self) -> dict[str, Any]:
        """Check database health and return statistics."""
        try:
            stats = {
                "status": "healthy",
                "db_path": str(self.db_path),
                "tables": {},
            }
            for table in self.get_tables():
                stats["tables"][table] = self.get_row_count(table)
            return stats
        except duckdb.Error as e:
            return {
                "status": "error",
                "error": str(e),
                "db_path": str(self.db_path),
            }

    def close(self):
        """Close the database connection."""
        with self._connect_lock:
            for cursor in self._cursors:
                cursor.close()
            self._cursors = []
            if self._connection is not None:
                self._connection.close()
                self._connection = None
        self._local = threading.local()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_feedback_table(db: FeedbackDatabase, table_name: str = "feedback"):
    """Create the feedback table, its insertion sequence and the ordering index."""
    if not IDENTIFIER.match(table_name):
        raise ValueError(f"Invalid table name: {table_name}")

    db.execute(f"CREATE SEQUENCE IF NOT EXISTS {table_name}_seq")
    db.execute(f"""
        CREATE TABLE IF NOT EXISTS {table_name} (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL,
            email VARCHAR,
            course VARCHAR NOT NULL,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            comments VARCHAR NOT NULL,
            submitted_at TIMESTAMP NOT NULL,

            -- Insertion order, used to break submitted_at ties
            seq BIGINT NOT NULL DEFAULT nextval('{table_name}_seq')
        )
    """)
    db.execute(
        f"CREATE INDEX IF NOT EXISTS {table_name}_submitted_at_idx "
        f"ON {table_name} (submitted_at)"
    )


if __name__ == "__main__":
    # Test database connection
    print("Testing feedback database...")

    db = FeedbackDatabase()
    create_feedback_table(db)
    health = db.health_check()

    print(f"Status: {health['status']}")
    print(f"Database: {health['db_path']}")

    if health['status'] == 'healthy':
        print("\nTables:")
        for table, count in health['tables'].items():
            print(f"  {table}: {count:,} rows")
    else:
        print(f"Error: {health.get('error', 'Unknown error')}")
