"""PostgreSQL query helper using psycopg2."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import psycopg2
from psycopg2 import Error as PostgreSQLError
from psycopg2.extras import RealDictCursor

from ..exceptions import ConnectivityError, DbError

logger = logging.getLogger(__name__)


def quote_ident(*parts: str) -> str:
    """Quote a (schema-qualified) identifier, e.g. ``"public"."users"``."""
    return ".".join('"' + part.replace('"', '""') + '"' for part in parts)


class PostgresClient:
    """Runs parameterized queries and returns rows as dictionaries."""

    def __init__(
        self,
        host: str,
        database: str,
        username: str,
        password: str,
        port: int = 5432,
        sslmode: Optional[str] = None,
        connection_timeout: int = 10
    ):
        """
        Initialize the client. The connection is opened lazily.

        Args:
            host: Database host
            database: Database name
            username: Database user
            password: Database password
            port: Database port
            sslmode: Optional libpq sslmode
            connection_timeout: Connect timeout in seconds
        """
        self.host = host
        self.database = database
        self.username = username
        self.password = password
        self.port = port
        self.sslmode = sslmode
        self.connection_timeout = connection_timeout
        self._connection = None

    def _create_connection_string(self) -> str:
        conn_params = [
            f"host={self.host}",
            f"port={self.port}",
            f"dbname={self.database}",
            f"user={self.username}",
            f"password={self.password}",
            f"connect_timeout={self.connection_timeout}",
        ]
        if self.sslmode:
            conn_params.append(f"sslmode={self.sslmode}")
        return " ".join(conn_params)

    def connect(self):
        """Open the connection if needed and return it."""
        if self._connection is None or self._connection.closed:
            try:
                self._connection = psycopg2.connect(self._create_connection_string())
                self._connection.autocommit = True
                logger.info(f"Connected to PostgreSQL database: {self.host}:{self.port}/{self.database}")
            except PostgreSQLError as e:
                raise ConnectivityError(
                    f"Failed to connect to database {self.host}:{self.port}/{self.database}: {e}"
                ) from e
        return self._connection

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """
        Run a query and fetch all rows.

        Raises:
            ConnectivityError: If the database cannot be reached
            DbError: If the query fails
        """
        connection = self.connect()
        try:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(sql, params)
                if cursor.description is None:
                    return []
                return [dict(row) for row in cursor.fetchall()]
        except PostgreSQLError as e:
            raise DbError(f"Query failed: {e}", details={"sql": sql}) from e

    def scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Run a query and return the first column of the first row."""
        rows = self.query(sql, params)
        if not rows:
            return None
        return next(iter(rows[0].values()))

    def close(self) -> None:
        if self._connection is not None and not self._connection.closed:
            self._connection.close()
        self._connection = None
