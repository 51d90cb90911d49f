"""
SQL Engine - executes check queries and writes their result sets.

Queries are sent to the driver verbatim (no parameter binding) and never
committed. Result sets are fully materialized in memory.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ExecutionError, ResultsFileError

NULL_MARKER = "\\N"


class QueryResult:
    """Column names and rows returned by a check query."""

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]):
        self.columns = list(columns)
        self.rows = [tuple(row) for row in rows]

    @property
    def has_rows(self) -> bool:
        return bool(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


def render_value(value: Any) -> str:
    """Render a column value as text; NULL becomes ``\\N``."""
    if value is None:
        return NULL_MARKER
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class SqlEngine:
    """
    Executes read-only SQL checks on a SQLAlchemy connection.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the SQL Engine.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def execute(self, connection: Connection, sql: str) -> QueryResult:
        """
        Execute a query and collect every row.

        Args:
            connection: Open database connection
            sql: Parameterless SQL statement

        Returns:
            The materialized result set

        Raises:
            ExecutionError: If the statement is malformed, fails on the server
                or times out
        """
        self.logger.info(f"Executing sql : {sql}")
        try:
            # Sent verbatim: "%" must not be read as a DBAPI placeholder
            result = connection.exec_driver_sql(sql, execution_options={"no_parameters": True})
            if not result.returns_rows:
                result.close()
                return QueryResult([], [])
            columns = list(result.keys())
            rows = result.fetchall()
        except SQLAlchemyError as e:
            raise ExecutionError(f"Query failed: {sql}: {e}") from e
        self.logger.debug(f"Query returned {len(rows)} rows")
        return QueryResult(columns, rows)

    def write_results_file(self, path: Union[str, Path], result: QueryResult) -> int:
        """
        Write a result set to a tab-separated file, replacing any previous content.

        One line per row, columns in result order, no header.

        Args:
            path: Output file path
            result: Rows to write

        Returns:
            Number of lines written

        Raises:
            ResultsFileError: If the file cannot be written
        """
        self.logger.info(f"Writing file : {path}")
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                for row in result.rows:
                    f.write("\t".join(render_value(value) for value in row))
                    f.write("\n")
        except OSError as e:
            raise ResultsFileError(f"Cannot write results to {path}: {e}") from e
        return len(result.rows)
