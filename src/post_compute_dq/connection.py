"""
Database sessions for data quality checks.

Each check opens its own short-lived SQLAlchemy connection; there is no pool.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from .config import ConnectionConfig
from .errors import DatabaseConnectionError


def timeout_connect_args(scheme: str, timeout: float) -> Dict[str, Any]:
    """
    Driver options that bound how long a check may block on the server.

    Args:
        scheme: Dialect name (``mysql``, ``postgresql``, ``sqlite``, ...)
        timeout: Timeout in seconds

    Returns:
        ``connect_args`` for ``create_engine``; empty for unknown dialects
    """
    seconds = max(1, int(timeout))
    if scheme in ("mysql", "mariadb"):
        return {"connect_timeout": seconds, "read_timeout": seconds, "write_timeout": seconds}
    if scheme == "postgresql":
        return {
            "connect_timeout": seconds,
            "options": f"-c statement_timeout={seconds * 1000}",
        }
    if scheme == "sqlite":
        return {"timeout": timeout}
    return {}


class ConnectionProvider:
    """
    Opens database sessions described by a ConnectionConfig.

    The provider holds no open resources between calls to ``connect``.
    """

    def __init__(self, config: ConnectionConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize the provider.

        Args:
            config: Merged connection configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    def build_url(self) -> URL:
        """
        Build the SQLAlchemy URL, including credentials.

        Raises:
            ConfigurationError: If a required field is missing or the port is invalid
        """
        self.config.require_complete()
        if self.config.is_file_database:
            return URL.create(drivername=self.config.driver, database=self.config.database)
        return URL.create(
            drivername=self.config.driver,
            username=self.config.user,
            password=self.config.password or None,
            host=self.config.host,
            port=self.config.port_number(),
            database=self.config.database,
        )

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """
        Open a session and close it on every exit path.

        Yields:
            An open SQLAlchemy connection

        Raises:
            ConfigurationError: If the configuration is incomplete
            DatabaseConnectionError: If the driver is unavailable, the server is
                unreachable or authentication is rejected
        """
        url = self.build_url()
        self.logger.info(f"Connection string = {self.config.connection_string}")

        try:
            engine = create_engine(
                url,
                poolclass=NullPool,
                connect_args=timeout_connect_args(self.config.scheme, self.config.timeout),
            )
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseConnectionError(f"Database driver unavailable: {e}") from e

        try:
            try:
                connection = engine.connect()
            except SQLAlchemyError as e:
                raise DatabaseConnectionError(
                    f"Cannot connect to {self.config.connection_string}: {e}"
                ) from e
            try:
                yield connection
            finally:
                connection.close()
        finally:
            engine.dispose()
