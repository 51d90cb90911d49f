"""
Connection configuration for the post-compute data quality checks.

Settings come from two places: a Java-style properties file in the working
directory (``data_quality.conf`` by default) and command-line overrides. A value
given on the command line is never replaced by the file.
"""

import logging
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

DEFAULT_CONFIG_FILE = "data_quality.conf"
DEFAULT_DRIVER = "mysql+pymysql"
DEFAULT_TIMEOUT_SECONDS = 300.0

# Properties file key -> ConnectionConfig field
PROPERTY_KEYS: Dict[str, str] = {
    "jdbc.database": "database",
    "jdbc.port": "port",
    "jdbc.host": "host",
    "jdbc.user": "user",
    "jdbc.password": "password",
    "jdbc.driver": "driver",
    "jdbc.timeout": "timeout",
}

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Database connection parameters, fixed once the CLI and file are merged."""

    model_config = ConfigDict(frozen=True)

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("host", "database", "user")
    # Dialects whose database is a local file; they take no host or credentials
    FILE_DIALECTS: ClassVar[Tuple[str, ...]] = ("sqlite",)

    host: Optional[str] = None
    port: Optional[str] = None
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    driver: str = Field(default=DEFAULT_DRIVER, min_length=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @property
    def scheme(self) -> str:
        """Dialect part of the driver name, e.g. ``mysql`` for ``mysql+pymysql``."""
        return self.driver.split("+", 1)[0]

    @property
    def connection_string(self) -> str:
        """Human readable ``<scheme>://<host>[:<port>]/<database>``; never holds credentials."""
        port = f":{self.port}" if self.port else ""
        return f"{self.scheme}://{self.host or ''}{port}/{self.database}"

    @property
    def is_file_database(self) -> bool:
        return self.scheme in self.FILE_DIALECTS

    @property
    def required_fields(self) -> Tuple[str, ...]:
        """Fields needed to connect; only the database path for file dialects."""
        if self.is_file_database:
            return ("database",)
        return self.REQUIRED_FIELDS

    def missing_fields(self) -> List[str]:
        """Required fields that are unset or blank. The password may be empty."""
        return [name for name in self.required_fields if not getattr(self, name)]

    def port_number(self) -> Optional[int]:
        """
        Port as an integer, or None to use the database's standard port.

        Raises:
            ConfigurationError: If the port is not a positive integer
        """
        if not self.port:
            return None
        port = self.port.strip()
        if not port.isascii() or not port.isdecimal() or int(port) == 0:
            raise ConfigurationError(f"Invalid port: {self.port!r}")
        return int(port)

    def require_complete(self) -> None:
        """
        Ensure every field needed to open a connection is present.

        Raises:
            ConfigurationError: If a required field is missing or the port is invalid
        """
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                f"Missing required connection settings: {', '.join(missing)}"
            )
        if not self.is_file_database:
            self.port_number()


def load_properties(path: Union[str, Path]) -> Dict[str, str]:
    """
    Parse a Java-style properties file.

    Supports ``key = value``, ``key: value`` and ``key value`` lines. Blank lines
    and lines starting with ``#`` or ``!`` are ignored.

    Args:
        path: Path to the properties file

    Returns:
        Mapping of keys to (stripped) values

    Raises:
        ConfigurationError: If the file cannot be read
    """
    properties: Dict[str, str] = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue
        positions = [line.find(sep) for sep in "=: \t" if sep in line]
        if not positions:
            properties[line] = ""
            continue
        split_at = min(positions)
        key = line[:split_at].strip()
        value = line[split_at + 1:].strip()
        # "key = value" splits on the space first
        if value[:1] in ("=", ":"):
            value = value[1:].strip()
        properties[key] = value
    return properties


def resolve_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Union[str, Path] = DEFAULT_CONFIG_FILE,
) -> ConnectionConfig:
    """
    Merge command-line overrides with the properties file.

    Args:
        overrides: Field name -> value from the command line; None means "not given"
        config_path: Properties file to read defaults from

    Returns:
        Immutable connection configuration. Fields set by neither source stay None.

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid
    """
    values = {key: value for key, value in (overrides or {}).items() if value is not None}
    path = Path(config_path)

    if path.exists():
        properties = load_properties(path)
        logger.debug(f"Loaded configuration from {path}")
        for key, field_name in PROPERTY_KEYS.items():
            if field_name not in values and key in properties:
                values[field_name] = properties[key]
    elif any(values.get(name) is None for name in ("host", "port", "user")):
        logger.warning(f"Configuration file does not exist: {path}")

    try:
        return ConnectionConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
