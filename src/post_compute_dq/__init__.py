"""
Post-compute data quality checks.

Runs a fixed suite of SQL checks against the output of the raw compute and
reports pass/fail per check, dumping offending rows to tab-separated files.
"""

from .checks import BUILTIN_CHECKS, Check, CheckSuite, default_suite, select_checks
from .config import ConnectionConfig, resolve_config
from .connection import ConnectionProvider
from .errors import (
    ConfigurationError,
    DatabaseConnectionError,
    DQCheckError,
    ExecutionError,
    ResultsFileError,
)
from .runner import CheckOutcome, CheckRunner, SuiteSummary

__version__ = "1.0.0"

__all__ = [
    "BUILTIN_CHECKS",
    "Check",
    "CheckOutcome",
    "CheckRunner",
    "CheckSuite",
    "ConfigurationError",
    "ConnectionConfig",
    "ConnectionProvider",
    "DatabaseConnectionError",
    "DQCheckError",
    "ExecutionError",
    "ResultsFileError",
    "SuiteSummary",
    "default_suite",
    "resolve_config",
    "select_checks",
]
