"""
Query execution engines.

- SqlEngine: runs a check query on an open connection and dumps offending rows
"""

from .sql_engine import QueryResult, SqlEngine

__all__ = ["QueryResult", "SqlEngine"]
