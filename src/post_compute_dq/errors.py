"""
Exceptions raised while configuring and running data quality checks.

Every error that a single check can hit derives from DQCheckError so the
check runner can turn it into a failing outcome instead of aborting the suite.
"""


class DQCheckError(Exception):
    """Base class for data quality check errors."""
    pass


class ConfigurationError(DQCheckError):
    """Missing or invalid connection settings, unknown check names, bad checks file."""
    pass


class DatabaseConnectionError(DQCheckError):
    """The database session could not be opened (network, driver or authentication)."""
    pass


class ExecutionError(DQCheckError):
    """The server rejected or failed while running a check query."""
    pass


class ResultsFileError(DQCheckError):
    """The offending rows could not be written to the results file."""
    pass
