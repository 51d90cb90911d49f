"""
DQ Runner - executes post-compute data quality checks.

This module provides the CheckRunner class and the command-line interface. Each
check opens its own connection, runs one query, optionally dumps the returned
rows to a file and yields a CheckOutcome. A failing check never stops the rest
of the suite.
"""

import argparse
import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from .checks import Check, default_suite, load_checks_file, select_checks
from .config import DEFAULT_CONFIG_FILE, resolve_config
from .connection import ConnectionProvider
from .engines.sql_engine import QueryResult, SqlEngine
from .errors import ConfigurationError, DQCheckError

EXIT_OK = 0
EXIT_CHECKS_FAILED = 1
EXIT_USAGE = 2

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class CheckOutcome(BaseModel):
    """Result of running one check."""

    model_config = ConfigDict(frozen=True)

    check_name: str
    passed: bool
    message: Optional[str] = None
    rows_written: Optional[int] = None
    row_count: Optional[int] = None
    execution_time_ms: int = 0


class SuiteSummary(BaseModel):
    """Summary of one run of the suite."""

    run_id: str
    started_ts: str
    ended_ts: str
    total_checks: int
    passed_checks: int
    failed_checks: int
    execution_time_seconds: float


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class CheckRunner:
    """
    Runs checks one at a time against the database.

    Connection, execution and file errors are scoped to the check that hit them
    and reported as failed outcomes.
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        engine: Optional[SqlEngine] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the runner.

        Args:
            provider: Opens a database session per check
            engine: Query engine; a default SqlEngine when omitted
            logger: Optional logger instance
        """
        self.provider = provider
        self.logger = logger or self._setup_logger()
        self.engine = engine or SqlEngine(logger=self.logger)

    def _setup_logger(self) -> logging.Logger:
        """Set up logger for the CheckRunner."""
        logger = logging.getLogger(__name__)
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(LOG_FORMAT)
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(logging.INFO)
        return logger

    @staticmethod
    def failure_message(check: Check, has_rows: bool) -> Optional[str]:
        """Message for an outcome, or None when the expectation holds."""
        if has_rows == check.expect_results:
            return None
        if check.expect_results:
            return f"No items found matching: {check.query}"
        if check.results_file:
            return f"Results written to {check.results_file}"
        return f"Unexpected rows found matching: {check.query}"

    def run(self, check: Check) -> CheckOutcome:
        """
        Run a single check.

        Args:
            check: Check to run

        Returns:
            The outcome; errors are reported in it rather than raised
        """
        started_time = time.time()
        rows_written = None

        try:
            with self.provider.connect() as connection:
                result: QueryResult = self.engine.execute(connection, check.query)
            # Rows are dumped whenever found, whether or not they were expected
            if result.has_rows and check.results_file:
                rows_written = self.engine.write_results_file(check.results_file, result)
        except DQCheckError as e:
            self.logger.error(f"Check {check.name} failed: {e}")
            return CheckOutcome(
                check_name=check.name,
                passed=False,
                message=str(e),
                execution_time_ms=int((time.time() - started_time) * 1000),
            )

        message = self.failure_message(check, result.has_rows)
        if message:
            self.logger.error(f"Check {check.name} failed: {message}")
        else:
            self.logger.info(f"Check {check.name} passed")

        return CheckOutcome(
            check_name=check.name,
            passed=message is None,
            message=message,
            rows_written=rows_written,
            row_count=len(result),
            execution_time_ms=int((time.time() - started_time) * 1000),
        )

    def run_all(self, checks: Sequence[Check]) -> Tuple[List[CheckOutcome], SuiteSummary]:
        """
        Run checks sequentially, in the order given.

        Args:
            checks: Checks to run; repeats are run again

        Returns:
            Tuple of (outcomes, summary)
        """
        run_id = str(uuid.uuid4())[:12]
        started_time = time.time()
        started_ts = _utc_timestamp()

        self.logger.info(f"Starting DQ run {run_id} with {len(checks)} checks")
        outcomes = [self.run(check) for check in checks]

        execution_time = time.time() - started_time
        passed_count = sum(1 for outcome in outcomes if outcome.passed)
        summary = SuiteSummary(
            run_id=run_id,
            started_ts=started_ts,
            ended_ts=_utc_timestamp(),
            total_checks=len(outcomes),
            passed_checks=passed_count,
            failed_checks=len(outcomes) - passed_count,
            execution_time_seconds=execution_time,
        )
        self.logger.info(
            f"DQ run {run_id} completed: {passed_count}/{len(outcomes)} checks passed "
            f"in {execution_time:.2f}s"
        )
        return outcomes, summary


def format_report(outcomes: Sequence[CheckOutcome], summary: SuiteSummary) -> str:
    """Plain-text pass/fail report, one line per outcome plus a total."""
    lines = []
    for outcome in outcomes:
        if outcome.passed:
            lines.append(f"PASS {outcome.check_name}")
        else:
            lines.append(f"FAIL {outcome.check_name}: {outcome.message}")
    lines.append(f"{summary.passed_checks}/{summary.total_checks} checks passed")
    return "\n".join(lines)


def format_json_report(outcomes: Sequence[CheckOutcome], summary: SuiteSummary) -> str:
    output = {
        "run_id": summary.run_id,
        "started_ts": summary.started_ts,
        "ended_ts": summary.ended_ts,
        "execution_time_seconds": summary.execution_time_seconds,
        "summary": {
            "total": summary.total_checks,
            "passed": summary.passed_checks,
            "failed": summary.failed_checks
        },
        "results": [outcome.model_dump() for outcome in outcomes]
    }
    return json.dumps(output, indent=2)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser. ``-h`` is the host, so help is ``--help`` only."""
    parser = argparse.ArgumentParser(
        prog="post-compute-dq",
        description="Data quality checks for the post raw compute data set",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    parser.add_argument("-h", dest="host", help="Database host")
    parser.add_argument("-P", dest="port", help="Database port")
    parser.add_argument("-u", dest="user", help="Database user")
    parser.add_argument("-p", dest="password", help="Database password")
    parser.add_argument("--driver", help="SQLAlchemy driver name (default: mysql+pymysql)")
    parser.add_argument("--timeout", type=float, help="Per-check timeout in seconds")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_FILE})"
    )
    parser.add_argument("--checks-file", help="YAML file with additional checks")
    parser.add_argument("--list", action="store_true", help="List available checks and exit")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "checks",
        nargs="*",
        metavar="CHECK",
        help="Checks to run (default: all, in declaration order)"
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return create_parser().parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for command-line execution."""
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    # stdout carries only the JSON document in --json mode
    log_stream = sys.stderr if args.json else sys.stdout
    logging.basicConfig(level=log_level, format=LOG_FORMAT, stream=log_stream)
    logger = logging.getLogger(__name__)

    try:
        suite = default_suite()
        if args.checks_file:
            suite.extend(load_checks_file(args.checks_file, reserved_names=suite.reserved_names))

        if args.list:
            for check in suite:
                expectation = "rows expected" if check.expect_results else "no rows expected"
                output = f" -> {check.results_file}" if check.results_file else ""
                aliases = f" (alias: {', '.join(check.aliases)})" if check.aliases else ""
                print(f"{check.name}{aliases}: {expectation}{output}")
            return EXIT_OK

        selected = select_checks(suite, args.checks)
        config = resolve_config(
            {
                "host": args.host,
                "port": args.port,
                "user": args.user,
                "password": args.password,
                "driver": args.driver,
                "timeout": args.timeout,
            },
            config_path=args.config,
        )
    except ConfigurationError as e:
        logger.error(f"DQ Runner failed: {e}")
        return EXIT_USAGE

    runner = CheckRunner(ConnectionProvider(config), logger=logger)
    outcomes, summary = runner.run_all(selected)

    if args.json:
        print(format_json_report(outcomes, summary))
    else:
        print(format_report(outcomes, summary))

    return EXIT_OK if summary.failed_checks == 0 else EXIT_CHECKS_FAILED


if __name__ == "__main__":
    sys.exit(main())
