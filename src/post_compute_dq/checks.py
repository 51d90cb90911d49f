"""
Check definitions and the ordered check suite.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict

from .compliance_checker import check_compliance
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Check(BaseModel):
    """A named data quality query and whether returned rows mean success."""

    model_config = ConfigDict(frozen=True)

    name: str
    query: str
    results_file: Optional[str] = None
    expect_results: bool = False
    # Other names the check can be requested by
    aliases: Tuple[str, ...] = ()


BUILTIN_CHECKS: List[Check] = [
    # Quick db connection test
    Check(
        name="connectivity",
        query="show tables",
        expect_results=True,
        aliases=("testCheck",),
    ),
    Check(
        name="start_before_end",
        query="select * from feature where seq_start > seq_end",
        results_file="seq_start_greater_than_seq_end.txt",
        aliases=("testStartBeforeEnd",),
    ),
    Check(
        name="hstart_before_hend",
        query="select * from feature where hstart > hend",
        results_file="hstart_greater_than_hend.txt",
        aliases=("testHStartBeforeHEnd",),
    ),
]


class CheckSuite:
    """
    Ordered collection of checks with unique names.

    A check may also be looked up by any of its aliases; names and aliases share
    one namespace.
    """

    def __init__(self, checks: Iterable[Check] = ()):
        self._checks: Dict[str, Check] = {}
        self._aliases: Dict[str, str] = {}
        self.extend(checks)

    def add(self, check: Check) -> None:
        for name in (check.name,) + tuple(check.aliases):
            if name in self:
                raise ConfigurationError(f"Duplicate check name: {name}")
        self._checks[check.name] = check
        for alias in check.aliases:
            self._aliases[alias] = check.name

    def extend(self, checks: Iterable[Check]) -> None:
        for check in checks:
            self.add(check)

    @property
    def names(self) -> List[str]:
        return list(self._checks)

    @property
    def reserved_names(self) -> List[str]:
        """Every check name and alias in use."""
        return self.names + list(self._aliases)

    def get(self, name: str) -> Optional[Check]:
        return self._checks.get(self._aliases.get(name, name))

    def __contains__(self, name: object) -> bool:
        return name in self._checks or name in self._aliases

    def __iter__(self) -> Iterator[Check]:
        return iter(self._checks.values())

    def __len__(self) -> int:
        return len(self._checks)


def default_suite() -> CheckSuite:
    """Suite holding the built-in post-compute checks."""
    return CheckSuite(BUILTIN_CHECKS)


def select_checks(suite: CheckSuite, names: Sequence[str] = ()) -> List[Check]:
    """
    Choose which checks to run.

    Args:
        suite: Registered checks
        names: Requested check names; empty means every check in declaration order.
            Names are run in the order given and may repeat.

    Returns:
        Checks to run, in run order

    Raises:
        ConfigurationError: If any requested name is not registered
    """
    if not names:
        return list(suite)

    unknown = [name for name in names if name not in suite]
    if unknown:
        raise ConfigurationError(
            f"Unknown check name(s): {', '.join(dict.fromkeys(unknown))}. "
            f"Available checks: {', '.join(suite.names)}"
        )
    return [suite.get(name) for name in names]


def load_checks_file(path: Union[str, Path], reserved_names: Iterable[str] = ()) -> List[Check]:
    """
    Load additional checks from a YAML file after a compliance check.

    Args:
        path: YAML file with a top-level ``checks`` list
        reserved_names: Names already registered, which the file may not reuse

    Returns:
        Checks in file order

    Raises:
        ConfigurationError: If the file is missing, not valid YAML or not compliant
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            spec = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Checks file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML file {path}: {e}") from e

    errors = check_compliance(spec, reserved_names=reserved_names)
    if errors:
        details = "\n".join(f"  - {error}" for error in errors)
        raise ConfigurationError(f"Checks file {path} failed compliance check:\n{details}")

    checks = [Check(**entry) for entry in spec["checks"]]
    logger.info(f"Loaded {len(checks)} checks from {path}")
    return checks
