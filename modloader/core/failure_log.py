"""
Failure Log
Keep track of the most recent load failure of every unit.
"""

import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class LoadFailure:
    """Information about a unit's most recent failed load."""
    unit_name: str
    error: BaseException
    traceback: str
    timestamp: datetime
    attempts: int = 1


class FailureLog:
    """
    Failure bookkeeping for reports.
    A failed unit stays UNLOADED in the registry; this log remembers why,
    and how many consecutive attempts failed, until the unit loads.
    """

    def __init__(self):
        self._failures: Dict[str, LoadFailure] = {}

    def record(self, unit_name: str, error: BaseException) -> LoadFailure:
        """Record a failed attempt, counting consecutive failures."""
        previous = self._failures.get(unit_name)
        failure = LoadFailure(
            unit_name=unit_name,
            error=error,
            traceback="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            timestamp=datetime.now(),
            attempts=previous.attempts + 1 if previous else 1,
        )
        self._failures[unit_name] = failure
        return failure

    def get(self, unit_name: str) -> Optional[LoadFailure]:
        return self._failures.get(unit_name)

    def get_all(self) -> Dict[str, LoadFailure]:
        return self._failures.copy()

    def clear(self, unit_name: str):
        self._failures.pop(unit_name, None)

    def failed_units(self) -> List[str]:
        return list(self._failures)

    def has_failures(self) -> bool:
        return bool(self._failures)

    def format_report(self) -> str:
        """Format all failures as a human-readable report."""
        if not self._failures:
            return "No unit load failures recorded."

        lines = ["Unit Load Failures:", ""]

        for name, failure in self._failures.items():
            lines.append(f"Unit: {name}")
            lines.append(f"  Error: {failure.error}")
            if failure.error.__cause__ is not None:
                lines.append(f"  Cause: {failure.error.__cause__!r}")
            lines.append(f"  Time: {failure.timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
            lines.append(f"  Attempts: {failure.attempts}")
            lines.append("")

        return "\n".join(lines)
