"""
Telemetry
Loading statistics derived from a live registry snapshot.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

from modloader.core.failure_log import FailureLog
from modloader.core.unit_registry import UnitRegistry
from modloader.schema import UnitPhase


@dataclass(frozen=True)
class LoaderStats:
    """Counts and timings across all registered units."""
    total: int
    loaded: int
    loading: int
    average_load_duration_ms: float
    counts_by_priority: Dict[str, int] = field(default_factory=dict)
    failed: int = 0

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class Telemetry:
    """
    Read-only statistics over a registry.
    Nothing is aggregated ahead of time; every call scans a fresh snapshot.
    """

    def __init__(self, registry: UnitRegistry, failure_log: Optional[FailureLog] = None):
        self.registry = registry
        self.failure_log = failure_log

    def stats(self) -> LoaderStats:
        loaded = 0
        loading = 0
        total_load_time = 0.0
        timed_count = 0
        by_priority: Dict[str, int] = {}

        snapshot = self.registry.snapshot()
        for unit in snapshot:
            if unit.phase is UnitPhase.LOADED:
                loaded += 1
                if unit.load_duration_ms is not None:
                    total_load_time += unit.load_duration_ms
                    timed_count += 1
            elif unit.phase is UnitPhase.LOADING:
                loading += 1

            by_priority[unit.priority.name] = by_priority.get(unit.priority.name, 0) + 1

        failed = 0
        if self.failure_log is not None:
            phases = {unit.name: unit.phase for unit in snapshot}
            failed = sum(
                1 for name in self.failure_log.failed_units()
                if name in phases and phases[name] is not UnitPhase.LOADED
            )

        return LoaderStats(
            total=len(snapshot),
            loaded=loaded,
            loading=loading,
            average_load_duration_ms=total_load_time / timed_count if timed_count else 0.0,
            counts_by_priority=by_priority,
            failed=failed,
        )

    def slowest(self, limit: int = 5) -> List[Tuple[str, float]]:
        """Loaded units with the longest load durations, slowest first."""
        timed = [
            (unit.name, unit.load_duration_ms)
            for unit in self.registry.snapshot()
            if unit.phase is UnitPhase.LOADED and unit.load_duration_ms is not None
        ]
        timed.sort(key=lambda item: item[1], reverse=True)
        return timed[:limit]

    def format_report(self) -> str:
        """Format current statistics as a human-readable report."""
        stats = self.stats()
        lines = [
            "Module Loader Statistics:",
            f"  Total units: {stats.total}",
            f"  Loaded: {stats.loaded}",
            f"  Loading: {stats.loading}",
            f"  Failed: {stats.failed}",
            f"  Average load time: {stats.average_load_duration_ms:.2f}ms",
            "",
            "Units by priority:",
        ]
        for priority, count in stats.counts_by_priority.items():
            lines.append(f"  {priority}: {count}")

        slowest = self.slowest()
        if slowest:
            lines.append("")
            lines.append("Slowest units:")
            for name, duration in slowest:
                lines.append(f"  {name}: {duration:.2f}ms")

        return "\n".join(lines)
