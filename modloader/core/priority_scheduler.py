"""
Priority Scheduler
Bulk preload of units tier by tier, CRITICAL first.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List

from modloader.core.load_coordinator import LoadCoordinator
from modloader.core.unit_registry import UnitRegistry
from modloader.exceptions import ModuleLoaderError
from modloader.logger import logger
from modloader.schema import LoadPriority


@dataclass
class PreloadReport:
    """Outcome of one bulk preload pass."""
    max_tier: LoadPriority
    requested: List[str]
    loaded: List[str] = field(default_factory=list)
    failed: Dict[str, ModuleLoaderError] = field(default_factory=dict)
    total_duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed


class PriorityScheduler:
    """
    Preload every preloadable unit up to a tier.

    Units load one after the other in ascending tier order, so a CRITICAL
    unit and its whole dependency subtree are resolved before the first
    HIGH unit is even requested. One failing unit never stops the others.
    """

    def __init__(self, registry: UnitRegistry, coordinator: LoadCoordinator):
        self.registry = registry
        self.coordinator = coordinator

    def preload_candidates(self, max_tier: LoadPriority = LoadPriority.HIGH) -> List[str]:
        """Names selected for preloading, in load order."""
        candidates = [
            entry.descriptor for entry in self.registry.entries()
            if entry.descriptor.priority <= max_tier
            and (entry.descriptor.preload or entry.descriptor.priority == LoadPriority.CRITICAL)
        ]
        # sorted() is stable: ties keep registration order
        return [d.name for d in sorted(candidates, key=lambda d: d.priority)]

    async def preload_by_tier(self, max_tier: LoadPriority = LoadPriority.HIGH) -> PreloadReport:
        """
        Load preloadable units with ``priority <= max_tier`` sequentially.

        CRITICAL units are always included; other tiers only when marked
        ``preload``.
        """
        max_tier = LoadPriority(max_tier)
        to_preload = self.preload_candidates(max_tier)
        report = PreloadReport(max_tier=max_tier, requested=to_preload)

        logger.info(
            f"[ModuleLoader] Preloading {len(to_preload)} units up to tier {max_tier.name}"
        )
        start_time = time.perf_counter()

        for name in to_preload:
            try:
                await self.coordinator.load(name)
            except ModuleLoaderError as error:
                logger.warning(f"[ModuleLoader] Preload failed for {name}: {error}")
                report.failed[name] = error
            else:
                report.loaded.append(name)

        report.total_duration_ms = (time.perf_counter() - start_time) * 1000
        self._log_preload_report(report)
        return report

    def _log_preload_report(self, report: PreloadReport):
        status = "SUCCESS" if report.success else "PARTIAL SUCCESS"
        logger.info(
            f"[ModuleLoader] Preload {status}: {len(report.loaded)}/{len(report.requested)} "
            f"units in {report.total_duration_ms:.1f}ms"
        )
        for name, error in report.failed.items():
            logger.error(f"  ✗ {name}: {error}")
