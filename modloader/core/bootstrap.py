"""
Bootstrap
Staged start-up: preload the CRITICAL and HIGH tiers, then hand the lower
tiers to the idle chain one group after the other.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from modloader.config import BootstrapSettings
from modloader.core.idle_loader import IdleChainLoader
from modloader.core.priority_scheduler import PreloadReport, PriorityScheduler
from modloader.core.unit_registry import UnitRegistry
from modloader.logger import logger
from modloader.schema import LoadPriority


PRELOAD_TIERS = (LoadPriority.CRITICAL, LoadPriority.HIGH)
IDLE_TIERS = (LoadPriority.MEDIUM, LoadPriority.LOW, LoadPriority.IDLE)


@dataclass
class BootstrapReport:
    """Outcome of the preload phases plus handles on the scheduled idle groups."""
    preload: List[PreloadReport]
    idle_groups: Dict[LoadPriority, List[str]] = field(default_factory=dict)
    idle_chains: Dict[LoadPriority, asyncio.Task] = field(default_factory=dict)
    preload_duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return all(report.success for report in self.preload)

    async def wait_idle(self) -> Dict[LoadPriority, List[str]]:
        """Wait for every idle group; returns the names each group loaded."""
        results = {}
        for tier, chain in self.idle_chains.items():
            results[tier] = await chain
        return results


class Bootstrapper:
    """
    Start-up sequence for a registered catalog.

    The preload phases are awaited, so the caller can declare the shell
    interactive once ``start()`` returns. Idle groups only start after
    their configured delay and never block the caller.
    """

    def __init__(
        self,
        registry: UnitRegistry,
        scheduler: PriorityScheduler,
        idle_loader: IdleChainLoader,
        settings: Optional[BootstrapSettings] = None,
    ):
        self.registry = registry
        self.scheduler = scheduler
        self.idle_loader = idle_loader
        self.settings = settings or BootstrapSettings()

    def idle_groups(self) -> Dict[LoadPriority, List[str]]:
        """Units of the lower tiers that are not loaded yet, in registration order."""
        groups: Dict[LoadPriority, List[str]] = {}
        for entry in self.registry.entries():
            tier = entry.descriptor.priority
            if tier in IDLE_TIERS and not self.registry.is_loaded(entry.name):
                groups.setdefault(tier, []).append(entry.name)
        return {tier: groups[tier] for tier in IDLE_TIERS if tier in groups}

    def _delay_ms(self, tier: LoadPriority) -> int:
        if tier == LoadPriority.MEDIUM:
            return self.settings.medium_delay_ms
        if tier == LoadPriority.LOW:
            return self.settings.low_delay_ms
        return self.settings.idle_delay_ms

    async def _idle_group(self, tier: LoadPriority, names: List[str], delay_ms: int) -> List[str]:
        if delay_ms:
            await asyncio.sleep(delay_ms / 1000)
        logger.info(f"[ModuleLoader] Starting idle group {tier.name}: {len(names)} units")
        return await self.idle_loader.load_on_idle(names)

    async def start(self) -> BootstrapReport:
        """
        Run the start-up sequence.

        Returns:
            BootstrapReport with the preload results and the idle group tasks
        """
        logger.info("=" * 60)
        logger.info("Starting module loader bootstrap")
        logger.info("=" * 60)

        start_time = time.perf_counter()
        preload = []
        for tier in PRELOAD_TIERS:
            preload.append(await self.scheduler.preload_by_tier(tier))
        preload_duration_ms = (time.perf_counter() - start_time) * 1000

        groups = self.idle_groups()
        chains = {
            tier: asyncio.create_task(self._idle_group(tier, names, self._delay_ms(tier)))
            for tier, names in groups.items()
        }

        report = BootstrapReport(
            preload=preload,
            idle_groups=groups,
            idle_chains=chains,
            preload_duration_ms=preload_duration_ms,
        )
        self._log_report(report)
        return report

    def _log_report(self, report: BootstrapReport):
        logger.info(f"Preload duration: {report.preload_duration_ms:.1f}ms")
        logger.info(f"Status: {'SUCCESS' if report.success else 'PARTIAL SUCCESS'}")
        for preload in report.preload:
            status = "✓" if preload.success else "✗"
            logger.info(f"  {status} {preload.max_tier.name}: {len(preload.loaded)} loaded")
        for tier, names in report.idle_groups.items():
            logger.info(f"  - {tier.name} on idle after {self._delay_ms(tier)}ms: {', '.join(names)}")
        logger.info("=" * 60)
