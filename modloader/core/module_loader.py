"""
Module Loader
The scheduler's public surface: register units, load them on demand,
preload them by tier, or defer them to idle time and visibility.
"""

from typing import Any, Iterable, List, Optional, Sequence, Union

from modloader.config import LoaderSettings
from modloader.core.bootstrap import Bootstrapper, BootstrapReport
from modloader.core.dependency_resolver import DependencyResolver
from modloader.core.failure_log import FailureLog
from modloader.core.idle_loader import IdleChainLoader, IdleHost
from modloader.core.load_coordinator import LoadCoordinator
from modloader.core.loadables import as_loader_fn
from modloader.core.priority_scheduler import PreloadReport, PriorityScheduler
from modloader.core.telemetry import LoaderStats, Telemetry
from modloader.core.unit_registry import RegistryEntry, UnitDescriptor, UnitRegistry
from modloader.core.visibility_loader import VisibilityHost, VisibilityLoader, VisibilityWatch
from modloader.schema import LoadPriority, parse_priority


class ModuleLoader:
    """
    Dependency-aware, priority-tiered loader of deferred units.

    Build one at application start-up and hand it to every collaborator
    that registers or consumes units.

    Parameters
    ----------
    settings : LoaderSettings
        Idle/visibility tuning and the default preload tier.
    idle_host : IdleHost
        Idle-callback facility, fixed event loop delays are used without one.
    visibility_host : VisibilityHost
        Visibility facility, visibility loads fire immediately without one.
    """

    def __init__(
        self,
        settings: Optional[LoaderSettings] = None,
        idle_host: Optional[IdleHost] = None,
        visibility_host: Optional[VisibilityHost] = None,
    ):
        self.settings = settings or LoaderSettings()
        self.registry = UnitRegistry()
        self.resolver = DependencyResolver(self.registry)
        self.failure_log = FailureLog()
        self.coordinator = LoadCoordinator(self.registry, self.resolver, self.failure_log)
        self.scheduler = PriorityScheduler(self.registry, self.coordinator)
        self.idle_loader = IdleChainLoader(
            self.registry, self.coordinator, self.settings.idle, idle_host
        )
        self.visibility_loader = VisibilityLoader(
            self.coordinator, self.settings.visibility, visibility_host
        )
        self.bootstrapper = Bootstrapper(
            self.registry, self.scheduler, self.idle_loader, self.settings.bootstrap
        )
        self.telemetry = Telemetry(self.registry, self.failure_log)

    def register(
        self,
        name: str,
        loader,
        *,
        priority: Union[LoadPriority, str, int] = LoadPriority.MEDIUM,
        dependencies: Sequence[str] = (),
        preload: bool = False,
        description: str = "",
    ) -> RegistryEntry:
        """
        Register a unit for deferred loading.

        Args:
            name: Unique unit name, registering it again replaces the unit
            loader: Coroutine function or LoadableUnit producing the handle
            priority: Load tier
            dependencies: Units that must be loaded first
            preload: Include the unit in preload_by_tier()
            description: Human readable description
        """
        descriptor = UnitDescriptor(
            name=name,
            loader=as_loader_fn(loader),
            priority=parse_priority(priority),
            dependencies=tuple(dependencies),
            preload=preload,
            description=description,
        )
        return self.registry.register(descriptor)

    async def load(self, name: str) -> Any:
        return await self.coordinator.load(name)

    def unload(self, name: str) -> bool:
        return self.coordinator.unload(name)

    async def preload_by_tier(
        self, max_tier: Union[LoadPriority, str, int, None] = None
    ) -> PreloadReport:
        if max_tier is None:
            max_tier = self.settings.default_max_tier
        return await self.scheduler.preload_by_tier(parse_priority(max_tier))

    async def bootstrap(self) -> BootstrapReport:
        """
        Preload the CRITICAL and HIGH tiers, then schedule the MEDIUM, LOW and
        IDLE tiers as idle groups after their configured delays.
        """
        return await self.bootstrapper.start()

    def load_on_idle(self, names: Iterable[str]):
        return self.idle_loader.load_on_idle(names)

    def load_on_visible(self, name: str, region: Any) -> VisibilityWatch:
        return self.visibility_loader.load_on_visible(name, region)

    def stats(self) -> LoaderStats:
        return self.telemetry.stats()

    def is_loaded(self, name: str) -> bool:
        return self.registry.is_loaded(name)

    def get_module(self, name: str) -> Any:
        """Handle of a loaded unit, None if it is not loaded."""
        return self.registry.get_handle(name)

    def load_plan(self, names: Optional[List[str]] = None) -> List[List[str]]:
        return self.resolver.load_plan(names)

    def format_load_plan(self, names: Optional[List[str]] = None) -> str:
        """Format the load plan of some units as a human-readable string."""
        plan = self.load_plan(names)
        unit_count = sum(len(level) for level in plan)

        lines = [
            f"Load Plan for {unit_count} units:",
            "",
            "Loading sequence:",
        ]

        for i, level in enumerate(plan, 1):
            lines.append(f"  Level {i}:")
            for name in level:
                descriptor = self.registry.get(name).descriptor
                deps = ", ".join(descriptor.dependencies) if descriptor.dependencies else "none"
                lines.append(f"    - {name} ({descriptor.priority.name}, deps: {deps})")

        return "\n".join(lines)

    def __repr__(self) -> str:
        stats = self.stats()
        return f"ModuleLoader(units={stats.total}, loaded={stats.loaded}, loading={stats.loading})"
