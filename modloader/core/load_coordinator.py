"""
Load Coordinator
Drive each unit through UNLOADED -> LOADING -> LOADED exactly once, sharing
one in-flight task between every concurrent request for the same unit.
"""

import asyncio
import time
from functools import partial
from typing import Any, Dict, List, NamedTuple, Optional

from modloader.core.dependency_resolver import DependencyResolver
from modloader.core.failure_log import FailureLog
from modloader.core.unit_registry import RegistryEntry, UnitRegistry
from modloader.exceptions import (
    DependencyLoadError,
    InvalidStateError,
    ModuleLoaderError,
    UnitLoadError,
)
from modloader.logger import logger
from modloader.schema import UnitPhase


class _InFlight(NamedTuple):
    entry: RegistryEntry
    task: asyncio.Task


class LoadCoordinator:
    """
    Single entry point for loading units.

    The first request for an unloaded unit starts one task that loads its
    dependencies and then runs its loader. Every request arriving while that
    task runs awaits the same task, so all of them see the same handle or
    the same exception. Callers being cancelled never cancel the load itself.
    """

    def __init__(
        self,
        registry: UnitRegistry,
        resolver: Optional[DependencyResolver] = None,
        failure_log: Optional[FailureLog] = None,
    ):
        self.registry = registry
        self.resolver = resolver or DependencyResolver(registry)
        self.failure_log = failure_log or FailureLog()
        self._in_flight: Dict[str, _InFlight] = {}

    async def load(self, name: str) -> Any:
        """
        Load a unit and its dependencies.

        Args:
            name: Registered unit name

        Returns:
            The unit handle

        Raises:
            NotFoundError: the unit is not registered
            CyclicDependencyError: the unit's dependency graph has a cycle
            DependencyLoadError: one of its dependencies failed
            UnitLoadError: its own loader failed
        """
        entry = self.registry.get(name)

        while True:
            if entry.state.phase is UnitPhase.LOADED:
                return entry.state.handle

            in_flight = self._in_flight.get(name)
            if in_flight is None:
                self.resolver.check_acyclic(name)
                task = asyncio.ensure_future(self._load_unit(entry))
                self._in_flight[name] = _InFlight(entry, task)
                task.add_done_callback(partial(self._settle, entry))
                break
            if in_flight.entry is entry:
                logger.debug(f"[ModuleLoader] {name} already loading, joining in-flight load")
                task = in_flight.task
                break

            # The unit was registered again while an older load was running;
            # let that load settle, then load the current registration
            logger.debug(f"[ModuleLoader] {name} was replaced, waiting for superseded load")
            await asyncio.wait({in_flight.task})
            entry = self.registry.get(name)

        return await asyncio.shield(task)

    async def _load_unit(self, entry: RegistryEntry) -> Any:
        name = entry.name
        state = entry.state

        pending = self.resolver.pending_dependencies(name)
        while pending:
            logger.debug(f"[ModuleLoader] Loading dependencies for {name}: {pending}")
            for dep in pending:
                try:
                    await self.load(dep)
                except ModuleLoaderError as exc:
                    logger.error(f"[ModuleLoader] Dependency {dep} of {name} failed: {exc}")
                    raise DependencyLoadError(name, dep) from exc
            # A dependency may have been unloaded while later ones were loading
            pending = self.resolver.pending_dependencies(name)

        state.phase = UnitPhase.LOADING
        logger.debug(f"[ModuleLoader] Loading: {name}...")
        start_time = time.perf_counter()

        try:
            handle = await entry.descriptor.loader()
        except BaseException as exc:
            state.phase = UnitPhase.UNLOADED
            if not isinstance(exc, Exception):
                raise
            logger.error(f"[ModuleLoader] Failed to load {name}: {exc!r}")
            raise UnitLoadError(name, str(exc) or type(exc).__name__) from exc

        load_duration_ms = (time.perf_counter() - start_time) * 1000
        state.handle = handle
        state.load_duration_ms = load_duration_ms
        state.phase = UnitPhase.LOADED

        logger.info(f"[ModuleLoader] Loaded: {name} ({load_duration_ms:.2f}ms)")
        return handle

    def _settle(self, entry: RegistryEntry, task: asyncio.Task):
        """Forget a finished in-flight task and book its outcome."""
        name = entry.name
        in_flight = self._in_flight.get(name)
        if in_flight is not None and in_flight.task is task:
            del self._in_flight[name]

        if task.cancelled():
            return

        # Retrieving the exception here keeps asyncio quiet when every
        # waiter was cancelled before the load settled
        error = task.exception()
        if self.registry.get(name) is not entry:
            # Outcome of a superseded registration
            return
        if error is None:
            self.failure_log.clear(name)
        else:
            self.failure_log.record(name, error)

    def unload(self, name: str) -> bool:
        """
        Unload a loaded unit and drop its handle.

        If the handle has a ``cleanup()`` method it is called first.

        Returns:
            True if the unit was loaded, False if it was already unloaded

        Raises:
            NotFoundError: the unit is not registered
            InvalidStateError: the unit is currently loading
        """
        entry = self.registry.get(name)
        state = entry.state

        if state.phase is UnitPhase.UNLOADED:
            logger.debug(f"[ModuleLoader] {name} is not loaded, nothing to unload")
            return False

        if state.phase is UnitPhase.LOADING:
            raise InvalidStateError(name, state.phase, "unload")

        cleanup = getattr(state.handle, "cleanup", None)
        if callable(cleanup):
            try:
                cleanup()
            except Exception as e:
                logger.error(f"[ModuleLoader] Error cleaning up {name}: {e}")

        state.phase = UnitPhase.UNLOADED
        state.handle = None
        logger.info(f"[ModuleLoader] Unloaded: {name}")
        return True

    def is_in_flight(self, name: str) -> bool:
        """Check if a load of the unit has started and not settled yet."""
        return name in self._in_flight

    def in_flight(self) -> List[str]:
        return list(self._in_flight)
