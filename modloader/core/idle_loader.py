"""
Idle Chain Loader
Load units one at a time in the background, whenever the host is idle.
"""

import asyncio
from typing import Any, Callable, Iterable, List, Optional, Protocol

from modloader.config import IdleSettings
from modloader.core.load_coordinator import LoadCoordinator
from modloader.core.unit_registry import UnitRegistry
from modloader.logger import logger


class IdleHost(Protocol):
    """Host facility that runs a callback once it is idle.

    The callback must run on the event loop thread, at the latest after
    ``timeout_ms`` milliseconds.
    """

    def request_idle_callback(self, callback: Callable[[], None], timeout_ms: int) -> Any:
        ...


class IdleChainLoader:
    """
    Chain unit loads through idle slots.

    Each unit takes one idle slot; the next slot is requested only after the
    previous unit settled, successfully or not. Without an idle host, fixed
    delays on the event loop stand in for idle slots.
    """

    def __init__(
        self,
        registry: UnitRegistry,
        coordinator: LoadCoordinator,
        settings: Optional[IdleSettings] = None,
        idle_host: Optional[IdleHost] = None,
    ):
        self.registry = registry
        self.coordinator = coordinator
        self.settings = settings or IdleSettings()
        self.idle_host = idle_host

    def load_on_idle(self, names: Iterable[str]) -> asyncio.Future:
        """
        Schedule units for idle loading and return immediately.

        Must be called from a running event loop.

        Args:
            names: Units to load, in order

        Returns:
            Future resolving to the names this chain loaded once it is done
        """
        names = list(names)
        loop = asyncio.get_running_loop()
        finished = loop.create_future()
        loaded: List[str] = []

        def load_next(index: int):
            # Units that need no load do not consume an idle slot
            while index < len(names) and not self._needs_load(names[index]):
                logger.debug(f"[ModuleLoader] Idle load skipped: {names[index]}")
                index += 1

            if index >= len(names):
                if not finished.done():
                    finished.set_result(loaded)
                return

            name = names[index]
            task = loop.create_task(self.coordinator.load(name))
            task.add_done_callback(lambda t: on_settled(name, index, t))

        def on_settled(name: str, index: int, task: asyncio.Task):
            if task.cancelled():
                logger.warning(f"[ModuleLoader] Idle load cancelled for {name}")
            elif task.exception() is not None:
                logger.warning(f"[ModuleLoader] Idle load failed for {name}: {task.exception()}")
            else:
                loaded.append(name)
            self._schedule(loop, lambda: load_next(index + 1), self.settings.fallback_delay_ms)

        self._schedule(loop, lambda: load_next(0), self.settings.initial_delay_ms)
        logger.info(f"[ModuleLoader] Scheduled {len(names)} units for idle loading")
        return finished

    def _needs_load(self, name: str) -> bool:
        if not self.registry.contains(name):
            return False
        return not (self.registry.is_loaded(name) or self.coordinator.is_in_flight(name))

    def _schedule(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], None], fallback_delay_ms: int):
        if self.idle_host is not None:
            self.idle_host.request_idle_callback(callback, self.settings.timeout_ms)
        else:
            loop.call_later(fallback_delay_ms / 1000, callback)
