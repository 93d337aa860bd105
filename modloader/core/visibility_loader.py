"""
Visibility Loader
Load a unit the first time the region it backs becomes visible.
"""

import asyncio
from functools import partial
from typing import Any, Callable, Optional, Protocol

from modloader.config import VisibilitySettings
from modloader.core.load_coordinator import LoadCoordinator
from modloader.logger import logger


class Observation(Protocol):
    def disconnect(self) -> None:
        ...


class VisibilityHost(Protocol):
    """Host facility reporting when a region becomes visible.

    ``on_visible`` must be called on the event loop thread. It may be called
    more than once, and may be called from inside ``observe`` when the region
    is already visible.
    """

    def observe(self, region: Any, on_visible: Callable[[], None], root_margin_px: int) -> Observation:
        ...


class VisibilityWatch:
    """One-shot visibility subscription for a unit."""

    def __init__(self, name: str, region: Any):
        self.name = name
        self.region = region
        self.fired = False
        self.cancelled = False
        self.task: Optional[asyncio.Task] = None
        self._observation: Optional[Observation] = None

    @property
    def active(self) -> bool:
        return self._observation is not None

    def cancel(self):
        """Stop observing. Has no effect on a load that already started."""
        if not self.fired:
            self.cancelled = True
        self._disconnect()

    def _disconnect(self):
        if self._observation is not None:
            self._observation.disconnect()
            self._observation = None

    def __repr__(self) -> str:
        return f"VisibilityWatch(name={self.name!r}, fired={self.fired}, active={self.active})"


class VisibilityLoader:
    """Trigger exactly one load per watch when its region first shows up."""

    def __init__(
        self,
        coordinator: LoadCoordinator,
        settings: Optional[VisibilitySettings] = None,
        visibility_host: Optional[VisibilityHost] = None,
    ):
        self.coordinator = coordinator
        self.settings = settings or VisibilitySettings()
        self.visibility_host = visibility_host

    def load_on_visible(self, name: str, region: Any) -> VisibilityWatch:
        """
        Load ``name`` when ``region`` becomes visible.

        Without a visibility host the load starts right away. Must be called
        from a running event loop.
        """
        watch = VisibilityWatch(name, region)

        if self.visibility_host is None:
            logger.debug(f"[ModuleLoader] No visibility host, loading {name} now")
            self._fire(watch)
            return watch

        def on_visible():
            if watch.fired or watch.cancelled:
                return
            self._fire(watch)
            watch._disconnect()

        observation = self.visibility_host.observe(region, on_visible, self.settings.root_margin_px)
        if watch.fired:
            # Region was visible right away
            observation.disconnect()
        else:
            watch._observation = observation
            logger.debug(f"[ModuleLoader] Observing visibility for: {name}")
        return watch

    def _fire(self, watch: VisibilityWatch):
        watch.fired = True
        watch.task = asyncio.ensure_future(self.coordinator.load(watch.name))
        watch.task.add_done_callback(partial(self._log_outcome, watch.name))

    @staticmethod
    def _log_outcome(name: str, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"[ModuleLoader] Visibility load failed for {name}: {error}")
