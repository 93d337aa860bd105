"""
Shared fixtures for the module loader tests.

Provides:
- A ModuleLoader with fast idle timings
- Recording unit factories
- Fake idle and visibility hosts
"""

import asyncio
from typing import Any, Callable, List, Optional

import pytest

from modloader.config import IdleSettings, LoaderSettings
from modloader.core.module_loader import ModuleLoader


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


# ============================================================================
# Recording units
# ============================================================================

class RecordingUnit:
    """
    Loader function that counts its invocations.

    Optionally sleeps, fails, or waits on an event before returning, and
    records the phases of other units at the moment it starts.
    """

    def __init__(
        self,
        handle: Any = None,
        delay: float = 0.0,
        error: Optional[BaseException] = None,
        gate: Optional[asyncio.Event] = None,
        on_start: Optional[Callable[[], None]] = None,
        journal: Optional[List[str]] = None,
        name: str = "",
    ):
        self.handle = handle if handle is not None else object()
        self.delay = delay
        self.error = error
        self.gate = gate
        self.on_start = on_start
        self.journal = journal
        self.name = name
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.journal is not None:
            self.journal.append(f"start:{self.name}")
        if self.on_start is not None:
            self.on_start()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.journal is not None:
            self.journal.append(f"end:{self.name}")
        if self.error is not None:
            raise self.error
        return self.handle


@pytest.fixture
def make_unit():
    """Factory for RecordingUnit loaders."""
    return RecordingUnit


@pytest.fixture
def fast_settings():
    """Settings with idle delays short enough for tests."""
    return LoaderSettings(
        idle=IdleSettings(timeout_ms=50, initial_delay_ms=1, fallback_delay_ms=1)
    )


@pytest.fixture
def loader(fast_settings):
    """A ModuleLoader without idle or visibility hosts."""
    return ModuleLoader(fast_settings)


# ============================================================================
# Fake hosts
# ============================================================================

class FakeIdleHost:
    """Idle host that runs callbacks on the next loop iteration and records timeouts."""

    def __init__(self):
        self.requests: List[int] = []

    def request_idle_callback(self, callback, timeout_ms):
        self.requests.append(timeout_ms)
        asyncio.get_running_loop().call_soon(callback)


class FakeObservation:
    def __init__(self, host, region):
        self.host = host
        self.region = region
        self.disconnected = False

    def disconnect(self):
        self.disconnected = True


class FakeVisibilityHost:
    """Visibility host whose regions are shown explicitly by the test."""

    def __init__(self, initially_visible=()):
        self.initially_visible = set(initially_visible)
        self.observers = []
        self.margins: List[int] = []

    def observe(self, region, on_visible, root_margin_px):
        self.margins.append(root_margin_px)
        observation = FakeObservation(self, region)
        self.observers.append((region, on_visible, observation))
        if region in self.initially_visible:
            on_visible()
        return observation

    def show(self, region):
        """Report ``region`` as visible to every observer of it."""
        for observed, on_visible, observation in list(self.observers):
            if observed == region:
                on_visible()

    def observation_for(self, region) -> FakeObservation:
        for observed, _, observation in self.observers:
            if observed == region:
                return observation
        raise KeyError(region)


@pytest.fixture
def idle_host():
    return FakeIdleHost()


@pytest.fixture
def visibility_host():
    return FakeVisibilityHost()


@pytest.fixture
def visibility_host_factory():
    """Factory for visibility hosts with regions that start out visible."""
    return FakeVisibilityHost
