"""
Tests for the Idle Chain Loader.
"""

import asyncio

import pytest

from modloader.config import IdleSettings
from modloader.core.idle_loader import IdleChainLoader
from modloader.core.load_coordinator import LoadCoordinator
from modloader.core.unit_registry import UnitDescriptor, UnitRegistry


FAST = IdleSettings(timeout_ms=50, initial_delay_ms=1, fallback_delay_ms=1)


def _setup(units, idle_host=None, settings=FAST):
    registry = UnitRegistry()
    for name, loader in units.items():
        registry.register(UnitDescriptor(name=name, loader=loader))
    coordinator = LoadCoordinator(registry)
    return registry, coordinator, IdleChainLoader(registry, coordinator, settings, idle_host)


@pytest.mark.asyncio
async def test_returns_before_loading(make_unit):
    """Scheduling never loads anything synchronously."""
    unit = make_unit()
    registry, _, idle_loader = _setup({"timemanager": unit})

    finished = idle_loader.load_on_idle(["timemanager"])

    assert unit.calls == 0
    assert not finished.done()
    assert await asyncio.wait_for(finished, timeout=2) == ["timemanager"]
    assert registry.is_loaded("timemanager")


@pytest.mark.asyncio
async def test_loads_one_at_a_time_in_order(make_unit):
    journal = []
    units = {
        name: make_unit(journal=journal, name=name, delay=0.005)
        for name in ("timemanager", "appmanager", "calendar")
    }
    _, _, idle_loader = _setup(units)

    loaded = await asyncio.wait_for(
        idle_loader.load_on_idle(["timemanager", "appmanager", "calendar"]), timeout=2
    )

    assert loaded == ["timemanager", "appmanager", "calendar"]
    assert journal == [
        "start:timemanager", "end:timemanager",
        "start:appmanager", "end:appmanager",
        "start:calendar", "end:calendar",
    ]


@pytest.mark.asyncio
async def test_failure_does_not_stop_chain(make_unit):
    broken = make_unit(error=RuntimeError("boom"))
    healthy = make_unit()
    registry, _, idle_loader = _setup({"broken": broken, "healthy": healthy})

    loaded = await asyncio.wait_for(idle_loader.load_on_idle(["broken", "healthy"]), timeout=2)

    assert loaded == ["healthy"]
    assert broken.calls == 1
    assert not registry.is_loaded("broken")
    assert registry.is_loaded("healthy")


@pytest.mark.asyncio
async def test_skipped_units_do_not_use_idle_slots(make_unit, idle_host):
    """Loaded, in-flight and unknown units are skipped without requesting a slot."""
    gate = asyncio.Event()
    already = make_unit()
    busy = make_unit(gate=gate)
    fresh = make_unit()
    _, coordinator, idle_loader = _setup(
        {"already": already, "busy": busy, "fresh": fresh}, idle_host=idle_host
    )
    await coordinator.load("already")
    busy_task = asyncio.create_task(coordinator.load("busy"))
    await asyncio.sleep(0)

    loaded = await asyncio.wait_for(
        idle_loader.load_on_idle(["already", "unknown", "busy", "fresh"]), timeout=2
    )

    assert loaded == ["fresh"]
    assert already.calls == 1
    assert fresh.calls == 1
    # One slot before the first load, one after it settled
    assert idle_host.requests == [50, 50]

    gate.set()
    await busy_task
    assert busy.calls == 1


@pytest.mark.asyncio
async def test_idle_host_receives_timeout(make_unit, idle_host):
    units = {"a": make_unit(), "b": make_unit()}
    _, _, idle_loader = _setup(
        units, idle_host=idle_host, settings=IdleSettings(timeout_ms=1234)
    )

    await asyncio.wait_for(idle_loader.load_on_idle(["a", "b"]), timeout=2)

    assert idle_host.requests == [1234, 1234, 1234]


@pytest.mark.asyncio
async def test_fallback_uses_initial_delay(make_unit):
    """Without an idle host the first load waits for the initial delay."""
    unit = make_unit()
    _, _, idle_loader = _setup(
        {"a": unit}, settings=IdleSettings(initial_delay_ms=200, fallback_delay_ms=1)
    )

    finished = idle_loader.load_on_idle(["a"])
    await asyncio.sleep(0.02)
    assert unit.calls == 0

    await asyncio.wait_for(finished, timeout=2)
    assert unit.calls == 1


@pytest.mark.asyncio
async def test_empty_chain_finishes(make_unit):
    _, _, idle_loader = _setup({})

    assert await asyncio.wait_for(idle_loader.load_on_idle([]), timeout=2) == []
