"""
Tests for the Visibility Loader.
"""

import asyncio

import pytest

from modloader.config import VisibilitySettings
from modloader.core.load_coordinator import LoadCoordinator
from modloader.core.unit_registry import UnitDescriptor, UnitRegistry
from modloader.core.visibility_loader import VisibilityLoader
from modloader.exceptions import UnitLoadError


def _setup(units, visibility_host=None, settings=None):
    registry = UnitRegistry()
    for name, loader in units.items():
        registry.register(UnitDescriptor(name=name, loader=loader))
    coordinator = LoadCoordinator(registry)
    return registry, VisibilityLoader(coordinator, settings, visibility_host)


@pytest.mark.asyncio
async def test_loads_when_region_becomes_visible(make_unit, visibility_host):
    unit = make_unit()
    registry, visibility_loader = _setup({"calendar": unit}, visibility_host)

    watch = visibility_loader.load_on_visible("calendar", "calendar-icon")
    await asyncio.sleep(0.01)

    assert not watch.fired
    assert watch.active
    assert unit.calls == 0

    visibility_host.show("calendar-icon")
    assert watch.fired
    await watch.task

    assert registry.is_loaded("calendar")
    assert visibility_host.observation_for("calendar-icon").disconnected
    assert not watch.active


@pytest.mark.asyncio
async def test_triggers_only_once(make_unit, visibility_host):
    unit = make_unit(delay=0.01)
    registry, visibility_loader = _setup({"calendar": unit}, visibility_host)
    watch = visibility_loader.load_on_visible("calendar", "calendar-icon")

    visibility_host.show("calendar-icon")
    first_task = watch.task
    visibility_host.show("calendar-icon")
    await first_task

    assert watch.task is first_task
    assert unit.calls == 1

    visibility_host.show("calendar-icon")
    await asyncio.sleep(0.01)
    assert unit.calls == 1


@pytest.mark.asyncio
async def test_already_visible_region(make_unit, visibility_host_factory):
    host = visibility_host_factory(initially_visible={"lynx-icon"})
    unit = make_unit()
    registry, visibility_loader = _setup({"lynx": unit}, host)

    watch = visibility_loader.load_on_visible("lynx", "lynx-icon")
    await watch.task

    assert watch.fired
    assert not watch.active
    assert host.observation_for("lynx-icon").disconnected
    assert registry.is_loaded("lynx")


@pytest.mark.asyncio
async def test_fallback_loads_immediately(make_unit):
    """Without a visibility host the load starts right away."""
    unit = make_unit()
    registry, visibility_loader = _setup({"netscape": unit})

    watch = visibility_loader.load_on_visible("netscape", object())

    assert watch.fired
    assert watch.task is not None
    await watch.task
    assert registry.is_loaded("netscape")


@pytest.mark.asyncio
async def test_cancelled_watch_never_loads(make_unit, visibility_host):
    unit = make_unit()
    _, visibility_loader = _setup({"emacs": unit}, visibility_host)

    watch = visibility_loader.load_on_visible("emacs", "emacs-icon")
    watch.cancel()
    visibility_host.show("emacs-icon")
    await asyncio.sleep(0.01)

    assert not watch.fired
    assert watch.task is None
    assert unit.calls == 0
    assert visibility_host.observation_for("emacs-icon").disconnected


@pytest.mark.asyncio
async def test_root_margin_is_passed_to_host(make_unit, visibility_host):
    _, visibility_loader = _setup(
        {"emacs": make_unit()}, visibility_host, VisibilitySettings(root_margin_px=50)
    )

    visibility_loader.load_on_visible("emacs", "emacs-icon")

    assert visibility_host.margins == [50]


@pytest.mark.asyncio
async def test_failed_visibility_load_is_reported_on_task(make_unit, visibility_host):
    unit = make_unit(error=RuntimeError("boom"))
    _, visibility_loader = _setup({"emacs": unit}, visibility_host)

    watch = visibility_loader.load_on_visible("emacs", "emacs-icon")
    visibility_host.show("emacs-icon")

    with pytest.raises(UnitLoadError):
        await watch.task
