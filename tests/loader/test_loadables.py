"""
Tests for loadable unit adapters.
"""

import json

import pytest

from modloader.core.loadables import LoadableUnit, ModuleUnit, as_loader_fn


class _Widget:
    def __init__(self):
        self.loads = 0

    async def load(self):
        self.loads += 1
        return "widget"


@pytest.mark.asyncio
async def test_coroutine_function_is_used_as_is():
    async def build():
        return 42

    assert as_loader_fn(build) is build
    assert await as_loader_fn(build)() == 42


@pytest.mark.asyncio
async def test_loadable_unit_uses_its_load_method():
    widget = _Widget()

    assert isinstance(widget, LoadableUnit)
    assert await as_loader_fn(widget)() == "widget"
    assert widget.loads == 1


@pytest.mark.asyncio
async def test_plain_callable_is_wrapped():
    assert await as_loader_fn(lambda: "plain")() == "plain"


@pytest.mark.asyncio
async def test_callable_returning_awaitable_is_awaited():
    async def build():
        return "awaited"

    assert await as_loader_fn(lambda: build())() == "awaited"


def test_non_callable_is_rejected():
    with pytest.raises(TypeError):
        as_loader_fn(42)


@pytest.mark.asyncio
async def test_module_unit_returns_module():
    handle = await ModuleUnit("json").load()

    assert handle is json


@pytest.mark.asyncio
async def test_module_unit_calls_factory():
    handle = await ModuleUnit("json", factory="JSONDecoder").load()

    assert isinstance(handle, json.JSONDecoder)


@pytest.mark.asyncio
async def test_module_unit_missing_factory():
    with pytest.raises(AttributeError):
        await ModuleUnit("json", factory="no_such_factory").load()


@pytest.mark.asyncio
async def test_module_unit_missing_module():
    with pytest.raises(ModuleNotFoundError):
        await ModuleUnit("desktop.features.no_such_feature").load()


def test_module_unit_requires_path():
    with pytest.raises(ValueError):
        ModuleUnit("")
