"""
Loadable units
Anything that can produce a unit handle: coroutine functions, objects with an
async ``load()`` method, and Python modules imported on demand.
"""

import asyncio
import importlib
import inspect
from typing import Any, Optional, Protocol, runtime_checkable

from modloader.core.unit_registry import UnitLoaderFn


@runtime_checkable
class LoadableUnit(Protocol):
    """A unit that knows how to build its own handle."""

    async def load(self) -> Any:
        ...


def as_loader_fn(target) -> UnitLoaderFn:
    """
    Normalize a loadable into a zero-argument coroutine function.

    Args:
        target: A LoadableUnit, a coroutine function, or a callable returning
            an awaitable or a plain value

    Returns:
        Coroutine function producing the unit handle
    """
    if inspect.iscoroutinefunction(target):
        return target
    if isinstance(target, LoadableUnit) and not inspect.isroutine(target):
        return target.load
    if not callable(target):
        raise TypeError(f"{target!r} is neither callable nor a LoadableUnit")

    async def _call():
        result = target()
        if inspect.isawaitable(result):
            result = await result
        return result

    return _call


class ModuleUnit:
    """
    Import a Python module when first loaded.

    The import runs in the default executor so a slow import never blocks
    the event loop. The handle is ``factory()`` when a factory attribute is
    named, else the module's ``get_instance()`` or ``create_instance()`` when
    present, else the module itself.
    """

    def __init__(self, module_path: str, factory: Optional[str] = None):
        if not module_path:
            raise ValueError("No module path specified")
        self.module_path = module_path
        self.factory = factory

    async def load(self) -> Any:
        loop = asyncio.get_running_loop()
        module = await loop.run_in_executor(None, importlib.import_module, self.module_path)

        if self.factory:
            builder = getattr(module, self.factory, None)
            if builder is None:
                raise AttributeError(
                    f"Module '{self.module_path}' has no factory '{self.factory}'"
                )
        elif hasattr(module, "get_instance"):
            builder = module.get_instance
        elif hasattr(module, "create_instance"):
            builder = module.create_instance
        else:
            return module

        instance = builder()
        if inspect.isawaitable(instance):
            instance = await instance
        return instance

    def __repr__(self) -> str:
        return f"ModuleUnit({self.module_path!r})"
