"""
Unit Registry
Catalog of loadable units with their descriptors and run-state.
"""

import threading
import warnings
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from modloader.exceptions import DuplicateNameWarning, NotFoundError
from modloader.logger import logger
from modloader.schema import LoadPriority, UnitPhase


UnitLoaderFn = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class UnitDescriptor:
    """Identity and contract of one loadable unit."""
    name: str
    loader: UnitLoaderFn
    priority: LoadPriority = LoadPriority.MEDIUM
    dependencies: Tuple[str, ...] = ()
    preload: bool = False
    description: str = ""

    def __post_init__(self):
        if not self.name:
            raise ValueError("Unit name must be a non-empty string")
        if not callable(self.loader):
            raise TypeError(f"Loader of unit '{self.name}' is not callable")
        # Ordered set: keep the first occurrence of every name
        object.__setattr__(self, "dependencies", tuple(dict.fromkeys(self.dependencies)))
        object.__setattr__(self, "priority", LoadPriority(self.priority))


@dataclass
class UnitState:
    """Mutable run-state of a unit. Only the load coordinator writes to it."""
    phase: UnitPhase = UnitPhase.UNLOADED
    handle: Any = None
    load_duration_ms: Optional[float] = None


@dataclass
class RegistryEntry:
    descriptor: UnitDescriptor
    state: UnitState = field(default_factory=UnitState)

    @property
    def name(self) -> str:
        return self.descriptor.name


@dataclass(frozen=True)
class UnitSnapshot:
    """Point-in-time copy of a registry entry."""
    name: str
    priority: LoadPriority
    dependencies: Tuple[str, ...]
    preload: bool
    phase: UnitPhase
    load_duration_ms: Optional[float]


class UnitRegistry:
    """
    Registry of all loadable units.
    Owns exactly one state per registered name, in registration order.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: Dict[str, RegistryEntry] = {}

    def register(self, descriptor: UnitDescriptor) -> RegistryEntry:
        """Store a descriptor with a fresh UNLOADED state, replacing any previous entry."""
        with self._lock:
            replaced = descriptor.name in self._entries
            # Overwriting keeps the original registration position
            entry = RegistryEntry(descriptor=descriptor)
            self._entries[descriptor.name] = entry

        logger.debug(
            f"[ModuleLoader] Registered: {descriptor.name} (priority: {descriptor.priority.name})"
        )
        if replaced:
            # Warn only once the entry is stored, the warning may be raised as an error
            message = f"Unit '{descriptor.name}' is already registered, overwriting it"
            logger.warning(f"[ModuleLoader] {message}")
            warnings.warn(message, DuplicateNameWarning, stacklevel=2)
        return entry

    def get(self, name: str) -> RegistryEntry:
        """Get the entry of a unit, raising NotFoundError for unknown names."""
        with self._lock:
            entry = self._entries.get(name)
        if entry is None:
            raise NotFoundError(name)
        return entry

    def contains(self, name: str) -> bool:
        with self._lock:
            return name in self._entries

    def __contains__(self, name: str) -> bool:
        return self.contains(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def names(self) -> List[str]:
        """Registered names in registration order."""
        with self._lock:
            return list(self._entries)

    def entries(self) -> List[RegistryEntry]:
        with self._lock:
            return list(self._entries.values())

    def is_loaded(self, name: str) -> bool:
        """Check if a unit is registered and loaded."""
        with self._lock:
            entry = self._entries.get(name)
        return entry is not None and entry.state.phase is UnitPhase.LOADED

    def get_handle(self, name: str) -> Any:
        """Get the handle of a loaded unit, or None."""
        with self._lock:
            entry = self._entries.get(name)
        if entry is None or entry.state.phase is not UnitPhase.LOADED:
            return None
        return entry.state.handle

    def snapshot(self) -> Tuple[UnitSnapshot, ...]:
        """Immutable view of every entry, in registration order."""
        with self._lock:
            return tuple(
                UnitSnapshot(
                    name=entry.descriptor.name,
                    priority=entry.descriptor.priority,
                    dependencies=entry.descriptor.dependencies,
                    preload=entry.descriptor.preload,
                    phase=entry.state.phase,
                    load_duration_ms=entry.state.load_duration_ms,
                )
                for entry in self._entries.values()
            )
