"""
modloader
=========

Asynchronous, dependency-aware, priority-tiered loader for deferred units.
"""

from modloader.core.module_loader import ModuleLoader
from modloader.exceptions import (
    CyclicDependencyError,
    DependencyLoadError,
    DuplicateNameWarning,
    InvalidStateError,
    ModuleLoaderError,
    NotFoundError,
    UnitLoadError,
)
from modloader.schema import LoadPriority, UnitPhase

__all__ = [
    "ModuleLoader",
    "LoadPriority",
    "UnitPhase",
    "ModuleLoaderError",
    "NotFoundError",
    "DependencyLoadError",
    "UnitLoadError",
    "InvalidStateError",
    "CyclicDependencyError",
    "DuplicateNameWarning",
]
