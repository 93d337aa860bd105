"""
Core module for the asynchronous unit-loading scheduler.
"""

from modloader.core.bootstrap import Bootstrapper, BootstrapReport
from modloader.core.dependency_resolver import DependencyResolver
from modloader.core.failure_log import FailureLog, LoadFailure
from modloader.core.idle_loader import IdleChainLoader, IdleHost
from modloader.core.load_coordinator import LoadCoordinator
from modloader.core.loadables import LoadableUnit, ModuleUnit
from modloader.core.module_loader import ModuleLoader
from modloader.core.priority_scheduler import PreloadReport, PriorityScheduler
from modloader.core.telemetry import LoaderStats, Telemetry
from modloader.core.unit_registry import RegistryEntry, UnitDescriptor, UnitRegistry, UnitState
from modloader.core.visibility_loader import VisibilityHost, VisibilityLoader, VisibilityWatch

__all__ = [
    "Bootstrapper",
    "BootstrapReport",
    "DependencyResolver",
    "FailureLog",
    "LoadFailure",
    "IdleChainLoader",
    "IdleHost",
    "LoadCoordinator",
    "LoadableUnit",
    "ModuleUnit",
    "ModuleLoader",
    "PreloadReport",
    "PriorityScheduler",
    "LoaderStats",
    "Telemetry",
    "RegistryEntry",
    "UnitDescriptor",
    "UnitRegistry",
    "UnitState",
    "VisibilityHost",
    "VisibilityLoader",
    "VisibilityWatch",
]
