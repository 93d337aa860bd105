"""
Unit catalog
Register the units declared in the configuration file.
"""

from typing import Iterable, List, Optional

from modloader.config import LoaderSettings, UnitSettings, load_settings
from modloader.core.loadables import ModuleUnit
from modloader.core.module_loader import ModuleLoader
from modloader.logger import define_log_level, logger


def register_catalog(loader: ModuleLoader, units: Iterable[UnitSettings]) -> List[str]:
    """
    Register every configured unit as a module import.

    Returns:
        Names of the registered units, in registration order
    """
    names = []
    for unit in units:
        loader.register(
            unit.name,
            ModuleUnit(unit.module, factory=unit.factory),
            priority=unit.priority,
            dependencies=unit.dependencies,
            preload=unit.preload,
            description=unit.description,
        )
        names.append(unit.name)

    logger.info(f"[ModuleLoader] All {len(names)} catalog units registered")
    return names


def create_loader(settings: Optional[LoaderSettings] = None, **hosts) -> ModuleLoader:
    """Build a loader from settings (the project configuration by default) with its catalog registered."""
    settings = settings or load_settings()
    define_log_level(settings.logging.print_level, settings.logging.logfile_level)
    loader = ModuleLoader(settings, **hosts)
    register_catalog(loader, settings.units)
    return loader
