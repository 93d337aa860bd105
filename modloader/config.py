import tomllib
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from modloader.schema import LoadPriority, parse_priority


def get_project_root() -> Path:
    """Get the project root directory"""
    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = get_project_root()


class IdleSettings(BaseModel):
    timeout_ms: int = Field(
        2000, ge=0, description="Upper bound the idle host may wait before running the next load"
    )
    initial_delay_ms: int = Field(
        1000, ge=0, description="Delay before the first load when no idle host is available"
    )
    fallback_delay_ms: int = Field(
        100, ge=0, description="Delay between loads when no idle host is available"
    )


class VisibilitySettings(BaseModel):
    root_margin_px: int = Field(
        100, description="Margin around the viewport that already counts as visible"
    )


class BootstrapSettings(BaseModel):
    medium_delay_ms: int = Field(
        0, ge=0, description="Delay before the MEDIUM tier starts loading on idle"
    )
    low_delay_ms: int = Field(
        2000, ge=0, description="Delay before the LOW tier starts loading on idle"
    )
    idle_delay_ms: int = Field(
        5000, ge=0, description="Delay before the IDLE tier starts loading on idle"
    )


class LoggingSettings(BaseModel):
    print_level: str = Field("INFO", description="Level of the stderr sink")
    logfile_level: str = Field("DEBUG", description="Level of the log file sink")


class UnitSettings(BaseModel):
    """A unit declared in the configuration file"""

    name: str = Field(..., description="Unique unit name")
    module: str = Field(..., description="Dotted path of the Python module to import")
    priority: LoadPriority = Field(LoadPriority.MEDIUM, description="Load tier")
    dependencies: List[str] = Field(default_factory=list, description="Units that must load first")
    preload: bool = Field(False, description="Load during the bulk preload pass")
    factory: Optional[str] = Field(
        None, description="Attribute of the module called to build the handle"
    )
    description: str = Field("", description="Human readable description")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value):
        return parse_priority(value)


class LoaderSettings(BaseModel):
    default_max_tier: LoadPriority = Field(
        LoadPriority.HIGH, description="Highest tier loaded by the bulk preload pass"
    )
    idle: IdleSettings = Field(default_factory=IdleSettings)
    visibility: VisibilitySettings = Field(default_factory=VisibilitySettings)
    bootstrap: BootstrapSettings = Field(default_factory=BootstrapSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    units: List[UnitSettings] = Field(default_factory=list)

    @field_validator("default_max_tier", mode="before")
    @classmethod
    def _coerce_max_tier(cls, value):
        return parse_priority(value)


def _get_config_path(root: Path = PROJECT_ROOT) -> Optional[Path]:
    config_path = root / "config" / "config.toml"
    if config_path.exists():
        return config_path
    example_path = root / "config" / "config.example.toml"
    if example_path.exists():
        return example_path
    return None


def _load_config(config_path: Path) -> dict:
    with config_path.open("rb") as f:
        return tomllib.load(f)


def load_settings(path: Optional[Union[str, Path]] = None) -> LoaderSettings:
    """Load loader settings from a TOML file.

    Without an explicit ``path`` the project's ``config/config.toml`` is used,
    then ``config/config.example.toml``, then the built-in defaults.
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
    else:
        config_path = _get_config_path()
        if config_path is None:
            return LoaderSettings()

    raw_config = _load_config(config_path)
    loader_config = dict(raw_config.get("loader", {}))
    loader_config["units"] = raw_config.get("units", [])
    return LoaderSettings(**loader_config)
