from enum import Enum, IntEnum
from typing import Union


class LoadPriority(IntEnum):
    """Load tiers, lower values load earlier"""

    CRITICAL = 0  # Must load immediately (vfs, window manager)
    HIGH = 1  # Load early (desktop, style manager)
    MEDIUM = 2  # Load when needed (file manager, editor)
    LOW = 3  # Load on demand (browsers, man viewer)
    IDLE = 4  # Load when the host is idle


PRIORITY_NAMES = tuple(priority.name for priority in LoadPriority)


class UnitPhase(str, Enum):
    """Run-state of a registered unit"""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


def parse_priority(value: Union[str, int, LoadPriority]) -> LoadPriority:
    """Coerce a tier name (any case), ordinal or LoadPriority into a LoadPriority."""
    if isinstance(value, LoadPriority):
        return value
    if isinstance(value, str):
        try:
            return LoadPriority[value.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown priority '{value}', expected one of {', '.join(PRIORITY_NAMES)}"
            ) from None
    return LoadPriority(value)
