class ModuleLoaderError(Exception):
    """Base exception for all module loader errors"""


class NotFoundError(ModuleLoaderError):
    """Raised when an operation names a unit that was never registered"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unit '{name}' is not registered")


class DependencyLoadError(ModuleLoaderError):
    """Raised when a dependency of a unit failed to load.

    The original failure is available as ``__cause__``.
    """

    def __init__(self, name: str, dependency: str):
        self.name = name
        self.dependency = dependency
        super().__init__(f"Cannot load '{name}': dependency '{dependency}' failed to load")


class UnitLoadError(ModuleLoaderError):
    """Raised when the loader of a unit itself failed.

    The original failure is available as ``__cause__``.
    """

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        message = f"Failed to load unit '{name}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidStateError(ModuleLoaderError):
    """Raised on an illegal state transition, e.g. unloading a unit while it loads"""

    def __init__(self, name: str, phase, operation: str):
        self.name = name
        self.phase = phase
        self.operation = operation
        super().__init__(
            f"Cannot {operation} unit '{name}' while it is {getattr(phase, 'value', phase)}"
        )


class CyclicDependencyError(ModuleLoaderError):
    """Raised when the declared dependencies of a unit form a cycle"""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency detected: {' -> '.join(self.cycle)}")


class DuplicateNameWarning(UserWarning):
    """Issued when a unit is registered under a name that is already taken"""
