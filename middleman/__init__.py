"""
middleman - a middleware stack dispatcher.

Threads a request through an ordered stack of middleware units. Each unit
may delegate to the rest of the stack or short-circuit by returning a
response itself. Stack entries may be component names, resolved on demand
through a registry.
"""

from middleman.constants import PACKAGE_NAME, PACKAGE_VERSION
from middleman.dispatch import AccumulatorDispatcher, Delegate, Dispatcher
from middleman.errors import (
    ConfigurationError,
    InvalidConstruction,
    MiddlemanError,
    ResolutionFailure,
    UnexpectedResult,
    UnresolvedChain,
    UnsupportedUnitShape,
)
from middleman.resolver import ComponentRegistry, ContainerResolver

__version__ = PACKAGE_VERSION
__app_name__ = PACKAGE_NAME

__all__ = [
    "AccumulatorDispatcher",
    "ComponentRegistry",
    "ConfigurationError",
    "ContainerResolver",
    "Delegate",
    "Dispatcher",
    "InvalidConstruction",
    "MiddlemanError",
    "ResolutionFailure",
    "UnexpectedResult",
    "UnresolvedChain",
    "UnsupportedUnitShape",
    "__version__",
    "__app_name__",
]
