"""In-process component registry.

A simple name → middleware lookup exposing the ``has()``/``get()`` pair
that :class:`~middleman.resolver.container.ContainerResolver` probes for.

Three kinds of entries are supported:

* ``register(name, unit)``: a ready-made unit, returned as-is.
* ``register_factory(name, factory)``: ``factory()`` is called on every
  ``get()``.
* ``register_import(name, "pkg.module:attr")``: imported on first use.
  A class target is instantiated (no arguments) on every ``get()``;
  any other target is returned as-is.

Usage::

    registry = ComponentRegistry()
    registry.register("auth", AuthMiddleware(token_store))
    registry.register_import("router", "myapp.routing:route_request")
    dispatcher = Dispatcher(["auth", "router"], registry)
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping

from middleman.errors import InvalidConstruction, ResolutionFailure

logger = logging.getLogger(__name__)

_INSTANCE = "instance"
_FACTORY = "factory"
_IMPORT = "import"


def load_object(target: str) -> Any:
    """Import and return the object named by ``"pkg.module:attr"``.

    Dotted attribute paths (``"pkg.module:Class.attr"``) are followed.

    Raises:
        ValueError: *target* is not in ``module:attr`` form.
        ImportError / AttributeError: The module or attribute is missing.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Import target '{target}' must have the form 'package.module:attribute'")

    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj


@dataclass
class _Entry:
    kind: str
    target: Any
    loaded: Any = None
    is_loaded: bool = False


class ComponentRegistry:
    """Named middleware components for container-based resolution."""

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    # ── Registration ─────────────────────────────────────────────────

    def register(self, name: str, component: Any) -> None:
        """Register a ready-made middleware unit under *name*."""
        self._put(name, _Entry(_INSTANCE, component))

    def register_factory(self, name: str, factory: Callable[[], Any]) -> None:
        """Register a factory called on every lookup of *name*."""
        if not callable(factory):
            raise InvalidConstruction(f"factory for component '{name}' is not callable")
        self._put(name, _Entry(_FACTORY, factory))

    def register_import(self, name: str, target: str) -> None:
        """Register a lazily imported ``"pkg.module:attr"`` target."""
        if ":" not in target:
            raise InvalidConstruction(
                f"import target for component '{name}' must have the form "
                f"'package.module:attribute', got '{target}'"
            )
        self._put(name, _Entry(_IMPORT, target))

    def unregister(self, name: str) -> None:
        """Remove *name*; unknown names are ignored."""
        self._entries.pop(name, None)

    def _put(self, name: str, entry: _Entry) -> None:
        if not isinstance(name, str) or not name.strip():
            raise InvalidConstruction("component name must be a non-empty string")
        if name in self._entries:
            logger.debug("Component '%s' re-registered (%s).", name, entry.kind)
        self._entries[name] = entry

    # ── Lookup (container protocol) ──────────────────────────────────

    def has(self, name: str) -> bool:
        return name in self._entries

    def get(self, name: str) -> Any:
        """Return the component registered under *name*.

        Raises:
            ResolutionFailure: *name* is unknown or its import failed.
        """
        entry = self._entries.get(name)
        if entry is None:
            raise ResolutionFailure(name)

        if entry.kind == _INSTANCE:
            return entry.target
        if entry.kind == _FACTORY:
            return entry.target()

        if not entry.is_loaded:
            try:
                entry.loaded = load_object(entry.target)
            except (ImportError, AttributeError, ValueError) as exc:
                raise ResolutionFailure(name, f"cannot import '{entry.target}': {exc}") from exc
            entry.is_loaded = True
            logger.debug("Component '%s' imported from '%s'.", name, entry.target)

        if isinstance(entry.loaded, type):
            return entry.loaded()
        return entry.loaded

    def names(self) -> List[str]:
        """Return all registered component names, sorted."""
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ComponentRegistry(components={self.names()})"

    @classmethod
    def from_mapping(cls, components: Mapping[str, str]) -> "ComponentRegistry":
        """Create a registry of import targets from a config mapping.

        Expected shape::

            {"auth": "myapp.middleware:AuthMiddleware", ...}
        """
        registry = cls()
        for name, target in components.items():
            registry.register_import(name, target)
        return registry
