"""Container-backed middleware resolver.

Pass a :class:`ContainerResolver` (or any registry exposing ``has()`` and
``get()``, which is wrapped automatically) as ``resolver`` to a dispatcher
to integrate with a component registry::

    dispatcher = Dispatcher(
        ["auth", "errors", router_middleware],
        ContainerResolver(registry),
    )

Only component *names* (strings) are looked up. Any other stack entry,
such as a function or a callable object, is returned unchanged, so names
and middleware units can be mixed freely in one stack.

The resolver does not cache: every call asks the container again.
Caching belongs to the dispatcher (``memoize=True``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from middleman.display.describe import describe_value
from middleman.errors import InvalidConstruction, ResolutionFailure

logger = logging.getLogger(__name__)


@runtime_checkable
class Container(Protocol):
    """Minimal component registry: ``has(name)`` then ``get(name)``."""

    def has(self, name: str) -> bool: ...

    def get(self, name: str) -> Any: ...


Resolver = Callable[[Any], Any]


def is_container(obj: Any) -> bool:
    """Return ``True`` if *obj* can back a :class:`ContainerResolver`.

    Probe order: ``has()``/``get()`` methods, then the mapping protocol.
    """
    if callable(getattr(obj, "has", None)) and callable(getattr(obj, "get", None)):
        return True
    return isinstance(obj, Mapping)


class ContainerResolver:
    """Resolve middleware component names via a container.

    Parameters
    ----------
    container:
        A registry with ``has(name)``/``get(name)``, or a plain mapping
        of names to middleware units.
    """

    def __init__(self, container: Any) -> None:
        if not is_container(container):
            raise InvalidConstruction(
                f"container must provide has()/get() or be a mapping, got {describe_value(container)}"
            )
        self._container = container
        self._uses_has = callable(getattr(container, "has", None))

    @property
    def container(self) -> Any:
        return self._container

    def __call__(self, name: Any) -> Any:
        if not isinstance(name, str):
            return name  # nothing to resolve

        if self._uses_has:
            if self._container.has(name):
                return self._container.get(name)
        elif name in self._container:
            return self._container[name]

        logger.debug("Component %r not found in %s", name, type(self._container).__name__)
        raise ResolutionFailure(name)

    def __repr__(self) -> str:
        return f"ContainerResolver({type(self._container).__name__})"


def as_resolver(resolver: Any) -> Optional[Resolver]:
    """Normalise the ``resolver`` argument of a dispatcher.

    - ``None`` stays ``None`` (names cannot be resolved).
    - Containers (see :func:`is_container`) are wrapped in a
      :class:`ContainerResolver`.
    - Other callables are used as ``(name) -> unit`` functions.

    Raises:
        InvalidConstruction: For anything else.
    """
    if resolver is None or isinstance(resolver, ContainerResolver):
        return resolver
    if is_container(resolver):
        return ContainerResolver(resolver)
    if callable(resolver):
        return resolver
    raise InvalidConstruction(f"unsupported middleware resolver: {describe_value(resolver)}")
