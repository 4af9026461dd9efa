"""Core middleware chain infrastructure.

Defines the descriptor tagged union, the unit calling-convention probe,
the continuation value types handed to middleware as ``next``, and the
(voluntary) typing protocols for middleware authors.

Calling-convention probe order (first match wins):

1. ``PROCESS``: an instance with a callable ``process`` attribute,
   invoked as ``unit.process(request, next)`` (accumulator convention:
   ``unit.process(request, response, next)``). Nested dispatchers land
   here.
2. ``NEXT`` / ``ACCUMULATOR``: any other callable, invoked as
   ``unit(request, next)`` or ``unit(request, response, next)``
   depending on the dispatcher's convention.

Anything else is unsupported.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from middleman.dispatch.dispatcher import AccumulatorDispatcher, Dispatcher

# ── Descriptors ──────────────────────────────────────────────────────────


class DescriptorKind(enum.Enum):
    NAME = "name"
    UNIT = "unit"
    PIPELINE = "pipeline"


@dataclass(frozen=True)
class Descriptor:
    """One tagged entry of a middleware stack.

    Attributes:
        kind: What the entry is, decided once by :meth:`of`.
        value: The raw stack entry (name, unit or dispatcher).
    """

    kind: DescriptorKind
    value: Any

    @classmethod
    def of(cls, value: Any) -> "Descriptor":
        """Tag a raw stack entry.

        Strings are component names, dispatcher instances are nested
        pipelines, everything else is taken as a middleware unit.
        """
        from middleman.dispatch.dispatcher import BaseDispatcher

        if isinstance(value, Descriptor):
            return value
        if isinstance(value, str):
            return cls(DescriptorKind.NAME, value)
        if isinstance(value, BaseDispatcher):
            return cls(DescriptorKind.PIPELINE, value)
        return cls(DescriptorKind.UNIT, value)

    @property
    def is_name(self) -> bool:
        return self.kind is DescriptorKind.NAME


# ── Calling conventions ──────────────────────────────────────────────────


class UnitKind(enum.Enum):
    PROCESS = "process"
    NEXT = "next"
    ACCUMULATOR = "accumulator"


def classify_unit(unit: Any, *, accumulator: bool = False) -> Optional[UnitKind]:
    """Return the calling convention of a resolved *unit*, or ``None``.

    Classes are never treated as ``PROCESS`` units even when they define
    ``process()``; the unbound function would be called without an
    instance.
    """
    if not isinstance(unit, type) and callable(getattr(unit, "process", None)):
        return UnitKind.PROCESS
    if callable(unit):
        return UnitKind.ACCUMULATOR if accumulator else UnitKind.NEXT
    return None


def call_continuation(continuation: Any, *args: Any) -> Any:
    """Invoke an outer continuation, preferring its ``process()`` method."""
    if not isinstance(continuation, type) and callable(getattr(continuation, "process", None)):
        return continuation.process(*args)
    return continuation(*args)


# ── Continuations ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Delegate:
    """The rest of a request/response pipeline, starting at ``index``.

    Passed to middleware as ``next``. Can be called directly
    (``next(request)``) or used as a delegate object
    (``next.process(request)``).

    Attributes:
        dispatcher: The owning dispatcher.
        index: Stack index this continuation runs.
        outer: Continuation of the enclosing pipeline when the dispatcher
            runs nested, else ``None``.
    """

    dispatcher: "Dispatcher"
    index: int
    outer: Any = None

    def __call__(self, request: Any) -> Any:
        return self.dispatcher.invoke(self, request)

    def process(self, request: Any) -> Any:
        return self.dispatcher.invoke(self, request)


@dataclass(frozen=True)
class AccumulatorDelegate:
    """The rest of a response-accumulator pipeline, starting at ``index``."""

    dispatcher: "AccumulatorDispatcher"
    index: int
    outer: Any = None

    def __call__(self, request: Any, response: Any) -> Any:
        return self.dispatcher.invoke(self, request, response)

    def process(self, request: Any, response: Any) -> Any:
        return self.dispatcher.invoke(self, request, response)


# ── Type protocols ───────────────────────────────────────────────────────
# Implementing these is voluntary; the dispatcher probes capabilities.


@runtime_checkable
class Middleware(Protocol):
    """Callable taking the request and the ``next`` continuation."""

    def __call__(self, request: Any, next: Delegate) -> Any: ...


@runtime_checkable
class AccumulatorMiddleware(Protocol):
    """Callable taking the request, the current response and ``next``."""

    def __call__(self, request: Any, response: Any, next: AccumulatorDelegate) -> Any: ...


@runtime_checkable
class ProcessMiddleware(Protocol):
    """Object exposing ``process(request, delegate)``."""

    def process(self, request: Any, delegate: Delegate) -> Any: ...
