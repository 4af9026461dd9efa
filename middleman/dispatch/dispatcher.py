"""Middleware dispatchers.

Two calling conventions are supported:

- :class:`Dispatcher`: request → response. Units are called as
  ``unit(request, next)``; some unit must return a response, otherwise
  the chain fails with :class:`UnresolvedChain`.
- :class:`AccumulatorDispatcher`: a response value is threaded through
  the chain. Units are called as ``unit(request, response, next)`` and
  the terminal continuation returns the response unchanged.

Continuations are built lazily, one index at a time, when a unit calls
``next``. A unit that never calls ``next`` short-circuits the rest of
the stack.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Type, Union

from middleman.dispatch.chain import (
    AccumulatorDelegate,
    Delegate,
    Descriptor,
    DescriptorKind,
    UnitKind,
    call_continuation,
    classify_unit,
)
from middleman.display.describe import describe_callable, describe_value
from middleman.errors import (
    InvalidConstruction,
    ResolutionFailure,
    UnexpectedResult,
    UnresolvedChain,
    UnsupportedUnitShape,
)
from middleman.resolver.container import as_resolver

logger = logging.getLogger(__name__)

ResponseType = Union[Type[Any], Tuple[Type[Any], ...]]


class BaseDispatcher:
    """Shared stack ownership and unit resolution.

    Args:
        stack: Middleware descriptors in execution order: component names,
            middleware units or nested dispatchers.
        resolver: Optional component resolver. Either a callable
            ``(name) -> unit`` or a registry exposing ``has()``/``get()``.
        memoize: Cache resolved units per stack index for the lifetime of
            this dispatcher. When ``False`` every traversal resolves anew.
    """

    accumulator: bool = False

    def __init__(
        self,
        stack: Iterable[Any],
        resolver: Optional[Any] = None,
        *,
        memoize: bool = False,
    ) -> None:
        self._stack: Tuple[Descriptor, ...] = tuple(Descriptor.of(entry) for entry in stack)
        self._resolver: Optional[Callable[[Any], Any]] = as_resolver(resolver)
        self._memoize = memoize
        self._resolved: Dict[int, Tuple[Any, UnitKind]] = {}
        self._lock = threading.Lock()
        logger.debug(
            "%s created (%d unit(s), resolver: %s, memoize: %s).",
            type(self).__name__,
            len(self._stack),
            "yes" if self._resolver is not None else "no",
            memoize,
        )

    @property
    def stack(self) -> Tuple[Any, ...]:
        """The raw stack entries, in execution order."""
        return tuple(d.value for d in self._stack)

    @property
    def memoize(self) -> bool:
        return self._memoize

    def __len__(self) -> int:
        return len(self._stack)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(units={len(self._stack)}, memoize={self._memoize})"

    def resolve_unit(self, index: int) -> Tuple[Any, UnitKind]:
        """Resolve the stack entry at *index* into ``(unit, kind)``.

        Raises:
            ResolutionFailure: A component name could not be resolved.
            UnsupportedUnitShape: The resolved unit matches no convention,
                or is a nested dispatcher of the other convention.
        """
        if not self._memoize:
            return self._resolve_descriptor(index)

        cached = self._resolved.get(index)
        if cached is None:
            with self._lock:
                cached = self._resolved.get(index)
                if cached is None:
                    cached = self._resolve_descriptor(index)
                    self._resolved[index] = cached
        return cached

    def _resolve_descriptor(self, index: int) -> Tuple[Any, UnitKind]:
        descriptor = self._stack[index]
        unit = descriptor.value

        if descriptor.is_name:
            if self._resolver is None:
                raise ResolutionFailure(unit, "no resolver configured")
            unit = self._resolver(unit)
            logger.debug(
                "Resolved component %r at index %d → %s",
                descriptor.value,
                index,
                describe_value(unit),
            )
            descriptor = Descriptor.of(unit)

        # a nested pipeline must share this dispatcher's calling convention
        if descriptor.kind is DescriptorKind.PIPELINE and unit.accumulator is not self.accumulator:
            raise UnsupportedUnitShape(repr(unit), index)

        kind = classify_unit(unit, accumulator=self.accumulator)
        if kind is None:
            raise UnsupportedUnitShape(describe_value(unit), index)
        return unit, kind

    @staticmethod
    def _describe_unit(unit: Any, kind: UnitKind) -> str:
        if kind is UnitKind.PROCESS:
            return describe_callable(unit.process)
        return describe_callable(unit)


class Dispatcher(BaseDispatcher):
    """Request → response middleware dispatcher.

    Args:
        stack: Middleware descriptors (at least one).
        resolver: Optional component resolver.
        response_type: Type (or tuple of types) every unit result must be
            an instance of. When ``None``, any value except ``None`` is
            accepted as a response.
        memoize: See :class:`BaseDispatcher`.

    Raises:
        InvalidConstruction: If *stack* is empty.
    """

    def __init__(
        self,
        stack: Iterable[Any],
        resolver: Optional[Any] = None,
        *,
        response_type: Optional[ResponseType] = None,
        memoize: bool = False,
    ) -> None:
        stack = list(stack)
        if not stack:
            raise InvalidConstruction("an empty middleware stack was given")
        super().__init__(stack, resolver, memoize=memoize)
        self._response_type = response_type

    @property
    def response_type(self) -> Optional[ResponseType]:
        return self._response_type

    def dispatch(self, request: Any) -> Any:
        """Dispatch the middleware stack and return the resulting response.

        Raises:
            UnexpectedResult: A unit returned something other than a response.
            UnresolvedChain: No unit produced a response.
        """
        return self.resolve(0)(request)

    def process(self, request: Any, delegate: Any) -> Any:
        """Run this dispatcher as a unit nested inside another pipeline.

        When the stack is exhausted, the request is forwarded to
        *delegate* instead of failing.
        """
        return self.resolve(0, delegate)(request)

    def __call__(self, request: Any, next: Any) -> Any:
        return self.process(request, next)

    def resolve(self, index: int, outer: Any = None) -> Delegate:
        """Return the continuation running the stack from *index* onward."""
        return Delegate(self, index, outer)

    def is_response(self, value: Any) -> bool:
        if self._response_type is None:
            return value is not None
        return isinstance(value, self._response_type)

    def invoke(self, delegate: Delegate, request: Any) -> Any:
        """Run the unit at ``delegate.index`` (called by :class:`Delegate`)."""
        index = delegate.index

        if index >= len(self._stack):
            if delegate.outer is None:
                raise UnresolvedChain()
            result = call_continuation(delegate.outer, request)
            if not self.is_response(result):
                raise UnexpectedResult(describe_value(result), describe_callable(delegate.outer))
            return result

        unit, kind = self.resolve_unit(index)
        following = self.resolve(index + 1, delegate.outer)

        if kind is UnitKind.PROCESS:
            result = unit.process(request, following)
        else:
            result = unit(request, following)

        if not self.is_response(result):
            raise UnexpectedResult(describe_value(result), self._describe_unit(unit, kind))
        return result


class AccumulatorDispatcher(BaseDispatcher):
    """Response-accumulator middleware dispatcher.

    An empty stack is allowed: dispatch then returns the initial response.
    Results are propagated without validation.
    """

    accumulator = True

    def dispatch(self, request: Any, response: Any) -> Any:
        """Thread *request* and *response* through the stack."""
        return self.resolve(0)(request, response)

    def process(self, request: Any, response: Any, delegate: Any) -> Any:
        """Run nested inside another accumulator pipeline."""
        return self.resolve(0, delegate)(request, response)

    def __call__(self, request: Any, response: Any, next: Any) -> Any:
        return self.process(request, response, next)

    def resolve(self, index: int, outer: Any = None) -> AccumulatorDelegate:
        return AccumulatorDelegate(self, index, outer)

    def invoke(self, delegate: AccumulatorDelegate, request: Any, response: Any) -> Any:
        index = delegate.index

        if index >= len(self._stack):
            if delegate.outer is None:
                return response
            return call_continuation(delegate.outer, request, response)

        unit, kind = self.resolve_unit(index)
        following = self.resolve(index + 1, delegate.outer)

        if kind is UnitKind.PROCESS:
            return unit.process(request, response, following)
        return unit(request, response, following)
