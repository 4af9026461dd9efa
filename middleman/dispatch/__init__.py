"""Middleware chain for composable request processing.

Public API
----------
- :class:`Dispatcher` / :class:`AccumulatorDispatcher`: run a middleware stack
- :class:`Delegate` / :class:`AccumulatorDelegate`: the ``next`` continuation
- :class:`Descriptor` / :class:`UnitKind`: stack-entry and calling-convention tags
- :class:`Middleware` / :class:`AccumulatorMiddleware` / :class:`ProcessMiddleware`:
  optional typing protocols for middleware authors
"""

from middleman.dispatch.chain import (
    AccumulatorDelegate,
    AccumulatorMiddleware,
    Delegate,
    Descriptor,
    DescriptorKind,
    Middleware,
    ProcessMiddleware,
    UnitKind,
    classify_unit,
)
from middleman.dispatch.dispatcher import AccumulatorDispatcher, BaseDispatcher, Dispatcher

__all__ = [
    "AccumulatorDelegate",
    "AccumulatorDispatcher",
    "AccumulatorMiddleware",
    "BaseDispatcher",
    "Delegate",
    "Descriptor",
    "DescriptorKind",
    "Dispatcher",
    "Middleware",
    "ProcessMiddleware",
    "UnitKind",
    "classify_unit",
]
