"""Readable descriptions of values and callables.

Used to build error messages such as::

    unexpected middleware result: int(123) returned by: function app.views.index()

Descriptions never include the full ``repr()`` of arbitrary objects, so
request or response payloads do not leak into error messages.
"""

from __future__ import annotations

import functools
import inspect
from typing import Any

_MAX_TEXT = 60


def _qualified(obj: Any) -> str:
    module = getattr(obj, "__module__", None)
    name = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or type(obj).__name__
    if not module or module == "builtins":
        return name
    return f"{module}.{name}"


def describe_value(value: Any) -> str:
    """Return a short, type-tagged description of *value*."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return f"bool({value})"
    if isinstance(value, (int, float, complex)):
        return f"{type(value).__name__}({value!r})"
    if isinstance(value, str):
        text = value if len(value) <= _MAX_TEXT else value[: _MAX_TEXT - 3] + "..."
        return f"str({text!r})"
    if isinstance(value, (bytes, bytearray)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, type):
        return f"class {_qualified(value)}"
    if callable(value):
        return describe_callable(value)
    return f"{_qualified(type(value))} instance"


def describe_callable(target: Any) -> str:
    """Return a description of a callable middleware unit.

    Non-callables fall back to :func:`describe_value`.
    """
    if isinstance(target, functools.partial):
        return f"partial({describe_callable(target.func)})"
    if inspect.ismethod(target):
        owner = target.__self__
        owner_cls = owner if isinstance(owner, type) else type(owner)
        return f"method {_qualified(owner_cls)}.{target.__func__.__name__}()"
    if inspect.isfunction(target) or inspect.isbuiltin(target):
        return f"function {_qualified(target)}()"
    if isinstance(target, type):
        return f"class {_qualified(target)}"
    if callable(target):
        return f"{_qualified(type(target))}.__call__()"
    return describe_value(target)
