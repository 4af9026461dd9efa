"""
Defines project-specific exception classes.

Every pipeline error is a programming or configuration defect: nothing in
the dispatch core catches or retries them, they surface to the caller of
``dispatch()``.
"""
from typing import Optional


class MiddlemanError(Exception):
    """Base class for all custom exceptions in middleman."""
    pass


class ConfigurationError(MiddlemanError):
    """Raised when loading or validating the configuration file fails."""
    pass


class InvalidConstruction(MiddlemanError, ValueError):
    """
    Raised when a dispatcher or resolver is built from unusable input,
    e.g. an empty middleware stack for the request/response convention.
    """
    pass


class ResolutionFailure(MiddlemanError, LookupError):
    """Raised when a middleware component name cannot be resolved."""

    def __init__(self, name: str, reason: Optional[str] = None):
        self.name = name
        self.reason = reason

        message = f"unable to resolve middleware component name: {name!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class UnsupportedUnitShape(MiddlemanError, TypeError):
    """
    Raised when a resolved middleware unit is neither callable nor
    exposes a ``process()`` method.
    """

    def __init__(self, unit_description: str, index: Optional[int] = None):
        self.unit_description = unit_description
        self.index = index

        message = f"unsupported middleware type: {unit_description}"
        if index is not None:
            message += f" (stack index {index})"
        super().__init__(message)


class UnexpectedResult(MiddlemanError):
    """
    Raised when a middleware unit returns something other than a response.
    """

    def __init__(self, value_description: str, unit_description: str):
        self.value_description = value_description
        self.unit_description = unit_description
        super().__init__(
            f"unexpected middleware result: {value_description} "
            f"returned by: {unit_description}")


class UnresolvedChain(MiddlemanError):
    """
    Raised when the middleware stack is exhausted without any unit
    producing a response.
    """

    def __init__(self, message: str = "unresolved request: middleware stack exhausted with no result"):
        super().__init__(message)
