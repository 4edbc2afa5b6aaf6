"""Error taxonomy shared by evaluation, rearrangement and solving."""

from __future__ import annotations

from typing import Any, Optional


class ResolveError(Exception):
    """Base class for failures while computing a concrete value."""


class UnknownVariableError(ResolveError):
    """Raised when a resolver has no value for a variable."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"unknown variable: {variable}")
        self.variable = variable


class DivisionByZeroError(ResolveError):
    """Raised when an exact value is divided by zero."""

    def __init__(self, message: str = "division by zero") -> None:
        super().__init__(message)


class PowerError(ResolveError):
    """Raised when an exact base cannot be raised to the given exponent."""

    def __init__(self, exponent: Any) -> None:
        super().__init__(f"cannot raise an exact value to the power {exponent}")
        self.exponent = exponent


class CannotSolveError(ResolveError):
    """Raised when no equation or rearrangement can isolate a variable."""

    def __init__(self, variable: Optional[str] = None) -> None:
        message = "cannot solve" if variable is None else f"cannot solve for {variable}"
        super().__init__(message)
        self.variable = variable


class NotSupportedError(ResolveError, NotImplementedError):
    """Raised for operator combinations the engine does not handle."""


__all__ = [
    "CannotSolveError",
    "DivisionByZeroError",
    "NotSupportedError",
    "PowerError",
    "ResolveError",
    "UnknownVariableError",
]
