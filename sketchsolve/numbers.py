from __future__ import annotations

import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Tuple, Union

from .errors import DivisionByZeroError, PowerError

Number = Union[Fraction, float]

# Exact powers beyond this exponent are refused rather than expanded.
MAX_EXACT_EXPONENT = 4096


def _to_float(value: Number) -> float:
    """``float(value)``, saturating to an infinity for exact values past the float range."""

    try:
        return float(value)
    except OverflowError:
        return math.copysign(math.inf, value)


def _float_div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _float_pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0 and b.is_integer() and int(b) % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        if a == 0.0:
            return math.inf
        return math.nan


@dataclass(frozen=True)
class Concrete:
    """Resolved value: an exact ``Fraction`` or a ``float`` approximation.

    Operations between two exact values stay exact; a float on either side
    forces float arithmetic for that operation.
    """

    value: Number

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, bool):
            raise TypeError("booleans are not concrete values")
        if isinstance(value, int):
            object.__setattr__(self, "value", Fraction(value))
        elif isinstance(value, float):
            object.__setattr__(self, "value", float(value))
        elif not isinstance(value, Fraction):
            raise TypeError(f"unsupported concrete value: {value!r}")

    @classmethod
    def rational(cls, numerator: int, denominator: int = 1) -> "Concrete":
        if denominator == 0:
            raise DivisionByZeroError()
        return cls(Fraction(numerator, denominator))

    @classmethod
    def approx(cls, value: float) -> "Concrete":
        return cls(float(value))

    @classmethod
    def parse(cls, text: str) -> "Concrete":
        """Parse ``"3"``, ``"1/2"`` as exact values and ``"0.5"``, ``"1e3"`` as floats."""

        text = text.strip()
        if any(ch in text for ch in ".eE") or text.lower() in {"inf", "-inf", "nan"}:
            return cls(float(text))
        try:
            return cls(Fraction(text))
        except ZeroDivisionError:
            raise DivisionByZeroError() from None

    @property
    def is_rational(self) -> bool:
        return isinstance(self.value, Fraction)

    @property
    def is_finite(self) -> bool:
        return self.is_rational or math.isfinite(self.value)

    @property
    def is_normal(self) -> bool:
        """Exact values, or floats that are finite, non-zero and not subnormal."""

        if self.is_rational:
            return True
        return math.isfinite(self.value) and abs(self.value) >= 2.2250738585072014e-308

    def as_float(self) -> float:
        return _to_float(self.value)

    def __float__(self) -> float:
        return _to_float(self.value)

    def __str__(self) -> str:
        if self.is_rational:
            return str(self.value)
        return repr(self.value)

    def _pair(self, other: "Concrete") -> Tuple[Number, Number, bool]:
        if isinstance(self.value, Fraction) and isinstance(other.value, Fraction):
            return self.value, other.value, True
        return _to_float(self.value), _to_float(other.value), False

    def __add__(self, other: "Concrete") -> "Concrete":
        a, b, _ = self._pair(other)
        return Concrete(a + b)

    def __sub__(self, other: "Concrete") -> "Concrete":
        a, b, _ = self._pair(other)
        return Concrete(a - b)

    def __mul__(self, other: "Concrete") -> "Concrete":
        a, b, _ = self._pair(other)
        return Concrete(a * b)

    def __truediv__(self, other: "Concrete") -> "Concrete":
        a, b, exact = self._pair(other)
        if exact:
            if b == 0:
                raise DivisionByZeroError()
            return Concrete(a / b)
        return Concrete(_float_div(a, b))

    def __pow__(self, other: "Concrete") -> "Concrete":
        base, exponent = self.value, other.value
        if isinstance(base, Fraction) and isinstance(exponent, Fraction):
            if exponent.denominator != 1 or abs(exponent) > MAX_EXACT_EXPONENT:
                raise PowerError(exponent)
            if base == 0 and exponent < 0:
                raise DivisionByZeroError()
            return Concrete(base ** int(exponent))
        return Concrete(_float_pow(_to_float(base), _to_float(exponent)))

    def __neg__(self) -> "Concrete":
        return Concrete(-self.value)

    def __abs__(self) -> "Concrete":
        return Concrete(abs(self.value))

    def sqrt(self) -> "Concrete":
        value = _to_float(self.value)
        if math.isnan(value) or value < 0:
            return Concrete(math.nan)
        return Concrete(math.sqrt(value))


__all__ = ["Concrete", "MAX_EXACT_EXPONENT", "Number"]
