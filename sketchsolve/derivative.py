"""Symbolic partial derivatives and residual extraction."""

from __future__ import annotations

from typing import Optional

from .errors import NotSupportedError
from .expression import (
    Abs,
    Difference,
    Equal,
    Expression,
    Integer,
    Neg,
    Power,
    Product,
    Quotient,
    Rational,
    Sqrt,
    Substitution,
    Sum,
    Variable,
)
from .simplify import simplify


def _d(expr: Expression, variable: str) -> Expression:
    if isinstance(expr, Variable):
        return Integer(1 if expr.name == variable else 0)
    if isinstance(expr, (Integer, Rational)):
        return Integer(0)
    if isinstance(expr, Substitution):
        return _d(expr.expr, variable)
    if isinstance(expr, Neg):
        return Neg(_d(expr.operand, variable))
    if isinstance(expr, Sum):
        return Sum(_d(expr.left, variable), _d(expr.right, variable))
    if isinstance(expr, Difference):
        return Difference(_d(expr.left, variable), _d(expr.right, variable))
    if isinstance(expr, Product):
        a, b = expr.left, expr.right
        return Sum(Product(a, _d(b, variable)), Product(b, _d(a, variable)))
    if isinstance(expr, Quotient):
        a, b = expr.left, expr.right
        numerator = Difference(Product(_d(a, variable), b), Product(_d(b, variable), a))
        return Quotient(numerator, Power(b, Integer(2)))
    if isinstance(expr, Power):
        base, exponent = expr.left, expr.right
        if variable in exponent.variables():
            raise NotSupportedError(f"exponent of {expr} depends on {variable}")
        if isinstance(base, Variable) and isinstance(exponent, Integer):
            if base.name != variable:
                return Integer(0)
            return Product(exponent, Power(base, Integer(exponent.value - 1)))
        if exponent == Integer(2):
            return Product(Integer(2), Product(base, _d(base, variable)))
        return Product(
            exponent,
            Product(Power(base, Difference(exponent, Integer(1))), _d(base, variable)),
        )
    if isinstance(expr, Sqrt):
        return Quotient(_d(expr.operand, variable), Product(Integer(2), expr))
    if isinstance(expr, Abs):
        return Product(Quotient(expr.operand, expr), _d(expr.operand, variable))
    raise NotSupportedError(f"cannot differentiate {type(expr).__name__}")


def derivative(expr: Expression, variable: str) -> Expression:
    """Partial derivative of ``expr`` with respect to ``variable``, simplified."""

    return simplify(_d(expr, variable))


def as_residual(equation: Expression) -> Optional[Expression]:
    """Zero-at-solution form of ``equation``, or ``None`` if it has no simple one."""

    if not isinstance(equation, Equal):
        return None
    lhs, rhs = equation.left, equation.right
    if lhs == Integer(0):
        return rhs
    if isinstance(lhs, Variable):
        if isinstance(rhs, Sum) and isinstance(rhs.left, Quotient):
            fraction, offset = rhs.left, rhs.right
            return Difference(
                Product(Difference(lhs, offset), fraction.right), fraction.left
            )
        return Difference(lhs, rhs)
    return None


__all__ = ["as_residual", "derivative"]
