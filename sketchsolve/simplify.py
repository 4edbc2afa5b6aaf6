"""Pure bottom-up simplification of expression trees.

Children are simplified first (the inside of a :class:`Substitution` is left
alone), then local rewrite rules run at the node until nothing changes.  Each
rewrite pass normalizes, folds constants and like terms, and normalizes again.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Optional, Tuple

from .expression import (
    Abs,
    Difference,
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
    constant,
)

_MAX_REWRITES = 64


def simplify(expr: Expression) -> Expression:
    node = _simplify_children(expr)
    for _ in range(_MAX_REWRITES):
        rewritten = _rewrite(node)
        if rewritten == node:
            return rewritten
        node = _simplify_children(rewritten)
    return node


def _simplify_children(expr: Expression) -> Expression:
    if isinstance(expr, Substitution):
        return expr
    children = expr.children()
    if not children:
        return expr
    return expr.with_children(*(simplify(child) for child in children))


def _rewrite(expr: Expression) -> Expression:
    return _normalize(_fold(_normalize(expr)))


def _is_int(expr: Expression, value: int) -> bool:
    return isinstance(expr, Integer) and expr.value == value


def _negate_constant(expr: Expression) -> Expression:
    if isinstance(expr, Integer):
        return Integer(-expr.value)
    if isinstance(expr, Rational):
        return Rational(-expr.value, expr.as_fraction)
    raise TypeError(f"expected a constant, got {expr}")


def _fraction_flag(a: Expression, b: Expression) -> bool:
    """Display flag for a folded constant: taken from the rational operand."""

    if isinstance(a, Rational):
        return a.as_fraction
    if isinstance(b, Rational):
        return b.as_fraction
    return True


def _normalize_signs(expr: Expression) -> Expression:
    if isinstance(expr, Neg):
        inner = expr.operand
        if inner.is_coefficient:
            expr = _negate_constant(inner)
        elif isinstance(inner, Neg):
            expr = inner.operand
    if isinstance(expr, Rational) and expr.value.denominator == 1:
        expr = Integer(expr.value.numerator)
    if isinstance(expr, Product) and not expr.left.is_coefficient and expr.right.is_coefficient:
        expr = Product(expr.right, expr.left)
    if (
        isinstance(expr, Neg)
        and isinstance(expr.operand, Product)
        and expr.operand.left.is_coefficient
    ):
        expr = Product(_negate_constant(expr.operand.left), expr.operand.right)
    if isinstance(expr, Abs) and isinstance(expr.operand, Neg):
        expr = Abs(expr.operand.operand)
    return expr


def _normalize(expr: Expression) -> Expression:
    expr = _normalize_signs(expr)

    if isinstance(expr, Product):
        a, b = expr.left, expr.right
        if isinstance(a, Rational) and a.value.numerator == 1:
            expr = Quotient(b, Integer(a.value.denominator))
        elif isinstance(b, Rational) and b.value.numerator == 1:
            expr = Quotient(a, Integer(b.value.denominator))

    if isinstance(expr, Sum):
        a, b = expr.left, expr.right
        if _is_int(a, 0):
            expr = b
        elif _is_int(b, 0):
            expr = a
        elif isinstance(a, Neg) and isinstance(b, Neg):
            expr = Neg(Sum(a.operand, b.operand))
        elif isinstance(a, Neg):
            expr = Difference(b, a.operand)

    if isinstance(expr, Difference):
        a, b = expr.left, expr.right
        if _is_int(a, 0):
            expr = Neg(b)
        elif _is_int(b, 0):
            expr = a
        elif isinstance(a, Neg) and not isinstance(b, Neg):
            expr = Neg(Sum(a.operand, b))

    if isinstance(expr, Product):
        for coef, other in ((expr.left, expr.right), (expr.right, expr.left)):
            if _is_int(coef, 0):
                expr = Integer(0)
                break
            if _is_int(coef, 1):
                expr = other
                break
            if _is_int(coef, -1):
                expr = Neg(other)
                break

    if isinstance(expr, Power) and isinstance(expr.right, Integer):
        if expr.right.value == 0:
            expr = Integer(1)
        elif expr.right.value == 1:
            expr = expr.left
        elif expr.right.value == -1:
            expr = Quotient(Integer(1), expr.left)

    if isinstance(expr, Quotient):
        if _is_int(expr.left, 0):
            expr = Integer(0)
        elif _is_int(expr.right, 1):
            expr = expr.left
        elif _is_int(expr.right, -1):
            expr = Neg(expr.left)

    if (
        isinstance(expr, Sqrt)
        and not expr.plus_minus
        and isinstance(expr.operand, Power)
        and _is_int(expr.operand.right, 2)
    ):
        expr = Abs(expr.operand.left)

    return _normalize_signs(expr)


def _split_term(expr: Expression) -> Tuple[int, Expression]:
    """Split ``c * x`` into ``(c, x)``; any other node is ``(1, node)``."""

    if isinstance(expr, Product) and isinstance(expr.left, Integer):
        return expr.left.value, expr.right
    return 1, expr


def _like_terms(a: Expression, b: Expression) -> Optional[Tuple[int, int, Expression]]:
    if a.is_coefficient or b.is_coefficient:
        return None
    coef_a, term_a = _split_term(a)
    coef_b, term_b = _split_term(b)
    if term_a != term_b:
        return None
    return coef_a, coef_b, term_a


def _perfect_square_root(value: Fraction) -> Optional[Fraction]:
    if value < 0:
        return None
    num = math.isqrt(value.numerator)
    den = math.isqrt(value.denominator)
    if num * num != value.numerator or den * den != value.denominator:
        return None
    return Fraction(num, den)


def _fold(expr: Expression) -> Expression:
    if isinstance(expr, Quotient):
        a, b = expr.left, expr.right
        if a.is_coefficient and b.is_coefficient:
            if b.value == 0:
                return expr
            return constant(Fraction(a.value) / Fraction(b.value), _fraction_flag(a, b))
        if a == b:
            return Integer(1)

    elif isinstance(expr, Sum):
        a, b = expr.left, expr.right
        if a.is_coefficient and b.is_coefficient:
            return constant(Fraction(a.value) + Fraction(b.value), _fraction_flag(a, b))
        like = _like_terms(a, b)
        if like is not None:
            coef_a, coef_b, term = like
            return Product(Integer(coef_a + coef_b), term)

    elif isinstance(expr, Difference):
        a, b = expr.left, expr.right
        if a.is_coefficient and b.is_coefficient:
            return constant(Fraction(a.value) - Fraction(b.value), _fraction_flag(a, b))
        like = _like_terms(a, b)
        if like is not None:
            coef_a, coef_b, term = like
            return Product(Integer(coef_a - coef_b), term)
        if b == Neg(a):
            return Product(Integer(2), a)

    elif isinstance(expr, Product):
        a, b = expr.left, expr.right
        if a.is_coefficient and b.is_coefficient:
            return constant(Fraction(a.value) * Fraction(b.value), _fraction_flag(a, b))
        if a.is_coefficient and isinstance(b, Product) and b.left.is_coefficient:
            folded = constant(Fraction(a.value) * Fraction(b.left.value), _fraction_flag(a, b.left))
            return Product(folded, b.right)
        if a == b:
            return Power(a, Integer(2))

    elif isinstance(expr, Sqrt):
        if not expr.plus_minus and expr.operand.is_coefficient:
            root = _perfect_square_root(Fraction(expr.operand.value))
            if root is not None:
                return constant(root)

    elif isinstance(expr, Power):
        a, b = expr.left, expr.right
        if a.is_coefficient and isinstance(b, Integer) and b.value in (2, 3, 4):
            return constant(Fraction(a.value) ** b.value, _fraction_flag(a, b))

    return expr


__all__ = ["simplify"]
