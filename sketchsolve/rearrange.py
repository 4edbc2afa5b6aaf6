"""Isolate a variable on the left-hand side of an equation."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from .expression import (
    Difference,
    Equal,
    Expression,
    Integer,
    Neg,
    Power,
    Product,
    Quotient,
    Sqrt,
    Sum,
    Variable,
)
from .simplify import simplify

logger = logging.getLogger(__name__)


class ReverseOpKind(enum.Enum):
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    DIVIDE_UNDER = "divide-under"
    ADD = "add"
    SUBTRACT = "subtract"
    POWER = "power"
    SQRT = "sqrt"


@dataclass(frozen=True)
class ReverseOp:
    """One inverse operation recorded while raising a variable out of a side."""

    kind: ReverseOpKind
    operand: Optional[Expression] = None

    def apply(self, expr: Expression) -> Expression:
        kind, operand = self.kind, self.operand
        if kind is ReverseOpKind.SQRT:
            return Sqrt(expr, plus_minus=True)
        if operand is None:
            raise ValueError(f"{kind.value} needs an operand")
        if kind is ReverseOpKind.MULTIPLY:
            return Product(expr, operand)
        if kind is ReverseOpKind.DIVIDE:
            return Quotient(expr, operand)
        if kind is ReverseOpKind.DIVIDE_UNDER:
            return Quotient(operand, expr)
        if kind is ReverseOpKind.ADD:
            return Sum(expr, operand)
        if kind is ReverseOpKind.SUBTRACT:
            return Difference(expr, operand)
        return Power(expr, operand)


def apply_ops(expr: Expression, ops: List[ReverseOp]) -> Expression:
    """Apply ``ops`` to ``expr``, outermost operation first."""

    for op in reversed(ops):
        expr = op.apply(expr)
    return expr


def _branch(a: Expression, b: Expression, want: Expression) -> Optional[int]:
    in_a, in_b = a.contains(want), b.contains(want)
    if in_a == in_b:
        return None
    return 0 if in_a else 1


def raise_for(expr: Expression, want: Expression) -> Optional[List[ReverseOp]]:
    """Inverse operations that would leave ``want`` alone, innermost first.

    Returns ``None`` when ``want`` cannot be isolated: it is missing, appears in
    both operands of a node, or sits under an unsupported operator.
    """

    if expr == want:
        return []

    if isinstance(expr, (Sum, Difference, Product, Quotient)):
        side = _branch(expr.left, expr.right, want)
        if side is None:
            return None
        inner, other = (expr.left, expr.right) if side == 0 else (expr.right, expr.left)
        ops = raise_for(inner, want)
        if ops is None:
            return None
        if isinstance(expr, Sum):
            ops.append(ReverseOp(ReverseOpKind.SUBTRACT, other))
        elif isinstance(expr, Difference):
            ops.append(ReverseOp(ReverseOpKind.ADD, other))
            if side == 1:
                ops.append(ReverseOp(ReverseOpKind.MULTIPLY, Integer(-1)))
        elif isinstance(expr, Product):
            ops.append(ReverseOp(ReverseOpKind.DIVIDE, other))
        elif side == 0:
            ops.append(ReverseOp(ReverseOpKind.MULTIPLY, other))
        else:
            ops.append(ReverseOp(ReverseOpKind.DIVIDE_UNDER, other))
        return ops

    if isinstance(expr, Power):
        if expr.right != Integer(2):
            return None
        ops = raise_for(expr.left, want)
        if ops is None:
            return None
        ops.append(ReverseOp(ReverseOpKind.SQRT))
        return ops

    if isinstance(expr, Neg):
        ops = raise_for(expr.operand, want)
        if ops is None:
            return None
        ops.append(ReverseOp(ReverseOpKind.MULTIPLY, Integer(-1)))
        return ops

    if isinstance(expr, Sqrt):
        ops = raise_for(expr.operand, want)
        if ops is None:
            return None
        ops.append(ReverseOp(ReverseOpKind.POWER, Integer(2)))
        return ops

    return None


def make_subject(equation: Expression, variable: Variable) -> Optional[Equal]:
    """Rearrange ``equation`` into ``variable = ...``, or return ``None``."""

    if not isinstance(equation, Equal):
        return None
    lhs, rhs = equation.left, equation.right
    if rhs == variable and not lhs.contains(variable):
        return Equal(variable, lhs)

    for side, other in ((rhs, lhs), (lhs, rhs)):
        if other.contains(variable):
            continue
        ops = raise_for(side, variable)
        if ops is None:
            continue
        isolated = Equal(variable, simplify(apply_ops(other, ops)))
        logger.debug("Rearranged %s for %s: %s", equation, variable, isolated)
        return isolated
    return None


__all__ = ["ReverseOp", "ReverseOpKind", "apply_ops", "make_subject", "raise_for"]
