"""Iterative gradient solver with softmax-weighted Jacobian steps.

Every step evaluates the symbolic Jacobian of the residuals at the current
guess, reweights each column with a softmax over its entries (scaled by how
many of the column's entries are non-zero), and moves the guess against the
residual-weighted gradient.  Momentum builds up while the direction of the
adjustment is stable and resets whenever any component flips sign.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..derivative import derivative
from ..errors import DivisionByZeroError
from ..expression import Expression, Integer, Rational
from ..logging_utils import apply_debug_logging
from ..numbers import Concrete
from .model import GradientParams, NumericResult
from .resolvers import VarResolver, residual_vector

logger = logging.getLogger(__name__)

JacobianEntry = Union[float, Expression]


def _fold_entry(expr: Expression) -> JacobianEntry:
    if isinstance(expr, (Integer, Rational)):
        return float(Concrete(expr.value))
    return expr


def build_jacobian(residuals: Sequence[Expression], solve_for: Sequence[str]) -> List[List[JacobianEntry]]:
    """Symbolic partial derivatives indexed ``[residual][variable]``."""

    return [[_fold_entry(derivative(fx, var)) for var in solve_for] for fx in residuals]


def jacobian_value(entry: JacobianEntry, resolver: VarResolver) -> float:
    if isinstance(entry, float):
        v = entry
    else:
        try:
            v = float(entry.evaluate(resolver, 0))
        except DivisionByZeroError:
            v = 0.0
    if math.isnan(v):
        return 0.0
    if math.isinf(v):
        return math.copysign(1.0, v)
    return v


def _softmax_columns(j: np.ndarray) -> np.ndarray:
    n_vars = j.shape[1]
    if j.size == 0:
        return j
    shifted = np.exp(j - j.max(axis=0, keepdims=True))
    weights = shifted / shifted.sum(axis=0, keepdims=True)
    non_zero = np.count_nonzero(j, axis=0)
    return j * weights * (non_zero / n_vars)


class GradientSolver:
    """Momentum gradient descent over a fixed set of residual expressions."""

    def __init__(
        self,
        known: Mapping[str, Concrete],
        solve_for: Sequence[str],
        residuals: Sequence[Expression],
        params: Optional[GradientParams] = None,
        initials: Optional[Sequence[float]] = None,
    ) -> None:
        self.params = params or GradientParams()
        self.known = dict(known)
        self.solve_for = list(solve_for)
        self.residuals = list(residuals)
        self.jacobian = build_jacobian(self.residuals, self.solve_for)

        if initials is None:
            self.x = np.full(len(self.solve_for), self.params.initial_guess, dtype=float)
        else:
            if len(initials) != len(self.solve_for):
                raise ValueError(
                    f"expected {len(self.solve_for)} initial values, got {len(initials)}"
                )
            self.x = np.asarray(initials, dtype=float).copy()

        self.iteration = 0
        self.momentum = self.params.momentum_windup
        self.momentum_div = self.params.momentum_div
        self.last_signs: Optional[Tuple[bool, ...]] = None

    def _resolver(self) -> VarResolver:
        return VarResolver(self.solve_for, self.x, self.known)

    def evaluate_jacobian(self) -> np.ndarray:
        resolver = self._resolver()
        j = np.zeros((len(self.residuals), len(self.solve_for)), dtype=float)
        for row, entries in enumerate(self.jacobian):
            for col, entry in enumerate(entries):
                j[row, col] = jacobian_value(entry, resolver)
        return j

    def step(self) -> float:
        """Advance the guess once; returns the total absolute residual before the move."""

        j = _softmax_columns(self.evaluate_jacobian())
        fx = residual_vector(self.residuals, self._resolver())
        total = float(np.sum(np.abs(fx)))

        adjustment = (fx @ j) * self.params.step_mul
        signs = tuple(bool(s) for s in np.copysign(1.0, adjustment) > 0)
        if self.last_signs is not None:
            if signs == self.last_signs:
                self.momentum += self.params.momentum_step / self.momentum_div
            else:
                self.momentum = 0.0
                self.momentum_div += 1
        self.last_signs = signs

        self.x = self.x + adjustment * (1.0 + self.momentum)
        return total

    def values(self) -> Dict[str, float]:
        return {name: float(self.x[i]) for i, name in enumerate(self.solve_for)}

    def solve(self) -> NumericResult:
        if not self.solve_for:
            return NumericResult(method="gradient", success=True, values={}, error=0.0)

        n_vars = len(self.solve_for)
        converged = False
        while self.iteration < self.params.max_iter:
            total = self.step()
            if abs(total) / n_vars < self.params.terminate_at:
                converged = True
                break
            self.iteration += 1

        fx = residual_vector(self.residuals, self._resolver())
        error = float(np.sum(np.abs(fx))) / n_vars
        if converged:
            logger.debug("Gradient solver converged after %d iterations", self.iteration)
            message = "converged"
        else:
            logger.debug(
                "Gradient solver stopped after %d iterations with error %.6g", self.iteration, error
            )
            message = f"no convergence after {self.params.max_iter} iterations"
        return NumericResult(
            method="gradient",
            success=converged,
            values=self.values(),
            error=error,
            iterations=self.iteration,
            message=message,
        )


apply_debug_logging(
    globals(),
    logger=logger,
    skip=["_fold_entry", "jacobian_value", "_softmax_columns", "_resolver", "evaluate_jacobian", "step"],
)
