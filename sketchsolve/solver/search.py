"""Brute-force exponential search over the unresolved variables."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

from ..expression import Expression
from ..logging_utils import apply_debug_logging
from ..numbers import Concrete
from .model import ExpSearchParams, NumericResult
from .resolvers import RESIDUAL_CLAMP, VarResolver, mean_abs, residual_vector

logger = logging.getLogger(__name__)


class ExpSearchIter:
    """Yields ``x, x+s1, x-s1, x+s2, x-s2, ...`` with ``sk = (k*step)^exp``."""

    def __init__(self, params: ExpSearchParams, x: float) -> None:
        self.params = params
        self.x = x
        self.i = 0

    def val(self) -> float:
        is_pos = self.i % 2 == 1
        mul = (self.i + 1) // 2
        step = (mul * self.params.step) ** self.params.exp
        return self.x + step if is_pos else self.x - step

    def reset(self) -> None:
        self.i = 0

    def set_step(self, i: int) -> float:
        self.i = i
        return self.val()

    def set_x(self, x: float) -> None:
        self.x = x
        self.i = 0

    def __iter__(self) -> "ExpSearchIter":
        return self

    def __next__(self) -> float:
        out = self.val()
        self.i += 1
        return out


def bits_for(n_vars: int, bits: int, budget_bits: int) -> int:
    """Per-variable bit width keeping ``n_vars * bits`` within ``budget_bits``."""

    if n_vars <= 0:
        return bits
    return max(1, min(bits, budget_bits // n_vars))


class SearchSolver:
    """Enumerates ``2**(n*bits)`` guess combinations, keeping the best one."""

    def __init__(
        self,
        params: ExpSearchParams,
        known: Mapping[str, Concrete],
        solve_for: Sequence[str],
        residuals: Sequence[Expression],
        initials: Sequence[float],
    ) -> None:
        if len(initials) != len(solve_for):
            raise ValueError(f"expected {len(solve_for)} initial values, got {len(initials)}")
        self.known = dict(known)
        self.solve_for = list(solve_for)
        self.residuals = list(residuals)
        self.iterators = [ExpSearchIter(params, float(x)) for x in initials]
        self.x = np.array([next(it) for it in self.iterators], dtype=float)
        self.best: Tuple[float, np.ndarray] = (math.inf, self.x.copy())
        self.iteration = 0

    def _score(self) -> float:
        resolver = VarResolver(self.solve_for, self.x, self.known)
        sum_sq = 0.0
        for expr in self.residuals:
            res = min(max(float(expr.evaluate(resolver, 0)), -RESIDUAL_CLAMP), RESIDUAL_CLAMP)
            sum_sq += res * res
        return sum_sq

    def bruteforce(self, bits: int) -> Tuple[float, List[Tuple[str, float]]]:
        total = 2 ** (len(self.solve_for) * bits)
        mask = 2**bits - 1

        while self.iteration < total:
            for i, it in enumerate(self.iterators):
                self.x[i] = it.set_step(mask & (self.iteration >> (i * bits)))
            sum_sq = self._score()
            # nan compares false, so it never replaces the best
            if self.best[0] > sum_sq:
                self.best = (sum_sq, self.x.copy())
            self.iteration += 1

        best_sq, best_x = self.best
        return best_sq, [(name, float(best_x[i])) for i, name in enumerate(self.solve_for)]

    def solve(self, bits: int, accept_error: float = 0.5) -> NumericResult:
        best_sq, found = self.bruteforce(bits)
        values: Dict[str, float] = dict(found)

        resolver = VarResolver(self.solve_for, np.array([v for _, v in found], dtype=float), self.known)
        error = mean_abs(residual_vector(self.residuals, resolver))

        success = math.isfinite(best_sq) and error <= accept_error
        logger.debug(
            "Search over %d combinations: best sum of squares %.6g, mean error %.6g",
            self.iteration,
            best_sq,
            error,
        )
        return NumericResult(
            method="search",
            success=success,
            values=values,
            error=error,
            iterations=self.iteration,
            message="accepted" if success else f"best mean error {error:.6g} above {accept_error}",
        )


apply_debug_logging(globals(), logger=logger, skip=["val", "set_step", "__next__", "_score"])
