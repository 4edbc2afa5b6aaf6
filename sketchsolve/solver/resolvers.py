"""Resolvers and small helpers shared by the numeric solvers."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..errors import ResolveError, UnknownVariableError
from ..expression import Expression, Resolver
from ..numbers import Concrete
from .model import SolvePlan

logger = logging.getLogger(__name__)

RESIDUAL_CLAMP = 999999.0


class VarResolver:
    """Resolves known values first, then entries of the current guess vector."""

    def __init__(self, variables: Sequence[str], x: np.ndarray, known: Mapping[str, Concrete]) -> None:
        self.known = known
        self.index = {name: i for i, name in enumerate(variables)}
        self.x = x

    def resolve_variable(self, name: str) -> Concrete:
        value = self.known.get(name)
        if value is not None:
            return value
        idx = self.index.get(name)
        if idx is None:
            raise UnknownVariableError(name)
        return Concrete(float(self.x[idx]))


def _base_key(name: str) -> Tuple[int, int, str]:
    suffix = name[1:]
    if suffix.isdigit() and suffix.isascii():
        return (0, int(suffix), name)
    return (1, 0, name)


def sort_vars_by_base(names: Iterable[str]) -> List[str]:
    """Order ``x3, d10, y3, a`` as ``x3, y3, d10, a``: numeric suffix first, then name."""

    return sorted(set(names), key=_base_key)


def residual_vector(residuals: Sequence[Expression], resolver: Resolver) -> np.ndarray:
    """Evaluate residuals at their first branch; nan maps to +inf, then clamp."""

    fx = np.empty(len(residuals), dtype=float)
    for i, expr in enumerate(residuals):
        fx[i] = float(expr.evaluate(resolver, 0))
    fx[np.isnan(fx)] = np.inf
    return np.clip(fx, -RESIDUAL_CLAMP, RESIDUAL_CLAMP)


def mean_abs(fx: np.ndarray) -> float:
    if fx.size == 0:
        return 0.0
    return float(np.mean(np.abs(fx)))


def closest_solution(
    plan: SolvePlan,
    resolver: Resolver,
    target: Optional[float],
    max_branches: int = 32,
) -> Optional[Concrete]:
    """Pick the branch of ``plan`` nearest ``target``; branch 0 without a target."""

    branches = plan.num_solutions()
    if branches == 1 or target is None:
        try:
            return plan.evaluate(resolver, 0)
        except ResolveError as exc:
            logger.debug("Plan evaluation failed: %s", exc)
            return None
    if branches > max_branches:
        logger.debug("Skipping plan with %d solution branches", branches)
        return None

    best: Optional[Tuple[float, Concrete]] = None
    for which in range(branches):
        try:
            value = plan.evaluate(resolver, which)
        except ResolveError:
            continue
        if not value.is_finite:
            continue
        distance = abs(float(value) - target)
        if math.isnan(distance):
            continue
        if best is None or distance < best[0]:
            best = (distance, value)
    return best[1] if best is not None else None
