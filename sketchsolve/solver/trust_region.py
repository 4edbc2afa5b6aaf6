"""Trust-region least squares over residual expressions (scipy)."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence, Union

import numpy as np
from scipy.optimize import least_squares

from ..errors import NotSupportedError
from ..expression import Expression
from ..logging_utils import apply_debug_logging
from ..numbers import Concrete
from .gradient import build_jacobian, jacobian_value
from .model import NumericResult, TrustRegionParams
from .resolvers import VarResolver, residual_vector

logger = logging.getLogger(__name__)

ResidualFn = Callable[[np.ndarray], np.ndarray]
JacobianFn = Callable[[np.ndarray], np.ndarray]


class TrustRegionSolver:
    """Thin wrapper over ``scipy.optimize.least_squares`` with method ``"trf"``."""

    def __init__(self, params: Optional[TrustRegionParams] = None) -> None:
        self.params = params or TrustRegionParams()

    def solve(
        self,
        residual_fn: ResidualFn,
        jacobian: Union[JacobianFn, str],
        initial_guess: Sequence[float],
    ) -> NumericResult:
        """Minimise ``residual_fn``; ``jacobian`` is a callable or a scipy scheme like ``"2-point"``.

        Returns the converged values, or the best effort with ``success=False``.
        Values are keyed by position (``"0"``, ``"1"``...) for the caller to rename.
        """

        x0 = np.asarray(initial_guess, dtype=float)
        if x0.size == 0:
            return NumericResult(method="trust-region", success=True, values={}, error=0.0)

        opts = self.params
        result = least_squares(
            residual_fn,
            x0,
            jac=jacobian,
            method="trf",
            loss=opts.loss,
            max_nfev=opts.max_nfev,
            ftol=opts.tol,
            xtol=opts.tol,
            gtol=opts.tol,
        )
        final = np.asarray(residual_fn(result.x), dtype=float)
        max_res = float(np.max(np.abs(final))) if final.size else 0.0
        success = max_res <= opts.success_tol
        logger.debug(
            "least_squares finished: status=%s nfev=%s max_res=%.6g", result.status, result.nfev, max_res
        )
        return NumericResult(
            method="trust-region",
            success=success,
            values={str(i): float(v) for i, v in enumerate(result.x)},
            error=max_res,
            iterations=int(result.nfev),
            message=str(result.message),
        )


def minimize(
    known: Mapping[str, Concrete],
    solve_for: Sequence[str],
    residuals: Sequence[Expression],
    initials: Sequence[float],
    params: Optional[TrustRegionParams] = None,
) -> NumericResult:
    """Run :class:`TrustRegionSolver` over expression residuals."""

    params = params or TrustRegionParams()
    names = list(solve_for)
    exprs = list(residuals)

    def residual_fn(x: np.ndarray) -> np.ndarray:
        return residual_vector(exprs, VarResolver(names, x, known))

    jacobian: Union[JacobianFn, str] = "2-point"
    if params.jacobian == "symbolic":
        try:
            entries = build_jacobian(exprs, names)
        except NotSupportedError as exc:
            logger.warning("Falling back to a numeric Jacobian: %s", exc)
        else:

            def jacobian_fn(x: np.ndarray) -> np.ndarray:
                resolver = VarResolver(names, x, known)
                return np.array(
                    [[jacobian_value(entry, resolver) for entry in row] for row in entries],
                    dtype=float,
                ).reshape(len(exprs), len(names))

            jacobian = jacobian_fn
    elif params.jacobian != "2-point":
        jacobian = params.jacobian

    result = TrustRegionSolver(params).solve(residual_fn, jacobian, initials)
    result.values = {names[int(i)]: v for i, v in result.values.items()}
    return result


apply_debug_logging(globals(), logger=logger)
