import logging

import numpy as np

from sketchsolve import Concrete, SubSolver, SubSolverState, parse_expression
from sketchsolve.logging_utils import _safe_repr, debug_log_call


def test_solver_methods_log_entry_and_exit(caplog):
    caplog.set_level(logging.DEBUG, logger="sketchsolve.solver.substitution")
    st = SubSolverState({}, [parse_expression("a = 2")])
    SubSolver().find(st, "a")

    assert "Entering SubSolver.find" in caplog.text
    assert "Exiting SubSolver.find -> 2" in caplog.text


def test_wrapper_is_silent_above_debug(caplog):
    logger = logging.getLogger("sketchsolve.tests.quiet")
    caplog.set_level(logging.INFO, logger=logger.name)

    @debug_log_call(logger)
    def double(x):
        return 2 * x

    assert double(3) == 6
    assert caplog.text == ""


def test_exceptions_are_logged_and_reraised(caplog):
    logger = logging.getLogger("sketchsolve.tests.loud")
    caplog.set_level(logging.DEBUG, logger=logger.name)

    @debug_log_call(logger, name="boom")
    def boom():
        raise KeyError("missing")

    try:
        boom()
    except KeyError:
        pass
    assert "Exception in boom" in caplog.text


def test_safe_repr_summarizes_values():
    assert _safe_repr(parse_expression("a + 1")) == "(a + 1)"
    assert _safe_repr(Concrete(3)) == "3"
    assert _safe_repr(np.zeros(3)) == "ndarray(shape=(3,), dtype=float64), values=[0.0, 0.0, 0.0]"
    assert _safe_repr(list(range(8))) == "[0, 1, 2, 3, 4, ...]"
