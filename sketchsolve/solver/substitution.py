"""Iterative substitution solver.

Equations are indexed by the variable they define.  Each pass tries to
resolve an unknown from a candidate whose references are all resolved,
cheapest candidate first; when no candidate works the solver rearranges
equations whose left-hand variable is already known.  Whatever is left
unresolved is exposed as residual expressions for the numeric solvers.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..derivative import as_residual
from ..errors import CannotSolveError, ResolveError, UnknownVariableError
from ..expression import Difference, Equal, Expression, Integer, Sum, Variable
from ..logging_utils import apply_debug_logging
from ..numbers import Concrete
from ..rearrange import make_subject
from ..simplify import simplify
from .model import (
    ConcretePlan,
    EquivalentExpressions,
    ExpressionInfo,
    RemainingResidual,
    SolvePlan,
    SubstitutedPlan,
)
from .resolvers import sort_vars_by_base

logger = logging.getLogger(__name__)

SolutionCallback = Callable[["SubSolverState", str, SolvePlan], Tuple[bool, Optional[Concrete]]]


def _rearrange_zero_form(equation: Equal) -> Optional[Tuple[str, Expression]]:
    """Rearrange ``0 = expr`` for the first variable that can be isolated."""

    for name in equation.right.variables():
        rearranged = make_subject(equation, Variable(name))
        if rearranged is not None:
            return name, rearranged.right
    return None


class SubSolverState:
    """Resolved values and the per-variable equation index for one solve."""

    def __init__(
        self,
        values: Mapping[str, Union[Concrete, int, float]],
        equations: Iterable[Expression],
    ) -> None:
        self.done_substitution = False
        self.vars_by_eq: Dict[str, EquivalentExpressions] = {}
        # (variable, candidate hash) -> zero form of the equation it was rearranged from
        self.zero_forms: Dict[Tuple[str, int], Expression] = {}
        self.resolved: Dict[str, SolvePlan] = {
            name: ConcretePlan(value if isinstance(value, Concrete) else Concrete(value))
            for name, value in values.items()
        }

        for equation in equations:
            if not isinstance(equation, Equal):
                raise ValueError(f"expected an equation, got {equation}")
            entry = self._index_entry(equation)
            if entry is None:
                logger.warning("Ignoring equation that isolates no variable: %s", equation)
                continue
            name, expr, zero_form = entry
            info = ExpressionInfo.from_expression(expr)
            pushed = self.vars_by_eq.setdefault(name, EquivalentExpressions()).push(info)
            if pushed and zero_form is not None:
                self.zero_forms[(name, info.expr_hash)] = zero_form

    @staticmethod
    def _index_entry(equation: Equal) -> Optional[Tuple[str, Expression, Optional[Expression]]]:
        lhs, rhs = equation.left, equation.right
        if isinstance(lhs, Variable):
            return lhs.name, rhs, None
        if lhs != Integer(0):
            equation = Equal(Integer(0), simplify(Difference(rhs, lhs)))
        rearranged = _rearrange_zero_form(equation)
        if rearranged is None:
            return None
        name, expr = rearranged
        return name, expr, as_residual(equation)

    def resolve_variable(self, name: str) -> Concrete:
        plan = self.resolved.get(name)
        if isinstance(plan, ConcretePlan):
            return plan.value
        raise UnknownVariableError(name)

    def is_concrete(self, name: str) -> bool:
        return isinstance(self.resolved.get(name), ConcretePlan)


class SubSolver:
    """Resolves variables of a :class:`SubSolverState` by substitution."""

    def _solve_using_known(self, st: SubSolverState, var: str, info: ExpressionInfo) -> SolvePlan:
        expr = info.expr
        for dependent in info.references:
            plan = st.resolved.get(dependent)
            if plan is None:
                raise CannotSolveError(var)
            if isinstance(plan, SubstitutedPlan):
                expr = expr.substitute(dependent, plan.info.expr)

        out = ExpressionInfo(expr=expr, cost=info.cost, expr_hash=info.expr_hash, references=info.references)
        if var in st.resolved:
            return SubstitutedPlan(out)

        if expr.num_solutions() == 1:
            try:
                value = expr.evaluate(st, 0)
            except UnknownVariableError:
                value = None
            except ResolveError as exc:
                logger.debug("Candidate %s for %s failed to evaluate: %s", expr, var, exc)
                raise CannotSolveError(var) from exc
            if value is not None and value.is_finite:
                concrete = ConcretePlan(value)
                st.resolved[var] = concrete
                return concrete

        substituted = SubstitutedPlan(out)
        st.resolved[var] = substituted
        return substituted

    def _rearrange_candidate(self, st: SubSolverState, var: str) -> ExpressionInfo:
        target = Variable(var)
        for lhs_var, ee in st.vars_by_eq.items():
            if lhs_var not in st.resolved:
                continue
            for info in ee:
                if var not in info.references:
                    continue
                if any(ref != var and ref not in st.resolved for ref in info.references):
                    continue
                rearranged = make_subject(Equal(Variable(lhs_var), info.expr), target)
                if rearranged is not None:
                    return ExpressionInfo.from_expression(rearranged.right)
        raise CannotSolveError(var)

    def all_vars(self, st: SubSolverState) -> List[str]:
        names: List[str] = list(st.vars_by_eq)
        for ee in st.vars_by_eq.values():
            for info in ee:
                names.extend(info.references)
        names.extend(st.resolved)
        return sort_vars_by_base(names)

    def _advance(self, st: SubSolverState, variables: List[str]) -> bool:
        for var in variables:
            if var in st.resolved or var not in st.vars_by_eq:
                continue
            for info in list(st.vars_by_eq[var]):
                try:
                    self._solve_using_known(st, var, info)
                except CannotSolveError:
                    continue
                return True

        for var in variables:
            if var in st.resolved:
                continue
            try:
                info = self._rearrange_candidate(st, var)
                self._solve_using_known(st, var, info)
            except CannotSolveError:
                continue
            return True
        return False

    def try_solve(self, st: SubSolverState) -> List[str]:
        variables = self.all_vars(st)
        if st.done_substitution:
            return variables

        for _ in range(len(variables)):
            if not self._advance(st, variables):
                break

        st.done_substitution = True
        logger.debug(
            "Substitution finished: %d of %d variables planned", len(st.resolved), len(variables)
        )
        return variables

    def walk_solutions(self, st: SubSolverState, callback: SolutionCallback) -> None:
        """Call ``callback(state, variable, plan)`` for every planned variable.

        The callback returns ``(keep_going, chosen)``; a chosen exact value, or
        a normal float, becomes the variable's concrete plan.
        """

        for var in self.try_solve(st):
            plan = st.resolved.get(var)
            if plan is None:
                continue
            keep_going, chosen = callback(st, var, plan)
            if chosen is not None and chosen.is_normal:
                st.resolved[var] = ConcretePlan(chosen)
            if not keep_going:
                return

    def find(self, st: SubSolverState, var: str) -> Concrete:
        found: List[Concrete] = []

        def _pick(state: SubSolverState, name: str, plan: SolvePlan) -> Tuple[bool, Optional[Concrete]]:
            if name != var:
                return True, None
            value = plan.evaluate(state, 0)
            found.append(value)
            return False, value

        self.walk_solutions(st, _pick)
        if not found:
            raise CannotSolveError(var)
        return found[0]

    def all_concrete_results(self, st: SubSolverState) -> Tuple[Dict[str, Concrete], List[str]]:
        values: Dict[str, Concrete] = {}
        unresolved: List[str] = []
        for var in self.try_solve(st):
            plan = st.resolved.get(var)
            if isinstance(plan, ConcretePlan):
                values[var] = plan.value
            else:
                unresolved.append(var)
        return values, unresolved

    def all_residuals(self, st: SubSolverState) -> List[Expression]:
        """One residual per distinct equation that is not fully concrete.

        Equations given in zero form keep that form, so every root stays
        reachable; the others become ``var - expr``.
        """

        self.try_solve(st)
        seen = set()
        out: List[Tuple[int, Expression]] = []
        for for_var, ee in st.vars_by_eq.items():
            for info in ee:
                if st.is_concrete(for_var) and all(st.is_concrete(ref) for ref in info.references):
                    continue
                residual = st.zero_forms.get((for_var, info.expr_hash))
                if residual is None:
                    residual = Difference(Variable(for_var), info.expr)
                digest = residual.content_hash()
                if digest in seen:
                    continue
                seen.add(digest)
                out.append((digest, residual))
        out.sort(key=lambda item: item[0])
        return [residual for _, residual in out]

    def all_remaining_residuals(self, st: SubSolverState) -> Dict[str, RemainingResidual]:
        """Per unresolved variable, the sum of every candidate that isolates it."""

        out: Dict[str, RemainingResidual] = {}
        for var in self.try_solve(st):
            if st.is_concrete(var):
                continue
            target = Variable(var)
            seen = set()
            combined: Optional[Expression] = None
            count = 0
            for for_var, ee in st.vars_by_eq.items():
                for info in ee:
                    if var not in info.references:
                        continue
                    rearranged = make_subject(Equal(Variable(for_var), info.expr), target)
                    if rearranged is None:
                        continue
                    digest = rearranged.right.content_hash()
                    if digest in seen:
                        continue
                    seen.add(digest)
                    combined = rearranged.right if combined is None else Sum(combined, rearranged.right)
                    count += 1
            if combined is not None:
                out[var] = RemainingResidual(variable=var, count=count, combined=combined)
        return out


apply_debug_logging(globals(), logger=logger, skip=["resolve_variable", "is_concrete"])
