"""Core data structures for the solver pipeline."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ..expression import Difference, Expression, Integer, Product, Resolver, Variable, constant
from ..numbers import Concrete
from ..simplify import simplify

# Penalty added to an expression's cost for each distinct variable it references.
VARIABLE_PENALTY = 50


@dataclass(frozen=True)
class ExpressionInfo:
    """Expression annotated with its solve cost, content hash and references."""

    expr: Expression
    cost: int
    expr_hash: int
    references: Dict[str, int] = field(compare=False, hash=False)

    @classmethod
    def from_expression(cls, expr: Expression) -> "ExpressionInfo":
        references = expr.variables()
        cost = expr.cost() * expr.num_solutions() + VARIABLE_PENALTY * len(references)
        return cls(expr=expr, cost=cost, expr_hash=expr.content_hash(), references=references)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.cost, self.expr_hash)

    def __lt__(self, other: "ExpressionInfo") -> bool:
        return self.sort_key < other.sort_key


class EquivalentExpressions:
    """Right-hand sides defining the same variable, cheapest first."""

    def __init__(self) -> None:
        self.exprs: List[ExpressionInfo] = []
        self.seen: set = set()

    def push(self, info: ExpressionInfo) -> bool:
        if info.expr_hash in self.seen:
            return False
        self.seen.add(info.expr_hash)
        bisect.insort(self.exprs, info)
        return True

    def __iter__(self) -> Iterator[ExpressionInfo]:
        return iter(self.exprs)

    def __len__(self) -> int:
        return len(self.exprs)


@dataclass(frozen=True)
class ConcretePlan:
    value: Concrete

    def num_solutions(self) -> int:
        return 1

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return self.value

    def expression(self) -> Expression:
        return constant(Fraction(self.value.value), as_fraction=self.value.is_rational)


@dataclass(frozen=True)
class SubstitutedPlan:
    info: ExpressionInfo

    def num_solutions(self) -> int:
        return self.info.expr.num_solutions()

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return self.info.expr.evaluate(resolver, which)

    def expression(self) -> Expression:
        return self.info.expr


SolvePlan = Union[ConcretePlan, SubstitutedPlan]


@dataclass(frozen=True)
class RemainingResidual:
    """Candidate expressions for an unresolved variable, summed together."""

    variable: str
    count: int
    combined: Expression

    def expression(self) -> Expression:
        """``count * variable - combined``; zero when every candidate agrees."""

        return simplify(Difference(Product(Integer(self.count), Variable(self.variable)), self.combined))


@dataclass
class GradientParams:
    max_iter: int = 450
    step_mul: float = -0.99
    momentum_step: float = 0.5
    momentum_div: float = 2.0
    momentum_windup: float = 0.15
    terminate_at: float = 8e-4
    initial_guess: float = -8.001


@dataclass
class ExpSearchParams:
    step: float = 0.707
    exp: float = 1.33

    def reduce(self) -> None:
        self.step /= 10.0
        self.exp = max(1.0, self.exp - 0.003)


@dataclass
class SearchOptions:
    bits: int = 6
    budget_bits: int = 12
    accept_error: float = 0.5


@dataclass
class TrustRegionParams:
    tol: float = 1e-10
    max_nfev: int = 2000
    loss: str = "linear"
    jacobian: str = "symbolic"
    success_tol: float = 1e-6


@dataclass
class NumericConfig:
    gradient: GradientParams = field(default_factory=GradientParams)
    search: ExpSearchParams = field(default_factory=ExpSearchParams)
    search_options: SearchOptions = field(default_factory=SearchOptions)
    trust_region: TrustRegionParams = field(default_factory=TrustRegionParams)


NUMERIC_STRATEGIES = ("auto", "gradient", "search", "trust-region", "none")


@dataclass
class SolveOptions:
    numeric: str = "auto"
    max_branches: int = 32
    config: Optional[NumericConfig] = None

    def __post_init__(self) -> None:
        if self.numeric not in NUMERIC_STRATEGIES:
            raise ValueError(
                f"unknown numeric strategy {self.numeric!r}; expected one of {', '.join(NUMERIC_STRATEGIES)}"
            )


@dataclass
class NumericResult:
    """Outcome of a numeric solve: converged values or the best guess found."""

    method: str
    success: bool
    values: Dict[str, float]
    error: float
    iterations: int = 0
    message: str = ""


@dataclass
class SystemSolution:
    values: Dict[str, Concrete]
    unresolved: List[str]
    residuals: Dict[str, RemainingResidual]
    numeric: Optional[NumericResult]
    success: bool
    warnings: List[str] = field(default_factory=list)

    def as_floats(self) -> Dict[str, float]:
        return {name: float(value) for name, value in self.values.items()}
