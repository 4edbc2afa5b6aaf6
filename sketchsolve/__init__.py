from .errors import (
    CannotSolveError,
    DivisionByZeroError,
    NotSupportedError,
    PowerError,
    ResolveError,
    UnknownVariableError,
)
from .numbers import Concrete
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
    StaticResolver,
    Substitution,
    Sum,
    Variable,
)
from .simplify import simplify
from .rearrange import ReverseOp, ReverseOpKind, make_subject, raise_for
from .derivative import as_residual, derivative
from .parser import parse_equations, parse_expression
from .terms import TermAllocator, TermRef, TermType
from .solver import (
    SolveOptions,
    SubSolver,
    SubSolverState,
    SystemSolution,
    NumericResult,
    get_numeric_config,
    set_numeric_config,
    solve_system,
)

__all__ = [
    'Abs',
    'CannotSolveError',
    'Concrete',
    'Difference',
    'DivisionByZeroError',
    'Equal',
    'Expression',
    'Integer',
    'Neg',
    'NotSupportedError',
    'NumericResult',
    'PowerError',
    'Power',
    'Product',
    'Quotient',
    'Rational',
    'ResolveError',
    'ReverseOp',
    'ReverseOpKind',
    'SolveOptions',
    'Sqrt',
    'StaticResolver',
    'SubSolver',
    'SubSolverState',
    'Substitution',
    'Sum',
    'SystemSolution',
    'TermAllocator',
    'TermRef',
    'TermType',
    'UnknownVariableError',
    'Variable',
    'as_residual',
    'derivative',
    'get_numeric_config',
    'make_subject',
    'parse_equations',
    'parse_expression',
    'raise_for',
    'set_numeric_config',
    'simplify',
    'solve_system',
]
