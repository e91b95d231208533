"""
Expression trees for the calculator.

A node holds an Operation and a tuple of arguments. Leaves are IDENTITY
nodes whose single argument is either a variable name or a complex pair;
the pair may use the symbolic constants "pi" and "e" in place of a number.
Trees are never mutated: every transformation builds new nodes.
"""

import logging
import re
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from Engine import complex_functions as cf
from Engine.errors import DomainError, FunctionError, MathError, NonrealError, SimplificationError
from Engine.real_functions import E, PI, is_integer, is_nan

logger = logging.getLogger(__name__)

ComplexPair = Tuple[float, float]
Leaf = Union[str, ComplexPair]

DIFFERENTIAL = re.compile(r"d+[a-z]")
CONSTANTS = {"pi": PI, "e": E}


class Operation(Enum):
    IDENTITY = "identity"
    UNSUPPORTED = "unsupported"
    ABS = "abs"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MAX = "max"
    MIN = "min"
    FLOOR = "floor"
    CEIL = "ceil"
    FAC = "fac"
    NPR = "npr"
    NCR = "ncr"
    GCD = "gcd"
    EXP = "exp"
    LN = "ln"
    LOG = "log"
    POW = "pow"
    SQRT = "sqrt"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    CSC = "csc"
    SEC = "sec"
    COT = "cot"
    ARCSIN = "arcsin"
    ARCCOS = "arccos"
    ARCTAN = "arctan"
    ARCCSC = "arccsc"
    ARCSEC = "arcsec"
    ARCCOT = "arccot"
    DIFF = "diff"


FUNCTIONS = {
    Operation.ABS: cf.abs_,
    Operation.ADD: cf.add,
    Operation.SUBTRACT: cf.subtract,
    Operation.MULTIPLY: cf.multiply,
    Operation.DIVIDE: cf.divide,
    Operation.MAX: cf.max_,
    Operation.MIN: cf.min_,
    Operation.FLOOR: cf.floor,
    Operation.CEIL: cf.ceil,
    Operation.FAC: cf.fac,
    Operation.NPR: cf.npr,
    Operation.NCR: cf.ncr,
    Operation.GCD: cf.gcd,
    Operation.EXP: cf.exp,
    Operation.LN: cf.ln,
    Operation.LOG: cf.log,
    Operation.POW: cf.pow_,
    Operation.SQRT: cf.sqrt,
    Operation.SIN: cf.sin,
    Operation.COS: cf.cos,
    Operation.TAN: cf.tan,
    Operation.CSC: cf.csc,
    Operation.SEC: cf.sec,
    Operation.COT: cf.cot,
    Operation.ARCSIN: cf.arcsin,
    Operation.ARCCOS: cf.arccos,
    Operation.ARCTAN: cf.arctan,
    Operation.ARCCSC: cf.arccsc,
    Operation.ARCSEC: cf.arcsec,
    Operation.ARCCOT: cf.arccot,
}

TRIG_OPERATIONS = frozenset({
    Operation.SIN, Operation.COS, Operation.TAN,
    Operation.CSC, Operation.SEC, Operation.COT,
    Operation.ARCSIN, Operation.ARCCOS, Operation.ARCTAN,
    Operation.ARCCSC, Operation.ARCSEC, Operation.ARCCOT,
})

# None means any positive number of arguments.
ARITY = {
    Operation.ADD: None,
    Operation.MULTIPLY: None,
    Operation.MAX: None,
    Operation.MIN: None,
    Operation.GCD: None,
    Operation.SUBTRACT: 2,
    Operation.DIVIDE: 2,
    Operation.NPR: 2,
    Operation.NCR: 2,
    Operation.POW: 2,
}

# Names a user may call, longest first so "arcsin" is reported before "sin".
FUNCTION_NAMES = tuple(sorted(
    [operation.value for operation in FUNCTIONS] + [Operation.DIFF.value],
    key=len,
    reverse=True,
))


def lookup(name: str) -> Optional[Operation]:
    """The operation called `name`, or None for names the calculator does not know."""
    if name in FUNCTION_NAMES:
        return Operation(name)
    return None


def check_arity(operation: Operation, name: str, count: int):
    if operation is Operation.DIFF:
        limit = 3
    else:
        limit = ARITY.get(operation, 1)
    if limit is not None and count > limit:
        raise DomainError(f"Max number of arguments expected for {name}: {limit}.")
    if count == 0 or (limit is not None and operation is not Operation.DIFF and count < limit):
        raise DomainError("Missing operand or argument.")


def as_pair(value) -> ComplexPair:
    """Accepts a pair, a real number or a Python complex as a binding value."""
    if isinstance(value, complex):
        return (value.real, value.imag)
    if isinstance(value, (tuple, list)):
        return (float(value[0]), float(value[1]))
    return (float(value), 0.0)


def format_number(x) -> str:
    """Canonical spelling of one part of a literal."""
    if isinstance(x, str):
        return x
    if is_nan(x):
        return "NaN"
    if x == float("inf"):
        return "Infinity"
    if x == float("-inf"):
        return "-Infinity"
    if is_integer(x) and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def _same_part(a, b) -> bool:
    if isinstance(a, str) or isinstance(b, str):
        return a == b
    return a == b or (is_nan(a) and is_nan(b))


class Expression:
    __slots__ = ("operation", "args", "_name")

    def __init__(self, operation: Operation, args, name: Optional[str] = None):
        self.operation = operation
        self.args = tuple(args)
        self._name = name

    @property
    def name(self) -> str:
        return self._name if self._name is not None else self.operation.value

    def rebuild(self, args) -> "Expression":
        """Same operation and name over new arguments."""
        return Expression(self.operation, args, self._name)

    # Leaf queries

    @property
    def is_leaf(self) -> bool:
        return self.operation is Operation.IDENTITY

    @property
    def value(self) -> Leaf:
        return self.args[0]

    @property
    def is_variable(self) -> bool:
        return self.is_leaf and isinstance(self.args[0], str)

    @property
    def is_literal(self) -> bool:
        return self.is_leaf and not isinstance(self.args[0], str)

    @property
    def is_numeric_literal(self) -> bool:
        """A literal holding an actual number rather than pi or e."""
        return self.is_literal and not isinstance(self.args[0][0], str)

    @property
    def is_differential(self) -> bool:
        return self.is_variable and DIFFERENTIAL.fullmatch(self.args[0]) is not None

    @property
    def leaves(self) -> int:
        if self.is_leaf:
            return 1
        return sum(arg.leaves for arg in self.args)

    # Evaluation

    def evaluate(self, bindings: Optional[Dict[str, object]] = None, degree_mode=False, complex_mode=True):
        """
        Evaluates the tree to a complex pair. Unbound variables are left in
        place, in which case the result is a new, partially evaluated tree.

        Raises:
            DomainError, NonrealError, FunctionError
        """
        bindings = bindings or {}
        if self.is_leaf:
            evaluation = self._evaluate_leaf(bindings)
            if not complex_mode and not isinstance(evaluation, Expression) and evaluation[1] != 0:
                raise NonrealError("Nonreal answer or argument.")
            return evaluation
        if self.operation is Operation.UNSUPPORTED:
            raise FunctionError(f"Function: {self.name} is not supported.")
        check_arity(self.operation, self.name, len(self.args))
        if self.operation is Operation.DIFF:
            return self._evaluate_diff(bindings, degree_mode, complex_mode)

        mapped = [arg.evaluate(bindings, degree_mode, complex_mode) for arg in self.args]
        if any(isinstance(arg, Expression) for arg in mapped):
            return self.rebuild(arg if isinstance(arg, Expression) else literal(arg) for arg in mapped)

        function = FUNCTIONS[self.operation]
        if self.operation in TRIG_OPERATIONS:
            evaluation = function(*mapped, degree_mode=degree_mode)
        else:
            evaluation = function(*mapped)
        if not complex_mode and evaluation[1] != 0:
            raise NonrealError("Nonreal answer or argument.")
        return evaluation

    def _evaluate_leaf(self, bindings):
        value = self.args[0]
        if not isinstance(value, str):
            if isinstance(value[0], str):
                return (CONSTANTS[value[0]], 0.0)
            return value
        if not value:
            raise DomainError("Missing operand or argument.")
        for function_name in FUNCTION_NAMES:
            if function_name in value:
                raise DomainError(f"Use parenthesis around argument of {function_name}.")
        if len(value) > 1 and not DIFFERENTIAL.fullmatch(value):
            raise DomainError(f"Variable: {value} must be a single character.")
        if value not in bindings:
            return self
        if bindings[value] is None:
            raise DomainError(f"No value provided for {value}.")
        return as_pair(bindings[value])

    def _evaluate_diff(self, bindings, degree_mode, complex_mode):
        from Engine.differentiation import diff

        derivative = diff(*self.args)
        return derivative.evaluate(bindings, degree_mode, complex_mode)

    def try_evaluate(self, bindings=None, degree_mode=False, complex_mode=True) -> Optional[ComplexPair]:
        """The numeric value of the tree, or None when it is symbolic or fails to evaluate."""
        try:
            result = self.evaluate(bindings, degree_mode, complex_mode)
        except (MathError, SimplificationError) as error:
            logger.debug("Probe of %s failed: %r", self, error)
            return None
        if isinstance(result, Expression):
            return None
        return result

    def is_number(self) -> bool:
        return self.try_evaluate() is not None

    def is_evaluable(self) -> bool:
        """True when no leaf of the tree is a variable."""
        if self.is_leaf:
            return not self.is_variable
        return all(arg.is_evaluable() for arg in self.args)

    # Structure

    def is_function_of(self, variable: str, only=False) -> bool:
        """
        Whether `variable` appears in the tree. With `only`, whether every
        leaf is either `variable` or a literal.
        """
        if self.is_leaf:
            if self.is_variable:
                return self.args[0] == variable
            return only
        checks = (arg.is_function_of(variable, only) for arg in self.args)
        return all(checks) if only else any(checks)

    def is_identical_to(self, other) -> bool:
        if not isinstance(other, Expression):
            return False
        if self.operation is not other.operation or self.name != other.name:
            return False
        if len(self.args) != len(other.args):
            return False
        if self.is_leaf:
            mine, theirs = self.args[0], other.args[0]
            if isinstance(mine, str) or isinstance(theirs, str):
                return mine == theirs
            return _same_part(mine[0], theirs[0]) and _same_part(mine[1], theirs[1])
        return all(mine.is_identical_to(theirs) for mine, theirs in zip(self.args, other.args))

    def substitute(self, variable: str, tree: "Expression") -> "Expression":
        """Replaces every leaf named `variable` with `tree`."""
        if self.is_leaf:
            return tree if self.is_variable and self.args[0] == variable else self
        return self.rebuild(arg.substitute(variable, tree) for arg in self.args)

    def __eq__(self, other):
        return self.is_identical_to(other)

    def __hash__(self):
        return hash(str(self))

    def __str__(self):
        if self.is_leaf:
            value = self.args[0]
            if isinstance(value, str):
                return value
            return f"[{format_number(value[0])},{format_number(value[1])}]"
        return f"{self.name}({','.join(str(arg) for arg in self.args)})"

    def __repr__(self):
        return f"Expression({self})"


def literal(value) -> Expression:
    """Leaf holding a number, given as a pair, a real or a symbolic constant pair."""
    if isinstance(value, (tuple, list)) and isinstance(value[0], str):
        return Expression(Operation.IDENTITY, [(value[0], float(value[1]))])
    return Expression(Operation.IDENTITY, [as_pair(value)])


def variable(name: str) -> Expression:
    return Expression(Operation.IDENTITY, [name])


def node(operation: Operation, *args: Expression) -> Expression:
    return Expression(operation, args)


def call(name: str, args) -> Expression:
    """A call by name; unknown names become UNSUPPORTED nodes that remember the name."""
    operation = lookup(name)
    if operation is None:
        return Expression(Operation.UNSUPPORTED, args, name=name)
    return Expression(operation, args)
