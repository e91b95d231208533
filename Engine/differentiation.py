import logging

from Engine.errors import DomainError, FunctionError
from Engine.expression import Expression, Operation, check_arity, literal, node, variable
from Engine.simplification import simplify

# --- Logger Setup ---
logger = logging.getLogger(__name__)


def _number(value):
    return literal((float(value), 0.0))


# --- Derivative Computation ---
class Differentiator:
    """
    Symbolic derivatives of expression trees. The result is left unsimplified.

    Without a variable every variable v differentiates to the differential
    leaf dv. With a variable, that variable differentiates to 1 and the
    others to 0, or to dv/dx in implicit mode.
    """

    def __init__(self, variable=None, implicit=False):
        self.variable = variable
        self.implicit = implicit
        self.rules = {
            Operation.IDENTITY: self._identity,
            Operation.ADD: self._sum,
            Operation.SUBTRACT: self._sum,
            Operation.MULTIPLY: self._product,
            Operation.DIVIDE: self._quotient,
            Operation.ABS: self._abs,
            Operation.POW: self._power,
            Operation.EXP: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.MULTIPLY, node(Operation.EXP, u), du)),
            Operation.LN: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.DIVIDE, du, u)),
            Operation.LOG: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.DIVIDE, du, node(
                    Operation.MULTIPLY, node(Operation.LN, _number(10)), u))),
            Operation.SQRT: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.DIVIDE, du, node(
                    Operation.MULTIPLY, _number(2), node(Operation.SQRT, u)))),
            Operation.SIN: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.MULTIPLY, node(Operation.COS, u), du)),
            Operation.COS: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.MULTIPLY, _number(-1), node(Operation.SIN, u), du)),
            Operation.TAN: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.MULTIPLY, node(Operation.SEC, u), node(Operation.SEC, u), du)),
            Operation.CSC: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(
                    Operation.MULTIPLY, _number(-1), node(Operation.CSC, u), node(Operation.COT, u), du)),
            Operation.SEC: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.MULTIPLY, node(Operation.SEC, u), node(Operation.TAN, u), du)),
            Operation.COT: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(
                    Operation.MULTIPLY, _number(-1), node(Operation.CSC, u), node(Operation.CSC, u), du)),
            Operation.ARCSIN: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(Operation.DIVIDE, du, _root_of_one_minus_square(u))),
            Operation.ARCCOS: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(
                    Operation.DIVIDE, node(Operation.MULTIPLY, _number(-1), du), _root_of_one_minus_square(u))),
            Operation.ARCTAN: lambda tree: self._apply_chain_rule(
                tree, lambda u, du: node(
                    Operation.DIVIDE, du, node(Operation.ADD, _number(1), node(Operation.MULTIPLY, u, u)))),
        }

    def run(self, tree):
        return self._differentiate(tree)

    def _apply_chain_rule(self, tree, result_func):
        u = tree.args[0]
        du = self._differentiate(u)
        return result_func(u, du)

    def _differentiate(self, tree):
        rule = self.rules.get(tree.operation)
        if rule is None:
            return self._without_rule(tree)
        if tree.is_leaf:
            return rule(tree)
        check_arity(tree.operation, tree.name, len(tree.args))
        logger.debug(f"Applying the {tree.name} rule")
        return rule(tree.rebuild(self._prepare(arg) for arg in tree.args))

    def _prepare(self, arg):
        """Arguments without a rule of their own are evaluated first, numbers folding to literals."""
        if arg.operation in self.rules:
            return arg
        value = arg.try_evaluate()
        if value is not None:
            return literal(value)
        return arg.evaluate()

    def _without_rule(self, tree):
        if tree.is_number():
            return _number(0)
        evaluation = tree.evaluate()
        if not isinstance(evaluation, Expression):
            return _number(0)
        if evaluation.is_identical_to(tree):
            raise FunctionError(f"Function: {tree.name} is not differentiable.")
        return self._differentiate(evaluation)

    # --- Rules ---
    def _identity(self, tree):
        if tree.is_literal:
            return _number(0)
        name = tree.value
        if not name:
            raise DomainError("Missing operand or argument.")
        if self.variable is None:
            return variable(f"d{name}")
        if name == self.variable:
            return _number(1)
        if self.implicit:
            return node(Operation.DIVIDE, variable(f"d{name}"), variable(f"d{self.variable}"))
        return _number(0)

    def _sum(self, tree):
        return tree.rebuild(self._differentiate(arg) for arg in tree.args)

    def _product(self, tree):
        """(fgh)' = f'gh + fg'h + fgh'"""
        args = tree.args
        derivatives = [self._differentiate(arg) for arg in args]
        terms = []
        for i in range(len(args)):
            factors = [derivatives[j] if i == j else args[j] for j in range(len(args))]
            terms.append(node(Operation.MULTIPLY, *factors))
        return node(Operation.ADD, *terms)

    def _quotient(self, tree):
        u, v = tree.args
        du, dv = self._differentiate(u), self._differentiate(v)
        numerator = node(
            Operation.SUBTRACT,
            node(Operation.MULTIPLY, v, du),
            node(Operation.MULTIPLY, u, dv),
        )
        return node(Operation.DIVIDE, numerator, node(Operation.MULTIPLY, v, v))

    def _abs(self, tree):
        u = tree.args[0]
        du = self._differentiate(u)
        return node(Operation.DIVIDE, node(Operation.MULTIPLY, u, du), node(Operation.ABS, u))

    def _power(self, tree):
        base, exponent = tree.args
        if exponent.is_number():
            # Power Rule: f^c
            reduced = node(Operation.POW, base, node(Operation.SUBTRACT, exponent, _number(1)))
            return node(Operation.MULTIPLY, exponent, reduced, self._differentiate(base))
        # f^g = e^(g ln f)
        logarithm = node(Operation.MULTIPLY, exponent, node(Operation.LN, base))
        return node(Operation.MULTIPLY, node(Operation.POW, base, exponent), self._differentiate(logarithm))


def _root_of_one_minus_square(u):
    return node(Operation.SQRT, node(Operation.SUBTRACT, _number(1), node(Operation.MULTIPLY, u, u)))


def differentiate(tree):
    """Derivative in terms of differentials: x becomes dx, y becomes dy."""
    return Differentiator().run(tree)


def derive(tree, variable, implicit=False):
    """Derivative with respect to `variable`; other variables are constants unless `implicit`."""
    return Differentiator(variable, implicit).run(tree)


def diff(tree, respect_to=None, implicit=None):
    """
    The value of the calculator's diff(f, v, implicit) function: the
    simplified derivative of f. When v is an expression rather than a
    variable, the result is df/dv as a ratio of differentials.
    """
    if respect_to is None:
        return simplify(differentiate(tree))
    if respect_to.is_number():
        raise DomainError("Cannot differentiate with respect to a constant.")
    if respect_to.is_variable:
        if not respect_to.value:
            raise DomainError("Missing operand or argument.")
        implicit_mode = implicit is not None and implicit.try_evaluate() not in (None, (0.0, 0.0))
        return simplify(derive(tree, respect_to.value, implicit=implicit_mode))
    ratio = node(Operation.DIVIDE, simplify(differentiate(tree)), simplify(differentiate(respect_to)))
    return simplify(ratio)
