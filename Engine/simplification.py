import logging

from Engine import complex_functions as cf
from Engine import real_functions as real
from Engine.errors import SimplificationError
from Engine.expression import Expression, Operation, literal, node

# --- Logger Setup ---
logger = logging.getLogger(__name__)

MAX_PASSES = 100
# Numeric results this close to a Gaussian integer become that integer.
FOLD_DIGITS = 16

ZERO = (0.0, 0.0)
ONE = (1.0, 0.0)
MINUS_ONE = (-1.0, 0.0)


def simplify(tree, factor=False):
    return Simplifier(factor=factor).run(tree)


# --- Tree queries ---
def _is_value(tree, value):
    return tree.is_numeric_literal and cf.is_equal(tree.value, value)


def _is_real_integer_literal(tree):
    return tree.is_numeric_literal and tree.value[1] == 0 and real.is_integer(tree.value[0])


def _group(operation, items):
    if not items:
        return literal(ZERO if operation is Operation.ADD else ONE)
    if len(items) == 1:
        return items[0]
    return Expression(operation, items)


def _flatten(operation, args):
    flattened = []
    for arg in args:
        if arg.operation is operation:
            flattened.extend(arg.args)
        else:
            flattened.append(arg)
    return flattened


def _split_term(term):
    """(coefficient, rest) for a term of a sum; rest is None for a bare number."""
    if term.is_numeric_literal:
        return term.value, None
    if term.operation is Operation.MULTIPLY and term.args[0].is_numeric_literal:
        return term.args[0].value, _group(Operation.MULTIPLY, list(term.args[1:]))
    return ONE, term


def _make_term(coefficient, rest):
    if cf.is_equal(coefficient, ZERO):
        return None
    if cf.is_equal(coefficient, ONE):
        return rest
    if rest.operation is Operation.MULTIPLY:
        return node(Operation.MULTIPLY, literal(coefficient), *rest.args)
    return node(Operation.MULTIPLY, literal(coefficient), rest)


def _as_power(factor):
    """(base, exponent) of a factor of a product."""
    if factor.operation is Operation.POW and len(factor.args) == 2:
        return factor.args[0], factor.args[1]
    return factor, literal(ONE)


def _from_power(base, exponent):
    if _is_value(exponent, ZERO):
        return None
    if _is_value(exponent, ONE):
        return base
    return node(Operation.POW, base, exponent)


def _factor_list(tree):
    """Splits a product into its numeric coefficient and a list of [base, exponent] pairs."""
    factors = list(tree.args) if tree.operation is Operation.MULTIPLY else [tree]
    coefficient = ONE
    powers = []
    for factor in factors:
        if factor.is_numeric_literal:
            coefficient = cf.multiply(coefficient, factor.value)
        else:
            powers.append(list(_as_power(factor)))
    return coefficient, powers


def _from_factor_list(coefficient, powers):
    factors = [] if cf.is_equal(coefficient, ONE) else [literal(coefficient)]
    for base, exponent in powers:
        factor = _from_power(base, exponent)
        if factor is not None:
            factors.append(factor)
    return _group(Operation.MULTIPLY, factors)


def _leading_coefficient(tree):
    if tree.is_numeric_literal:
        return tree.value
    if tree.operation is Operation.MULTIPLY and tree.args[0].is_numeric_literal:
        return tree.args[0].value
    if tree.operation is Operation.ADD:
        return _leading_coefficient(tree.args[0])
    return ONE


def _sort_key(term, constants_first):
    """
    Differentials come first. Constants go first in products and last in
    sums. The sign of a coefficient never changes the order, so negating a
    sum cannot reorder it.
    """
    constant = term.is_literal
    evaluable = term.is_evaluable()
    if constants_first:
        constant, evaluable = not constant, not evaluable
    rest = _split_term(term)[1]
    return (not term.is_differential, constant, evaluable, term.leaves, str(rest), str(term))


# --- Expression Simplifier ---
class Simplifier:
    """
    Rewrites a tree bottom-up, one pass at a time, until a pass changes
    nothing. Each rule may return a tree that is only partly simplified;
    the next pass picks it up.

    With `factor`, products are not distributed over sums and a power of a
    base shared by two terms of a sum is pulled out instead.
    """

    def __init__(self, factor=False):
        self.factor = factor
        self.rules = {
            Operation.ADD: self._add,
            Operation.SUBTRACT: self._subtract,
            Operation.MULTIPLY: self._multiply,
            Operation.DIVIDE: self._divide,
            Operation.POW: self._pow,
        }

    def run(self, tree):
        current = tree
        for passes in range(1, MAX_PASSES + 1):
            result = self._simplify(current)
            if result.is_identical_to(current):
                logger.debug(f"Simplified {tree} to {result} in {passes} pass(es)")
                return result
            current = result
        logger.error(f"Simplification of {tree} did not settle after {MAX_PASSES} passes")
        raise SimplificationError(f"Simplification of {tree} did not converge.")

    def _simplify(self, tree):
        if tree.is_leaf:
            return tree
        args = [self._simplify(arg) for arg in tree.args]
        rebuilt = tree.rebuild(args)
        folded = self._fold(rebuilt)
        if folded is not None:
            return folded
        rule = self.rules.get(tree.operation)
        arity = 2 if tree.operation in (Operation.SUBTRACT, Operation.DIVIDE, Operation.POW) else None
        if rule is None or not args or (arity is not None and len(args) != arity):
            return rebuilt
        return rule(args)

    @staticmethod
    def _fold(tree):
        """Numeric subtrees whose value is a Gaussian integer collapse to that literal."""
        value = tree.try_evaluate()
        if value is None:
            return None
        if real.is_nan(value[0]) and real.is_nan(value[1]):
            return literal((real.NAN, real.NAN))
        rounded = cf.round_(value, FOLD_DIGITS)
        if real.is_integer(rounded[0]) and real.is_integer(rounded[1]):
            return literal(rounded)
        return None

    def _negate(self, term):
        if term.is_numeric_literal:
            return literal(cf.multiply(MINUS_ONE, term.value))
        if term.operation is Operation.MULTIPLY and term.args[0].is_numeric_literal:
            coefficient = cf.multiply(MINUS_ONE, term.args[0].value)
            if cf.is_equal(coefficient, ONE):
                return _group(Operation.MULTIPLY, list(term.args[1:]))
            return node(Operation.MULTIPLY, literal(coefficient), *term.args[1:])
        if term.operation is Operation.ADD:
            return node(Operation.ADD, *[self._negate(arg) for arg in term.args])
        if term.operation is Operation.DIVIDE and len(term.args) == 2:
            return node(Operation.DIVIDE, self._negate(term.args[0]), term.args[1])
        return node(Operation.MULTIPLY, literal(MINUS_ONE), term)

    # --- Sums ---
    def _add(self, args):
        terms = [term for term in _flatten(Operation.ADD, args) if not _is_value(term, ZERO)]
        numbers = [term.value for term in terms if term.is_numeric_literal]
        terms = [term for term in terms if not term.is_numeric_literal]
        if numbers:
            total = cf.add(*numbers)
            if not cf.is_equal(total, ZERO):
                terms.append(literal(total))

        # a + b/c + d/e = (ace + be + dc) / (ce), all fractions in one step
        fractions = [term for term in terms if term.operation is Operation.DIVIDE and len(term.args) == 2]
        if fractions and len(terms) > 1:
            others = [term for term in terms if not (term.operation is Operation.DIVIDE and len(term.args) == 2)]
            denominators = [fraction.args[1] for fraction in fractions]
            scaled = [node(Operation.MULTIPLY, other, *denominators) for other in others]
            for index, fraction in enumerate(fractions):
                rest = denominators[:index] + denominators[index + 1:]
                scaled.append(_group(Operation.MULTIPLY, [fraction.args[0]] + rest))
            return node(Operation.DIVIDE, node(Operation.ADD, *scaled), _group(Operation.MULTIPLY, denominators))

        terms = self._combine_like_terms(terms)
        if self.factor:
            terms = self._factor_common(terms)
        return _group(Operation.ADD, sorted(terms, key=lambda term: _sort_key(term, constants_first=False)))

    @staticmethod
    def _combine_like_terms(terms):
        """2x + 3x = 5x. Terms match when everything but the numeric coefficient is identical."""
        terms = list(terms)
        merged = True
        while merged:
            merged = False
            for i in range(len(terms)):
                coefficient_i, rest_i = _split_term(terms[i])
                if rest_i is None:
                    continue
                for j in range(i + 1, len(terms)):
                    coefficient_j, rest_j = _split_term(terms[j])
                    if rest_j is None or not rest_i.is_identical_to(rest_j):
                        continue
                    combined = _make_term(cf.add(coefficient_i, coefficient_j), rest_i)
                    terms = [term for k, term in enumerate(terms) if k not in (i, j)]
                    if combined is not None:
                        terms.append(combined)
                    merged = True
                    break
                if merged:
                    break
        return terms

    @staticmethod
    def _factor_common(terms):
        """x^2 + 3x = x(x + 3). Pulls out one power of one shared non-constant base."""
        for i in range(len(terms)):
            coefficient_i, powers_i = _factor_list(terms[i])
            for j in range(i + 1, len(terms)):
                coefficient_j, powers_j = _factor_list(terms[j])
                for base_i, exponent_i in powers_i:
                    if base_i.is_evaluable() or not _is_at_least_one(exponent_i):
                        continue
                    for base_j, exponent_j in powers_j:
                        if not base_j.is_identical_to(base_i) or not _is_at_least_one(exponent_j):
                            continue
                        remaining = node(
                            Operation.ADD,
                            _without_one_power(coefficient_i, powers_i, base_i),
                            _without_one_power(coefficient_j, powers_j, base_j),
                        )
                        factored = node(Operation.MULTIPLY, base_i, remaining)
                        return [term for k, term in enumerate(terms) if k not in (i, j)] + [factored]
        return terms

    def _subtract(self, args):
        minuend, subtrahend = args
        if minuend.is_identical_to(subtrahend):
            return literal(ZERO)
        return self._add([minuend, self._negate(subtrahend)])

    # --- Products ---
    def _multiply(self, args):
        factors = [factor for factor in _flatten(Operation.MULTIPLY, args) if not _is_value(factor, ONE)]
        if any(_is_value(factor, ZERO) for factor in factors):
            return literal(ZERO)
        numbers = [factor.value for factor in factors if factor.is_numeric_literal]
        factors = [factor for factor in factors if not factor.is_numeric_literal]
        coefficient = cf.multiply(*numbers) if numbers else ONE
        leading = [] if cf.is_equal(coefficient, ONE) else [literal(coefficient)]

        # fractions are pulled out before distributing so a quotient never spreads over a sum
        fractions = [factor for factor in factors if factor.operation is Operation.DIVIDE and len(factor.args) == 2]
        if fractions:
            others = [factor for factor in factors if not (factor.operation is Operation.DIVIDE and len(factor.args) == 2)]
            numerator = _group(Operation.MULTIPLY, leading + others + [fraction.args[0] for fraction in fractions])
            denominator = _group(Operation.MULTIPLY, [fraction.args[1] for fraction in fractions])
            return node(Operation.DIVIDE, numerator, denominator)

        if not self.factor:
            for index, factor in enumerate(factors):
                if factor.operation is Operation.ADD:
                    others = leading + factors[:index] + factors[index + 1:]
                    return node(Operation.ADD, *[_group(Operation.MULTIPLY, others + [term]) for term in factor.args])

        factors = self._combine_powers(factors)
        factors = self._combine_numeric_bases(factors)
        factors = leading + factors
        return _group(Operation.MULTIPLY, sorted(factors, key=lambda factor: _sort_key(factor, constants_first=True)))

    def _combine_powers(self, factors):
        """x^a * x^b = x^(a+b)"""
        groups = []
        for factor in factors:
            base, exponent = _as_power(factor)
            for group in groups:
                if group[0].is_identical_to(base):
                    group[1].append(exponent)
                    group[2] = None
                    break
            else:
                groups.append([base, [exponent], factor])
        combined = []
        for base, exponents, original in groups:
            if original is not None:
                combined.append(original)
                continue
            result = _from_power(base, self._simplify(node(Operation.ADD, *exponents)))
            if result is not None:
                combined.append(result)
        return combined

    @staticmethod
    def _combine_numeric_bases(factors):
        """2^x * 3^x = 6^x for positive real bases."""
        factors = list(factors)
        merged = True
        while merged:
            merged = False
            for i in range(len(factors)):
                if not _is_positive_base_power(factors[i]):
                    continue
                for j in range(i + 1, len(factors)):
                    if not _is_positive_base_power(factors[j]):
                        continue
                    if not factors[i].args[1].is_identical_to(factors[j].args[1]):
                        continue
                    base = cf.multiply(factors[i].args[0].value, factors[j].args[0].value)
                    power = node(Operation.POW, literal(base), factors[i].args[1])
                    factors = [factor for k, factor in enumerate(factors) if k not in (i, j)] + [power]
                    merged = True
                    break
                if merged:
                    break
        return factors

    # --- Quotients ---
    def _divide(self, args):
        numerator, denominator = args
        if _is_value(numerator, ZERO) and not _is_value(denominator, ZERO):
            return literal(ZERO)
        if _is_value(denominator, ONE):
            return numerator
        if numerator.is_identical_to(denominator) and not _is_value(denominator, ZERO):
            return literal(ONE)

        if _is_real_integer_literal(numerator) and _is_real_integer_literal(denominator):
            return self._reduce_fraction(numerator, denominator)

        if numerator.operation is Operation.DIVIDE and len(numerator.args) == 2:
            return node(Operation.DIVIDE, numerator.args[0], node(Operation.MULTIPLY, numerator.args[1], denominator))
        if denominator.operation is Operation.DIVIDE and len(denominator.args) == 2:
            return node(Operation.DIVIDE, node(Operation.MULTIPLY, numerator, denominator.args[1]), denominator.args[0])

        leading = _leading_coefficient(denominator)
        if leading[1] == 0 and leading[0] < 0:
            return node(Operation.DIVIDE, self._negate(numerator), self._negate(denominator))

        cancelled = self._cancel(numerator, denominator)
        if cancelled is not None:
            return cancelled
        return node(Operation.DIVIDE, numerator, denominator)

    @staticmethod
    def _reduce_fraction(numerator, denominator):
        """6/-4 = -3/2"""
        top, bottom = numerator.value[0], denominator.value[0]
        if bottom == 0:
            return node(Operation.DIVIDE, numerator, denominator)
        divisor = real.gcd(top, bottom)
        if bottom < 0:
            divisor = -divisor
        if divisor == 1:
            return node(Operation.DIVIDE, numerator, denominator)
        return node(Operation.DIVIDE, literal(top / divisor), literal(bottom / divisor))

    def _cancel(self, numerator, denominator):
        """x^3 y / (2x) = x^2 y / 2. Identical bases cancel by subtracting exponents."""
        top_coefficient, top = _factor_list(numerator)
        bottom_coefficient, bottom = _factor_list(denominator)
        changed = False

        if cf.is_real(top_coefficient) and cf.is_real(bottom_coefficient):
            a, b = top_coefficient[0], bottom_coefficient[0]
            if real.is_integer(a) and real.is_integer(b) and a != 0 and b != 0:
                divisor = real.gcd(a, b)
                if divisor != 1:
                    top_coefficient, bottom_coefficient = (a / divisor, 0.0), (b / divisor, 0.0)
                    changed = True

        for top_power in top:
            for bottom_power in bottom:
                if not top_power[0].is_identical_to(bottom_power[0]):
                    continue
                if _is_value(bottom_power[1], ZERO) or _is_value(top_power[1], ZERO):
                    continue
                top_exponent, bottom_exponent = top_power[1], bottom_power[1]
                if top_exponent.is_numeric_literal and bottom_exponent.is_numeric_literal:
                    difference = cf.subtract(top_exponent.value, bottom_exponent.value)
                    if cf.is_real(difference) and difference[0] < 0:
                        top_power[1] = literal(ZERO)
                        bottom_power[1] = literal(cf.multiply(MINUS_ONE, difference))
                    else:
                        top_power[1] = literal(difference)
                        bottom_power[1] = literal(ZERO)
                else:
                    top_power[1] = node(Operation.SUBTRACT, top_exponent, bottom_exponent)
                    bottom_power[1] = literal(ZERO)
                changed = True
                break

        if not changed:
            return None
        return node(
            Operation.DIVIDE,
            _from_factor_list(top_coefficient, top),
            _from_factor_list(bottom_coefficient, bottom),
        )

    # --- Powers ---
    def _pow(self, args):
        base, exponent = args
        if _is_value(base, ZERO) and not (exponent.is_numeric_literal and not _is_positive_real(exponent.value)):
            return literal(ZERO)
        if _is_value(exponent, ZERO) and not _is_value(base, ZERO):
            return literal(ONE)
        if _is_value(base, ONE) and not (exponent.is_numeric_literal and not _is_finite(exponent.value)):
            return literal(ONE)
        if _is_value(exponent, ONE):
            return base
        return node(Operation.POW, base, exponent)


def _is_positive_real(value):
    return value[1] == 0 and value[0] > 0


def _is_finite(value):
    return all(not real.is_nan(part) and real.abs_(part) != real.INF for part in value)


def _is_at_least_one(exponent):
    return exponent.is_numeric_literal and exponent.value[1] == 0 and exponent.value[0] >= 1


def _is_positive_base_power(factor):
    return (
        factor.operation is Operation.POW
        and len(factor.args) == 2
        and factor.args[0].is_numeric_literal
        and _is_positive_real(factor.args[0].value)
        and not _is_value(factor.args[1], ONE)
    )


def _without_one_power(coefficient, powers, base):
    """The term described by (coefficient, powers) with one power of `base` divided out."""
    reduced = []
    done = False
    for power_base, exponent in powers:
        if not done and power_base.is_identical_to(base):
            exponent = literal(cf.subtract(exponent.value, ONE))
            done = True
        reduced.append((power_base, exponent))
    return _from_factor_list(coefficient, reduced)
