import logging

from Engine import real_functions as real
from Engine.differentiation import derive
from Engine.errors import DomainError, MathError
from Engine.expression import Expression
from Engine.simplification import simplify

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
# Relative step below which an iterate counts as settled. Evaluation rounds to
# 15 significant digits, so iterates near a root can wobble by a few units there.
ROOT_TOLERANCE = 1e-14
# A return to the iterate two steps back only counts once the steps are this small.
CYCLE_TOLERANCE = 1e-10


def _value_at(tree, variable, x):
    result = tree.evaluate({variable: (x, 0.0)})
    if isinstance(result, Expression):
        raise DomainError(f"No value provided for {result}.")
    return result[0]


def _settled(following, earlier, tolerance=ROOT_TOLERANCE):
    return real.abs_(following - earlier) <= tolerance * max(1.0, real.abs_(earlier))


def newtons_method(tree, start, variable="x"):
    """
    A real root of `tree` near `start`, or NaN when the iteration fails,
    hits a flat tangent, or does not settle within MAX_ITERATIONS steps.

    An iterate settles when it is within ROOT_TOLERANCE of the previous one
    or of the one before that, which also ends a two step cycle between
    neighbouring floats. Wider cycles run out of iterations and give NaN.
    """
    try:
        derivative = simplify(derive(tree, variable))
        root = float(start)
        before = None
        for _ in range(MAX_ITERATIONS):
            slope = _value_at(derivative, variable, root)
            if slope == 0 or real.is_nan(slope):
                return real.NAN
            following = root - real.divide(_value_at(tree, variable, root), slope)
            if real.is_nan(following):
                return real.NAN
            if _settled(following, root):
                return following
            if before is not None and _settled(following, before) and _settled(following, root, CYCLE_TOLERANCE):
                return following
            before, root = root, following
    except MathError as error:
        logger.debug(f"Newton's method on {tree} failed: {error.message}")
        return real.NAN
    logger.debug(f"Newton's method on {tree} did not settle after {MAX_ITERATIONS} iterations")
    return real.NAN
