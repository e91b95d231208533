"""
Real valued functions constructed from Taylor series and domain extension.

Argument reduction is used to evaluate every series near its center, so the
module never calls into a host math library. Ranges may seem arbitrary, but
they are picked for speed and accuracy.

Only the counting functions (fac, npr, ncr) raise; everything else answers
NaN or an infinity so complex arithmetic can carry non-finite values along.
"""

import logging
from fractions import Fraction

from Engine.errors import DomainError

logger = logging.getLogger(__name__)

INF = float("inf")
NAN = float("nan")

# |y| beyond which x^y saturates. Operands are rounded to 15 digits first, so
# |y*ln(x)| already exceeds the exp cutoff of 1000 at this magnitude.
HUGE_EXPONENT = 1e18
# arctan(x) is +-pi/2 to double precision beyond this.
ARCTAN_SATURATION = 1e16
# factor_int only trial-divides below this.
FACTOR_LIMIT = 10 ** 16
SQRT_MAX_ITERATIONS = 2000
# pi to 100 digits. Periods are removed from sin arguments exactly in rational
# arithmetic, which holds to double precision while k*(error of this value) stays
# below 1e-17, i.e. for |x| up to about 1e80.
EXACT_PI = Fraction(
    "3.1415926535897932384626433832795028841971693993751058209749445923078164062862089986280348253421170679"
)


def is_nan(x):
    return x != x


def sgn(x):
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0


def abs_(x):
    return -x if x < 0 else x


def divide(x, y):
    """IEEE quotient: x/0 is an infinity and 0/0 is NaN. The sign of a zero divisor is ignored."""
    if y == 0:
        if x == 0 or is_nan(x):
            return NAN
        return INF if x > 0 else -INF
    return x / y


def _max2(x, y):
    return x if x > y else y


def max_(*n):
    largest = n[0]
    for value in n[1:]:
        largest = _max2(largest, value)
    return largest


def _min2(x, y):
    return x if x < y else y


def min_(*n):
    smallest = n[0]
    for value in n[1:]:
        smallest = _min2(smallest, value)
    return smallest


def floor(x):
    if is_nan(x) or abs_(x) == INF:
        return NAN
    return x - x % 1


def is_integer(x):
    return floor(x) == x


def ceil(x):
    return x if is_integer(x) else floor(x) + 1


def int_pow(x, n):
    """x to an integer power n by repeated squaring."""
    if is_nan(x) or is_nan(n) or abs_(n) == INF:
        return NAN
    count = int(abs_(n))
    result = 1.0
    base = x
    while count:
        if count & 1:
            result *= base
        base *= base
        count >>= 1
    return result if n >= 0 else divide(1.0, result)


def round_(x, n):
    """
    Rounds x to n decimal places to keep floating point noise away from
    domain sensitive checks. If |x| >= 1, rounds to n significant figures
    instead. Ties round half up.
    """
    if is_nan(x) or abs_(x) == INF:
        return x
    digits = 1
    if abs_(x) >= 1:
        a = abs_(x)
        while a >= 10:
            a /= 10
            digits += 1
        accuracy = int_pow(10.0, n - digits)
    else:
        accuracy = int_pow(10.0, n)
    scaled = x * accuracy
    if scaled - floor(scaled) >= 0.5:
        return (floor(scaled) + 1) / accuracy
    return floor(scaled) / accuracy


def _check_counting(*n):
    for value in n:
        if value < 0 or not is_integer(round_(value, 15)):
            raise DomainError("Nonnegative integers only.")


def fac(n):
    """Factorial, defined for nonnegative integers only."""
    n = round_(n, 15)
    _check_counting(n)
    if n > 175:
        return INF
    product = 1.0
    i = 2
    while i <= n:
        product *= i
        i += 1
    return product


def npr(n, r):
    """Permutations, defined for nonnegative integers only."""
    _check_counting(n, r)
    n, r = round_(n, 15), round_(r, 15)
    if r > n:
        raise DomainError("r cannot be greater than n.")
    product = 1.0
    i = n
    while i > n - r and product != INF:
        product *= i
        i -= 1
    return product


def ncr(n, r):
    """Combinations, defined for nonnegative integers only."""
    _check_counting(n, r)
    n, r = round_(n, 15), round_(r, 15)
    if r > n:
        raise DomainError("r cannot be greater than n.")
    r = _min2(r, n - r)
    product = 1.0
    k = 1
    while k <= r:
        product = product * (n - r + k) / k
        k += 1
    return round_(product, 15)


def factor_int(x):
    """Prime factors of a positive integer below 10^16, by trial division."""
    n = int(x)
    if n >= FACTOR_LIMIT:
        return [n]
    factors = []
    i = 2
    while i * i <= n:
        while n % i == 0:
            factors.append(i)
            n //= i
        i += 1
    if n > 1:
        factors.append(n)
    return factors


def _gcd2(n, r):
    if not is_integer(n) or not is_integer(r):
        return 1.0
    a, b = abs_(n), abs_(r)
    while b:
        a, b = b, a % b
    return a


def gcd(*n):
    """Greatest common divisor; any non-integer argument gives 1."""
    if len(n) == 1:
        return abs_(n[0])
    result = _gcd2(n[0], n[1])
    for value in n[2:]:
        result = _gcd2(result, value)
    return result


def _exp_series(x):
    total = 0.0
    term = 1.0
    for i in range(23):
        total += term
        term *= x / (i + 1)
    return total


def exp(x):
    """Reduces the argument to [-2,2] with e^x = (e^(x/m))^m, m = ceil(|x|/2)."""
    if is_nan(x):
        return NAN
    if x > 1000:
        return INF
    if x < -1000:
        return 0.0
    if x == 0:
        return 1.0
    m = ceil(abs_(x) / 2)
    return int_pow(_exp_series(x / m), m)


E = exp(1)


def _ln_series(x):
    """Series for ln(x), valid for 0 < x < 2."""
    t = 1 - x
    total = 0.0
    term = t
    for i in range(1, 26):
        total += term / i
        term *= t
    return -total


def _significand(x):
    """Modified floating point form x = s * (4/3)^p with s on [6/7, 8/7]."""
    power = 0
    if x >= 1:
        while x >= 8 / 7:
            x /= 4 / 3
            power += 1
    else:
        while x <= 6 / 7:
            x *= 4 / 3
            power -= 1
    return x, power


LN_THREE_QUARTERS = _ln_series(3 / 4)


def ln(x):
    """Uses ln(x) = ln(s) - p*ln(3/4) for x = s * (4/3)^p."""
    if is_nan(x) or x < 0:
        return NAN
    if x == INF:
        return INF
    if x == 0:
        return -INF
    if 6 / 7 < x < 8 / 7:
        return _ln_series(x)
    significand, power = _significand(x)
    return _ln_series(significand) - power * LN_THREE_QUARTERS


LN_TEN = ln(10.0)


def log(x):
    return divide(ln(x), LN_TEN)


def pow_(x, y):
    """
    x^y through e^(y*ln(x)) with special cases around 0, 1, infinity and
    huge exponents. Integer exponents use repeated multiplication.
    Non-integer powers of negative numbers are NaN.
    """
    a = round_(x, 15)
    b = round_(y, 15)
    if is_nan(a) or is_nan(b):
        return NAN
    if a == INF:
        if b > 0:
            return INF
        if b < 0:
            return 0.0
        return NAN
    if a == 1:
        return 1.0 if abs_(b) != INF else NAN
    if a == 0:
        if b > 0:
            return 0.0
        if b < 0:
            return INF
        return NAN
    if b > HUGE_EXPONENT:
        if a > 1:
            return INF
        if 0 < a < 1:
            return 0.0
        return NAN
    if b < -HUGE_EXPONENT:
        if a > 1:
            return 0.0
        if 0 < a < 1:
            return INF
        return NAN
    if is_integer(b) and (abs_(a) > 1.01 or abs_(a) < 0.99 or a < 0):
        return int_pow(x, b)
    if a > 0:
        return exp(y * ln(x))
    return NAN


def sqrt(x):
    """Babylonian iteration until root == (root + x/root) / 2."""
    if is_nan(x) or x < 0:
        return NAN
    if x == 0 or x == INF:
        return x
    root = x
    for _ in range(SQRT_MAX_ITERATIONS):
        following = 0.5 * (root + x / root)
        if following == root:
            break
        root = following
    return root


def _arctan_series(x):
    """Series for arctan(x), valid for -1 < x < 1."""
    total = 0.0
    term = x
    square = x * x
    for i in range(20):
        total += term / (2 * i + 1)
        term *= -square
    return total


def arctan(x, degree_mode=False):
    """
    Reduces the argument to [-0.414, 0.414] with the half angle identity
    applied twice: arctan(x) = 4 arctan(x / (1 + a + sqrt(2(x^2 + 1 + a)))),
    a = sqrt(1 + x^2).
    """
    if is_nan(x):
        return NAN
    scale = 180 / PI if degree_mode else 1
    if abs_(x) > ARCTAN_SATURATION:
        return sgn(x) * PI / 2 * scale
    a = sqrt(x * x + 1)
    return 4 * _arctan_series(x / (1 + a + sqrt(2 * (x * x + 1 + a)))) * scale


PI = 6 * arctan(1 / sqrt(3))


def _quarter_turn(degree_mode):
    return 90.0 if degree_mode else PI / 2


def arcsin(x, degree_mode=False):
    return 2 * arctan(x / (1 + sqrt(1 - x * x)), degree_mode)


def arccos(x, degree_mode=False):
    return _quarter_turn(degree_mode) - arcsin(x, degree_mode)


def arccsc(x, degree_mode=False):
    return arcsin(divide(1.0, x), degree_mode)


def arcsec(x, degree_mode=False):
    return arccos(divide(1.0, x), degree_mode)


def arccot(x, degree_mode=False):
    return _quarter_turn(degree_mode) - arctan(x, degree_mode)


def _sin_series(x):
    total = 0.0
    term = x
    square = x * x
    for i in range(15):
        total += term
        term *= -square / ((2 * i + 2) * (2 * i + 3))
    return total


def _reduce_angle(x, quarter_turns=0):
    """x + quarter_turns*pi/2 - 2k*pi folded into [-pi/2, pi/2] with sin(x) = sin(pi - x), rounded once at the end."""
    exact = Fraction(x) + quarter_turns * EXACT_PI / 2
    turns = (exact / (2 * EXACT_PI) + Fraction(1, 2)) // 1
    reduced = exact - turns * 2 * EXACT_PI
    if reduced > EXACT_PI / 2:
        reduced = EXACT_PI - reduced
    elif reduced < -EXACT_PI / 2:
        reduced = -EXACT_PI - reduced
    return float(reduced)


def _sine(x, degree_mode, quarter_turns):
    if degree_mode:
        x *= PI / 180
    if is_nan(x) or abs_(x) == INF:
        return NAN
    return round_(_sin_series(_reduce_angle(x, quarter_turns)), 15)


def sin(x, degree_mode=False):
    """Reduces to [-pi/2, pi/2] with sin(x) = sin(x - 2k*pi) and sin(x) = sin(pi - x)."""
    return _sine(x, degree_mode, 0)


def cos(x, degree_mode=False):
    """cos(x) = sin(x + pi/2), with the shift applied before rounding."""
    return _sine(x, degree_mode, 1)


def tan(x, degree_mode=False):
    if round_(cos(x, degree_mode), 12) == 0:
        return INF
    return sin(x, degree_mode) / cos(x, degree_mode)


def csc(x, degree_mode=False):
    if round_(sin(x, degree_mode), 12) == 0:
        return INF
    return 1 / sin(x, degree_mode)


def sec(x, degree_mode=False):
    if round_(cos(x, degree_mode), 12) == 0:
        return INF
    return 1 / cos(x, degree_mode)


def cot(x, degree_mode=False):
    if round_(sin(x, degree_mode), 12) == 0:
        return INF
    return cos(x, degree_mode) / sin(x, degree_mode)
