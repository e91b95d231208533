"""
Complex valued functions extended from the real valued ones.

Every complex number a+bi is a pair (a, b) of floats. Real inputs are
delegated to Engine.real_functions whenever the answer stays real, so the
real and complex kernels agree on the real line.
"""

import logging

from Engine import real_functions as real
from Engine.errors import DomainError
from Engine.real_functions import ARCTAN_SATURATION, HUGE_EXPONENT, INF, NAN, PI

logger = logging.getLogger(__name__)

# Gaussian integers with a larger norm are not factored by gcd.
GAUSSIAN_FACTOR_LIMIT = 10 ** 12

ZERO = (0.0, 0.0)
ONE = (1.0, 0.0)
I = (0.0, 1.0)
MINUS_I = (0.0, -1.0)


def is_equal(c1, c2):
    return c1[0] == c2[0] and c1[1] == c2[1]


def is_real(c):
    return c[1] == 0


def _quarter_turn(degree_mode):
    return (90.0, 0.0) if degree_mode else (PI / 2, 0.0)


def abs_(c):
    return (real.sqrt(c[0] * c[0] + c[1] * c[1]), 0.0)


def arg(c):
    """Principal argument in (-pi, pi]; NaN at the origin."""
    re, im = c
    if re > 0:
        return (real.arctan(im / re), 0.0)
    if re < 0 and im >= 0:
        return (real.arctan(im / re) + PI, 0.0)
    if re < 0 and im < 0:
        return (real.arctan(im / re) - PI, 0.0)
    if re == 0 and im > 0:
        return (PI / 2, 0.0)
    if re == 0 and im < 0:
        return (-PI / 2, 0.0)
    return (NAN, 0.0)


def to_polar(c):
    return (abs_(c)[0], arg(c)[0])


def to_rect(z):
    """(r, theta) back to (a, b). Exact zeros of cos/sin keep infinite moduli from producing NaN."""
    r, theta = z
    cosine = real.cos(theta)
    sine = real.sin(theta)
    if r == 0:
        return ZERO
    if cosine == 0:
        return (0.0, r * sine)
    if sine == 0:
        return (r * cosine, 0.0)
    return (r * cosine, r * sine)


def _add2(c1, c2):
    return (c1[0] + c2[0], c1[1] + c2[1])


def add(*c):
    total = c[0]
    for value in c[1:]:
        total = _add2(total, value)
    return total


def subtract(c1, c2):
    return (c1[0] - c2[0], c1[1] - c2[1])


def _multiply2(c1, c2):
    if is_real(c1) and is_real(c2):
        return (c1[0] * c2[0], 0.0)
    if abs_(c1)[0] == INF or abs_(c2)[0] == INF:
        p1, p2 = to_polar(c1), to_polar(c2)
        return to_rect((p1[0] * p2[0], p1[1] + p2[1]))
    return (c1[0] * c2[0] - c1[1] * c2[1], c1[0] * c2[1] + c1[1] * c2[0])


def multiply(*c):
    product = c[0]
    for value in c[1:]:
        product = _multiply2(product, value)
    return product


def divide(c1, c2):
    if is_real(c1) and is_real(c2):
        return (real.divide(c1[0], c2[0]), 0.0)
    if is_equal(c2, ZERO):
        return (INF, 0.0)
    if abs_(c1)[0] == INF or abs_(c2)[0] == INF:
        p1, p2 = to_polar(c1), to_polar(c2)
        return to_rect((real.divide(p1[0], p2[0]), p1[1] - p2[1]))
    denominator = c2[0] * c2[0] + c2[1] * c2[1]
    return (
        real.divide(c1[0] * c2[0] + c1[1] * c2[1], denominator),
        real.divide(c1[1] * c2[0] - c1[0] * c2[1], denominator),
    )


def _require_real(*c):
    for value in c:
        if not is_real(round_(value, 12)):
            raise DomainError("Real numbers only.")


def round_(c, n):
    return (real.round_(c[0], n), real.round_(c[1], n))


def max_(*c):
    _require_real(*c)
    return (real.max_(*[value[0] for value in c]), 0.0)


def min_(*c):
    _require_real(*c)
    return (real.min_(*[value[0] for value in c]), 0.0)


def floor(c):
    return (real.floor(c[0]), real.floor(c[1]))


def ceil(c):
    return (real.ceil(c[0]), real.ceil(c[1]))


def fac(c):
    _require_real(c)
    return (real.fac(c[0]), 0.0)


def npr(c1, c2):
    _require_real(c1, c2)
    return (real.npr(c1[0], c2[0]), 0.0)


def ncr(c1, c2):
    _require_real(c1, c2)
    return (real.ncr(c1[0], c2[0]), 0.0)


def _is_gaussian_integer(c):
    return real.is_integer(real.round_(c[0], 12)) and real.is_integer(real.round_(c[1], 12))


def _normalize(z):
    """Rotates a Gaussian integer by units into the first quadrant (re > 0, im >= 0)."""
    for _ in range(4):
        if z[0] > 0 and z[1] >= 0:
            return z
        z = (-z[1], z[0])
    return z


def _exact_divide(z, w):
    """z / w when the quotient is a Gaussian integer, else None."""
    norm = w[0] * w[0] + w[1] * w[1]
    re = z[0] * w[0] + z[1] * w[1]
    im = z[1] * w[0] - z[0] * w[1]
    if re % norm or im % norm:
        return None
    return (re // norm, im // norm)


def _integer_sqrt(n):
    root = int(real.sqrt(n))
    while root * root > n:
        root -= 1
    while (root + 1) * (root + 1) <= n:
        root += 1
    return root


def _gaussian_primes_over(p):
    """Normalized Gaussian primes dividing the rational prime p."""
    if p == 2:
        return [(1, 1)]
    if p % 4 == 3:
        return [(p, 0)]
    a = 1
    while a * a < p:
        b = _integer_sqrt(p - a * a)
        if a * a + b * b == p:
            return [(a, b), (b, a)]
        a += 1
    return [(p, 0)]


def _gaussian_factors(z):
    """Prime factors of a nonzero Gaussian integer, or None past GAUSSIAN_FACTOR_LIMIT."""
    norm = z[0] * z[0] + z[1] * z[1]
    if norm > GAUSSIAN_FACTOR_LIMIT:
        return None
    factors = []
    for p in sorted(set(real.factor_int(norm))):
        for prime in _gaussian_primes_over(p):
            quotient = _exact_divide(z, prime)
            while quotient is not None:
                factors.append(prime)
                z = quotient
                quotient = _exact_divide(z, prime)
    return factors


def _gaussian_gcd2(z1, z2):
    if z1 == (0, 0):
        return _normalize(z2)
    if z2 == (0, 0):
        return _normalize(z1)
    factors1 = _gaussian_factors(z1)
    factors2 = _gaussian_factors(z2)
    if factors1 is None or factors2 is None:
        logger.debug("Gaussian gcd of %s and %s is past the factoring limit", z1, z2)
        return (1, 0)
    remaining = list(factors2)
    result = (1, 0)
    for prime in factors1:
        if prime in remaining:
            remaining.remove(prime)
            result = (result[0] * prime[0] - result[1] * prime[1], result[0] * prime[1] + result[1] * prime[0])
    return _normalize(result)


def gcd(*c):
    """
    Real arguments use the real gcd. Gaussian integers are factored into
    normalized Gaussian primes and the common factors are multiplied back,
    so the answer is unique up to the choice of first quadrant associate.
    """
    if all(is_real(value) for value in c):
        return (real.gcd(*[value[0] for value in c]), 0.0)
    for value in c:
        if not is_real(value) and not _is_gaussian_integer(value):
            raise DomainError("Real numbers or Gaussian integers only.")
    if not all(_is_gaussian_integer(value) for value in c):
        return ONE
    integers = [(int(real.round_(re, 12)), int(real.round_(im, 12))) for re, im in c]
    result = integers[0]
    for value in integers[1:]:
        result = _gaussian_gcd2(result, value)
    result = _normalize(result)
    return (float(result[0]), float(result[1]))


def exp(c):
    return to_rect((real.exp(c[0]), c[1]))


def ln(c):
    if abs_(c)[0] == INF:
        return (INF, 0.0)
    return (real.ln(abs_(c)[0]), arg(c)[0])


LN_TEN = ln((10.0, 0.0))


def log(c):
    return divide(ln(c), LN_TEN)


def pow_(c1, c2):
    """Polar formula (r e^(i theta))^(a+bi) = r^a e^(-b theta) e^(i(a theta + b ln r))."""
    r1 = round_(c1, 15)
    r2 = round_(c2, 15)
    if is_real(r1) and is_real(r2) and r1[0] > 0:
        return (real.pow_(r1[0], r2[0]), 0.0)
    if is_equal(r1, ZERO):
        if r2[0] > 0:
            return ZERO
        if r2[0] < 0:
            return (INF, 0.0)
        return (NAN, NAN)
    modulus = abs_(r1)[0]
    if r2[0] > HUGE_EXPONENT:
        if modulus > 1:
            return (INF, 0.0)
        if modulus < 1:
            return ZERO
        return (NAN, NAN)
    if r2[0] < -HUGE_EXPONENT:
        if modulus > 1:
            return ZERO
        if modulus < 1:
            return (INF, 0.0)
        return (NAN, NAN)
    theta = arg(c1)[0]
    radius = real.pow_(modulus, c2[0])
    angle = c2[0] * theta
    if c2[1] != 0:
        radius *= real.exp(-c2[1] * theta)
        angle += c2[1] * real.ln(modulus)
    return to_rect((radius, angle))


def sqrt(c):
    if is_real(c) and c[0] >= 0:
        return (real.sqrt(c[0]), 0.0)
    return to_rect((real.sqrt(abs_(c)[0]), arg(c)[0] / 2))


def sin(c, degree_mode=False):
    if degree_mode:
        c = multiply(c, (PI / 180, 0.0))
    if abs_(c)[0] == INF and c[0] != 0:
        return (NAN, NAN)
    if is_real(c):
        return (real.sin(c[0]), 0.0)
    return divide(subtract(exp(multiply(I, c)), exp(multiply(MINUS_I, c))), (0.0, 2.0))


def cos(c, degree_mode=False):
    return sin(subtract(_quarter_turn(degree_mode), c), degree_mode)


def _vanishes(c):
    return is_equal(round_(c, 12), ZERO)


def tan(c, degree_mode=False):
    cosine = cos(c, degree_mode)
    if _vanishes(cosine):
        return (INF, 0.0)
    return divide(sin(c, degree_mode), cosine)


def csc(c, degree_mode=False):
    sine = sin(c, degree_mode)
    if _vanishes(sine):
        return (INF, 0.0)
    return divide(ONE, sine)


def sec(c, degree_mode=False):
    cosine = cos(c, degree_mode)
    if _vanishes(cosine):
        return (INF, 0.0)
    return divide(ONE, cosine)


def cot(c, degree_mode=False):
    sine = sin(c, degree_mode)
    if _vanishes(sine):
        return (INF, 0.0)
    return divide(cos(c, degree_mode), sine)


def arctan(c, degree_mode=False):
    """arctan(z) = -i/2 ln((i - z) / (i + z)) off the real line."""
    scale = (180 / PI, 0.0) if degree_mode else ONE
    if c[0] > ARCTAN_SATURATION:
        return _quarter_turn(degree_mode)
    if is_real(c):
        return (real.arctan(c[0], degree_mode), 0.0)
    return multiply(scale, (0.0, -0.5), ln(divide(subtract(I, c), add(I, c))))


def arcsin(c, degree_mode=False):
    if abs_(c)[0] == INF:
        if (is_real(c) and c[0] < 0) or c[1] > 0:
            return (INF, 0.0)
        return (-INF, 0.0)
    return arctan(divide(c, sqrt(subtract(ONE, pow_(c, (2.0, 0.0))))), degree_mode)


def arccos(c, degree_mode=False):
    return subtract(_quarter_turn(degree_mode), arcsin(c, degree_mode))


def arccsc(c, degree_mode=False):
    return arcsin(divide(ONE, c), degree_mode)


def arcsec(c, degree_mode=False):
    return arccos(divide(ONE, c), degree_mode)


def arccot(c, degree_mode=False):
    return subtract(_quarter_turn(degree_mode), arctan(c, degree_mode))
