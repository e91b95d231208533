"""Tests for the complex kernel: pair arithmetic, branch choices and Gaussian gcd."""

import math

import pytest

from Engine import complex_functions as cf
from Engine.errors import DomainError
from Engine.real_functions import PI


def assert_close(c, expected, tol=1e-12):
    assert c[0] == pytest.approx(expected[0], abs=tol)
    assert c[1] == pytest.approx(expected[1], abs=tol)


# ============================================================================
# ARITHMETIC
# ============================================================================

class TestArithmetic:
    """add, subtract, multiply and divide on pairs."""

    def test_add_and_subtract(self):
        assert cf.add((1.0, 2.0), (3.0, -1.0), (0.5, 0.0)) == (4.5, 1.0)
        assert cf.subtract((1.0, 2.0), (3.0, -1.0)) == (-2.0, 3.0)

    def test_adding_a_difference_of_equals_is_identity(self):
        c1, c2 = (1.25, -3.5), (7.0, 2.0)
        assert cf.add(c1, cf.subtract(c2, c2)) == c1

    def test_multiply(self):
        assert cf.multiply((1.0, 2.0), (3.0, 4.0)) == (-5.0, 10.0)

    def test_divide(self):
        assert_close(cf.divide((1.0, 2.0), (3.0, 4.0)), (0.44, 0.08))

    def test_multiply_by_reciprocal(self):
        c = (3.0, 4.0)
        assert_close(cf.multiply(c, cf.divide(cf.ONE, c)), (1.0, 0.0))

    def test_real_division_by_zero(self):
        assert cf.divide((1.0, 0.0), (0.0, 0.0)) == (math.inf, 0.0)

    def test_complex_division_by_zero(self):
        assert cf.divide((1.0, 1.0), cf.ZERO) == (math.inf, 0.0)

    def test_round(self):
        assert cf.round_((0.1234, 2.71828), 2) == (pytest.approx(0.12), pytest.approx(2.7))


# ============================================================================
# POLAR FORM
# ============================================================================

class TestPolar:
    """abs_, arg and the polar conversions."""

    def test_abs(self):
        assert cf.abs_((3.0, 4.0)) == (5.0, 0.0)

    def test_arg(self):
        assert cf.arg((-1.0, 0.0))[0] == pytest.approx(PI)
        assert cf.arg((0.0, -2.0))[0] == pytest.approx(-PI / 2)

    def test_arg_at_origin_is_nan(self):
        assert math.isnan(cf.arg(cf.ZERO)[0])

    def test_to_rect_keeps_exact_axes(self):
        assert cf.to_rect((math.inf, PI / 2))[0] == 0


# ============================================================================
# POWERS, EXPONENTIALS AND LOGARITHMS
# ============================================================================

class TestPowers:
    """pow_, sqrt, exp and ln."""

    def test_zero_to_the_zero_is_nan(self):
        result = cf.pow_(cf.ZERO, cf.ZERO)
        assert math.isnan(result[0]) and math.isnan(result[1])

    def test_zero_base(self):
        assert cf.pow_(cf.ZERO, (2.0, 0.0)) == cf.ZERO
        assert cf.pow_(cf.ZERO, (-2.0, 0.0)) == (math.inf, 0.0)

    def test_i_squared(self):
        assert_close(cf.pow_(cf.I, (2.0, 0.0)), (-1.0, 0.0))

    def test_positive_real_base_stays_real(self):
        assert cf.pow_((2.0, 0.0), (10.0, 0.0)) == (1024.0, 0.0)

    def test_huge_exponent_saturates(self):
        assert cf.pow_((0.0, 2.0), (1e19, 0.0)) == (math.inf, 0.0)
        assert cf.pow_((0.0, 0.5), (1e19, 0.0)) == cf.ZERO

    def test_sqrt_of_negative(self):
        assert_close(cf.sqrt((-4.0, 0.0)), (0.0, 2.0))

    def test_exp_on_imaginary_axis(self):
        assert_close(cf.exp((0.0, PI)), (-1.0, 0.0))

    def test_ln_of_negative(self):
        assert_close(cf.ln((-1.0, 0.0)), (0.0, PI))

    def test_log(self):
        assert_close(cf.log((100.0, 0.0)), (2.0, 0.0))


# ============================================================================
# TRIGONOMETRY
# ============================================================================

class TestTrigonometry:
    """Trig functions off the real line and at their poles."""

    def test_sin_of_imaginary(self):
        assert_close(cf.sin((0.0, 1.0)), (0.0, math.sinh(1.0)))

    def test_sin_in_degrees(self):
        assert_close(cf.sin((90.0, 0.0), degree_mode=True), (1.0, 0.0))

    def test_tan_pole(self):
        assert cf.tan((PI / 2, 0.0)) == (math.inf, 0.0)

    def test_arcsin_outside_unit_interval_is_complex(self):
        result = cf.arcsin((2.0, 0.0))
        assert result[0] == pytest.approx(PI / 2)
        assert abs(result[1]) == pytest.approx(1.3169578969248166)

    def test_arctan_saturates(self):
        assert cf.arctan((1e17, 0.0)) == (PI / 2, 0.0)
        assert cf.arctan((1e17, 0.0), degree_mode=True) == (90.0, 0.0)


# ============================================================================
# REAL ONLY AND INTEGER FUNCTIONS
# ============================================================================

class TestRealOnly:
    """Functions that reject nonreal arguments."""

    def test_max_and_min(self):
        assert cf.max_((1.0, 0.0), (3.0, 0.0), (2.0, 0.0)) == (3.0, 0.0)
        assert cf.min_((1.0, 0.0), (3.0, 0.0)) == (1.0, 0.0)

    def test_max_of_nonreal_raises(self):
        with pytest.raises(DomainError, match="Real numbers only."):
            cf.max_((1.0, 1.0), (2.0, 0.0))

    def test_factorial(self):
        assert cf.fac((5.0, 0.0)) == (120.0, 0.0)
        with pytest.raises(DomainError):
            cf.fac((1.0, 1.0))

    def test_floor_is_componentwise(self):
        assert cf.floor((2.5, -1.5)) == (2.0, -2.0)
        assert cf.ceil((2.5, -1.5)) == (3.0, -1.0)


class TestGaussianGcd:
    """gcd over the integers and the Gaussian integers."""

    def test_real_gcd(self):
        assert cf.gcd((12.0, 0.0), (18.0, 0.0)) == (6.0, 0.0)

    def test_gaussian_gcd(self):
        assert cf.gcd((2.0, 0.0), (1.0, 1.0)) == (1.0, 1.0)

    def test_gaussian_gcd_is_normalized(self):
        assert cf.gcd((-1.0, -1.0), (2.0, 0.0)) == (1.0, 1.0)

    def test_real_non_integer_mixed_with_gaussian_is_one(self):
        assert cf.gcd((1.0, 1.0), (0.5, 0.0)) == cf.ONE

    def test_nonreal_non_gaussian_raises(self):
        with pytest.raises(DomainError, match="Real numbers or Gaussian integers only."):
            cf.gcd((1.5, 1.0), (2.0, 0.0))
