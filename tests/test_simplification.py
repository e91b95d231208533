"""Tests for the fixed-point simplifier."""

import pytest

from Engine import simplification
from Engine.differentiation import derive
from Engine.errors import SimplificationError
from Engine.expression import Operation
from Engine.parsing import parse_tree
from Engine.simplification import Simplifier, simplify


def simplified(text, factor=False):
    return str(simplify(parse_tree(text), factor))


# ============================================================================
# IDENTITIES AND FOLDING
# ============================================================================

class TestIdentities:
    """Zero and one rules, numeric folding."""

    @pytest.mark.parametrize("text, expected", [
        ("2+3*4", "[14,0]"),
        ("sqrt(4)", "[2,0]"),
        ("sqrt(2)", "sqrt([2,0])"),
        ("x-x", "[0,0]"),
        ("0/x", "[0,0]"),
        ("x/1", "x"),
        ("x/x", "[1,0]"),
        ("x^0", "[1,0]"),
        ("x^1", "x"),
        ("1^x", "[1,0]"),
        ("0^x", "[0,0]"),
        ("0^0", "[NaN,NaN]"),
        ("x*1+0", "x"),
        ("0*sin(x)", "[0,0]"),
    ])
    def test_rule(self, text, expected):
        assert simplified(text) == expected

    def test_rules_table(self):
        assert set(Simplifier().rules) == {
            Operation.ADD, Operation.SUBTRACT, Operation.MULTIPLY, Operation.DIVIDE, Operation.POW,
        }


# ============================================================================
# SUMS AND PRODUCTS
# ============================================================================

class TestSumsAndProducts:
    """Like terms, powers and distribution."""

    def test_like_terms(self):
        assert simplified("2x+3x") == "multiply([5,0],x)"

    def test_powers_combine(self):
        assert simplified("x*x*x") == "pow(x,[3,0])"
        assert simplified("x^a*x^b") == "pow(x,add(a,b))"

    def test_numeric_bases_combine(self):
        assert simplified("2^x*3^x") == "pow([6,0],x)"

    def test_distribution(self):
        assert simplified("2(x+1)") == "add(multiply([2,0],x),[2,0])"

    def test_sum_order(self):
        assert simplified("3x+x^2") == "add(pow(x,[2,0]),multiply([3,0],x))"

    def test_factor_mode(self):
        assert simplified("x^2+3x", factor=True) == "multiply(x,add(x,[3,0]))"

    def test_sum_with_fraction(self):
        assert simplified("x+1/x") == "divide(add(pow(x,[2,0]),[1,0]),x)"


# ============================================================================
# QUOTIENTS
# ============================================================================

class TestQuotients:
    """Fraction reduction, sign normalization and cancellation."""

    def test_reduce_fraction(self):
        assert simplified("6/4") == "divide([3,0],[2,0])"
        assert simplified("6/-4") == "divide([-3,0],[2,0])"

    def test_irreducible_fraction(self):
        assert simplified("1/3") == "divide([1,0],[3,0])"

    def test_negative_denominator(self):
        assert simplified("x/(-2y)") == "divide(multiply([-1,0],x),multiply([2,0],y))"

    def test_cancel(self):
        assert simplify(parse_tree("x^3*y/(2x)")) == simplify(parse_tree("y*x^2/2"))


# ============================================================================
# FIXED POINT
# ============================================================================

class TestFixedPoint:
    """Results are stable and derivatives reach a canonical form."""

    def test_derivative_of_square(self):
        assert str(simplify(derive(parse_tree("x^2"), "x"))) == "multiply([2,0],x)"

    def test_product_rule_matches_identity(self):
        derivative = simplify(derive(parse_tree("sin(x)cos(x)"), "x"))
        assert derivative == simplify(parse_tree("cos(x)^2-sin(x)^2"))

    @pytest.mark.parametrize("text", ["x^2+3x+2", "(x+1)(x-1)", "sin(x)/x+x/sin(x)", "2^x*x^2/4"])
    def test_idempotent(self, text):
        once = simplify(parse_tree(text))
        assert simplify(once) == once

    @pytest.mark.parametrize("text", ["(x+1)(x-1)", "x/(x+1)+1/x", "x^3*y/(2x)"])
    def test_value_preserved(self, text):
        bindings = {"x": (1.7, 0.0), "y": (-0.4, 0.0)}
        original = parse_tree(text).evaluate(bindings)
        result = simplify(parse_tree(text)).evaluate(bindings)
        assert result[0] == pytest.approx(original[0], rel=1e-12)

    @pytest.mark.parametrize("text", ["1/(x+y)+1/(x-y)", "x/(x+1)+1/(x-1)", "(x+1)/(x-1)-(x-1)/(x+1)"])
    def test_sum_of_fractions_settles(self, text):
        bindings = {"x": (1.7, 0.0), "y": (-0.4, 0.0)}
        once = simplify(parse_tree(text))
        assert simplify(once) == once
        original = parse_tree(text).evaluate(bindings)
        assert once.evaluate(bindings)[0] == pytest.approx(original[0], rel=1e-12)

    def test_fractions_share_one_denominator(self):
        result = simplify(parse_tree("1/(x+y)+1/(x-y)"))
        assert result.operation is Operation.DIVIDE
        assert result.args[0] == simplify(parse_tree("2x"))

    def test_negated_fraction_stays_a_fraction(self):
        assert simplified("1-1/x") == "divide(add(x,[-1,0]),x)"

    def test_pass_cap(self, monkeypatch):
        monkeypatch.setattr(simplification, "MAX_PASSES", 1)
        with pytest.raises(SimplificationError):
            simplify(parse_tree("2+3"))
