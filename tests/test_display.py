"""Tests for TeX rendering of numbers and trees."""

import math

import pytest

from Engine.display import display, display_complex
from Engine.expression import literal, node, Operation, variable
from Engine.parsing import parse_tree


# ============================================================================
# NUMBERS
# ============================================================================

class TestNumbers:
    """Complex pairs as a+bi."""

    @pytest.mark.parametrize("value, tex", [
        ((3.0, -2.0), "3-2i"),
        ((5.0, 0.0), "5"),
        ((0.0, 1.0), "i"),
        ((0.0, -1.0), "-i"),
        ((0.0, 0.0), "0"),
        ((1.5, 2.0), "1.5+2i"),
    ])
    def test_pairs(self, value, tex):
        assert display(value) == tex

    def test_undefined(self):
        assert display((math.nan, 0.0)) == "\\textrm{undefined}"

    def test_infinity(self):
        assert display((math.inf, 0.0)) == "\\infty "
        assert display((-math.inf, 0.0)) == "-\\infty "

    def test_scientific_notation(self):
        assert display((1e20, 0.0)) == "1\\cdot10^{20}"
        assert display((1.5e-7, 0.0)) == "1.5\\cdot10^{-7}"

    def test_rounding(self):
        assert display((2 / 3, 0.0)) == "0.666666666667"
        assert display((0.123456, 0.0), 3) == "0.123"

    def test_symbolic_constants(self):
        assert display_complex(("pi", 0.0)) == "\\pi "
        assert display_complex(("e", 0.0)) == "e"


# ============================================================================
# TREES
# ============================================================================

class TestTrees:
    """Operator and function layout."""

    @pytest.mark.parametrize("text, tex", [
        ("-x", "-x"),
        ("2x", "2x"),
        ("x*2", "x\\cdot 2"),
        ("2pi", "2\\cdot \\pi "),
        ("1/2", "\\frac{1}{2}"),
        ("x^2", "{x}^{2}"),
        ("(x+1)^2", "(x+1)^{2}"),
        ("x-(y+1)", "x-(y+1)"),
        ("(1+i)x", "(1+i)x"),
        ("sqrt(x)", "\\sqrt{x}"),
        ("abs(x)", "|x|"),
        ("sin(x)", "\\sin(x)"),
        ("arcsin(x)", "\\sin^{-1}(x)"),
        ("e^x", "e^{x}"),
        ("5!", "5!"),
        ("(x+1)!", "(x+1)!"),
        ("npr(5,2)", "_{5}P_{2}"),
        ("ncr(5,2)", "_{5}C_{2}"),
        ("floor(x)", "\\lfloor{x}\\rfloor "),
        ("diff(x^2,x)", "\\frac{d}{dx}({x}^{2})"),
        ("foo(x,y)", "foo(x,y)"),
    ])
    def test_layout(self, text, tex):
        assert display(parse_tree(text)) == tex

    def test_unit_coefficient_is_dropped(self):
        assert display(node(Operation.MULTIPLY, literal(-1), variable("x"))) == "-x"

    def test_complex_coefficient_is_wrapped(self):
        assert display(node(Operation.MULTIPLY, literal((2.0, 3.0)), variable("x"))) == "(2+3i)x"

    def test_sum_with_negative_term(self):
        assert display(node(Operation.ADD, variable("x"), literal(-3))) == "x-3"
