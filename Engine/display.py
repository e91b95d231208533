"""
Results are rendered as TeX for the MathJax front-end.
"""

import logging
import re

from Engine import real_functions as real
from Engine.expression import Expression, Operation

logger = logging.getLogger(__name__)

INVERSE_TRIG = {
    Operation.ARCSIN, Operation.ARCCOS, Operation.ARCTAN,
    Operation.ARCCSC, Operation.ARCSEC, Operation.ARCCOT,
}
# Renderings that read as a number, so an implicit product needs \cdot before them.
MATH_CONSTANTS = ("e", "\\pi ", "i", "\\infty ")


def display(result, n=12):
    """TeX for a complex pair or an expression tree, with numbers rounded to n decimals."""
    if isinstance(result, tuple):
        return display_complex(result, n)
    tex = to_tex(result, n)
    tex = tex.replace("+-", "-")
    tex = re.sub(r"(?<![\d.])1([a-z\\](?!cdot))", r"\1", tex)
    return re.sub(r"(?<![\d.])1\(", "(", tex)


def _round_places(x, n):
    places = real.int_pow(10.0, n)
    scaled = x * places
    if scaled - real.floor(scaled) >= 0.5:
        return (real.floor(scaled) + 1) / places
    return real.floor(scaled) / places


def _plain(x):
    if real.is_integer(x) and real.abs_(x) < 1e16:
        return str(int(x))
    return repr(x)


def _format_part(x, n):
    if x == real.INF:
        return "Infinity"
    if x == -real.INF:
        return "-Infinity"
    text = repr(x)
    if "e" in text:
        mantissa, exponent = text.split("e")
        return f"{_plain(_round_places(float(mantissa), n))}e{int(exponent):+d}"
    return _plain(_round_places(x, n))


def display_complex(c, n=12):
    """a+bi with each part rounded to n decimals and scientific notation as m\\cdot10^{k}."""
    if c[0] == "pi":
        return "\\pi "
    if c[0] == "e":
        return "e"
    if real.is_nan(c[0]) or real.is_nan(c[1]):
        return "\\textrm{undefined}"
    if c[0] == 0 and c[1] == 0:
        return "0"
    re_part, im_part = (_format_part(part, n) for part in c)
    text = f"{re_part}+{im_part}i"
    text = re.sub(r"^0\+|\+0i$", "", text)
    text = text.replace("+-", "-")
    text = re.sub(r"(?<![\d.])1i", "i", text)
    text = text.replace("Infinity", "\\infty ")
    text = re.sub(r"(\d+\.?\d*)e([+-]\d{1,3})", r"\1\\cdot10^{\2}", text)
    return text.replace("{+", "{")


def _needs_paren(arg):
    """Sums, differences and complex literals with two nonzero parts are wrapped in parentheses."""
    if arg.operation in (Operation.ADD, Operation.SUBTRACT):
        return True
    if arg.is_numeric_literal:
        return arg.value[0] != 0 and arg.value[1] != 0
    return False


def to_tex(tree: Expression, n=12) -> str:
    op = tree.operation
    if op is Operation.IDENTITY:
        if tree.is_variable:
            return tree.value
        return display_complex(tree.value, n)

    args = [to_tex(arg, n) for arg in tree.args]

    if op is Operation.ABS:
        return f"|{args[0]}|"
    if op is Operation.ADD:
        return "+".join(args)
    if op is Operation.SUBTRACT:
        minuend = "" if args[0] == "0" else args[0]
        if _needs_paren(tree.args[1]):
            return f"{minuend}-({args[1]})"
        return f"{minuend}-{args[1]}"
    if op is Operation.MULTIPLY:
        parts = []
        for i, (arg, tex) in enumerate(zip(tree.args, args)):
            if _needs_paren(arg):
                parts.append(f"({tex})")
            elif i != 0 and tex and (tex[0].isdigit() or tex[0] == "-" or tex in MATH_CONSTANTS):
                parts.append(f"\\cdot {tex}")
            else:
                parts.append(tex)
        return "".join(parts)
    if op is Operation.DIVIDE:
        return f"\\frac{{{args[0]}}}{{{args[1]}}}"
    if op is Operation.FLOOR:
        return f"\\lfloor{{{args[0]}}}\\rfloor "
    if op is Operation.CEIL:
        return f"\\lceil{{{args[0]}}}\\rceil "
    if op is Operation.EXP:
        return f"e^{{{args[0]}}}"
    if op is Operation.FAC:
        if _needs_paren(tree.args[0]):
            return f"({args[0]})!"
        return f"{args[0]}!"
    if op is Operation.NPR:
        return f"_{{{args[0]}}}P_{{{args[1]}}}"
    if op is Operation.NCR:
        return f"_{{{args[0]}}}C_{{{args[1]}}}"
    if op is Operation.POW:
        if _needs_paren(tree.args[0]):
            return f"({args[0]})^{{{args[1]}}}"
        return f"{{{args[0]}}}^{{{args[1]}}}"
    if op is Operation.SQRT:
        return f"\\sqrt{{{args[0]}}}"
    if op in INVERSE_TRIG:
        return f"\\{op.value[3:]}^{{-1}}({args[0]})"
    if op is Operation.DIFF:
        if len(args) == 1:
            return f"d({args[0]})"
        if len(args[1]) == 1:
            return f"\\frac{{d}}{{d{args[1]}}}({args[0]})"
        return f"\\frac{{d}}{{d({args[1]})}}({args[0]})"
    if op is Operation.UNSUPPORTED:
        return f"{tree.name}({','.join(args)})"
    return f"\\{tree.name}({','.join(args)})"
