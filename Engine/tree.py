"""
Rebuilds expression trees from canonical strings such as
"add(multiply([2,0],x),[1,0])".
"""

import logging
import re

from Engine.errors import ParseError
from Engine.expression import Expression, call, literal, variable
from Engine.parsing import MAX_NESTING_DEPTH, parse_exp

logger = logging.getLogger(__name__)

# A parsed nesting level can open several node levels (sum, product, quotient, power).
MAX_TREE_DEPTH = 4 * MAX_NESTING_DEPTH

LITERAL = re.compile(r"^\[([^,\[\]]+),([^,\[\]]+)\]$")


def _parse_part(part):
    if part in ("pi", "e"):
        return part
    try:
        return float(part)
    except ValueError:
        raise ParseError(f"Invalid number: {part}.") from None


def create_tree(expression: str, depth=0) -> Expression:
    """
    Builds the tree for a canonical string. Unknown function names become
    UNSUPPORTED nodes; only malformed strings raise ParseError.
    """
    if depth > MAX_TREE_DEPTH:
        raise ParseError("Expression is nested too deeply.")
    name, args = parse_exp(expression)
    if name == "identity":
        match = LITERAL.match(args[0])
        if match:
            re_part, im_part = (_parse_part(part) for part in match.groups())
            if isinstance(im_part, str):
                raise ParseError(f"Invalid number: {im_part}.")
            return literal((re_part, im_part))
        return variable(args[0])
    return call(name, [create_tree(arg, depth + 1) for arg in args])
