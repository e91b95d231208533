import logging
import re
from contextlib import ExitStack, contextmanager

from Engine.errors import ParseError
from Engine.expression import (
    DIFFERENTIAL, FUNCTION_NAMES, Expression, Operation, call, literal, node, variable,
)
from Engine.real_functions import INF

# --- Logger Setup ---
logger = logging.getLogger(__name__)

# Parentheses, function calls, unary minus and exponents each count one level.
MAX_NESTING_DEPTH = 64

ALLOWED_CHARACTERS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789.+-*/^!(),")

# Letter runs that name a value rather than a variable.
CONSTANTS = {
    "pi": ("pi", 0.0),
    "e": ("e", 0.0),
    "i": (0.0, 1.0),
    "inf": (INF, 0.0),
    "infinity": (INF, 0.0),
}

# --- Tokenizer: Breaking the Expression into Tokens ---
TOKEN_NUMBER = 'NUMBER'
TOKEN_CONSTANT = 'CONSTANT'
TOKEN_VARIABLE = 'VARIABLE'
TOKEN_FUNCTION = 'FUNCTION'
TOKEN_WORD = 'WORD'
TOKEN_OPERATOR = 'OPERATOR'
TOKEN_LPAREN = 'LPAREN'
TOKEN_RPAREN = 'RPAREN'
TOKEN_COMMA = 'COMMA'
TOKEN_EOF = 'EOF'

# Tokens that may start an implicitly multiplied factor.
ATOM_STARTS = (TOKEN_NUMBER, TOKEN_CONSTANT, TOKEN_VARIABLE, TOKEN_FUNCTION, TOKEN_LPAREN)


class Token:
    def __init__(self, type, value):
        self.type = type
        self.value = value

    def __repr__(self):
        return f"Token({self.type}, '{self.value}')"


def balance_parentheses(text):
    """Prepends "(" for every unmatched ")" and appends ")" for every unmatched "("."""
    depth = 0
    missing_open = 0
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            if depth == 0:
                missing_open += 1
            else:
                depth -= 1
    return "(" * missing_open + text + ")" * depth


class Tokenizer:
    # Scientific notation needs an explicit sign so "2e" and "2ex" stay products with e.
    TOKEN_SPECS = [
        (r'(?:\d+\.?\d*|\.\d+)e[+-]\d{1,3}(?![\d.])', TOKEN_NUMBER),
        (r'(?:\d+\.?\d*|\.\d+)(?![\d.])', TOKEN_NUMBER),
        (r'[a-z]+', TOKEN_WORD),
        (r'[\+\-\*\/^!]', TOKEN_OPERATOR),
        (r'\(', TOKEN_LPAREN),
        (r'\)', TOKEN_RPAREN),
        (r',', TOKEN_COMMA),
    ]
    _COMPILED_SPECS = [(re.compile(pattern), ttype) for pattern, ttype in TOKEN_SPECS]

    def __init__(self, text):
        self.text = balance_parentheses(self._clean(text))
        self.tokens = self._tokenize()
        self.index = 0

    @staticmethod
    def _clean(text):
        text = "".join(text.split())
        if not text:
            raise ParseError("Enter something...")
        for char in text:
            if char not in ALLOWED_CHARACTERS:
                raise ParseError(f"Invalid character: '{char}'.")
        return text

    def _tokenize(self):
        tokens = []
        pos = 0
        while pos < len(self.text):
            for regex, ttype in self._COMPILED_SPECS:
                match = regex.match(self.text, pos)
                if match:
                    if ttype == TOKEN_WORD:
                        next_char = self.text[match.end()] if match.end() < len(self.text) else ""
                        tokens.append(self._classify_word(match.group(0), next_char))
                    else:
                        tokens.append(Token(ttype, match.group(0)))
                    pos = match.end()
                    break
            else:
                raise ParseError(f"Unexpected character at position {pos}: '{self.text[pos]}'.")
        tokens.append(Token(TOKEN_EOF, ""))
        return tokens

    @staticmethod
    def _classify_word(word, next_char):
        if word in CONSTANTS:
            return Token(TOKEN_CONSTANT, word)
        if len(word) == 1:
            return Token(TOKEN_VARIABLE, word)
        if next_char == "(" or word in FUNCTION_NAMES:
            return Token(TOKEN_FUNCTION, word)
        if DIFFERENTIAL.fullmatch(word):
            return Token(TOKEN_VARIABLE, word)
        raise ParseError(f"Variable: {word} must be a single character.")

    def next(self):
        if self.index < len(self.tokens):
            token = self.tokens[self.index]
            self.index += 1
            return token
        return Token(TOKEN_EOF, "")


# --- Parser: Building the Expression Tree from Tokens ---
class Parser:
    """
    Recursive descent over the calculator grammar, lowest precedence first:

        sum        := difference ('+' difference)*
        difference := ['-'] product ('-' product)*
        product    := quotient ('*' quotient)*
        quotient   := implicit ('/' implicit)*
        implicit   := signed signed*
        signed     := '-' signed | power
        power      := postfix ['^' signed]
        postfix    := atom '!'*
        atom       := number | constant | variable | function | '(' sum ')' | <nothing>
    """

    def __init__(self, tokenizer):
        self.tokenizer = tokenizer
        self.current_token = self.tokenizer.next()
        self.depth = 0

    def _advance(self):
        self.current_token = self.tokenizer.next()

    def _eat(self, token_type):
        if self.current_token.type == token_type:
            self._advance()
        else:
            raise ParseError(f"Expected {token_type}, but got '{self.current_token.value}'.")

    def _at_operator(self, symbol):
        return self.current_token.type == TOKEN_OPERATOR and self.current_token.value == symbol

    @contextmanager
    def _nested(self):
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise ParseError("Expression is nested too deeply.")
        try:
            yield
        finally:
            self.depth -= 1

    @staticmethod
    def _group(operation, items):
        """n-ary add/multiply with nested groups of the same operation flattened."""
        if len(items) == 1:
            return items[0]
        flattened = []
        for item in items:
            if item.operation is operation:
                flattened.extend(item.args)
            else:
                flattened.append(item)
        return Expression(operation, flattened)

    def parse(self):
        result = self._sum()
        if self.current_token.type != TOKEN_EOF:
            raise ParseError(f"Unexpected '{self.current_token.value}'.")
        return result

    def _sum(self):
        terms = [self._difference()]
        while self._at_operator('+'):
            self._advance()
            terms.append(self._difference())
        return self._group(Operation.ADD, terms)

    def _difference(self):
        if self._at_operator('-'):
            self._advance()
            result = node(Operation.SUBTRACT, literal(0), self._product())
        else:
            result = self._product()
        with ExitStack() as levels:
            while self._at_operator('-'):
                self._advance()
                levels.enter_context(self._nested())
                result = node(Operation.SUBTRACT, result, self._product())
        return result

    def _product(self):
        factors = [self._quotient()]
        while self._at_operator('*'):
            self._advance()
            factors.append(self._quotient())
        return self._group(Operation.MULTIPLY, factors)

    def _quotient(self):
        result = self._implicit()
        with ExitStack() as levels:  # each operator in a chain deepens the tree by one
            while self._at_operator('/'):
                self._advance()
                levels.enter_context(self._nested())
                result = node(Operation.DIVIDE, result, self._implicit())
        return result

    def _implicit(self):  # adjacency binds tighter than "/", so 1/2x is 1/(2x)
        factors = [self._signed()]
        while self.current_token.type in ATOM_STARTS:
            factors.append(self._signed())
        return self._group(Operation.MULTIPLY, factors)

    def _signed(self):
        if self._at_operator('-'):
            self._advance()
            with self._nested():
                return node(Operation.SUBTRACT, literal(0), self._signed())
        return self._power()

    def _power(self):
        base = self._postfix()
        if not self._at_operator('^'):
            return base
        self._advance()
        with self._nested():
            exponent = self._signed()
        if base.is_identical_to(E_LITERAL):
            return node(Operation.EXP, exponent)
        return node(Operation.POW, base, exponent)

    def _postfix(self):
        result = self._atom()
        with ExitStack() as levels:
            while self._at_operator('!'):
                self._advance()
                levels.enter_context(self._nested())
                result = node(Operation.FAC, result)
        return result

    def _arguments(self):
        args = [self._sum()]
        while self.current_token.type == TOKEN_COMMA:
            self._advance()
            args.append(self._sum())
        return args

    def _atom(self):
        token = self.current_token
        if token.type == TOKEN_NUMBER:
            self._advance()
            return literal(float(token.value))
        if token.type == TOKEN_CONSTANT:
            self._advance()
            return literal(CONSTANTS[token.value])
        if token.type == TOKEN_VARIABLE:
            self._advance()
            return variable(token.value)
        if token.type == TOKEN_FUNCTION:
            self._advance()
            with self._nested():
                if self.current_token.type == TOKEN_LPAREN:
                    self._advance()
                    args = self._arguments()
                    self._eat(TOKEN_RPAREN)
                else:
                    # no parentheses: the next atom is the argument, e.g. "sin2"
                    args = [self._atom()]
            return call(token.value, args)
        if token.type == TOKEN_LPAREN:
            self._advance()
            with self._nested():
                result = self._sum()
            self._eat(TOKEN_RPAREN)
            return result
        # missing operand, reported when evaluated
        return variable("")


E_LITERAL = literal(CONSTANTS["e"])


def parse_tree(text):
    """Parses calculator input into an expression tree."""
    return Parser(Tokenizer(text)).parse()


def parse(text):
    """Parses calculator input into its canonical prefix string, e.g. "2x" -> "multiply([2,0],x)"."""
    canonical = str(parse_tree(text))
    logger.debug(f"Parsed '{text}' as {canonical}")
    return canonical


# --- Canonical Strings ---
def match_paren(text, index, left_to_right=True):
    """Index of the parenthesis matching the one at `index`, scanning in either direction."""
    opening, closing, step = ("(", ")", 1) if left_to_right else (")", "(", -1)
    depth = 0
    position = index
    while 0 <= position < len(text):
        char = text[position]
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return position
        position += step
    raise ParseError("Mismatched parentheses.")


def parse_exp(expression):
    """
    Splits a canonical string into its function name and argument strings.
    A string without parentheses is a leaf: ("identity", [expression]).
    """
    index = expression.find("(")
    if index == -1:
        return "identity", [expression]
    name = expression[:index]
    end = match_paren(expression, index)
    if end != len(expression) - 1:
        raise ParseError(f"Unexpected text after {name}(...).")
    args = []
    depth = 0
    start = index + 1
    for position in range(index + 1, end):
        char = expression[position]
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "," and depth == 0:
            args.append(expression[start:position])
            start = position + 1
    args.append(expression[start:end])
    return name, args
