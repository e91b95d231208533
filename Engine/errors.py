"""
Error taxonomy shared by every stage of the engine.

Each error carries a human-readable message that the calculator front-end
shows verbatim, plus a `kind` tag it can switch on.
"""


class MathError(Exception):
    kind = "MathError"

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __repr__(self):
        return f"{self.kind}('{self.message}')"


class DomainError(MathError):
    """Problem with arguments or domain, e.g. factorial of a non-integer."""
    kind = "DomainError"


class NonrealError(MathError):
    """Real-only evaluation produced a nonreal answer."""
    kind = "NonrealError"


class FunctionError(MathError):
    """Unsupported or non-differentiable function."""
    kind = "FunctionError"


class ParseError(MathError):
    """Malformed user input or canonical string."""
    kind = "SyntaxError"


class SimplificationError(RuntimeError):
    """The simplifier failed to reach a fixed point within its pass budget."""
