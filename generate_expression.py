import random
from sympy import symbols, S, sin, cos, tan, Add, Pow, sec, csc, cot, latex


def to_calculator_syntax(expr):
    """sympy's string form in the calculator's input syntax (x**2 -> x^2)."""
    return str(expr).replace("**", "^")


def generate_random_expression(variables, num_terms=3, max_depth=2, seed=None):
    """
    Builds a random sum of num_terms terms out of +, *, integer powers and
    the six trig functions.

    Returns the sympy expression, its calculator-syntax string and its LaTeX.
    """
    rng = random.Random(seed)

    # Ensure all variables are SymPy symbols
    variables = [symbols(v) if isinstance(v, str) else v for v in variables]

    operators = ["add", "mul", "pow"]
    functions = [sin, cos, tan, sec, csc, cot]

    def create_leaf():
        if rng.random() < 0.7:
            return rng.choice(variables)  # variable
        return S(rng.randint(1, 10))  # constant

    # Exponents are constants (integers 1 to 5), so there is no x^y or x^sin(x).
    def safe_exponent():
        return S(rng.randint(1, 5))

    def create_node(current_depth):
        if current_depth >= max_depth or rng.random() < 0.4:
            return create_leaf()

        choice = rng.choice(operators + ["func"])

        # function node
        if choice == "func":
            func = rng.choice(functions)
            return func(create_node(current_depth + 1))

        # operator node
        left = create_node(current_depth + 1)
        right = create_node(current_depth + 1)

        if choice == "add":
            return left + right
        if choice == "mul":
            return left * right
        return Pow(left, safe_exponent())

    terms = [create_node(0) for _ in range(num_terms)]
    expr = Add(*terms)

    return expr, to_calculator_syntax(expr), latex(expr)
