import random
from sympy import symbols, S, sin, cos, tan, Add, Pow, sec, csc, cot, exp, log, latex

from Calculus.renderer import render
from Calculus.sympy_bridge import from_sympy


def generate_random_expression(variables, num_terms=3, max_depth=2):

    # Ensure all variables are SymPy symbols
    variables = [symbols(v) if isinstance(v, str) else v for v in variables]

    operators = ["add", "mul", "pow"]
    functions = [sin, cos, tan, sec, csc, cot, exp, log]

    def create_leaf():
        if random.random() < 0.7:
            return random.choice(variables)  # variable
        else:
            return S(random.randint(1, 10))  # constant

    # Exponents are small positive integers so every term stays differentiable
    # with the power rule.
    def safe_exponent():
        return S(random.randint(2, 5))

    def create_node(current_depth):
        if current_depth >= max_depth or random.random() < 0.4:
            return create_leaf()

        choice = random.choice(operators + ["func"])

        # function node
        if choice == "func":
            func = random.choice(functions)
            return func(create_node(current_depth + 1))

        # operator node
        left = create_node(current_depth + 1)
        right = create_node(current_depth + 1)

        if choice == "add":
            return left + right

        elif choice == "mul":
            return left * right

        elif choice == "pow":
            return Pow(left, safe_exponent())

    terms = [create_node(0) for _ in range(num_terms)]
    expr = Add(*terms)

    # The SymPy expression, the same expression in calculator syntax, and its LaTeX
    return expr, render(from_sympy(expr)), latex(expr)


if __name__ == '__main__':
    x = symbols('x')
    expr, expr_str, expr_latex = generate_random_expression([x], num_terms=2, max_depth=3)
    print(f"Generated Expression: {expr}")
    print(f"Generated Expression String: {expr_str}")
    print(f"Generated Expression LaTeX: {expr_latex}")
