"""
Tests for the shunting-yard parser.
"""

import pytest

from Calculus import (
    BinaryOp,
    Constant,
    Derivative,
    ExpressionLimits,
    Function,
    FunctionKind,
    IncompleteExpressionError,
    LexError,
    Parser,
    TooDeepError,
    UnbalancedParenError,
    Variable,
    parse,
    tokenize,
)

x = Variable("x")


def c(value):
    return Constant(str(value))


class TestOperands:
    """Tests for leaf parsing."""

    def test_parses_variable(self):
        assert parse("x") == x

    def test_parses_number(self):
        assert parse("3.5") == Constant("3.5")

    def test_parses_negative_number_as_constant(self):
        assert parse("-3") == Constant("-3")

    def test_parses_derivative_leaf(self):
        assert parse("dy/dx") == Derivative(of="y", wrt="x")

    def test_redundant_parentheses_are_dropped(self):
        assert parse("((x))") == x


class TestPrecedence:
    """Tests for operator precedence and associativity."""

    def test_multiplication_binds_tighter_than_addition(self):
        assert parse("1+2*3") == BinaryOp("+", c(1), BinaryOp("*", c(2), c(3)))

    def test_subtraction_is_left_associative(self):
        assert parse("8-3-2") == BinaryOp("-", BinaryOp("-", c(8), c(3)), c(2))

    def test_division_is_left_associative(self):
        assert parse("8/4/2") == BinaryOp("/", BinaryOp("/", c(8), c(4)), c(2))

    def test_power_is_right_associative(self):
        assert parse("2^3^2") == BinaryOp("^", c(2), BinaryOp("^", c(3), c(2)))

    def test_power_binds_tighter_than_unary_minus(self):
        assert parse("-x^2") == BinaryOp("*", c(-1), BinaryOp("^", x, c(2)))

    def test_parenthesized_negative_base(self):
        assert parse("(-2)^2") == BinaryOp("^", c(-2), c(2))

    def test_unary_minus_in_exponent(self):
        assert parse("2^-x") == BinaryOp("^", c(2), BinaryOp("*", c(-1), x))

    def test_unary_minus_binds_tighter_than_multiplication(self):
        assert parse("-x*2") == BinaryOp("*", BinaryOp("*", c(-1), x), c(2))

    def test_unary_minus_after_operator(self):
        assert parse("x*-3") == BinaryOp("*", x, c(-3))

    def test_unary_plus_is_ignored(self):
        assert parse("+x") == x

    def test_parentheses_override_precedence(self):
        assert parse("(1+2)*3") == BinaryOp("*", BinaryOp("+", c(1), c(2)), c(3))

    def test_implicit_multiplication(self):
        assert parse("3x+5") == BinaryOp("+", BinaryOp("*", c(3), x), c(5))


class TestFunctions:
    """Tests for function application."""

    def test_parses_function_call(self):
        assert parse("sin(x)") == Function(FunctionKind.SIN, x)

    def test_function_binds_tighter_than_power(self):
        assert parse("sin(x)^2") == BinaryOp("^", Function(FunctionKind.SIN, x), c(2))

    def test_parses_compound_argument(self):
        assert parse("ln(x+1)") == Function(FunctionKind.LN, BinaryOp("+", x, c(1)))

    def test_parses_logarithm_base(self):
        node = parse("log_10(x)")
        assert node == Function(FunctionKind.LOG_BASE, x, base="10")
        assert node.name == "log_10"

    def test_parses_nested_functions(self):
        assert parse("arctan(sin(x))") == Function(
            FunctionKind.ARCTAN, Function(FunctionKind.SIN, x)
        )

    def test_negated_function(self):
        assert parse("-sin(x)") == BinaryOp("*", c(-1), Function(FunctionKind.SIN, x))


class TestErrors:
    """Tests for malformed input."""

    def test_missing_closing_parenthesis(self):
        with pytest.raises(UnbalancedParenError) as exc_info:
            parse("(x+1")
        assert exc_info.value.position == 0

    def test_missing_opening_parenthesis(self):
        with pytest.raises(UnbalancedParenError):
            parse("x+1)")

    def test_trailing_operator(self):
        with pytest.raises(IncompleteExpressionError):
            parse("x+")

    def test_leading_binary_operator(self):
        with pytest.raises(IncompleteExpressionError):
            parse("*x")

    def test_empty_parentheses(self):
        with pytest.raises(IncompleteExpressionError):
            parse("()")

    def test_empty_input(self):
        with pytest.raises(IncompleteExpressionError):
            parse("")

    def test_function_without_parentheses(self):
        with pytest.raises(IncompleteExpressionError):
            parse("sin x")

    def test_function_at_end_of_input(self):
        with pytest.raises(IncompleteExpressionError):
            parse("sin")

    def test_lexical_errors_propagate(self):
        with pytest.raises(LexError):
            parse("x & y")


class TestLimits:
    """Tests for the depth guard."""

    def test_deep_nesting_is_rejected(self):
        with pytest.raises(TooDeepError):
            parse("+".join(["x"] * 100))

    def test_custom_depth_limit(self):
        limits = ExpressionLimits(max_parse_depth=3)
        assert parse("x+x+x", limits) == BinaryOp("+", BinaryOp("+", x, x), x)
        with pytest.raises(TooDeepError):
            parse("x+x+x+x", limits)

    def test_parentheses_alone_do_not_add_depth(self):
        assert parse("(" * 80 + "x" + ")" * 80) == x


class TestParserClass:
    """Tests for driving the Parser directly."""

    def test_parses_token_list(self):
        source = "x^2"
        assert Parser(tokenize(source), source).parse() == BinaryOp("^", x, c(2))
