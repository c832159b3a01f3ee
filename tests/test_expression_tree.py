"""
Tests for expression tree helpers.
"""

import dataclasses

import pytest

from Calculus import (
    BinaryOp,
    Constant,
    Derivative,
    Function,
    FunctionKind,
    Variable,
    count_nodes,
    depends_on,
    parse,
    substitute,
    tree_depth,
    tree_to_string,
    variables_in,
)
from Calculus.expression_tree import negate


class TestNodes:
    """Tests for node construction."""

    def test_nodes_are_frozen(self):
        node = parse("x+1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.left = Variable("y")

    def test_node_type_tags(self):
        assert parse("1").type == "Constant"
        assert parse("x").type == "Variable"
        assert parse("dy/dx").type == "Derivative"
        assert parse("x+1").type == "BinaryOp"
        assert parse("sin(x)").type == "Function"

    def test_structural_equality(self):
        assert parse("sin(x)+1") == parse("sin(x) + 1")

    def test_negate_constant(self):
        assert negate(Constant("2")) == Constant("-2")
        assert negate(Constant("-2")) == Constant("2")
        assert negate(Constant("0")) == Constant("0")

    def test_negate_subtree(self):
        assert negate(Variable("x")) == BinaryOp("*", Constant("-1"), Variable("x"))


class TestQueries:
    """Tests for read-only tree queries."""

    def test_depends_on(self):
        tree = parse("sin(x)*y")
        assert depends_on(tree, "x")
        assert depends_on(tree, "y")
        assert not depends_on(tree, "z")

    def test_variables_in(self):
        assert variables_in(parse("x^2 + 3y - x")) == {"x", "y"}
        assert variables_in(parse("2+3")) == set()

    def test_count_nodes(self):
        assert count_nodes(parse("sin(x)+1")) == 4

    def test_tree_depth(self):
        assert tree_depth(parse("x")) == 1
        assert tree_depth(parse("sin(x+1)*2")) == 4

    def test_tree_depth_beyond_recursion_limit(self):
        tree = Variable("x")
        for _ in range(5000):
            tree = Function(FunctionKind.SIN, tree)
        assert tree_depth(tree) == 5001

    def test_tree_to_string(self):
        dump = tree_to_string(parse("log_2(x)+dy/dx"))
        assert dump.splitlines() == [
            "BinaryOp: +",
            "  Function: log_2",
            "    Variable: x",
            "  Derivative: dy/dx",
        ]


class TestSubstitute:
    """Tests for pure substitution."""

    def test_replaces_every_occurrence(self):
        template = parse("cos(u)*u")
        replacement = parse("x^2")
        assert substitute(template, "u", replacement) == parse("cos(x^2)*(x^2)")

    def test_does_not_mutate_template(self):
        template = parse("sec(u)*tan(u)")
        snapshot = parse("sec(u)*tan(u)")
        substitute(template, "u", parse("2x"))
        assert template == snapshot

    def test_returns_same_tree_when_variable_absent(self):
        tree = parse("sin(x)+1")
        assert substitute(tree, "u", Constant("3")) is tree

    def test_leaves_other_leaves_alone(self):
        tree = BinaryOp("+", Derivative("y", "x"), Constant("1"))
        assert substitute(tree, "y", Variable("z")) is tree

    def test_preserves_function_base(self):
        tree = Function(FunctionKind.LOG_BASE, Variable("u"), base="2")
        assert substitute(tree, "u", Variable("x")) == parse("log_2(x)")
