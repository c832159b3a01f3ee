"""
Algebraic clean-up of derivative trees.

A single bottom-up pass: children are simplified first, then the local
rules below are tried at the node itself.

* constant folding with exact decimal arithmetic
* identities: x+0, 0+x, x-0, x*1, 1*x, x*0, 0*x, x/1, 0/x, x^1, x^0, 1^x
* cancellation: x-x, (a+b)-a, (a+b)-b
* constant re-association: c1*(c2*x), (x*c1)*c2

Nothing is reordered, factored or rewritten with identities beyond these.
"""

import logging
from fractions import Fraction
from typing import Dict, Optional

from .expression_tree import (
    ONE,
    ZERO,
    BinaryOp,
    Constant,
    ExprNode,
    Function,
    count_nodes,
    tree_depth,
)
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits, check_tree_depth

logger = logging.getLogger(__name__)

# Largest integer exponent folded by the simplifier.
MAX_FOLDED_EXPONENT = 64


def _value(node: ExprNode) -> Optional[Fraction]:
    if isinstance(node, Constant):
        return Fraction(node.value)
    return None


def _is_value(node: ExprNode, target: int) -> bool:
    value = _value(node)
    return value is not None and value == target


def _format(value: Fraction) -> Optional[str]:
    """Exact decimal text of a fraction, or None if it does not terminate."""
    denominator = value.denominator
    twos = fives = 0
    while denominator % 2 == 0:
        denominator //= 2
        twos += 1
    while denominator % 5 == 0:
        denominator //= 5
        fives += 1
    if denominator != 1:
        return None

    places = max(twos, fives)
    if places == 0:
        return str(value.numerator)

    scaled = abs(value.numerator) * 10 ** places // value.denominator
    digits = str(scaled).rjust(places + 1, "0")
    text = f"{digits[:-places]}.{digits[-places:]}".rstrip("0").rstrip(".")
    return f"-{text}" if value < 0 else text


def fold(operator: str, left: Constant, right: Constant) -> Optional[Constant]:
    """
    Evaluates an operator over two literals exactly.

    Returns None when the result is not representable as exact decimal
    text, or when evaluating would divide by zero.
    """
    a, b = Fraction(left.value), Fraction(right.value)

    if operator == "+":
        result = a + b
    elif operator == "-":
        result = a - b
    elif operator == "*":
        result = a * b
    elif operator == "/":
        if b == 0:
            return None
        result = a / b
    elif operator == "^":
        if b.denominator != 1 or abs(b) > MAX_FOLDED_EXPONENT:
            return None
        if a == 0 and b <= 0:
            return None
        result = a ** int(b)
    else:
        return None

    text = _format(result)
    return Constant(text) if text is not None else None


class Simplifier:
    """Bottom-up simplifier for expression trees."""

    def __init__(self, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS):
        self.limits = limits
        self.memo: Dict[int, ExprNode] = {}

    def run(self, node: ExprNode) -> ExprNode:
        check_tree_depth(tree_depth(node), self.limits)
        return self._simplify(node, 1)

    def _simplify(self, node: ExprNode, depth: int) -> ExprNode:
        check_tree_depth(depth, self.limits)

        if id(node) in self.memo:
            return self.memo[id(node)]

        if isinstance(node, BinaryOp):
            left = self._simplify(node.left, depth + 1)
            right = self._simplify(node.right, depth + 1)
            result = self._rewrite(node.operator, left, right)
        elif isinstance(node, Function):
            argument = self._simplify(node.argument, depth + 1)
            result = node if argument is node.argument else Function(node.kind, argument, node.base)
        else:
            result = node

        self.memo[id(node)] = result
        return result

    def _rewrite(self, op: str, left: ExprNode, right: ExprNode) -> ExprNode:
        """Applies the local rules to a node whose children are already simplified."""
        if isinstance(left, Constant) and isinstance(right, Constant):
            folded = fold(op, left, right)
            if folded is not None:
                return folded

        if op == "+":
            if _is_value(left, 0):
                return right
            if _is_value(right, 0):
                return left

        elif op == "-":
            if _is_value(right, 0):
                return left
            if left == right:
                return ZERO
            if isinstance(left, BinaryOp) and left.operator == "+":
                if left.left == right:
                    return left.right
                if left.right == right:
                    return left.left

        elif op == "*":
            if _is_value(left, 0) or _is_value(right, 0):
                return ZERO
            if _is_value(left, 1):
                return right
            if _is_value(right, 1):
                return left

            # c1 * (c2 * x)  ->  (c1 * c2) * x
            if (
                isinstance(left, Constant)
                and isinstance(right, BinaryOp)
                and right.operator == "*"
                and isinstance(right.left, Constant)
            ):
                product = fold("*", left, right.left)
                if product is not None:
                    return self._rewrite("*", product, right.right)

            # (x * c1) * c2  ->  x * (c1 * c2)
            if (
                isinstance(right, Constant)
                and isinstance(left, BinaryOp)
                and left.operator == "*"
                and isinstance(left.right, Constant)
            ):
                product = fold("*", left.right, right)
                if product is not None:
                    return self._rewrite("*", left.left, product)

        elif op == "/":
            if _is_value(right, 1):
                return left
            if _is_value(left, 0) and not _is_value(right, 0):
                return ZERO

        elif op == "^":
            if _is_value(right, 1):
                return left
            if _is_value(right, 0) and not _is_value(left, 0):
                return ONE
            if _is_value(left, 1):
                return ONE

        return BinaryOp(op, left, right)


def simplify(
    tree: ExprNode, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS
) -> ExprNode:
    """Returns the simplified form of a tree. Idempotent."""
    result = Simplifier(limits).run(tree)
    logger.debug(f"Simplified {count_nodes(tree)} nodes down to {count_nodes(result)}")
    return result
