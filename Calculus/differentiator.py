"""
Symbolic differentiation over expression trees.

The Differentiator dispatches on node type to the closed-form calculus
rules (sum, product, quotient, power, exponential, logarithmic,
trigonometric and inverse trigonometric) and builds a new tree for the
derivative. Functions of a compound argument go through the chain rule.

Per-call state lives in a DifferentiationContext that is computed once
for the top-level tree and passed down every recursive call.
"""

import logging
import string
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import UnsupportedRuleError
from .expression_tree import (
    NEG_ONE,
    ONE,
    TWO,
    ZERO,
    BinaryOp,
    Constant,
    Derivative,
    ExprNode,
    Function,
    FunctionKind,
    Variable,
    add,
    depends_on,
    div,
    func,
    mul,
    negate,
    power,
    sub,
    substitute,
    tree_depth,
    variables_in,
)
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits, check_tree_depth
from .renderer import render

logger = logging.getLogger(__name__)

# Letters tried, in order, for the placeholder variable of the chain rule.
_FRESH_CANDIDATES = "uvwtsrqp" + string.ascii_lowercase + string.ascii_uppercase


@dataclass(frozen=True)
class DifferentiationContext:
    """Immutable per-call context threaded through the recursion."""

    variable: str
    other_variable: Optional[str]
    fresh_variable: str

    @classmethod
    def for_tree(cls, tree: ExprNode, variable: str) -> "DifferentiationContext":
        names = variables_in(tree)
        others = sorted(names - {variable})
        taken = names | {variable}
        fresh = next(ch for ch in _FRESH_CANDIDATES if ch not in taken)
        return cls(
            variable=variable,
            other_variable=others[0] if others else None,
            fresh_variable=fresh,
        )

    def varies(self, node: ExprNode) -> bool:
        """
        True if the subtree changes with the variable of differentiation.

        The other variable counts as an implicit function of it.
        """
        if depends_on(node, self.variable):
            return True
        return self.other_variable is not None and depends_on(node, self.other_variable)


def _closed_form(kind: FunctionKind, x: ExprNode, base: Optional[str] = None) -> ExprNode:
    """Derivative of kind(x) with respect to x."""
    if kind is FunctionKind.SIN:
        return func(FunctionKind.COS, x)
    if kind is FunctionKind.COS:
        return negate(func(FunctionKind.SIN, x))
    if kind is FunctionKind.TAN:
        return power(func(FunctionKind.SEC, x), TWO)
    if kind is FunctionKind.SEC:
        return mul(func(FunctionKind.SEC, x), func(FunctionKind.TAN, x))
    if kind is FunctionKind.CSC:
        return negate(mul(func(FunctionKind.CSC, x), func(FunctionKind.COT, x)))
    if kind is FunctionKind.COT:
        return negate(power(func(FunctionKind.CSC, x), TWO))
    if kind in (FunctionKind.LN, FunctionKind.LOG):
        return div(ONE, x)
    if kind is FunctionKind.LOG_BASE:
        return div(ONE, mul(x, func(FunctionKind.LN, Constant(base))))
    if kind is FunctionKind.ARCSIN:
        return div(ONE, func(FunctionKind.SQRT, sub(ONE, power(x, TWO))))
    if kind is FunctionKind.ARCCOS:
        return div(NEG_ONE, func(FunctionKind.SQRT, sub(ONE, power(x, TWO))))
    if kind is FunctionKind.ARCTAN:
        return div(ONE, add(power(x, TWO), ONE))
    if kind is FunctionKind.ARCSEC:
        return div(
            ONE,
            mul(func(FunctionKind.ABS, x), func(FunctionKind.SQRT, sub(power(x, TWO), ONE))),
        )
    if kind is FunctionKind.ARCCSC:
        return div(
            NEG_ONE,
            mul(func(FunctionKind.ABS, x), func(FunctionKind.SQRT, sub(power(x, TWO), ONE))),
        )
    if kind is FunctionKind.ARCCOT:
        return div(NEG_ONE, add(power(x, TWO), ONE))
    if kind is FunctionKind.ABS:
        return div(x, func(FunctionKind.ABS, x))
    if kind is FunctionKind.SQRT:
        return div(ONE, mul(TWO, func(FunctionKind.SQRT, x)))
    if kind is FunctionKind.EXP:
        return func(FunctionKind.EXP, x)
    raise UnsupportedRuleError("Function", f"no closed form for '{kind.value}'")


class Differentiator:
    """
    Differentiates one expression tree with respect to one variable.

    Besides the derivative, an instance collects the rule applications in
    ``steps`` and any node it had no rule for in ``unsupported``.
    """

    def __init__(self, variable: str, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS):
        self.variable = variable
        self.limits = limits
        self.steps: List[Dict[str, str]] = []
        self.unsupported: List[str] = []

    def _add_step(self, node: ExprNode, rule_key: str, explanation: str) -> None:
        self.steps.append({
            "id": f"step_{len(self.steps)}_{rule_key}",
            "rule": rule_key,
            "expression": render(node),
            "explanation": explanation,
        })

    def run(self, tree: ExprNode) -> ExprNode:
        check_tree_depth(tree_depth(tree), self.limits)
        context = DifferentiationContext.for_tree(tree, self.variable)
        self._add_step(tree, "initial_expression", f"Differentiating with respect to {self.variable}:")
        return self._differentiate(tree, context, 1)

    def _differentiate(self, node: ExprNode, context: DifferentiationContext, depth: int) -> ExprNode:
        check_tree_depth(depth, self.limits)
        try:
            return self._dispatch(node, context, depth)
        except UnsupportedRuleError as e:
            logger.warning(f"{e.message}; substituting 0 for d({render(node)})/d{context.variable}")
            self.unsupported.append(e.message)
            return ZERO

    def _dispatch(self, node: ExprNode, context: DifferentiationContext, depth: int) -> ExprNode:
        if isinstance(node, Constant):
            self._add_step(node, "constantRule", "The derivative of a constant is 0.")
            return ZERO

        if isinstance(node, Variable):
            if node.name == context.variable:
                self._add_step(node, "variableRule", f"The derivative of {node.name} is 1.")
                return ONE
            result = Derivative(of=node.name, wrt=context.variable)
            self._add_step(
                result,
                "foreignVariableRule",
                f"{node.name} is treated as a function of {context.variable}.",
            )
            return result

        if isinstance(node, (BinaryOp, Function)) and not context.varies(node):
            self._add_step(node, "constantRule", f"{render(node)} does not depend on {context.variable}.")
            return ZERO

        if isinstance(node, BinaryOp):
            return self._binary(node, context, depth)

        if isinstance(node, Function):
            if node.argument == Variable(context.variable):
                result = _closed_form(node.kind, node.argument, node.base)
                self._add_step(result, f"{node.kind.name.lower()}Rule", f"Derivative of {node.name}.")
                return result
            return self._chain_rule(node, context, depth)

        if isinstance(node, Derivative):
            raise UnsupportedRuleError("Derivative", f"d{node.of}/d{node.wrt} cannot be differentiated again")

        raise UnsupportedRuleError(type(node).__name__)

    def _binary(self, node: BinaryOp, context: DifferentiationContext, depth: int) -> ExprNode:
        op = node.operator
        u, v = node.left, node.right

        if op in ("+", "-"):
            result = BinaryOp(
                op,
                self._differentiate(u, context, depth + 1),
                self._differentiate(v, context, depth + 1),
            )
            self._add_step(result, "sumRule", "Result of the Sum/Difference Rule.")
            return result

        if op == "*":
            du = self._differentiate(u, context, depth + 1)
            dv = self._differentiate(v, context, depth + 1)
            result = add(mul(du, v), mul(u, dv))
            self._add_step(result, "productRule", "Result of the Product Rule.")
            return result

        if op == "/":
            du = self._differentiate(u, context, depth + 1)
            dv = self._differentiate(v, context, depth + 1)
            result = div(sub(mul(du, v), mul(u, dv)), power(v, TWO))
            self._add_step(result, "quotientRule", "Result of the Quotient Rule.")
            return result

        if op == "^":
            return self._power(node, context, depth)

        raise UnsupportedRuleError("BinaryOp", f"unknown operator '{op}'")

    def _power(self, node: BinaryOp, context: DifferentiationContext, depth: int) -> ExprNode:
        base, exponent = node.left, node.right
        base_varies = context.varies(base)
        exponent_varies = context.varies(exponent)

        if not exponent_varies:
            # b * a^(b-1) * a'
            d_base = self._differentiate(base, context, depth + 1)
            result = mul(mul(exponent, power(base, sub(exponent, ONE))), d_base)
            self._add_step(result, "powerRule", "Result of the Power Rule.")
            return result

        if not base_varies:
            # a^b * ln(a) * b'
            d_exponent = self._differentiate(exponent, context, depth + 1)
            result = mul(mul(node, func(FunctionKind.LN, base)), d_exponent)
            self._add_step(result, "exponentialRule", "Result of the Exponential Rule.")
            return result

        # a^b = e^(b*ln(a)), so (a^b)' = a^b * (b*ln(a))'
        exponent_form = mul(exponent, func(FunctionKind.LN, base))
        d_exponent_form = self._differentiate(exponent_form, context, depth + 1)
        result = mul(node, d_exponent_form)
        self._add_step(
            result,
            "logarithmicPowerRule",
            "Rewriting the power as e^(b*ln(a)) and applying the Chain Rule.",
        )
        return result

    def _chain_rule(self, node: Function, context: DifferentiationContext, depth: int) -> ExprNode:
        placeholder = Variable(context.fresh_variable)
        template = Function(node.kind, placeholder, node.base)
        template_context = DifferentiationContext.for_tree(template, placeholder.name)

        outer = self._differentiate(template, template_context, depth + 1)
        outer = substitute(outer, placeholder.name, node.argument)
        inner = self._differentiate(node.argument, context, depth + 1)

        result = mul(outer, inner)
        self._add_step(result, "chainRule", f"Result of the Chain Rule for {node.name}.")
        return result


def differentiate(
    tree: ExprNode, variable: str, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS
) -> ExprNode:
    """
    Returns the derivative of a tree with respect to a variable.

    Never raises for a well-formed tree, apart from TooDeepError when the
    tree nests beyond the configured limit.

    Only one letter besides the variable is tracked as an implicit function
    of it; trees with three or more letters are rejected upstream by
    check_variable_count and give wrong results here.
    """
    return Differentiator(variable, limits).run(tree)
