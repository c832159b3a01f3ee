"""
Conversion between calculator expression trees and SymPy expressions.

SymPy serves as the reference CAS: the random expression generator
builds SymPy expressions and converts them into calculator trees, and
derivatives computed here can be checked against sympy.diff.
"""

from functools import reduce

import sympy as sp

from .expression_tree import (
    ONE,
    BinaryOp,
    Constant,
    Derivative,
    ExprNode,
    Function,
    FunctionKind,
    Variable,
    add,
    div,
    func,
    mul,
    negate,
    power,
)

_TO_SYMPY = {
    FunctionKind.SIN: sp.sin,
    FunctionKind.COS: sp.cos,
    FunctionKind.TAN: sp.tan,
    FunctionKind.SEC: sp.sec,
    FunctionKind.CSC: sp.csc,
    FunctionKind.COT: sp.cot,
    FunctionKind.LN: sp.log,
    # log without a base is the natural logarithm, matching its derivative 1/x
    FunctionKind.LOG: sp.log,
    FunctionKind.ARCSIN: sp.asin,
    FunctionKind.ARCCOS: sp.acos,
    FunctionKind.ARCTAN: sp.atan,
    FunctionKind.ARCSEC: sp.asec,
    FunctionKind.ARCCSC: sp.acsc,
    FunctionKind.ARCCOT: sp.acot,
    FunctionKind.ABS: sp.Abs,
    FunctionKind.SQRT: sp.sqrt,
    FunctionKind.EXP: sp.exp,
}

_FROM_SYMPY = {
    sp.sin: FunctionKind.SIN,
    sp.cos: FunctionKind.COS,
    sp.tan: FunctionKind.TAN,
    sp.sec: FunctionKind.SEC,
    sp.csc: FunctionKind.CSC,
    sp.cot: FunctionKind.COT,
    sp.log: FunctionKind.LN,
    sp.asin: FunctionKind.ARCSIN,
    sp.acos: FunctionKind.ARCCOS,
    sp.atan: FunctionKind.ARCTAN,
    sp.asec: FunctionKind.ARCSEC,
    sp.acsc: FunctionKind.ARCCSC,
    sp.acot: FunctionKind.ARCCOT,
    sp.Abs: FunctionKind.ABS,
    sp.exp: FunctionKind.EXP,
}


def to_sympy(node: ExprNode) -> sp.Expr:
    """Builds the SymPy expression equivalent to a calculator tree."""
    if isinstance(node, Constant):
        return sp.Rational(node.value)

    if isinstance(node, Variable):
        return sp.Symbol(node.name)

    if isinstance(node, Derivative):
        return sp.Symbol(f"d{node.of}/d{node.wrt}")

    if isinstance(node, BinaryOp):
        left, right = to_sympy(node.left), to_sympy(node.right)
        if node.operator == "+":
            return left + right
        if node.operator == "-":
            return left - right
        if node.operator == "*":
            return left * right
        if node.operator == "/":
            return left / right
        return left ** right

    if isinstance(node, Function):
        argument = to_sympy(node.argument)
        if node.kind is FunctionKind.LOG_BASE:
            return sp.log(argument, sp.Rational(node.base))
        return _TO_SYMPY[node.kind](argument)

    raise TypeError(f"Cannot convert node: {node!r}")


def from_sympy(expr: sp.Expr) -> ExprNode:
    """
    Builds a calculator tree from a SymPy expression.

    Raises:
        ValueError: For symbols longer than one letter, floats, or
            functions the calculator does not know.
    """
    if expr.is_Symbol:
        if len(expr.name) != 1:
            raise ValueError(f"Variables must be single letters, got '{expr.name}'")
        return Variable(expr.name)

    if expr is sp.E:
        return func(FunctionKind.EXP, ONE)

    if expr.is_Integer:
        return Constant(str(expr))

    if expr.is_Rational:
        return div(Constant(str(expr.p)), Constant(str(expr.q)))

    if expr.is_Add:
        return reduce(add, (from_sympy(arg) for arg in expr.args))

    if expr.is_Mul:
        coefficient, rest = expr.as_coeff_Mul()
        if coefficient == -1:
            return negate(from_sympy(rest))
        return reduce(mul, (from_sympy(arg) for arg in expr.args))

    if expr.is_Pow:
        base, exponent = expr.args
        if exponent == sp.Rational(1, 2):
            return func(FunctionKind.SQRT, from_sympy(base))
        if exponent == -1:
            return div(ONE, from_sympy(base))
        return power(from_sympy(base), from_sympy(exponent))

    if expr.is_Function and type(expr) in _FROM_SYMPY:
        return func(_FROM_SYMPY[type(expr)], from_sympy(expr.args[0]))

    raise ValueError(f"Unsupported expression for the calculator: {expr}")
