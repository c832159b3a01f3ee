"""
Expression tree node types.

The parser produces these nodes, the differentiator and the simplifier
read them and build new ones. Nodes are frozen: a rewrite always returns
a new tree and leaves its input untouched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Set, Union

BinaryOperator = Literal["+", "-", "*", "/", "^"]


class FunctionKind(Enum):
    """Unary functions understood by the calculator."""

    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    SEC = "sec"
    CSC = "csc"
    COT = "cot"
    LN = "ln"
    LOG = "log"
    LOG_BASE = "log_"
    ARCSIN = "arcsin"
    ARCCOS = "arccos"
    ARCTAN = "arctan"
    ARCSEC = "arcsec"
    ARCCSC = "arccsc"
    ARCCOT = "arccot"
    ABS = "abs"
    SQRT = "sqrt"
    EXP = "exp"


# Function names as typed by the user. log_<base> is matched separately.
FUNCTION_NAMES = {
    kind.value: kind for kind in FunctionKind if kind is not FunctionKind.LOG_BASE
}


# ============================================================
# Node Types
# ============================================================


@dataclass(frozen=True)
class Constant:
    """Numeric literal kept as exact decimal text."""

    value: str

    @property
    def type(self) -> Literal["Constant"]:
        return "Constant"


@dataclass(frozen=True)
class Variable:
    """A single-letter variable."""

    name: str

    @property
    def type(self) -> Literal["Variable"]:
        return "Variable"


@dataclass(frozen=True)
class Derivative:
    """Derivative of a foreign variable, d(of)/d(wrt), left symbolic."""

    of: str
    wrt: str

    @property
    def type(self) -> Literal["Derivative"]:
        return "Derivative"


@dataclass(frozen=True)
class BinaryOp:
    """Binary operator node."""

    operator: BinaryOperator
    left: "ExprNode"
    right: "ExprNode"

    @property
    def type(self) -> Literal["BinaryOp"]:
        return "BinaryOp"


@dataclass(frozen=True)
class Function:
    """Unary function application; base is set for log_<base> only."""

    kind: FunctionKind
    argument: "ExprNode"
    base: Optional[str] = None

    @property
    def type(self) -> Literal["Function"]:
        return "Function"

    @property
    def name(self) -> str:
        if self.kind is FunctionKind.LOG_BASE:
            return f"log_{self.base}"
        return self.kind.value


ExprNode = Union[Constant, Variable, Derivative, BinaryOp, Function]

# A tree is identified with its root node.
ExprTree = ExprNode


# ============================================================
# Constructors
# ============================================================

ZERO = Constant("0")
ONE = Constant("1")
TWO = Constant("2")
NEG_ONE = Constant("-1")


def add(left: ExprNode, right: ExprNode) -> BinaryOp:
    return BinaryOp("+", left, right)


def sub(left: ExprNode, right: ExprNode) -> BinaryOp:
    return BinaryOp("-", left, right)


def mul(left: ExprNode, right: ExprNode) -> BinaryOp:
    return BinaryOp("*", left, right)


def div(left: ExprNode, right: ExprNode) -> BinaryOp:
    return BinaryOp("/", left, right)


def power(base: ExprNode, exponent: ExprNode) -> BinaryOp:
    return BinaryOp("^", base, exponent)


def func(kind: FunctionKind, argument: ExprNode, base: Optional[str] = None) -> Function:
    return Function(kind, argument, base)


def negate(node: ExprNode) -> ExprNode:
    """Negation as the parser builds it: a negative literal, or (-1)*node."""
    if isinstance(node, Constant):
        if node.value == "0":
            return node
        if node.value.startswith("-"):
            return Constant(node.value[1:])
        return Constant("-" + node.value)
    return mul(NEG_ONE, node)


# ============================================================
# Tree Utilities
# ============================================================


def depends_on(node: ExprNode, name: str) -> bool:
    """True if the variable occurs anywhere in the tree."""
    if isinstance(node, Variable):
        return node.name == name
    if isinstance(node, Derivative):
        return node.of == name or node.wrt == name
    if isinstance(node, BinaryOp):
        return depends_on(node.left, name) or depends_on(node.right, name)
    if isinstance(node, Function):
        return depends_on(node.argument, name)
    return False


def variables_in(node: ExprNode) -> Set[str]:
    """Returns the distinct variable letters used in the tree."""
    if isinstance(node, Variable):
        return {node.name}
    if isinstance(node, Derivative):
        return {node.of, node.wrt}
    if isinstance(node, BinaryOp):
        return variables_in(node.left) | variables_in(node.right)
    if isinstance(node, Function):
        return variables_in(node.argument)
    return set()


def substitute(node: ExprNode, target: str, replacement: ExprNode) -> ExprNode:
    """
    Returns a copy of the tree with every occurrence of the variable
    replaced by the replacement subtree.

    Unchanged subtrees are shared with the input; since nodes are frozen
    this is safe.
    """
    if isinstance(node, Variable):
        return replacement if node.name == target else node
    if isinstance(node, BinaryOp):
        left = substitute(node.left, target, replacement)
        right = substitute(node.right, target, replacement)
        if left is node.left and right is node.right:
            return node
        return BinaryOp(node.operator, left, right)
    if isinstance(node, Function):
        argument = substitute(node.argument, target, replacement)
        if argument is node.argument:
            return node
        return Function(node.kind, argument, node.base)
    return node


def count_nodes(node: ExprNode) -> int:
    """Counts the total number of nodes in a tree."""
    if isinstance(node, BinaryOp):
        return 1 + count_nodes(node.left) + count_nodes(node.right)
    if isinstance(node, Function):
        return 1 + count_nodes(node.argument)
    return 1


def tree_depth(node: ExprNode) -> int:
    """
    Calculates the maximum depth of a tree.

    Walks with an explicit stack so that depth checks work on trees deeper
    than the interpreter's recursion limit.
    """
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(current, BinaryOp):
            stack.append((current.left, depth + 1))
            stack.append((current.right, depth + 1))
        elif isinstance(current, Function):
            stack.append((current.argument, depth + 1))
    return deepest


def tree_to_string(node: ExprNode, indent: int = 0) -> str:
    """Returns a human-readable dump of a tree for debugging."""
    prefix = "  " * indent

    if isinstance(node, Constant):
        return f"{prefix}Constant: {node.value}"

    if isinstance(node, Variable):
        return f"{prefix}Variable: {node.name}"

    if isinstance(node, Derivative):
        return f"{prefix}Derivative: d{node.of}/d{node.wrt}"

    if isinstance(node, BinaryOp):
        return (
            f"{prefix}BinaryOp: {node.operator}\n"
            f"{tree_to_string(node.left, indent + 1)}\n"
            f"{tree_to_string(node.right, indent + 1)}"
        )

    if isinstance(node, Function):
        return f"{prefix}Function: {node.name}\n{tree_to_string(node.argument, indent + 1)}"

    return f"{prefix}Unknown: {node}"
