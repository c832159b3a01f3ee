"""
Renders expression trees back into calculator syntax.

Every binary operation below the root is wrapped in parentheses, so the
text never depends on precedence rules and parses back into the same tree.
"""

from .expression_tree import (
    NEG_ONE,
    BinaryOp,
    Constant,
    Derivative,
    ExprNode,
    Function,
    Variable,
)


def render(tree: ExprNode) -> str:
    """Returns the infix text of a tree, parenthesized except at the outermost level."""
    return _render(tree, is_root=True)


def _is_negation(node: ExprNode) -> bool:
    return (
        isinstance(node, BinaryOp)
        and node.operator == "*"
        and node.left == NEG_ONE
        and not isinstance(node.right, Constant)
    )


def _render(node: ExprNode, is_root: bool) -> str:
    if isinstance(node, Constant):
        if node.value.startswith("-") and not is_root:
            return f"({node.value})"
        return node.value

    if isinstance(node, Variable):
        return node.name

    if isinstance(node, Derivative):
        return f"d{node.of}/d{node.wrt}"

    if isinstance(node, Function):
        return f"{node.name}({_render(node.argument, is_root=True)})"

    if isinstance(node, BinaryOp):
        if _is_negation(node):
            text = f"-{_render(node.right, is_root=False)}"
        else:
            left = _render(node.left, is_root=False)
            right = _render(node.right, is_root=False)
            text = f"{left}{node.operator}{right}"
        return text if is_root else f"({text})"

    raise TypeError(f"Cannot render node: {node!r}")
