"""
Shunting-yard parser for calculator expressions.

Consumes the token stream left to right with two stacks, one for
operators, functions and parenthesis markers, one for the tree fragments
built so far, and reduces them into a single expression tree.

Precedence (highest to lowest):
1. Function application: sin(...), log_10(...)
2. Power: ^ (right-associative)
3. Unary minus: -
4. Multiplicative: *, /
5. Additive: +, -
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import IncompleteExpressionError, UnbalancedParenError
from .expression_tree import (
    FUNCTION_NAMES,
    BinaryOp,
    Constant,
    Derivative,
    ExprNode,
    Function,
    FunctionKind,
    Variable,
    negate,
)
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits, check_parse_depth
from .tokenizer import CANONICAL_OPERATORS, Token, TokenType, Tokenizer

logger = logging.getLogger(__name__)

_BINARY = "binary"
_UNARY = "unary"
_FUNCTION = "function"
_MARKER = "marker"

# operator -> (precedence, right associative)
_BINARY_PRECEDENCE = {
    "+": (1, False),
    "-": (1, False),
    "*": (2, False),
    "/": (2, False),
    "^": (4, True),
}
_UNARY_PRECEDENCE = 3

_OPERATOR_TOKENS = (
    TokenType.PLUS,
    TokenType.MINUS,
    TokenType.STAR,
    TokenType.SLASH,
    TokenType.CARET,
)


@dataclass
class _StackEntry:
    kind: str
    value: str
    position: int

    @property
    def precedence(self) -> int:
        if self.kind == _BINARY:
            return _BINARY_PRECEDENCE[self.value][0]
        if self.kind == _UNARY:
            return _UNARY_PRECEDENCE
        return 0


class Parser:
    """Parser for calculator expressions."""

    def __init__(
        self,
        tokens: Iterable[Token],
        source: str,
        limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
    ):
        self._tokens = iter(tokens)
        self._source = source
        self._limits = limits
        self._operators: List[_StackEntry] = []
        # Each fragment is kept with its depth so the limit is checked
        # without walking the tree.
        self._operands: List[Tuple[ExprNode, int]] = []

    def parse(self) -> ExprNode:
        """Parses the token stream into an expression tree."""
        expect_operand = True
        pending_function: Optional[Token] = None

        for token in self._tokens:
            if pending_function is not None and token.type != TokenType.LPAREN:
                raise IncompleteExpressionError(
                    f"Expected '(' after function '{pending_function.value}'",
                    token.position,
                    self._source,
                )
            pending_function = None

            if token.type in (TokenType.NUMBER, TokenType.VARIABLE, TokenType.DERIVATIVE):
                self._push_operand(self._leaf(token), 1)
                expect_operand = False

            elif token.type == TokenType.FUNCTION:
                self._operators.append(_StackEntry(_FUNCTION, token.value, token.position))
                pending_function = token

            elif token.type == TokenType.LPAREN:
                self._operators.append(_StackEntry(_MARKER, "(", token.position))
                expect_operand = True

            elif token.type == TokenType.RPAREN:
                if expect_operand:
                    raise IncompleteExpressionError(
                        "Expected an operand before ')'", token.position, self._source
                    )
                self._close_paren(token)
                expect_operand = False

            elif token.type in _OPERATOR_TOKENS:
                operator = CANONICAL_OPERATORS[token.type]
                if expect_operand:
                    if operator == "-":
                        self._operators.append(_StackEntry(_UNARY, "-", token.position))
                    elif operator != "+":
                        raise IncompleteExpressionError(
                            f"Expected an operand before '{operator}'",
                            token.position,
                            self._source,
                        )
                    continue
                self._push_binary(_StackEntry(_BINARY, operator, token.position))
                expect_operand = True

        end = len(self._source)
        if pending_function is not None:
            raise IncompleteExpressionError(
                f"Expected '(' after function '{pending_function.value}'", end, self._source
            )

        for entry in self._operators:
            if entry.kind == _MARKER:
                raise UnbalancedParenError(
                    "Missing ')' for this '('", entry.position, self._source
                )

        if expect_operand:
            raise IncompleteExpressionError("Unexpected end of expression", end, self._source)

        while self._operators:
            self._apply(self._operators.pop())

        if len(self._operands) != 1:
            raise IncompleteExpressionError(
                f"Expression did not reduce to a single result ({len(self._operands)} parts)",
                end,
                self._source,
            )

        tree, depth = self._operands[0]
        logger.debug(f"Parsed '{self._source}' into a tree of depth {depth}")
        return tree

    # ============================================================
    # Stack Helpers
    # ============================================================

    def _leaf(self, token: Token) -> ExprNode:
        if token.type == TokenType.NUMBER:
            return Constant(token.value)
        if token.type == TokenType.VARIABLE:
            return Variable(token.value)
        return Derivative(of=token.value[1], wrt=token.value[4])

    def _push_operand(self, node: ExprNode, depth: int) -> None:
        check_parse_depth(depth, self._limits)
        self._operands.append((node, depth))

    def _pop_operand(self, entry: _StackEntry) -> Tuple[ExprNode, int]:
        if not self._operands:
            raise IncompleteExpressionError(
                f"Missing operand for '{entry.value}'", entry.position, self._source
            )
        return self._operands.pop()

    def _push_binary(self, incoming: _StackEntry) -> None:
        precedence, right_associative = _BINARY_PRECEDENCE[incoming.value]
        while self._operators:
            top = self._operators[-1]
            if top.kind not in (_BINARY, _UNARY):
                break
            if top.precedence > precedence or (
                top.precedence == precedence and not right_associative
            ):
                self._apply(self._operators.pop())
            else:
                break
        self._operators.append(incoming)

    def _close_paren(self, token: Token) -> None:
        while self._operators and self._operators[-1].kind != _MARKER:
            self._apply(self._operators.pop())

        if not self._operators:
            raise UnbalancedParenError(
                "Unexpected ')' without matching '('", token.position, self._source
            )

        self._operators.pop()

        if self._operators and self._operators[-1].kind == _FUNCTION:
            self._apply(self._operators.pop())

    def _apply(self, entry: _StackEntry) -> None:
        if entry.kind == _BINARY:
            right, right_depth = self._pop_operand(entry)
            left, left_depth = self._pop_operand(entry)
            self._push_operand(
                BinaryOp(entry.value, left, right), 1 + max(left_depth, right_depth)
            )
        elif entry.kind == _UNARY:
            operand, depth = self._pop_operand(entry)
            negated = negate(operand)
            self._push_operand(negated, depth if isinstance(negated, Constant) else depth + 1)
        elif entry.kind == _FUNCTION:
            argument, depth = self._pop_operand(entry)
            self._push_operand(_function_node(entry.value, argument), depth + 1)
        else:
            raise UnbalancedParenError(
                "Missing ')' for this '('", entry.position, self._source
            )


def _function_node(name: str, argument: ExprNode) -> Function:
    if name.startswith("log_"):
        return Function(FunctionKind.LOG_BASE, argument, base=name[len("log_"):])
    return Function(FUNCTION_NAMES[name], argument)


def parse(
    source: str, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS
) -> ExprNode:
    """
    Parses an expression string into an expression tree.

    Args:
        source: The expression string to parse
        limits: Optional expression limits

    Returns:
        The root node of the parsed tree

    Raises:
        LexError: If tokenization fails
        UnbalancedParenError: If parentheses do not match
        IncompleteExpressionError: If operators lack operands
        TooDeepError: If the expression nests too deeply
    """
    tokens = Tokenizer(source, limits).tokens()
    return Parser(tokens, source, limits).parse()
