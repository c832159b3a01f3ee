"""
Tokenizer (lexer) for calculator expressions.

Converts an expression string into a lazy stream of tokens for the
shunting-yard parser. Implicit multiplication (``3x``, ``2(x+1)``) is a
lexical convention: the tokenizer emits the missing ``*`` itself.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from .errors import LexError
from .expression_tree import FUNCTION_NAMES
from .limits import ExpressionLimits, check_expression_length

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    # Operands
    NUMBER = "NUMBER"
    VARIABLE = "VARIABLE"
    DERIVATIVE = "DERIVATIVE"

    # Functions
    FUNCTION = "FUNCTION"

    # Operators
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    SLASH = "SLASH"
    CARET = "CARET"

    # Delimiters
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"


@dataclass
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int


OPERATOR_CHARACTERS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "−": TokenType.MINUS,
    "*": TokenType.STAR,
    "×": TokenType.STAR,
    "·": TokenType.STAR,
    "/": TokenType.SLASH,
    "÷": TokenType.SLASH,
    "^": TokenType.CARET,
}

CANONICAL_OPERATORS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.CARET: "^",
}

# Tokens that may end an operand, and tokens that may start one.
# A pair of them side by side is an implicit multiplication.
_OPERAND_END = (TokenType.NUMBER, TokenType.VARIABLE, TokenType.DERIVATIVE, TokenType.RPAREN)
_OPERAND_START = (
    TokenType.NUMBER,
    TokenType.VARIABLE,
    TokenType.DERIVATIVE,
    TokenType.FUNCTION,
    TokenType.LPAREN,
)

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_DERIVATIVE_RE = re.compile(r"d([A-Za-z])/d([A-Za-z])(?![A-Za-z])")
_LOG_BASE_RE = re.compile(r"log_(\d+(?:\.\d+)?)")
_LETTERS_RE = re.compile(r"[A-Za-z]+")


class Tokenizer:
    """Tokenizer for expression strings."""

    def __init__(self, source: str, limits: Optional[ExpressionLimits] = None):
        self._source = source
        self._limits = limits
        self._position = 0
        self._previous: Optional[Token] = None

    def tokens(self) -> Iterator[Token]:
        """
        Yields tokens one at a time.

        The stream is consumed as it is read; once exhausted, iterating
        again yields nothing.
        """
        check_expression_length(self._source, self._limits)

        while not self._is_at_end():
            token = self._scan_token()
            if token is None:
                continue

            if (
                self._previous is not None
                and self._previous.type in _OPERAND_END
                and token.type in _OPERAND_START
            ):
                yield Token(TokenType.STAR, "*", token.position)

            self._previous = token
            yield token

    def _is_at_end(self) -> bool:
        return self._position >= len(self._source)

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self._source[self._position]

    def _scan_token(self) -> Optional[Token]:
        start_position = self._position
        ch = self._peek()

        if ch.isspace():
            self._position += 1
            return None

        if ch == "(":
            self._position += 1
            return Token(TokenType.LPAREN, ch, start_position)

        if ch == ")":
            self._position += 1
            return Token(TokenType.RPAREN, ch, start_position)

        if ch in OPERATOR_CHARACTERS:
            self._position += 1
            token_type = OPERATOR_CHARACTERS[ch]
            return Token(token_type, CANONICAL_OPERATORS[token_type], start_position)

        number = _NUMBER_RE.match(self._source, self._position)
        if number:
            self._position = number.end()
            return Token(TokenType.NUMBER, number.group(0), start_position)

        if ch.isascii() and ch.isalpha():
            return self._scan_letters(start_position)

        raise LexError(f"Unexpected character: '{ch}'", start_position, self._source)

    def _scan_letters(self, start_position: int) -> Token:
        derivative = _DERIVATIVE_RE.match(self._source, self._position)
        if derivative:
            self._position = derivative.end()
            return Token(TokenType.DERIVATIVE, derivative.group(0), start_position)

        log_base = _LOG_BASE_RE.match(self._source, self._position)
        if log_base:
            self._position = log_base.end()
            return Token(TokenType.FUNCTION, log_base.group(0), start_position)

        run = _LETTERS_RE.match(self._source, self._position).group(0)

        if run == "log" and self._source.startswith("log_", self._position):
            raise LexError(
                "Invalid logarithm base: expected digits after 'log_'",
                start_position,
                self._source,
            )

        if run in FUNCTION_NAMES:
            self._position += len(run)
            return Token(TokenType.FUNCTION, run, start_position)

        if len(run) == 1:
            self._position += 1
            return Token(TokenType.VARIABLE, run, start_position)

        logger.debug(f"Rejected letter run '{run}' at position {start_position}")
        raise LexError(
            f"Unknown function or variable: '{run}'", start_position, self._source
        )


def tokenize(source: str, limits: Optional[ExpressionLimits] = None) -> List[Token]:
    """
    Tokenizes an expression string into tokens.

    Args:
        source: The expression string to tokenize
        limits: Optional expression limits

    Returns:
        List of tokens

    Raises:
        LexError: If the expression contains invalid characters or names
    """
    return list(Tokenizer(source, limits).tokens())
