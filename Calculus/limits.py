"""
Resource limits for parsing, differentiating and simplifying expressions.

Every engine recurses over the expression tree, so nesting depth is
bounded explicitly instead of running into the interpreter's recursion
limit.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError, TooDeepError

ENV_VAR_MAX_EXPRESSION_LENGTH = "CALCULUS_MAX_EXPRESSION_LENGTH"
ENV_VAR_MAX_PARSE_DEPTH = "CALCULUS_MAX_PARSE_DEPTH"
ENV_VAR_MAX_TREE_DEPTH = "CALCULUS_MAX_TREE_DEPTH"


@dataclass(frozen=True)
class ExpressionLimits:
    """Expression limits configuration."""

    # Maximum expression string length in characters
    max_expression_length: int = 1024

    # Maximum nesting depth of a parsed expression
    max_parse_depth: int = 64

    # Maximum recursion depth of the differentiator and simplifier.
    # Each level costs the differentiator about three Python frames; keep this
    # under a third of the interpreter's recursion limit.
    # Derivatives grow deeper than their input.
    max_tree_depth: int = 256

    # Maximum distinct variables, the variable of differentiation included
    max_variables: int = 2


DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def limits_from_env() -> ExpressionLimits:
    """Builds limits from CALCULUS_* environment variables, falling back to defaults."""
    defaults = DEFAULT_EXPRESSION_LIMITS
    return ExpressionLimits(
        max_expression_length=int(
            os.getenv(ENV_VAR_MAX_EXPRESSION_LENGTH, defaults.max_expression_length)
        ),
        max_parse_depth=int(os.getenv(ENV_VAR_MAX_PARSE_DEPTH, defaults.max_parse_depth)),
        max_tree_depth=int(os.getenv(ENV_VAR_MAX_TREE_DEPTH, defaults.max_tree_depth)),
        max_variables=defaults.max_variables,
    )


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates that expression length is within limits."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(expression) > limits.max_expression_length:
        raise LimitExceededError(
            "expression length", limits.max_expression_length, len(expression)
        )


def check_parse_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates the depth of a fragment built by the parser."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if depth > limits.max_parse_depth:
        raise TooDeepError(limits.max_parse_depth, depth)


def check_tree_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates recursion depth while rewriting a tree."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if depth > limits.max_tree_depth:
        raise TooDeepError(limits.max_tree_depth, depth)
