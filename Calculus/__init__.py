"""
Symbolic differentiation of single-variable expressions.

Text is tokenized and parsed into an expression tree with a
shunting-yard parser, differentiated with closed-form calculus rules,
simplified, and rendered back to text.
"""

from .derivative_ast import (
    DerivativeResult,
    check_variable_count,
    compute_derivative_ast,
    differentiate_request,
    parse_request,
)
from .differentiator import DifferentiationContext, Differentiator, differentiate
from .errors import (
    ExpressionError,
    IncompleteExpressionError,
    LexError,
    LimitExceededError,
    NotationError,
    ParseError,
    TooDeepError,
    TooManyVariablesError,
    UnbalancedParenError,
    UnsupportedRuleError,
)
from .expression_tree import (
    BinaryOp,
    Constant,
    Derivative,
    ExprNode,
    ExprTree,
    Function,
    FunctionKind,
    Variable,
    count_nodes,
    depends_on,
    substitute,
    tree_depth,
    tree_to_string,
    variables_in,
)
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits, limits_from_env
from .parser import Parser, parse
from .renderer import render
from .simplifier import Simplifier, simplify
from .tokenizer import Token, Tokenizer, TokenType, tokenize

__all__ = [
    # Tree types
    "ExprNode",
    "ExprTree",
    "Constant",
    "Variable",
    "Derivative",
    "BinaryOp",
    "Function",
    "FunctionKind",
    "count_nodes",
    "depends_on",
    "substitute",
    "tree_depth",
    "tree_to_string",
    "variables_in",
    # Errors
    "ExpressionError",
    "LexError",
    "ParseError",
    "UnbalancedParenError",
    "IncompleteExpressionError",
    "NotationError",
    "LimitExceededError",
    "TooDeepError",
    "TooManyVariablesError",
    "UnsupportedRuleError",
    # Limits
    "ExpressionLimits",
    "DEFAULT_EXPRESSION_LIMITS",
    "limits_from_env",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    # Differentiator
    "DifferentiationContext",
    "Differentiator",
    "differentiate",
    # Simplifier
    "Simplifier",
    "simplify",
    # Renderer
    "render",
    # Pipeline
    "DerivativeResult",
    "check_variable_count",
    "compute_derivative_ast",
    "differentiate_request",
    "parse_request",
]
