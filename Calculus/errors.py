"""
Error types for the derivatives calculator.

Every error raised while reading, differentiating or simplifying an
expression extends ExpressionError, so callers can catch one type,
report it and ask for new input.
"""

from typing import Optional


class ExpressionError(Exception):
    """
    Base error class for all expression-related errors.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with position context.
        """
        if self.expression is None or self.position is None:
            return self.message

        pointer = " " * self.position + "^"
        return f"{self.message}\n  {self.expression}\n  {pointer}"


class LexError(ExpressionError):
    """
    Unrecognized character or unknown multi-letter run in the input.
    """

    pass


class ParseError(ExpressionError):
    """
    Error thrown during parsing (syntax analysis).
    """

    pass


class UnbalancedParenError(ParseError):
    """
    A closing parenthesis without an opening one, or the other way round.
    """

    pass


class IncompleteExpressionError(ParseError):
    """
    The operator and operand stacks did not reduce to a single expression.
    """

    pass


class NotationError(ExpressionError):
    """
    The request line is not written in Leibniz notation, d/d<var>(<expression>).
    """

    pass


class LimitExceededError(ExpressionError):
    """
    Error thrown when expression limits are exceeded.
    """

    def __init__(self, limit_name: str, limit: int, actual: int):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class TooDeepError(LimitExceededError):
    """
    The expression is nested deeper than the configured limit.
    """

    def __init__(self, limit: int, actual: int):
        super().__init__("tree depth", limit, actual)


class TooManyVariablesError(LimitExceededError):
    """
    The input names more distinct variables than the engine can track.
    """

    def __init__(self, limit: int, variables):
        super().__init__("distinct variables", limit, len(variables))
        self.variables = sorted(variables)
        self.message = (
            f"Expression uses {len(self.variables)} variables "
            f"({', '.join(self.variables)}); at most {limit} are supported"
        )
        self.args = (self.message,)


class UnsupportedRuleError(ExpressionError):
    """
    No differentiation rule exists for a node.

    Raised and handled inside the differentiator, never surfaced to callers.
    """

    def __init__(self, node_type: str, detail: str = ""):
        message = f"No differentiation rule for {node_type}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.node_type = node_type
