import logging
import time
import tracemalloc
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .differentiator import Differentiator
from .errors import NotationError, TooManyVariablesError
from .expression_tree import ExprNode, variables_in
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits
from .parser import parse
from .renderer import render
from .simplifier import Simplifier

# --- Logger Setup ---
logger = logging.getLogger(__name__)

# The variable of differentiation sits right after "d/d" in a request line.
DIFF_VAR_POS = 3
LEIBNIZ_PREFIX = "d/d"


@dataclass
class DerivativeResult:
    """Raw and simplified derivative of one expression, with run statistics."""

    expression: str
    variable: str
    raw: str
    simplified: str
    steps: List[Dict[str, str]] = field(default_factory=list)
    unsupported: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0
    peak_memory_bytes: int = 0


# --- Request Parsing ---
def parse_request(line: str) -> Tuple[str, str]:
    """
    Splits a request of the form d/d<var>(<expression>) into the variable
    and the expression text.

    The expression keeps its surrounding parentheses, so a missing one is
    reported by the parser like any other unbalanced parenthesis.
    """
    text = line.strip()
    if not text.startswith(LEIBNIZ_PREFIX) or len(text) <= DIFF_VAR_POS:
        raise NotationError(
            "Please include Leibniz notation, e.g. d/dx(x^2)", 0, line
        )

    variable = text[DIFF_VAR_POS]
    if not (variable.isascii() and variable.isalpha()):
        raise NotationError(
            f"The variable of differentiation must be a letter, got '{variable}'",
            DIFF_VAR_POS,
            text,
        )

    expression = text[DIFF_VAR_POS + 1:]
    if not expression.strip():
        raise NotationError("Please include an expression to differentiate", len(text), text)

    return variable, expression


def check_variable_count(
    tree: ExprNode, variable: str, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS
) -> None:
    """Rejects trees naming more letters than the engine can track."""
    names = variables_in(tree) | {variable}
    if len(names) > limits.max_variables:
        raise TooManyVariablesError(limits.max_variables, names)


# --- Main Compute Function ---
def compute_derivative_ast(
    expression_str: str,
    variable_str: str,
    limits: Optional[ExpressionLimits] = None,
) -> DerivativeResult:
    """
    Parses, differentiates and simplifies an expression.

    Raises an ExpressionError subclass for input that cannot be
    differentiated; nothing is returned half-built.
    """
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(variable_str) != 1 or not (variable_str.isascii() and variable_str.isalpha()):
        raise NotationError(
            f"The variable of differentiation must be a single letter, got '{variable_str}'"
        )

    # Peak memory counts only allocations made after this point.
    owns_tracing = not tracemalloc.is_tracing()
    if owns_tracing:
        tracemalloc.start()
    else:
        tracemalloc.reset_peak()
    baseline_memory, _ = tracemalloc.get_traced_memory()
    start_time = time.perf_counter()

    try:
        # 1. Tokenize and Parse
        expression_tree = parse(expression_str, limits)
        check_variable_count(expression_tree, variable_str, limits)

        # 2. Differentiate with step tracking
        differentiator = Differentiator(variable_str, limits)
        derivative_tree = differentiator.run(expression_tree)

        # 3. Simplify the result before displaying
        simplified_tree = Simplifier(limits).run(derivative_tree)

        raw = render(derivative_tree)
        simplified = render(simplified_tree)
        steps = differentiator.steps
        steps.append({
            "id": "final_derivative",
            "rule": "final_derivative",
            "expression": simplified,
            "explanation": "The final derivative is:",
        })
    finally:
        end_time = time.perf_counter()
        _, peak_memory = tracemalloc.get_traced_memory()
        if owns_tracing:
            tracemalloc.stop()

    logger.info(f"d/d{variable_str}({expression_str}) = {simplified}")
    return DerivativeResult(
        expression=expression_str,
        variable=variable_str,
        raw=raw,
        simplified=simplified,
        steps=steps,
        unsupported=differentiator.unsupported,
        execution_time_ms=(end_time - start_time) * 1000,
        peak_memory_bytes=max(peak_memory - baseline_memory, 0),
    )


def differentiate_request(
    line: str, limits: Optional[ExpressionLimits] = None
) -> DerivativeResult:
    """Runs a d/d<var>(<expression>) request line through the pipeline."""
    variable, expression = parse_request(line)
    return compute_derivative_ast(expression, variable, limits)
