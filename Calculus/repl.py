"""
Console loop for the derivatives calculator.

Reads lines such as ``d/dx(x^2)``, prints the simplified and the extended
derivative, and keeps prompting until the user enters ``q``.
"""

import logging
import sys
from typing import Optional, TextIO

from .derivative_ast import DerivativeResult, differentiate_request
from .errors import ExpressionError, TooManyVariablesError
from .limits import ExpressionLimits

logger = logging.getLogger(__name__)

PROMPT = '\nenter an expression (or "q" to quit): '
QUIT_COMMANDS = ("q", "Q")


def format_result(line: str, result: DerivativeResult) -> str:
    return (
        f"\nsimplified solution:\n{line} = {result.simplified}\n"
        f"extended solution:\n{line} = {result.raw}\n"
    )


def run_repl(
    input_stream: TextIO = sys.stdin,
    output: TextIO = sys.stdout,
    limits: Optional[ExpressionLimits] = None,
) -> int:
    """
    Runs the prompt loop until the user quits or input ends.

    Returns the number of derivatives computed.
    """
    output.write("single variable derivatives calculator\n")
    computed = 0

    while True:
        output.write(PROMPT)
        output.flush()
        line = input_stream.readline()
        if not line:
            break

        line = line.strip()
        if line in QUIT_COMMANDS:
            break
        if not line:
            continue

        try:
            result = differentiate_request(line, limits)
        except TooManyVariablesError as e:
            output.write(f"\n{e.message}\nplease include less than three variables in your input expression.\n")
            continue
        except ExpressionError as e:
            output.write(f"\n{e.format_with_context()}\nplease try again.\n")
            continue

        for note in result.unsupported:
            output.write(f"note: {note}\n")
        output.write(format_result(line, result))
        computed += 1

    output.write("\nthank you for trying out this calculator!\n")
    logger.debug(f"REPL finished after {computed} derivatives")
    return computed
