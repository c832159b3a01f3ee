"""
Tests for the console loop.
"""

import io

from Calculus.repl import PROMPT, run_repl


def run(text):
    output = io.StringIO()
    count = run_repl(io.StringIO(text), output)
    return count, output.getvalue()


def test_prints_both_solutions():
    count, output = run("d/dx(x^2)\nq\n")
    assert count == 1
    assert "simplified solution:\nd/dx(x^2) = 2*x\n" in output
    assert "extended solution:\nd/dx(x^2) = (2*(x^(2-1)))*1\n" in output


def test_quits_on_q():
    count, output = run("Q\nd/dx(x^2)\n")
    assert count == 0
    assert output.count(PROMPT) == 1
    assert output.endswith("thank you for trying out this calculator!\n")


def test_stops_at_end_of_input():
    count, output = run("d/dx(sin(x))\n")
    assert count == 1
    assert "d/dx(sin(x)) = cos(x)" in output
    assert "thank you for trying out this calculator!" in output


def test_skips_blank_lines():
    count, output = run("\n\nd/dx(x)\nq\n")
    assert count == 1
    assert output.count(PROMPT) == 4


def test_too_many_variables_message():
    count, output = run("d/dx(x+y+z)\nq\n")
    assert count == 0
    assert "please include less than three variables in your input expression." in output


def test_input_errors_prompt_again():
    count, output = run("x^2\nd/dx((x+1\nd/dx(x^3)\nq\n")
    assert count == 1
    assert output.count("please try again.") == 2
    assert "d/dx(x^3) = 3*(x^2)" in output


def test_unsupported_notes_are_printed():
    _, output = run("d/dx(dy/dx)\nq\n")
    assert "note: No differentiation rule for Derivative" in output
