"""
tools/calculator.py — Math Calculator Tool

Evaluates arithmetic expressions without eval(): the expression is parsed
with the `ast` module and only numeric literals, + - * / ** and
parentheses are walked.

Registered tools:
  - math_calculator → evaluate an arithmetic expression
"""

from __future__ import annotations

import ast
import math
import operator
import re

from gilfoyle.exceptions import ToolValidationError
from gilfoyle.tools.tool_registry import ToolRegistry

_ALLOWED_CHARS = re.compile(r"[^0-9+\-*/().\s]")
_MAX_EXPONENT = 1_000
_MAX_RESULT_BITS = 4_096

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _check_power(base: float, exponent: float) -> None:
    """Reject powers whose result would exceed _MAX_RESULT_BITS before computing them."""
    if abs(exponent) > _MAX_EXPONENT:
        raise ValueError("exponent too large")
    if exponent > 0 and abs(base) > 1 and math.log2(abs(base)) * exponent > _MAX_RESULT_BITS:
        raise ValueError("result too large")


def _eval_node(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right)
        return _BINARY_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    raise ValueError(f"unsupported syntax: {type(node).__name__}")


def format_number(value: float) -> str:
    """Render integral results without a trailing '.0' (345, not 345.0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def calculate(expression: str) -> str:
    """
    Evaluate `expression` and return "<expression> = <result>".

    Raises:
        ToolValidationError: disallowed characters, bad syntax, or
                             division by zero.
    """
    if _ALLOWED_CHARS.search(expression):
        raise ToolValidationError(
            "Invalid characters in expression. Only numbers and basic operators "
            "(+, -, *, /, parentheses) are allowed."
        )

    try:
        tree = ast.parse(expression.strip(), mode="eval")
        result = _eval_node(tree)
    except ZeroDivisionError:
        raise ToolValidationError(f'Error calculating "{expression}": Division by zero.')
    except (SyntaxError, ValueError, OverflowError):
        raise ToolValidationError(
            f'Error calculating "{expression}": Invalid mathematical expression.'
        )

    return f"{expression} = {format_number(result)}"


def register(registry: ToolRegistry) -> None:
    @registry.register(
        name="math_calculator",
        description="Evaluate a basic arithmetic expression (+, -, *, /, parentheses).",
        label="calculator",
        category="math",
        parameters={
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "mathematical expression",
                },
            },
            "required": ["expression"],
        },
    )
    def math_calculator(expression: str) -> str:
        return calculate(str(expression))
