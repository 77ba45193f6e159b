# smartcalc/tools/calculator.py
import ast
import math
import operator as op
import re
from decimal import Decimal

from smartcalc.errors import EvaluationError

ERROR = "Error"

# digits, the four operators, parentheses, decimal point, percent and space
DISALLOWED = re.compile(r"[^0-9+\-*/().% ]")
LEADING_ZEROS = re.compile(r"(?<![\d.])0+(?=\d)")

ALLOWED_OPERATORS = {
    ast.Add: op.add,
    ast.Sub: op.sub,
    ast.Mult: op.mul,
    ast.Div: op.truediv,
    ast.Pow: op.pow,
    ast.USub: op.neg,
    ast.UAdd: op.pos,
}


def sanitize(expr: str) -> str:
    """
    Reject anything outside the arithmetic whitelist and apply the percent
    rewrite. Every ``%`` becomes ``/100*``, so ``"50%2"`` reads as ``50/100*2``
    while a trailing ``%`` leaves a dangling operator.
    """
    if DISALLOWED.sub("", expr) != expr:
        raise EvaluationError("Invalid characters in expression")
    text = expr.replace("%", "/100*").strip()
    if not text:
        raise EvaluationError("Empty expression")
    return LEADING_ZEROS.sub("", text)


def safe_eval(expr: str) -> float:
    """
    Evaluate a sanitized arithmetic expression without executing code.
    Only numeric literals, the binary operators above and unary sign are
    accepted.
    """
    def _eval(node):
        if isinstance(node, ast.Constant) and type(node.value) in (int, float):
            return float(node.value)
        if isinstance(node, ast.BinOp) and type(node.op) in ALLOWED_OPERATORS:
            left = _eval(node.left)
            right = _eval(node.right)
            oper = ALLOWED_OPERATORS[type(node.op)]
            return oper(left, right)
        if isinstance(node, ast.UnaryOp) and type(node.op) in ALLOWED_OPERATORS:
            # a sign directly before a power ("-2**2") is ambiguous; "-(2**2)" is fine
            operand = node.operand
            if isinstance(operand, ast.BinOp) and isinstance(operand.op, ast.Pow) \
                    and "(" not in expr[node.col_offset:operand.col_offset]:
                raise EvaluationError("Unary operator before exponentiation")
            oper = ALLOWED_OPERATORS[type(node.op)]
            return oper(_eval(node.operand))
        raise EvaluationError("Unsupported expression")

    try:
        parsed = ast.parse(expr, mode="eval")
        value = _eval(parsed.body)
    except EvaluationError:
        raise
    except (SyntaxError, ArithmeticError, RecursionError, MemoryError, ValueError) as e:
        raise EvaluationError(str(e)) from e

    if isinstance(value, complex) or math.isnan(value) or math.isinf(value):
        raise EvaluationError("Invalid calculation")
    return value


def format_number(value: float) -> str:
    """Render a float the way a JavaScript display would (4, 0.5, 1e+21, 1e-7)."""
    if value == 0:
        return "0"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def evaluate(expression: str) -> str:
    """Return the display form of the expression's value, or ``"Error"``."""
    try:
        return format_number(safe_eval(sanitize(expression)))
    except EvaluationError:
        return ERROR
