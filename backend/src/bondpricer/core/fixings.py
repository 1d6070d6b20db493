"""
Fixing resolver.

Substitutes "@name" references in formula text with known fixings and
computes simple arithmetic results ("@USDJPY * 0.9", "95%", "(@A + @B) / 2").
"""

import ast
from dataclasses import dataclass, field
import math
import operator
import re
from typing import Callable, Dict, Mapping, Optional

_BINARY_OPS: Dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPS: Dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_PERCENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)\s*%")


def _evaluate_node(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) \
            and not isinstance(node.value, bool):
        return float(node.value)
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate_node(node.left), _evaluate_node(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate_node(node.operand))
    raise ValueError(f"Unsupported expression element: {ast.dump(node)}")


def compute(text: str) -> Optional[float]:
    """Evaluate a restricted arithmetic expression, or None if it is not one."""
    if text is None:
        return None
    expression = _PERCENT.sub(r"(\1/100)", text.strip())
    if not expression:
        return None
    try:
        tree = ast.parse(expression, mode="eval")
        return _evaluate_node(tree)
    except (SyntaxError, ValueError, ZeroDivisionError, TypeError):
        return None


@dataclass
class FixingInformation:
    """
    Known fixings used to resolve payoff formulas.

    Attributes:
        fixings: Fixing values by variable name (e.g. {"USDJPY": 145.2})
    """

    fixings: Dict[str, float] = field(default_factory=dict)

    def update(self, text: str) -> str:
        """Replace "@name" tokens with their fixing, longest names first."""
        if text is None:
            return text
        result = text
        for name in sorted(self.fixings, key=len, reverse=True):
            result = result.replace("@" + name, repr(float(self.fixings[name])))
        return result

    def update_compute(self, text: str) -> Optional[float]:
        """Substitute fixings, then evaluate. Unresolved references give None."""
        value = compute(self.update(text))
        if value is None or math.isnan(value):
            return None
        return value

    def with_fixings(self, extra: Mapping[str, float]) -> "FixingInformation":
        merged = dict(self.fixings)
        merged.update(extra)
        return FixingInformation(merged)

    @classmethod
    def empty(cls) -> "FixingInformation":
        return cls({})
