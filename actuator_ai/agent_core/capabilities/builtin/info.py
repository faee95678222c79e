"""Read-only information tools: time, date and arithmetic."""

from __future__ import annotations

import ast
import math
import operator
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field

from ...errors import ToolExecutionError
from ...schemas.domain import BlastRadius, ErrorCode, RiskLevel, ToolCapability
from ..base import BaseToolExecutor, ToolHandler, ToolOutcome
from ..validation import ToolParams


class GetTimeParams(ToolParams):
    timezone: Optional[str] = Field(default=None, max_length=64)
    format: Optional[Literal["12h", "24h"]] = None


class GetDateParams(ToolParams):
    format: Optional[Literal["short", "long", "iso"]] = None


class CalculateParams(ToolParams):
    expression: str = Field(min_length=1, max_length=200)


_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {ast.UAdd: operator.pos, ast.USub: operator.neg}
_MAX_EXPONENT = 100
_MAX_RESULT_BITS = 10_000


def _check_size(op: ast.operator, left: Any, right: Any) -> None:
    """Reject integer operations whose result would exceed ``_MAX_RESULT_BITS`` before computing them."""
    if not (isinstance(left, int) and isinstance(right, int)):
        return
    if isinstance(op, ast.Pow):
        bits = abs(left).bit_length() * right if right > 0 else 0
    elif isinstance(op, ast.Mult):
        bits = abs(left).bit_length() + abs(right).bit_length()
    else:
        return
    if bits > _MAX_RESULT_BITS:
        raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, "Result too large")


def safe_evaluate(expression: str) -> float | int:
    """Evaluate an arithmetic expression without ``eval``.

    Only numeric literals, parentheses and the operators ``+ - * / // % **``
    are accepted.
    """
    try:
        tree = ast.parse(expression.replace("^", "**"), mode="eval")
    except SyntaxError as exc:
        raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, f"Invalid expression: {expression}") from exc

    def _eval(node: ast.AST) -> Any:
        if isinstance(node, ast.Expression):
            return _eval(node.body)
        if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return node.value
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
            left, right = _eval(node.left), _eval(node.right)
            if isinstance(node.op, ast.Pow) and abs(right) > _MAX_EXPONENT:
                raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, "Exponent too large")
            _check_size(node.op, left, right)
            return _BINARY_OPS[type(node.op)](left, right)
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
            return _UNARY_OPS[type(node.op)](_eval(node.operand))
        raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, f"Unsupported expression: {expression}")

    try:
        result = _eval(tree)
    except ZeroDivisionError as exc:
        raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, "Division by zero") from exc
    except (OverflowError, ValueError) as exc:
        raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, "Result too large") from exc
    if isinstance(result, float) and not math.isfinite(result):
        raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, "Result too large")
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


def _local_now() -> datetime:
    return datetime.now().astimezone()


class InfoExecutor(BaseToolExecutor):
    id = "info"
    name = "Info & Utility"
    category = "info"

    def __init__(self, *, clock: Callable[[], datetime] = _local_now) -> None:
        self._clock = clock

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="getTime",
                description="Get the current time, optionally in another timezone",
                params_schema=GetTimeParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=True,
            ),
            ToolCapability(
                name="getDate",
                description="Get the current date",
                params_schema=GetDateParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=True,
            ),
            ToolCapability(
                name="calculate",
                description="Evaluate an arithmetic expression",
                params_schema=CalculateParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=True,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {
            "getTime": self._get_time,
            "getDate": self._get_date,
            "calculate": self._calculate,
        }

    async def _get_time(self, params: Dict[str, Any]) -> ToolOutcome:
        now = self._clock()
        tz_name = params.get("timezone")
        if tz_name:
            try:
                now = now.astimezone(ZoneInfo(tz_name))
            except (ZoneInfoNotFoundError, ValueError):
                tz_name = None
        pattern = "%H:%M" if params.get("format") == "24h" else "%I:%M %p"
        time_string = now.strftime(pattern).lstrip("0") or "0"
        return ToolOutcome(
            output={"time": time_string, "timezone": tz_name, "iso": now.isoformat()},
            message=f"It's {time_string}",
        )

    async def _get_date(self, params: Dict[str, Any]) -> ToolOutcome:
        now = self._clock()
        fmt = params.get("format")
        if fmt == "iso":
            date_string = now.date().isoformat()
        elif fmt == "short":
            date_string = f"{now.month}/{now.day}/{now.year}"
        else:
            date_string = f"{now.strftime('%A, %B')} {now.day}, {now.year}"
        return ToolOutcome(
            output={
                "date": date_string,
                "day_of_week": now.strftime("%A"),
                "day": now.day,
                "month": now.strftime("%B"),
                "year": now.year,
            },
            message=f"Today is {date_string}",
        )

    async def _calculate(self, params: Dict[str, Any]) -> ToolOutcome:
        expression = params["expression"]
        result = safe_evaluate(expression)
        return ToolOutcome(output={"expression": expression, "result": result}, message=f"{expression} = {result}")
