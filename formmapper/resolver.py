"""Resolve binding expressions against a business data context."""

from __future__ import annotations

import math
import re
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .expressions import AggregatePath, ComputedToken, SimplePath, parse_expression
from .settings import get_logger

logger = get_logger(__name__)

DATE_FORMAT = "%m/%d/%Y"

_FLOAT_SPECIALS = {"inf", "infinity", "nan"}
_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}
_RADIX_LITERAL = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")


def format_number(value: float) -> str:
    """Render a number the way the back office displays it (``125``, ``2.5``, ``1e-7``, ``NaN``).

    Shortest round-trip digits, written in fixed notation for decimal
    exponents from -6 to 21 and in unpadded exponent notation otherwise.
    """

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    parts = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in parts.digits)
    k = len(digits)
    n = parts.exponent + k
    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return f"{sign}{digits[:n]}.{digits[n:]}"
    if -6 < n <= 0:
        return f"{sign}0.{'0' * -n}{digits}"
    exponent = n - 1
    mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{sign}{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def to_number(value: Any) -> float:
    """Loose numeric cast. Blank strings are zero; anything unparseable is NaN."""

    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        if "_" in stripped:
            return math.nan
        # float() also takes "inf" and "nan" in any case; only these spellings count
        if stripped.lstrip("+-").lower() in _FLOAT_SPECIALS:
            return _INFINITIES.get(stripped, math.nan)
        if _RADIX_LITERAL.fullmatch(stripped):
            return float(int(stripped, 0))
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, (str, int)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    return str(value)


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment)
    if isinstance(current, (list, tuple)) and segment.isdigit():
        index = int(segment)
        return current[index] if index < len(current) else None
    return None


def _resolve_simple(path: SimplePath, context: Mapping[str, Any]) -> str:
    current: Any = context
    for segment in path.segments:
        if current is None:
            return ""
        current = _step(current, segment)
    return stringify(current)


def _project(items: Sequence[Any], field_name: str) -> List[Any]:
    values = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        value = item.get(field_name)
        if value is not None:
            values.append(value)
    return values


def _resolve_aggregate(path: AggregatePath, context: Mapping[str, Any]) -> str:
    items = context.get(path.collection)
    if not isinstance(items, (list, tuple)) or not items:
        return ""
    values = _project(items, path.field)
    function = path.function

    if function == "count":
        return str(len(values))
    if function == "join":
        return ", ".join(stringify(v) for v in values)

    numbers = [to_number(v) for v in values]
    has_nan = any(math.isnan(n) for n in numbers)
    if has_nan:
        logger.debug("Non-numeric value under %s.%s.%s", path.collection, path.field, function)
    if function == "sum":
        return format_number(math.nan if has_nan else sum(numbers))
    # avg, min and max are undefined over nothing
    if not numbers:
        return ""
    if has_nan:
        return "NaN"
    if function == "avg":
        return format_number(sum(numbers) / len(numbers))
    if function == "min":
        return format_number(min(numbers))
    if function == "max":
        return format_number(max(numbers))
    return ""


def resolve(expression: str, context: Optional[Mapping[str, Any]], *, today: Optional[date] = None) -> str:
    """Evaluate one binding expression. Never raises; unresolvable input yields ``""``."""

    if not expression or context is None:
        return ""
    parsed = parse_expression(expression)
    try:
        if isinstance(parsed, ComputedToken):
            return (today or date.today()).strftime(DATE_FORMAT)
        if not isinstance(context, Mapping):
            return ""
        if isinstance(parsed, AggregatePath):
            return _resolve_aggregate(parsed, context)
        if isinstance(parsed, SimplePath):
            return _resolve_simple(parsed, context)
    except Exception as e:
        logger.warning("Could not resolve expression '%s': %s", expression, e)
    return ""


def resolve_all(
    mapping: Mapping[str, str],
    context: Optional[Mapping[str, Any]],
    *,
    today: Optional[date] = None,
) -> Dict[str, str]:
    """Resolve every ``field -> expression`` entry into ``field -> value``."""

    return {name: resolve(expression, context, today=today) for name, expression in mapping.items()}


__all__ = ["DATE_FORMAT", "format_number", "resolve", "resolve_all", "stringify", "to_number"]
