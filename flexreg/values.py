"""
Value Coercion Module

Field values arrive loosely typed (numbers, numeric strings, free text,
null). Parsing yields an explicit tagged result; the best-effort
"unparseable counts as 0" policy is applied only by ``coerce_number`` at
the aggregation boundary.
"""

from dataclasses import dataclass
from typing import Any, Union
import math
import re


@dataclass(frozen=True)
class Numeric:
    """A value that parsed as a number"""
    value: float


@dataclass(frozen=True)
class Unparseable:
    """A value that did not parse as a number"""
    raw: Any = None


# Decimal literals only; float() alone would also take "inf", "nan" and "1_000"
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def parse_numeric(raw: Any) -> Union[Numeric, Unparseable]:
    """Parse a stored field value into a tagged numeric result"""
    # bool is an int subclass but never a measurement
    if isinstance(raw, bool):
        return Unparseable(raw)

    if isinstance(raw, (int, float)):
        try:
            number = float(raw)
        except OverflowError:
            return Unparseable(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not NUMBER_PATTERN.fullmatch(text):
            return Unparseable(raw)
        number = float(text)
    else:
        return Unparseable(raw)

    if not math.isfinite(number):
        return Unparseable(raw)
    return Numeric(number)


def coerce_number(raw: Any) -> float:
    """Numeric value of ``raw``, or 0.0 when it does not parse"""
    parsed = parse_numeric(raw)
    if isinstance(parsed, Numeric):
        return parsed.value
    return 0.0
