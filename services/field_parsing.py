"""
Permissive parsing of raw EDI field text.

Batch records carry every value as text. Empty strings and the literal
"NULL" mean the field is absent. Malformed numbers are also treated as
absent, but the result records the problem so the caller can log a warning.
Nothing here raises.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

NULL_TOKENS = frozenset({"", "NULL"})


class ParsedField(BaseModel):
    """Outcome of parsing one field: a value, or nothing plus an optional problem."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: Any = None
    raw: Optional[str] = None
    problem: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.problem is None

    @property
    def present(self) -> bool:
        return self.value is not None


def _is_null(raw: Optional[str]) -> bool:
    return raw is None or raw.strip().upper() in NULL_TOKENS


def parse_text(raw: Optional[str]) -> ParsedField:
    if _is_null(raw):
        return ParsedField(raw=raw)
    return ParsedField(value=raw.strip(), raw=raw)


def parse_number(raw: Optional[str]) -> ParsedField:
    """
    Parse a decimal field such as "1,250.00" into a float.

    Thousands separators are tolerated; anything else that does not parse,
    including NaN and infinities, yields an absent value with `problem` set.
    """
    if _is_null(raw):
        return ParsedField(raw=raw)
    text = raw.strip().replace(",", "")
    try:
        number = float(text)
    except ValueError:
        return ParsedField(raw=raw, problem=f"not a number: {raw!r}")
    if not math.isfinite(number):
        return ParsedField(raw=raw, problem=f"not a finite number: {raw!r}")
    return ParsedField(value=number, raw=raw)
