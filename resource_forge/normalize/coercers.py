from __future__ import annotations

import json
import math
import numbers
import re
from collections.abc import Mapping
from typing import Any

"""Field coercers: raw cell value -> canonical typed field.

Raw cells arrive as one of: absent (None / NaN / blank string), string,
number, sequence (list/tuple) or structured value (mapping). Every coercer
dispatches over those shapes explicitly and is total: malformed input
degrades to an empty or partial result, it never raises.
"""

__all__ = [
    "is_blank",
    "parse_int",
    "to_text",
    "to_array_field",
    "to_number_array_field",
    "to_structured_field",
    "MAX_RANGE_SPAN",
]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
# 範囲展開の上限 (要素数)
MAX_RANGE_SPAN = 1000


def is_blank(raw: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if raw is None:
        return True
    if isinstance(raw, float) and math.isnan(raw):
        return True
    if isinstance(raw, str) and raw.strip() == "":
        return True
    return False


def parse_int(raw: Any) -> int | None:
    """Parse the leading integer of a raw value.

    Mirrors spreadsheet-style lenient parsing: ``"9"`` -> 9, ``" 3.7"`` -> 3,
    ``"12h"`` -> 12, ``4.9`` -> 4. Booleans, blanks, non-finite numbers and
    anything without a leading integer yield None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, numbers.Integral):
        return int(raw)
    if isinstance(raw, numbers.Real):
        f = float(raw)
        if math.isnan(f) or math.isinf(f):
            return None
        return int(f)  # trunc toward zero
    if isinstance(raw, str):
        m = _LEADING_INT.match(raw)
        if m is None:
            return None
        return int(m.group(1))
    return None


def to_text(raw: Any) -> str:
    """Stringify a cell for string-typed fields.

    Integral floats (``101.0`` from a numeric spreadsheet column) drop the
    trailing ``.0``.
    """
    if is_blank(raw):
        return ""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw).strip()


def to_array_field(raw: Any) -> list[str]:
    """Coerce to a list of strings.

    - absent -> []
    - string -> comma split, trimmed, empties dropped
    - list/tuple -> each element stringified (blank elements become "")
    - mapping -> []
    - any other scalar -> [str(raw)]
    """
    if is_blank(raw):
        return []
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    if isinstance(raw, (list, tuple)):
        return [to_text(v) for v in raw]
    if isinstance(raw, Mapping):
        return []
    return [to_text(raw)]


def _int_list(values: list[Any] | tuple[Any, ...]) -> list[int]:
    out: list[int] = []
    for v in values:
        n = parse_int(v)
        if n is not None:
            out.append(n)
    return out


def _expand_range(text: str) -> list[int] | None:
    # "a-b" (single dash) -> a..b inclusive; None when it isn't a valid range
    if text.count("-") != 1:
        return None
    left, right = text.split("-")
    start = parse_int(left)
    end = parse_int(right)
    if start is None or end is None or start > end:
        return None
    if end - start >= MAX_RANGE_SPAN:
        return None
    return list(range(start, end + 1))


def to_number_array_field(raw: Any) -> list[int]:
    """Coerce to a list of integers (phase numbers, slots).

    String handling, in order:
    1. ``"a-b"`` with exactly one dash, both ends parseable and a <= b ->
       every integer from a to b
       (at most MAX_RANGE_SPAN values; wider ranges fall through)
    2. JSON array -> elements that parse to integers
    3. comma split -> tokens that parse to integers

    A JSON value that is not an array (``"5"``) takes the comma-split path.
    """
    if is_blank(raw):
        return []
    if isinstance(raw, str):
        expanded = _expand_range(raw)
        if expanded is not None:
            return expanded
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError):
            parsed = None
        if isinstance(parsed, list):
            return _int_list(parsed)
        return _int_list([token.strip() for token in raw.split(",")])
    if isinstance(raw, (list, tuple)):
        return _int_list(raw)
    if isinstance(raw, numbers.Real) and not isinstance(raw, bool):
        n = parse_int(raw)
        return [n] if n is not None else []
    return []


def to_structured_field(raw: Any) -> Any:
    """Coerce to a structured value (AttributesJSON).

    - absent -> {}
    - mapping / list -> passthrough
    - string -> parsed JSON, or ``{"raw": <string>}`` when it isn't JSON
    - other scalar -> ``{"value": <scalar>}``
    """
    if is_blank(raw):
        return {}
    if isinstance(raw, (Mapping, list, tuple)):
        return raw
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except (ValueError, RecursionError):
            return {"raw": raw}
    return {"value": raw}
