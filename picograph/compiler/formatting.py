"""
Literal and identifier formatting shared by the Lua generator and node behaviors.

Numbers are rendered the way the editor stores them: integral values print
without a fractional part (``5`` rather than ``5.0``), and only very large or
very small magnitudes use exponent notation (``1e-7``, ``1e+21``).
"""
from __future__ import annotations

import json
import math
import re
from decimal import Decimal
from typing import Any, Optional, Union

from ..core.Types import PinKind, normalize_value_kind

_DISALLOWED_IDENTIFIER_CHARS = re.compile(r"[^a-zA-Z0-9_]+")
_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_ALLOWED_OPERATORS = ("==", "!=", ">", "<", ">=", "<=")

TABLE_SINGLE_LINE_LIMIT = 60

KindLike = Union[PinKind, str]


def _kind(kind: KindLike) -> PinKind:
    return PinKind.coerce(kind, PinKind.ANY)


# ── Numbers ───────────────────────────────────────────────────────────────────

def to_number(value: Any) -> Optional[float]:
    """Numeric coercion of an inspector value. Returns None for anything non-finite."""
    if isinstance(value, bool):
        return 1 if value else 0
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            try:
                number = int(text, 0)
            except ValueError:
                return None
    else:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


def format_number(value: Any) -> Optional[str]:
    number = to_number(value)
    if number is None:
        return None
    if isinstance(number, int) and abs(number) < 1e21:
        return str(number)
    number = float(number)
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    text = repr(number)
    if "e" not in text:
        return text
    if 1e-6 <= abs(number) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    power = int(exponent)
    return f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        rendered = format_number(value)
        return rendered if rendered is not None else str(value)
    return str(value)


def quote_string(value: Any) -> str:
    return json.dumps(_text(value), ensure_ascii=False)


# ── Identifiers / operators ───────────────────────────────────────────────────

def sanitize_identifier(value: Any, fallback: str = "var") -> str:
    """Turn a display name into a lower-case bare Lua identifier."""
    text = _text(value).strip()
    text = _DISALLOWED_IDENTIFIER_CHARS.sub("_", text)
    if not text:
        text = fallback
    if text[0].isdigit():
        text = f"v_{text}"
    return text.lower()


def sanitize_operator(value: Any) -> str:
    operator = _text(value).strip()
    if operator not in _ALLOWED_OPERATORS:
        return "=="
    if operator == "!=":
        return "~="
    return operator


# ── Literals ──────────────────────────────────────────────────────────────────

def format_literal(kind: KindLike, value: Any) -> str:
    kind = _kind(kind)
    if kind is PinKind.NUMBER:
        rendered = format_number(value)
        return rendered if rendered is not None else "0"
    if kind is PinKind.BOOLEAN:
        if isinstance(value, str):
            return "false" if value == "false" else "true"
        return "true" if value else "false"
    if kind is PinKind.TABLE:
        if isinstance(value, str):
            return value.strip() or "{}"
        return "{}"
    return quote_string(value)


def default_literal_for_kind(kind: KindLike) -> str:
    kind = _kind(kind)
    if kind is PinKind.NUMBER:
        return "0"
    if kind is PinKind.BOOLEAN:
        return "false"
    if kind is PinKind.STRING:
        return '""'
    if kind is PinKind.TABLE:
        return "{}"
    return "nil"


# ── Workspace variable defaults ───────────────────────────────────────────────

def format_variable_default(kind: KindLike, value: Any) -> str:
    kind = normalize_value_kind(kind)
    if kind is PinKind.NUMBER:
        rendered = format_number(value)
        return rendered if rendered is not None else "0"
    if kind is PinKind.BOOLEAN:
        return "true" if value else "false"
    if kind is PinKind.STRING:
        return quote_string(value)
    if kind is PinKind.TABLE:
        return format_table_default(value)

    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        rendered = format_number(value)
        return rendered if rendered is not None else "nil"
    return quote_string(value)


def format_table_default(value: Any) -> str:
    """
    Format a table default stored as ``[{key?, value}]`` entries (or as raw text).

    A single key-less entry that is itself a brace literal is passed through.
    Short tables stay on one line; longer ones put each entry on its own line.
    """
    if isinstance(value, str):
        return value.strip() or "{}"
    if not isinstance(value, list):
        return "{}"

    fragments = [fragment for fragment in (_table_entry(entry) for entry in value) if fragment]
    if not fragments:
        return "{}"

    if len(value) == 1 and isinstance(value[0], dict) and not value[0].get("key"):
        raw = value[0].get("value")
        candidate = raw.strip() if isinstance(raw, str) else ""
        if candidate.startswith("{") and candidate.endswith("}"):
            return candidate

    single_line = ", ".join(fragments)
    if len(single_line) <= TABLE_SINGLE_LINE_LIMIT and "\n" not in single_line:
        return f"{{ {single_line} }}"
    return "{\n  " + ",\n  ".join(fragments) + "\n}"


def _table_entry(entry: Any) -> str:
    if not isinstance(entry, dict):
        return ""
    key = entry.get("key")
    key = key.strip() if isinstance(key, str) else ""
    value = entry.get("value")
    value = value.strip() if isinstance(value, str) else ""
    if not key:
        return value
    return f"{_table_key(key)} = {value or 'nil'}"


def _table_key(key: str) -> str:
    if _IDENTIFIER.match(key):
        return key
    if key.startswith("[") and key.endswith("]"):
        return key
    return f"[{key}]"
