from enum import Enum
from typing import Any, Optional


class PinDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"


class PinKind(Enum):
    EXEC = "exec"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    TABLE = "table"
    ANY = "any"

    @staticmethod
    def coerce(value: Any, default: Optional["PinKind"] = None) -> "PinKind":
        """Accepts a PinKind or its string value. Unknown strings map to *default* or raise."""
        if isinstance(value, PinKind):
            return value
        if isinstance(value, str):
            try:
                return PinKind(value.strip().lower())
            except ValueError:
                pass
        if default is not None:
            return default
        raise ValueError(f"Unknown pin kind '{value}'")


# Declared types for workspace variables and custom event parameters.
# Exec is a pin-only kind and never describes a value.
VALUE_KINDS = (
    PinKind.ANY,
    PinKind.NUMBER,
    PinKind.STRING,
    PinKind.BOOLEAN,
    PinKind.TABLE,
)


def normalize_value_kind(raw: Any) -> PinKind:
    kind = PinKind.coerce(raw, PinKind.ANY)
    return kind if kind in VALUE_KINDS else PinKind.ANY


def kinds_compatible(a: PinKind, b: PinKind) -> bool:
    """The one place that decides whether two pin kinds may be wired together."""
    if a is PinKind.ANY or b is PinKind.ANY:
        return True
    return a is b


def connection_kind(from_kind: PinKind, to_kind: PinKind) -> PinKind:
    # Wildcard targets adopt whatever flows into them.
    if to_kind is PinKind.ANY:
        return from_kind
    return to_kind
