from typing import List

from ...core.BlueprintNode import Pin, input_pin, output_pin
from ...core.Types import PinKind

# Fallback marker for optional call arguments: anything resolving to it is dropped.
OMIT = "__pg_omit__"


def exec_in() -> Pin:
    return input_pin("exec_in", "Exec", PinKind.EXEC)


def exec_out(pin_id: str = "exec_out", name: str = "Exec") -> Pin:
    return output_pin(pin_id, name, PinKind.EXEC)


def call(function: str, args: List[str]) -> str:
    """``fn(a, b)`` with everything from the first omitted argument onwards dropped."""
    kept: List[str] = []
    for arg in args:
        if arg == OMIT:
            break
        kept.append(arg)
    return f"{function}({', '.join(kept)})"
