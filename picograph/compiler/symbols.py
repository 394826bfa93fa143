"""
Symbol tables built once per generation pass.

* Workspace variables → unique global identifiers (``variableId → name``).
* Custom event nodes → unique ``custom_*`` function names and ordered
  parameter signatures.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..core.BlueprintNode import BlueprintNode
from ..core.PinSync import argument_input_pin_id, parameter_output_pin_id
from ..core.Types import PinKind, normalize_value_kind
from .formatting import format_variable_default, sanitize_identifier

logger = logging.getLogger(__name__)

CUSTOM_EVENT_PREFIX = "custom_"
DEFAULT_CUSTOM_EVENT_NAME = "CustomEvent"

# Kinds a custom event parameter may declare; tables degrade to "any".
PARAMETER_KINDS = (PinKind.ANY, PinKind.NUMBER, PinKind.STRING, PinKind.BOOLEAN)


def _unique(base: str, used: set, first_suffix: int) -> str:
    candidate = base
    suffix = first_suffix
    while candidate in used:
        candidate = f"{base}_{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


# ── Workspace variables ───────────────────────────────────────────────────────

@dataclass
class VariableSpec:
    id: str
    name: str
    type: PinKind
    default_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "defaultValue": self.default_value,
        }


def normalize_variables(entries: Optional[Iterable[Any]]) -> List[VariableSpec]:
    if entries is None:
        return []
    specs: List[VariableSpec] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, VariableSpec):
            specs.append(entry)
            continue
        if not isinstance(entry, dict):
            logger.warning(f"Skipping malformed variable entry at index {index}: {entry!r}")
            continue
        raw_id = entry.get("id")
        raw_name = entry.get("name")
        specs.append(VariableSpec(
            id=raw_id if isinstance(raw_id, str) else f"variable_{index}",
            name=raw_name if isinstance(raw_name, str) else "",
            type=normalize_value_kind(entry.get("type")),
            default_value=entry.get("defaultValue"),
        ))
    return specs


class GlobalDeclarations:
    """Allocates one global identifier per workspace variable."""

    def __init__(self, variables: List[VariableSpec]):
        self.names_by_id: Dict[str, str] = {}
        self.lines: List[str] = []
        used: set = set()
        for index, variable in enumerate(variables):
            raw_name = variable.name.strip() or variable.id or f"var{index + 1}"
            name = _unique(sanitize_identifier(raw_name, f"var{index + 1}"), used, 2)
            if variable.id:
                self.names_by_id[variable.id] = name
            self.lines.append(f"{name} = {format_variable_default(variable.type, variable.default_value)}")

    def lookup(self, variable_id: Any) -> Optional[str]:
        if not isinstance(variable_id, str) or not variable_id:
            return None
        return self.names_by_id.get(variable_id)


# ── Custom events ─────────────────────────────────────────────────────────────

@dataclass
class CustomEventParameter:
    id: str
    name: str
    lua_name: str
    output_pin_id: str
    input_pin_id: str
    kind: PinKind
    optional: bool = False


@dataclass
class CustomEventSignature:
    node_id: str
    display_name: str
    function_name: str
    parameters: List[CustomEventParameter] = field(default_factory=list)

    def parameter_list(self) -> str:
        return ", ".join(parameter.lua_name for parameter in self.parameters)


def custom_event_display_name(node: BlueprintNode) -> str:
    raw = node.properties.get("name")
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return DEFAULT_CUSTOM_EVENT_NAME


def _build_parameters(node: BlueprintNode) -> List[CustomEventParameter]:
    raw_parameters = node.properties.get("parameters")
    if not isinstance(raw_parameters, list):
        return []

    used: set = set()
    parameters: List[CustomEventParameter] = []
    for index, raw in enumerate(raw_parameters):
        raw = raw if isinstance(raw, dict) else {}
        name = raw.get("name").strip() if isinstance(raw.get("name"), str) else ""
        display_name = name or f"param{index + 1}"
        lua_name = _unique(sanitize_identifier(display_name, f"param{index + 1}"), used, 2)

        raw_id = raw.get("id").strip() if isinstance(raw.get("id"), str) else ""
        parameter_id = raw_id or f"param_{index + 1:02d}"

        kind = PinKind.coerce(raw.get("type"), PinKind.ANY)
        if kind not in PARAMETER_KINDS:
            kind = PinKind.ANY

        parameters.append(CustomEventParameter(
            id=parameter_id,
            name=display_name,
            lua_name=lua_name,
            output_pin_id=parameter_output_pin_id(parameter_id),
            input_pin_id=argument_input_pin_id(parameter_id),
            kind=kind,
            optional=bool(raw.get("optional")),
        ))
    return parameters


class CustomEventSymbols:
    """
    Function names and signatures for every custom event node in a pass.

    Names are allocated in the order the nodes are given (graph insertion
    order), so the first of two same-named events keeps the bare name.
    """

    def __init__(self, nodes: List[BlueprintNode]):
        self.signatures: Dict[str, CustomEventSignature] = {}
        # "<nodeId>:<outputPinId>" → parameter local name
        self.parameter_lookup: Dict[str, str] = {}

        used: set = set()
        for node in nodes:
            display_name = custom_event_display_name(node)
            base = sanitize_identifier(display_name)
            if not base.startswith(CUSTOM_EVENT_PREFIX):
                base = f"{CUSTOM_EVENT_PREFIX}{base}"
            signature = CustomEventSignature(
                node_id=node.id,
                display_name=display_name,
                function_name=_unique(base, used, 1),
                parameters=_build_parameters(node),
            )
            self.signatures[node.id] = signature
            for parameter in signature.parameters:
                self.parameter_lookup[f"{node.id}:{parameter.output_pin_id}"] = parameter.lua_name

    def get(self, event_id: Any) -> Optional[CustomEventSignature]:
        if not isinstance(event_id, str):
            return None
        return self.signatures.get(event_id)

    def parameter_name(self, node_id: str, pin_id: str) -> Optional[str]:
        return self.parameter_lookup.get(f"{node_id}:{pin_id}")

    def ordered(self) -> List[CustomEventSignature]:
        """Signatures sorted by display name; ties keep insertion order."""
        return sorted(
            self.signatures.values(),
            key=lambda signature: (signature.display_name.casefold(), signature.display_name),
        )
