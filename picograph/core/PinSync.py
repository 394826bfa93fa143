"""
Keeps dynamic pins in step with the node properties that describe them.

Three node types grow and shrink pins at edit time:

* ``custom_event`` exposes one output per declared parameter
  (``properties.parameters`` / ``properties.parameterCounter``);
* ``call_custom_event`` mirrors its target's parameters as argument inputs
  and keeps ``properties.arguments`` keyed by parameter id;
* ``sequence`` exposes one exec output per entry in ``properties.branches``
  (``properties.branchCounter``).

Variable nodes keep their pin lists but retype them: the ``value`` pin of
``set_var``/``get_var`` takes the declared type of the workspace variable it
is bound to, and the locals take their ``variableType``.

Whenever pins change, connections on vanished pins are pruned and the cached
kind of surviving connections is recomputed (see repair_connection_kinds).
"""
from typing import Any, Dict, Iterable, List, Optional

import logging
import re

from .BlueprintNode import BlueprintNode, Pin, input_pin, output_pin
from .GraphPrimitives import PinRef
from .NodeGraph import NodeGraph
from .Types import PinKind, connection_kind, kinds_compatible, normalize_value_kind

logger = logging.getLogger(__name__)

CUSTOM_EVENT_TYPE = "custom_event"
CALL_CUSTOM_EVENT_TYPE = "call_custom_event"
SEQUENCE_TYPE = "sequence"

GLOBAL_VARIABLE_TYPES = ("set_var", "get_var")
LOCAL_VARIABLE_TYPES = ("set_local_var", "get_local_var")
SETTER_TYPES = ("set_var", "set_local_var")
VARIABLE_VALUE_PIN = "value"

PARAMETER_TYPES = ("any", "number", "string", "boolean", "table")
DEFAULT_SEQUENCE_BRANCH_COUNT = 3

_ID_SUFFIX = re.compile(r"_(\d+)$")


def parameter_output_pin_id(parameter_id: str) -> str:
    return f"param_{parameter_id}"


def argument_input_pin_id(parameter_id: str) -> str:
    return f"arg_{parameter_id}"


def branch_label(index: int) -> str:
    """0 → A, 25 → Z, 26 → AA (bijective base 26)."""
    label = ""
    value = max(0, index) + 1
    while value > 0:
        value, remainder = divmod(value - 1, 26)
        label = chr(ord("A") + remainder) + label
    return label


def _counter(properties: Dict[str, Any], key: str) -> int:
    value = properties.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _suffix_number(identifier: str) -> int:
    match = _ID_SUFFIX.search(identifier)
    return int(match.group(1)) if match else 0


def _optional_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


# ── Custom event parameters ───────────────────────────────────────────────────

def _allocate_parameter_id(properties: Dict[str, Any]) -> str:
    counter = _counter(properties, "parameterCounter") + 1
    properties["parameterCounter"] = counter
    return f"param_{counter:02d}"


def normalize_parameters(node: BlueprintNode) -> List[Dict[str, Any]]:
    """
    Clean ``properties.parameters`` in place and return a copy of the result.

    Names are trimmed (``Param<n>`` when blank) and made unique ignoring case by
    appending 2, 3, ...  Unknown types become ``any``.  Missing or duplicate ids
    are allocated from ``parameterCounter``, which never falls behind the
    largest numeric id suffix in use.
    """
    properties = node.properties
    existing = properties.get("parameters")
    if not isinstance(existing, list):
        existing = []

    cleaned: List[Dict[str, Any]] = []
    used_ids = set()
    used_names = set()
    highest = _counter(properties, "parameterCounter")

    for index, entry in enumerate(existing):
        entry = entry if isinstance(entry, dict) else {}

        raw_name = entry.get("name").strip() if isinstance(entry.get("name"), str) else ""
        base_name = raw_name or f"Param{index + 1}"
        name = base_name
        suffix = 2
        while name.lower() in used_names:
            name = f"{base_name}{suffix}"
            suffix += 1
        used_names.add(name.lower())

        raw_type = entry.get("type")
        param_type = raw_type if raw_type in PARAMETER_TYPES else "any"

        identifier = entry.get("id").strip() if isinstance(entry.get("id"), str) else ""
        if not identifier or identifier in used_ids:
            identifier = _allocate_parameter_id(properties)
        used_ids.add(identifier)
        highest = max(highest, _suffix_number(identifier))

        cleaned.append({
            "id": identifier,
            "name": name,
            "type": param_type,
            "optional": _optional_flag(entry.get("optional")),
        })

    properties["parameters"] = cleaned
    properties["parameterCounter"] = max(highest, _counter(properties, "parameterCounter"))
    return [dict(parameter) for parameter in cleaned]


def _custom_event_node(graph: NodeGraph, node_id: Any) -> Optional[BlueprintNode]:
    node = graph.get_node(node_id) if isinstance(node_id, str) else None
    if node is None or node.type != CUSTOM_EVENT_TYPE:
        return None
    return node


def add_custom_event_parameter(graph: NodeGraph, node_id: str, name: str = "",
                               type: str = "any", optional: bool = False) -> Optional[Dict[str, Any]]:
    """Append a parameter to a custom event node. Returns the stored entry, or None."""
    node = _custom_event_node(graph, node_id)
    if node is None:
        return None
    parameters = normalize_parameters(node)
    parameter = {
        "id": _allocate_parameter_id(node.properties),
        "name": name.strip() if isinstance(name, str) and name.strip() else f"Param{len(parameters) + 1}",
        "type": type if type in PARAMETER_TYPES else "any",
        "optional": bool(optional),
    }
    graph.set_node_property(node_id, "parameters", parameters + [parameter])
    sync_custom_event_pins(graph, node_id)
    stored = node.properties["parameters"][-1]
    return dict(stored)


def remove_custom_event_parameter(graph: NodeGraph, node_id: str, parameter_id: str) -> bool:
    node = _custom_event_node(graph, node_id)
    if node is None:
        return False
    parameters = normalize_parameters(node)
    remaining = [p for p in parameters if p["id"] != parameter_id]
    if len(remaining) == len(parameters):
        return False
    graph.set_node_property(node_id, "parameters", remaining)
    sync_custom_event_pins(graph, node_id)
    return True


def _drop_stale_pins(graph: NodeGraph, node_id: str, old_pins: List[Pin], keep: set) -> None:
    for pin in old_pins:
        if pin.id not in keep:
            graph.remove_connections_for_pin(PinRef(node_id, pin.id))


def sync_custom_event_pins(graph: NodeGraph, node_id: str) -> None:
    """Rebuild a custom event's outputs from its parameters, then refresh its callers."""
    node = _custom_event_node(graph, node_id)
    if node is None:
        return
    parameters = normalize_parameters(node)

    outputs = [output_pin("exec_out", "Exec", PinKind.EXEC)]
    for parameter in parameters:
        outputs.append(output_pin(
            parameter_output_pin_id(parameter["id"]),
            parameter["name"],
            PinKind.coerce(parameter["type"], PinKind.ANY),
        ))

    previous = list(node.outputs)
    graph.set_node_pins(node_id, outputs=outputs)
    _drop_stale_pins(graph, node_id, previous, {pin.id for pin in outputs})
    repair_connection_kinds(graph, node_id)

    for candidate in graph.get_nodes():
        if candidate.type == CALL_CUSTOM_EVENT_TYPE and candidate.properties.get("eventId") == node_id:
            sync_call_custom_event_pins(graph, candidate.id)


def sync_call_custom_event_pins(graph: NodeGraph, call_node_id: str) -> None:
    """Mirror the target event's parameters as ``arg_<id>`` inputs on a call node."""
    node = graph.get_node(call_node_id)
    if node is None or node.type != CALL_CUSTOM_EVENT_TYPE:
        return

    target = _custom_event_node(graph, node.properties.get("eventId"))
    parameters = normalize_parameters(target) if target is not None else []

    inputs = [input_pin("exec_in", "Exec", PinKind.EXEC)]
    for parameter in parameters:
        inputs.append(input_pin(
            argument_input_pin_id(parameter["id"]),
            parameter["name"],
            PinKind.coerce(parameter["type"], PinKind.ANY),
        ))

    current = node.properties.get("arguments")
    current = current if isinstance(current, dict) else {}
    node.properties["arguments"] = {
        parameter["id"]: current.get(parameter["id"]) for parameter in parameters
    }

    previous = list(node.inputs)
    graph.set_node_pins(call_node_id, inputs=inputs)
    _drop_stale_pins(graph, call_node_id, previous, {pin.id for pin in inputs})
    repair_connection_kinds(graph, call_node_id)


def set_call_target(graph: NodeGraph, call_node_id: str, event_id: str) -> None:
    """Point a call node at a custom event and rebuild its argument pins."""
    node = graph.get_node(call_node_id)
    if node is None or node.type != CALL_CUSTOM_EVENT_TYPE:
        return
    graph.set_node_property(call_node_id, "eventId", event_id)
    sync_call_custom_event_pins(graph, call_node_id)


# ── Sequence branches ─────────────────────────────────────────────────────────

def _allocate_branch_id(properties: Dict[str, Any]) -> str:
    counter = _counter(properties, "branchCounter") + 1
    properties["branchCounter"] = counter
    return f"branch_{counter:02d}"


def normalize_branches(node: BlueprintNode) -> List[Dict[str, str]]:
    """Clean ``properties.branches`` in place; an empty list is seeded from the node's outputs."""
    properties = node.properties
    existing = properties.get("branches")
    existing = existing if isinstance(existing, list) else []

    cleaned: List[Dict[str, str]] = []
    used = set()
    for entry in existing:
        raw = entry.get("id") if isinstance(entry, dict) else None
        branch_id = raw.strip() if isinstance(raw, str) else ""
        if not branch_id or branch_id in used:
            branch_id = _allocate_branch_id(properties)
        used.add(branch_id)
        cleaned.append({"id": branch_id})

    if not cleaned:
        for pin in node.outputs:
            branch_id = pin.id if pin.id not in used else _allocate_branch_id(properties)
            used.add(branch_id)
            cleaned.append({"id": branch_id})
    if not cleaned:
        cleaned = [{"id": _allocate_branch_id(properties)} for _ in range(DEFAULT_SEQUENCE_BRANCH_COUNT)]

    highest = _counter(properties, "branchCounter")
    for entry in cleaned:
        highest = max(highest, _suffix_number(entry["id"]))
    properties["branchCounter"] = highest
    properties["branches"] = cleaned
    return [dict(entry) for entry in cleaned]


def sync_sequence_pins(graph: NodeGraph, node_id: str) -> None:
    node = graph.get_node(node_id)
    if node is None or node.type != SEQUENCE_TYPE:
        return
    branches = normalize_branches(node)
    outputs = [
        output_pin(entry["id"], branch_label(index), PinKind.EXEC)
        for index, entry in enumerate(branches)
    ]
    previous = list(node.outputs)
    graph.set_node_pins(node_id, outputs=outputs)
    _drop_stale_pins(graph, node_id, previous, {pin.id for pin in outputs})


def add_sequence_branch(graph: NodeGraph, node_id: str) -> Optional[str]:
    """Append an exec output to a sequence node. Returns the new pin id."""
    node = graph.get_node(node_id)
    if node is None or node.type != SEQUENCE_TYPE:
        return None
    branches = normalize_branches(node)
    branch_id = _allocate_branch_id(node.properties)
    graph.set_node_property(node_id, "branches", branches + [{"id": branch_id}])
    sync_sequence_pins(graph, node_id)
    return branch_id


def remove_sequence_branch(graph: NodeGraph, node_id: str, pin_id: str) -> bool:
    """Remove one sequence output. The last remaining branch is never removed."""
    node = graph.get_node(node_id)
    if node is None or node.type != SEQUENCE_TYPE:
        return False
    branches = normalize_branches(node)
    if len(branches) <= 1:
        return False
    remaining = [entry for entry in branches if entry["id"] != pin_id]
    if len(remaining) == len(branches):
        return False
    graph.set_node_property(node_id, "branches", remaining)
    sync_sequence_pins(graph, node_id)
    return True


# ── Variable nodes ────────────────────────────────────────────────────────────

def is_variable_node(node: BlueprintNode) -> bool:
    return node.type in GLOBAL_VARIABLE_TYPES or node.type in LOCAL_VARIABLE_TYPES


def find_variable(node: BlueprintNode, variables: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """The workspace variable a set/get node is bound to: by ``variableId``, then by name ignoring case."""
    entries = [entry for entry in variables if isinstance(entry, dict)]
    variable_id = node.properties.get("variableId")
    if isinstance(variable_id, str) and variable_id:
        for entry in entries:
            if entry.get("id") == variable_id:
                return entry

    raw_name = node.properties.get("name")
    name = raw_name.strip().lower() if isinstance(raw_name, str) else ""
    if not name:
        return None
    for entry in entries:
        candidate = entry.get("name")
        if isinstance(candidate, str) and candidate.strip().lower() == name:
            return entry
    return None


def variable_kind(node: BlueprintNode, variables: Iterable[Dict[str, Any]]) -> PinKind:
    if node.type in LOCAL_VARIABLE_TYPES:
        kind = normalize_value_kind(node.properties.get("variableType"))
        # Locals always carry a concrete type.
        return PinKind.NUMBER if kind is PinKind.ANY else kind
    variable = find_variable(node, variables)
    return normalize_value_kind(variable.get("type")) if variable is not None else PinKind.ANY


def sync_variable_pins(graph: NodeGraph, node_id: str, kind: Any) -> bool:
    """
    Give a variable node's ``value`` pin *kind*, then repair its connections.

    Setters carry the pin as an input, getters as an output.  Returns True
    when the pin was retyped.
    """
    node = graph.get_node(node_id)
    if node is None or not is_variable_node(node):
        return False

    target = normalize_value_kind(kind)
    is_setter = node.type in SETTER_TYPES
    pins = node.inputs if is_setter else node.outputs
    current = next((pin for pin in pins if pin.id == VARIABLE_VALUE_PIN), None)
    if current is None or current.kind is target:
        return False

    updated = [pin.clone() for pin in pins]
    for pin in updated:
        if pin.id == VARIABLE_VALUE_PIN:
            pin.kind = target
    if is_setter:
        graph.set_node_pins(node_id, inputs=updated)
    else:
        graph.set_node_pins(node_id, outputs=updated)
    repair_connection_kinds(graph, node_id, VARIABLE_VALUE_PIN)
    return True


def sync_variable_nodes(graph: NodeGraph, variables: Iterable[Dict[str, Any]]) -> None:
    """Retype every variable node in the graph against the workspace variables."""
    entries = list(variables or [])
    for node in graph.get_nodes():
        if is_variable_node(node):
            sync_variable_pins(graph, node.id, variable_kind(node, entries))


# ── Connection kinds ──────────────────────────────────────────────────────────

def repair_connection_kinds(graph: NodeGraph, node_id: str, pin_id: Optional[str] = None) -> bool:
    """
    Revalidate every connection touching *node_id* after its pins changed.

    Connections whose endpoints vanished or whose kinds no longer fit are
    removed; the rest get their cached kind recomputed.  Returns True when
    anything changed.
    """
    mutated = False
    for connection in graph.get_connections_for_node(node_id, pin_id):
        from_node = graph.get_node(connection.source.node_id)
        to_node = graph.get_node(connection.target.node_id)
        from_pin = from_node.get_pin(connection.source.pin_id) if from_node else None
        to_pin = to_node.get_pin(connection.target.pin_id) if to_node else None
        if from_pin is None or to_pin is None or not kinds_compatible(from_pin.kind, to_pin.kind):
            logger.debug(f"Dropping connection {connection.id} after pin change on '{node_id}'")
            graph.remove_connection(connection.id)
            mutated = True
            continue
        expected = connection_kind(from_pin.kind, to_pin.kind)
        if connection.kind is not expected:
            graph.set_connection_kind(connection.id, expected)
            mutated = True
    return mutated
