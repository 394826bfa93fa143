"""
picoGraph project JSON: schema + validator
==========================================
Defines the on-disk project format accepted by the CLI and the editing
service, and a lightweight validator that runs without any third-party JSON
Schema library.

Project format
--------------

    {
      "graph": {
        "nodes": [
          {
            "id":         "event_start_01",          // unique within the graph (str, required)
            "type":       "event_start",             // node type id (str, required)
            "title":      "Event Init",              // display title (str, optional)
            "position":   { "x": 0, "y": 0 },        // editor position (optional)
            "inputs":     [ <pin>, ... ],            // pin list (optional)
            "outputs":    [ <pin>, ... ],            // pin list (optional)
            "properties": { "name": "score" }        // free-form bag (object, optional)
          }
        ],
        "connections": [
          {
            "id":   "conn_...",                      // (str, optional)
            "from": { "nodeId": "...", "pinId": "..." },
            "to":   { "nodeId": "...", "pinId": "..." },
            "kind": "exec"                           // cached kind (optional)
          }
        ]
      },
      "variables": [ { "id", "name", "type", "defaultValue" }, ... ],
      "settings":  { "use60Fps": false }
    }

    <pin> = { "id": str, "name": str, "direction": "input"|"output",
              "kind": "exec"|"number"|"boolean"|"string"|"table"|"any",
              "defaultValue"?: any, "description"?: str }

A bare ``{"nodes": [...], "connections": [...]}`` graph is accepted too and
is wrapped into the project form with no variables and default settings.
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from ..core.Types import PinDirection, PinKind

if TYPE_CHECKING:
    from ..noderegistry.NodeRegistry import NodeRegistry


_DIRECTIONS = frozenset(direction.value for direction in PinDirection)
_KINDS = frozenset(kind.value for kind in PinKind)


# ── Validation helpers ────────────────────────────────────────────────────────

class SchemaError(ValueError):
    """Raised when project JSON fails structural validation."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SchemaError(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


def _validate_pin(pin: Any, ctx: str) -> None:
    _require(isinstance(pin, dict), f"{ctx}: each pin must be a JSON object")
    _require_keys(pin, ["id"], ctx)
    _require(isinstance(pin["id"], str), f"{ctx}.id must be a string")
    if "direction" in pin:
        _require(pin["direction"] in _DIRECTIONS, f"{ctx}: unknown direction '{pin['direction']}'")
    if "kind" in pin:
        _require(pin["kind"] in _KINDS, f"{ctx}: unknown pin kind '{pin['kind']}'")


def _validate_ref(ref: Any, ctx: str, node_ids: set) -> None:
    _require(isinstance(ref, dict), f"{ctx} must be an object with nodeId and pinId")
    _require_keys(ref, ["nodeId", "pinId"], ctx)
    _require(isinstance(ref["nodeId"], str), f"{ctx}.nodeId must be a string")
    _require(isinstance(ref["pinId"], str), f"{ctx}.pinId must be a string")
    _require(ref["nodeId"] in node_ids, f"{ctx}: node '{ref['nodeId']}' not found in nodes")


# ── Public validator ─────────────────────────────────────────────────────────

def validate_graph(graph: Any, *, registry: Optional["NodeRegistry"] = None,
                   strict: bool = False) -> None:
    """
    Validate a ``{nodes, connections}`` payload.

    When *registry* is given, node types it does not know produce a warning,
    or a SchemaError with ``strict=True``.
    """
    _require(isinstance(graph, dict), "graph must be a JSON object")
    _require_keys(graph, ["nodes", "connections"], "graph")
    _require(isinstance(graph["nodes"], list), "nodes must be a list")
    _require(isinstance(graph["connections"], list), "connections must be a list")

    # ── Validate nodes ──────────────────────────────────────────────────────

    node_ids: set[str] = set()

    for i, node in enumerate(graph["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(node, dict), f"{ctx}: each node must be a JSON object")
        _require_keys(node, ["id", "type"], ctx)
        _require(isinstance(node["id"], str), f"{ctx}.id must be a string")
        _require(isinstance(node["type"], str), f"{ctx}.type must be a string")
        _require(node["id"] not in node_ids, f"{ctx}: duplicate node id '{node['id']}'")
        node_ids.add(node["id"])

        for side in ("inputs", "outputs"):
            if side in node:
                _require(isinstance(node[side], list), f"{ctx}.{side} must be a list")
                for j, pin in enumerate(node[side]):
                    _validate_pin(pin, f"{ctx}.{side}[{j}]")
        if "properties" in node:
            _require(isinstance(node["properties"], dict), f"{ctx}.properties must be an object")

        if registry is not None and registry.get(node["type"]) is None:
            msg = f"{ctx}: unknown node type '{node['type']}'"
            if strict:
                raise SchemaError(msg)
            warnings.warn(msg + " (it will compile as an unsupported node)", stacklevel=3)

    # ── Validate connections ────────────────────────────────────────────────

    for i, connection in enumerate(graph["connections"]):
        ctx = f"connections[{i}]"
        _require(isinstance(connection, dict), f"{ctx}: each connection must be a JSON object")
        _require_keys(connection, ["from", "to"], ctx)
        _validate_ref(connection["from"], f"{ctx}.from", node_ids)
        _validate_ref(connection["to"], f"{ctx}.to", node_ids)
        if "kind" in connection:
            _require(connection["kind"] in _KINDS, f"{ctx}: unknown kind '{connection['kind']}'")


def validate(data: Any, *, registry: Optional["NodeRegistry"] = None,
             strict: bool = False) -> Dict[str, Any]:
    """
    Validate a parsed project (or bare graph) dict.

    Returns:
        The project form ``{"graph", "variables", "settings"}``.

    Raises:
        SchemaError: On any structural violation.
    """
    _require(isinstance(data, dict), "project JSON must be a JSON object at the top level")

    if "graph" in data:
        graph = data["graph"]
        variables = data.get("variables", [])
        settings = data.get("settings", {})
    else:
        graph, variables, settings = data, [], {}

    validate_graph(graph, registry=registry, strict=strict)

    _require(isinstance(variables, list), "variables must be a list")
    for i, variable in enumerate(variables):
        _require(isinstance(variable, dict), f"variables[{i}]: each variable must be a JSON object")
    _require(isinstance(settings, dict), "settings must be an object")
    if "use60Fps" in settings:
        _require(isinstance(settings["use60Fps"], bool), "settings.use60Fps must be a boolean")

    return {"graph": graph, "variables": variables, "settings": settings}


def validate_file(path: Union[str, Path], *, registry: Optional["NodeRegistry"] = None,
                  strict: bool = False) -> Dict[str, Any]:
    """
    Load and validate a project JSON file.

    Returns:
        The project form on success.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError: If the project structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    return validate(data, registry=registry, strict=strict)


__all__ = ["SchemaError", "validate", "validate_file", "validate_graph"]
