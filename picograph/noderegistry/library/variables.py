"""Workspace (global) variables and inline locals."""
from typing import Any, Dict

from ...core.BlueprintNode import input_pin, output_pin
from ...core.Types import PinKind
from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry, PropertySchema
from .common import exec_in, exec_out


@NodeRegistry.register(NodeDefinition(
    id="set_var",
    title="Set Variable",
    category="Variables",
    description="Assign a value to a workspace variable.",
    inputs=[exec_in(), input_pin("value", "Value", PinKind.ANY)],
    outputs=[exec_out()],
    properties=[
        PropertySchema("variableId", "Variable", "variable", ""),
        PropertySchema("name", "Variable Name", "string", "score"),
    ],
    search_tags=["set", "assign", "variable", "store"],
))
class SetVariable(NodeBehavior):

    def emit_exec(self, ctx):
        name = ctx.variable_name()
        value = ctx.resolve_value_input("value", "nil")
        return [ctx.line(f"{name} = {value}"), *ctx.emit_next_exec("exec_out")]


@NodeRegistry.register(NodeDefinition(
    id="get_var",
    title="Get Variable",
    category="Variables",
    description="Read the current value of a workspace variable.",
    outputs=[output_pin("value", "Value", PinKind.ANY)],
    properties=[
        PropertySchema("variableId", "Variable", "variable", ""),
        PropertySchema("name", "Variable Name", "string", "score"),
    ],
    search_tags=["get", "read", "variable", "value"],
))
class GetVariable(NodeBehavior):

    def evaluate_value(self, ctx):
        return ctx.variable_name()


# ── Locals ────────────────────────────────────────────────────────────────────

LOCAL_TYPES = ("number", "string", "boolean", "table")
DEFAULT_LOCAL_NAME = "localVar"

_VALUE_KEYS = {
    "number": "valueNumber",
    "string": "valueString",
    "boolean": "valueBoolean",
    "table": "valueTable",
}

_VALUE_DEFAULTS = {
    "number": 0,
    "string": "",
    "boolean": False,
    "table": "{}",
}


def local_type(raw: Any) -> str:
    candidate = raw.lower() if isinstance(raw, str) else ""
    return candidate if candidate in LOCAL_TYPES else LOCAL_TYPES[0]


def local_name(raw: Any) -> str:
    value = raw.strip() if isinstance(raw, str) else ""
    return value or DEFAULT_LOCAL_NAME


def _init_local(properties: Dict[str, Any], include_value: bool) -> None:
    var_type = local_type(properties.get("variableType"))
    properties["variableType"] = var_type
    properties["name"] = local_name(properties.get("name"))

    number = properties.get("valueNumber")
    if not isinstance(number, (int, float)) or isinstance(number, bool):
        try:
            properties["valueNumber"] = float(number) if number is not None else 0
        except (TypeError, ValueError):
            properties["valueNumber"] = 0
    if not isinstance(properties.get("valueString"), str):
        raw = properties.get("valueString")
        properties["valueString"] = "" if raw is None else str(raw)
    if not isinstance(properties.get("valueBoolean"), bool):
        properties["valueBoolean"] = bool(properties.get("valueBoolean"))
    if not isinstance(properties.get("valueTable"), str):
        raw = properties.get("valueTable")
        properties["valueTable"] = "{}" if raw is None else str(raw)

    if include_value:
        key = _VALUE_KEYS[var_type]
        if properties.get(key) is None:
            properties[key] = _VALUE_DEFAULTS[var_type]


@NodeRegistry.register(NodeDefinition(
    id="set_local_var",
    title="Set Local",
    category="Logic",
    description="Declare or assign a local variable with an inline literal.",
    inputs=[
        exec_in(),
        input_pin("value", "Value", PinKind.ANY, description="Optional override for the inline literal"),
    ],
    outputs=[exec_out()],
    search_tags=["local", "set", "assign", "variable"],
    initialize_properties=lambda properties: _init_local(properties, include_value=True),
))
class SetLocalVariable(NodeBehavior):

    def emit_exec(self, ctx):
        var_type = local_type(ctx.properties.get("variableType"))
        name = ctx.sanitize_identifier(local_name(ctx.properties.get("name")))
        inline = ctx.properties.get(_VALUE_KEYS[var_type])
        if inline is None:
            inline = _VALUE_DEFAULTS[var_type]
        if var_type == "table":
            fallback = str(inline) or "{}"
        else:
            fallback = ctx.format_literal(var_type, inline)
        value = ctx.resolve_value_input("value", fallback)
        return [ctx.line(f"local {name} = {value}"), *ctx.emit_next_exec("exec_out")]


@NodeRegistry.register(NodeDefinition(
    id="get_local_var",
    title="Get Local",
    category="Logic",
    description="Access a local variable declared earlier in the flow.",
    outputs=[output_pin("value", "Value", PinKind.ANY)],
    search_tags=["local", "get", "variable", "read"],
    initialize_properties=lambda properties: _init_local(properties, include_value=False),
))
class GetLocalVariable(NodeBehavior):

    def evaluate_value(self, ctx):
        return ctx.sanitize_identifier(local_name(ctx.properties.get("name")))
