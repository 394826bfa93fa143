"""Lifecycle entry points, user-defined custom events, and the node that calls them."""
from typing import Any, Dict, List, Optional

from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry, PropertySchema
from .common import exec_in, exec_out

DEFAULT_CUSTOM_EVENT_NAME = "CustomEvent"


class LifecycleEvent(NodeBehavior):
    """Entry node that simply continues into whatever hangs off its exec output."""

    is_entry_point = True

    def emit_exec(self, ctx):
        return ctx.emit_next_exec("exec_out")


def _lifecycle(type_id: str, title: str, description: str, tags: List[str]) -> NodeDefinition:
    return NodeDefinition(
        id=type_id,
        title=title,
        category="Events",
        description=description,
        outputs=[exec_out()],
        search_tags=tags,
        unique=True,
    )


@NodeRegistry.register(_lifecycle(
    "event_start", "Event Init", "Called once on cart startup.",
    ["start", "init", "boot", "lifecycle"],
))
class EventInit(LifecycleEvent):
    event_name = "_init"


@NodeRegistry.register(_lifecycle(
    "event_update", "Event Update", "Called every frame before drawing.",
    ["update", "tick", "frame", "lifecycle"],
))
class EventUpdate(LifecycleEvent):
    event_name = "_update"


@NodeRegistry.register(_lifecycle(
    "event_draw", "Event Draw", "Called every frame to render the screen.",
    ["draw", "render", "frame", "lifecycle"],
))
class EventDraw(LifecycleEvent):
    event_name = "_draw"


# ── Custom events ─────────────────────────────────────────────────────────────

def _init_custom_event(properties: Dict[str, Any]) -> None:
    name = properties.get("name")
    if not isinstance(name, str) or not name.strip():
        properties["name"] = DEFAULT_CUSTOM_EVENT_NAME
    if not isinstance(properties.get("parameters"), list):
        properties["parameters"] = []
    counter = properties.get("parameterCounter")
    properties["parameterCounter"] = counter if isinstance(counter, int) and not isinstance(counter, bool) else 0


@NodeRegistry.register(NodeDefinition(
    id="custom_event",
    title="Custom Event",
    category="Events",
    description="Defines a custom event that can be triggered elsewhere.",
    outputs=[exec_out()],
    properties=[PropertySchema("name", "Event Name", "string", DEFAULT_CUSTOM_EVENT_NAME)],
    search_tags=["event", "custom", "broadcast", "trigger"],
    initialize_properties=_init_custom_event,
))
class CustomEvent(NodeBehavior):
    is_entry_point = True
    event_name = None

    def emit_exec(self, ctx):
        return ctx.emit_next_exec("exec_out")

    def evaluate_value(self, ctx) -> Optional[str]:
        # Parameter output pins read the function's local of the same name.
        return ctx.parameter_name() or "nil"


def _init_call_custom_event(properties: Dict[str, Any]) -> None:
    if not isinstance(properties.get("eventId"), str):
        properties["eventId"] = ""
    if not isinstance(properties.get("arguments"), dict):
        properties["arguments"] = {}


@NodeRegistry.register(NodeDefinition(
    id="call_custom_event",
    title="Call Custom Event",
    category="Events",
    description="Invokes a custom event defined elsewhere in the graph.",
    inputs=[exec_in()],
    outputs=[exec_out()],
    search_tags=["event", "call", "trigger", "custom"],
    initialize_properties=_init_call_custom_event,
))
class CallCustomEvent(NodeBehavior):

    def emit_exec(self, ctx):
        signature = ctx.custom_event(ctx.properties.get("eventId"))
        if signature is None:
            return [ctx.line("-- missing custom event target"), *ctx.emit_next_exec("exec_out")]

        args = []
        for parameter in signature.parameters:
            fallback = "nil" if parameter.optional else ctx.default_literal_for_kind(parameter.kind)
            args.append((ctx.resolve_value_input(parameter.input_pin_id, fallback), parameter.optional))

        # Drop trailing optional arguments that resolved to nil.
        while args and args[-1][1] and args[-1][0] == "nil":
            args.pop()

        call = f"{signature.function_name}({', '.join(value for value, _ in args)})"
        return [ctx.line(call), *ctx.emit_next_exec("exec_out")]


# Used by the generator for unregistered "event_*" types.
PASSTHROUGH = LifecycleEvent()
