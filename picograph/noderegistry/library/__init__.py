"""
Standard node library.

Importing this package registers every built-in node module with
``NodeRegistry`` through the ``@NodeRegistry.register`` decorator.
``create_default_registry()`` returns a fresh registry loaded with all of them.

The generator also uses ``baseline_behavior()`` when a graph contains a node
whose type is not registered in the registry it was given: the core constructs
keep compiling through the same built-in behaviors.
"""
from typing import Dict, Optional

from ..NodeRegistry import NodeBehavior, NodeRegistry
from . import arithmetic, controls, events, flow, graphics, values, variables  # noqa: F401

BASELINE_EXEC_TYPES = (
    "print",
    "set_var",
    "if",
    "for_loop",
    "sequence",
    "call_custom_event",
)

BASELINE_VALUE_TYPES = (
    "number_literal",
    "string_literal",
    "boolean_literal",
    "get_var",
    "custom_event",
    "add_number",
    "multiply_number",
    "compare",
)

BASELINE_BEHAVIORS: Dict[str, NodeBehavior] = {
    type_id: NodeRegistry.builtin_behavior(type_id)
    for type_id in BASELINE_EXEC_TYPES + BASELINE_VALUE_TYPES
}


def baseline_behavior(type_id: str) -> Optional[NodeBehavior]:
    behavior = BASELINE_BEHAVIORS.get(type_id)
    if behavior is not None:
        return behavior
    # Any other event-like type just continues its exec output.
    if type_id.startswith("event_"):
        return NodeRegistry.builtin_behavior(type_id) or events.PASSTHROUGH
    return None


def create_default_registry() -> NodeRegistry:
    registry = NodeRegistry()
    registry.register_modules(NodeRegistry.builtin_modules())
    return registry
