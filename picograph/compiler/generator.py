"""
Lua generator: lowers a NodeGraph snapshot into PICO-8 Lua source text.

Pipeline (one synchronous pass per generate() call)
---------------------------------------------------
1. Normalise workspace variables and allocate global identifiers.
2. Split entry nodes into lifecycle events and custom events.
3. Allocate custom event function names and parameter signatures.
4. Emit functions in a fixed order: _init, _update, _update60, _draw, any
   other lifecycle events sorted by name, then custom events sorted by
   display name.  Each body is produced by walking the exec chain from the
   entry node.

Nodes are lowered through the behavior registered for their type.  Types the
registry does not know fall back to the built-in behavior of the same type
id when one exists, otherwise to an "unsupported" comment (exec) or ``nil``
(value).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.BlueprintNode import BlueprintNode
from ..core.NodeGraph import NodeGraph
from ..core.Types import PinKind
from ..noderegistry.NodeRegistry import NodeBehavior, NodeRegistry
from ..noderegistry.library import baseline_behavior, create_default_registry
from .context import ExecContext, ExecPath, GenerationState, ValueContext, indent
from .formatting import format_literal
from .symbols import CustomEventSymbols, GlobalDeclarations, VariableSpec, normalize_variables
from .writer import CodeWriter

logger = logging.getLogger(__name__)

BANNER = "-- Generated with picoGraph"
NO_ENTRY_PROGRAM = "\n".join([BANNER, "-- No entry node present."])

UPDATE_EVENT = "_update"
UPDATE_60_EVENT = "_update60"
LIFECYCLE_ORDER = ("_init", UPDATE_EVENT, UPDATE_60_EVENT, "_draw")

NIL = "nil"


@dataclass
class ProjectSettings:
    use_60_fps: bool = False

    @staticmethod
    def from_value(value: Any) -> "ProjectSettings":
        if isinstance(value, ProjectSettings):
            return ProjectSettings(value.use_60_fps)
        if isinstance(value, dict):
            return ProjectSettings(use_60_fps=bool(value.get("use60Fps", False)))
        return ProjectSettings()

    def to_dict(self) -> Dict[str, Any]:
        return {"use60Fps": self.use_60_fps}


class LuaGenerator:
    """
    Reusable compiler front door.  Holds only configuration (registry,
    project settings, stored variables); every generate() call builds its
    own GenerationState.
    """

    def __init__(self, registry: Optional[NodeRegistry] = None, settings: Any = None,
                 variables: Optional[List[Any]] = None):
        self.registry = registry if registry is not None else create_default_registry()
        self.project_settings = ProjectSettings.from_value(settings)
        self.variables: List[VariableSpec] = normalize_variables(variables)

    def set_project_settings(self, settings: Any) -> None:
        self.project_settings = ProjectSettings.from_value(settings)

    def set_variables(self, variables: Optional[List[Any]]) -> None:
        self.variables = normalize_variables(variables)

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def generate(self, graph: NodeGraph, variables: Optional[List[Any]] = None) -> str:
        specs = normalize_variables(variables) if variables is not None else list(self.variables)
        nodes = {node.id: node for node in graph.get_nodes()}
        connections = graph.get_connections()

        entry_types = self.registry.get_entry_node_types()
        entry_events = self.registry.get_entry_point_events()
        lifecycle_nodes: List[BlueprintNode] = []
        custom_nodes: List[BlueprintNode] = []
        for node in nodes.values():
            if node.type not in entry_types:
                continue
            if node.type in entry_events:
                lifecycle_nodes.append(node)
            else:
                custom_nodes.append(node)

        if not lifecycle_nodes and not custom_nodes:
            logger.debug("No entry nodes in graph; emitting placeholder program")
            return NO_ENTRY_PROGRAM

        state = GenerationState(
            registry=self.registry,
            nodes=nodes,
            connections=connections,
            globals=GlobalDeclarations(specs),
            custom_events=CustomEventSymbols(custom_nodes),
        )
        logger.debug(
            f"Generating Lua: {len(nodes)} nodes, {len(connections)} connections, "
            f"{len(lifecycle_nodes)} lifecycle entries, {len(custom_nodes)} custom events"
        )

        # First node per event name wins, in graph insertion order.
        entries: Dict[str, BlueprintNode] = {}
        for node in lifecycle_nodes:
            event_name = entry_events[node.type]
            if event_name == UPDATE_EVENT and self.project_settings.use_60_fps:
                event_name = UPDATE_60_EVENT
            if event_name in entries:
                logger.debug(f"Ignoring extra '{event_name}' entry node '{node.id}'")
                continue
            entries[event_name] = node

        writer = CodeWriter()
        writer.writeln(BANNER)
        if state.globals.lines:
            writer.blank()
            writer.extend(state.globals.lines)

        ordered_events = [name for name in LIFECYCLE_ORDER if name in entries]
        ordered_events += sorted(name for name in entries if name not in LIFECYCLE_ORDER)
        for event_name in ordered_events:
            body = self.emit_exec_chain(state, entries[event_name].id, 1, frozenset())
            writer.function(event_name, "", body)

        for signature in state.custom_events.ordered():
            body = self.emit_exec_chain(state, signature.node_id, 1, frozenset())
            writer.function(signature.function_name, signature.parameter_list(), body)

        return writer.result()

    # ------------------------------------------------------------------
    # Exec chain
    # ------------------------------------------------------------------

    def emit_exec_chain(self, state: GenerationState, node_id: str, indent_level: int,
                        path: ExecPath) -> List[str]:
        if node_id in path:
            return [f"{indent(indent_level)}-- cyclic exec connection involving {node_id}"]
        node = state.nodes.get(node_id)
        if node is None:
            return [f"{indent(indent_level)}-- missing node {node_id}"]

        ctx = ExecContext(self, state, node, indent_level, path | {node_id})
        for behavior in self._behaviors_for(state, node):
            lines = behavior.emit_exec(ctx)
            if lines is not None:
                return list(lines)
        return [f"{indent(indent_level)}-- unsupported flow node: {node.title}"]

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def evaluate_value(self, state: GenerationState, node_id: str, pin_id: str) -> str:
        key = (node_id, pin_id)
        cached = state.value_cache.get(key)
        if cached is not None:
            return cached
        if key in state.in_flight:
            # An ancestor is still building this pin: break the data cycle.
            return NIL
        node = state.nodes.get(node_id)
        if node is None:
            return NIL

        state.in_flight.add(key)
        try:
            expression = self._evaluate_node_value(state, node, pin_id)
        finally:
            state.in_flight.discard(key)
        state.value_cache[key] = expression
        return expression

    def _evaluate_node_value(self, state: GenerationState, node: BlueprintNode, pin_id: str) -> str:
        ctx = ValueContext(self, state, node, pin_id)
        for behavior in self._behaviors_for(state, node):
            expression = behavior.evaluate_value(ctx)
            if expression is not None:
                return expression
        return NIL

    def resolve_value_input(self, state: GenerationState, node: BlueprintNode, pin_id: str,
                            fallback: str) -> str:
        """Connection first, then the inline ``pin:<id>`` override, then the pin default."""
        connection = state.input_connection(node.id, pin_id)
        if connection is not None:
            return self.evaluate_value(state, connection.source.node_id, connection.source.pin_id)

        pin = node.get_pin(pin_id)
        kind = pin.kind if pin is not None else PinKind.ANY
        inline = node.properties.get(f"pin:{pin_id}")
        if inline is not None:
            return format_literal(kind, inline)
        if pin is not None and pin.default_value is not None:
            return format_literal(kind, pin.default_value)
        return fallback

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _behaviors_for(self, state: GenerationState, node: BlueprintNode) -> List[NodeBehavior]:
        behaviors: List[NodeBehavior] = []
        registered = state.registry.get_behavior(node.type)
        if registered is not None:
            behaviors.append(registered)
        fallback = baseline_behavior(node.type)
        if fallback is not None and fallback is not registered:
            behaviors.append(fallback)
        return behaviors
