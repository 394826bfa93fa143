"""
GraphState: the single workspace the editing service operates on.

Holds the NodeGraph, the node registry, workspace variables and project
settings.  Every graph notification is forwarded to ``global_emitter`` so the
Socket.IO layer can push it to editor clients.

A small demo graph is seeded on startup so the UI has something to display
on first load.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..compiler import LuaGenerator, ProjectSettings
from ..compiler.schema import validate_graph
from ..compiler.symbols import normalize_variables
from ..core import PinSync
from ..core.BlueprintNode import BlueprintNode
from ..core.NodeGraph import NodeGraph
from ..core.PinSync import CALL_CUSTOM_EVENT_TYPE, CUSTOM_EVENT_TYPE, SEQUENCE_TYPE
from ..noderegistry.library import create_default_registry
from ..noderegistry.NodeRegistry import NodeRegistry
from .events.event_emitter import global_emitter

logger = logging.getLogger(__name__)


class NodeNotFoundError(KeyError):
    """Raised when an operation names a node the workspace does not hold."""


class GraphState:
    """Holds the workspace graph plus the project metadata the compiler needs."""

    def __init__(self, registry: Optional[NodeRegistry] = None, seed_demo: bool = True) -> None:
        self.registry: NodeRegistry = registry or create_default_registry()
        self.graph = NodeGraph()
        self.graph.subscribe(global_emitter.fire)
        self.variables: List[Dict[str, Any]] = []
        self.settings = ProjectSettings()

        if seed_demo:
            self._seed_demo()

    # ── Demo graph ──────────────────────────────────────────────────────────

    def _seed_demo(self) -> None:
        graph = self.graph
        self.variables = [
            {"id": "var_x", "name": "x", "type": "number", "defaultValue": 64},
        ]

        init = self.create_node("event_start", {"x": 80, "y": 100})
        hello = self.create_node("print", {"x": 340, "y": 100})
        self.set_property(hello.id, "pin:msg", "hello pico-8")
        graph.connect((init.id, "exec_out"), (hello.id, "exec_in"))

        update = self.create_node("event_update", {"x": 80, "y": 300})
        move = self.create_node("set_var", {"x": 340, "y": 300})
        self.set_property(move.id, "variableId", "var_x")
        current = self.create_node("get_var", {"x": 80, "y": 420})
        self.set_property(current.id, "variableId", "var_x")
        step = self.create_node("add_number", {"x": 220, "y": 420})
        self.set_property(step.id, "pin:b", 1)
        graph.connect((update.id, "exec_out"), (move.id, "exec_in"))
        graph.connect((current.id, "value"), (step.id, "a"))
        graph.connect((step.id, "res"), (move.id, "value"))

        draw = self.create_node("event_draw", {"x": 80, "y": 600})
        clear = self.create_node("graphics_cls", {"x": 340, "y": 600})
        ball = self.create_node("graphics_circfill", {"x": 600, "y": 600})
        self.set_property(ball.id, "pin:y", 64)
        self.set_property(ball.id, "pin:color", 8)
        ball_x = self.create_node("get_var", {"x": 340, "y": 720})
        self.set_property(ball_x.id, "variableId", "var_x")
        graph.connect((draw.id, "exec_out"), (clear.id, "exec_in"))
        graph.connect((clear.id, "exec_out"), (ball.id, "exec_in"))
        graph.connect((ball_x.id, "value"), (ball.id, "x"))

    def reset(self, seed_demo: bool = False) -> None:
        """Empty the workspace in place, keeping the notification subscription."""
        self.graph.replace_state({"nodes": [], "connections": []})
        self.variables = []
        self.settings = ProjectSettings()
        if seed_demo:
            self._seed_demo()

    # ── Lookups ─────────────────────────────────────────────────────────────

    def require_node(self, node_id: str) -> BlueprintNode:
        node = self.graph.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def to_dict(self) -> Dict[str, Any]:
        return {
            "graph": self.graph.to_dict(),
            "variables": list(self.variables),
            "settings": self.settings.to_dict(),
        }

    # ── Graph mutations ─────────────────────────────────────────────────────

    def replace_graph(self, payload: Dict[str, Any]) -> None:
        validate_graph(payload)
        self.graph.replace_state(payload)
        PinSync.sync_variable_nodes(self.graph, self.variables)

    def create_node(self, type_id: str, position: Optional[Dict[str, float]] = None) -> BlueprintNode:
        node = self.graph.create_node(self.registry, type_id, position)
        if PinSync.is_variable_node(node):
            PinSync.sync_variable_pins(self.graph, node.id, PinSync.variable_kind(node, self.variables))
        return node

    def delete_node(self, node_id: str) -> None:
        node = self.require_node(node_id)
        self.graph.remove_node(node_id)
        # Callers of a deleted custom event lose their argument pins.
        if node.type == CUSTOM_EVENT_TYPE:
            for candidate in self.graph.get_nodes():
                if candidate.type == CALL_CUSTOM_EVENT_TYPE and candidate.properties.get("eventId") == node_id:
                    PinSync.sync_call_custom_event_pins(self.graph, candidate.id)

    def set_position(self, node_id: str, x: float, y: float) -> None:
        self.require_node(node_id)
        self.graph.set_node_position(node_id, {"x": x, "y": y})

    def set_property(self, node_id: str, key: str, value: Any) -> None:
        node = self.require_node(node_id)
        if node.type == CALL_CUSTOM_EVENT_TYPE and key == "eventId":
            PinSync.set_call_target(self.graph, node_id, value)
            return
        self.graph.set_node_property(node_id, key, value)
        if node.type == CUSTOM_EVENT_TYPE and key == "parameters":
            PinSync.sync_custom_event_pins(self.graph, node_id)
        elif node.type == SEQUENCE_TYPE and key == "branches":
            PinSync.sync_sequence_pins(self.graph, node_id)
        elif PinSync.is_variable_node(node):
            PinSync.sync_variable_pins(self.graph, node_id, PinSync.variable_kind(node, self.variables))

    def connect(self, source: Dict[str, str], target: Dict[str, str]) -> bool:
        return self.graph.connect(source, target)

    def remove_connection(self, connection_id: str) -> None:
        self.graph.remove_connection(connection_id)

    # ── Dynamic pins ────────────────────────────────────────────────────────

    def add_parameter(self, node_id: str, name: str, type: str, optional: bool) -> Optional[Dict[str, Any]]:
        self.require_node(node_id)
        return PinSync.add_custom_event_parameter(self.graph, node_id, name, type, optional)

    def remove_parameter(self, node_id: str, parameter_id: str) -> bool:
        self.require_node(node_id)
        return PinSync.remove_custom_event_parameter(self.graph, node_id, parameter_id)

    def add_branch(self, node_id: str) -> Optional[str]:
        self.require_node(node_id)
        return PinSync.add_sequence_branch(self.graph, node_id)

    def remove_branch(self, node_id: str, pin_id: str) -> bool:
        self.require_node(node_id)
        return PinSync.remove_sequence_branch(self.graph, node_id, pin_id)

    # ── Project metadata ────────────────────────────────────────────────────

    def set_variables(self, variables: List[Dict[str, Any]]) -> None:
        self.variables = [spec.to_dict() for spec in normalize_variables(variables)]
        PinSync.sync_variable_nodes(self.graph, self.variables)

    def set_settings(self, settings: Dict[str, Any]) -> None:
        self.settings = ProjectSettings.from_value(settings)

    # ── Compile ─────────────────────────────────────────────────────────────

    def compile(self) -> str:
        generator = LuaGenerator(self.registry, settings=self.settings)
        lua = generator.generate(self.graph, self.variables)
        logger.info(f"Compiled workspace: {len(self.graph)} nodes, {len(lua.splitlines())} lines of Lua")
        return lua


# Module-level singleton
graph_state = GraphState()
