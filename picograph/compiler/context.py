"""
Per-call generation state and the context objects handed to node behaviors.

A fresh GenerationState is built for every LuaGenerator.generate() call and
passed explicitly through every recursive step, so nothing computed for one
graph can leak into the next call on the same generator.

The exec cycle guard is a frozenset of node ids on the current branch.  Being
immutable, each branch naturally works on its own copy.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Set, Tuple

from ..core.BlueprintNode import BlueprintNode
from ..core.GraphPrimitives import Connection, PinRef
from ..core.Types import PinKind
from ..noderegistry.NodeRegistry import NodeRegistry
from . import formatting
from .symbols import CustomEventSignature, CustomEventSymbols, GlobalDeclarations

if TYPE_CHECKING:
    from .generator import LuaGenerator

INDENT_UNIT = "  "

ExecPath = FrozenSet[str]


@dataclass
class GenerationState:
    registry: NodeRegistry
    nodes: Dict[str, BlueprintNode]
    connections: List[Connection]
    globals: GlobalDeclarations
    custom_events: CustomEventSymbols
    value_cache: Dict[Tuple[str, str], str] = field(default_factory=dict)
    # (node_id, pin_id) pairs whose expression is currently being built
    in_flight: Set[Tuple[str, str]] = field(default_factory=set)

    def input_connection(self, node_id: str, pin_id: str) -> Optional[Connection]:
        for connection in self.connections:
            if connection.target.node_id == node_id and connection.target.pin_id == pin_id:
                return connection
        return None

    def exec_targets(self, node_id: str, pin_id: str) -> List[PinRef]:
        return [
            connection.target
            for connection in self.connections
            if connection.kind is PinKind.EXEC
            and connection.source.node_id == node_id
            and connection.source.pin_id == pin_id
        ]


def indent(level: int) -> str:
    return INDENT_UNIT * max(0, level)


class _BehaviorContext:
    """Helpers shared by exec and value contexts."""

    sanitize_identifier = staticmethod(formatting.sanitize_identifier)
    sanitize_operator = staticmethod(formatting.sanitize_operator)
    format_literal = staticmethod(formatting.format_literal)
    default_literal_for_kind = staticmethod(formatting.default_literal_for_kind)

    def __init__(self, generator: "LuaGenerator", state: GenerationState, node: BlueprintNode):
        self.generator = generator
        self.state = state
        self.node = node

    @property
    def properties(self) -> Dict[str, Any]:
        return self.node.properties

    def resolve_value_input(self, pin_id: str, fallback: str) -> str:
        return self.generator.resolve_value_input(self.state, self.node, pin_id, fallback)

    def variable_name(self, default: str = "var") -> str:
        """Global identifier for the workspace variable this node references."""
        mapped = self.state.globals.lookup(self.node.properties.get("variableId"))
        if mapped:
            return mapped
        name = self.node.properties.get("name")
        return formatting.sanitize_identifier(name if isinstance(name, str) else default)

    def custom_event(self, event_id: Any) -> Optional[CustomEventSignature]:
        return self.state.custom_events.get(event_id)


class ExecContext(_BehaviorContext):
    """What an emit_exec hook sees: its node, where it sits, and how to continue."""

    def __init__(self, generator: "LuaGenerator", state: GenerationState, node: BlueprintNode,
                 indent_level: int, path: ExecPath):
        super().__init__(generator, state, node)
        self.indent_level = indent_level
        self.path = path

    def indent(self, level: Optional[int] = None) -> str:
        return indent(self.indent_level if level is None else level)

    def line(self, text: str, level: Optional[int] = None) -> str:
        return f"{self.indent(level)}{text}"

    def find_exec_targets(self, pin_id: str) -> List[PinRef]:
        return self.state.exec_targets(self.node.id, pin_id)

    def emit_exec_chain(self, node_id: str, indent_level: int, path: ExecPath) -> List[str]:
        return self.generator.emit_exec_chain(self.state, node_id, indent_level, path)

    def emit_next_exec(self, pin_id: str, indent_level: Optional[int] = None,
                       path: Optional[ExecPath] = None) -> List[str]:
        """Continue the chain after *pin_id*. Only the first target is followed."""
        targets = self.find_exec_targets(pin_id)
        if not targets:
            return []
        return self.emit_exec_chain(
            targets[0].node_id,
            self.indent_level if indent_level is None else indent_level,
            self.path if path is None else path,
        )

    def emit_branch(self, pin_id: str, indent_level: Optional[int] = None,
                    path: Optional[ExecPath] = None) -> List[str]:
        """Emit every chain hanging off *pin_id*, each walked independently."""
        level = self.indent_level if indent_level is None else indent_level
        branch_path = self.path if path is None else path
        lines: List[str] = []
        for target in self.find_exec_targets(pin_id):
            lines.extend(self.emit_exec_chain(target.node_id, level, branch_path))
        return lines


class ValueContext(_BehaviorContext):
    """What an evaluate_value hook sees: its node and the output pin requested."""

    def __init__(self, generator: "LuaGenerator", state: GenerationState, node: BlueprintNode,
                 pin_id: str):
        super().__init__(generator, state, node)
        self.pin_id = pin_id

    def parameter_name(self, pin_id: Optional[str] = None) -> Optional[str]:
        return self.state.custom_events.parameter_name(self.node.id, pin_id or self.pin_id)
