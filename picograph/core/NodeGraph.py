from typing import Any, Callable, Dict, Iterable, List, Optional, Union, TYPE_CHECKING
from collections import defaultdict

import logging
import re

from .BlueprintNode import BlueprintNode, Pin
from .GraphPrimitives import Connection, PinRef
from .Types import PinDirection, PinKind, connection_kind, kinds_compatible
from . import GraphEvents

if TYPE_CHECKING:
    from ..noderegistry.NodeRegistry import NodeRegistry

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]
RefLike = Union[PinRef, Dict[str, Any], tuple]

_ID_SUFFIX = re.compile(r"_(\d+)$")


def _as_ref(ref: RefLike) -> PinRef:
    if isinstance(ref, PinRef):
        return ref
    if isinstance(ref, dict):
        return PinRef.from_dict(ref)
    node_id, pin_id = ref
    return PinRef(str(node_id), str(pin_id))


class NodeGraph:
    """
    In-memory store of blueprint nodes and the connections between their pins.

    Every mutation is synchronous and notifies subscribers inline before
    returning.  The store keeps no history of its own.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, BlueprintNode] = {}
        self._connections: List[Connection] = []
        self._id_counters: Dict[str, int] = defaultdict(int)
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def subscribe(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit(self, event_type: str, **detail: Any) -> None:
        payload = {"type": event_type, **detail}
        for cb in list(self._listeners):
            try:
                cb(payload)
            except Exception:
                logger.exception("Graph listener failed while handling '%s'", event_type)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def create_node_id(self, type_id: str) -> str:
        while True:
            self._id_counters[type_id] += 1
            candidate = f"{type_id}_{self._id_counters[type_id]:02d}"
            if candidate not in self._nodes:
                return candidate

    def create_node(self, registry: "NodeRegistry", type_id: str,
                    position: Optional[Dict[str, float]] = None) -> BlueprintNode:
        """Instantiate *type_id* through the registry factory and add it. Raises for unknown types."""
        node = registry.create_node(type_id, self.create_node_id(type_id), position)
        self.add_node(node)
        return node

    def add_node(self, node: BlueprintNode) -> None:
        if node.id in self._nodes:
            logger.warning(f"Ignoring node with duplicate id '{node.id}'")
            return
        self._nodes[node.id] = node
        self._emit(GraphEvents.NODE_ADDED, node=node.to_dict())

    def remove_node(self, node_id: str) -> None:
        if node_id not in self._nodes:
            return
        del self._nodes[node_id]
        pruned = [c for c in self._connections if c.touches(node_id)]
        self._connections = [c for c in self._connections if not c.touches(node_id)]
        logger.debug(f"Removed node '{node_id}' and {len(pruned)} connection(s)")
        self._emit(GraphEvents.NODE_REMOVED, nodeId=node_id)
        self._emit(GraphEvents.CONNECTIONS_PRUNED, connections=[c.to_dict() for c in pruned])

    def get_node(self, node_id: str) -> Optional[BlueprintNode]:
        return self._nodes.get(node_id)

    def get_nodes(self) -> List[BlueprintNode]:
        return list(self._nodes.values())

    def set_node_position(self, node_id: str, position: Dict[str, float]) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            return
        node.position = {"x": position.get("x", 0), "y": position.get("y", 0)}
        self._emit(GraphEvents.NODE_POSITION_CHANGED, nodeId=node_id, position=dict(node.position))

    def set_node_property(self, node_id: str, key: str, value: Any) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            return
        node.properties[key] = value
        self._emit(GraphEvents.NODE_PROPERTY_CHANGED, nodeId=node_id, key=key, value=value)

    def set_node_pins(self, node_id: str, inputs: Optional[List[Pin]] = None,
                      outputs: Optional[List[Pin]] = None) -> None:
        """Replace a node's pin lists. Connections are left alone; callers prune them."""
        node = self._nodes.get(node_id)
        if node is None:
            return
        if inputs is not None:
            node.inputs = [pin.clone() for pin in inputs]
        if outputs is not None:
            node.outputs = [pin.clone() for pin in outputs]
        self._emit(
            GraphEvents.NODE_PINS_CHANGED,
            nodeId=node_id,
            inputs=[pin.to_dict() for pin in node.inputs],
            outputs=[pin.to_dict() for pin in node.outputs],
        )

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def can_connect(self, source: RefLike, target: RefLike) -> bool:
        return self._validate(_as_ref(source), _as_ref(target)) is None

    def _validate(self, source: PinRef, target: PinRef) -> Optional[str]:
        """Returns the reason a connection is rejected, or None when it is allowed."""
        from_node = self._nodes.get(source.node_id)
        to_node = self._nodes.get(target.node_id)
        if from_node is None or to_node is None:
            return "unknown node"
        if from_node.id == to_node.id:
            return "self connection"
        from_pin = from_node.get_pin(source.pin_id)
        to_pin = to_node.get_pin(target.pin_id)
        if from_pin is None or to_pin is None:
            return "unknown pin"
        if from_pin.direction is not PinDirection.OUTPUT or to_pin.direction is not PinDirection.INPUT:
            return "direction mismatch"
        if not kinds_compatible(from_pin.kind, to_pin.kind):
            return f"incompatible kinds {from_pin.kind.value} -> {to_pin.kind.value}"
        for existing in self._connections:
            if existing.same_endpoints(source, target):
                return "duplicate"
        return None

    def connect(self, source: RefLike, target: RefLike) -> bool:
        """
        Wire an output pin to an input pin.

        Returns False instead of raising when the request is invalid.  A data
        input keeps a single upstream connection and an exec output a single
        downstream one; the previous connection is replaced.
        """
        try:
            source, target = _as_ref(source), _as_ref(target)
        except (TypeError, ValueError):
            return False

        reason = self._validate(source, target)
        if reason is not None:
            logger.debug(f"Rejected connection {source} -> {target}: {reason}")
            return False

        from_pin = self._nodes[source.node_id].get_pin(source.pin_id)
        to_pin = self._nodes[target.node_id].get_pin(target.pin_id)

        if from_pin.kind is PinKind.EXEC:
            self.remove_connections_for_pin(source)
        if to_pin.kind is not PinKind.EXEC:
            self.remove_connections_for_pin(target)

        connection = Connection(source, target, connection_kind(from_pin.kind, to_pin.kind))
        self._connections.append(connection)
        self._emit(GraphEvents.CONNECTION_ADDED, connection=connection.to_dict())
        return True

    def remove_connection(self, connection_id: str) -> None:
        for index, connection in enumerate(self._connections):
            if connection.id == connection_id:
                del self._connections[index]
                self._emit(GraphEvents.CONNECTION_REMOVED, connection=connection.to_dict())
                return

    def remove_connections_for_pin(self, ref: RefLike) -> None:
        ref = _as_ref(ref)
        pruned = [c for c in self._connections if c.source == ref or c.target == ref]
        if not pruned:
            return
        self._connections = [c for c in self._connections if c not in pruned]
        logger.debug(f"Pruned {len(pruned)} connection(s) on {ref}")
        self._emit(GraphEvents.CONNECTIONS_PRUNED, connections=[c.to_dict() for c in pruned])

    def set_connection_kind(self, connection_id: str, kind: PinKind) -> None:
        for connection in self._connections:
            if connection.id == connection_id:
                if connection.kind is not kind:
                    connection.kind = kind
                    self._emit(GraphEvents.CONNECTION_KIND_CHANGED, connectionId=connection_id, kind=kind.value)
                return

    def get_connections(self) -> List[Connection]:
        return list(self._connections)

    def get_connections_for_node(self, node_id: str, pin_id: Optional[str] = None) -> List[Connection]:
        return [c for c in self._connections if c.touches(node_id, pin_id)]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self._nodes.values()],
            "connections": [c.to_dict() for c in self._connections],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "NodeGraph":
        graph = cls()
        graph._load(payload)
        return graph

    def replace_state(self, payload: Dict[str, Any]) -> None:
        """Swap in a serialized graph wholesale and announce it with one notification."""
        self._load(payload)
        self._emit(
            GraphEvents.GRAPH_RESTORED,
            nodeCount=len(self._nodes),
            connectionCount=len(self._connections),
        )

    def _load(self, payload: Dict[str, Any]) -> None:
        nodes = [BlueprintNode.from_dict(entry) for entry in payload.get("nodes") or []]
        connections = [Connection.from_dict(entry) for entry in payload.get("connections") or []]
        self._nodes = {node.id: node for node in nodes}
        self._connections = connections
        self._rebuild_id_counters(nodes)

    def _rebuild_id_counters(self, nodes: Iterable[BlueprintNode]) -> None:
        self._id_counters = defaultdict(int)
        for node in nodes:
            match = _ID_SUFFIX.search(node.id)
            if match:
                value = int(match.group(1))
                if value > self._id_counters[node.type]:
                    self._id_counters[node.type] = value

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self):
        return f"NodeGraph(nodes={len(self._nodes)}, connections={len(self._connections)})"
