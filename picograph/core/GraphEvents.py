"""
Graph change notifications emitted by NodeGraph.

All events are plain dicts so they can be forwarded over Socket.IO as-is.
"""
from typing import Any, Dict, List, Literal, TypedDict, Union

NODE_ADDED = "node_added"
NODE_REMOVED = "node_removed"
NODE_POSITION_CHANGED = "node_position_changed"
NODE_PROPERTY_CHANGED = "node_property_changed"
NODE_PINS_CHANGED = "node_pins_changed"
CONNECTION_ADDED = "connection_added"
CONNECTION_REMOVED = "connection_removed"
CONNECTIONS_PRUNED = "connections_pruned"
CONNECTION_KIND_CHANGED = "connection_kind_changed"
GRAPH_RESTORED = "graph_restored"


class NodeAddedEvent(TypedDict):
    type: Literal["node_added"]
    node: Dict[str, Any]


class NodeRemovedEvent(TypedDict):
    type: Literal["node_removed"]
    nodeId: str


class NodePositionChangedEvent(TypedDict):
    type: Literal["node_position_changed"]
    nodeId: str
    position: Dict[str, float]


class NodePropertyChangedEvent(TypedDict):
    type: Literal["node_property_changed"]
    nodeId: str
    key: str
    value: Any


class NodePinsChangedEvent(TypedDict):
    type: Literal["node_pins_changed"]
    nodeId: str
    inputs: List[Dict[str, Any]]
    outputs: List[Dict[str, Any]]


class ConnectionAddedEvent(TypedDict):
    type: Literal["connection_added"]
    connection: Dict[str, Any]


class ConnectionRemovedEvent(TypedDict):
    type: Literal["connection_removed"]
    connection: Dict[str, Any]


class ConnectionsPrunedEvent(TypedDict):
    type: Literal["connections_pruned"]
    connections: List[Dict[str, Any]]


class ConnectionKindChangedEvent(TypedDict):
    type: Literal["connection_kind_changed"]
    connectionId: str
    kind: str


class GraphRestoredEvent(TypedDict):
    type: Literal["graph_restored"]
    nodeCount: int
    connectionCount: int


GraphEvent = Union[
    NodeAddedEvent,
    NodeRemovedEvent,
    NodePositionChangedEvent,
    NodePropertyChangedEvent,
    NodePinsChangedEvent,
    ConnectionAddedEvent,
    ConnectionRemovedEvent,
    ConnectionsPrunedEvent,
    ConnectionKindChangedEvent,
    GraphRestoredEvent,
]
