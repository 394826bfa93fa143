from typing import Any, Dict, NamedTuple, Optional
from dataclasses import dataclass, field

import uuid

from .Types import PinKind


# Using NamedTuple for immutability and hashability: refs are used as dict keys
# and compared field-by-field when checking for duplicate connections.
class PinRef(NamedTuple):
    node_id: str
    pin_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"nodeId": self.node_id, "pinId": self.pin_id}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PinRef":
        return PinRef(str(data.get("nodeId", "")), str(data.get("pinId", "")))

    def __repr__(self):
        return f"PinRef({self.node_id}.{self.pin_id})"


def _new_connection_id() -> str:
    return f"conn_{uuid.uuid4().hex}"


@dataclass
class Connection:
    """
    A directed edge from an output pin to an input pin.

    ``kind`` is a cached value computed at connect time.  It is not re-derived
    when pins change afterwards; see PinSync.repair_connection_kinds.
    """
    source: PinRef
    target: PinRef
    kind: PinKind
    id: str = field(default_factory=_new_connection_id)

    def same_endpoints(self, source: PinRef, target: PinRef) -> bool:
        return self.source == source and self.target == target

    def touches(self, node_id: str, pin_id: Optional[str] = None) -> bool:
        for ref in (self.source, self.target):
            if ref.node_id == node_id and (pin_id is None or ref.pin_id == pin_id):
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from": self.source.to_dict(),
            "to": self.target.to_dict(),
            "kind": self.kind.value,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Connection":
        return Connection(
            source=PinRef.from_dict(data.get("from") or {}),
            target=PinRef.from_dict(data.get("to") or {}),
            kind=PinKind.coerce(data.get("kind"), PinKind.ANY),
            id=str(data.get("id") or _new_connection_id()),
        )

    def __repr__(self):
        return f"Connection({self.source.node_id}.{self.source.pin_id} -> {self.target.node_id}.{self.target.pin_id} [{self.kind.value}])"
