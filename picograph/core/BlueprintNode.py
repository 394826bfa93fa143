from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import copy

from .Types import PinDirection, PinKind


@dataclass
class Pin:
    id: str
    name: str
    direction: PinDirection
    kind: PinKind
    default_value: Any = None
    description: Optional[str] = None

    def clone(self) -> "Pin":
        return Pin(
            id=self.id,
            name=self.name,
            direction=self.direction,
            kind=self.kind,
            default_value=copy.deepcopy(self.default_value),
            description=self.description,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "direction": self.direction.value,
            "kind": self.kind.value,
        }
        if self.default_value is not None:
            data["defaultValue"] = copy.deepcopy(self.default_value)
        if self.description is not None:
            data["description"] = self.description
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any], direction: Optional[PinDirection] = None) -> "Pin":
        raw_direction = data.get("direction")
        pin_direction = PinDirection(raw_direction) if raw_direction else (direction or PinDirection.INPUT)
        return Pin(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            direction=pin_direction,
            kind=PinKind.coerce(data.get("kind"), PinKind.ANY),
            default_value=copy.deepcopy(data.get("defaultValue")),
            description=data.get("description"),
        )


def input_pin(pin_id: str, name: str, kind: PinKind, default_value: Any = None,
              description: Optional[str] = None) -> Pin:
    return Pin(pin_id, name, PinDirection.INPUT, kind, default_value, description)


def output_pin(pin_id: str, name: str, kind: PinKind, description: Optional[str] = None) -> Pin:
    return Pin(pin_id, name, PinDirection.OUTPUT, kind, None, description)


class BlueprintNode:
    """A typed unit of the visual program: pins plus a free-form property bag."""

    def __init__(self,
                 id: str,
                 type: str,
                 title: str,
                 position: Optional[Dict[str, float]] = None,
                 inputs: Optional[List[Pin]] = None,
                 outputs: Optional[List[Pin]] = None,
                 properties: Optional[Dict[str, Any]] = None):
        self.id = id
        self.type = type
        self.title = title
        position = position or {}
        self.position: Dict[str, float] = {
            "x": position.get("x", 0),
            "y": position.get("y", 0),
        }
        self.inputs: List[Pin] = [pin.clone() for pin in (inputs or [])]
        self.outputs: List[Pin] = [pin.clone() for pin in (outputs or [])]
        self.properties: Dict[str, Any] = dict(properties or {})

    def get_pin(self, pin_id: str) -> Optional[Pin]:
        for pin in self.inputs:
            if pin.id == pin_id:
                return pin
        for pin in self.outputs:
            if pin.id == pin_id:
                return pin
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "position": dict(self.position),
            "inputs": [pin.to_dict() for pin in self.inputs],
            "outputs": [pin.to_dict() for pin in self.outputs],
            "properties": copy.deepcopy(self.properties),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "BlueprintNode":
        return BlueprintNode(
            id=str(data["id"]),
            type=str(data["type"]),
            title=str(data.get("title", data["type"])),
            position=data.get("position"),
            inputs=[Pin.from_dict(pin, PinDirection.INPUT) for pin in data.get("inputs") or []],
            outputs=[Pin.from_dict(pin, PinDirection.OUTPUT) for pin in data.get("outputs") or []],
            properties=copy.deepcopy(data.get("properties") or {}),
        )

    def __repr__(self):
        return f"BlueprintNode({self.id})"
