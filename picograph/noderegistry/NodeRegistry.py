from typing import Any, Callable, Dict, List, Optional, Set, Type, TYPE_CHECKING
from dataclasses import dataclass, field

import copy
import logging
import math

from ..core.BlueprintNode import BlueprintNode, Pin

if TYPE_CHECKING:
    from ..compiler.context import ExecContext, ValueContext

logger = logging.getLogger(__name__)


class UnknownNodeTypeError(ValueError):
    """Raised when the node factory is asked for a type nobody registered."""


@dataclass
class PropertySchema:
    key: str
    label: str
    type: str = "string"
    default_value: Any = None
    options: Optional[List[Dict[str, Any]]] = None


@dataclass
class NodeDefinition:
    id: str
    title: str
    category: str
    description: str = ""
    inputs: List[Pin] = field(default_factory=list)
    outputs: List[Pin] = field(default_factory=list)
    properties: List[PropertySchema] = field(default_factory=list)
    search_tags: List[str] = field(default_factory=list)
    unique: bool = False
    initialize_properties: Optional[Callable[[Dict[str, Any]], None]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "description": self.description,
            "inputs": [pin.to_dict() for pin in self.inputs],
            "outputs": [pin.to_dict() for pin in self.outputs],
            "properties": [
                {"key": p.key, "label": p.label, "type": p.type, "defaultValue": p.default_value}
                for p in self.properties
            ],
            "searchTags": list(self.search_tags),
            "unique": self.unique,
        }


class NodeBehavior:
    """
    Base class for per-type Lua generation. Override the hooks you need.

    Both hooks may return None, which tells the generator to use its generic
    fallback for the node.
    """

    is_entry_point: bool = False
    # Lifecycle function name for entry points; None marks a user-named custom entry.
    event_name: Optional[str] = None

    def emit_exec(self, ctx: "ExecContext") -> Optional[List[str]]:
        return None

    def evaluate_value(self, ctx: "ValueContext") -> Optional[str]:
        return None


@dataclass
class NodeModule:
    definition: NodeDefinition
    behavior: Optional[NodeBehavior] = None


class NodeRegistry:
    """Type-id keyed table of node definitions and their generation behaviors."""

    # Built-in modules collected by the @NodeRegistry.register decorator.
    _builtin_modules: Dict[str, NodeModule] = {}

    @classmethod
    def register(cls, definition: NodeDefinition) -> Callable[[Type[NodeBehavior]], Type[NodeBehavior]]:
        """Decorator to register a behavior class as the built-in module for *definition*."""
        def decorator(behavior_cls: Type[NodeBehavior]) -> Type[NodeBehavior]:
            if definition.id in cls._builtin_modules:
                raise ValueError(f"Node type '{definition.id}' is already registered.")
            cls._builtin_modules[definition.id] = NodeModule(definition, behavior_cls())
            return behavior_cls
        return decorator

    @classmethod
    def builtin_modules(cls) -> List[NodeModule]:
        return list(cls._builtin_modules.values())

    @classmethod
    def builtin_behavior(cls, type_id: str) -> Optional[NodeBehavior]:
        module = cls._builtin_modules.get(type_id)
        return module.behavior if module else None

    def __init__(self) -> None:
        self.definitions: Dict[str, NodeDefinition] = {}
        self.behaviors: Dict[str, NodeBehavior] = {}
        self.entry_node_types: Set[str] = set()
        self.entry_point_events: Dict[str, str] = {}

    def register_module(self, module: NodeModule) -> None:
        definition, behavior = module.definition, module.behavior
        if definition.id in self.definitions:
            logger.warning(f"Node type '{definition.id}' re-registered; replacing previous definition")
            self.behaviors.pop(definition.id, None)
            self.entry_node_types.discard(definition.id)
            self.entry_point_events.pop(definition.id, None)
        self.definitions[definition.id] = definition
        if behavior is None:
            return
        self.behaviors[definition.id] = behavior
        if behavior.is_entry_point:
            self.entry_node_types.add(definition.id)
            if behavior.event_name:
                self.entry_point_events[definition.id] = behavior.event_name

    def register_modules(self, modules: List[NodeModule]) -> None:
        for module in modules:
            self.register_module(module)

    # ── Lookups ─────────────────────────────────────────────────────────────

    def get(self, type_id: str) -> Optional[NodeDefinition]:
        return self.definitions.get(type_id)

    def get_behavior(self, type_id: str) -> Optional[NodeBehavior]:
        return self.behaviors.get(type_id)

    def get_entry_node_types(self) -> Set[str]:
        return set(self.entry_node_types)

    def get_entry_point_events(self) -> Dict[str, str]:
        return dict(self.entry_point_events)

    def list(self) -> List[NodeDefinition]:
        return list(self.definitions.values())

    # ── Factory ─────────────────────────────────────────────────────────────

    def create_node(self, type_id: str, node_id: str,
                    position: Optional[Dict[str, float]] = None) -> BlueprintNode:
        definition = self.get(type_id)
        if definition is None:
            raise UnknownNodeTypeError(f"Unknown node definition: {type_id}")

        properties: Dict[str, Any] = {}
        for schema in definition.properties:
            properties[schema.key] = copy.deepcopy(schema.default_value)
        if definition.initialize_properties is not None:
            definition.initialize_properties(properties)

        return BlueprintNode(
            id=node_id,
            type=definition.id,
            title=definition.title,
            position=dict(position or {"x": 0, "y": 0}),
            inputs=definition.inputs,
            outputs=definition.outputs,
            properties=properties,
        )

    # ── Search ──────────────────────────────────────────────────────────────

    def search(self, query: Optional[str]) -> List[NodeDefinition]:
        """Fuzzy search over title, category, description and tags, closest first."""
        normalized = (query or "").strip().lower()
        if not normalized:
            return sorted(self.list(), key=lambda d: d.title.lower())

        ranked = []
        for definition in self.definitions.values():
            score = _score_definition(definition, normalized)
            if math.isfinite(score):
                ranked.append((score, definition.title.lower(), definition))
        ranked.sort(key=lambda entry: (entry[0], entry[1]))
        return [definition for _, _, definition in ranked]


def _search_fields(definition: NodeDefinition) -> List[tuple]:
    # Title matches are favoured over the other fields.
    fields = [(definition.title, 0.8), (definition.category, 1.0)]
    if definition.description:
        fields.append((definition.description, 1.0))
    for tag in definition.search_tags:
        fields.append((tag, 1.0))
    return [(value.lower(), weight) for value, weight in fields if value and value.strip()]


def _score_definition(definition: NodeDefinition, query: str) -> float:
    best = math.inf
    for value, weight in _search_fields(definition):
        score = _fuzzy_score(query, value)
        if not math.isfinite(score):
            continue
        best = min(best, score * weight)
        if best == 0:
            break
    return best


def _fuzzy_score(query: str, candidate: str) -> float:
    """Subsequence match cost: the number of skipped candidate characters. inf when no match."""
    if not candidate:
        return math.inf
    q_index = 0
    score = 0
    last_match = -1
    for c_index, char in enumerate(candidate):
        if char != query[q_index]:
            continue
        score += c_index if last_match == -1 else c_index - last_match - 1
        last_match = c_index
        q_index += 1
        if q_index == len(query):
            break
    if q_index != len(query):
        return math.inf
    return score + len(candidate) - last_match - 1
