"""Constant literal nodes."""
from ...core.BlueprintNode import output_pin
from ...core.Types import PinKind
from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry, PropertySchema


class LiteralBehavior(NodeBehavior):
    kind = PinKind.ANY
    default = None

    def evaluate_value(self, ctx):
        value = ctx.properties.get("value")
        return ctx.format_literal(self.kind, self.default if value is None else value)


@NodeRegistry.register(NodeDefinition(
    id="number_literal",
    title="Number",
    category="Values",
    description="Constant numeric literal.",
    outputs=[output_pin("value", "Value", PinKind.NUMBER)],
    properties=[PropertySchema("value", "Number", "number", 0)],
    search_tags=["number", "literal", "constant", "value"],
))
class NumberLiteral(LiteralBehavior):
    kind = PinKind.NUMBER
    default = 0


@NodeRegistry.register(NodeDefinition(
    id="string_literal",
    title="String",
    category="Values",
    description="Constant string literal.",
    outputs=[output_pin("value", "Value", PinKind.STRING)],
    properties=[PropertySchema("value", "Text", "string", "hello")],
    search_tags=["string", "literal", "text", "value"],
))
class StringLiteral(LiteralBehavior):
    kind = PinKind.STRING
    default = ""


@NodeRegistry.register(NodeDefinition(
    id="boolean_literal",
    title="Boolean",
    category="Values",
    description="Constant boolean literal.",
    outputs=[output_pin("value", "Value", PinKind.BOOLEAN)],
    properties=[PropertySchema("value", "Value", "boolean", True)],
    search_tags=["boolean", "literal", "true", "false"],
))
class BooleanLiteral(LiteralBehavior):
    kind = PinKind.BOOLEAN
    default = True
