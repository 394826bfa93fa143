"""Pure value nodes: arithmetic, comparison and the PICO-8 math builtins."""
from ...core.BlueprintNode import input_pin, output_pin
from ...core.Types import PinKind
from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry, PropertySchema

COMPARE_OPERATORS = [
    {"label": "Equal", "value": "=="},
    {"label": "Not Equal", "value": "!="},
    {"label": "Greater", "value": ">"},
    {"label": "Less", "value": "<"},
    {"label": "Greater Or Equal", "value": ">="},
    {"label": "Less Or Equal", "value": "<="},
]


class BinaryOperator(NodeBehavior):
    operator = "+"
    default = "0"

    def evaluate_value(self, ctx):
        a = ctx.resolve_value_input("a", self.default)
        b = ctx.resolve_value_input("b", self.default)
        return f"({a}) {self.operator} ({b})"


def _number_pair(default):
    return [
        input_pin("a", "A", PinKind.NUMBER, default),
        input_pin("b", "B", PinKind.NUMBER, default),
    ]


@NodeRegistry.register(NodeDefinition(
    id="add_number",
    title="Add",
    category="Math",
    description="Add two numbers.",
    inputs=_number_pair(0),
    outputs=[output_pin("res", "Result", PinKind.NUMBER)],
    search_tags=["add", "math", "sum", "number"],
))
class AddNumber(BinaryOperator):
    operator = "+"
    default = "0"


@NodeRegistry.register(NodeDefinition(
    id="multiply_number",
    title="Multiply",
    category="Math",
    description="Multiply two numbers.",
    inputs=_number_pair(1),
    outputs=[output_pin("res", "Result", PinKind.NUMBER)],
    search_tags=["multiply", "math", "product", "times"],
))
class MultiplyNumber(BinaryOperator):
    operator = "*"
    default = "1"


@NodeRegistry.register(NodeDefinition(
    id="compare",
    title="Compare",
    category="Logic",
    description="Compare two values with a selected operator.",
    inputs=[
        input_pin("a", "A", PinKind.ANY),
        input_pin("b", "B", PinKind.ANY),
    ],
    outputs=[output_pin("res", "Result", PinKind.BOOLEAN)],
    properties=[PropertySchema("operator", "Operator", "enum", "==", COMPARE_OPERATORS)],
    search_tags=["compare", "logic", "condition", "branch"],
))
class Compare(NodeBehavior):

    def evaluate_value(self, ctx):
        a = ctx.resolve_value_input("a", "0")
        b = ctx.resolve_value_input("b", "0")
        raw = ctx.properties.get("operator")
        operator = ctx.sanitize_operator("==" if raw is None else raw)
        return f"({a}) {operator} ({b})"


# ── PICO-8 math builtins ──────────────────────────────────────────────────────

class UnaryBuiltin(NodeBehavior):
    function = "flr"
    default = "0"

    def evaluate_value(self, ctx):
        return f"{self.function}({ctx.resolve_value_input('value', self.default)})"


class BinaryBuiltin(NodeBehavior):
    function = "min"

    def evaluate_value(self, ctx):
        a = ctx.resolve_value_input("a", "0")
        b = ctx.resolve_value_input("b", "0")
        return f"{self.function}({a}, {b})"


def _unary(type_id, title, description, tags, input_name="Value"):
    return NodeDefinition(
        id=type_id,
        title=title,
        category="Math",
        description=description,
        inputs=[input_pin("value", input_name, PinKind.NUMBER)],
        outputs=[output_pin("result", "Result", PinKind.NUMBER)],
        search_tags=tags,
    )


def _binary(type_id, title, description, tags):
    return NodeDefinition(
        id=type_id,
        title=title,
        category="Math",
        description=description,
        inputs=[input_pin("a", "A", PinKind.NUMBER), input_pin("b", "B", PinKind.NUMBER)],
        outputs=[output_pin("value", "Result", PinKind.NUMBER)],
        search_tags=tags,
    )


@NodeRegistry.register(_unary("math_flr", "Floor", "Round a value down to the nearest integer.",
                              ["flr", "floor", "math", "round"]))
class MathFloor(UnaryBuiltin):
    function = "flr"


@NodeRegistry.register(_unary("math_rnd", "Random", "Random number between 0 and the range.",
                              ["rnd", "random", "math", "chance"], input_name="Range"))
class MathRandom(UnaryBuiltin):
    function = "rnd"
    default = "1"


@NodeRegistry.register(_unary("math_abs", "Abs", "Absolute value of a number.",
                              ["abs", "absolute", "math", "positive"]))
class MathAbs(UnaryBuiltin):
    function = "abs"


@NodeRegistry.register(_binary("math_min", "Min", "Smaller of two numbers.",
                               ["min", "minimum", "math", "smaller"]))
class MathMin(BinaryBuiltin):
    function = "min"


@NodeRegistry.register(_binary("math_max", "Max", "Larger of two numbers.",
                               ["max", "maximum", "math", "larger"]))
class MathMax(BinaryBuiltin):
    function = "max"
