"""Controller input queries."""
from ...core.BlueprintNode import input_pin, output_pin
from ...core.Types import PinKind
from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry
from .common import OMIT

NIL = "nil"


class ButtonQuery(NodeBehavior):
    """``btn(b, p)``: both arguments optional, a player without a button passes nil."""

    function = "btn"

    def evaluate_value(self, ctx):
        button = ctx.resolve_value_input("button", OMIT)
        player = ctx.resolve_value_input("player", OMIT)
        if player != OMIT:
            return f"{self.function}({NIL if button == OMIT else button}, {player})"
        if button != OMIT:
            return f"{self.function}({button})"
        return f"{self.function}()"


def _button(type_id: str, title: str, description: str, tags) -> NodeDefinition:
    return NodeDefinition(
        id=type_id,
        title=title,
        category="Input",
        description=description,
        inputs=[
            input_pin("button", "Button", PinKind.NUMBER, description="0-5: left, right, up, down, O, X"),
            input_pin("player", "Player", PinKind.NUMBER),
        ],
        outputs=[output_pin("value", "Pressed", PinKind.BOOLEAN)],
        search_tags=tags,
    )


@NodeRegistry.register(_button(
    "input_btn", "Button State", "True while the button is held down.",
    ["btn", "button", "input", "held"],
))
class ButtonState(ButtonQuery):
    function = "btn"


@NodeRegistry.register(_button(
    "input_btnp", "Button Press", "True on the frame the button is pressed, with key repeat.",
    ["btnp", "button", "input", "pressed"],
))
class ButtonPress(ButtonQuery):
    function = "btnp"
