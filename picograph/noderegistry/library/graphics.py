"""PICO-8 drawing calls and the print statement."""
from ...core.BlueprintNode import input_pin
from ...core.Types import PinKind
from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry
from .common import OMIT, call, exec_in, exec_out


@NodeRegistry.register(NodeDefinition(
    id="print",
    title="Print",
    category="PICO-8",
    description="Print text to the screen at a position.",
    inputs=[
        exec_in(),
        input_pin("msg", "Message", PinKind.STRING, "hello"),
        input_pin("x", "X", PinKind.NUMBER, 0),
        input_pin("y", "Y", PinKind.NUMBER, 0),
        input_pin("color", "Color", PinKind.NUMBER, 7),
    ],
    outputs=[exec_out()],
    search_tags=["print", "text", "debug", "output"],
))
class PrintBehavior(NodeBehavior):

    def emit_exec(self, ctx):
        msg = ctx.resolve_value_input("msg", '""')
        x = ctx.resolve_value_input("x", "0")
        y = ctx.resolve_value_input("y", "0")
        color = ctx.resolve_value_input("color", "7")
        return [ctx.line(f"print({msg}, {x}, {y}, {color})"), *ctx.emit_next_exec("exec_out")]


class DrawCall(NodeBehavior):
    """Emit ``function(args)`` from input pins, stopping at the first unwired optional one."""

    function = "cls"
    # (pin id, fallback); a fallback of OMIT marks an optional trailing argument
    arguments = ()

    def emit_exec(self, ctx):
        args = [ctx.resolve_value_input(pin_id, fallback) for pin_id, fallback in self.arguments]
        return [ctx.line(call(self.function, args)), *ctx.emit_next_exec("exec_out")]


@NodeRegistry.register(NodeDefinition(
    id="graphics_cls",
    title="Clear Screen",
    category="Graphics",
    description="Clear the screen, optionally to a color.",
    inputs=[exec_in(), input_pin("color", "Color", PinKind.NUMBER)],
    outputs=[exec_out()],
    search_tags=["cls", "clear", "screen", "graphics"],
))
class ClearScreen(DrawCall):
    function = "cls"
    arguments = (("color", OMIT),)


@NodeRegistry.register(NodeDefinition(
    id="graphics_circfill",
    title="Fill Circle",
    category="Graphics",
    description="Draw a filled circle.",
    inputs=[
        exec_in(),
        input_pin("x", "X", PinKind.NUMBER, 0),
        input_pin("y", "Y", PinKind.NUMBER, 0),
        input_pin("radius", "Radius", PinKind.NUMBER, 4),
        input_pin("color", "Color", PinKind.NUMBER),
    ],
    outputs=[exec_out()],
    search_tags=["circfill", "circle", "draw", "graphics"],
))
class FillCircle(DrawCall):
    function = "circfill"
    arguments = (("x", "0"), ("y", "0"), ("radius", "4"), ("color", OMIT))


@NodeRegistry.register(NodeDefinition(
    id="graphics_rectfill",
    title="Fill Rectangle",
    category="Graphics",
    description="Draw a filled rectangle between two corners.",
    inputs=[
        exec_in(),
        input_pin("x0", "X0", PinKind.NUMBER, 0),
        input_pin("y0", "Y0", PinKind.NUMBER, 0),
        input_pin("x1", "X1", PinKind.NUMBER, 8),
        input_pin("y1", "Y1", PinKind.NUMBER, 8),
        input_pin("color", "Color", PinKind.NUMBER),
    ],
    outputs=[exec_out()],
    search_tags=["rectfill", "rectangle", "box", "graphics"],
))
class FillRectangle(DrawCall):
    function = "rectfill"
    arguments = (("x0", "0"), ("y0", "0"), ("x1", "8"), ("y1", "8"), ("color", OMIT))


@NodeRegistry.register(NodeDefinition(
    id="graphics_line",
    title="Line",
    category="Graphics",
    description="Draw a line. Without an end point PICO-8 continues from the last cursor.",
    inputs=[
        exec_in(),
        input_pin("x0", "X0", PinKind.NUMBER, 0),
        input_pin("y0", "Y0", PinKind.NUMBER, 0),
        input_pin("x1", "X1", PinKind.NUMBER),
        input_pin("y1", "Y1", PinKind.NUMBER),
        input_pin("color", "Color", PinKind.NUMBER),
    ],
    outputs=[exec_out()],
    search_tags=["line", "draw", "segment", "graphics"],
))
class DrawLine(DrawCall):
    function = "line"

    def emit_exec(self, ctx):
        args = [ctx.resolve_value_input("x0", "0"), ctx.resolve_value_input("y0", "0")]
        x1 = ctx.resolve_value_input("x1", OMIT)
        y1 = ctx.resolve_value_input("y1", OMIT)
        # The end point only counts when both coordinates are present.
        if x1 != OMIT and y1 != OMIT:
            args.extend([x1, y1, ctx.resolve_value_input("color", OMIT)])
        return [ctx.line(call(self.function, args)), *ctx.emit_next_exec("exec_out")]
