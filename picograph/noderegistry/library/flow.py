"""Branching and looping constructs."""
from typing import Any, Dict, List

from ...core.BlueprintNode import input_pin
from ...core.PinSync import branch_label
from ...core.Types import PinKind
from ..NodeRegistry import NodeBehavior, NodeDefinition, NodeRegistry, PropertySchema
from .common import exec_in, exec_out

DEFAULT_SEQUENCE_BRANCHES = ("a", "b", "c")


@NodeRegistry.register(NodeDefinition(
    id="if",
    title="If",
    category="Flow",
    description="Branch execution on a boolean condition.",
    inputs=[exec_in(), input_pin("condition", "Condition", PinKind.BOOLEAN)],
    outputs=[exec_out("then", "Then"), exec_out("else", "Else")],
    search_tags=["if", "branch", "condition", "else"],
))
class IfBehavior(NodeBehavior):

    def emit_exec(self, ctx):
        level = ctx.indent_level
        condition = ctx.resolve_value_input("condition", "false")
        lines = [ctx.line(f"if {condition} then")]

        then_lines = ctx.emit_branch("then", indent_level=level + 1)
        lines.extend(then_lines or [ctx.line("-- then branch", level + 1)])

        # No else block at all unless something is wired to it.
        if ctx.find_exec_targets("else"):
            lines.append(ctx.line("else"))
            else_lines = ctx.emit_branch("else", indent_level=level + 1)
            lines.extend(else_lines or [ctx.line("-- else branch", level + 1)])

        lines.append(ctx.line("end"))
        return lines


@NodeRegistry.register(NodeDefinition(
    id="for_loop",
    title="For Loop",
    category="Flow",
    description="Repeat the loop body for a numeric range.",
    inputs=[
        exec_in(),
        input_pin("start", "Start", PinKind.NUMBER, 0),
        input_pin("end", "End", PinKind.NUMBER, 10),
        input_pin("step", "Step", PinKind.NUMBER, 1),
    ],
    outputs=[exec_out("loop", "Loop"), exec_out("completed", "Completed")],
    properties=[PropertySchema("index", "Index Variable", "string", "i")],
    search_tags=["for", "loop", "repeat", "range"],
))
class ForLoopBehavior(NodeBehavior):

    def emit_exec(self, ctx):
        level = ctx.indent_level
        raw_index = ctx.properties.get("index")
        index = ctx.sanitize_identifier("i" if raw_index is None else raw_index)
        start = ctx.resolve_value_input("start", "0")
        end = ctx.resolve_value_input("end", "0")
        step = ctx.resolve_value_input("step", "1")

        lines = [ctx.line(f"for {index} = {start}, {end}, {step} do")]
        body = ctx.emit_branch("loop", indent_level=level + 1)
        lines.extend(body or [ctx.line("-- loop body", level + 1)])
        lines.append(ctx.line("end"))
        # "completed" falls through after the loop at the same depth.
        lines.extend(ctx.emit_branch("completed"))
        return lines

def _init_sequence(properties: Dict[str, Any]) -> None:
    branches = properties.get("branches")
    cleaned: List[Dict[str, str]] = []
    if isinstance(branches, list):
        for entry in branches:
            branch_id = entry.get("id") if isinstance(entry, dict) else None
            if isinstance(branch_id, str) and branch_id.strip():
                cleaned.append({"id": branch_id.strip()})
    if not cleaned:
        cleaned = [{"id": branch_id} for branch_id in DEFAULT_SEQUENCE_BRANCHES]
    properties["branches"] = cleaned
    counter = properties.get("branchCounter")
    if not isinstance(counter, int) or isinstance(counter, bool):
        properties["branchCounter"] = len(cleaned)


@NodeRegistry.register(NodeDefinition(
    id="sequence",
    title="Sequence",
    category="Flow",
    description="Run several exec chains one after another.",
    inputs=[exec_in()],
    outputs=[
        exec_out(branch_id, branch_label(index))
        for index, branch_id in enumerate(DEFAULT_SEQUENCE_BRANCHES)
    ],
    properties=[],
    search_tags=["sequence", "order", "then", "multiple"],
    initialize_properties=_init_sequence,
))
class SequenceBehavior(NodeBehavior):

    def emit_exec(self, ctx):
        lines = []
        for pin in ctx.node.outputs:
            label = (pin.name or pin.id).lower()
            lines.append(ctx.line(f"-- sequence {label}"))
            for target in ctx.find_exec_targets(pin.id):
                # Each target gets its own copy of the guard path.
                lines.extend(ctx.emit_exec_chain(target.node_id, ctx.indent_level, ctx.path))
        return lines
