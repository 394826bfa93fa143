from picograph.compiler import LuaGenerator, compile_graph
from picograph.compiler.generator import NO_ENTRY_PROGRAM
from picograph.core import PinSync
from picograph.core.BlueprintNode import BlueprintNode, input_pin, output_pin
from picograph.core.NodeGraph import NodeGraph
from picograph.core.Types import PinKind
from picograph.noderegistry.NodeRegistry import NodeRegistry
from picograph.noderegistry.library import create_default_registry

BANNER = "-- Generated with picoGraph"


class GraphBuilder:
    """Small helper so each test reads as a wiring diagram."""

    def __init__(self):
        self.registry = create_default_registry()
        self.graph = NodeGraph()

    def node(self, type_id, **pins):
        node = self.graph.create_node(self.registry, type_id)
        for pin_id, value in pins.items():
            node.properties[f"pin:{pin_id}"] = value
        return node

    def wire(self, source, source_pin, target, target_pin):
        assert self.graph.connect((source.id, source_pin), (target.id, target_pin))

    def then(self, source, target, source_pin="exec_out"):
        self.wire(source, source_pin, target, "exec_in")

    def compile(self, **kwargs):
        return compile_graph(self.graph, self.registry, **kwargs)


class TestProgramShape:
    def setup_method(self):
        self.b = GraphBuilder()

    def test_no_entry_nodes(self):
        self.b.node("print")
        assert self.b.compile() == NO_ENTRY_PROGRAM
        assert NO_ENTRY_PROGRAM == "-- Generated with picoGraph\n-- No entry node present."

    def test_single_print_in_init(self):
        start = self.b.node("event_start")
        printer = self.b.node("print", msg="hi", x=0, y=0, color=7)
        self.b.then(start, printer)

        assert self.b.compile() == "\n".join([
            BANNER,
            "",
            "function _init()",
            '  print("hi", 0, 0, 7)',
            "end",
        ])

    def test_lifecycle_order(self):
        self.b.node("event_draw")
        self.b.node("event_update")
        self.b.node("event_start")
        lua = self.b.compile()
        assert lua.index("function _init()") < lua.index("function _update()") < lua.index("function _draw()")

    def test_first_lifecycle_node_wins(self):
        first = self.b.node("event_start")
        second = self.b.node("event_start")
        one = self.b.node("print", msg="first")
        two = self.b.node("print", msg="second")
        self.b.then(first, one)
        self.b.then(second, two)

        lua = self.b.compile()
        assert lua.count("function _init()") == 1
        assert '"first"' in lua
        assert '"second"' not in lua

    def test_use_60_fps(self):
        self.b.node("event_update")
        lua = self.b.compile(settings={"use60Fps": True})
        assert "function _update60()" in lua
        assert "function _update()" not in lua

    def test_globals_are_declared_after_banner(self):
        start = self.b.node("event_start")
        setter = self.b.node("set_var", value=10)
        setter.properties["variableId"] = "v2"
        self.b.then(start, setter)
        variables = [
            {"id": "v1", "name": "Player Score", "type": "number", "defaultValue": 5},
            {"id": "v2", "name": "player score", "type": "string", "defaultValue": "x"},
        ]

        lua = self.b.compile(variables=variables)

        assert lua.startswith("\n".join([
            BANNER,
            "",
            "player_score = 5",
            'player_score_2 = "x"',
            "",
            "function _init()",
        ]))
        assert '  player_score_2 = "10"' in lua

    def test_regeneration_is_idempotent(self):
        start = self.b.node("event_start")
        adder = self.b.node("add_number", a=1, b=2)
        setter = self.b.node("set_var")
        self.b.then(start, setter)
        self.b.wire(adder, "res", setter, "value")
        generator = LuaGenerator(self.b.registry)

        first = generator.generate(self.b.graph)
        second = generator.generate(self.b.graph)

        assert first == second
        assert "  score = (1) + (2)" in first


class TestControlFlow:
    def setup_method(self):
        self.b = GraphBuilder()
        self.start = self.b.node("event_start")

    def test_if_without_condition_or_else(self):
        branch = self.b.node("if")
        printer = self.b.node("print")
        self.b.then(self.start, branch)
        self.b.then(branch, printer, "then")

        lua = self.b.compile()

        assert "\n".join([
            "  if false then",
            '    print("hello", 0, 0, 7)',
            "  end",
        ]) in lua
        assert "else" not in lua

    def test_if_with_empty_then_and_wired_else(self):
        branch = self.b.node("if")
        compare = self.b.node("compare", a=1, b=2)
        compare.properties["operator"] = "!="
        printer = self.b.node("print")
        self.b.then(self.start, branch)
        self.b.wire(compare, "res", branch, "condition")
        self.b.then(branch, printer, "else")

        lua = self.b.compile()

        assert "\n".join([
            '  if ("1") ~= ("2") then',
            "    -- then branch",
            "  else",
            '    print("hello", 0, 0, 7)',
            "  end",
        ]) in lua

    def test_for_loop_without_body(self):
        loop = self.b.node("for_loop", start=0, end=5, step=1)
        self.b.then(self.start, loop)

        lua = self.b.compile()

        assert lua.endswith("\n".join([
            "  for i = 0, 5, 1 do",
            "    -- loop body",
            "  end",
            "end",
        ]))

    def test_for_loop_body_and_completed(self):
        loop = self.b.node("for_loop")
        loop.properties["index"] = "Row Index"
        body = self.b.node("print", msg="row")
        done = self.b.node("print", msg="done")
        self.b.then(self.start, loop)
        self.b.then(loop, body, "loop")
        self.b.then(loop, done, "completed")

        lua = self.b.compile()

        assert "\n".join([
            "  for row_index = 0, 10, 1 do",
            '    print("row", 0, 0, 7)',
            "  end",
            '  print("done", 0, 0, 7)',
        ]) in lua

    def test_sequence_with_second_branch_only(self):
        sequence = self.b.node("sequence")
        PinSync.remove_sequence_branch(self.b.graph, sequence.id, "c")
        printer = self.b.node("print")
        self.b.then(self.start, sequence)
        self.b.then(sequence, printer, "b")

        lua = self.b.compile()

        assert "\n".join([
            "function _init()",
            "  -- sequence a",
            "  -- sequence b",
            '  print("hello", 0, 0, 7)',
            "end",
        ]) in lua

    def test_exec_cycle_is_cut(self):
        first = self.b.node("print", msg="one")
        second = self.b.node("print", msg="two")
        self.b.then(self.start, first)
        self.b.then(first, second)
        self.b.then(second, first)

        lua = self.b.compile()

        assert "\n".join([
            '  print("one", 0, 0, 7)',
            '  print("two", 0, 0, 7)',
            f"  -- cyclic exec connection involving {first.id}",
        ]) in lua

    def test_data_cycle_resolves_to_nil(self):
        left = self.b.node("add_number")
        right = self.b.node("add_number")
        setter = self.b.node("set_var")
        self.b.wire(right, "res", left, "a")
        self.b.wire(left, "res", right, "a")
        self.b.then(self.start, setter)
        self.b.wire(left, "res", setter, "value")

        lua = self.b.compile()

        assert "  score = ((nil) + (0)) + (0)" in lua

    def test_unsupported_node(self):
        mystery = BlueprintNode(
            "mystery_01", "mystery", "Mystery Box",
            inputs=[input_pin("exec_in", "Exec", PinKind.EXEC)],
            outputs=[output_pin("exec_out", "Exec", PinKind.EXEC)],
        )
        self.b.graph.add_node(mystery)
        self.b.then(self.start, mystery)

        assert "  -- unsupported flow node: Mystery Box" in self.b.compile()


class TestCustomEvents:
    def setup_method(self):
        self.b = GraphBuilder()

    def test_same_display_name_gets_suffix(self):
        first = self.b.node("custom_event")
        second = self.b.node("custom_event")
        first.properties["name"] = "Jump"
        second.properties["name"] = "Jump"

        lua = self.b.compile()

        assert "function custom_jump()\nend" in lua
        assert "function custom_jump_1()\nend" in lua
        assert lua.index("custom_jump()") < lua.index("custom_jump_1()")

    def test_events_sorted_by_display_name(self):
        for name in ("beta", "Alpha", "alpha"):
            self.b.node("custom_event").properties["name"] = name

        lua = self.b.compile()

        assert lua.index("function custom_alpha()") < lua.index("function custom_alpha_1()")
        assert lua.index("function custom_alpha_1()") < lua.index("function custom_beta()")

    def test_prefix_is_not_doubled(self):
        self.b.node("custom_event").properties["name"] = "custom_fire"
        assert "function custom_fire()" in self.b.compile()

    def test_call_with_parameters(self):
        event = self.b.node("custom_event")
        event.properties["name"] = "Hit"
        PinSync.add_custom_event_parameter(self.b.graph, event.id, "amount", "number")
        PinSync.add_custom_event_parameter(self.b.graph, event.id, "who", "string", optional=True)
        setter = self.b.node("set_var")
        self.b.then(event, setter)
        self.b.wire(event, "param_param_01", setter, "value")

        start = self.b.node("event_start")
        call = self.b.node("call_custom_event")
        PinSync.set_call_target(self.b.graph, call.id, event.id)
        self.b.then(start, call)

        lua = self.b.compile()

        assert "function _init()\n  custom_hit(0)\nend" in lua
        assert "function custom_hit(amount, who)\n  score = amount\nend" in lua

    def test_call_argument_from_connection(self):
        event = self.b.node("custom_event")
        event.properties["name"] = "Hit"
        PinSync.add_custom_event_parameter(self.b.graph, event.id, "who", "string", optional=True)
        PinSync.add_custom_event_parameter(self.b.graph, event.id, "amount", "number")
        start = self.b.node("event_start")
        call = self.b.node("call_custom_event")
        PinSync.set_call_target(self.b.graph, call.id, event.id)
        number = self.b.node("number_literal")
        number.properties["value"] = 3
        self.b.then(start, call)
        self.b.wire(number, "value", call, "arg_param_02")

        assert "  custom_hit(nil, 3)" in self.b.compile()

    def test_missing_call_target(self):
        start = self.b.node("event_start")
        call = self.b.node("call_custom_event")
        call.properties["eventId"] = "gone"
        printer = self.b.node("print")
        self.b.then(start, call)
        self.b.then(call, printer)

        lua = self.b.compile()

        assert "\n".join([
            "  -- missing custom event target",
            '  print("hello", 0, 0, 7)',
        ]) in lua


class TestLibraryOutput:
    def setup_method(self):
        self.b = GraphBuilder()
        self.start = self.b.node("event_start")

    def chain(self, *nodes):
        previous = self.start
        for node in nodes:
            self.b.then(previous, node)
            previous = node
        return self.b.compile()

    def test_graphics_calls_drop_missing_optional_arguments(self):
        clear = self.b.node("graphics_cls")
        circle = self.b.node("graphics_circfill")
        rect = self.b.node("graphics_rectfill", color=8)
        line = self.b.node("graphics_line")

        lua = self.chain(clear, circle, rect, line)

        assert "\n".join([
            "  cls()",
            "  circfill(0, 0, 4)",
            "  rectfill(0, 0, 8, 8, 8)",
            "  line(0, 0)",
        ]) in lua

    def test_line_needs_both_end_coordinates(self):
        half = self.b.node("graphics_line", x1=10)
        full = self.b.node("graphics_line", x1=10, y1=20, color=3)

        lua = self.chain(half, full)

        assert "  line(0, 0)\n  line(0, 0, 10, 20, 3)" in lua

    def test_locals(self):
        local = self.b.node("set_local_var")
        local.properties["name"] = "Speed"
        local.properties["valueNumber"] = 1.5
        reader = self.b.node("get_local_var")
        reader.properties["name"] = "Speed"
        setter = self.b.node("set_var")
        self.b.wire(reader, "value", setter, "value")

        lua = self.chain(local, setter)

        assert "  local speed = 1.5\n  score = speed" in lua

    def test_math_and_input(self):
        branch = self.b.node("if")
        button = self.b.node("input_btnp", player=1)
        setter = self.b.node("set_var")
        floor = self.b.node("math_flr")
        rnd = self.b.node("math_rnd", value=16)
        self.b.wire(button, "value", branch, "condition")
        self.b.wire(rnd, "result", floor, "value")
        self.b.wire(floor, "result", setter, "value")
        self.b.then(branch, setter, "then")

        lua = self.chain(branch)

        assert "  if btnp(nil, 1) then\n    score = flr(rnd(16))\n  end" in lua

    def test_min_max_multiply(self):
        setter = self.b.node("set_var")
        low = self.b.node("math_min", a=1, b=2)
        high = self.b.node("math_max")
        product = self.b.node("multiply_number")
        self.b.wire(low, "value", high, "a")
        self.b.wire(high, "value", product, "a")
        self.b.wire(product, "res", setter, "value")

        assert "  score = (max(min(1, 2), 0)) * (1)" in self.chain(setter)


class TestBaselineFallback:
    def test_unregistered_core_types_still_compile(self):
        b = GraphBuilder()
        start = b.node("event_start")
        printer = b.node("print", msg="fallback")
        b.then(start, printer)

        minimal = NodeRegistry()
        minimal.register_modules([m for m in NodeRegistry.builtin_modules() if m.definition.id == "event_start"])

        lua = compile_graph(b.graph, minimal)
        assert '  print("fallback", 0, 0, 7)' in lua

    def test_unregistered_library_type_is_unsupported(self):
        b = GraphBuilder()
        start = b.node("event_start")
        clear = b.node("graphics_cls")
        b.then(start, clear)

        minimal = NodeRegistry()
        minimal.register_modules([m for m in NodeRegistry.builtin_modules() if m.definition.id == "event_start"])

        assert "  -- unsupported flow node: Clear Screen" in compile_graph(b.graph, minimal)


class TestExecPaths:
    def setup_method(self):
        self.b = GraphBuilder()
        self.start = self.b.node("event_start")

    def test_then_and_else_share_a_target(self):
        branch = self.b.node("if")
        printer = self.b.node("print")
        self.b.then(self.start, branch)
        self.b.then(branch, printer, "then")
        self.b.graph.replace_state(self._with_exec(branch.id, "else", printer.id))

        lua = self.b.compile()

        assert "\n".join([
            "  if false then",
            '    print("hello", 0, 0, 7)',
            "  else",
            '    print("hello", 0, 0, 7)',
            "  end",
        ]) in lua
        assert "cyclic" not in lua

    def test_loop_body_reentering_the_loop_is_cut(self):
        loop = self.b.node("for_loop")
        printer = self.b.node("print")
        self.b.then(self.start, loop)
        self.b.then(loop, printer, "loop")
        self.b.graph.replace_state(self._with_exec(printer.id, "exec_out", loop.id))

        lua = self.b.compile()

        assert "\n".join([
            "  for i = 0, 10, 1 do",
            '    print("hello", 0, 0, 7)',
            f"    -- cyclic exec connection involving {loop.id}",
            "  end",
        ]) in lua

    def test_each_sequence_target_walks_its_own_path(self):
        sequence = self.b.node("sequence")
        one = self.b.node("print", msg="one")
        two = self.b.node("print", msg="two")
        shared = self.b.node("print", msg="shared")
        self.b.then(self.start, sequence)
        self.b.then(sequence, one, "a")
        self.b.then(one, shared)
        payload = self._with_exec(sequence.id, "a", two.id)
        payload["connections"].append(self._exec(two.id, "exec_out", shared.id))

        lua = compile_graph(NodeGraph.from_dict(payload), self.b.registry)

        assert "\n".join([
            "  -- sequence a",
            '  print("one", 0, 0, 7)',
            '  print("shared", 0, 0, 7)',
            '  print("two", 0, 0, 7)',
            '  print("shared", 0, 0, 7)',
            "  -- sequence b",
            "  -- sequence c",
        ]) in lua
        assert "cyclic" not in lua

    def test_output_is_deterministic(self):
        def build():
            b = GraphBuilder()
            start = b.node("event_start")
            loop = b.node("for_loop", end=3)
            number = b.node("number_literal")
            adder = b.node("add_number", a=2)
            setter = b.node("set_var")
            b.then(start, loop)
            b.then(loop, setter, "loop")
            b.wire(number, "value", adder, "b")
            b.wire(adder, "res", setter, "value")
            return b

        first = build()
        second = build()
        restored = NodeGraph.from_dict(first.graph.to_dict())

        assert first.compile() == second.compile()
        assert compile_graph(restored, first.registry) == first.compile()

    def _exec(self, source_id, source_pin, target_id):
        return {
            "from": {"nodeId": source_id, "pinId": source_pin},
            "to": {"nodeId": target_id, "pinId": "exec_in"},
            "kind": "exec",
        }

    def _with_exec(self, source_id, source_pin, target_id):
        # connect() keeps one link per exec pin, so extra links go in through a reload.
        payload = self.b.graph.to_dict()
        payload["connections"].append(self._exec(source_id, source_pin, target_id))
        return payload
