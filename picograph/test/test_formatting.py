from picograph.compiler import formatting
from picograph.compiler.writer import CodeWriter
from picograph.core.Types import PinKind


class TestNumbers:
    def test_integral_floats_drop_fraction(self):
        assert formatting.format_number(5.0) == "5"
        assert formatting.format_number(-3) == "-3"
        assert formatting.format_number(2.5) == "2.5"

    def test_exponent_only_at_extreme_magnitudes(self):
        assert formatting.format_number(0.00001) == "0.00001"
        assert formatting.format_number(0.0000015) == "0.0000015"
        assert formatting.format_number(1e-7) == "1e-7"
        assert formatting.format_number(-1.5e-7) == "-1.5e-7"
        assert formatting.format_number(1e21) == "1e+21"
        assert formatting.format_number(10 ** 22) == "1e+22"

    def test_strings_and_junk(self):
        assert formatting.format_number("  12 ") == "12"
        assert formatting.format_number("") == "0"
        assert formatting.format_number("abc") is None
        assert formatting.format_number(float("inf")) is None
        assert formatting.format_literal(PinKind.NUMBER, "abc") == "0"


class TestIdentifiers:
    def test_sanitize_identifier(self):
        assert formatting.sanitize_identifier("Player Score!") == "player_score_"
        assert formatting.sanitize_identifier("a  -  b") == "a_b"
        assert formatting.sanitize_identifier("9lives") == "v_9lives"
        assert formatting.sanitize_identifier("") == "var"
        assert formatting.sanitize_identifier("   ", "param1") == "param1"

    def test_sanitize_operator(self):
        assert formatting.sanitize_operator("!=") == "~="
        assert formatting.sanitize_operator(">=") == ">="
        assert formatting.sanitize_operator("===") == "=="
        assert formatting.sanitize_operator(None) == "=="


class TestLiterals:
    def test_strings_are_quoted_and_escaped(self):
        assert formatting.format_literal(PinKind.STRING, 'say "hi"') == '"say \\"hi\\""'
        assert formatting.format_literal("any", 3) == '"3"'
        assert formatting.format_literal(PinKind.STRING, None) == '""'

    def test_booleans(self):
        assert formatting.format_literal(PinKind.BOOLEAN, True) == "true"
        assert formatting.format_literal(PinKind.BOOLEAN, "false") == "false"
        assert formatting.format_literal(PinKind.BOOLEAN, "yes") == "true"
        assert formatting.format_literal(PinKind.BOOLEAN, 0) == "false"

    def test_tables(self):
        assert formatting.format_literal(PinKind.TABLE, " {1, 2} ") == "{1, 2}"
        assert formatting.format_literal(PinKind.TABLE, 5) == "{}"

    def test_defaults_per_kind(self):
        assert formatting.default_literal_for_kind(PinKind.NUMBER) == "0"
        assert formatting.default_literal_for_kind(PinKind.BOOLEAN) == "false"
        assert formatting.default_literal_for_kind(PinKind.STRING) == '""'
        assert formatting.default_literal_for_kind(PinKind.TABLE) == "{}"
        assert formatting.default_literal_for_kind(PinKind.ANY) == "nil"


class TestVariableDefaults:
    def test_scalars(self):
        assert formatting.format_variable_default("number", "7.0") == "7"
        assert formatting.format_variable_default("boolean", 1) == "true"
        assert formatting.format_variable_default("string", "hi") == '"hi"'
        assert formatting.format_variable_default("any", None) == "nil"
        assert formatting.format_variable_default("any", 4) == "4"
        assert formatting.format_variable_default("bogus", "x") == '"x"'

    def test_short_table_stays_on_one_line(self):
        entries = [{"key": "hp", "value": "3"}, {"value": "7"}, {"key": "my key", "value": ""}]
        assert formatting.format_variable_default("table", entries) == "{ hp = 3, 7, [my key] = nil }"

    def test_long_table_spans_lines(self):
        entries = [{"key": f"field_{i}", "value": "1234567890"} for i in range(4)]
        rendered = formatting.format_variable_default("table", entries)
        assert rendered.startswith("{\n  field_0 = 1234567890,\n")
        assert rendered.endswith("\n}")

    def test_single_brace_literal_passes_through(self):
        assert formatting.format_variable_default("table", [{"value": "{1, 2, 3}"}]) == "{1, 2, 3}"
        assert formatting.format_variable_default("table", []) == "{}"
        assert formatting.format_variable_default("table", "  ") == "{}"


class TestCodeWriter:
    def test_function_layout(self):
        writer = CodeWriter()
        writer.writeln("-- banner")
        writer.function("_init", "", ["  cls()"])
        assert writer.result() == "-- banner\n\nfunction _init()\n  cls()\nend"

    def test_extend_keeps_indentation(self):
        writer = CodeWriter()
        writer.writeln("a").blank().extend(["  b", "    c"])
        assert writer.result() == "a\n\n  b\n    c"
