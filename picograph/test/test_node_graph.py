import pytest

from picograph.core.BlueprintNode import BlueprintNode, input_pin, output_pin
from picograph.core.GraphPrimitives import PinRef
from picograph.core.NodeGraph import NodeGraph
from picograph.core.Types import PinKind
from picograph.noderegistry.NodeRegistry import UnknownNodeTypeError
from picograph.noderegistry.library import create_default_registry


class TestNodeCreation:
    def setup_method(self):
        self.registry = create_default_registry()
        self.graph = NodeGraph()
        self.events = []
        self.graph.subscribe(self.events.append)

    def test_ids_use_per_type_counters(self):
        start = self.graph.create_node(self.registry, "event_start")
        first = self.graph.create_node(self.registry, "print")
        second = self.graph.create_node(self.registry, "print")
        assert start.id == "event_start_01"
        assert first.id == "print_01"
        assert second.id == "print_02"

    def test_add_node_emits_node_added(self):
        node = self.graph.create_node(self.registry, "print", {"x": 10, "y": 20})
        assert self.events[-1]["type"] == "node_added"
        assert self.events[-1]["node"]["id"] == node.id
        assert node.position == {"x": 10, "y": 20}

    def test_duplicate_node_id_is_ignored(self, caplog):
        node = self.graph.create_node(self.registry, "print")
        seen = len(self.events)
        self.graph.add_node(BlueprintNode(node.id, "number_literal", "Number"))
        assert self.graph.get_node(node.id) is node
        assert len(self.graph) == 1
        assert len(self.events) == seen
        assert "duplicate id 'print_01'" in caplog.text

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownNodeTypeError):
            self.graph.create_node(self.registry, "no_such_node")
        assert len(self.graph) == 0

    def test_property_and_position_notifications(self):
        node = self.graph.create_node(self.registry, "number_literal")
        self.graph.set_node_property(node.id, "value", 5)
        self.graph.set_node_position(node.id, {"x": 3, "y": 4})
        assert node.properties["value"] == 5
        assert [e["type"] for e in self.events[-2:]] == ["node_property_changed", "node_position_changed"]

    def test_mutating_unknown_node_is_a_no_op(self):
        self.graph.set_node_property("ghost", "value", 1)
        self.graph.set_node_position("ghost", {"x": 1, "y": 1})
        self.graph.remove_node("ghost")
        assert self.events == []


class TestConnections:
    def setup_method(self):
        self.registry = create_default_registry()
        self.graph = NodeGraph()
        self.events = []
        self.graph.subscribe(self.events.append)
        self.start = self.graph.create_node(self.registry, "event_start")
        self.print_a = self.graph.create_node(self.registry, "print")
        self.print_b = self.graph.create_node(self.registry, "print")
        self.add = self.graph.create_node(self.registry, "add_number")

    def test_exec_output_keeps_single_target(self):
        assert self.graph.connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))
        assert self.graph.connect((self.start.id, "exec_out"), (self.print_b.id, "exec_in"))
        connections = self.graph.get_connections()
        assert len(connections) == 1
        assert connections[0].target == PinRef(self.print_b.id, "exec_in")
        assert connections[0].kind is PinKind.EXEC

    def test_exec_input_accepts_many_sources(self):
        update = self.graph.create_node(self.registry, "event_update")
        assert self.graph.connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))
        assert self.graph.connect((update.id, "exec_out"), (self.print_a.id, "exec_in"))
        assert len(self.graph.get_connections_for_node(self.print_a.id, "exec_in")) == 2

    def test_data_input_keeps_single_source(self):
        one = self.graph.create_node(self.registry, "number_literal")
        two = self.graph.create_node(self.registry, "number_literal")
        assert self.graph.connect((one.id, "value"), (self.add.id, "a"))
        assert self.graph.connect((two.id, "value"), (self.add.id, "a"))
        incoming = self.graph.get_connections_for_node(self.add.id, "a")
        assert len(incoming) == 1
        assert incoming[0].source.node_id == two.id

    def test_data_output_fans_out(self):
        other = self.graph.create_node(self.registry, "add_number")
        number = self.graph.create_node(self.registry, "number_literal")
        assert self.graph.connect((number.id, "value"), (self.add.id, "a"))
        assert self.graph.connect((number.id, "value"), (other.id, "b"))
        assert len(self.graph.get_connections_for_node(number.id)) == 2

    def test_any_target_adopts_source_kind(self):
        setter = self.graph.create_node(self.registry, "set_var")
        number = self.graph.create_node(self.registry, "number_literal")
        assert self.graph.connect({"nodeId": number.id, "pinId": "value"},
                                  {"nodeId": setter.id, "pinId": "value"})
        assert self.graph.get_connections()[0].kind is PinKind.NUMBER

    def test_rejections(self):
        text = self.graph.create_node(self.registry, "string_literal")
        other = self.graph.create_node(self.registry, "add_number")
        # incompatible kinds
        assert not self.graph.connect((text.id, "value"), (self.add.id, "a"))
        # same node
        assert not self.graph.connect((self.add.id, "res"), (self.add.id, "a"))
        # wrong direction
        assert not self.graph.connect((self.add.id, "a"), (other.id, "b"))
        # unknown node and pin
        assert not self.graph.connect(("ghost", "value"), (self.add.id, "a"))
        assert not self.graph.connect((other.id, "missing"), (self.add.id, "a"))
        assert self.graph.get_connections() == []

    def test_duplicate_connection_rejected(self):
        assert self.graph.connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))
        assert not self.graph.can_connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))

    def test_remove_node_prunes_connections(self):
        self.graph.connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))
        self.graph.connect((self.print_a.id, "exec_out"), (self.print_b.id, "exec_in"))
        self.events.clear()
        self.graph.remove_node(self.print_a.id)
        assert self.graph.get_connections() == []
        assert [e["type"] for e in self.events] == ["node_removed", "connections_pruned"]
        assert len(self.events[1]["connections"]) == 2

    def test_remove_connections_for_pin_is_silent_when_nothing_matches(self):
        self.events.clear()
        self.graph.remove_connections_for_pin(PinRef(self.add.id, "a"))
        assert self.events == []

    def test_remove_connection(self):
        self.graph.connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))
        connection = self.graph.get_connections()[0]
        self.graph.remove_connection(connection.id)
        assert self.graph.get_connections() == []
        assert self.events[-1]["type"] == "connection_removed"

    def test_get_connections_returns_a_copy(self):
        self.graph.connect((self.start.id, "exec_out"), (self.print_a.id, "exec_in"))
        snapshot = self.graph.get_connections()
        snapshot.clear()
        assert len(self.graph.get_connections()) == 1


class TestSerialization:
    def setup_method(self):
        self.registry = create_default_registry()
        self.graph = NodeGraph()
        start = self.graph.create_node(self.registry, "event_start")
        printer = self.graph.create_node(self.registry, "print", {"x": 200, "y": 40})
        printer.properties["pin:msg"] = "hi"
        self.graph.connect((start.id, "exec_out"), (printer.id, "exec_in"))

    def test_round_trip(self):
        payload = self.graph.to_dict()
        restored = NodeGraph.from_dict(payload)
        assert restored.to_dict() == payload

    def test_replace_state_emits_single_restore_and_rebuilds_counters(self):
        events = []
        target = NodeGraph()
        target.subscribe(events.append)
        payload = self.graph.to_dict()
        payload["nodes"][1]["id"] = "print_07"
        payload["connections"][0]["to"]["nodeId"] = "print_07"

        target.replace_state(payload)

        assert events == [{"type": "graph_restored", "nodeCount": 2, "connectionCount": 1}]
        assert target.create_node_id("print") == "print_08"
        assert target.create_node_id("event_start") == "event_start_02"

    def test_pin_optional_keys_are_omitted(self):
        pin = output_pin("value", "Value", PinKind.NUMBER)
        assert pin.to_dict() == {"id": "value", "name": "Value", "direction": "output", "kind": "number"}
        default_pin = input_pin("x", "X", PinKind.NUMBER, 0)
        assert default_pin.to_dict()["defaultValue"] == 0


class TestListeners:
    def test_failing_listener_does_not_break_mutation(self, caplog):
        graph = NodeGraph()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        graph.subscribe(broken)
        graph.subscribe(received.append)
        graph.add_node(BlueprintNode("n1", "print", "Print"))

        assert graph.get_node("n1") is not None
        assert received[0]["type"] == "node_added"
        assert "Graph listener failed" in caplog.text

    def test_unsubscribe(self):
        graph = NodeGraph()
        received = []
        graph.subscribe(received.append)
        graph.unsubscribe(received.append)
        graph.add_node(BlueprintNode("n1", "print", "Print"))
        assert received == []
