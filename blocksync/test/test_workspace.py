import pytest

import blocksync.blocks  # noqa: F401  (registers block types)
from blocksync.blocks import names
from blocksync.core.Node import Node
from blocksync.core.Types import EventType
from blocksync.core.Workspace import Workspace


class TestWorkspaceNodes:

    def setup_method(self):
        self.ws = Workspace()
        self.events = []
        self.ws.add_change_listener(self.events.append)

    def test_new_node_ids_and_event(self):
        a = self.ws.new_node(names.PASS)
        b = self.ws.new_node(names.IDENTIFIER, x=10, y=20)

        assert (a.id, b.id) == ("n1", "n2")
        assert self.ws.positions["n2"] == {"x": 10, "y": 20}
        assert [e.type for e in self.events] == [EventType.CREATE, EventType.CREATE]
        assert self.events[1].details["type"] == names.IDENTIFIER

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            self.ws.new_node("not_a_block")

    def test_every_block_type_instantiates(self):
        for type_name in Node.registered_types():
            node = self.ws.new_node(type_name)
            assert node.type == type_name

    def test_set_field_fires_change(self):
        node = self.ws.new_node(names.VAR_SET)
        self.events.clear()

        node.set_field("name", "total")
        node.set_field("name", "total")

        assert len(self.events) == 1
        assert self.events[0].type == EventType.CHANGE
        assert self.events[0].details["new_value"] == "total"

    def test_events_can_be_disabled(self):
        self.ws.disable_events()
        self.ws.disable_events()
        self.ws.new_node(names.PASS)
        self.ws.enable_events()
        self.ws.new_node(names.PASS)
        assert self.events == []

        self.ws.enable_events()
        self.ws.new_node(names.PASS)
        assert len(self.events) == 1

    def test_selection_event(self):
        node = self.ws.new_node(names.PASS)
        self.ws.select(node.id)
        assert self.ws.selected_id == node.id
        assert self.events[-1].type == EventType.SELECTED
        assert self.events[-1].node_id == node.id


class TestWorkspaceConnections:

    def setup_method(self):
        self.ws = Workspace()

    def test_connect_value_replaces_occupant(self):
        ret = self.ws.new_node(names.RETURN)
        one = self.ws.new_node(names.NUMBER)
        two = self.ws.new_node(names.NUMBER)

        self.ws.connect_value(ret.id, "VALUE", one.id)
        self.ws.connect_value(ret.id, "VALUE", two.id)

        assert self.ws.get_input_target(ret.id, "VALUE") is two
        assert self.ws.get_parent(one.id) is None

    def test_connect_value_rejects_statement(self):
        ret = self.ws.new_node(names.RETURN)
        stmt = self.ws.new_node(names.PASS)
        with pytest.raises(ValueError):
            self.ws.connect_value(ret.id, "VALUE", stmt.id)

    def test_connect_value_rejects_unknown_slot(self):
        ret = self.ws.new_node(names.RETURN)
        num = self.ws.new_node(names.NUMBER)
        with pytest.raises(ValueError):
            self.ws.connect_value(ret.id, "NOPE", num.id)

    def test_statement_chain(self):
        entry = self.ws.new_node(names.ENTRY)
        a = self.ws.new_node(names.PASS)
        b = self.ws.new_node(names.BREAK)

        self.ws.connect_statement(entry.id, "BODY", a.id)
        self.ws.connect_next(a.id, b.id)

        assert self.ws.chain(a.id) == [a, b]
        assert self.ws.get_previous(b.id) is a
        assert self.ws.get_parent(a.id) is entry
        assert self.ws.get_parent_slot(a.id) == "BODY"

    def test_inserting_into_body_displaces_old_chain(self):
        loop = self.ws.new_node(names.WHILE)
        old = self.ws.new_node(names.PASS)
        new_first = self.ws.new_node(names.CONTINUE)
        new_second = self.ws.new_node(names.BREAK)

        self.ws.connect_statement(loop.id, "BODY", old.id)
        self.ws.connect_next(new_first.id, new_second.id)
        self.ws.connect_statement(loop.id, "BODY", new_first.id)

        first = self.ws.get_input_target(loop.id, "BODY")
        assert self.ws.chain(first.id) == [new_first, new_second, old]

    def test_cycle_rejected(self):
        outer = self.ws.new_node(names.WHILE)
        inner = self.ws.new_node(names.WHILE)
        self.ws.connect_statement(outer.id, "BODY", inner.id)
        with pytest.raises(ValueError):
            self.ws.connect_statement(inner.id, "BODY", outer.id)

    def test_delete_heals_chain(self):
        a = self.ws.new_node(names.PASS)
        b = self.ws.new_node(names.RETURN)
        c = self.ws.new_node(names.BREAK)
        value = self.ws.new_node(names.NUMBER)
        self.ws.connect_next(a.id, b.id)
        self.ws.connect_next(b.id, c.id)
        self.ws.connect_value(b.id, "VALUE", value.id)

        self.ws.delete_node(b.id)

        assert self.ws.chain(a.id) == [a, c]
        assert self.ws.get_node(value.id) is None

    def test_delete_without_heal_drops_followers(self):
        a = self.ws.new_node(names.PASS)
        b = self.ws.new_node(names.PASS)
        c = self.ws.new_node(names.PASS)
        self.ws.connect_next(a.id, b.id)
        self.ws.connect_next(b.id, c.id)

        self.ws.delete_node(b.id, heal=False)

        assert self.ws.chain(a.id) == [a]
        assert self.ws.get_node(c.id) is None

    def test_disconnect_makes_top_node(self):
        a = self.ws.new_node(names.PASS)
        b = self.ws.new_node(names.PASS)
        self.ws.connect_next(a.id, b.id)

        self.ws.disconnect(b.id)

        assert set(n.id for n in self.ws.get_top_nodes()) == {a.id, b.id}

    def test_top_nodes_ordered_by_position(self):
        low = self.ws.new_node(names.PASS, x=0, y=300)
        high = self.ws.new_node(names.PASS, x=0, y=10)
        mid = self.ws.new_node(names.PASS, x=0, y=100)
        assert self.ws.get_top_nodes(ordered=True) == [high, mid, low]


class TestDynamicShape:

    def setup_method(self):
        self.ws = Workspace()

    def test_count_field_regenerates_slots(self):
        call = self.ws.new_node(names.CALL)
        call.set_field("item_count", 3)
        assert [s for s in call.value_slots() if s.startswith("ARG")] == ["ARG0", "ARG1", "ARG2"]

    @pytest.mark.parametrize("value", ["two", -1, 1.5, None, True])
    def test_invalid_count_rejected_without_change(self, value):
        lst = self.ws.new_node(names.LIST)
        lst.set_field("item_count", 2)
        events = []
        self.ws.add_change_listener(events.append)

        with pytest.raises(ValueError) as info:
            lst.set_field("item_count", value)

        assert "item_count" in str(info.value)
        assert lst.get_field("item_count") == 2
        assert lst.value_slots() == ["ITEM0", "ITEM1"]
        assert events == []

    def test_digit_string_count_converted(self):
        lst = self.ws.new_node(names.LIST)
        lst.set_field("item_count", " 3 ")
        assert lst.get_field("item_count") == 3
        assert lst.value_slots() == ["ITEM0", "ITEM1", "ITEM2"]

    def test_shrinking_detaches_removed_slot(self):
        lst = self.ws.new_node(names.LIST)
        lst.item_count = 2
        first = self.ws.new_node(names.NUMBER)
        second = self.ws.new_node(names.NUMBER)
        self.ws.connect_value(lst.id, "ITEM0", first.id)
        self.ws.connect_value(lst.id, "ITEM1", second.id)

        lst.item_count = 1

        assert lst.value_slots() == ["ITEM0"]
        assert self.ws.get_input_target(lst.id, "ITEM0") is first
        assert self.ws.get_parent(second.id) is None
        assert self.ws.get_node(second.id) is second

    def test_indexed_fields_follow_count(self):
        fn = self.ws.new_node(names.FUNCTION_DEF)
        fn.set_field("item_count", 2)
        assert fn.get_field("PARAM1") == ""
        assert fn.get_field("PARAM_KIND1") == "normal"

        fn.set_field("item_count", 1)
        assert "PARAM1" not in fn.fields
        assert "DEFAULT1" not in fn.inputs

    def test_try_handlers_add_bodies(self):
        node = self.ws.new_node(names.TRY)
        node.set_field("handler_count", 2)
        assert "EXCEPT_BODY1" in node.statement_slots()
        assert node.has_value_slot("EXCEPT_TYPE1")
        assert node.get_field("EXCEPT_NAME0") == ""

    def test_string_edit_clears_recorded_spelling(self):
        node = self.ws.new_node(names.STRING)
        node.set_field("raw", "'hi'")
        node.set_field("value", "bye")
        assert node.get_field("raw") == ""
