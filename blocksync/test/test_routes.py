import asyncio

import pytest
from fastapi import HTTPException

from blocksync.blocks import names
from blocksync.server.routes.sync_routes import FieldBody, set_field
from blocksync.server.session import editor_session


class TestSetFieldRoute:

    def setup_method(self):
        self.ws = editor_session.workspace
        self.node = self.ws.new_node(names.LIST)

    def teardown_method(self):
        self.ws.delete_node(self.node.id)

    def test_invalid_count_is_bad_request(self):
        with pytest.raises(HTTPException) as info:
            asyncio.run(set_field(self.node.id, "item_count", FieldBody(value="two")))

        assert info.value.status_code == 400
        assert "item_count" in info.value.detail
        assert self.node.get_field("item_count") == 0

    def test_unknown_node_not_found(self):
        with pytest.raises(HTTPException) as info:
            asyncio.run(set_field("missing", "item_count", FieldBody(value=2)))
        assert info.value.status_code == 404
