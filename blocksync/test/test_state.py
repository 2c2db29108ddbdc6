from blocksync.sync.state import Direction, Phase, SyncJob, SyncStateMachine


class TestSyncStateMachine:

    def setup_method(self):
        self.state = SyncStateMachine()

    def test_idle_request_starts_job(self):
        job = self.state.request_text("a")
        assert job == SyncJob(Direction.TEXT_TO_GRAPH, "a")
        assert self.state.phase == Phase.BUSY

    def test_finish_without_pending_goes_idle(self):
        self.state.request_graph()
        assert self.state.finish() is None
        assert self.state.phase == Phase.IDLE

    def test_newest_pending_text_wins(self):
        self.state.request_text("a")
        assert self.state.request_text("b") is None
        assert self.state.request_text("c") is None

        assert self.state.finish() == SyncJob(Direction.TEXT_TO_GRAPH, "c")
        assert self.state.busy
        assert self.state.finish() is None
        assert not self.state.busy

    def test_graph_request_dropped_while_busy(self):
        self.state.request_text("a")
        assert self.state.request_graph() is None
        assert self.state.finish() is None

    def test_graph_request_coalesced_while_busy(self):
        self.state.request_text("a")
        assert self.state.request_graph(coalesce=True) is None
        assert self.state.request_graph(coalesce=True) is None

        assert self.state.finish() == SyncJob(Direction.GRAPH_TO_TEXT)
        assert self.state.finish() is None

    def test_pending_text_served_before_graph(self):
        self.state.request_graph()
        self.state.request_graph(coalesce=True)
        self.state.request_text("b")

        assert self.state.finish().direction == Direction.TEXT_TO_GRAPH
        assert self.state.finish().direction == Direction.GRAPH_TO_TEXT
        assert self.state.finish() is None

    def test_reset(self):
        self.state.request_text("a")
        self.state.request_text("b")
        self.state.request_graph(coalesce=True)

        self.state.reset()

        assert self.state.phase == Phase.IDLE
        assert self.state.pending_source is None
        assert not self.state.pending_graph
