import pytest

from blocksync.config import SyncSettings, settings_from_env
from blocksync.language.generator import RenderMode


class TestSettings:

    def test_defaults(self):
        settings = settings_from_env({})
        assert settings == SyncSettings()
        assert settings.text_debounce_ms == 400
        assert settings.graph_debounce_ms == 0
        assert settings.coalesce_graph_sync is False
        assert settings.render_mode == RenderMode.LOSSLESS

    def test_values_parsed(self):
        settings = settings_from_env({
            "BLOCKSYNC_TEXT_DEBOUNCE_MS": "150",
            "BLOCKSYNC_GRAPH_DEBOUNCE_MS": "20",
            "BLOCKSYNC_COALESCE_GRAPH_SYNC": "yes",
            "BLOCKSYNC_INDENT_WIDTH": "2",
            "BLOCKSYNC_RENDER_MODE": "Pretty",
            "BLOCKSYNC_LOG_LEVEL": "debug",
            "BLOCKSYNC_PORT": "8080",
        })
        assert settings.text_debounce_ms == 150
        assert settings.graph_debounce_ms == 20
        assert settings.coalesce_graph_sync is True
        assert settings.indent_width == 2
        assert settings.render_mode == RenderMode.PRETTY
        assert settings.log_level == "DEBUG"
        assert settings.port == 8080

    def test_blank_integer_uses_default(self):
        assert settings_from_env({"BLOCKSYNC_TEXT_DEBOUNCE_MS": " "}).text_debounce_ms == 400

    @pytest.mark.parametrize("raw, expected", [("1", True), ("off", False), ("TRUE", True), ("", False)])
    def test_booleans(self, raw, expected):
        assert settings_from_env({"BLOCKSYNC_COALESCE_GRAPH_SYNC": raw}).coalesce_graph_sync is expected

    @pytest.mark.parametrize("env, variable", [
        ({"BLOCKSYNC_TEXT_DEBOUNCE_MS": "soon"}, "BLOCKSYNC_TEXT_DEBOUNCE_MS"),
        ({"BLOCKSYNC_INDENT_WIDTH": "0"}, "BLOCKSYNC_INDENT_WIDTH"),
        ({"BLOCKSYNC_COALESCE_GRAPH_SYNC": "maybe"}, "BLOCKSYNC_COALESCE_GRAPH_SYNC"),
        ({"BLOCKSYNC_RENDER_MODE": "fancy"}, "BLOCKSYNC_RENDER_MODE"),
    ])
    def test_invalid_values_name_the_variable(self, env, variable):
        with pytest.raises(ValueError) as info:
            settings_from_env(env)
        assert variable in str(info.value)
