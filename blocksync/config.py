"""
Settings for one editor session and the server around it.

Values come from ``BLOCKSYNC_*`` environment variables, after an optional
``.env`` file has been loaded into the environment with python-dotenv.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from blocksync.language.generator import RenderMode

ENV_PREFIX = "BLOCKSYNC_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class SyncSettings:
    text_debounce_ms: int = 400
    graph_debounce_ms: int = 0          # 0: graph changes sync immediately
    coalesce_graph_sync: bool = False   # False: graph requests arriving while busy are dropped
    indent_width: int = 4
    render_mode: RenderMode = RenderMode.LOSSLESS
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001


def _int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    key = ENV_PREFIX + name
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return value


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    key = ENV_PREFIX + name
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def settings_from_env(env: Mapping[str, str]) -> SyncSettings:
    """Build settings from a mapping of environment variables."""
    defaults = SyncSettings()
    mode = env.get(ENV_PREFIX + "RENDER_MODE", defaults.render_mode.value).strip().lower()
    try:
        render_mode = RenderMode(mode)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}RENDER_MODE must be 'lossless' or 'pretty', got {mode!r}") from None
    return SyncSettings(
        text_debounce_ms=_int(env, "TEXT_DEBOUNCE_MS", defaults.text_debounce_ms),
        graph_debounce_ms=_int(env, "GRAPH_DEBOUNCE_MS", defaults.graph_debounce_ms),
        coalesce_graph_sync=_bool(env, "COALESCE_GRAPH_SYNC", defaults.coalesce_graph_sync),
        indent_width=_int(env, "INDENT_WIDTH", defaults.indent_width, minimum=1),
        render_mode=render_mode,
        log_level=env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).strip().upper(),
        host=env.get(ENV_PREFIX + "HOST", defaults.host),
        port=_int(env, "PORT", defaults.port, minimum=1),
    )


def load_settings(env_file: Optional[str] = None) -> SyncSettings:
    """Load ``.env`` (or *env_file*) into the environment, then read settings."""
    load_dotenv(env_file)
    return settings_from_env(os.environ)
