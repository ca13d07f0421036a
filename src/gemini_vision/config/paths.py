"""Path management for gemini-vision.

State (config file, logs) lives under one base directory, overridable with
the GEMINI_VISION_HOME environment variable. Default: ~/.gemini-vision
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "GEMINI_VISION_HOME"
CONFIG_FILENAME = "gemini-vision.toml"


@lru_cache(maxsize=1)
def get_home() -> Path:
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".gemini-vision"


def get_config_path() -> Path:
    return get_home() / "config.toml"


def get_logs_path() -> Path:
    return get_home() / "logs"
