"""Configuration loading with layered merging.

Layers, later ones overriding earlier ones:
1. Global user config (~/.cliphist/config.json)
2. Project local config (cwd/.cliphist/config.json)

With no config files at all, pydantic defaults are used.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cliphist.config.load_utils import load_json_file, load_json_file_optional
from cliphist.config.schema import Config
from cliphist.core.constants import CLIPHIST_DIR_NAME, get_default_config_path
from cliphist.core.errors import ConfigError, LoadError
from cliphist.core.utils import deep_merge

logger = logging.getLogger(__name__)


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration from file with layered merging.

    Args:
        path: Explicit config file path. If provided, skips layered loading.
        cwd: Working directory for local lookup. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If any config file contains invalid JSON or the merged
            config fails validation.
    """
    if path is not None:
        return _load_from_path(path)

    effective_cwd = cwd or Path.cwd()
    merged: dict[str, Any] = {}
    loaded_from: list[Path] = []

    global_config = get_default_config_path()
    local_config = effective_cwd / CLIPHIST_DIR_NAME / "config.json"

    layers = [global_config]
    # Avoid loading the same file twice when cwd is the home directory
    if local_config.resolve() != global_config.resolve():
        layers.append(local_config)

    for layer in layers:
        try:
            data = load_json_file_optional(layer, error_context="config")
        except LoadError as e:
            raise ConfigError(e.message) from e
        if data:
            merged = deep_merge(merged, data)
            loaded_from.append(layer)

    if loaded_from:
        logger.info("Config loaded from: %s", [str(p) for p in loaded_from])
    else:
        logger.debug("No config files found, using defaults")
        return Config()

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        sources = ", ".join(str(p) for p in loaded_from)
        raise ConfigError(f"Config validation failed (merged from {sources}): {e}") from e


def _load_from_path(path: Path) -> Config:
    """Load and validate config from a specific path.

    Raises:
        ConfigError: If file doesn't exist, contains invalid JSON, or fails validation.
    """
    try:
        data = load_json_file(path, error_context="config")
    except LoadError as e:
        raise ConfigError(e.message) from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed for {path}: {e}") from e
