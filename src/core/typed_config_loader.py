"""
Typed config loader: parses YAML and env vars into typed domain objects.

The loader reads the ``stats`` section of the YAML config, lets environment
settings override it, and returns an immutable Pydantic model. A cached
singleton accessor (`get_stats_engine_config`) is provided for production use.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import Settings, get_settings
from .defaults_loader import get_nested, load_defaults, load_yaml_file
from .typed_config import StatsEngineConfig

logger = logging.getLogger(__name__)

# Settings field -> StatsEngineConfig field
_ENV_OVERRIDES = {
    "timezone": "timezone",
    "stats_write_max_attempts": "write_max_attempts",
    "stats_write_base_delay": "write_base_delay",
}


def load_stats_engine_config(
    path: Optional[Path] = None, settings: Optional[Settings] = None
) -> StatsEngineConfig:
    """Build StatsEngineConfig from the YAML config plus explicitly set env vars.

    Args:
        path: Single YAML file to read. When omitted, config/defaults.yaml
              merged with config/settings.yaml is used.
        settings: Env-backed settings (defaults to the cached instance)
    """
    if settings is None:
        settings = get_settings()

    if path is None:
        raw_config = load_defaults()
    else:
        if not path.exists():
            logger.warning("Config file not found: %s", path)
        raw_config = load_yaml_file(path)

    raw = get_nested(raw_config, "stats", {}) or {}
    values = {k: v for k, v in raw.items() if v is not None}

    for settings_field, config_field in _ENV_OVERRIDES.items():
        if settings_field in settings.model_fields_set:
            values[config_field] = getattr(settings, settings_field)

    return StatsEngineConfig(**values)


# ---------------------------------------------------------------------------
# Cached singleton
# ---------------------------------------------------------------------------

_stats_engine_config: Optional[StatsEngineConfig] = None


def get_stats_engine_config() -> StatsEngineConfig:
    global _stats_engine_config
    if _stats_engine_config is None:
        _stats_engine_config = load_stats_engine_config()
    return _stats_engine_config


def _clear_caches() -> None:
    """Clear cached typed config objects (for testing)."""
    global _stats_engine_config
    _stats_engine_config = None
