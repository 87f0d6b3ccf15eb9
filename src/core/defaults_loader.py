"""
YAML configuration layers for the stats engine.

Later layers win:
1. config/defaults.yaml - shipped defaults
2. config/settings.yaml - local overrides, not committed
3. Environment variables - applied on top by the typed config loader
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

_cache: Dict[Tuple[Path, Path], Dict[str, Any]] = {}


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Return the mapping stored in *file_path*, or {} when it is absent or empty."""
    file_path = Path(file_path)
    if not file_path.exists():
        return {}
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge *override* into a copy of *base*; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Look up a dotted path such as ``"stats.timezone"``.

    Returns ``default`` as soon as a segment is missing or the value on the
    way down is not a mapping.
    """
    node: Any = config
    for key in key_path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def load_defaults(
    defaults_path: Optional[Path] = None,
    settings_path: Optional[Path] = None,
    reload: bool = False,
) -> Dict[str, Any]:
    """
    Load defaults.yaml with settings.yaml merged over it.

    Results are cached per pair of paths; pass ``reload=True`` to read the
    files again.
    """
    defaults_path = Path(defaults_path or CONFIG_DIR / "defaults.yaml")
    settings_path = Path(settings_path or CONFIG_DIR / "settings.yaml")
    key = (defaults_path, settings_path)

    if reload or key not in _cache:
        _cache[key] = deep_merge(
            load_yaml_file(defaults_path), load_yaml_file(settings_path)
        )
    return _cache[key]


def get_stats_option(name: str, default: Any = None) -> Any:
    """Read one key of the ``stats`` section from the default layers."""
    return get_nested(load_defaults(), f"stats.{name}", default)


def clear_cache() -> None:
    _cache.clear()
