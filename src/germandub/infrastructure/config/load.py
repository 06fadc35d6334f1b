"""Layered configuration loading for the addon.

Layers, lowest to highest: built-in defaults, ``config.yaml``, environment
(``GERMANDUB_*``, ``RD_API_KEY``, ``OMDB_API_KEY``, optionally from a
``.env`` file), command-line flags.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS: frozenset[str] = frozenset(
    {"http", "logging", "debrid", "metadata", "site", "search"}
)

# Flat keys (env vars, CLI flags) and the YAML section they belong to.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "rd_api_key": ("debrid", "rd_api_key"),
    "omdb_api_key": ("metadata", "omdb_api_key"),
    "site_base_url": ("site", "base_url"),
    "search_fallback_queries": ("search", "fallback_queries"),
    "search_hit_selection": ("search", "hit_selection"),
}

_TOP_LEVEL_KEYS = ("app_name", "environment")


def _merge_into(base: dict[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *layer* over *base* in place; nested sections merge key by key."""
    for key, value in layer.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            base[key] = value
    return base


def _sectioned(data: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the YAML shape (``site.base_url`` and so on)."""
    out: dict[str, Any] = {
        section: dict(data[section])
        for section in _SECTIONS
        if isinstance(data.get(section), Mapping)
    }
    for key in _TOP_LEVEL_KEYS:
        if key in data:
            out[key] = data[key]
    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in data:
            out.setdefault(section, {})[key] = data[flat_key]
    return out


def _yaml_layer(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return _sectioned(parsed)


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the validated :class:`AppConfig` from all layers.

    Missing *config_path* or *dotenv_path* files raise ``FileNotFoundError``.
    Values already present in the process environment win over the ``.env``
    file. Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    merged = _sectioned(deepcopy(DEFAULT_CONFIG))
    if config_path is not None:
        _merge_into(merged, _yaml_layer(config_path))
    _merge_into(merged, _sectioned(EnvOverrides().to_update_dict()))
    _merge_into(merged, _sectioned(cli_overrides or {}))

    return AppConfig.model_validate(merged)
