# game_rng/config.py
"""YAML configuration for the RNG streams.

Example ``rng.yaml``::

    seed: 12345
    default_stream: gameplay
    streams:
      ui: 7
    logging:
      level: INFO
      renderer: console
"""
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

from game_rng.streams import Stream

log = structlog.get_logger(__name__)

DEFAULT_RNG_CONFIG: Dict[str, Any] = {
    "seed": None,
    "default_stream": "gameplay",
    "streams": {},
    "logging": {"level": "INFO", "renderer": "console"},
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_rng_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Check stream names and seed types; returns ``config`` unchanged."""
    Stream.from_name(config.get("default_stream", "gameplay"))
    seed = config.get("seed")
    if seed is not None and not isinstance(seed, int):
        raise ValueError(f"seed must be an integer or null, got {seed!r}")
    streams = config.get("streams") or {}
    if not isinstance(streams, dict):
        raise ValueError("streams must be a mapping of stream name to seed")
    for name, value in streams.items():
        Stream.from_name(name)
        if value is None or isinstance(value, int):
            continue
        if isinstance(value, list) and len(value) == 2 and all(
            isinstance(v, int) for v in value
        ):
            continue
        raise ValueError(
            f"stream {name!r}: expected an integer seed or [state, inc], got {value!r}"
        )
    return config


def load_rng_config(config_path: Path) -> Dict[str, Any]:
    """Load an RNG config file and merge it over :data:`DEFAULT_RNG_CONFIG`."""
    config_path = Path(config_path)
    if not config_path.is_file():
        log.error("RNG config file not found", path=str(config_path))
        raise FileNotFoundError(f"RNG configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(
            "Error parsing YAML for RNG config",
            path=str(config_path),
            error=str(e),
            exc_info=True,
        )
        raise
    if config_data is None:
        log.warning("RNG config file is empty.", path=str(config_path))
        return copy.deepcopy(DEFAULT_RNG_CONFIG)
    if not isinstance(config_data, dict):
        raise ValueError(f"RNG config must be a mapping: {config_path}")
    config = validate_rng_config(_merge(DEFAULT_RNG_CONFIG, config_data))
    log.info("RNG config loaded", path=str(config_path))
    return config


__all__ = ["DEFAULT_RNG_CONFIG", "load_rng_config", "validate_rng_config"]
