"""Immutable discovery configuration.

One ``DiscoveryConfig`` is passed into every scan; the engine keeps no
global settings. Optional overrides come from a JSON file whose keys match
the dataclass field names.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
from pathlib import Path

from savevault.logging_config import get_logger

logger = get_logger("config")

KIB = 1024
MIB = 1024 * 1024


@dataclass(slots=True, frozen=True)
class DiscoveryConfig:
    max_depth: int = 6
    min_executable_bytes: int = 50 * KIB
    setup_max_bytes: int = 5 * MIB
    executable_suffixes: tuple[str, ...] = (".exe",)
    # Path fragments of this product's own install; never crawled.
    product_tokens: tuple[str, ...] = ("savevault", "save vault")
    # Items iterated between two cancellation checks.
    cancel_check_stride: int = 50
    progress_every_dirs: int = 100
    include_registry: bool = True
    include_filesystem: bool = True
    extra_search_roots: tuple[str, ...] = ()

    def with_overrides(self, **overrides: object) -> DiscoveryConfig:
        return replace(self, **overrides)


DEFAULT_CONFIG = DiscoveryConfig()

_TUPLE_FIELDS = {"executable_suffixes", "product_tokens", "extra_search_roots"}


def load_discovery_config(path: Path | None) -> DiscoveryConfig:
    """Load overrides from ``path``; missing or malformed files yield the defaults."""
    if path is None or not path.exists():
        return DEFAULT_CONFIG
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable discovery config %s: %s", path, exc)
        return DEFAULT_CONFIG
    if not isinstance(payload, dict):
        logger.warning("Ignoring discovery config %s: expected a JSON object", path)
        return DEFAULT_CONFIG
    return config_from_mapping(payload)


def config_from_mapping(payload: dict[str, object]) -> DiscoveryConfig:
    defaults = {item.name: getattr(DEFAULT_CONFIG, item.name) for item in fields(DiscoveryConfig)}
    overrides: dict[str, object] = {}
    for key, value in payload.items():
        if key not in defaults:
            logger.debug("Unknown discovery config key ignored: %s", key)
            continue
        coerced = _coerce(key, value, defaults[key])
        if coerced is None:
            logger.warning("Invalid value for discovery config key %s: %r", key, value)
            continue
        overrides[key] = coerced
    return DEFAULT_CONFIG.with_overrides(**overrides)


def _coerce(key: str, value: object, default: object) -> object | None:
    if key in _TUPLE_FIELDS:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            return None
        items = tuple(item.strip() for item in value if item.strip())
        if key == "executable_suffixes":
            items = tuple(item.lower() if item.startswith(".") else f".{item.lower()}" for item in items)
        return items
    if isinstance(default, bool):
        return value if isinstance(value, bool) else None
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None
        if key == "cancel_check_stride" and value == 0:
            return None
        return value
    return None
