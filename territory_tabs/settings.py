"""Layout settings and their JSON loader."""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

Pair = Tuple[float, float]

STRICT_RESIZE_ENV_VAR = "TERRITORY_TABS_STRICT_RESIZE"


@dataclass(frozen=True)
class TerritorySettings:
    min_size: Pair = (20.0, 20.0)
    default_size: Pair = (600.0, 200.0)
    inner_margin: Pair = (3.0, 3.0)
    outer_margin: Pair = (2.5, 2.5)
    strict_resize: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TerritorySettings":
        """Build settings from a loosely typed mapping, falling back per field."""
        base = cls()
        default_size = _coerce_pair(data.get("default_size"), base.default_size)
        min_size = _coerce_pair(data.get("min_size"), base.min_size)
        min_size = (min(min_size[0], default_size[0]), min(min_size[1], default_size[1]))
        return cls(
            min_size=min_size,
            default_size=default_size,
            inner_margin=_coerce_pair(data.get("inner_margin"), base.inner_margin),
            outer_margin=_coerce_pair(data.get("outer_margin"), base.outer_margin),
            strict_resize=_coerce_bool(data.get("strict_resize"), base.strict_resize),
        )


def _coerce_pair(raw: Any, fallback: Pair) -> Pair:
    if raw is None:
        return fallback
    if isinstance(raw, Mapping):
        raw = (raw.get("x", raw.get("width")), raw.get("y", raw.get("height")))
    if isinstance(raw, (str, bytes)) or not hasattr(raw, "__len__") or len(raw) != 2:
        return fallback
    try:
        first = float(raw[0])
        second = float(raw[1])
    except (TypeError, ValueError):
        return fallback
    if not (math.isfinite(first) and math.isfinite(second)):
        return fallback
    return max(0.0, first), max(0.0, second)


def _coerce_bool(raw: Any, fallback: bool) -> bool:
    if raw is None:
        return fallback
    if isinstance(raw, str):
        token = raw.strip().lower()
        if token in {"1", "true", "yes", "on"}:
            return True
        if token in {"0", "false", "no", "off"}:
            return False
        return fallback
    return bool(raw)


def _strict_resize_override() -> Optional[bool]:
    value = os.getenv(STRICT_RESIZE_ENV_VAR)
    if value is None:
        return None
    token = value.strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return None


def load_territory_settings(path: Path) -> TerritorySettings:
    """Read layout settings from a JSON file, keeping defaults for anything unusable."""
    try:
        raw_text = path.read_text(encoding="utf-8")
        data = json.loads(raw_text)
    except (FileNotFoundError, OSError, json.JSONDecodeError):
        data = {}
    settings = TerritorySettings.from_mapping(data if isinstance(data, dict) else {})
    override = _strict_resize_override()
    if override is not None:
        settings = replace(settings, strict_resize=override)
    return settings
