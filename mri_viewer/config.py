"""Rendering configuration for the slice engine.

Defaults are bundled as YAML under ``miscellaneous/viewer.yaml`` and loaded
once.  Callers can layer their own YAML file on top of the defaults with
:func:`load_viewer_config`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

import yaml

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent / "miscellaneous" / "viewer.yaml"

RGBA = Tuple[int, int, int, int]

_COLOR_KEYS = (
    "crosshair_color",
    "voxel_sentinel_color",
    "world_sentinel_color",
    "absolute_sentinel_color",
)


@dataclass(frozen=True)
class ViewerConfig:
    """Tunable constants used by the resolver and the rasterizer."""

    absolute_cube_scale: float = 1.3
    crosshair_opacity: float = 0.3
    crosshair_color: RGBA = (255, 64, 64, 255)
    voxel_sentinel_color: RGBA = (0, 0, 255, 255)
    world_sentinel_color: RGBA = (0, 255, 0, 255)
    absolute_sentinel_color: RGBA = (0, 0, 0, 100)
    normalization_sample_count: int = 10000
    default_space: str = "absolute"
    default_plane: str = "sagittal"

    def __post_init__(self) -> None:
        if self.absolute_cube_scale <= 0:
            raise ValueError("absolute_cube_scale must be positive")
        if not 0.0 <= self.crosshair_opacity <= 1.0:
            raise ValueError("crosshair_opacity must lie in [0, 1]")
        if self.normalization_sample_count < 1:
            raise ValueError("normalization_sample_count must be at least 1")
        for key in _COLOR_KEYS:
            color = getattr(self, key)
            if len(color) != 4 or any(not 0 <= int(c) <= 255 for c in color):
                raise ValueError(f"{key} must be four integers in [0, 255]")


@lru_cache
def _load_yaml(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _coerce(values: dict) -> dict:
    known = {f.name for f in fields(ViewerConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown viewer configuration keys: {', '.join(unknown)}")
    out = dict(values)
    for key in _COLOR_KEYS:
        if key in out:
            out[key] = tuple(int(c) for c in out[key])
    for key in ("absolute_cube_scale", "crosshair_opacity"):
        if key in out:
            out[key] = float(out[key])
    if "normalization_sample_count" in out:
        out["normalization_sample_count"] = int(out["normalization_sample_count"])
    return out


@lru_cache
def _default_config() -> ViewerConfig:
    return ViewerConfig(**_coerce(_load_yaml(DEFAULT_CONFIG_FILE)))


def load_viewer_config(path: Optional[Path] = None) -> ViewerConfig:
    """Return the bundled defaults, optionally overridden by the YAML at *path*."""
    base = _default_config()
    if path is None:
        return base
    overrides = _coerce(_load_yaml(Path(path)))
    return replace(base, **overrides)


DEFAULT_CONFIG = _default_config()

__all__ = ["DEFAULT_CONFIG", "DEFAULT_CONFIG_FILE", "ViewerConfig", "load_viewer_config"]
