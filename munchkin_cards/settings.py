"""Render configuration threaded through every rendering stage."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from .cards import BackCategory
from .constants import FONT_TIMEOUT_SEC, IMAGE_TIMEOUT_SEC, PDF_JPEG_QUALITY

# Template keys accepted by ``template_overrides``
TEMPLATE_KEYS = ("class", "race", "malediction", "equipement", "item", "lvlup", "monstre")


@dataclass(frozen=True)
class FontSettings:
    """Font family per text role."""

    title: str = "Windlass"
    description: str = "Caslon Antique"
    meta: str = "MedievalSharp"

    def family(self, role: str) -> str:
        return getattr(self, role)


@dataclass(frozen=True)
class ExportTimings:
    """Pauses inserted by the batch exporters, in seconds.

    Captured bitmaps are released eagerly, so the defaults do not wait.
    """

    settle_delay: float = 0.0
    reclaim_pause: float = 0.0
    chunk_pause: float = 0.0


@dataclass(frozen=True)
class RenderConfig:
    assets_dir: Path = Path("public")
    fonts: FontSettings = field(default_factory=FontSettings)
    font_dirs: Tuple[Path, ...] = ()
    language: str = "fr"
    template_overrides: Mapping[str, Path] = field(default_factory=dict)
    back_overrides: Mapping[BackCategory, Path] = field(default_factory=dict)
    pixel_ratio: float = 1.0
    jpeg_quality: float = PDF_JPEG_QUALITY
    image_timeout: float = IMAGE_TIMEOUT_SEC
    font_timeout: float = FONT_TIMEOUT_SEC
    timings: ExportTimings = field(default_factory=ExportTimings)

    def with_overrides(self, **changes) -> "RenderConfig":
        return replace(self, **changes)


def parse_overrides(items: Optional[list]) -> Dict[str, Path]:
    """Parse ``KEY=PATH`` command-line pairs."""
    result: Dict[str, Path] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        key = key.strip().lower()
        if not sep or not value.strip():
            raise ValueError(f"Override must look like KEY=PATH, got {item!r}")
        if key not in TEMPLATE_KEYS:
            raise ValueError(f"Unknown template key {key!r}; expected one of {', '.join(TEMPLATE_KEYS)}")
        result[key] = Path(value.strip())
    return result
