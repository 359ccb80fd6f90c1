"""Choosing and locating the template artwork of a card.

A card's template comes from a fixed decision table on its type. The file is
then looked up through an ordered list of candidate paths; the first one that
opens as an image wins. When none does, the result is :class:`Missing` and
the card is drawn with placeholder styling instead of failing the batch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from PIL import Image

from .cards import SLOT_ENHANCEMENT, BackCategory, CardRecord, CardType
from .errors import AssetMissing
from .settings import RenderConfig

logger = logging.getLogger(__name__)

Loader = Callable[[Path], Image.Image]

LAYOUTS_DIR = "layouts"
TEXTURE_DIR = "texture"
TEXTURE_FILENAME = "texture_description.png"

BACK_FILENAMES = {
    BackCategory.DONJON: "layout_back_donjon.png",
    BackCategory.TRESOR: "layout_back_tresors.png",
}

# Types that reuse the curse artwork
CURSE_STYLE_TYPES = frozenset({
    CardType.CURSE,
    CardType.FAITHFUL_SERVANT,
    CardType.DUNGEON_TRAP,
    CardType.DUNGEON_BONUS,
    CardType.TREASURE_TRAP,
})


@dataclass(frozen=True)
class Resolved:
    filename: str
    path: Path


@dataclass(frozen=True)
class Missing:
    filename: str
    tried: Tuple[Path, ...]

    @property
    def error(self) -> AssetMissing:
        return AssetMissing(self.filename, self.tried)


Resolution = Union[Resolved, Missing]


def template_key(card: CardRecord) -> str:
    """Template family of a card; first matching rule wins."""
    if card.type == CardType.CLASS:
        return "class"
    if card.type == CardType.RACE:
        return "race"
    if card.type == CardType.ITEM:
        if card.item_slot == SLOT_ENHANCEMENT:
            return "malediction"
        if card.has_slot or card.is_big:
            return "equipement"
        return "item"
    if card.type == CardType.LEVEL_UP:
        return "lvlup"
    if card.type in CURSE_STYLE_TYPES:
        return "malediction"
    return "monstre"


def layout_filename(card: CardRecord) -> str:
    return f"layout_{template_key(card)}.png"


def candidate_paths(filename: str, assets_dir: Path, subdir: str = LAYOUTS_DIR) -> List[Path]:
    """Path conventions tried in order: ``<assets>/<subdir>/<file>``, the bare
    ``<assets>/<file>``, then the absolute-rooted ``/<subdir>/<file>``."""
    return [
        assets_dir / subdir / filename,
        assets_dir / filename,
        Path("/") / subdir / filename,
    ]


def resolve_asset(filename: str, candidates: Sequence[Path], load: Loader) -> Resolution:
    tried: List[Path] = []
    for path in candidates:
        tried.append(path)
        try:
            load(path)
        except OSError:
            logger.debug("Asset %s not loadable from %s", filename, path)
            continue
        if len(tried) > 1:
            logger.info("Asset %s found at fallback path %s", filename, path)
        return Resolved(filename, path)
    missing = Missing(filename, tuple(tried))
    logger.warning("%s", missing.error)
    return missing


def _with_override(override: Optional[Path], candidates: List[Path]) -> List[Path]:
    return ([Path(override)] if override else []) + candidates


def resolve_template(card: CardRecord, config: RenderConfig, load: Loader) -> Resolution:
    key = template_key(card)
    filename = layout_filename(card)
    candidates = candidate_paths(filename, Path(config.assets_dir))
    return resolve_asset(filename, _with_override(config.template_overrides.get(key), candidates), load)


def resolve_back(category: BackCategory, config: RenderConfig, load: Loader) -> Resolution:
    filename = BACK_FILENAMES[category]
    candidates = candidate_paths(filename, Path(config.assets_dir))
    return resolve_asset(filename, _with_override(config.back_overrides.get(category), candidates), load)


def resolve_texture(config: RenderConfig, load: Loader) -> Resolution:
    return resolve_asset(TEXTURE_FILENAME, candidate_paths(TEXTURE_FILENAME, Path(config.assets_dir), TEXTURE_DIR), load)


def template_preload_paths(cards: Iterable[CardRecord], config: RenderConfig) -> List[Path]:
    """Primary paths of the distinct templates used by ``cards`` plus the texture."""
    keys = sorted({template_key(card) for card in cards})
    paths = []
    for key in keys:
        override = config.template_overrides.get(key)
        paths.append(Path(override) if override else Path(config.assets_dir) / LAYOUTS_DIR / f"layout_{key}.png")
    paths.append(Path(config.assets_dir) / TEXTURE_DIR / TEXTURE_FILENAME)
    return paths
