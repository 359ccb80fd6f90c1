"""
pytest configuration and shared fixtures

Usage:
    def test_something(config, monster):
        unit = compose(monster, RenderContext.from_config(config))
"""

from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from munchkin_cards.cards import CardRecord, CardType
from munchkin_cards.compositor import RenderContext
from munchkin_cards.settings import RenderConfig
from munchkin_cards.templates import BACK_FILENAMES, TEXTURE_FILENAME

TEMPLATE_FILES = [
    "layout_class.png",
    "layout_race.png",
    "layout_malediction.png",
    "layout_equipement.png",
    "layout_item.png",
    "layout_lvlup.png",
    "layout_monstre.png",
]


def write_png(path: Path, size=(66, 103), color=(200, 170, 120, 255)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path)
    return path


def png_base64(size=(20, 20), color=(10, 120, 30, 255)) -> str:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, "PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


# ============================================================================
# Asset Fixtures
# ============================================================================

@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """An asset folder with every template, both backs and the texture."""
    root = tmp_path / "public"
    for name in TEMPLATE_FILES:
        write_png(root / "layouts" / name)
    for name in BACK_FILENAMES.values():
        write_png(root / "layouts" / name, color=(5, 20, 113, 255))
    write_png(root / "texture" / TEXTURE_FILENAME, size=(40, 40), color=(233, 216, 180, 255))
    return root


@pytest.fixture
def empty_assets_dir(tmp_path: Path) -> Path:
    root = tmp_path / "empty"
    root.mkdir()
    return root


@pytest.fixture
def config(assets_dir: Path) -> RenderConfig:
    """Small export surface so rendering stays fast."""
    return RenderConfig(assets_dir=assets_dir, pixel_ratio=0.25)


@pytest.fixture
def context(config: RenderConfig) -> RenderContext:
    return RenderContext.from_config(config)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


# ============================================================================
# Card Fixtures
# ============================================================================

@pytest.fixture
def monster() -> CardRecord:
    return CardRecord(
        title="Dragon de Plutonium",
        type=CardType.MONSTER,
        level=20,
        gold="5",
        levels_gained=2,
        description="Mange les Halfelins.",
        bad_stuff="Vous êtes rôti et dévoré.",
    )


@pytest.fixture
def item() -> CardRecord:
    return CardRecord(
        title="Épée Chantante",
        type=CardType.ITEM,
        bonus=2,
        gold="400",
        item_slot="1 Main",
        description="Utilisable par tous sauf les Voleurs.",
    )


@pytest.fixture
def mixed_cards(monster: CardRecord, item: CardRecord) -> list:
    return [
        monster,
        item,
        CardRecord(title="Changer de race", type=CardType.CURSE, description="Perdez votre race."),
    ]
