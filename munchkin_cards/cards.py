"""Card records and loading them from CSV/JSON exports."""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

Number = Union[int, float]


class CardType(str, Enum):
    MONSTER = "Monstre"
    CURSE = "Malédiction"
    ITEM = "Objet"
    CLASS = "Classe"
    RACE = "Race"
    LEVEL_UP = "Gain de niveau"
    FAITHFUL_SERVANT = "Fidèle serviteur"
    DUNGEON_TRAP = "Piège Donjon"
    DUNGEON_BONUS = "Bonus Donjon"
    TREASURE_TRAP = "Piège Trésor"
    OTHER = "Autre"


class BackCategory(str, Enum):
    """Which deck a card belongs to, i.e. which back it is printed with."""

    DONJON = "Donjon"
    TRESOR = "Tresor"


DUNGEON_TYPES = frozenset({
    CardType.MONSTER,
    CardType.FAITHFUL_SERVANT,
    CardType.DUNGEON_TRAP,
    CardType.DUNGEON_BONUS,
    CardType.CLASS,
    CardType.RACE,
    CardType.CURSE,
})

# Item slot values with special meaning
SLOT_NONE = "NoSlot"
SLOT_ENHANCEMENT = "Amélioration"
SLOT_STEED_ENHANCEMENT = "Amélioration de Monture"


@dataclass(frozen=True)
class CardRecord:
    """One card as supplied by the editor. Never mutated by rendering."""

    title: str = ""
    type: CardType = CardType.MONSTER
    id: str = ""
    level: Union[Number, str] = ""
    bonus: Union[Number, str] = ""
    description: str = ""
    bad_stuff: str = ""
    gold: str = ""
    image_data: Optional[str] = None
    stored_image_url: Optional[str] = None
    item_slot: str = ""
    is_big: bool = False
    restrictions: str = ""
    levels_gained: Optional[int] = None
    image_scale: float = 100.0
    image_offset_x: float = 0.0
    image_offset_y: float = 0.0
    description_box_scale: float = 100.0

    @property
    def back_category(self) -> BackCategory:
        return BackCategory.DONJON if self.type in DUNGEON_TYPES else BackCategory.TRESOR

    @property
    def has_slot(self) -> bool:
        return bool(self.item_slot) and self.item_slot != SLOT_NONE


# Column names of the spreadsheet export -> CardRecord fields
COLUMN_MAP: Dict[str, str] = {
    "id": "id",
    "title": "title",
    "type": "type",
    "level": "level",
    "bonus": "bonus",
    "description": "description",
    "badStuff": "bad_stuff",
    "gold": "gold",
    "imageData": "image_data",
    "storedImageUrl": "stored_image_url",
    "itemSlot": "item_slot",
    "isBig": "is_big",
    "restrictions": "restrictions",
    "levelsGained": "levels_gained",
    "imageScale": "image_scale",
    "imageOffsetX": "image_offset_x",
    "imageOffsetY": "image_offset_y",
    "descriptionBoxScale": "description_box_scale",
}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _to_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_bool(value: Any) -> bool:
    # Spreadsheets hand booleans back as "true"/"false" strings
    if isinstance(value, bool):
        return value
    if _is_blank(value):
        return False
    return str(value).strip().lower() in ("true", "1", "yes", "oui")


def _to_float(value: Any, default: float) -> float:
    if _is_blank(value):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(result) else result


def _to_int_or_blank(value: Any) -> Union[int, str]:
    if _is_blank(value):
        return ""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return ""


def _to_stat(value: Any) -> Union[Number, str]:
    """Keep numbers numeric and ranges such as "2/4" as text."""
    if _is_blank(value):
        return ""
    if isinstance(value, numbers.Number) and not isinstance(value, bool):
        return int(value) if float(value).is_integer() else float(value)
    return str(value).strip()


def parse_card_type(value: Any) -> CardType:
    """Accept the French label ("Monstre") or the enum name ("MONSTER")."""
    text = _to_text(value)
    for card_type in CardType:
        if text == card_type.value or text.upper() == card_type.name:
            return card_type
    if text:
        logger.warning("Unknown card type %r, treating it as %s", text, CardType.OTHER.value)
        return CardType.OTHER
    return CardType.MONSTER


def card_from_mapping(row: Mapping[str, Any]) -> CardRecord:
    """Build a CardRecord from one spreadsheet row (camelCase or snake_case keys)."""
    values: Dict[str, Any] = {}
    for key, raw in row.items():
        field_name = COLUMN_MAP.get(key, key)
        values[field_name] = raw

    levels = _to_int_or_blank(values.get("levels_gained"))
    return CardRecord(
        id=_to_text(values.get("id")),
        title=_to_text(values.get("title")),
        type=parse_card_type(values.get("type")),
        level=_to_int_or_blank(values.get("level")),
        bonus=_to_stat(values.get("bonus")),
        description=_to_text(values.get("description")),
        bad_stuff=_to_text(values.get("bad_stuff")),
        gold=_to_text(values.get("gold")),
        image_data=_to_text(values.get("image_data")) or None,
        stored_image_url=_to_text(values.get("stored_image_url")) or None,
        item_slot=_to_text(values.get("item_slot")),
        is_big=_to_bool(values.get("is_big")),
        restrictions=_to_text(values.get("restrictions")),
        levels_gained=levels if levels != "" else None,
        image_scale=_to_float(values.get("image_scale"), 100.0),
        image_offset_x=_to_float(values.get("image_offset_x"), 0.0),
        image_offset_y=_to_float(values.get("image_offset_y"), 0.0),
        description_box_scale=_to_float(values.get("description_box_scale"), 100.0),
    )


def read_card_table(path: Union[str, Path]) -> pd.DataFrame:
    """Read a CSV or JSON card export into a DataFrame with stripped strings."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        data = pd.read_json(path, orient="records", dtype=False)
    else:
        data = pd.read_csv(path, dtype=str, keep_default_na=False)
    # Remove leading/trailing whitespaces across the DataFrame
    try:
        data = data.map(lambda x: x.strip() if isinstance(x, str) else x)
    except AttributeError:
        data = data.applymap(lambda x: x.strip() if isinstance(x, str) else x)
    return data


def load_cards(path: Union[str, Path]) -> List[CardRecord]:
    """Load card records in file order."""
    data = read_card_table(path)
    unknown = [col for col in data.columns if col not in COLUMN_MAP and col not in COLUMN_MAP.values()]
    if unknown:
        logger.debug("Ignoring unknown card columns: %s", unknown)
    cards = [card_from_mapping(row) for row in data.to_dict(orient="records")]
    logger.info("Loaded %d card(s) from %s", len(cards), path)
    return cards
