"""Display strings printed on cards and export file naming."""
from __future__ import annotations

import math
import re
import unicodedata
from typing import Any, Dict, Optional

from .cards import (
    SLOT_ENHANCEMENT,
    CardRecord,
    CardType,
)

LABELS: Dict[str, Dict[str, str]] = {
    "fr": {
        "bad_stuff": "Incident Fâcheux : ",
        "levels": "niveaux",
        "big": "Gros",
        "enhancement": "Amélioration",
        "for_steed": "de Monture",
        "treasure": "trésor",
        "treasures": "trésors",
        "gold_piece": "pièce d'or",
        "gold_pieces": "pièces d'or",
        "no_value": "Aucune valeur",
        "missing_background": "Fond introuvable",
    },
    "en": {
        "bad_stuff": "Bad Stuff: ",
        "levels": "levels",
        "big": "Big",
        "enhancement": "Enhancement",
        "for_steed": "for Steed",
        "treasure": "treasure",
        "treasures": "treasures",
        "gold_piece": "gold piece",
        "gold_pieces": "gold pieces",
        "no_value": "No value",
        "missing_background": "Missing background",
    },
}

SLOT_TRANSLATIONS_EN: Dict[str, str] = {
    "1 Main": "1 Hand",
    "2 Mains": "2 Hands",
    "Couvre-chef": "Headgear",
    "Chaussures": "Footgear",
    "Armure": "Armor",
    "Monture": "Steed",
    "Amélioration": "Enhancement",
    "Amélioration de Monture": "Steed Enhancement",
}

# Card types that never show a value in the bottom-right corner
NO_VALUE_TYPES = frozenset({
    CardType.CURSE,
    CardType.RACE,
    CardType.CLASS,
    CardType.LEVEL_UP,
    CardType.FAITHFUL_SERVANT,
})


def labels_for(language: str) -> Dict[str, str]:
    return LABELS.get(language, LABELS["fr"])


def translate_slot(slot: str, language: str) -> str:
    if language != "en":
        return slot
    return SLOT_TRANSLATIONS_EN.get(slot, slot)


def _parse_number(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _signed(value: float) -> str:
    return f"+{_format_number(value)}" if value > 0 else _format_number(value)


def format_bonus(bonus: Any) -> str:
    """Format a bonus for the diamonds.

    - empty or zero -> ""
    - positive -> "+N", negative kept as is
    - numeric range "a/b" -> the sign rule applies to the first segment only ("2/4" -> "+2/4")
    - a range with any non-numeric part is returned unchanged
    - a non-numeric single value -> ""
    """
    if bonus is None or isinstance(bonus, bool):
        return ""
    if isinstance(bonus, (int, float)):
        if isinstance(bonus, float) and math.isnan(bonus):
            return ""
        return "" if bonus == 0 else _signed(float(bonus))

    text = str(bonus).strip()
    if not text:
        return ""

    if "/" in text:
        parts = [part.strip() for part in text.split("/")]
        numbers = [_parse_number(part) for part in parts]
        if any(number is None for number in numbers):
            return text
        return "/".join([_signed(numbers[0])] + parts[1:])

    value = _parse_number(text)
    if value is None or value == 0:
        return ""
    return _signed(value)


def format_level(level: Any) -> str:
    if level is None or level == "":
        return ""
    if isinstance(level, float):
        return _format_number(level)
    return str(level)


def diamond_value(card: CardRecord) -> str:
    """Text shown in both top diamonds."""
    if card.type == CardType.MONSTER:
        return format_level(card.level)
    if card.type in (
        CardType.ITEM,
        CardType.LEVEL_UP,
        CardType.FAITHFUL_SERVANT,
        CardType.DUNGEON_TRAP,
        CardType.DUNGEON_BONUS,
        CardType.TREASURE_TRAP,
    ):
        return format_bonus(card.bonus)
    return ""


def extract_gold_value(gold: Optional[str]) -> Optional[int]:
    """First integer found in a treasure/gold string ("3 trésors", "500 PO")."""
    if not gold or not gold.strip():
        return None
    match = re.search(r"\d+", gold)
    return int(match.group(0)) if match else None


def format_gold_display(card_type: CardType, gold: Optional[str], language: str = "fr") -> Optional[str]:
    """Bottom-right value label, or None when the card type shows nothing."""
    if card_type in NO_VALUE_TYPES:
        return None
    value = extract_gold_value(gold)
    if value is None:
        return None

    labels = labels_for(language)
    if card_type == CardType.MONSTER:
        return f"{value} {labels['treasures'] if value > 1 else labels['treasure']}"
    if card_type == CardType.ITEM:
        if value == 0:
            return labels["no_value"]
        return f"{value} {labels['gold_pieces'] if value > 1 else labels['gold_piece']}"
    return gold or None


def footer_value(card: CardRecord, language: str = "fr") -> Optional[str]:
    if card.type == CardType.ITEM and card.item_slot == SLOT_ENHANCEMENT:
        return None
    return format_gold_display(card.type, card.gold, language)


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def type_slug(card_type: CardType) -> str:
    return re.sub(r"\s+", "-", strip_accents(card_type.value))


def title_slug(title: str) -> str:
    slug = strip_accents(title or "carte")
    slug = re.sub(r"[^a-zA-Z0-9\-_]", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-").lower()
    return slug or "carte"


def export_filename(card: CardRecord, index: Optional[int] = None, extension: str = "png") -> str:
    """``<back-category>_<type-slug>_<NNN>_<title-slug>.<ext>``.

    ``index`` is the 0-based position in the batch; it is printed 1-based and
    zero-padded to three digits, or as ``XXX`` for a single-card export.
    """
    number = f"{index + 1:03d}" if index is not None else "XXX"
    return f"{card.back_category.value}_{type_slug(card.type)}_{number}_{title_slug(card.title)}.{extension}"
