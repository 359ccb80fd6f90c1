"""Card model and card file loading tests."""

import json
import logging

import pytest

from munchkin_cards.cards import (
    BackCategory,
    CardRecord,
    CardType,
    card_from_mapping,
    load_cards,
    parse_card_type,
)

CSV_HEADER = "id,title,type,level,bonus,description,badStuff,gold,itemSlot,isBig,levelsGained,imageScale,descriptionBoxScale\n"


class TestCardModel:

    @pytest.mark.parametrize("card_type, category", [
        (CardType.MONSTER, BackCategory.DONJON),
        (CardType.CURSE, BackCategory.DONJON),
        (CardType.CLASS, BackCategory.DONJON),
        (CardType.DUNGEON_BONUS, BackCategory.DONJON),
        (CardType.ITEM, BackCategory.TRESOR),
        (CardType.LEVEL_UP, BackCategory.TRESOR),
        (CardType.TREASURE_TRAP, BackCategory.TRESOR),
        (CardType.OTHER, BackCategory.TRESOR),
    ])
    def test_back_category(self, card_type, category):
        assert CardRecord(type=card_type).back_category == category

    def test_no_slot(self):
        assert not CardRecord(item_slot="NoSlot").has_slot
        assert not CardRecord(item_slot="").has_slot
        assert CardRecord(item_slot="Armure").has_slot

    def test_parse_card_type(self, caplog):
        assert parse_card_type("Objet") == CardType.ITEM
        assert parse_card_type("LEVEL_UP") == CardType.LEVEL_UP
        assert parse_card_type("") == CardType.MONSTER
        with caplog.at_level(logging.WARNING):
            assert parse_card_type("Licorne") == CardType.OTHER
        assert "Licorne" in caplog.text


class TestCardFromMapping:

    def test_defaults(self):
        card = card_from_mapping({"title": "Poulet", "type": "Monstre"})
        assert card.image_scale == 100
        assert card.image_offset_x == 0
        assert card.description_box_scale == 100
        assert card.levels_gained is None
        assert card.is_big is False

    @pytest.mark.parametrize("raw, expected", [("true", True), ("TRUE", True), ("false", False), ("", False), (True, True)])
    def test_boolean_strings(self, raw, expected):
        assert card_from_mapping({"isBig": raw}).is_big is expected

    def test_stats_keep_ranges(self):
        card = card_from_mapping({"type": "Objet", "bonus": "2/4", "level": "3.0"})
        assert card.bonus == "2/4"
        assert card.level == 3


class TestLoadCards:

    def test_csv(self, tmp_path):
        path = tmp_path / "cards.csv"
        path.write_text(
            CSV_HEADER
            + "1, Dragon ,Monstre,20,,Crache du feu,Mort,5,,false,2,,\n"
            + "2,Épée,Objet,,3,,,400,1 Main,true,,120,80\n",
            encoding="utf-8",
        )
        cards = load_cards(path)
        assert [c.title for c in cards] == ["Dragon", "Épée"]
        dragon, sword = cards
        assert dragon.type == CardType.MONSTER
        assert dragon.level == 20
        assert dragon.levels_gained == 2
        assert dragon.bad_stuff == "Mort"
        assert sword.is_big is True
        assert sword.item_slot == "1 Main"
        assert sword.image_scale == 120
        assert sword.description_box_scale == 80

    def test_json(self, tmp_path):
        path = tmp_path / "cards.json"
        path.write_text(json.dumps([
            {"id": "a", "title": "Nain", "type": "Race", "imageData": None, "isBig": False},
            {"id": "b", "title": "Gros Marteau", "type": "Objet", "bonus": 4, "isBig": True, "imageOffsetX": -10},
        ]), encoding="utf-8")
        cards = load_cards(path)
        assert cards[0].type == CardType.RACE
        assert cards[0].image_data is None
        assert cards[1].bonus == 4
        assert cards[1].is_big is True
        assert cards[1].image_offset_x == -10
