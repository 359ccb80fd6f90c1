"""Card composition tests: layer content and placement."""

import pytest

from munchkin_cards import layout as geo
from munchkin_cards.cards import CardRecord, CardType
from munchkin_cards.compositor import (
    ImageLayer,
    LabelLayer,
    RectLayer,
    RenderContext,
    TextLayer,
    compose,
)
from munchkin_cards.draw import ImageRef
from munchkin_cards.layout import Surface
from munchkin_cards.settings import RenderConfig
from munchkin_cards.templates import Missing, Resolved


def labels(unit):
    return [layer.text for layer in unit.layers if isinstance(layer, LabelLayer)]


def text_layer(unit, role):
    return next(layer for layer in unit.layers if isinstance(layer, TextLayer) and layer.role == role)


class TestMonster:

    def test_layer_order(self, monster, context):
        unit = compose(monster, context)
        assert isinstance(unit.layers[0], RectLayer)
        assert isinstance(unit.background, Resolved)
        assert unit.layers[1] == ImageLayer(ImageRef.file(unit.background.path), Surface.export(0.25).full_rect(), fit="fill")
        kinds = [type(layer).__name__ for layer in unit.layers]
        assert kinds.index("TextLayer") < kinds.index("LabelLayer")

    def test_labels(self, monster, context):
        assert labels(compose(monster, context)) == ["20", "20", "2 niveaux", "5 trésors"]

    def test_title_is_uppercase(self, monster, context):
        title = text_layer(compose(monster, context), "title")
        words = [word for line in title.blocks[0].lines for word, _style in line]
        assert " ".join(words) == "DRAGON DE PLUTONIUM"

    def test_bad_stuff_block(self, monster, context):
        description = text_layer(compose(monster, context), "description")
        body, bad_stuff = description.blocks
        assert body.align == "center"
        assert bad_stuff.align == "left"
        assert bad_stuff.rule_above > 0
        assert bad_stuff.lines[0][0] == ("Incident", "bold")
        styles = {style for line in bad_stuff.lines for _word, style in line}
        assert styles == {"bold", "italic"}

    def test_english_labels(self, monster, config):
        unit = compose(monster, RenderContext.from_config(config.with_overrides(language="en")))
        assert labels(unit)[-2:] == ["2 levels", "5 treasures"]
        bad_stuff = text_layer(unit, "description").blocks[-1]
        assert bad_stuff.lines[0][0] == ("Bad", "bold")

    def test_single_level_gain_not_shown(self, context):
        card = CardRecord(title="Rat", type=CardType.MONSTER, level=1, levels_gained=1, gold="1")
        assert labels(compose(card, context)) == ["1", "1", "1 trésor"]


class TestItem:

    def test_slot_and_value(self, item, context):
        assert labels(compose(item, context)) == ["+2", "+2", "1 Main", "400 pièces d'or"]

    def test_no_bad_stuff_for_items(self, context):
        card = CardRecord(type=CardType.ITEM, description="Bonus", bad_stuff="Ignored")
        assert len(text_layer(compose(card, context), "description").blocks) == 1

    def test_steed_enhancement_on_two_lines(self, context):
        card = CardRecord(type=CardType.ITEM, item_slot="Amélioration de Monture", is_big=True)
        layers = [l for l in compose(card, context).layers if isinstance(l, LabelLayer)]
        by_text = {l.text: l for l in layers}
        assert by_text["de Monture"].anchor == "la"
        assert by_text["Amélioration"].anchor == "ld"
        assert by_text["Gros"].point[1] < by_text["Amélioration"].point[1]

    def test_enhancement_slot_hidden(self, context):
        card = CardRecord(type=CardType.ITEM, item_slot="Amélioration", gold="300")
        assert labels(compose(card, context)) == []

    def test_long_slot_uses_small_font(self, context):
        card = CardRecord(type=CardType.ITEM, item_slot="Couvre-chef magique")
        unit = compose(card, context)
        slot = next(l for l in unit.layers if isinstance(l, LabelLayer) and l.text == "Couvre-chef magique")
        assert slot.size_px == pytest.approx(unit.surface.scale_y(geo.FOOTER_FONT_SMALL))

    def test_translated_slot(self, config):
        card = CardRecord(type=CardType.ITEM, item_slot="2 Mains")
        unit = compose(card, RenderContext.from_config(config.with_overrides(language="en")))
        assert "2 Hands" in labels(unit)

    def test_range_bonus_uses_shifted_regular_font(self, context):
        unit = compose(CardRecord(type=CardType.ITEM, bonus="2/4"), context)
        left = next(l for l in unit.layers if isinstance(l, LabelLayer))
        assert left.text == "+2/4"
        assert left.style == "regular"
        shifted = (geo.DIAMOND_LEFT[0] + geo.RANGE_DIAMOND_SHIFT[0], geo.DIAMOND_LEFT[1] + geo.RANGE_DIAMOND_SHIFT[1])
        assert left.point == pytest.approx(unit.surface.scale_point(shifted))


class TestArt:

    def test_no_art_layer_without_image(self, monster, context):
        assert not any(isinstance(l, ImageLayer) and l.blend == "multiply" for l in compose(monster, context).layers)

    def test_art_scale_and_offset(self, context):
        card = CardRecord(stored_image_url="art/dragon.png", image_scale=50, image_offset_x=10, image_offset_y=-20)
        unit = compose(card, context)
        art = next(l for l in unit.layers if isinstance(l, ImageLayer) and l.blend == "multiply")
        assert art.source == ImageRef.file("art/dragon.png")
        assert art.fit == "contain"
        assert art.scale == pytest.approx(0.65)
        slot = unit.surface.scale_rect(geo.ART_SLOT)
        assert art.box == pytest.approx(slot)
        assert art.offset == pytest.approx((0.65 * slot[2] * 0.10, 0.65 * slot[3] * -0.20))

    def test_drive_link_rewritten(self, context):
        card = CardRecord(stored_image_url="https://drive.google.com/file/d/abc123/view?usp=sharing")
        unit = compose(card, context)
        assert ImageRef("url", "https://lh3.googleusercontent.com/d/abc123") in unit.image_refs


class TestPlaceholders:

    def test_missing_template_uses_placeholder(self, monster, empty_assets_dir):
        context = RenderContext.from_config(RenderConfig(assets_dir=empty_assets_dir, pixel_ratio=0.25))
        unit = compose(monster, context)
        assert isinstance(unit.background, Missing)
        assert "Fond introuvable" in labels(unit)
        assert {m.filename for m in unit.missing_assets} == {"layout_monstre.png", "texture_description.png"}
        # flat parchment instead of the texture
        assert not any(isinstance(l, ImageLayer) for l in unit.layers)

    def test_missing_template_reported_once(self, monster, empty_assets_dir, caplog):
        context = RenderContext.from_config(RenderConfig(assets_dir=empty_assets_dir, pixel_ratio=0.25))
        compose(monster, context)
        compose(monster, context)
        assert caplog.text.count("layout_monstre.png not found") == 1


class TestSurfaces:

    def test_preview_and_export_share_the_composition(self, monster, context):
        preview = compose(monster, context, Surface.preview())
        export = compose(monster, context, Surface.export())
        assert [type(l) for l in preview.layers] == [type(l) for l in export.layers]
        for small, large in zip(preview.layers, export.layers):
            if isinstance(small, LabelLayer):
                assert small.text == large.text
                assert small.point[0] / 330 == pytest.approx(large.point[0] / 661)
                assert small.point[1] / 514 == pytest.approx(large.point[1] / 1028)

    def test_class_title_sits_lower(self, context):
        race = text_layer(compose(CardRecord(title="Elfe", type=CardType.RACE), context), "title")
        curse = text_layer(compose(CardRecord(title="Elfe", type=CardType.CURSE), context), "title")
        assert race.box[1] > curse.box[1]
