"""Description font fitting tests."""

import pytest

from munchkin_cards.cards import CardRecord, CardType
from munchkin_cards.compositor import compose
from munchkin_cards.layout import Surface
from munchkin_cards.text_fit import box_height, fit_font_size


def linear_measure(size):
    return size * 10


class TestFitFontSize:

    def test_fits_at_base_size(self):
        assert fit_font_size(linear_measure, 200) == 13

    def test_shrinks_in_half_point_steps(self):
        assert fit_font_size(linear_measure, 100) == 10.0
        assert fit_font_size(linear_measure, 104) == 10.0
        assert fit_font_size(linear_measure, 105) == 10.5

    def test_stops_at_floor(self):
        assert fit_font_size(linear_measure, 1) == 8

    def test_smaller_box_never_gives_larger_size(self):
        sizes = [fit_font_size(linear_measure, height) for height in range(200, 0, -3)]
        assert sizes == sorted(sizes, reverse=True)

    def test_bounds_with_irregular_measure(self):
        # Wrapping can make height jump around as the size changes
        heights = {13: 300, 12.5: 90, 12: 400}
        size = fit_font_size(lambda s: heights.get(s, 500), 100)
        assert size == 12.5
        assert 8 <= fit_font_size(lambda s: 1000, 100) <= 13


class TestBoxHeight:

    def test_reference_height(self):
        assert box_height(Surface.export()) == pytest.approx(325)

    def test_box_scale(self):
        assert box_height(Surface.export(), 50) == pytest.approx(162.5)
        assert box_height(Surface.export(), 0) == pytest.approx(325)

    def test_scales_with_surface(self):
        assert box_height(Surface.preview()) == pytest.approx(325 / 1028 * 514)


class TestComposeFit:

    def test_short_text_keeps_base_size(self, context):
        unit = compose(CardRecord(type=CardType.CURSE, description="Perdez un niveau."), context)
        assert unit.description_font_size == 13

    def test_long_text_shrinks(self, context):
        text = " ".join(["Le monstre poursuit les fuyards et dévore leurs possessions."] * 12)
        unit = compose(CardRecord(type=CardType.CURSE, description=text), context)
        assert 8 <= unit.description_font_size < 13

    def test_smaller_box_scale_never_grows(self, context):
        text = " ".join(["Ce texte est assez long pour remplir la boîte."] * 6)
        sizes = [
            compose(CardRecord(type=CardType.CURSE, description=text, description_box_scale=scale), context).description_font_size
            for scale in (150, 100, 60, 30)
        ]
        assert sizes == sorted(sizes, reverse=True)

    def test_no_text_no_box(self, context):
        assert compose(CardRecord(type=CardType.CURSE), context).description_font_size is None
