"""Fonts, text wrapping and settings tests."""

import threading
import time
from pathlib import Path

import pytest
from PIL import ImageFont

from munchkin_cards.cards import BackCategory
from munchkin_cards.fonts import FontBook, candidate_filenames, precompute_fonts
from munchkin_cards.settings import FontSettings, RenderConfig, parse_overrides
from munchkin_cards.text_utils import line_width, wrap_runs_to_width, wrap_text_to_width


@pytest.fixture(scope="module")
def fonts():
    regular = ImageFont.load_default(size=12)
    return {"regular": regular, "bold": regular, "italic": regular}


class TestWrapping:

    def test_wrap_respects_width(self, fonts):
        lines = wrap_text_to_width(fonts["regular"], "un deux trois quatre cinq six sept", 60)
        assert len(lines) > 1
        assert all(fonts["regular"].getlength(line) <= 60 for line in lines)

    def test_long_word_is_split(self, fonts):
        lines = wrap_text_to_width(fonts["regular"], "anticonstitutionnellement", 40)
        assert "".join(lines) == "anticonstitutionnellement"

    def test_runs_keep_styles(self, fonts):
        lines = wrap_runs_to_width([("Label :", "bold"), ("texte en italique", "italic")], fonts, 500)
        assert lines == [(("Label", "bold"), (":", "bold"), ("texte", "italic"), ("en", "italic"), ("italique", "italic"))]

    def test_newline_breaks_line(self, fonts):
        lines = wrap_runs_to_width([("première\nseconde", "regular")], fonts, 500)
        assert lines == [(("première", "regular"),), (("seconde", "regular"),)]

    def test_blank(self, fonts):
        assert wrap_runs_to_width([("  \n ", "regular")], fonts, 100) == []
        assert wrap_text_to_width(fonts["regular"], "", 100) == []

    def test_line_width(self, fonts):
        line = (("ab", "regular"), ("cd", "bold"))
        expected = fonts["regular"].getlength("ab") + fonts["regular"].getlength(" ") + fonts["bold"].getlength("cd")
        assert line_width(line, fonts) == pytest.approx(expected)


class TestFonts:

    def test_candidate_filenames(self):
        names = candidate_filenames("Caslon Antique", "bold")
        assert "CaslonAntique-Bold.ttf" in names
        assert "Caslon Antique Bold.otf" in names

    def test_unknown_family_still_gives_a_font(self, tmp_path):
        book = FontBook(FontSettings(title="No Such Family"), [tmp_path])
        font = book.font("title", 20, "bold")
        assert font.getlength("A") > 0
        assert book.font("title", 20, "bold") is font

    def test_precompute_timeout_falls_back(self, monkeypatch, caplog):
        book = FontBook(FontSettings(), [])
        monkeypatch.setattr(book, "precompute", lambda: time.sleep(0.5))
        assert precompute_fonts(book, 0.01) is False
        assert "Font lookup did not finish" in caplog.text
        assert book.font_path("meta") is None
        assert book.font("meta", 12).getlength("x") > 0

    def test_precompute_runs_on_daemon_thread(self, monkeypatch):
        book = FontBook(FontSettings(), [])
        seen = []
        monkeypatch.setattr(book, "precompute", lambda: seen.append(threading.current_thread().daemon))
        assert precompute_fonts(book, 5) is True
        assert seen == [True]


class TestSettings:

    def test_parse_overrides(self):
        assert parse_overrides(["monstre=art/m.png", "Item = art/i.png"]) == {
            "monstre": Path("art/m.png"),
            "item": Path("art/i.png"),
        }

    @pytest.mark.parametrize("item", ["monstre", "dragon=x.png", "item="])
    def test_invalid_overrides(self, item):
        with pytest.raises(ValueError):
            parse_overrides([item])

    def test_with_overrides(self):
        config = RenderConfig(back_overrides={BackCategory.DONJON: Path("b.png")})
        changed = config.with_overrides(language="en")
        assert changed.language == "en"
        assert changed.back_overrides == config.back_overrides
        assert config.language == "fr"
