"""Text utilities relying on Pillow font metrics."""
from typing import List, Mapping, Sequence, Tuple

from PIL import ImageFont

Run = Tuple[str, str]  # (text, style)
Line = Tuple[Run, ...]


def text_width(font: ImageFont.ImageFont, text: str) -> float:
    return font.getlength(text)


def _split_long_word(font, word: str, max_width: float) -> List[str]:
    """Split a single word that exceeds max_width into width-fitting segments."""
    pieces: List[str] = []
    segment = ""
    for ch in word:
        if text_width(font, segment + ch) <= max_width:
            segment += ch
        else:
            if segment:
                pieces.append(segment)
            segment = ch
    if segment:
        pieces.append(segment)
    return pieces


def wrap_text_to_width(font, text: str, max_width: float) -> List[str]:
    """Wrap text into lines that do not exceed max_width using Pillow width metrics.
    Explicit newlines start a new line. Falls back to character-level splitting
    if a single word exceeds max_width.
    """
    if text is None or str(text).strip() == "":
        return []
    lines: List[str] = []
    for paragraph in str(text).splitlines():
        current = ""
        for w in paragraph.split():
            candidate = (current + " " + w).strip()
            if text_width(font, candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if text_width(font, w) <= max_width:
                current = w
            else:
                pieces = _split_long_word(font, w, max_width)
                lines.extend(pieces[:-1])
                current = pieces[-1] if pieces else ""
        if current:
            lines.append(current)
    return lines


def wrap_runs_to_width(
    runs: Sequence[Run],
    fonts: Mapping[str, ImageFont.ImageFont],
    max_width: float,
) -> List[Line]:
    """Wrap mixed-style text (e.g. a bold label followed by italic text).

    Each run is split into words that keep their style; words are measured
    with their own font and joined by a space of the regular font. Newlines
    inside a run force a line break.
    """
    words: List[Run] = []
    for text, style in runs:
        for number, paragraph in enumerate(str(text).split("\n")):
            if number:
                words.append(("\n", style))
            words.extend((word, style) for word in paragraph.split())
    if not any(word != "\n" for word, _style in words):
        return []

    space = text_width(fonts["regular"], " ")
    lines: List[Line] = []
    current: List[Run] = []
    width = 0.0
    for word, style in words:
        if word == "\n":
            if current:
                lines.append(tuple(current))
            current, width = [], 0.0
            continue
        font = fonts[style]
        word_width = text_width(font, word)
        extra = word_width if not current else space + word_width
        if width + extra <= max_width:
            current.append((word, style))
            width += extra
            continue
        if current:
            lines.append(tuple(current))
        if word_width <= max_width:
            current, width = [(word, style)], word_width
        else:
            pieces = _split_long_word(font, word, max_width)
            lines.extend(((piece, style),) for piece in pieces[:-1])
            last = pieces[-1] if pieces else ""
            current, width = [(last, style)], text_width(font, last)
    if current:
        lines.append(tuple(current))
    return lines


def line_width(line: Line, fonts: Mapping[str, ImageFont.ImageFont]) -> float:
    if not line:
        return 0.0
    space = text_width(fonts["regular"], " ")
    return sum(text_width(fonts[style], word) for word, style in line) + space * (len(line) - 1)
