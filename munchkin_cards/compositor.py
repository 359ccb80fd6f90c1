"""Turning one card record into an ordered list of drawable layers.

``compose`` is pure with respect to the card: it resolves the template,
maps every reference coordinate onto the target surface, wraps and fits the
text, and returns a :class:`RenderUnit`. Nothing is drawn here; the
:mod:`rasterizer` paints the layers. Preview and export surfaces go through
the same function.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from PIL import ImageFont

from . import layout as geo
from .cards import SLOT_ENHANCEMENT, SLOT_STEED_ENHANCEMENT, BackCategory, CardRecord, CardType
from .constants import (
    ART_SCALE_FACTOR,
    BAD_STUFF_RULE_COLOR,
    DESCRIPTION_BORDER_COLOR,
    DESCRIPTION_LINE_HEIGHT,
    DESCRIPTION_TEXT_COLOR,
    DIAMOND_COLOR,
    DIAMOND_STROKE_COLOR,
    LONG_SLOT_LABEL,
    META_COLOR,
    PARCHMENT_COLOR,
    PLACEHOLDER_COLOR,
    TITLE_COLOR,
    TITLE_LINE_HEIGHT,
)
from .draw import ImageCache, ImageRef, art_reference
from .fonts import STYLES, FontBook
from .formatting import diamond_value, footer_value, labels_for, translate_slot
from .layout import Point, Rect, Surface
from .settings import RenderConfig
from .templates import Missing, Resolution, Resolved, resolve_template, resolve_texture, template_key
from .text_fit import box_height, fit_font_size
from .text_utils import Line, wrap_runs_to_width, wrap_text_to_width

logger = logging.getLogger(__name__)


class RenderContext:
    """Configuration plus the font book and image cache shared by a run.

    Template and texture resolutions are remembered per run so a missing
    file is reported once rather than once per card.
    """

    def __init__(self, config: RenderConfig, fonts: FontBook, images: ImageCache):
        self.config = config
        self.fonts = fonts
        self.images = images
        self._resolutions: Dict[str, Resolution] = {}

    @classmethod
    def from_config(cls, config: RenderConfig) -> "RenderContext":
        return cls(config, FontBook(config.fonts, config.font_dirs), ImageCache())

    def style_fonts(self, role: str, size_px: float) -> Dict[str, ImageFont.ImageFont]:
        return {style: self.fonts.font(role, size_px, style) for style in STYLES}

    def template_for(self, card: CardRecord) -> Resolution:
        key = template_key(card)
        if key not in self._resolutions:
            self._resolutions[key] = resolve_template(card, self.config, self.images.load_asset)
        return self._resolutions[key]

    def texture(self) -> Resolution:
        if "texture" not in self._resolutions:
            self._resolutions["texture"] = resolve_texture(self.config, self.images.load_asset)
        return self._resolutions["texture"]


@dataclass(frozen=True)
class RectLayer:
    box: Rect
    fill: Optional[str] = None
    outline: Optional[str] = None
    width: float = 0.0
    radius: float = 0.0


@dataclass(frozen=True)
class ImageLayer:
    source: ImageRef
    box: Rect
    fit: str = "cover"
    scale: float = 1.0
    offset: Point = (0.0, 0.0)
    blend: str = "normal"
    radius: float = 0.0
    clip: bool = True


@dataclass(frozen=True)
class TextBlock:
    """Wrapped lines sharing one font size, stacked top to bottom."""

    lines: Tuple[Line, ...]
    size_px: float
    color: str
    align: str = "center"
    line_height: float = 1.0
    margin_top: float = 0.0
    rule_above: float = 0.0
    padding_top: float = 0.0

    @property
    def height(self) -> float:
        return (
            self.margin_top
            + self.rule_above
            + self.padding_top
            + len(self.lines) * self.size_px * self.line_height
        )


@dataclass(frozen=True)
class TextLayer:
    box: Rect
    role: str
    blocks: Tuple[TextBlock, ...]
    padding: Point = (0.0, 0.0)
    clip: bool = False
    rule_color: str = BAD_STUFF_RULE_COLOR


@dataclass(frozen=True)
class LabelLayer:
    """A single line of text anchored at a point (Pillow anchor codes)."""

    text: str
    point: Point
    role: str
    size_px: float
    color: str
    style: str = "regular"
    anchor: str = "la"
    stroke: float = 0.0
    stroke_color: Optional[str] = None


Layer = Union[RectLayer, ImageLayer, TextLayer, LabelLayer]


def stack_height(blocks: Tuple[TextBlock, ...]) -> float:
    return sum(block.height for block in blocks)


@dataclass(frozen=True)
class RenderUnit:
    card: CardRecord
    surface: Surface
    background: Resolution
    layers: Tuple[Layer, ...]
    corner_radius: float
    description_font_size: Optional[float] = None
    missing_assets: Tuple[Missing, ...] = field(default=())

    @property
    def back_category(self) -> BackCategory:
        return self.card.back_category

    @property
    def image_refs(self) -> Tuple[ImageRef, ...]:
        """Images the layers need, in paint order, without duplicates."""
        refs: List[ImageRef] = []
        for layer in self.layers:
            if isinstance(layer, ImageLayer) and layer.source not in refs:
                refs.append(layer.source)
        return tuple(refs)


def compose(card: CardRecord, context: RenderContext, surface: Optional[Surface] = None) -> RenderUnit:
    """Build the render unit of ``card`` on ``surface`` (export surface by default)."""
    config = context.config
    surface = surface or Surface.export(config.pixel_ratio)
    labels = labels_for(config.language)
    background = context.template_for(card)

    layers: List[Layer] = [RectLayer(surface.full_rect(), fill=PARCHMENT_COLOR)]
    layers.extend(_background_layers(background, surface, labels))

    art = _art_layer(card, surface)
    if art is not None:
        layers.append(art)

    description_layers, font_size = _description_layers(card, context, surface)
    layers.extend(description_layers)
    layers.extend(_diamond_layers(card, surface))

    title = _title_layer(card, context, surface)
    if title is not None:
        layers.append(title)
    layers.extend(_footer_layers(card, surface, config.language, labels))

    used = [background, context.texture()] if description_layers else [background]
    missing = tuple(r for r in used if isinstance(r, Missing))
    return RenderUnit(
        card=card,
        surface=surface,
        background=background,
        layers=tuple(layers),
        corner_radius=surface.scale_x(geo.CARD_RADIUS),
        description_font_size=font_size,
        missing_assets=missing,
    )


def _background_layers(background: Resolution, surface: Surface, labels: Dict[str, str]) -> List[Layer]:
    if isinstance(background, Resolved):
        return [ImageLayer(ImageRef.file(background.path), surface.full_rect(), fit="fill")]
    # Placeholder styling: the card stays printable without its template
    return [
        RectLayer(
            surface.full_rect(),
            outline=PLACEHOLDER_COLOR,
            width=surface.scale_x(geo.PLACEHOLDER_BORDER),
            radius=surface.scale_x(geo.CARD_RADIUS),
        ),
        LabelLayer(
            labels["missing_background"],
            surface.scale_point(geo.PLACEHOLDER_CAPTION),
            "meta",
            surface.scale_y(geo.PLACEHOLDER_FONT),
            PLACEHOLDER_COLOR,
            style="bold",
            anchor="mm",
        ),
    ]


def _art_layer(card: CardRecord, surface: Surface) -> Optional[ImageLayer]:
    ref = art_reference(card)
    if ref is None:
        return None
    scale = (card.image_scale or 100.0) / 100.0 * ART_SCALE_FACTOR
    box = surface.scale_rect(geo.ART_SLOT)
    # Offsets are a percentage of the slot, applied after the zoom
    offset = (
        scale * box[2] * card.image_offset_x / 100.0,
        scale * box[3] * card.image_offset_y / 100.0,
    )
    return ImageLayer(ref, box, fit="contain", scale=scale, offset=offset, blend="multiply", clip=False)


def has_description(card: CardRecord) -> bool:
    bad_stuff = card.bad_stuff if card.type == CardType.MONSTER else ""
    return any(part.strip() for part in (card.description, card.restrictions, bad_stuff))


def _description_inner_width(surface: Surface) -> float:
    inset = surface.scale_x(geo.TEXT_BOX_PADDING + geo.TEXT_BOX_BORDER)
    return surface.scale_x(geo.TEXT_BOX_WIDTH) - 2 * inset


def description_blocks(
    card: CardRecord,
    context: RenderContext,
    surface: Surface,
    points: float,
) -> Tuple[TextBlock, ...]:
    """Restrictions header, body text and (monsters only) bad stuff at ``points``."""
    labels = labels_for(context.config.language)
    size_px = surface.font_px(points)
    fonts = context.style_fonts("description", size_px)
    width = _description_inner_width(surface)

    blocks: List[TextBlock] = []
    if card.restrictions.strip():
        lines = wrap_runs_to_width([(card.restrictions.upper(), "bold")], fonts, width)
        blocks.append(TextBlock(tuple(lines), size_px, DESCRIPTION_TEXT_COLOR, line_height=DESCRIPTION_LINE_HEIGHT))
    if card.description.strip():
        lines = wrap_runs_to_width([(card.description, "regular")], fonts, width)
        blocks.append(TextBlock(
            tuple(lines),
            size_px,
            DESCRIPTION_TEXT_COLOR,
            line_height=DESCRIPTION_LINE_HEIGHT,
            margin_top=surface.scale_y(geo.RESTRICTIONS_GAP) if blocks else 0.0,
        ))
    if card.type == CardType.MONSTER and card.bad_stuff.strip():
        runs = [(labels["bad_stuff"].strip(), "bold"), (card.bad_stuff, "italic")]
        blocks.append(TextBlock(
            tuple(wrap_runs_to_width(runs, fonts, width)),
            size_px,
            DESCRIPTION_TEXT_COLOR,
            align="left",
            line_height=DESCRIPTION_LINE_HEIGHT,
            margin_top=surface.scale_y(geo.BAD_STUFF_GAP) if blocks else 0.0,
            rule_above=surface.scale_y(geo.BAD_STUFF_RULE),
            padding_top=surface.scale_y(geo.BAD_STUFF_PADDING),
        ))
    return tuple(blocks)


def _description_layers(
    card: CardRecord,
    context: RenderContext,
    surface: Surface,
) -> Tuple[List[Layer], Optional[float]]:
    if not has_description(card):
        return [], None

    chrome = 2 * surface.scale_y(geo.TEXT_BOX_PADDING + geo.TEXT_BOX_BORDER)
    measured: Dict[float, Tuple[TextBlock, ...]] = {}

    def measure(points: float) -> float:
        measured[points] = description_blocks(card, context, surface, points)
        return stack_height(measured[points]) + chrome

    max_height = box_height(surface, card.description_box_scale)
    points = fit_font_size(measure, max_height)
    logger.debug("Description of %r fitted at %.1f pt", card.title, points)
    blocks = measured.get(points) or description_blocks(card, context, surface, points)
    height = min(stack_height(blocks) + chrome, max_height)

    box = (
        surface.scale_x(geo.TEXT_BOX_LEFT),
        surface.scale_y(geo.TEXT_BOX_TOP),
        surface.scale_x(geo.TEXT_BOX_WIDTH),
        height,
    )
    radius = surface.scale_x(geo.TEXT_BOX_RADIUS)
    texture = context.texture()
    layers: List[Layer] = []
    if isinstance(texture, Resolved):
        layers.append(ImageLayer(ImageRef.file(texture.path), box, fit="cover", radius=radius))
    else:
        layers.append(RectLayer(box, fill=PARCHMENT_COLOR, radius=radius))
    layers.append(RectLayer(
        box,
        outline=DESCRIPTION_BORDER_COLOR,
        width=surface.scale_x(geo.TEXT_BOX_BORDER),
        radius=radius,
    ))
    inset = (
        surface.scale_x(geo.TEXT_BOX_PADDING + geo.TEXT_BOX_BORDER),
        surface.scale_y(geo.TEXT_BOX_PADDING + geo.TEXT_BOX_BORDER),
    )
    layers.append(TextLayer(box, "description", blocks, padding=inset, clip=True))
    return layers, points


def _diamond_layers(card: CardRecord, surface: Surface) -> List[Layer]:
    value = diamond_value(card)
    if not value:
        return []
    is_range = "/" in value
    size = surface.scale_y(geo.RANGE_DIAMOND_FONT if is_range else geo.DIAMOND_FONT)
    dx, dy = geo.RANGE_DIAMOND_SHIFT if is_range else (0, 0)
    return [
        LabelLayer(
            value,
            surface.scale_point((cx + dx, cy + dy)),
            "meta",
            size,
            DIAMOND_COLOR,
            style="regular" if is_range else "bold",
            anchor="mm",
            stroke=surface.scale_x(geo.DIAMOND_STROKE),
            stroke_color=DIAMOND_STROKE_COLOR,
        )
        for cx, cy in (geo.DIAMOND_LEFT, geo.DIAMOND_RIGHT)
    ]


def _title_layer(card: CardRecord, context: RenderContext, surface: Surface) -> Optional[TextLayer]:
    if not card.title.strip():
        return None
    size = surface.scale_y(geo.TITLE_FONT)
    width = surface.scale_x(geo.TITLE_WIDTH)
    font = context.fonts.font("title", size, "bold")
    lines = wrap_text_to_width(font, card.title.upper(), width)
    block = TextBlock(tuple(((line, "bold"),) for line in lines), size, TITLE_COLOR, line_height=TITLE_LINE_HEIGHT)
    centre_y = geo.TITLE_CENTER_Y + (geo.TITLE_SHIFT_TALL if card.type in (CardType.CLASS, CardType.RACE) else 0)
    box = (surface.scale_x(geo.TITLE_LEFT), surface.scale_y(centre_y) - block.height / 2, width, block.height)
    return TextLayer(box, "title", (block,))


def _footer_layers(card: CardRecord, surface: Surface, language: str, labels: Dict[str, str]) -> List[Layer]:
    left = surface.scale_point(geo.FOOTER_LEFT)
    size = surface.scale_y(geo.FOOTER_FONT)

    def label(text: str, point: Point, anchor: str = "la", size_px: float = size) -> LabelLayer:
        return LabelLayer(text, point, "meta", size_px, META_COLOR, style="bold", anchor=anchor)

    layers: List[Layer] = []
    if card.type == CardType.MONSTER and card.levels_gained and card.levels_gained != 1:
        layers.append(label(f"{card.levels_gained} {labels['levels']}", left))

    if card.type == CardType.ITEM:
        # Lines above the footer baseline, bottom one first
        above: List[str] = []
        if card.item_slot == SLOT_STEED_ENHANCEMENT:
            above.append(labels["enhancement"])
            layers.append(label(labels["for_steed"], left))
        elif card.has_slot and card.item_slot != SLOT_ENHANCEMENT:
            small = len(card.item_slot) > LONG_SLOT_LABEL
            slot_size = surface.scale_y(geo.FOOTER_FONT_SMALL) if small else size
            layers.append(label(translate_slot(card.item_slot, language), left, size_px=slot_size))
        if card.is_big:
            above.append(labels["big"])
        for row, text in enumerate(above):
            layers.append(label(text, (left[0], left[1] - row * size), anchor="ld"))

    value = footer_value(card, language)
    if value:
        right = geo.FOOTER_RIGHT_MONSTER if card.type == CardType.MONSTER else geo.FOOTER_RIGHT
        layers.append(label(value, surface.scale_point(right)))
    return layers
