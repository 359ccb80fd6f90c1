"""Reference-space geometry and its mapping onto a render surface.

Every overlay position on a card is written once here, in the template's
native pixel grid (661x1028 reference units). Preview and export surfaces
scale those values through the same :class:`Surface`, so both produce the
same composition.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .constants import (
    PREVIEW_HEIGHT,
    PREVIEW_WIDTH,
    REF_HEIGHT,
    REF_UNITS_PER_POINT,
    REF_WIDTH,
)

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]  # x, y, width, height (top-left origin)

# Level/bonus diamonds (centre points)
DIAMOND_LEFT: Point = (108, 119)
DIAMOND_RIGHT: Point = (550, 119)
RANGE_DIAMOND_SHIFT: Point = (-6, 4)
DIAMOND_FONT = 44.8
RANGE_DIAMOND_FONT = 38.4
DIAMOND_STROKE = 3

# Title band: left edge, centre line, width
TITLE_LEFT = 169
TITLE_CENTER_Y = 133
TITLE_WIDTH = 319
TITLE_SHIFT_TALL = 25  # class and race templates have a lower band
TITLE_FONT = 35.2

# Description box
TEXT_BOX_LEFT = 60
TEXT_BOX_TOP = 229
TEXT_BOX_WIDTH = 541
TEXT_BOX_BASE_HEIGHT = 325
TEXT_BOX_PADDING = 16
TEXT_BOX_BORDER = 4
TEXT_BOX_RADIUS = 8
RESTRICTIONS_GAP = 8
BAD_STUFF_GAP = 12
BAD_STUFF_RULE = 2
BAD_STUFF_PADDING = 8

# Art slot
ART_SLOT: Rect = (60, 510, 541, 400)

# Bottom corner labels
FOOTER_LEFT: Point = (90, 902)
FOOTER_RIGHT_MONSTER: Point = (420, 902)
FOOTER_RIGHT: Point = (390, 902)
FOOTER_FONT = 28.8
FOOTER_FONT_SMALL = 22.4

# Whole card
CARD_RADIUS = 20
PLACEHOLDER_CAPTION: Point = (REF_WIDTH / 2, 380)
PLACEHOLDER_FONT = 28
PLACEHOLDER_BORDER = 6


def scale_x(ref_x: float, surface_width: float) -> float:
    """Map a reference-space x coordinate onto a surface of the given width."""
    return ref_x / REF_WIDTH * surface_width


def scale_y(ref_y: float, surface_height: float) -> float:
    """Map a reference-space y coordinate onto a surface of the given height."""
    return ref_y / REF_HEIGHT * surface_height


@dataclass(frozen=True)
class Surface:
    """A render target measured in pixels."""

    width: float
    height: float

    @classmethod
    def preview(cls) -> "Surface":
        return cls(PREVIEW_WIDTH, PREVIEW_HEIGHT)

    @classmethod
    def export(cls, pixel_ratio: float = 1.0) -> "Surface":
        return cls(REF_WIDTH * pixel_ratio, REF_HEIGHT * pixel_ratio)

    @property
    def pixel_size(self) -> Tuple[int, int]:
        return (max(1, int(round(self.width))), max(1, int(round(self.height))))

    def scale_x(self, ref_x: float) -> float:
        return scale_x(ref_x, self.width)

    def scale_y(self, ref_y: float) -> float:
        return scale_y(ref_y, self.height)

    def scale_point(self, point: Point) -> Point:
        return (self.scale_x(point[0]), self.scale_y(point[1]))

    def scale_rect(self, rect: Rect) -> Rect:
        x, y, w, h = rect
        return (self.scale_x(x), self.scale_y(y), self.scale_x(w), self.scale_y(h))

    def font_px(self, points: float) -> float:
        """Pixel size of a nominal (preview-scale) font size on this surface."""
        return self.scale_y(points * REF_UNITS_PER_POINT)

    def full_rect(self) -> Rect:
        return (0.0, 0.0, self.width, self.height)
