"""Shrink-to-fit search for the description box font size."""
from __future__ import annotations

from typing import Callable

from .constants import BASE_FONT_SIZE, FONT_STEP, MIN_FONT_SIZE
from .layout import TEXT_BOX_BASE_HEIGHT, Surface


def box_height(surface: Surface, box_scale: float = 100.0) -> float:
    """Maximum description box height on ``surface`` for a user box scale (percent)."""
    scale = (box_scale or 100.0) / 100.0
    return surface.scale_y(TEXT_BOX_BASE_HEIGHT * scale)


def fit_font_size(
    measure: Callable[[float], float],
    max_height: float,
    base_size: float = BASE_FONT_SIZE,
    min_size: float = MIN_FONT_SIZE,
    step: float = FONT_STEP,
) -> float:
    """Largest size in [min_size, base_size] whose measured block height fits.

    Starts at ``base_size`` and steps down by ``step``, re-measuring each
    time. Content that still overflows at ``min_size`` keeps ``min_size``.
    Scanning from the top means a smaller ``max_height`` can never produce a
    larger size, whatever ``measure`` returns.
    """
    size = base_size
    while size > min_size and measure(size) > max_height:
        size = max(min_size, size - step)
    return size
