"""Painting a RenderUnit with Pillow and encoding it."""
from __future__ import annotations

import logging
import time
from io import BytesIO
from typing import Dict, Mapping, Optional

import requests
from PIL import Image, ImageChops, ImageDraw

from .compositor import ImageLayer, LabelLayer, RectLayer, RenderContext, RenderUnit, TextLayer
from .constants import CARD_BASE_COLOR, COLOR_BG_FACE
from .draw import ImageRef, composite, draw_rect, paste_image_in_rect, pixel_box, rounded_mask
from .errors import ImageLoadTimeout, RasterizationFailure
from .text_utils import Line, line_width, text_width

logger = logging.getLogger(__name__)


class Rasterizer:
    """Draws render units onto a bitmap. One card at a time."""

    def __init__(self, context: RenderContext):
        self.context = context

    @property
    def image_timeout(self) -> float:
        return self.context.config.image_timeout

    def capture(self, unit: RenderUnit, image_format: str = "PNG", quality: Optional[float] = None) -> bytes:
        """Render ``unit`` and return the encoded bytes.

        ``quality`` is a 0..1 JPEG quality; it defaults to the configured one.
        Any failure is raised as :class:`RasterizationFailure`.
        """
        images: Dict[ImageRef, Image.Image] = {}
        canvas = None
        try:
            images = self.load_images(unit)
            canvas = self.render(unit, images)
            if quality is None:
                quality = self.context.config.jpeg_quality
            return encode(canvas, image_format, quality)
        except Exception as exc:
            raise RasterizationFailure(unit.card.title, f"{type(exc).__name__}: {exc}") from exc
        finally:
            if canvas is not None:
                canvas.close()
            self._release(images)

    def load_images(self, unit: RenderUnit) -> Dict[ImageRef, Image.Image]:
        """Load every image of ``unit`` against one shared deadline.

        Images still pending when the deadline passes are skipped; a single
        failing image is logged and left out.
        """
        deadline = time.monotonic() + self.image_timeout
        refs = unit.image_refs
        loaded: Dict[ImageRef, Image.Image] = {}
        for position, ref in enumerate(refs):
            remaining = deadline - time.monotonic()
            if remaining <= 0 and not self.context.images.is_cached(ref):
                logger.warning(
                    "Image loading timeout (%.1fs) for %r - %d image(s) skipped",
                    self.image_timeout,
                    unit.card.title,
                    len(refs) - position,
                )
                break
            try:
                loaded[ref] = self.context.images.load_ref(ref, max(remaining, 0.1))
            except ImageLoadTimeout as exc:
                logger.warning("%s", exc)
            except (requests.RequestException, OSError, ValueError) as exc:
                logger.warning("Image failed to load for %r: %s (%s)", unit.card.title, ref.describe(), exc)
        return loaded

    def _release(self, images: Mapping[ImageRef, Image.Image]) -> None:
        # Shared assets stay in the cache; card art is dropped right away
        for ref, image in images.items():
            if not self.context.images.is_cached(ref):
                image.close()

    def render(self, unit: RenderUnit, images: Mapping[ImageRef, Image.Image]) -> Image.Image:
        canvas = Image.new("RGBA", unit.surface.pixel_size, CARD_BASE_COLOR)
        for layer in unit.layers:
            if isinstance(layer, RectLayer):
                draw_rect(canvas, layer.box, layer.fill, layer.outline, layer.width, layer.radius)
            elif isinstance(layer, ImageLayer):
                image = images.get(layer.source)
                if image is None:
                    continue
                paste_image_in_rect(
                    canvas,
                    image,
                    layer.box,
                    fit=layer.fit,
                    scale=layer.scale,
                    offset=layer.offset,
                    blend=layer.blend,
                    radius=layer.radius,
                    clip=layer.clip,
                )
            elif isinstance(layer, TextLayer):
                self._draw_text(canvas, layer)
            elif isinstance(layer, LabelLayer):
                self._draw_label(canvas, layer)
            else:
                raise TypeError(f"Unknown layer type {type(layer).__name__}")

        if unit.corner_radius:
            alpha = ImageChops.multiply(canvas.getchannel("A"), rounded_mask(canvas.size, unit.corner_radius))
            canvas.putalpha(alpha)
        return canvas

    def _draw_text(self, canvas: Image.Image, layer: TextLayer) -> None:
        x, y, w, _h = layer.box
        if layer.clip:
            bx, by, bw, bh = pixel_box(layer.box)
            target = Image.new("RGBA", (bw, bh), (0, 0, 0, 0))
            ox, oy = x - bx, y - by
        else:
            target = canvas
            ox, oy = x, y

        draw = ImageDraw.Draw(target)
        pad_x, pad_y = layer.padding
        inner_width = w - 2 * pad_x
        cursor = oy + pad_y
        for block in layer.blocks:
            fonts = self.context.style_fonts(layer.role, block.size_px)
            cursor += block.margin_top
            if block.rule_above:
                draw.rectangle(
                    [ox + pad_x, cursor, ox + pad_x + inner_width, cursor + block.rule_above],
                    fill=layer.rule_color,
                )
                cursor += block.rule_above
            cursor += block.padding_top
            step = block.size_px * block.line_height
            for line in block.lines:
                left = ox + pad_x
                if block.align == "center":
                    left += (inner_width - line_width(line, fonts)) / 2
                _draw_line(draw, line, fonts, left, cursor + step / 2, block.color)
                cursor += step

        if layer.clip:
            composite(canvas, target, (bx, by))

    def _draw_label(self, canvas: Image.Image, layer: LabelLayer) -> None:
        font = self.context.fonts.font(layer.role, layer.size_px, layer.style)
        ImageDraw.Draw(canvas).text(
            layer.point,
            layer.text,
            font=font,
            fill=layer.color,
            anchor=layer.anchor,
            stroke_width=int(round(layer.stroke)),
            stroke_fill=layer.stroke_color,
        )


def _draw_line(draw: ImageDraw.ImageDraw, line: Line, fonts, left: float, middle: float, color: str) -> None:
    """Draw styled words left to right, vertically centred on ``middle``."""
    space = text_width(fonts["regular"], " ")
    x = left
    for word, style in line:
        font = fonts[style]
        draw.text((x, middle), word, font=font, fill=color, anchor="lm")
        x += text_width(font, word) + space


def encode(canvas: Image.Image, image_format: str = "PNG", quality: float = 0.85) -> bytes:
    """PNG keeps the transparent corners; JPEG is flattened onto the print background."""
    buffer = BytesIO()
    if image_format.upper() in ("JPEG", "JPG"):
        flat = Image.new("RGB", canvas.size, COLOR_BG_FACE)
        flat.paste(canvas, mask=canvas.getchannel("A"))
        flat.save(buffer, "JPEG", quality=int(round(quality * 100)))
        flat.close()
    else:
        canvas.save(buffer, "PNG")
    return buffer.getvalue()
