"""Loading card images and placing them on the Pillow canvas."""
from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple, Union

import requests
from PIL import Image, ImageChops, ImageDraw

from .cards import CardRecord
from .errors import ImageLoadTimeout
from .layout import Rect

logger = logging.getLogger(__name__)

DRIVE_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9_-]+)|[?&]id=([a-zA-Z0-9_-]+)")
DRIVE_IMAGE_URL = "https://lh3.googleusercontent.com/d/{}"


@dataclass(frozen=True)
class ImageRef:
    """Where an image comes from: a file, a URL or inline base64 data."""

    kind: str  # "file" | "url" | "inline"
    value: str

    @classmethod
    def file(cls, path: Union[str, Path]) -> "ImageRef":
        return cls("file", str(path))

    def describe(self) -> str:
        if self.kind == "inline":
            return f"<inline image, {len(self.value)} chars>"
        return self.value[:100]


def art_reference(card: CardRecord) -> Optional[ImageRef]:
    """Art source of a card: inline data first, then the stored URL.

    Google Drive share links are rewritten to their direct image URL.
    """
    if card.image_data:
        return ImageRef("inline", card.image_data)
    if not card.stored_image_url:
        return None
    url = card.stored_image_url.strip()
    if url.startswith("data:"):
        return ImageRef("inline", url)
    if url.startswith("http"):
        match = DRIVE_ID_PATTERN.search(url) if "drive.google.com" in url else None
        if match:
            return ImageRef("url", DRIVE_IMAGE_URL.format(match.group(1) or match.group(2)))
        return ImageRef("url", url)
    return ImageRef.file(url)


def open_image(path: Union[str, Path]) -> Image.Image:
    with Image.open(path) as img:
        img.load()
        return img.convert("RGBA")


def decode_inline(data: str) -> Image.Image:
    if data.startswith("data:"):
        data = data.partition(",")[2]
    try:
        raw = base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 image data: {exc}") from exc
    with Image.open(BytesIO(raw)) as img:
        img.load()
        return img.convert("RGBA")


def fetch_image(url: str, timeout: float) -> Image.Image:
    try:
        response = requests.get(url, timeout=timeout)
    except requests.Timeout as exc:
        raise ImageLoadTimeout(f"Timed out after {timeout:.1f}s loading {url[:100]}") from exc
    response.raise_for_status()
    with Image.open(BytesIO(response.content)) as img:
        img.load()
        return img.convert("RGBA")


class ImageCache:
    """Template, back and texture images shared by every card of a run.

    Failed loads are remembered and re-raised, so a missing asset is only
    looked for once per run.
    """

    def __init__(self) -> None:
        self._images: Dict[str, Image.Image] = {}
        self._failures: Dict[str, OSError] = {}

    def load_asset(self, path: Union[str, Path]) -> Image.Image:
        key = str(path)
        if key in self._images:
            return self._images[key]
        if key in self._failures:
            raise self._failures[key]
        try:
            image = open_image(path)
        except OSError as exc:
            self._failures[key] = exc
            raise
        self._images[key] = image
        return image

    def preload(self, paths: Iterable[Union[str, Path]]) -> int:
        """Load assets ahead of time; a failure only costs a warning."""
        loaded = 0
        for path in paths:
            try:
                self.load_asset(path)
                loaded += 1
            except OSError:
                logger.warning("Failed to preload %s", path)
        return loaded

    def load_ref(self, ref: ImageRef, timeout: float) -> Image.Image:
        """Load a card image. Art is not cached: it is used by one card only."""
        if ref.kind == "inline":
            return decode_inline(ref.value)
        if ref.kind == "url":
            return fetch_image(ref.value, timeout)
        if ref.kind == "file" and ref.value in self._images:
            return self._images[ref.value]
        return open_image(ref.value)

    def is_cached(self, ref: ImageRef) -> bool:
        return ref.kind == "file" and ref.value in self._images


def pixel_box(rect: Rect) -> Tuple[int, int, int, int]:
    x, y, w, h = rect
    return (int(round(x)), int(round(y)), max(1, int(round(w))), max(1, int(round(h))))


def rounded_mask(size: Tuple[int, int], radius: float) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle([0, 0, size[0] - 1, size[1] - 1], radius=radius, fill=255)
    return mask


def composite(canvas: Image.Image, layer: Image.Image, position: Tuple[int, int], blend: str = "normal") -> None:
    """Alpha-composite ``layer`` at ``position``, clipped to the canvas."""
    px, py = position
    x0, y0 = max(0, px), max(0, py)
    x1, y1 = min(canvas.width, px + layer.width), min(canvas.height, py + layer.height)
    if x1 <= x0 or y1 <= y0:
        return
    part = layer.crop((x0 - px, y0 - py, x1 - px, y1 - py))
    if blend == "multiply":
        base = canvas.crop((x0, y0, x1, y1)).convert("RGB")
        multiplied = ImageChops.multiply(base, part.convert("RGB")).convert("RGBA")
        multiplied.putalpha(part.getchannel("A"))
        part = multiplied
    canvas.alpha_composite(part, (x0, y0))


def paste_image_in_rect(
    canvas: Image.Image,
    img: Image.Image,
    rect: Rect,
    fit: str = "cover",
    scale: float = 1.0,
    offset: Tuple[float, float] = (0.0, 0.0),
    blend: str = "normal",
    radius: float = 0.0,
    clip: bool = True,
) -> None:
    """Place an image in a rectangle of the canvas.

    ``fit`` follows CSS object-fit: "cover" fills and crops, "contain" fits
    inside, "fill" stretches. ``scale`` and ``offset`` are applied around the
    rectangle centre. With ``clip`` the result is cut to the rectangle.
    """
    x, y, w, h = rect
    iw, ih = img.size
    if fit == "fill":
        sx, sy = w / iw * scale, h / ih * scale
    else:
        s = (max(w / iw, h / ih) if fit == "cover" else min(w / iw, h / ih)) * scale
        sx = sy = s
    target = (max(1, int(round(iw * sx))), max(1, int(round(ih * sy))))
    resized = img.convert("RGBA").resize(target, Image.LANCZOS)
    left = x + (w - target[0]) / 2 + offset[0]
    top = y + (h - target[1]) / 2 + offset[1]

    if clip:
        bx, by, bw, bh = pixel_box(rect)
        layer = Image.new("RGBA", (bw, bh), (0, 0, 0, 0))
        composite(layer, resized, (int(round(left)) - bx, int(round(top)) - by))
        position = (bx, by)
    else:
        layer = resized
        position = (int(round(left)), int(round(top)))

    if radius:
        alpha = ImageChops.multiply(layer.getchannel("A"), rounded_mask(layer.size, radius))
        layer.putalpha(alpha)
    composite(canvas, layer, position, blend)


def draw_rect(
    canvas: Image.Image,
    rect: Rect,
    fill: Optional[str] = None,
    outline: Optional[str] = None,
    width: float = 0.0,
    radius: float = 0.0,
) -> None:
    x, y, w, h = rect
    ImageDraw.Draw(canvas).rounded_rectangle(
        [x, y, x + w - 1, y + h - 1],
        radius=radius,
        fill=fill,
        outline=outline,
        width=max(0, int(round(width))),
    )
