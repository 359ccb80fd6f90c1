"""Exceptions raised by the card export pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence, Tuple


class CardExportError(Exception):
    """Base class for every error of the export pipeline."""


class AssetMissing(CardExportError):
    """A template or back image could not be loaded from any candidate path."""

    def __init__(self, filename: str, tried: Sequence[Path] = ()):
        self.filename = filename
        self.tried: Tuple[Path, ...] = tuple(tried)
        paths = ", ".join(str(p) for p in self.tried) or "no candidates"
        super().__init__(f"Asset {filename} not found (tried: {paths})")


class ImageLoadTimeout(CardExportError):
    """An image referenced by a card did not load before the deadline."""


class RasterizationFailure(CardExportError):
    """Capturing one composited card failed; the card is skipped."""

    def __init__(self, title: str, reason: str):
        self.title = title
        super().__init__(f"Could not rasterize card {title!r}: {reason}")


class ArchiveOrDocumentFailure(CardExportError):
    """Writing the final archive or a print document failed.

    ``completed`` lists the artifacts that were written before the failure;
    they stay valid.
    """

    def __init__(self, message: str, completed: Sequence[Path] = ()):
        self.completed: Tuple[Path, ...] = tuple(completed)
        super().__init__(message)
