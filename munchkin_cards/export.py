"""Export jobs, their cancellation, and the shared batch capture loop."""
from __future__ import annotations

import gc
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, Tuple, Union

from .cards import CardRecord
from .compositor import RenderContext, RenderUnit, compose
from .errors import RasterizationFailure
from .fonts import precompute_fonts
from .formatting import export_filename
from .rasterizer import Rasterizer
from .settings import RenderConfig

logger = logging.getLogger(__name__)


class ExportState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    ARCHIVING = "archiving"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class ChunkInfo:
    """1-based chunk number and the total number of chunks (print export)."""

    current: int
    total: int


@dataclass
class ExportJob:
    """One batch run over an ordered card list.

    ``cancel()`` may be called from another thread; the exporters check it
    before every step and stop without writing anything further.
    """

    cards: Sequence[CardRecord]
    cursor: int = 0
    state: ExportState = ExportState.IDLE
    skipped: List[int] = field(default_factory=list)
    missing_assets: Set[str] = field(default_factory=set)
    _cancel: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def total(self) -> int:
        return len(self.cards)

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()


Progress = Callable[..., None]


def log_progress(current: int, total: int, chunk: Optional[ChunkInfo] = None) -> None:
    """Default progress callback."""
    if chunk is not None and chunk.total > 1:
        logger.info("Card %d/%d (document %d/%d)", current, total, chunk.current, chunk.total)
    else:
        logger.info("Card %d/%d", current, total)


class BatchExporter:
    """Compose, capture and release one card at a time.

    Subclasses decide what happens to the captured bytes.
    """

    reclaim_interval = 20

    def __init__(self, config: RenderConfig, context: Optional[RenderContext] = None):
        self.config = config
        self.context = context or RenderContext.from_config(config)
        self.rasterizer = Rasterizer(self.context)

    def _capture(
        self,
        job: ExportJob,
        index: int,
        image_format: str = "PNG",
        quality: Optional[float] = None,
    ) -> Optional[bytes]:
        """Bytes of card ``index``, or None when the card failed and was skipped."""
        card = job.cards[index]
        try:
            unit = compose_card(card, self.context)
            for missing in unit.missing_assets:
                job.missing_assets.add(missing.filename)
            self._pause(self.config.timings.settle_delay)
            return self.rasterizer.capture(unit, image_format, quality)
        except RasterizationFailure:
            logger.exception("Skipping card %d (%r)", index + 1, card.title)
            job.skipped.append(index)
            return None

    def _reclaim(self, processed: int) -> None:
        if processed and processed % self.reclaim_interval == 0:
            gc.collect()
            self._pause(self.config.timings.reclaim_pause)

    def _ensure_fonts(self) -> None:
        precompute_fonts(self.context.fonts, self.config.font_timeout)

    @staticmethod
    def _pause(seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def _stop_if_cancelled(self, job: ExportJob) -> bool:
        if job.cancelled:
            if job.state != ExportState.CANCELLED:
                logger.info("Export cancelled after %d of %d card(s)", job.cursor, job.total)
            job.state = ExportState.CANCELLED
            return True
        return False


def compose_card(card: CardRecord, context: RenderContext) -> RenderUnit:
    """:func:`compose`, with any failure raised as :class:`RasterizationFailure`."""
    try:
        return compose(card, context)
    except Exception as exc:
        raise RasterizationFailure(card.title, f"{type(exc).__name__}: {exc}") from exc


def export_single_card(
    card: CardRecord,
    config: RenderConfig,
    output_dir: Union[str, Path],
    index: Optional[int] = None,
    context: Optional[RenderContext] = None,
) -> Path:
    """Write one card as a PNG named after :func:`export_filename`.

    Raises :class:`RasterizationFailure` when the card cannot be rendered.
    """
    context = context or RenderContext.from_config(config)
    unit = compose_card(card, context)
    data = Rasterizer(context).capture(unit, "PNG")
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(card, index)
    path.write_bytes(data)
    logger.info("Saved %s", path)
    return path


def chunk_bounds(total: int, size: int) -> List[Tuple[int, int]]:
    """``[start, stop)`` input-index ranges of consecutive chunks."""
    return [(start, min(start + size, total)) for start in range(0, total, size)]
