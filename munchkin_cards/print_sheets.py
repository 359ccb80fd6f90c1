"""Duplex print sheets: 3x3 card faces on A4 followed by their mirrored backs."""
from __future__ import annotations

import gc
import logging
from collections import Counter
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from PIL import Image
from reportlab.lib.colors import HexColor, white
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .cards import BackCategory
from .constants import (
    CARD_HEIGHT_MM,
    CARD_WIDTH_MM,
    CARDS_PER_PAGE,
    COLOR_BG_BACK_DONJON,
    COLOR_BG_BACK_TRESOR,
    COLOR_BG_FACE,
    CUT_LINE_WIDTH_MM,
    GRID_COLUMNS,
    GRID_ROWS,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    PRINT_BASENAME,
    PRINT_CHUNK_SIZE,
    PRINT_RECLAIM_INTERVAL,
)
from .errors import ArchiveOrDocumentFailure
from .export import BatchExporter, ChunkInfo, ExportJob, ExportState, Progress, chunk_bounds, log_progress
from .templates import Resolved, resolve_back, template_preload_paths

logger = logging.getLogger(__name__)

MARGIN_X_MM = (PAGE_WIDTH_MM - GRID_COLUMNS * CARD_WIDTH_MM) / 2
MARGIN_Y_MM = (PAGE_HEIGHT_MM - GRID_ROWS * CARD_HEIGHT_MM) / 2

BACK_COLORS = {
    BackCategory.DONJON: COLOR_BG_BACK_DONJON,
    BackCategory.TRESOR: COLOR_BG_BACK_TRESOR,
}


@dataclass(frozen=True)
class CapturedCard:
    image_data: bytes
    back_category: BackCategory


@dataclass(frozen=True)
class PrintResult:
    documents: Tuple[Path, ...]
    skipped: Tuple[int, ...]
    missing_assets: Tuple[str, ...]


def slot_position(slot: int) -> Tuple[int, int]:
    """(column, row) of a slot, filled left to right then top to bottom."""
    return slot % GRID_COLUMNS, slot // GRID_COLUMNS


def back_column(column: int) -> int:
    # Long-edge duplex flips the sheet left to right
    return (GRID_COLUMNS - 1) - column


def slot_origin(column: int, row: int) -> Tuple[float, float]:
    """Bottom-left corner of a grid cell in PDF points."""
    x = MARGIN_X_MM + column * CARD_WIDTH_MM
    y = PAGE_HEIGHT_MM - MARGIN_Y_MM - (row + 1) * CARD_HEIGHT_MM
    return x * mm, y * mm


def plan_pages(cards: Sequence[CapturedCard]) -> List[List[CapturedCard]]:
    return [list(cards[start:start + CARDS_PER_PAGE]) for start in range(0, len(cards), CARDS_PER_PAGE)]


def page_background(cards: Sequence[CapturedCard]) -> str:
    """Back page colour: the most common category on the page, ties to the first card."""
    counts = Counter(card.back_category for card in cards)
    first = cards[0].back_category
    best = max(counts.values())
    category = first if counts[first] == best else max(counts, key=counts.get)
    return BACK_COLORS[category]


def document_name(basename: str, chunk: int, total_chunks: int) -> str:
    if total_chunks > 1:
        return f"{basename}_partie{chunk}.pdf"
    return f"{basename}.pdf"


def draw_cut_lines(c: canvas.Canvas) -> None:
    """White cut marks on every column and row boundary, drawn in the margins only."""
    width, height = PAGE_WIDTH_MM * mm, PAGE_HEIGHT_MM * mm
    margin_x, margin_y = MARGIN_X_MM * mm, MARGIN_Y_MM * mm
    c.setStrokeColor(white)
    c.setLineWidth(CUT_LINE_WIDTH_MM * mm)

    for column in range(GRID_COLUMNS + 1):
        x = margin_x + column * CARD_WIDTH_MM * mm
        c.line(x, 0, x, margin_y)
        c.line(x, height - margin_y, x, height)

    for row in range(GRID_ROWS + 1):
        y = height - margin_y - row * CARD_HEIGHT_MM * mm
        c.line(0, y, margin_x, y)
        c.line(width - margin_x, y, width, y)


def _fill_page(c: canvas.Canvas, color: str) -> None:
    c.setFillColor(HexColor(color))
    c.rect(0, 0, PAGE_WIDTH_MM * mm, PAGE_HEIGHT_MM * mm, stroke=0, fill=1)


def write_chunk_pdf(
    cards: Sequence[CapturedCard],
    output_path: Path,
    back_images: Mapping[BackCategory, Optional[Image.Image]],
) -> int:
    """Write face/back page pairs for ``cards``; returns the number of pages."""
    c = canvas.Canvas(str(output_path), pagesize=(PAGE_WIDTH_MM * mm, PAGE_HEIGHT_MM * mm))
    card_w, card_h = CARD_WIDTH_MM * mm, CARD_HEIGHT_MM * mm
    backs = {category: ImageReader(image) for category, image in back_images.items() if image is not None}

    pages = 0
    for page in plan_pages(cards):
        _fill_page(c, COLOR_BG_FACE)
        draw_cut_lines(c)
        for slot, card in enumerate(page):
            x, y = slot_origin(*slot_position(slot))
            c.drawImage(ImageReader(BytesIO(card.image_data)), x, y, width=card_w, height=card_h)
        c.showPage()

        _fill_page(c, page_background(page))
        draw_cut_lines(c)
        for slot, card in enumerate(page):
            back = backs.get(card.back_category)
            if back is None:
                continue
            column, row = slot_position(slot)
            x, y = slot_origin(back_column(column), row)
            c.drawImage(back, x, y, width=card_w, height=card_h, mask="auto")
        c.showPage()
        pages += 2

    c.save()
    return pages


class PrintPaginator(BatchExporter):
    """Captures cards as JPEG and flushes one PDF per chunk of 81 input cards.

    At most one chunk of captures is held in memory; it is written and
    cleared before the next chunk starts.
    """

    reclaim_interval = PRINT_RECLAIM_INTERVAL
    chunk_size = PRINT_CHUNK_SIZE

    def _back_images(self, job: ExportJob) -> Dict[BackCategory, Optional[Image.Image]]:
        backs: Dict[BackCategory, Optional[Image.Image]] = {}
        for category in BackCategory:
            resolution = resolve_back(category, self.config, self.context.images.load_asset)
            if isinstance(resolution, Resolved):
                backs[category] = self.context.images.load_asset(resolution.path)
            else:
                backs[category] = None
                job.missing_assets.add(resolution.filename)
        return backs

    def run(
        self,
        job: ExportJob,
        output_dir: Union[str, Path],
        progress: Progress = log_progress,
        basename: str = PRINT_BASENAME,
    ) -> PrintResult:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        backs = self._back_images(job)
        self.context.images.preload(template_preload_paths(job.cards, self.config))
        self._ensure_fonts()

        chunks = chunk_bounds(job.total, self.chunk_size)
        documents: List[Path] = []
        job.state = ExportState.PROCESSING
        for number, (start, stop) in enumerate(chunks, 1):
            if self._stop_if_cancelled(job):
                break
            info = ChunkInfo(number, len(chunks))
            buffer: List[CapturedCard] = []
            for index in range(start, stop):
                if self._stop_if_cancelled(job):
                    break
                job.cursor = index
                data = self._capture(job, index, "JPEG", self.config.jpeg_quality)
                if data is not None:
                    buffer.append(CapturedCard(data, job.cards[index].back_category))
                progress(index + 1, job.total, info)
                self._reclaim(index + 1)

            if self._stop_if_cancelled(job):
                break
            if not buffer:
                logger.warning("No card of document %d/%d could be rendered; nothing written", number, len(chunks))
                continue

            path = output_dir / document_name(basename, number, len(chunks))
            try:
                pages = write_chunk_pdf(buffer, path, backs)
            except OSError as exc:
                job.state = ExportState.FAILED
                raise ArchiveOrDocumentFailure(f"Could not write {path}: {exc}", completed=documents) from exc
            documents.append(path)
            logger.info("PDF written: %s (%d card(s), %d page(s))", path, len(buffer), pages)

            buffer.clear()
            gc.collect()
            self._pause(self.config.timings.chunk_pause)

        if job.state != ExportState.CANCELLED:
            job.cursor = job.total
            job.state = ExportState.DONE
        return PrintResult(tuple(documents), tuple(job.skipped), tuple(sorted(job.missing_assets)))
