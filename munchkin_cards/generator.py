"""Card export orchestrator: loads a card file and runs the requested export."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .archive import ArchiveExporter
from .cards import load_cards
from .compositor import RenderContext
from .errors import ArchiveOrDocumentFailure, RasterizationFailure
from .export import ExportJob, export_single_card
from .print_sheets import PrintPaginator
from .settings import RenderConfig

logger = logging.getLogger(__name__)

MODES = ("png", "zip", "pdf")


def main(
    cards_file_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    mode: str = "zip",
    config: Optional[RenderConfig] = None,
    index: Optional[int] = None,
) -> int:
    """Export the cards of ``cards_file_path``; returns a process exit code.

    ``mode`` is "png" (one card, selected by 1-based ``index``, or every card
    as loose files), "zip" (one archive) or "pdf" (duplex print sheets).
    """
    if mode not in MODES:
        raise ValueError(f"Unknown export mode {mode!r}; expected one of {', '.join(MODES)}")
    config = config or RenderConfig()
    cards = load_cards(cards_file_path)
    if not cards:
        logger.warning("No cards found in %s, nothing to export", cards_file_path)
        return 0

    # If output path not provided, write next to the repository under output/<card file name>
    if not output_dir:
        output_dir = Path.cwd() / "output" / Path(cards_file_path).stem
    output_dir = Path(output_dir)

    context = RenderContext.from_config(config)
    outputs = []
    skipped = 0
    missing = ()
    try:
        if mode == "png":
            if index is not None:
                if not 1 <= index <= len(cards):
                    raise ValueError(f"Card index {index} out of range 1..{len(cards)}")
                positions = [index - 1]
            else:
                positions = range(len(cards))
            for position in positions:
                card = cards[position]
                try:
                    outputs.append(export_single_card(card, config, output_dir, position, context))
                except RasterizationFailure:
                    logger.exception("Skipping card %d (%r)", position + 1, card.title)
                    skipped += 1
        elif mode == "zip":
            result = ArchiveExporter(config, context).run(ExportJob(cards), output_dir)
            outputs = [result.path] if result.path else []
            skipped, missing = len(result.skipped), result.missing_assets
        else:
            result = PrintPaginator(config, context).run(ExportJob(cards), output_dir)
            outputs = list(result.documents)
            skipped, missing = len(result.skipped), result.missing_assets
    except ArchiveOrDocumentFailure as exc:
        logger.error("Export failed: %s", exc)
        for path in exc.completed:
            logger.info("Completed before the failure: %s", path)
        return 1

    logger.info(
        "🎉 Export complete!\n\n"
        "📥 Input: %s\n"
        "📤 Output: %s\n"
        "🧾 Cards: %d\n"
        "⚠️ Skipped: %d",
        cards_file_path,
        ", ".join(str(p) for p in outputs) or "-",
        len(cards),
        skipped,
    )
    if missing:
        logger.info("Note: missing assets were replaced by placeholders: %s", ", ".join(missing))
    return 0
