"""Batch export of every card as a PNG inside one ZIP archive."""
from __future__ import annotations

import logging
import os
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from .constants import ARCHIVE_NAME, ARCHIVE_RECLAIM_INTERVAL
from .errors import ArchiveOrDocumentFailure
from .export import BatchExporter, ExportJob, ExportState, Progress, log_progress
from .formatting import export_filename
from .templates import template_preload_paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveResult:
    path: Optional[Path]
    written: int
    skipped: Tuple[int, ...]
    missing_assets: Tuple[str, ...]


class ArchiveExporter(BatchExporter):
    """Streams each captured PNG straight into the archive.

    The archive is built in ``<name>.part`` and renamed once complete, so an
    interrupted run never leaves a truncated ``munchkin_cards.zip`` behind.
    Entries are stored uncompressed: PNG data is already compressed.
    """

    reclaim_interval = ARCHIVE_RECLAIM_INTERVAL

    def run(
        self,
        job: ExportJob,
        output_dir: Union[str, Path],
        progress: Progress = log_progress,
        archive_name: str = ARCHIVE_NAME,
    ) -> ArchiveResult:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        final_path = output_dir / archive_name
        part_path = output_dir / f"{archive_name}.part"

        self.context.images.preload(template_preload_paths(job.cards, self.config))
        self._ensure_fonts()

        written = 0
        job.state = ExportState.PROCESSING
        try:
            with zipfile.ZipFile(part_path, "w", compression=zipfile.ZIP_STORED) as archive:
                for index in range(job.total):
                    if self._stop_if_cancelled(job):
                        break
                    job.cursor = index
                    data = self._capture(job, index, "PNG")
                    if data is not None:
                        archive.writestr(export_filename(job.cards[index], index), data)
                        written += 1
                    del data
                    progress(index + 1, job.total)
                    self._reclaim(index + 1)
        except OSError as exc:
            job.state = ExportState.FAILED
            _discard(part_path)
            raise ArchiveOrDocumentFailure(f"Could not write archive {final_path}: {exc}") from exc

        if self._stop_if_cancelled(job):
            _discard(part_path)
            return ArchiveResult(None, written, tuple(job.skipped), tuple(sorted(job.missing_assets)))

        if written == 0:
            job.state = ExportState.FAILED
            _discard(part_path)
            raise ArchiveOrDocumentFailure(f"No card could be rendered; {final_path} was not written")

        job.cursor = job.total
        job.state = ExportState.ARCHIVING
        try:
            os.replace(part_path, final_path)
        except OSError as exc:
            job.state = ExportState.FAILED
            _discard(part_path)
            raise ArchiveOrDocumentFailure(f"Could not finalise archive {final_path}: {exc}") from exc

        job.state = ExportState.DONE
        logger.info("Archive written: %s (%d file(s))", final_path, written)
        return ArchiveResult(final_path, written, tuple(job.skipped), tuple(sorted(job.missing_assets)))


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
