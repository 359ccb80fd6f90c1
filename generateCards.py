import argparse
import logging
import sys
from pathlib import Path

from munchkin_cards.cards import BackCategory
from munchkin_cards.generator import MODES, main
from munchkin_cards.settings import ExportTimings, FontSettings, RenderConfig, parse_overrides


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render Munchkin cards to PNG, a ZIP archive or duplex print PDFs")
    parser.add_argument("cards_file", help="Path to the CSV or JSON card export")
    parser.add_argument("output", nargs="?", default=None, help="Output directory (default: output/<card file name>)")
    parser.add_argument("--mode", choices=MODES, default="zip", help="png: loose PNG files, zip: munchkin_cards.zip, pdf: munchkin_bat[_partieN].pdf")
    parser.add_argument("--index", type=int, default=None, help="With --mode png, export only this card (1-based position in the file)")
    parser.add_argument("--assets-dir", default="public", help="Folder holding layouts/ and texture/ (default: public)")
    parser.add_argument("--font-title", default=FontSettings.title, help="Font family of the title")
    parser.add_argument("--font-description", default=FontSettings.description, help="Font family of the description box")
    parser.add_argument("--font-meta", default=FontSettings.meta, help="Font family of diamonds and corner labels")
    parser.add_argument("--font-dir", action="append", default=[], help="Extra folder searched for font files (repeatable)")
    parser.add_argument("--language", choices=("fr", "en"), default="fr", help="Language of the labels printed on cards")
    parser.add_argument("--layout-override", action="append", default=[], metavar="KEY=PATH", help="Use PATH as the template for KEY (class, race, malediction, equipement, item, lvlup, monstre). Repeatable.")
    parser.add_argument("--back-donjon", default=None, help="Image used as the back of Donjon cards")
    parser.add_argument("--back-tresor", default=None, help="Image used as the back of Tresor cards")
    parser.add_argument("--pixel-ratio", type=float, default=1.0, help="Export resolution multiplier. Example: 2 => 1322x2056 px cards.")
    parser.add_argument("--quality", type=float, default=0.85, help="JPEG quality of the card faces in PDFs, 0-1")
    parser.add_argument("--image-timeout", type=float, default=5.0, help="Seconds to wait for the images of one card")
    parser.add_argument("--font-timeout", type=float, default=5.0, help="Seconds allowed for the font lookup before default fonts are used")
    parser.add_argument("--reclaim-pause", type=float, default=0.0, help="Pause in seconds after each memory reclamation step")
    parser.add_argument("--chunk-pause", type=float, default=0.0, help="Pause in seconds between two PDF documents")
    args = parser.parse_args()

    # configure basic logging to console so users are kept up-to-date
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        template_overrides = parse_overrides(args.layout_override)
    except ValueError as exc:
        parser.error(str(exc))

    back_overrides = {}
    if args.back_donjon:
        back_overrides[BackCategory.DONJON] = Path(args.back_donjon)
    if args.back_tresor:
        back_overrides[BackCategory.TRESOR] = Path(args.back_tresor)

    config = RenderConfig(
        assets_dir=Path(args.assets_dir),
        fonts=FontSettings(title=args.font_title, description=args.font_description, meta=args.font_meta),
        font_dirs=tuple(Path(d) for d in args.font_dir),
        language=args.language,
        template_overrides=template_overrides,
        back_overrides=back_overrides,
        pixel_ratio=args.pixel_ratio,
        jpeg_quality=min(1.0, max(0.0, args.quality)),
        image_timeout=args.image_timeout,
        font_timeout=args.font_timeout,
        timings=ExportTimings(reclaim_pause=args.reclaim_pause, chunk_pause=args.chunk_pause),
    )
    sys.exit(main(args.cards_file, args.output, args.mode, config, index=args.index))
