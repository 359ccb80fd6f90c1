import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from PIL import ImageFont

from .settings import FontSettings

logger = logging.getLogger(__name__)

ROLES = ("title", "description", "meta")
STYLES = ("regular", "bold", "italic")

_STYLE_SUFFIXES = {
    "regular": ["", "-Regular", "Regular", " Regular"],
    "bold": ["-Bold", "Bold", " Bold", "bd", "-SemiBold"],
    "italic": ["-Italic", "Italic", " Italic", "-Oblique", "i"],
}

# Unicode fallbacks tried when a family cannot be found (regular, bold, italic)
FALLBACK_FAMILIES = [
    ("DejaVuSans", ["DejaVuSans.ttf"], ["DejaVuSans-Bold.ttf"], ["DejaVuSans-Oblique.ttf"]),
    ("DejaVuSerif", ["DejaVuSerif.ttf"], ["DejaVuSerif-Bold.ttf"], ["DejaVuSerif-Italic.ttf"]),
    ("Arial", ["arial.ttf", "ARIAL.TTF"], ["arialbd.ttf", "ARIALBD.TTF"], ["ariali.ttf", "ARIALI.TTF"]),
    ("NotoSans", ["NotoSans-Regular.ttf"], ["NotoSans-Bold.ttf"], ["NotoSans-Italic.ttf"]),
]


def default_font_dirs() -> List[Path]:
    """Font folders searched after the configured ones."""
    dirs = [Path.cwd() / "fonts"]
    # Common Windows fonts directory
    windir = os.environ.get("WINDIR")
    if windir:
        dirs.append(Path(windir) / "Fonts")
    dirs.extend([
        Path.home() / ".fonts",
        Path.home() / ".local" / "share" / "fonts",
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("/Library/Fonts"),
    ])
    return dirs


def candidate_filenames(family: str, style: str) -> List[str]:
    """File names a family is commonly shipped under, e.g. ``CaslonAntique-Bold.ttf``."""
    compact = family.replace(" ", "")
    names = []
    for base in (compact, family, family.replace(" ", "_")):
        for suffix in _STYLE_SUFFIXES[style]:
            for ext in (".ttf", ".otf"):
                names.append(f"{base}{suffix}{ext}")
    return names


class FontBook:
    """Resolves (role, style, size) to Pillow fonts and caches them.

    Building the file index walks every font directory; that is the slow
    part and is what :func:`precompute_fonts` runs under a timeout.
    """

    def __init__(self, families: FontSettings, font_dirs: Sequence[Path] = ()):
        self.families = families
        self.font_dirs: Tuple[Path, ...] = tuple(font_dirs) + tuple(default_font_dirs())
        self._lock = threading.Lock()
        self._index: Optional[Dict[str, str]] = None
        self._paths: Dict[Tuple[str, str], Optional[str]] = {}
        self._fonts: Dict[Tuple[Optional[str], int], ImageFont.ImageFont] = {}
        self._lookup_enabled = True

    def _build_index(self) -> Dict[str, str]:
        index: Dict[str, str] = {}
        for directory in self.font_dirs:
            if not directory.is_dir():
                continue
            for root, _dirs, files in os.walk(directory):
                for name in files:
                    if name.lower().endswith((".ttf", ".otf")):
                        index.setdefault(name.lower(), os.path.join(root, name))
        return index

    def _get_index(self) -> Dict[str, str]:
        if not self._lookup_enabled:
            return {}
        with self._lock:
            if self._index is None:
                self._index = self._build_index()
            return self._index

    def disable_lookup(self) -> None:
        """Stop searching font directories; only Pillow's own lookup is used."""
        self._lookup_enabled = False

    def _find(self, names: Iterable[str]) -> Optional[str]:
        index = self._get_index()
        for name in names:
            path = index.get(name.lower())
            if path:
                return path
        return None

    def font_path(self, role: str, style: str = "regular") -> Optional[str]:
        key = (role, style)
        if key not in self._paths:
            family = self.families.family(role)
            path = self._find(candidate_filenames(family, style))
            if path is None and style != "regular":
                # Families without a bold/italic cut keep their regular face
                path = self._find(candidate_filenames(family, "regular"))
            if path is None:
                path = self._fallback_path(style)
                logger.debug("Font %s (%s) not found, using %s", family, style, path or "Pillow default")
            # First resolution wins; a timed-out background scan must not swap fonts mid-run
            self._paths.setdefault(key, path)
        return self._paths[key]

    def _fallback_path(self, style: str) -> Optional[str]:
        slot = STYLES.index(style) + 1
        for candidate in FALLBACK_FAMILIES:
            path = self._find(candidate[slot]) or self._find(candidate[1])
            if path:
                return path
        return None

    def font(self, role: str, size_px: float, style: str = "regular") -> ImageFont.ImageFont:
        path = self.font_path(role, style)
        size = max(1, int(round(size_px)))
        key = (path, size)
        if key not in self._fonts:
            self._fonts[key] = self._load(path, size)
        return self._fonts[key]

    @staticmethod
    def _load(path: Optional[str], size: int) -> ImageFont.ImageFont:
        if path:
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                logger.warning("Could not load font file %s, using default font", path)
        try:
            return ImageFont.truetype("DejaVuSans.ttf", size)
        except OSError:
            return ImageFont.load_default(size=size)

    def precompute(self) -> None:
        """Resolve every role/style once so later lookups are dictionary hits."""
        for role in ROLES:
            for style in STYLES:
                self.font_path(role, style)


def precompute_fonts(book: FontBook, timeout: float) -> bool:
    """Run :meth:`FontBook.precompute` but give up after ``timeout`` seconds.

    Returns True when the lookup finished in time. On timeout, directory
    lookup is disabled so rendering does not block on the same scan.
    """
    # Daemon thread: a hung scan must not keep the process alive
    worker = threading.Thread(target=book.precompute, name="font-scan", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        logger.warning("Font lookup did not finish within %.1fs, falling back to default fonts", timeout)
        book.disable_lookup()
        return False
    return True
