"""Shared layout, typography and print constants for card rendering."""

# Native pixel grid of the template artwork (reference space)
REF_WIDTH: float = 661.0
REF_HEIGHT: float = 1028.0

# On-screen preview surface; description font sizes are expressed at this scale
PREVIEW_WIDTH: float = 330.0
PREVIEW_HEIGHT: float = 514.0

# Reference units per nominal description point (preview is half the reference grid)
REF_UNITS_PER_POINT: float = REF_WIDTH / PREVIEW_WIDTH

# Text-fit search for the description block (nominal points)
BASE_FONT_SIZE: float = 13.0
MIN_FONT_SIZE: float = 8.0
FONT_STEP: float = 0.5

# Art slot zoom applied on top of the user's scale so that 100% matches the default crop
ART_SCALE_FACTOR: float = 1.3

# Colours
CARD_BASE_COLOR = "#100c08"
PARCHMENT_COLOR = "#e9d8b4"
TITLE_COLOR = "#5c1b15"
META_COLOR = "#682a22"
DIAMOND_COLOR = "#ffffff"
DIAMOND_STROKE_COLOR = "#000000"
DESCRIPTION_TEXT_COLOR = "#000000"
DESCRIPTION_BORDER_COLOR = "#5a4a3a"
BAD_STUFF_RULE_COLOR = "#a89a80"
PLACEHOLDER_COLOR = "#7a1f1f"

# Line heights (multiples of the font size)
TITLE_LINE_HEIGHT: float = 1.15
DESCRIPTION_LINE_HEIGHT: float = 1.1

# Slot labels longer than this use the small footer font
LONG_SLOT_LABEL: int = 15

# Print sheet (millimetres)
PAGE_WIDTH_MM: float = 210.0
PAGE_HEIGHT_MM: float = 297.0
CARD_WIDTH_MM: float = 56.0
CARD_HEIGHT_MM: float = 88.0
GRID_COLUMNS: int = 3
GRID_ROWS: int = 3
CARDS_PER_PAGE: int = GRID_COLUMNS * GRID_ROWS
CUT_LINE_WIDTH_MM: float = 0.1

COLOR_BG_FACE = "#0d0804"
COLOR_BG_BACK_DONJON = "#0d0804"
COLOR_BG_BACK_TRESOR = "#051471"

# Batch pacing
PRINT_CHUNK_SIZE: int = 81  # 9 pages of 9 cards per document
ARCHIVE_RECLAIM_INTERVAL: int = 20
PRINT_RECLAIM_INTERVAL: int = CARDS_PER_PAGE

# Capture settings
PDF_JPEG_QUALITY: float = 0.85
IMAGE_TIMEOUT_SEC: float = 5.0
FONT_TIMEOUT_SEC: float = 5.0

# Output names
ARCHIVE_NAME = "munchkin_cards.zip"
PRINT_BASENAME = "munchkin_bat"
