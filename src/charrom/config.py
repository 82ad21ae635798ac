"""Constants and configuration for charrom."""

# Character dimensions accepted by the editor UI (the codec itself has no upper bound)
MIN_DIMENSION = 1
MAX_DIMENSION = 16

DEFAULT_WIDTH = 8
DEFAULT_HEIGHT = 8
DEFAULT_PADDING = "right"
DEFAULT_BIT_DIRECTION = "ltr"
DEFAULT_BYTE_ORDER = "big"

PADDING_DIRECTIONS = ("left", "right")
# msb/lsb are the text-import spellings of ltr/rtl
BIT_DIRECTIONS = ("ltr", "rtl", "msb", "lsb")
BYTE_ORDERS = ("big", "little")

# 3x3 anchor grid: first letter = vertical (t/m/b), second = horizontal (l/c/r)
ANCHOR_POINTS = ("tl", "tc", "tr", "ml", "mc", "mr", "bl", "bc", "br")

SHIFT_DIRECTIONS = ("up", "down", "left", "right")
ROTATE_DIRECTIONS = ("left", "right")
SCALE_ALGORITHMS = ("nearest", "threshold")
DEFAULT_SCALE_THRESHOLD = 0.5

# Binary ROM import
BINARY_EXTENSIONS = (".bin", ".rom", ".chr", ".fnt", ".dat")
MAX_BINARY_FILE_SIZE = 1024 * 1024  # 1MB

# Font import
FONT_EXTENSIONS = (".ttf", ".otf", ".woff", ".woff2")
FONT_CHUNK_SIZE = 8  # Code points rendered per scheduling batch
DEFAULT_FONT_THRESHOLD = 128

# Image import
IMAGE_EXTENSIONS = (".png", ".gif", ".bmp", ".jpg", ".jpeg", ".webp")
READING_ORDERS = (
    "ltr-ttb",
    "rtl-ttb",
    "ltr-btt",
    "rtl-btt",
    "ttb-ltr",
    "ttb-rtl",
    "btt-ltr",
    "btt-rtl",
)

# Share URLs
SHARE_FORMAT_VERSION = 1
SHARE_V2_PREFIX = "2:"
SHARE_BASE_PATH = "/tools/character-rom-editor/shared"
MAX_RECOMMENDED_URL_LENGTH = 2000
MAX_URL_LENGTH = 8000

# Snapshots kept per character set
MAX_SNAPSHOTS = 50

# Preview glyphs
FILLED = "\u2588"  # █
EMPTY = "\u00b7"  # ·

# ASCII control code names (used by sheet labels and previews)
CONTROL_CODE_NAMES: dict[int, str] = {
    0: "NUL", 1: "SOH", 2: "STX", 3: "ETX", 4: "EOT", 5: "ENQ", 6: "ACK", 7: "BEL",
    8: "BS", 9: "TAB", 10: "LF", 11: "VT", 12: "FF", 13: "CR", 14: "SO", 15: "SI",
    16: "DLE", 17: "DC1", 18: "DC2", 19: "DC3", 20: "DC4", 21: "NAK", 22: "SYN", 23: "ETB",
    24: "CAN", 25: "EM", 26: "SUB", 27: "ESC", 28: "FS", 29: "GS", 30: "RS", 31: "US",
    127: "DEL",
}  # fmt: skip
