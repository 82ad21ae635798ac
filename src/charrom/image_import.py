"""Slice a character sheet image into characters.

The image is flattened onto white, converted to greyscale and cut into a
grid of cells. Each character pixel may span ``pixel_width x pixel_height``
image pixels (upscaled sheets); their average brightness is thresholded.
Dark is foreground unless ``invert`` is set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from PIL import Image

from charrom.config import IMAGE_EXTENSIONS, READING_ORDERS
from charrom.schema import Character

ReadingOrder = Literal[
    "ltr-ttb", "rtl-ttb", "ltr-btt", "rtl-btt", "ttb-ltr", "ttb-rtl", "btt-ltr", "btt-rtl"
]

# character counts that make a suggested grid size more likely
_PREFERRED_COUNTS = (128, 256, 96, 64, 16)
_COMMON_SIZES = ((8, 8), (8, 16), (6, 8), (8, 10), (8, 12), (16, 16))


@dataclass
class ImageImportOptions:
    char_width: int = 8
    char_height: int = 8
    offset_x: int = 0
    offset_y: int = 0
    gap_x: int = 0
    gap_y: int = 0
    force_columns: int = 0
    force_rows: int = 0
    threshold: int = 128
    invert: bool = False
    max_characters: int = 256
    pixel_width: int = 1
    pixel_height: int = 1
    rotation: float = 0.0
    reading_order: ReadingOrder = "ltr-ttb"


@dataclass
class ImageParseResult:
    characters: list[Character] = field(default_factory=list)
    columns: int = 0
    rows: int = 0
    image_width: int = 0
    image_height: int = 0


@dataclass
class DimensionSuggestion:
    width: int
    height: int
    columns: int
    rows: int


def load_image(path: str | Path) -> Image.Image:
    """Open an image file and fully load it."""
    with Image.open(path) as img:
        img.load()
        return img.copy()


def to_grayscale(image: Image.Image) -> Image.Image:
    """Composite onto white and convert to 8-bit luminance."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, rgba)
    return image.convert("L")


def _area_brightness(
    pixels, width: int, height: int, x0: int, y0: int, area_w: int, area_h: int
) -> int:
    """Mean brightness of a block; pixels outside the image count as white."""
    total = 0
    for y in range(y0, y0 + area_h):
        for x in range(x0, x0 + area_w):
            total += pixels[x, y] if 0 <= x < width and 0 <= y < height else 255
    count = area_w * area_h
    return (2 * total + count) // (2 * count) if count else 255


def _extract_character(
    gray: Image.Image, start_x: int, start_y: int, options: ImageImportOptions
) -> Character:
    pixels = gray.load()
    pw, ph = options.pixel_width, options.pixel_height
    rows: list[list[bool]] = []
    for y in range(options.char_height):
        row: list[bool] = []
        for x in range(options.char_width):
            brightness = _area_brightness(
                pixels, gray.width, gray.height, start_x + x * pw, start_y + y * ph, pw, ph
            )
            row.append((brightness < options.threshold) != options.invert)
        rows.append(row)
    return Character(pixels=rows)


def _cell_order(reading_order: str, columns: int, rows: int) -> list[tuple[int, int]]:
    """(row, col) cells in reading order."""
    if reading_order not in READING_ORDERS:
        allowed = ", ".join(READING_ORDERS)
        msg = f"Unknown reading order '{reading_order}', expected one of: {allowed}"
        raise ValueError(msg)

    row_indices = list(range(rows))
    col_indices = list(range(columns))
    if "btt" in reading_order:
        row_indices.reverse()
    if "rtl" in reading_order:
        col_indices.reverse()

    if reading_order[:3] in ("ltr", "rtl"):
        return [(r, c) for r in row_indices for c in col_indices]
    return [(r, c) for c in col_indices for r in row_indices]


def _check_grid(opts: ImageImportOptions) -> None:
    for name in ("char_width", "char_height", "pixel_width", "pixel_height"):
        value = getattr(opts, name)
        if value < 1:
            msg = f"{name} must be >= 1, got {value}"
            raise ValueError(msg)
    if opts.gap_x < 0 or opts.gap_y < 0:
        msg = f"Gaps must be >= 0, got {opts.gap_x}x{opts.gap_y}"
        raise ValueError(msg)


def parse_image_to_characters(
    image: Image.Image, options: ImageImportOptions | None = None
) -> ImageParseResult:
    """Cut ``image`` into characters on the grid described by ``options``.

    Columns and rows are derived from the image size unless forced. At most
    ``max_characters`` characters are returned.

    Raises:
        ValueError: If a size is not positive, a gap is negative or the
            reading order is unknown.
    """
    opts = options or ImageImportOptions()
    _check_grid(opts)
    gray = to_grayscale(image)
    if opts.rotation:
        # Pillow rotates counter-clockwise for positive angles
        gray = gray.rotate(opts.rotation, expand=True, fillcolor=255)

    cell_w = opts.char_width * opts.pixel_width + opts.gap_x
    cell_h = opts.char_height * opts.pixel_height + opts.gap_y
    columns = opts.force_columns or max(0, (gray.width - opts.offset_x) // cell_w)
    rows = opts.force_rows or max(0, (gray.height - opts.offset_y) // cell_h)

    characters = [
        _extract_character(gray, opts.offset_x + col * cell_w, opts.offset_y + row * cell_h, opts)
        for row, col in _cell_order(opts.reading_order, columns, rows)[: opts.max_characters]
    ]

    return ImageParseResult(
        characters=characters,
        columns=columns,
        rows=rows,
        image_width=gray.width,
        image_height=gray.height,
    )


def detect_character_dimensions(image_width: int, image_height: int) -> list[DimensionSuggestion]:
    """Suggest cell sizes for a sheet; sizes giving typical character counts come first."""
    preferred: list[DimensionSuggestion] = []
    others: list[DimensionSuggestion] = []

    for w, h in _COMMON_SIZES:
        cols, rows = image_width // w, image_height // h
        if cols <= 0 or rows <= 0:
            continue
        suggestion = DimensionSuggestion(width=w, height=h, columns=cols, rows=rows)
        if cols * rows in _PREFERRED_COUNTS:
            preferred.insert(0, suggestion)
        elif 16 <= cols * rows <= 512:
            others.append(suggestion)

    suggestions = preferred + others
    if not suggestions:
        suggestions.append(
            DimensionSuggestion(width=8, height=8, columns=image_width // 8, rows=image_height // 8)
        )
    return suggestions


def is_valid_image_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS
