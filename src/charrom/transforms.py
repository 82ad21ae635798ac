"""Pixel transforms: rotate, shift, resize, flip, invert, center and scale.

Every function returns a new Character and leaves its input untouched. The
only exceptions are the documented no-ops (``scale_character`` with scale 1
and ``center_character`` on empty or already-centred input), which return
the input object itself.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Literal

from charrom.config import ANCHOR_POINTS, DEFAULT_SCALE_THRESHOLD
from charrom.schema import AnchorPoint, Character

ShiftDirection = Literal["up", "down", "left", "right"]
ScaleAlgorithm = Literal["nearest", "threshold"]
PixelState = Literal["same-on", "same-off", "mixed"]

# (row, col) offset of the source pixel for each shift direction
_SHIFT_SOURCE = {
    "up": (1, 0),
    "down": (-1, 0),
    "left": (0, 1),
    "right": (0, -1),
}


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive bounds of the foreground pixels of a character."""

    min_row: int
    max_row: int
    min_col: int
    max_col: int

    @property
    def width(self) -> int:
        return self.max_col - self.min_col + 1

    @property
    def height(self) -> int:
        return self.max_row - self.min_row + 1


def _anchor_offsets(anchor: str, delta_w: int, delta_h: int) -> tuple[int, int]:
    """Return (offset_x, offset_y) placing content of a frame grown by delta."""
    if anchor not in ANCHOR_POINTS:
        msg = f"Unknown anchor '{anchor}', expected one of: {', '.join(ANCHOR_POINTS)}"
        raise ValueError(msg)

    vertical, horizontal = anchor[0], anchor[1]
    offset_x = {"l": 0, "c": delta_w // 2, "r": delta_w}[horizontal]
    offset_y = {"t": 0, "m": delta_h // 2, "b": delta_h}[vertical]
    return offset_x, offset_y


def _offset_copy(
    pixels: list[list[bool]],
    src_width: int,
    src_height: int,
    out_width: int,
    out_height: int,
    offset_x: int,
    offset_y: int,
) -> Character:
    """Copy ``pixels`` into a new out_width x out_height grid shifted by the offsets."""
    out: list[list[bool]] = []
    for row in range(out_height):
        src_row = row - offset_y
        if not 0 <= src_row < src_height:
            out.append([False] * out_width)
            continue
        source = pixels[src_row]
        out.append(
            [
                source[col - offset_x] if 0 <= col - offset_x < src_width else False
                for col in range(out_width)
            ]
        )
    return Character(pixels=out)


def rotate_character(character: Character, direction: Literal["left", "right"]) -> Character:
    """Rotate 90 degrees clockwise ("right") or counter-clockwise ("left").

    The output keeps the input's width x height. For non-square characters,
    pixels rotated outside that frame are dropped and uncovered cells are blank.
    """
    if direction not in ("left", "right"):
        msg = f"Unknown rotate direction '{direction}', expected 'left' or 'right'"
        raise ValueError(msg)

    height, width = character.height, character.width
    pixels = character.pixels
    out: list[list[bool]] = []

    for row in range(height):
        new_row: list[bool] = []
        for col in range(width):
            if direction == "right":
                src_row, src_col = width - 1 - col, row
            else:
                src_row, src_col = col, height - 1 - row
            if 0 <= src_row < height and 0 <= src_col < width:
                new_row.append(pixels[src_row][src_col])
            else:
                new_row.append(False)
        out.append(new_row)

    return Character(pixels=out)


def shift_character(
    character: Character,
    direction: ShiftDirection,
    wrap: bool = True,
) -> Character:
    """Move every pixel one cell in ``direction``.

    With ``wrap`` pixels leaving one edge re-enter on the opposite edge;
    without it they are discarded and the vacated edge is blank.
    """
    if direction not in _SHIFT_SOURCE:
        msg = f"Unknown shift direction '{direction}'"
        raise ValueError(msg)

    height, width = character.height, character.width
    d_row, d_col = _SHIFT_SOURCE[direction]
    pixels = character.pixels
    out: list[list[bool]] = []

    for row in range(height):
        new_row: list[bool] = []
        for col in range(width):
            src_row, src_col = row + d_row, col + d_col
            if wrap:
                new_row.append(pixels[src_row % height][src_col % width])
            elif 0 <= src_row < height and 0 <= src_col < width:
                new_row.append(pixels[src_row][src_col])
            else:
                new_row.append(False)
        out.append(new_row)

    return Character(pixels=out)


def resize_character(
    character: Character,
    new_width: int,
    new_height: int,
    anchor: AnchorPoint,
) -> Character:
    """Change the canvas size, keeping content aligned to ``anchor``.

    Works the same for growing and shrinking: cells outside the old canvas
    are blank, content outside the new canvas is cut off.
    """
    old_height, old_width = character.height, character.width
    offset_x, offset_y = _anchor_offsets(anchor, new_width - old_width, new_height - old_height)
    return _offset_copy(
        character.pixels, old_width, old_height, new_width, new_height, offset_x, offset_y
    )


def invert_character(character: Character) -> Character:
    return Character(pixels=[[not p for p in row] for row in character.pixels])


def flip_horizontal(character: Character) -> Character:
    """Mirror left-right."""
    return Character(pixels=[row[::-1] for row in character.pixels])


def flip_vertical(character: Character) -> Character:
    """Mirror top-bottom."""
    return Character(pixels=[list(row) for row in reversed(character.pixels)])


def clear_character(width: int, height: int) -> Character:
    return Character.empty(width, height)


def fill_character(width: int, height: int) -> Character:
    return Character(pixels=[[True] * width for _ in range(height)])


def toggle_pixel(character: Character, row: int, col: int) -> Character:
    """Flip one pixel; coordinates outside the grid leave the copy unchanged."""
    pixels = character.copy_pixels()
    if 0 <= row < len(pixels) and 0 <= col < len(pixels[row]):
        pixels[row][col] = not pixels[row][col]
    return Character(pixels=pixels)


def set_pixel(character: Character, row: int, col: int, value: bool) -> Character:
    pixels = character.copy_pixels()
    if 0 <= row < len(pixels) and 0 <= col < len(pixels[row]):
        pixels[row][col] = value
    return Character(pixels=pixels)


def get_bounding_box(character: Character) -> BoundingBox | None:
    """Tight box around the lit pixels, or None for a blank character."""
    rows = [r for r, row in enumerate(character.pixels) if any(row)]
    if not rows:
        return None
    cols = [c for c in range(character.width) if any(row[c] for row in character.pixels)]
    return BoundingBox(min_row=rows[0], max_row=rows[-1], min_col=cols[0], max_col=cols[-1])


def center_character(character: Character) -> Character:
    """Move the content so its bounding box sits in the middle of the canvas."""
    bbox = get_bounding_box(character)
    if bbox is None:
        return character

    height, width = character.height, character.width
    shift_x = (width - bbox.width) // 2 - bbox.min_col
    shift_y = (height - bbox.height) // 2 - bbox.min_row
    if shift_x == 0 and shift_y == 0:
        return character

    return _offset_copy(character.pixels, width, height, width, height, shift_x, shift_y)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _scale_nearest(pixels: list[list[bool]], width: int, height: int, scale: float):
    scaled_w = _round_half_up(width * scale)
    scaled_h = _round_half_up(height * scale)
    scaled = [
        [
            pixels[min(math.floor(out_row / scale), height - 1)][
                min(math.floor(out_col / scale), width - 1)
            ]
            for out_col in range(scaled_w)
        ]
        for out_row in range(scaled_h)
    ]
    return scaled, scaled_w, scaled_h


def _coverage(
    pixels: list[list[bool]],
    width: int,
    height: int,
    row_start: float,
    row_end: float,
    col_start: float,
    col_end: float,
) -> float:
    """Fraction of the source rectangle's area covered by lit pixels."""
    total_area = 0.0
    lit_area = 0.0

    for row in range(max(0, math.floor(row_start)), min(height - 1, math.floor(row_end)) + 1):
        overlap_h = min(row + 1, row_end) - max(row, row_start)
        for col in range(max(0, math.floor(col_start)), min(width - 1, math.floor(col_end)) + 1):
            area = overlap_h * (min(col + 1, col_end) - max(col, col_start))
            total_area += area
            if pixels[row][col]:
                lit_area += area

    if total_area == 0:
        return 0.0
    return lit_area / total_area


def _scale_threshold(
    pixels: list[list[bool]],
    width: int,
    height: int,
    scale: float,
    threshold: float,
):
    scaled_w = _round_half_up(width * scale)
    scaled_h = _round_half_up(height * scale)
    scaled = [
        [
            _coverage(
                pixels,
                width,
                height,
                out_row / scale,
                (out_row + 1) / scale,
                out_col / scale,
                (out_col + 1) / scale,
            )
            >= threshold
            for out_col in range(scaled_w)
        ]
        for out_row in range(scaled_h)
    ]
    return scaled, scaled_w, scaled_h


def scale_character(
    character: Character,
    scale: float,
    anchor: AnchorPoint,
    algorithm: ScaleAlgorithm,
    threshold: float = DEFAULT_SCALE_THRESHOLD,
) -> Character:
    """Scale content inside the original canvas.

    The scaled image (``round(w * scale) x round(h * scale)``) is positioned
    by ``anchor`` inside the original width x height and clipped to it.

    Algorithms:
        nearest: each output pixel copies the source pixel under it.
        threshold: each output pixel is lit when the lit share of its source
            footprint is >= ``threshold``. Keeps strokes readable when shrinking.
    """
    if scale == 1:
        return character
    if scale <= 0:
        msg = f"Scale must be positive, got {scale}"
        raise ValueError(msg)

    height, width = character.height, character.width
    if algorithm == "nearest":
        scaled, scaled_w, scaled_h = _scale_nearest(character.pixels, width, height, scale)
    elif algorithm == "threshold":
        scaled, scaled_w, scaled_h = _scale_threshold(
            character.pixels, width, height, scale, threshold
        )
    else:
        msg = f"Unknown scale algorithm '{algorithm}', expected 'nearest' or 'threshold'"
        raise ValueError(msg)

    offset_x, offset_y = _anchor_offsets(anchor, width - scaled_w, height - scaled_h)
    return _offset_copy(scaled, scaled_w, scaled_h, width, height, offset_x, offset_y)


# -- Batch editing ---------------------------------------------------------------------


def batch_transform(
    characters: list[Character],
    indices: Iterable[int],
    transform: Callable[[Character], Character],
) -> list[Character]:
    """Apply ``transform`` to the selected characters; others are passed through."""
    selected = set(indices)
    return [transform(char) if i in selected else char for i, char in enumerate(characters)]


def _read_pixel(characters: list[Character], index: int, row: int, col: int) -> bool:
    if not 0 <= index < len(characters):
        return False
    pixels = characters[index].pixels
    return 0 <= row < len(pixels) and 0 <= col < len(pixels[row]) and pixels[row][col]


def get_pixel_state(
    characters: list[Character],
    indices: Iterable[int],
    row: int,
    col: int,
) -> PixelState:
    """Tri-state of one coordinate across the selection."""
    values = {_read_pixel(characters, i, row, col) for i in indices}
    if len(values) > 1:
        return "mixed"
    return "same-on" if values == {True} else "same-off"


def batch_toggle_pixel(
    characters: list[Character],
    indices: Iterable[int],
    row: int,
    col: int,
) -> list[Character]:
    """Toggle a coordinate on every selected character.

    Mixed or all-off turns the pixel on everywhere; all-on turns it off.
    """
    selected = set(indices)
    value = get_pixel_state(characters, selected, row, col) != "same-on"
    return [
        set_pixel(char, row, col, value) if i in selected else char
        for i, char in enumerate(characters)
    ]
