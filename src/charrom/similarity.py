"""Rank library character sets by visual similarity.

Characters are compared after trimming to their bounding boxes and centring
both crops on a shared canvas, so the same glyph drawn at a different offset
compares as identical.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from charrom.binary import deserialize_character_set
from charrom.schema import (
    Character,
    CharacterSetConfig,
    CharacterSetMetadata,
    SerializedCharacterSet,
)
from charrom.transforms import get_bounding_box

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    differing_pixels: int
    total_pixels: int


@dataclass
class CharacterSetSimilarity:
    """How closely one library set matches the source characters."""

    character_set_id: str
    character_set_name: str
    metadata: CharacterSetMetadata
    config: CharacterSetConfig
    average_difference: float
    matched_characters: int
    total_characters: int
    match_percentage: int
    characters: list[Character]


def trim_character(character: Character) -> Character:
    """Crop to the bounding box. A blank character trims to a single unlit pixel."""
    bbox = get_bounding_box(character)
    if bbox is None:
        return Character(pixels=[[False]])
    return Character(
        pixels=[
            row[bbox.min_col : bbox.max_col + 1]
            for row in character.pixels[bbox.min_row : bbox.max_row + 1]
        ]
    )


def _centered_pixel(
    pixels: list[list[bool]],
    row: int,
    col: int,
    row_offset: int,
    col_offset: int,
) -> bool:
    r, c = row - row_offset, col - col_offset
    return 0 <= r < len(pixels) and 0 <= c < len(pixels[0]) and pixels[r][c]


def compare_trimmed_characters(source: Character, target: Character) -> ComparisonResult:
    """Count mismatching pixels between two trimmed, centred characters."""
    a = trim_character(source)
    b = trim_character(target)

    max_h = max(a.height, b.height)
    max_w = max(a.width, b.width)
    a_offsets = ((max_h - a.height) // 2, (max_w - a.width) // 2)
    b_offsets = ((max_h - b.height) // 2, (max_w - b.width) // 2)

    differing = sum(
        _centered_pixel(a.pixels, row, col, *a_offsets)
        != _centered_pixel(b.pixels, row, col, *b_offsets)
        for row in range(max_h)
        for col in range(max_w)
    )
    return ComparisonResult(differing_pixels=differing, total_pixels=max_h * max_w)


def calculate_similarities(
    source_characters: list[Character],
    source_config: CharacterSetConfig,
    library_sets: list[SerializedCharacterSet],
    exclude_id: str | None = None,
) -> list[CharacterSetSimilarity]:
    """Compare the source against every library set, most similar first.

    Characters are paired by index up to the shorter of the two sets. Sets
    with nothing to compare are skipped, as are sets whose data cannot be
    decoded (logged as a warning). ``source_config`` is unused;
    comparison works on trimmed glyphs of any size.
    """
    results: list[CharacterSetSimilarity] = []

    for serialized in library_sets:
        set_id = serialized.metadata.id
        if exclude_id and set_id == exclude_id:
            continue

        try:
            target = deserialize_character_set(serialized).characters
        except ValueError as e:
            logger.warning("Skipping character set %s: failed to deserialize (%s)", set_id, e)
            continue

        count = min(len(source_characters), len(target))
        if count == 0:
            continue

        total_diff = 0
        total_pixels = 0
        for src, tgt in zip(source_characters[:count], target[:count]):
            result = compare_trimmed_characters(src, tgt)
            total_diff += result.differing_pixels
            total_pixels += result.total_pixels

        match = math.floor((1 - total_diff / total_pixels) * 100) if total_pixels else 100

        results.append(
            CharacterSetSimilarity(
                character_set_id=set_id,
                character_set_name=serialized.metadata.name,
                metadata=serialized.metadata,
                config=serialized.config,
                average_difference=total_diff / count,
                matched_characters=count,
                total_characters=len(target),
                match_percentage=match,
                characters=target,
            )
        )

    results.sort(key=lambda r: r.average_difference)
    return results
