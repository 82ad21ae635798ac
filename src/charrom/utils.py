"""Formatting, file-type and character comparison helpers."""

from __future__ import annotations

import re
from pathlib import Path

from charrom.binary import bytes_per_character
from charrom.config import BINARY_EXTENSIONS
from charrom.schema import Character, CharacterSetConfig

_SIZE_PATTERN = re.compile(r"^(\d+)x(\d+)$")


def generate_slug(name: str) -> str:
    """Convert a display name to a URL-friendly slug.

    "Commodore 64 Upper" -> "commodore-64-upper"
    "My_Font  Name!" -> "my-font-name"
    """
    slug = re.sub(r"[\s_]+", "-", name.lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def format_file_size(size: int) -> str:
    """Human-readable byte count: ``512 B``, ``2.0 KB``, ``1.5 MB``."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_size(config: CharacterSetConfig) -> str:
    return f"{config.width}x{config.height}"


def parse_size(text: str) -> tuple[int, int] | None:
    """Parse ``"8x16"`` into (8, 16); None if malformed."""
    match = _SIZE_PATTERN.match(text)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def get_suggested_filename(name: str, extension: str = ".bin") -> str:
    cleaned = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{cleaned or 'charset'}{extension}"


def is_valid_binary_file(path: str | Path) -> bool:
    """Known ROM extensions, or no extension at all."""
    suffix = Path(path).suffix.lower()
    return not suffix or suffix in BINARY_EXTENSIONS


def calculate_character_count(file_size: int, config: CharacterSetConfig) -> int:
    """Whole characters that fit in ``file_size`` bytes."""
    return file_size // bytes_per_character(config)


def are_characters_equal(a: Character, b: Character) -> bool:
    return a.pixels == b.pixels


def find_changed_character_indices(source: list[Character], target: list[Character]) -> set[int]:
    """Indices whose characters differ, including indices present in only one list."""
    changed = set(range(min(len(source), len(target)), max(len(source), len(target))))
    changed.update(
        i for i, (a, b) in enumerate(zip(source, target)) if not are_characters_equal(a, b)
    )
    return changed


def find_differing_pixels(a: Character, b: Character) -> set[tuple[int, int]]:
    """(row, col) of every pixel that differs; missing pixels count as unlit."""
    rows = max(a.height, b.height)
    cols = max(a.width, b.width)

    def pixel(char: Character, row: int, col: int) -> bool:
        return row < char.height and col < char.width and char.pixels[row][col]

    return {
        (row, col)
        for row in range(rows)
        for col in range(cols)
        if pixel(a, row, col) != pixel(b, row, col)
    }
