"""Conversion between binary ROM data and Character objects.

Each character row occupies ``ceil(width / 8)`` bytes. Within a row the data
bits are laid out as follows (7-bit example, pixels ``0001110``):

- ltr/msb, right padding: ``00011100``
- ltr/msb, left padding:  ``00001110``
- rtl/lsb, right padding: ``01110000``
- rtl/lsb, left padding:  ``00111000``

``byte_order="little"`` reverses the bytes of multi-byte rows after packing.
Decoding never fails on short input: bytes past the end of the buffer read
as zero, so truncated ROM dumps produce blank pixels.
"""

from __future__ import annotations

import base64

from charrom.schema import (
    AnchorPoint,
    Character,
    CharacterSet,
    CharacterSetConfig,
    SerializedCharacterSet,
)
from charrom.transforms import resize_character


def bytes_per_line(width: int) -> int:
    """Bytes needed for one pixel row."""
    return (width + 7) // 8


def bytes_per_character(config: CharacterSetConfig) -> int:
    """Total bytes for one character."""
    return bytes_per_line(config.width) * config.height


def _bit_index(config: CharacterSetConfig, col: int, padding_bits: int) -> int:
    """Position of a pixel in the row bit string (0 = MSB of the first byte)."""
    start = padding_bits if config.padding == "left" else 0
    if config.msb_first:
        return start + col
    return start + (config.width - 1 - col)


def _pixel(character: Character, row: int, col: int) -> bool:
    if row >= len(character.pixels):
        return False
    pixels_row = character.pixels[row]
    return col < len(pixels_row) and pixels_row[col]


def character_to_bytes(character: Character, config: CharacterSetConfig) -> bytes:
    """Pack a character into ``bytes_per_character(config)`` bytes.

    Pixels missing from the character (smaller grid than the config) pack as 0.
    """
    bpl = bytes_per_line(config.width)
    total_bits = bpl * 8
    padding_bits = total_bits - config.width
    out = bytearray()

    for row in range(config.height):
        value = 0
        for col in range(config.width):
            if _pixel(character, row, col):
                value |= 1 << (total_bits - 1 - _bit_index(config, col, padding_bits))

        row_bytes = value.to_bytes(bpl, "big")
        if config.byte_order == "little" and bpl > 1:
            row_bytes = row_bytes[::-1]
        out += row_bytes

    return bytes(out)


def bytes_to_character(
    data: bytes | bytearray | memoryview,
    offset: int,
    config: CharacterSetConfig,
) -> Character:
    """Decode one character starting at ``offset``; missing bytes decode as blank."""
    bpl = bytes_per_line(config.width)
    total_bits = bpl * 8
    padding_bits = total_bits - config.width
    size = len(data)
    pixels: list[list[bool]] = []

    for row in range(config.height):
        start = offset + row * bpl
        row_bytes = bytes(data[i] if 0 <= i < size else 0 for i in range(start, start + bpl))
        if config.byte_order == "little" and bpl > 1:
            row_bytes = row_bytes[::-1]
        value = int.from_bytes(row_bytes, "big")

        pixels.append(
            [
                bool(value >> (total_bits - 1 - _bit_index(config, col, padding_bits)) & 1)
                for col in range(config.width)
            ]
        )

    return Character(pixels=pixels)


def parse_character_rom(
    data: bytes | bytearray | memoryview,
    config: CharacterSetConfig,
    *,
    include_partial: bool = True,
) -> list[Character]:
    """Split a ROM image into characters.

    A truncated trailing chunk becomes a character padded with blank pixels
    unless ``include_partial`` is False, in which case it is dropped.
    """
    char_size = bytes_per_character(config)
    full, remainder = divmod(len(data), char_size)
    count = full + (1 if include_partial and remainder else 0)
    return [bytes_to_character(data, i * char_size, config) for i in range(count)]


def serialize_character_rom(characters: list[Character], config: CharacterSetConfig) -> bytes:
    """Concatenate the packed bytes of every character in index order."""
    return b"".join(character_to_bytes(char, config) for char in characters)


def binary_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def base64_to_binary(encoded: str) -> bytes:
    return base64.b64decode(encoded, validate=True)


def serialize_character_set(character_set: CharacterSet) -> SerializedCharacterSet:
    """Convert a character set to its storage form."""
    data = serialize_character_rom(character_set.characters, character_set.config)
    return SerializedCharacterSet(
        metadata=character_set.metadata,
        config=character_set.config,
        binary_data=binary_to_base64(data),
    )


def deserialize_character_set(serialized: SerializedCharacterSet) -> CharacterSet:
    """Inverse of :func:`serialize_character_set`."""
    data = base64_to_binary(serialized.binary_data)
    return CharacterSet(
        metadata=serialized.metadata,
        config=serialized.config,
        characters=parse_character_rom(data, serialized.config),
    )


def convert_character(
    character: Character,
    source_config: CharacterSetConfig,
    target_config: CharacterSetConfig,
    anchor: AnchorPoint = "tl",
) -> Character:
    """Fit a character into another config's dimensions, anchored at ``anchor``."""
    if (source_config.width, source_config.height) == (target_config.width, target_config.height):
        return Character(pixels=character.copy_pixels())
    return resize_character(character, target_config.width, target_config.height, anchor)
