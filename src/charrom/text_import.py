"""Extract byte values from pasted source code (C arrays, assembly, plain lists).

Four literal styles are recognised anywhere in the text, in one pass:
``0x7E`` and ``$7E`` (hex), ``0b01111110`` (binary) and bare decimals ``126``.
Only lowercase ``0x``/``0b`` prefixes are matched: ``0XFF`` yields nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

from charrom.binary import parse_character_rom
from charrom.schema import BitDirection, Character, CharacterSetConfig, PaddingDirection

DetectedFormat = Literal["hex", "decimal", "binary", "mixed"]

TOKEN_PATTERN = re.compile(
    r"0x[0-9a-fA-F]{1,2}|\$[0-9a-fA-F]{1,2}|0b[01]{1,8}|\b\d{1,3}\b",
    re.ASCII,
)

FORMAT_NAMES: dict[str, str] = {
    "hex": "hexadecimal",
    "decimal": "decimal",
    "binary": "binary",
    "mixed": "mixed formats",
}

ERROR_NO_INPUT = "No input provided"
ERROR_NO_TOKENS = "No valid byte values found in input"
ERROR_ALL_OUT_OF_RANGE = "No valid byte values found (all values were out of range 0-255)"


@dataclass
class ParseResult:
    """Bytes found in a text, with the literal style that produced them."""

    bytes: list[int] = field(default_factory=list)
    format: DetectedFormat = "hex"
    invalid_count: int = 0
    error: str | None = None


@dataclass
class TextImportOptions:
    char_width: int = 8
    char_height: int = 8
    padding: PaddingDirection = "right"
    bit_direction: BitDirection = "msb"

    def to_config(self) -> CharacterSetConfig:
        return CharacterSetConfig(
            width=self.char_width,
            height=self.char_height,
            padding=self.padding,
            bit_direction=self.bit_direction,
        )


@dataclass
class TextParseResult:
    bytes: bytes
    characters: list[Character]
    config: CharacterSetConfig
    detected_format: DetectedFormat
    invalid_count: int
    error: str | None = None


def _token_value(token: str) -> tuple[int, str]:
    """Return (value, style) for a matched token."""
    if token.startswith("0x"):
        return int(token[2:], 16), "hex"
    if token.startswith("$"):
        return int(token[1:], 16), "hex"
    if token.startswith("0b"):
        return int(token[2:], 2), "binary"
    return int(token), "decimal"


def parse_text_to_bytes(text: str) -> ParseResult:
    """Find every byte literal in ``text``.

    Errors are reported on the result instead of raised. Decimal values
    outside 0-255 are skipped and counted in ``invalid_count``; a leading
    minus sign is not part of a token, so ``-5`` reads as ``5``.
    """
    if not text.strip():
        return ParseResult(error=ERROR_NO_INPUT)

    tokens = TOKEN_PATTERN.findall(text)
    if not tokens:
        return ParseResult(error=ERROR_NO_TOKENS)

    values: list[int] = []
    styles: set[str] = set()
    invalid = 0

    for token in tokens:
        value, style = _token_value(token)
        if 0 <= value <= 255:
            values.append(value)
            styles.add(style)
        else:
            invalid += 1

    if not values:
        return ParseResult(invalid_count=invalid, error=ERROR_ALL_OUT_OF_RANGE)

    detected = styles.pop() if len(styles) == 1 else "mixed"
    return ParseResult(bytes=values, format=detected, invalid_count=invalid)


def parse_text_to_characters(text: str, options: TextImportOptions) -> TextParseResult:
    """Parse ``text`` into whole characters; leftover bytes are ignored."""
    parsed = parse_text_to_bytes(text)

    if parsed.error or not parsed.bytes:
        return TextParseResult(
            bytes=b"",
            characters=[],
            config=CharacterSetConfig(),
            detected_format=parsed.format,
            invalid_count=parsed.invalid_count,
            error=parsed.error,
        )

    data = bytes(parsed.bytes)
    config = options.to_config()
    return TextParseResult(
        bytes=data,
        characters=parse_character_rom(data, config, include_partial=False),
        config=config,
        detected_format=parsed.format,
        invalid_count=parsed.invalid_count,
    )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def get_parse_result_summary(result: TextParseResult) -> str:
    """One-line description, e.g. ``16 bytes detected (hexadecimal) -> 2 characters``."""
    if result.error:
        return result.error

    summary = f"{len(result.bytes)} bytes detected ({FORMAT_NAMES[result.detected_format]})"
    if result.characters:
        summary += f" -> {_plural(len(result.characters), 'character')}"
    if result.invalid_count:
        summary += f" ({_plural(result.invalid_count, 'invalid value')} skipped)"
    return summary
