"""Encode character sets into URL fragments and back.

Two blob formats are understood:

v1: ``base64(utf8(json))`` of ``{"v": 1, "n": name, "d": description,
    "c": [width, height, padding, bitDirection], "b": base64(rom)}``.

v2: ``"2:" + base64url(raw_deflate(payload))`` where payload is
    ``[width][height][flags] name\\0 description\\0 rom``; flags bit 0 is set
    for left padding, bit 1 for lsb-first bit order.

:func:`decode_character_set` picks the format from the ``2:`` prefix.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
import zlib
from dataclasses import dataclass
from typing import Literal

from charrom.binary import (
    base64_to_binary,
    binary_to_base64,
    parse_character_rom,
    serialize_character_rom,
)
from charrom.config import (
    MAX_RECOMMENDED_URL_LENGTH,
    MAX_URL_LENGTH,
    SHARE_BASE_PATH,
    SHARE_FORMAT_VERSION,
    SHARE_V2_PREFIX,
)
from charrom.schema import Character, CharacterSetConfig

UrlLengthStatus = Literal["ok", "warning", "error"]

_FLAG_LEFT_PADDING = 0x01
_FLAG_LSB_FIRST = 0x02


class ShareDecodeError(ValueError):
    """A share blob is malformed or uses an unsupported version."""


@dataclass
class SharedCharacterSet:
    name: str
    description: str
    characters: list[Character]
    config: CharacterSetConfig


@dataclass
class ShareCheck:
    can_share: bool
    estimated_length: int
    status: UrlLengthStatus
    message: str


# -- v1 ----------------------------------------------------------------------------------


def encode_character_set(
    name: str,
    description: str,
    characters: list[Character],
    config: CharacterSetConfig,
) -> str:
    """Encode as a v1 (JSON) blob."""
    blob = {
        "v": SHARE_FORMAT_VERSION,
        "n": name,
        "d": description,
        "c": [config.width, config.height, config.padding, config.bit_direction],
        "b": binary_to_base64(serialize_character_rom(characters, config)),
    }
    text = json.dumps(blob, ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _decode_v1(encoded: str) -> SharedCharacterSet:
    blob = json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
    if not isinstance(blob, dict) or blob.get("v") != SHARE_FORMAT_VERSION:
        version = blob.get("v") if isinstance(blob, dict) else None
        msg = f"Unsupported share format version: {version!r}"
        raise ShareDecodeError(msg)

    width, height, padding, bit_direction = blob["c"]
    config = CharacterSetConfig(
        width=width, height=height, padding=padding, bit_direction=bit_direction
    )
    return SharedCharacterSet(
        name=blob["n"],
        description=blob["d"],
        characters=parse_character_rom(base64_to_binary(blob["b"]), config),
        config=config,
    )


# -- v2 ----------------------------------------------------------------------------------


def _base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _base64url_decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _deflate(data: bytes) -> bytes:
    compressor = zlib.compressobj(9, zlib.DEFLATED, -15)
    return compressor.compress(data) + compressor.flush()


def _inflate(data: bytes) -> bytes:
    return zlib.decompress(data, -15)


def encode_character_set_v2(
    name: str,
    description: str,
    characters: list[Character],
    config: CharacterSetConfig,
) -> str:
    """Encode as a compact v2 (deflated binary) blob.

    Width and height are stored in one byte each, so both must be <= 255.
    """
    if config.width > 255 or config.height > 255:
        msg = f"v2 share blobs support dimensions up to 255, got {config.width}x{config.height}"
        raise ValueError(msg)

    flags = 0
    if config.padding == "left":
        flags |= _FLAG_LEFT_PADDING
    if not config.msb_first:
        flags |= _FLAG_LSB_FIRST

    payload = (
        bytes([config.width, config.height, flags])
        + name.encode("utf-8")
        + b"\0"
        + description.encode("utf-8")
        + b"\0"
        + serialize_character_rom(characters, config)
    )
    return SHARE_V2_PREFIX + _base64url_encode(_deflate(payload))


def _decode_v2(encoded: str) -> SharedCharacterSet:
    data = _inflate(_base64url_decode(encoded[len(SHARE_V2_PREFIX) :]))
    if len(data) < 3:
        raise ShareDecodeError("Invalid share format: header truncated")

    width, height, flags = data[0], data[1], data[2]

    name_end = data.find(b"\0", 3)
    if name_end == -1:
        raise ShareDecodeError("Invalid share format: name not terminated")
    desc_end = data.find(b"\0", name_end + 1)
    if desc_end == -1:
        raise ShareDecodeError("Invalid share format: description not terminated")

    config = CharacterSetConfig(
        width=width,
        height=height,
        padding="left" if flags & _FLAG_LEFT_PADDING else "right",
        bit_direction="lsb" if flags & _FLAG_LSB_FIRST else "msb",
    )
    return SharedCharacterSet(
        name=data[3:name_end].decode("utf-8"),
        description=data[name_end + 1 : desc_end].decode("utf-8"),
        characters=parse_character_rom(data[desc_end + 1 :], config),
        config=config,
    )


def decode_character_set(encoded: str) -> SharedCharacterSet:
    """Decode a v1 or v2 blob.

    Raises:
        ShareDecodeError: If the blob cannot be decoded or has an unknown version.
    """
    try:
        if encoded.startswith(SHARE_V2_PREFIX):
            return _decode_v2(encoded)
        return _decode_v1(encoded)
    except ShareDecodeError:
        raise
    except (ValueError, KeyError, TypeError, IndexError, binascii.Error, zlib.error) as e:
        msg = f"Failed to decode shared character set: {e}"
        raise ShareDecodeError(msg) from e


# -- URLs --------------------------------------------------------------------------------


def create_share_url(encoded: str, origin: str = "") -> str:
    """Put ``encoded`` in the fragment of the share page URL."""
    return f"{origin.rstrip('/')}{SHARE_BASE_PATH}#{encoded}"


def extract_from_url(url: str) -> str | None:
    """Return the fragment of ``url``, or None if it has none."""
    _, sep, fragment = url.partition("#")
    return fragment if sep else None


def get_url_length_status(url: str) -> UrlLengthStatus:
    if len(url) <= MAX_RECOMMENDED_URL_LENGTH:
        return "ok"
    if len(url) <= MAX_URL_LENGTH:
        return "warning"
    return "error"


def estimate_url_length(character_count: int, char_width: int, char_height: int) -> int:
    """Conservative v2 URL length estimate, assuming 50% compression."""
    total_bytes = character_count * math.ceil(char_width * char_height / 8)
    header_overhead = 3 + 50
    compressed = math.ceil((total_bytes + header_overhead) * 0.5)
    encoded = math.ceil(compressed * 1.34) + len(SHARE_V2_PREFIX)
    return encoded + 50


def can_share(character_count: int, char_width: int, char_height: int) -> ShareCheck:
    estimated = estimate_url_length(character_count, char_width, char_height)

    if estimated <= MAX_RECOMMENDED_URL_LENGTH:
        return ShareCheck(True, estimated, "ok", "Character set can be shared")
    if estimated <= MAX_URL_LENGTH:
        return ShareCheck(
            True,
            estimated,
            "warning",
            "URL may be too long for some platforms. Consider reducing characters.",
        )
    return ShareCheck(
        False,
        estimated,
        "error",
        f"Character set is too large to share ({character_count} characters). "
        "Maximum shareable size depends on character dimensions.",
    )
