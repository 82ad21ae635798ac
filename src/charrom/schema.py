"""Pydantic v2 models for characters, character set configs and library records."""

from __future__ import annotations

import time
import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PaddingDirection = Literal["left", "right"]
BitDirection = Literal["ltr", "rtl", "msb", "lsb"]
ByteOrder = Literal["big", "little"]
AnchorPoint = Literal["tl", "tc", "tr", "ml", "mc", "mr", "bl", "bc", "br"]

_LIT_MARKS = frozenset("#1Xx*")


def generate_id() -> str:
    """Generate a unique character set ID."""
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current time as a millisecond timestamp."""
    return int(time.time() * 1000)


class Character(BaseModel):
    """One glyph: a rectangular grid of booleans, indexed [row][column]."""

    pixels: list[list[bool]]

    @model_validator(mode="after")
    def rows_same_length(self) -> Character:
        if not self.pixels:
            return self
        width = len(self.pixels[0])
        for i, row in enumerate(self.pixels):
            if len(row) != width:
                msg = f"Pixel row {i} has length {len(row)}, expected {width}"
                raise ValueError(msg)
        return self

    @property
    def height(self) -> int:
        return len(self.pixels)

    @property
    def width(self) -> int:
        return len(self.pixels[0]) if self.pixels else 0

    @classmethod
    def empty(cls, width: int, height: int) -> Character:
        return cls(pixels=[[False] * width for _ in range(height)])

    @classmethod
    def from_rows(cls, rows: list[str]) -> Character:
        """Build a character from strings such as ``["#..#", ".##."]``.

        ``#``, ``1``, ``X`` and ``*`` are lit; anything else is background.
        """
        return cls(pixels=[[c in _LIT_MARKS for c in row] for row in rows])

    def to_rows(self, on: str = "#", off: str = ".") -> list[str]:
        return ["".join(on if p else off for p in row) for row in self.pixels]

    def copy_pixels(self) -> list[list[bool]]:
        """Deep copy of the pixel grid."""
        return [list(row) for row in self.pixels]

    def is_blank(self) -> bool:
        return not any(any(row) for row in self.pixels)


class CharacterSetConfig(BaseModel):
    """Binary layout of one character: dimensions, padding and bit order."""

    model_config = ConfigDict(populate_by_name=True)

    width: int = 8
    height: int = 8
    padding: PaddingDirection = "right"
    bit_direction: BitDirection = Field(default="ltr", alias="bitDirection")
    byte_order: ByteOrder = Field(default="big", alias="byteOrder")

    @field_validator("width", "height")
    @classmethod
    def dimension_positive(cls, v: int) -> int:
        if v < 1:
            msg = f"Character dimensions must be >= 1, got {v}"
            raise ValueError(msg)
        return v

    @property
    def msb_first(self) -> bool:
        """True when column 0 maps to the most significant data bit."""
        return self.bit_direction in ("ltr", "msb")

    def to_dict(self) -> dict:
        """Dump with camelCase keys; byteOrder is omitted when it is the default."""
        data = self.model_dump(by_alias=True)
        if data["byteOrder"] == "big":
            data.pop("byteOrder")
        return data


class CharacterSetMetadata(BaseModel):
    """Library metadata for a character set."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id)
    name: str
    description: str = ""
    source: str = "yourself"
    manufacturer: str | None = None
    system: str | None = None
    chip: str | None = None
    locale: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = Field(default=False, alias="isPinned")
    is_built_in: bool = Field(default=False, alias="isBuiltIn")
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    updated_at: int = Field(default_factory=now_ms, alias="updatedAt")
    built_in_version: int | None = Field(default=None, alias="builtInVersion")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "Character set name must not be empty"
            raise ValueError(msg)
        return v


class CharacterSet(BaseModel):
    """A complete character set; list index is the character code / ROM offset."""

    metadata: CharacterSetMetadata
    config: CharacterSetConfig
    characters: list[Character]


class SerializedCharacterSet(BaseModel):
    """Storage form of a character set: ROM bytes as base64."""

    model_config = ConfigDict(populate_by_name=True)

    metadata: CharacterSetMetadata
    config: CharacterSetConfig
    binary_data: str = Field(alias="binaryData")

    def to_dict(self) -> dict:
        """Dump to the persisted JSON record layout (camelCase keys)."""
        return {
            "metadata": self.metadata.model_dump(by_alias=True, exclude_none=True),
            "config": self.config.to_dict(),
            "binaryData": self.binary_data,
        }
