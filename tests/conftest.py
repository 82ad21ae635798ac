"""Shared fixtures for charrom tests."""

import json
import os

import pytest
from PIL import Image

from charrom.binary import serialize_character_set
from charrom.schema import (
    Character,
    CharacterSet,
    CharacterSetConfig,
    CharacterSetMetadata,
)

# -- Paths ------------------------------------------------------------------

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"

HAS_DEJAVU = os.path.exists(DEJAVU_SANS)

skip_no_font = pytest.mark.skipif(not HAS_DEJAVU, reason="DejaVu Sans not installed")

# The "A" of a classic 8x8 ROM font, one byte per row
LETTER_A_BYTES = bytes([0x18, 0x3C, 0x66, 0x7E, 0x66, 0x66, 0x66, 0x00])
LETTER_A_ROWS = [
    "...##...",
    "..####..",
    ".##..##.",
    ".######.",
    ".##..##.",
    ".##..##.",
    ".##..##.",
    "........",
]


def make_set(characters, config=None, name="Test Set", **metadata):
    """Build a CharacterSet with sensible defaults."""
    return CharacterSet(
        metadata=CharacterSetMetadata(name=name, **metadata),
        config=config or CharacterSetConfig(),
        characters=characters,
    )


def make_record(characters, config=None, name="Test Set", **metadata):
    """Build a SerializedCharacterSet with sensible defaults."""
    return serialize_character_set(make_set(characters, config, name, **metadata))


# -- Simple data fixtures ---------------------------------------------------


@pytest.fixture()
def default_config():
    return CharacterSetConfig()


@pytest.fixture()
def letter_a():
    """The 8x8 letter A."""
    return Character.from_rows(LETTER_A_ROWS)


@pytest.fixture()
def blank_8x8():
    return Character.empty(8, 8)


@pytest.fixture()
def small_glyph():
    """A 3x3 diamond."""
    return Character.from_rows([".#.", "#.#", ".#."])


@pytest.fixture()
def sample_set(letter_a, blank_8x8):
    """A three-character 8x8 set: blank, A, inverted blank (filled)."""
    filled = Character(pixels=[[True] * 8 for _ in range(8)])
    return make_set([blank_8x8, letter_a, filled])


@pytest.fixture()
def sample_record_data(sample_set):
    """The persisted JSON dict of ``sample_set``."""
    return serialize_character_set(sample_set).to_dict()


@pytest.fixture()
def record_file(tmp_path, sample_record_data):
    """``sample_set`` written to a record JSON file."""
    path = tmp_path / "sample.json"
    path.write_text(json.dumps(sample_record_data), encoding="utf-8")
    return path


@pytest.fixture()
def sheet_image():
    """A 16x8 RGB sheet holding two 8x8 cells: the letter A, then a filled block."""
    img = Image.new("RGB", (16, 8), (255, 255, 255))
    for y, row in enumerate(LETTER_A_ROWS):
        for x, mark in enumerate(row):
            if mark == "#":
                img.putpixel((x, y), (0, 0, 0))
    for y in range(8):
        for x in range(8, 16):
            img.putpixel((x, y), (0, 0, 0))
    return img
