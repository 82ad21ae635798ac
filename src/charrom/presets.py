"""Known character ROM formats: cell sizes, character counts, code ranges, makers and systems.

Used by the import commands to resolve ``--preset`` and ``--range`` and to
annotate import summaries with the systems that share a cell size.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class DimensionPreset:
    """A glyph size with systems/chips that use it.

    ``priority`` ranks how widely used the size is (3 essential ... 0 rare).
    """

    width: int
    height: int
    label: str
    examples: tuple[str, ...] = ()
    recommended_font_size: int | None = None
    priority: int = 0


@dataclass(frozen=True)
class CharacterCountPreset:
    count: int
    label: str
    examples: tuple[str, ...] = ()
    description: str = ""
    priority: int = 0


@dataclass(frozen=True)
class CharacterRangePreset:
    """An inclusive code point range for font import."""

    name: str
    start_code: int
    end_code: int
    description: str = ""

    @property
    def count(self) -> int:
        return self.end_code - self.start_code + 1

    @property
    def slug(self) -> str:
        return _slug(self.name)


@dataclass(frozen=True)
class MakerSystems:
    maker: str
    systems: tuple[str, ...]


@dataclass(frozen=True)
class SystemPreset:
    system: str
    maker: str
    width: int
    height: int


# Glyph sizes (drawn pixels, not cell size) of historical character generators
DIMENSION_PRESETS: tuple[DimensionPreset, ...] = (
    DimensionPreset(5, 7, "5x7", ("Apple II", "TRS-80 CoCo", "Dragon 32", "MC6847"), 6, 3),
    DimensionPreset(5, 8, "5x8", ("TRS-80 Model I", "MCM6673"), 7, 2),
    DimensionPreset(5, 9, "5x9", ("BBC Micro Mode 7", "Philips P2000", "SAA5050 Teletext"), 8, 2),
    DimensionPreset(6, 8, "6x8", ("Custom",), 7, 0),
    DimensionPreset(
        8,
        8,
        "8x8",
        ("C64", "VIC-20", "Atari 400/800", "ZX Spectrum", "TI-99/4A", "MSX", "ColecoVision"),
        8,
        3,
    ),
    DimensionPreset(5, 10, "5x10", ("HD44780U LCD",), 9, 1),
    DimensionPreset(6, 10, "6x10", (), 9, 0),
    DimensionPreset(5, 12, "5x12", (), 10, 0),
    DimensionPreset(7, 12, "7x12", (), 11, 0),
    DimensionPreset(8, 12, "8x12", ("EGA 43-line mode",), 11, 0),
    DimensionPreset(8, 14, "8x14", ("IBM EGA", "VGA 25-line"), 13, 1),
    DimensionPreset(5, 16, "5x16", (), 14, 0),
    DimensionPreset(8, 16, "8x16", ("IBM VGA", "PC BIOS"), 14, 2),
    DimensionPreset(16, 16, "16x16", ("CJK Characters", "Icons"), 14, 1),
    DimensionPreset(32, 32, "32x32", ("Large Icons", "Sprites"), 28, 0),
)

# Per-bank character counts of common ROMs
CHARACTER_COUNT_PRESETS: tuple[CharacterCountPreset, ...] = (
    CharacterCountPreset(
        64, "64", ("Apple II", "TRS-80 CoCo", "Dragon 32", "MC6847"), "Quarter ROM", 2
    ),
    CharacterCountPreset(
        96, "96", ("ZX Spectrum", "BBC Micro Mode 7", "SAA5050"), "Printable ASCII / Teletext", 2
    ),
    CharacterCountPreset(128, "128", ("Atari 400/800", "TRS-80 Model I"), "Half ROM", 3),
    CharacterCountPreset(213, "213", ("Intellivision GROM",), "Intellivision", 1),
    CharacterCountPreset(
        256, "256", ("C64", "VIC-20", "TI-99/4A", "MSX", "ColecoVision"), "Full Set", 3
    ),
    CharacterCountPreset(512, "512", ("Extended ROM",), "Extended", 0),
)

CHARACTER_RANGE_PRESETS: tuple[CharacterRangePreset, ...] = (
    CharacterRangePreset("Printable ASCII", 32, 126, "Space through tilde (~)"),
    CharacterRangePreset("Extended ASCII", 32, 255, "Includes accented characters"),
    CharacterRangePreset("Uppercase Only", 65, 90, "A-Z"),
    CharacterRangePreset("Lowercase Only", 97, 122, "a-z"),
    CharacterRangePreset("Digits Only", 48, 57, "0-9"),
    CharacterRangePreset("Full 256", 0, 255, "All 256 codes with blanks"),
)

KNOWN_MAKERS: tuple[MakerSystems, ...] = (
    MakerSystems("Commodore", ("C64", "VIC-20", "C128", "PET", "Plus/4", "C16", "Amiga")),
    MakerSystems("Apple", ("Apple II", "Apple IIe", "Apple IIc", "Apple IIgs", "Apple III")),
    MakerSystems("Sinclair", ("ZX Spectrum", "ZX81", "ZX80", "QL")),
    MakerSystems(
        "Atari", ("Atari 400/800", "Atari ST", "Atari 2600", "Atari 7800", "Atari Lynx")
    ),
    MakerSystems("IBM", ("PC CGA", "PC EGA", "PC VGA", "PC MDA", "PC Hercules")),
    MakerSystems(
        "Nintendo", ("NES/Famicom", "SNES", "Game Boy", "Game Boy Color", "Game Boy Advance")
    ),
    MakerSystems("Sega", ("Master System", "Genesis/Mega Drive", "Game Gear", "Saturn")),
    MakerSystems("Amstrad", ("CPC 464", "CPC 6128", "CPC 664", "PCW")),
    MakerSystems("Texas Instruments", ("TI-99/4A",)),
    MakerSystems(
        "Tandy",
        ("TRS-80 Model I", "TRS-80 Model III", "TRS-80 Color Computer", "TRS-80 Model 4"),
    ),
    MakerSystems("MSX", ("MSX", "MSX2", "MSX2+", "MSX turbo R")),
    MakerSystems("Acorn", ("BBC Micro", "Electron", "Archimedes")),
    MakerSystems("Coleco", ("ColecoVision", "Adam")),
    MakerSystems("Mattel", ("Intellivision",)),
    MakerSystems("NEC", ("PC Engine/TurboGrafx-16", "PC-8801", "PC-9801")),
    MakerSystems("Sharp", ("MZ-80", "X1", "X68000")),
)

# Character cell size of popular 8-bit systems
SYSTEM_PRESETS: tuple[SystemPreset, ...] = (
    SystemPreset("C64", "Commodore", 8, 8),
    SystemPreset("VIC-20", "Commodore", 8, 8),
    SystemPreset("ZX80", "Sinclair", 8, 8),
    SystemPreset("ZX81", "Sinclair", 8, 8),
    SystemPreset("ZX Spectrum", "Sinclair", 8, 8),
    SystemPreset("Apple II", "Apple", 8, 8),
    SystemPreset("Atari 400/800", "Atari", 8, 8),
    SystemPreset("NES/Famicom", "Nintendo", 8, 8),
    SystemPreset("CPC 464", "Amstrad", 8, 16),
    SystemPreset("CPC 6128", "Amstrad", 8, 16),
    SystemPreset("BBC Micro", "Acorn", 8, 8),
    SystemPreset("TRS-80 Model I", "Tandy", 8, 8),
    SystemPreset("MSX", "MSX", 8, 8),
    SystemPreset("TI-99/4A", "Texas Instruments", 8, 8),
)

_SIZE_LABEL = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


# -- sizes and counts -------------------------------------------------------------------


def find_dimension_preset(width: int, height: int) -> DimensionPreset | None:
    return next((p for p in DIMENSION_PRESETS if (p.width, p.height) == (width, height)), None)


def find_character_count_preset(count: int) -> CharacterCountPreset | None:
    return next((p for p in CHARACTER_COUNT_PRESETS if p.count == count), None)


def get_dimension_examples(width: int, height: int) -> str:
    """Comma-separated systems using ``width`` x ``height`` ("" when unknown)."""
    preset = find_dimension_preset(width, height)
    return ", ".join(preset.examples) if preset else ""


def format_dimension_preset(preset: DimensionPreset, show_examples: bool = True) -> str:
    """``"8x8 (C64...)"``: the label plus the first example system."""
    if show_examples and preset.examples:
        more = "..." if len(preset.examples) > 1 else ""
        return f"{preset.label} ({preset.examples[0]}{more})"
    return preset.label


def find_character_range(name: str) -> CharacterRangePreset | None:
    """Look a range up by name, case-insensitively (``"printable-ascii"`` also matches)."""
    wanted = _slug(name)
    return next((r for r in CHARACTER_RANGE_PRESETS if r.slug == wanted), None)


def resolve_size_preset(name: str) -> tuple[int, int]:
    """Resolve ``--preset``: a ``WxH`` size or a system name from :data:`SYSTEM_PRESETS`.

    Raises:
        ValueError: If ``name`` is neither.
    """
    match = _SIZE_LABEL.match(name)
    if match:
        return int(match.group(1)), int(match.group(2))

    system = find_system_preset(name)
    if system is None:
        known = ", ".join(p.system for p in SYSTEM_PRESETS)
        raise ValueError(f"Unknown preset '{name}': use WxH or one of {known}")
    return system.width, system.height


# -- makers and systems -----------------------------------------------------------------


def get_all_makers() -> list[str]:
    return [m.maker for m in KNOWN_MAKERS]


def get_systems_for_maker(maker: str) -> list[str]:
    """Systems of ``maker`` (case-insensitive), empty when the maker is unknown."""
    for entry in KNOWN_MAKERS:
        if entry.maker.lower() == maker.lower():
            return list(entry.systems)
    return []


def get_all_systems() -> list[str]:
    return sorted({system for entry in KNOWN_MAKERS for system in entry.systems})


def is_known_maker(maker: str) -> bool:
    return any(entry.maker.lower() == maker.lower() for entry in KNOWN_MAKERS)


def is_known_system(maker: str, system: str) -> bool:
    return any(s.lower() == system.lower() for s in get_systems_for_maker(maker))


def find_maker_for_system(system: str) -> str | None:
    """First maker listing ``system`` (case-insensitive)."""
    for entry in KNOWN_MAKERS:
        if any(s.lower() == system.lower() for s in entry.systems):
            return entry.maker
    return None


def find_system_preset(system: str) -> SystemPreset | None:
    return next((p for p in SYSTEM_PRESETS if p.system.lower() == system.lower()), None)


def get_system_presets_by_maker() -> dict[str, list[SystemPreset]]:
    grouped: dict[str, list[SystemPreset]] = {}
    for preset in SYSTEM_PRESETS:
        grouped.setdefault(preset.maker, []).append(preset)
    return grouped
