"""Text and image exports of a character set: C, assembly, PNG and reference sheets.

Every exporter is a pure function of (characters, config, options): the same
input always yields byte-identical output.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from PIL import Image, ImageDraw, ImageFont

from charrom.binary import bytes_per_character, bytes_per_line, character_to_bytes
from charrom.config import CONTROL_CODE_NAMES
from charrom.schema import Character, CharacterSetConfig

AssemblyDirective = Literal[".byte", "db", ".db", "DC.B"]
ASSEMBLY_DIRECTIVES = (".byte", "db", ".db", "DC.B")

_NON_IDENTIFIER = re.compile(r"[^a-zA-Z0-9_]")


@dataclass
class CHeaderOptions:
    array_name: str
    include_guards: bool = True
    include_comments: bool = True
    bytes_per_line: int = 8


@dataclass
class AssemblyOptions:
    label_name: str
    directive: AssemblyDirective = ".byte"
    use_hex: bool = True
    include_comments: bool = True
    bytes_per_line: int = 8


@dataclass
class PngOptions:
    """Layout and colours of a PNG character sheet."""

    columns: int = 16
    scale: int = 4
    show_grid: bool = True
    grid_color: str = "#4a4a4a"
    foreground_color: str = "#ffffff"
    background_color: str = "#000000"
    transparent: bool = False


@dataclass
class BitLayout:
    """One encoded row: bit string, hex bytes and a P(adding)/D(ata) mask."""

    bits: str
    hex: str
    padding: str


def _sanitize_identifier(name: str) -> str:
    sanitized = _NON_IDENTIFIER.sub("_", name)
    if sanitized[:1].isdigit():
        sanitized = "_" + sanitized
    return sanitized


def get_default_c_header_options(name: str) -> CHeaderOptions:
    return CHeaderOptions(array_name=_sanitize_identifier(name).upper() or "CHARSET")


def get_default_assembly_options(name: str) -> AssemblyOptions:
    return AssemblyOptions(label_name=_sanitize_identifier(name).lower() or "charset")


def get_default_png_options() -> PngOptions:
    return PngOptions()


def _chunks(items: list[str], size: int) -> list[list[str]]:
    size = max(1, size)
    return [items[i : i + size] for i in range(0, len(items), size)]


def export_to_c_header(
    characters: list[Character],
    config: CharacterSetConfig,
    options: CHeaderOptions,
) -> str:
    """Render the ROM as a C array declaration."""
    lines: list[str] = []
    name = options.array_name
    guard = f"{name}_H"
    char_size = bytes_per_character(config)

    if options.include_comments:
        lines += [
            "/**",
            f" * {name} - Character ROM Data",
            " * Generated by charrom",
            " * ",
            f" * Character dimensions: {config.width}x{config.height}",
            f" * Total characters: {len(characters)}",
            f" * Bytes per character: {char_size}",
            " */",
            "",
        ]

    if options.include_guards:
        lines += [f"#ifndef {guard}", f"#define {guard}", ""]

    lines.append(f"static const unsigned char {name}[] = {{")

    last = len(characters) - 1
    for i, char in enumerate(characters):
        hex_bytes = [f"0x{b:02X}" for b in character_to_bytes(char, config)]
        chunks = _chunks(hex_bytes, options.bytes_per_line)
        for j, chunk in enumerate(chunks):
            is_final = i == last and j == len(chunks) - 1
            line = "  " + ", ".join(chunk) + ("" if is_final else ",")
            if options.include_comments and j == 0:
                line += f"  /* Char {i} */"
            lines.append(line)

    lines += ["};", ""]

    if options.include_guards:
        lines += [f"#endif /* {guard} */", ""]

    return "\n".join(lines)


def export_to_assembly(
    characters: list[Character],
    config: CharacterSetConfig,
    options: AssemblyOptions,
) -> str:
    """Render the ROM as assembler data directives under a label."""
    if options.directive not in ASSEMBLY_DIRECTIVES:
        allowed = ", ".join(ASSEMBLY_DIRECTIVES)
        msg = f"Unknown directive '{options.directive}', expected one of: {allowed}"
        raise ValueError(msg)

    lines: list[str] = []
    rule = "; " + "=" * 60

    if options.include_comments:
        lines += [
            rule,
            f"; {options.label_name} - Character ROM Data",
            "; Generated by charrom",
            "; ",
            f"; Character dimensions: {config.width}x{config.height}",
            f"; Total characters: {len(characters)}",
            f"; Bytes per character: {bytes_per_character(config)}",
            rule,
            "",
        ]

    lines.append(f"{options.label_name}:")

    for i, char in enumerate(characters):
        data = character_to_bytes(char, config)
        values = [f"${b:02X}" if options.use_hex else str(b) for b in data]
        for j, chunk in enumerate(_chunks(values, options.bytes_per_line)):
            line = f"    {options.directive} {', '.join(chunk)}"
            if options.include_comments and j == 0:
                line += f"  ; Char {i}"
            lines.append(line)

    lines.append("")
    return "\n".join(lines)


def get_hex_preview_with_bytes(
    characters: list[Character],
    config: CharacterSetConfig,
    max_bytes: int = 16,
) -> tuple[str, list[int]]:
    """First ``max_bytes`` encoded bytes, as ``"3C 42 ..."`` and as ints."""
    collected: list[int] = []
    for char in characters:
        if len(collected) >= max_bytes:
            break
        collected.extend(character_to_bytes(char, config)[: max_bytes - len(collected)])
    return " ".join(f"{b:02X}" for b in collected), collected


def get_hex_preview(
    characters: list[Character],
    config: CharacterSetConfig,
    max_bytes: int = 16,
) -> str:
    return get_hex_preview_with_bytes(characters, config, max_bytes)[0]


def get_bit_layout_visualization(
    character: Character,
    config: CharacterSetConfig,
    row: int = 0,
) -> BitLayout:
    """Show how one pixel row is laid out in its bytes."""
    bpl = bytes_per_line(config.width)
    row_bytes = character_to_bytes(character, config)[row * bpl : (row + 1) * bpl]
    padding_bits = bpl * 8 - config.width

    if config.padding == "left":
        mask = "P" * padding_bits + "D" * config.width
    else:
        mask = "D" * config.width + "P" * padding_bits

    return BitLayout(
        bits="".join(f"{b:08b}" for b in row_bytes),
        hex=" ".join(f"{b:02X}" for b in row_bytes),
        padding=mask,
    )


def get_ascii_label(code: int) -> str:
    """Printable character for 32-126, control code name otherwise ("" if none)."""
    if 32 <= code <= 126:
        return chr(code)
    return CONTROL_CODE_NAMES.get(code, "")


def export_to_png(
    characters: list[Character],
    config: CharacterSetConfig,
    options: PngOptions | None = None,
) -> Image.Image:
    """Draw the characters as a sheet, ``columns`` per row, one cell per character.

    With ``show_grid`` a 1px line separates and surrounds all cells.
    """
    opts = options or PngOptions()
    columns = max(1, opts.columns)
    rows = max(1, math.ceil(len(characters) / columns))
    grid = 1 if opts.show_grid else 0
    cell_w = config.width * opts.scale
    cell_h = config.height * opts.scale

    width = columns * cell_w + (columns + 1) * grid
    height = rows * cell_h + (rows + 1) * grid

    if opts.transparent:
        img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    else:
        img = Image.new("RGBA", (width, height), opts.background_color)
    draw = ImageDraw.Draw(img)

    for index, char in enumerate(characters):
        base_x = (index % columns) * (cell_w + grid) + grid
        base_y = (index // columns) * (cell_h + grid) + grid
        for py, pixel_row in enumerate(char.pixels[: config.height]):
            for px, lit in enumerate(pixel_row[: config.width]):
                if not lit:
                    continue
                x0 = base_x + px * opts.scale
                y0 = base_y + py * opts.scale
                draw.rectangle(
                    (x0, y0, x0 + opts.scale - 1, y0 + opts.scale - 1),
                    fill=opts.foreground_color,
                )

    if opts.show_grid:
        for col in range(columns + 1):
            x = col * (cell_w + grid)
            draw.line((x, 0, x, height - 1), fill=opts.grid_color)
        for row in range(rows + 1):
            y = row * (cell_h + grid)
            draw.line((0, y, width - 1, y), fill=opts.grid_color)

    return img


def save_png(
    characters: list[Character],
    config: CharacterSetConfig,
    path: str | Path,
    options: PngOptions | None = None,
) -> Path:
    """Render with :func:`export_to_png` and write the PNG to ``path``."""
    out = Path(path)
    export_to_png(characters, config, options).save(out, format="PNG")
    return out


# -- reference sheet ---------------------------------------------------------------------

# Grid layout, in output pixels
SHEET_CELL_PADDING = 8
SHEET_LABEL_LINE_HEIGHT = 28
SHEET_LABEL_SPACING = 20
SHEET_TITLE_HEIGHT = 80
SHEET_ROW_HEADER_WIDTH = 80
SHEET_COLUMN_HEADER_HEIGHT = 40
SHEET_FOOTER_COLOR = "#444444"


@dataclass
class ReferenceSheetOptions:
    """Layout, labels and colours of a printable reference sheet."""

    title: str = "Character Set"
    show_title: bool = True
    columns: int = 16
    scale: int = 4
    show_hex: bool = True
    show_decimal: bool = False
    show_octal: bool = False
    show_binary: bool = False
    show_ascii: bool = True
    show_non_printable_ascii: bool = False
    foreground_color: str = "#ffffff"
    background_color: str = "#000000"
    sheet_background_color: str = "#1a1a2e"
    label_color: str = "#888888"
    title_color: str = "#ffffff"
    hex_color: str = "#888888"
    decimal_color: str = "#888888"
    octal_color: str = "#888888"
    binary_color: str = "#888888"
    ascii_color: str = "#ffffff"
    non_printable_ascii_color: str = "#666666"


def get_default_reference_sheet_options(name: str) -> ReferenceSheetOptions:
    return ReferenceSheetOptions(title=name or "Character Set")


def _label_line_count(options: ReferenceSheetOptions) -> int:
    flags = (
        options.show_hex,
        options.show_decimal,
        options.show_octal,
        options.show_binary,
        options.show_ascii or options.show_non_printable_ascii,
    )
    return sum(1 for flag in flags if flag)


def get_reference_labels(index: int, options: ReferenceSheetOptions) -> list[tuple[str, str, str]]:
    """Label lines drawn under character ``index`` as ``(kind, text, colour)``."""
    labels: list[tuple[str, str, str]] = []
    if options.show_hex:
        labels.append(("hex", f"${index:02X}", options.hex_color))
    if options.show_decimal:
        labels.append(("decimal", str(index), options.decimal_color))
    if options.show_octal:
        labels.append(("octal", f"{index:03o}", options.octal_color))
    if options.show_binary:
        labels.append(("binary", f"{index:08b}", options.binary_color))

    printable = 32 <= index <= 126
    if (printable and options.show_ascii) or (not printable and options.show_non_printable_ascii):
        label = get_ascii_label(index)
        if label:
            color = options.ascii_color if printable else options.non_printable_ascii_color
            labels.append(("ascii", label, color))
    return labels


@lru_cache(maxsize=8)
def _sheet_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def reference_sheet_size(
    count: int, config: CharacterSetConfig, options: ReferenceSheetOptions
) -> tuple[int, int]:
    """Pixel size of the sheet :func:`export_to_reference_sheet` draws for ``count`` characters."""
    columns = max(1, options.columns)
    rows = math.ceil(count / columns)
    cell_w = config.width * options.scale + SHEET_CELL_PADDING * 2
    label_h = SHEET_LABEL_LINE_HEIGHT * max(1, _label_line_count(options))
    cell_h = config.height * options.scale + SHEET_CELL_PADDING * 2 + label_h
    header_h = SHEET_TITLE_HEIGHT if options.show_title else 0

    width = SHEET_ROW_HEADER_WIDTH + columns * cell_w + SHEET_CELL_PADDING
    height = header_h + SHEET_COLUMN_HEADER_HEIGHT + rows * cell_h + SHEET_CELL_PADDING
    return width, height


def export_to_reference_sheet(
    characters: list[Character],
    config: CharacterSetConfig,
    options: ReferenceSheetOptions | None = None,
) -> Image.Image:
    """Draw a labelled grid of the characters for printing or documentation.

    Columns are headed by their hex digit and rows by the code of their
    first cell (``10_``, ``20_`` ...). Each cell shows the glyph on its
    background with the enabled labels (hex, decimal, octal, binary, ASCII)
    stacked underneath.

    Raises:
        ValueError: If ``columns`` or ``scale`` is below 1.
    """
    opts = options or ReferenceSheetOptions()
    if opts.columns < 1 or opts.scale < 1:
        raise ValueError(f"Columns and scale must be >= 1, got {opts.columns} and {opts.scale}")

    width, height = reference_sheet_size(len(characters), config, opts)
    columns = opts.columns
    rows = math.ceil(len(characters) / columns)
    glyph_w = config.width * opts.scale
    glyph_h = config.height * opts.scale
    cell_w = glyph_w + SHEET_CELL_PADDING * 2
    cell_h = (
        glyph_h
        + SHEET_CELL_PADDING * 2
        + SHEET_LABEL_LINE_HEIGHT * max(1, _label_line_count(opts))
    )
    header_h = SHEET_TITLE_HEIGHT if opts.show_title else 0
    grid_top = header_h + SHEET_COLUMN_HEADER_HEIGHT

    img = Image.new("RGBA", (width, height), opts.sheet_background_color)
    draw = ImageDraw.Draw(img)

    if opts.show_title and opts.title:
        title_font, subtitle_font = _sheet_font(32), _sheet_font(20)
        draw.text((width / 2, 52), opts.title, font=title_font, fill=opts.title_color, anchor="ms")
        subtitle = f"{len(characters)} characters, {config.width}x{config.height} pixels"
        draw.text((width / 2, 76), subtitle, font=subtitle_font, fill=opts.label_color, anchor="ms")

    header_font = _sheet_font(20)
    for col in range(columns):
        x = SHEET_ROW_HEADER_WIDTH + col * cell_w + cell_w / 2
        draw.text(
            (x, grid_top - 12), f"{col:X}", font=header_font, fill=opts.label_color, anchor="ms"
        )
    for row in range(rows):
        y = grid_top + row * cell_h + cell_h / 2
        draw.text(
            (SHEET_ROW_HEADER_WIDTH - 16, y),
            f"{row * columns:02X}_",
            font=header_font,
            fill=opts.label_color,
            anchor="rm",
        )

    label_font = _sheet_font(18)
    binary_font = _sheet_font(14)
    for index, char in enumerate(characters):
        cell_x = SHEET_ROW_HEADER_WIDTH + (index % columns) * cell_w
        cell_y = grid_top + (index // columns) * cell_h

        box_bottom = cell_y + glyph_h + SHEET_CELL_PADDING * 2 - 3
        draw.rectangle(
            (cell_x + 2, cell_y + 2, cell_x + cell_w - 3, box_bottom), fill=opts.background_color
        )

        glyph_x = cell_x + SHEET_CELL_PADDING
        glyph_y = cell_y + SHEET_CELL_PADDING
        for py, pixel_row in enumerate(char.pixels[: config.height]):
            for px, lit in enumerate(pixel_row[: config.width]):
                if lit:
                    x0 = glyph_x + px * opts.scale
                    y0 = glyph_y + py * opts.scale
                    draw.rectangle(
                        (x0, y0, x0 + opts.scale - 1, y0 + opts.scale - 1),
                        fill=opts.foreground_color,
                    )

        label_y = glyph_y + glyph_h + 24
        for kind, text, color in get_reference_labels(index, opts):
            font = binary_font if kind == "binary" else label_font
            draw.text((cell_x + cell_w / 2, label_y), text, font=font, fill=color, anchor="ms")
            label_y += SHEET_LABEL_SPACING

    draw.rectangle((0, 0, width - 1, height - 1), outline=opts.label_color, width=2)
    draw.text(
        (width - 16, height - 8),
        "Generated by charrom",
        font=_sheet_font(16),
        fill=SHEET_FOOTER_COLOR,
        anchor="rs",
    )
    return img


def save_reference_sheet(
    characters: list[Character],
    config: CharacterSetConfig,
    path: str | Path,
    options: ReferenceSheetOptions | None = None,
) -> Path:
    out = Path(path)
    export_to_reference_sheet(characters, config, options).save(out, format="PNG")
    return out
