"""ASCII art previews of characters and character sets."""

from __future__ import annotations

from charrom.config import EMPTY, FILLED
from charrom.exports import get_ascii_label
from charrom.schema import Character


def _render_rows(character: Character) -> list[str]:
    return ["".join(FILLED if p else EMPTY for p in row) for row in character.pixels]


def _label(code: int) -> str:
    label = get_ascii_label(code)
    if len(label) == 1:
        return f"'{label}' #{code}"
    if label:
        return f"{label} #{code}"
    return f"#{code}"


def preview_character(character: Character, code: int | None = None) -> str:
    """Render one character as ASCII art.

    The header shows the character code (with its ASCII label) and size,
    followed by one line per pixel row using █ for lit and · for unlit.
    """
    header = f"({character.width}×{character.height})"
    if code is not None:
        header = f"{_label(code)} {header}"
    return "\n".join([header, *_render_rows(character)])


def preview_characters(
    characters: list[Character],
    indices: list[int] | None = None,
    start_code: int = 0,
) -> str:
    """Preview several characters vertically, separated by blank lines.

    If indices is None, show all characters.
    """
    selected = range(len(characters)) if indices is None else indices

    sections: list[str] = []
    for i in selected:
        if not 0 <= i < len(characters):
            sections.append(f"#{i + start_code} (not found)")
            continue
        sections.append(preview_character(characters[i], i + start_code))

    return "\n\n".join(sections)


def preview_text(
    characters: list[Character],
    text: str,
    start_code: int = 0,
    letter_spacing: int = 1,
) -> str:
    """Render a string with the set's glyphs side by side.

    ``characters[i]`` is the glyph for code ``start_code + i``. Codes the set
    does not cover render as a blank column.
    """
    if not text or not characters:
        return ""

    height = max(c.height for c in characters)
    blocks: list[list[str]] = []
    for ch in text:
        index = ord(ch) - start_code
        if 0 <= index < len(characters):
            rows = _render_rows(characters[index])
            width = characters[index].width
            # bottom-align shorter glyphs
            rows = [EMPTY * width] * (height - len(rows)) + rows
        else:
            rows = [EMPTY] * height
        blocks.append(rows)

    spacer = EMPTY * letter_spacing
    return "\n".join(spacer.join(block[row] for block in blocks) for row in range(height))
