"""Tests for the ASCII art preview module."""

from charrom.config import EMPTY, FILLED
from charrom.preview import preview_character, preview_characters, preview_text
from charrom.schema import Character


class TestPreviewCharacter:
    def test_header_with_printable_code(self, letter_a):
        lines = preview_character(letter_a, 65).split("\n")
        assert lines[0] == "'A' #65 (8×8)"
        assert len(lines) == 9

    def test_header_with_control_code(self, blank_8x8):
        assert preview_character(blank_8x8, 0).split("\n")[0] == "NUL #0 (8×8)"

    def test_header_without_code(self, small_glyph):
        assert preview_character(small_glyph).split("\n")[0] == "(3×3)"

    def test_header_unnamed_code(self, small_glyph):
        assert preview_character(small_glyph, 200).split("\n")[0] == "#200 (3×3)"

    def test_rows(self, small_glyph):
        rows = preview_character(small_glyph).split("\n")[1:]
        assert rows == [
            EMPTY + FILLED + EMPTY,
            FILLED + EMPTY + FILLED,
            EMPTY + FILLED + EMPTY,
        ]


class TestPreviewCharacters:
    def test_all_separated_by_blank_line(self, sample_set):
        output = preview_characters(sample_set.characters)
        assert output.count("\n\n") == 2
        assert "#1 (8×8)" in output

    def test_selected_with_start_code(self, sample_set):
        output = preview_characters(sample_set.characters, indices=[1], start_code=64)
        assert output.split("\n")[0] == "'A' #65 (8×8)"

    def test_missing_index(self, sample_set):
        output = preview_characters(sample_set.characters, indices=[7])
        assert output == "#7 (not found)"


class TestPreviewText:
    def test_side_by_side(self, letter_a):
        filled = Character(pixels=[[True] * 8 for _ in range(8)])
        output = preview_text([letter_a, filled], "AB", start_code=65)
        lines = output.split("\n")
        assert len(lines) == 8
        assert all(len(line) == 17 for line in lines)
        assert lines[0] == EMPTY * 3 + FILLED * 2 + EMPTY * 3 + EMPTY + FILLED * 8

    def test_letter_spacing(self, letter_a):
        lines = preview_text([letter_a], "AA", start_code=65, letter_spacing=3).split("\n")
        assert len(lines[0]) == 8 + 3 + 8

    def test_unknown_character_is_blank_column(self, letter_a):
        lines = preview_text([letter_a], "AZ", start_code=65).split("\n")
        assert all(line.endswith(EMPTY + EMPTY) for line in lines)
        assert all(len(line) == 10 for line in lines)

    def test_shorter_glyphs_bottom_aligned(self):
        tall = Character.from_rows(["#", "#", "#"])
        short = Character.from_rows(["#"])
        lines = preview_text([tall, short], "\x00\x01", letter_spacing=0).split("\n")
        assert lines == [FILLED + EMPTY, FILLED + EMPTY, FILLED + FILLED]

    def test_empty_text(self, letter_a):
        assert preview_text([letter_a], "") == ""
        assert preview_text([], "A") == ""
