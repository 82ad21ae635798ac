"""Tests for extracting byte values from pasted source text."""

import pytest

from charrom.schema import CharacterSetConfig
from charrom.text_import import (
    ERROR_ALL_OUT_OF_RANGE,
    ERROR_NO_INPUT,
    ERROR_NO_TOKENS,
    TextImportOptions,
    get_parse_result_summary,
    parse_text_to_bytes,
    parse_text_to_characters,
)

C_ARRAY = """
static const unsigned char font[] = {
  0x00, 0x7E, 0x42, 0x42, 0x7E, 0x00, 0x00, 0x00,
};
"""

ASM_BLOCK = """
charset:
    .byte $18, $3C, $66, $7E, $66, $66, $66, $00  ; A
"""


# ---------------------------------------------------------------------------
# parse_text_to_bytes
# ---------------------------------------------------------------------------


class TestParseTextToBytes:
    def test_c_hex_literals(self):
        result = parse_text_to_bytes(C_ARRAY)
        assert result.bytes == [0, 126, 66, 66, 126, 0, 0, 0]
        assert result.format == "hex"
        assert result.error is None

    def test_dollar_hex(self):
        result = parse_text_to_bytes(ASM_BLOCK)
        assert result.bytes == [0x18, 0x3C, 0x66, 0x7E, 0x66, 0x66, 0x66, 0x00]
        assert result.format == "hex"

    def test_binary_literals(self):
        result = parse_text_to_bytes("0b00111100, 0b1")
        assert result.bytes == [60, 1]
        assert result.format == "binary"

    def test_decimal(self):
        result = parse_text_to_bytes("DATA 24,60,102")
        assert result.bytes == [24, 60, 102]
        assert result.format == "decimal"

    def test_mixed_formats(self):
        result = parse_text_to_bytes("0x10, 16, $10")
        assert result.bytes == [16, 16, 16]
        assert result.format == "mixed"

    def test_uppercase_prefix_not_recognised(self):
        result = parse_text_to_bytes("0X00, 0XFF")
        assert result.bytes == []
        assert result.error == ERROR_NO_TOKENS

    def test_out_of_range_decimals_skipped(self):
        result = parse_text_to_bytes("0, 100, 256, 300, 255")
        assert result.bytes == [0, 100, 255]
        assert result.invalid_count == 2
        assert result.error is None

    def test_all_out_of_range(self):
        result = parse_text_to_bytes("999, 256")
        assert result.bytes == []
        assert result.invalid_count == 2
        assert result.error == ERROR_ALL_OUT_OF_RANGE

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_input(self, text):
        assert parse_text_to_bytes(text).error == ERROR_NO_INPUT

    def test_no_tokens(self):
        assert parse_text_to_bytes("hello world").error == ERROR_NO_TOKENS

    def test_minus_sign_is_ignored(self):
        assert parse_text_to_bytes("-5").bytes == [5]

    def test_digits_inside_words_ignored(self):
        assert parse_text_to_bytes("abc123 7").bytes == [7]


# ---------------------------------------------------------------------------
# parse_text_to_characters
# ---------------------------------------------------------------------------


class TestParseTextToCharacters:
    def test_two_characters(self):
        text = ", ".join(["0xFF"] * 16)
        result = parse_text_to_characters(text, TextImportOptions())
        assert len(result.characters) == 2
        assert result.bytes == bytes([0xFF] * 16)
        assert all(all(row) for row in result.characters[0].pixels)

    def test_trailing_partial_character_dropped(self):
        text = ", ".join(["0x00"] * 12)
        result = parse_text_to_characters(text, TextImportOptions())
        assert len(result.characters) == 1
        assert len(result.bytes) == 12

    def test_lsb_option(self):
        result = parse_text_to_characters("0x01", TextImportOptions(1, 1, "right", "lsb"))
        assert result.config.bit_direction == "lsb"
        assert result.characters[0].pixels == [[False]]

    def test_msb_option_with_width_one(self):
        result = parse_text_to_characters("0x80", TextImportOptions(1, 1, "right", "msb"))
        assert result.characters[0].pixels == [[True]]

    def test_config_from_options(self):
        options = TextImportOptions(char_width=6, char_height=2, padding="left")
        result = parse_text_to_characters("1, 2", options)
        assert result.config == CharacterSetConfig(
            width=6, height=2, padding="left", bit_direction="msb"
        )

    def test_error_returns_default_config(self):
        result = parse_text_to_characters("", TextImportOptions(char_width=4))
        assert result.error == ERROR_NO_INPUT
        assert result.characters == []
        assert result.bytes == b""
        assert result.config == CharacterSetConfig()


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------


class TestSummary:
    def test_hex_summary(self):
        text = ", ".join(["0x00"] * 16)
        result = parse_text_to_characters(text, TextImportOptions())
        assert get_parse_result_summary(result) == "16 bytes detected (hexadecimal) -> 2 characters"

    def test_invalid_values_mentioned(self):
        result = parse_text_to_characters(
            "0, 100, 256, 300, 255", TextImportOptions(char_width=1, char_height=1)
        )
        assert get_parse_result_summary(result) == (
            "3 bytes detected (decimal) -> 3 characters (2 invalid values skipped)"
        )

    def test_singular(self):
        result = parse_text_to_characters(
            "0x00, 256", TextImportOptions(char_width=8, char_height=1)
        )
        assert get_parse_result_summary(result) == (
            "1 bytes detected (hexadecimal) -> 1 character (1 invalid value skipped)"
        )

    def test_error_summary_is_error(self):
        result = parse_text_to_characters("zzz", TextImportOptions())
        assert get_parse_result_summary(result) == ERROR_NO_TOKENS
