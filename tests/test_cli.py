"""Tests for the CLI entry point using Click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from charrom.binary import base64_to_binary, deserialize_character_set
from charrom.cli import cli
from charrom.schema import Character, SerializedCharacterSet
from tests.conftest import DEJAVU_SANS, LETTER_A_BYTES, make_record, skip_no_font


@pytest.fixture()
def runner():
    return CliRunner()


def _load(path):
    data = json.loads(path.read_text(encoding="utf-8"))
    return deserialize_character_set(SerializedCharacterSet.model_validate(data))


class TestCLIBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "character ROM fonts" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_command(self, runner):
        result = runner.invoke(cli, ["nonexistent"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# imports
# ---------------------------------------------------------------------------


class TestImportBinary:
    def test_import(self, runner, tmp_path, letter_a):
        rom = tmp_path / "chargen.bin"
        rom.write_bytes(LETTER_A_BYTES * 2)
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli, ["import-binary", str(rom), "-o", str(output), "--name", "Test ROM"]
        )
        assert result.exit_code == 0, result.output
        assert "Characters: 2" in result.output
        character_set = _load(output)
        assert character_set.metadata.name == "Test ROM"
        assert character_set.characters == [letter_a, letter_a]

    def test_default_name_is_file_stem(self, runner, tmp_path):
        rom = tmp_path / "chargen"
        rom.write_bytes(bytes(8))
        output = tmp_path / "out.json"
        result = runner.invoke(cli, ["import-binary", str(rom), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert _load(output).metadata.name == "chargen"

    def test_layout_options(self, runner, tmp_path):
        rom = tmp_path / "wide.rom"
        rom.write_bytes(bytes([0x00, 0x80]))
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli,
            ["import-binary", str(rom), "-o", str(output)]
            + ["--width", "16", "--height", "1", "--byte-order", "little"],
        )
        assert result.exit_code == 0, result.output
        character_set = _load(output)
        assert character_set.config.byte_order == "little"
        assert character_set.characters[0].pixels[0][0] is True

    def test_preview_and_validate(self, runner, tmp_path):
        rom = tmp_path / "font.bin"
        rom.write_bytes(LETTER_A_BYTES)
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli, ["import-binary", str(rom), "-o", str(output), "--preview", "--validate"]
        )
        assert result.exit_code == 0, result.output
        assert "#0 (8×8)" in result.output
        assert "Validation passed" in result.output

    def test_unsupported_extension(self, runner, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_bytes(bytes(8))
        result = runner.invoke(cli, ["import-binary", str(path)])
        assert result.exit_code == 1
        assert "Unsupported file type" in result.output

    def test_file_too_large(self, runner, tmp_path):
        path = tmp_path / "huge.bin"
        path.write_bytes(bytes(1024 * 1024 + 1))
        result = runner.invoke(cli, ["import-binary", str(path)])
        assert result.exit_code == 1
        assert "File too large" in result.output

    def test_invalid_dimension(self, runner, tmp_path):
        rom = tmp_path / "font.bin"
        rom.write_bytes(bytes(8))
        result = runner.invoke(cli, ["import-binary", str(rom), "--width", "0"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_system_preset_and_maker(self, runner, tmp_path):
        rom = tmp_path / "cpc.bin"
        rom.write_bytes(bytes(32))
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli,
            ["import-binary", str(rom), "-o", str(output)]
            + ["--preset", "CPC 6128", "--system", "CPC 6128"],
        )
        assert result.exit_code == 0, result.output
        assert "Size: 8x16 (IBM VGA...)" in result.output
        character_set = _load(output)
        assert (character_set.config.width, character_set.config.height) == (8, 16)
        assert len(character_set.characters) == 2
        assert character_set.metadata.manufacturer == "Amstrad"

    def test_explicit_manufacturer_kept(self, runner, tmp_path):
        rom = tmp_path / "font.bin"
        rom.write_bytes(bytes(8))
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli,
            ["import-binary", str(rom), "-o", str(output)]
            + ["--system", "C64", "--manufacturer", "MOS"],
        )
        assert result.exit_code == 0, result.output
        assert _load(output).metadata.manufacturer == "MOS"

    def test_unknown_preset(self, runner, tmp_path):
        rom = tmp_path / "font.bin"
        rom.write_bytes(bytes(8))
        result = runner.invoke(cli, ["import-binary", str(rom), "--preset", "Amiga"])
        assert result.exit_code == 1
        assert "Unknown preset 'Amiga'" in result.output


class TestImportText:
    def test_import_c_array(self, runner, tmp_path, letter_a):
        source = tmp_path / "font.h"
        source.write_text("{ 0x18, 0x3C, 0x66, 0x7E, 0x66, 0x66, 0x66, 0x00 }", encoding="utf-8")
        output = tmp_path / "out.json"
        result = runner.invoke(cli, ["import-text", str(source), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "8 bytes detected (hexadecimal) -> 1 character" in result.output
        character_set = _load(output)
        assert character_set.metadata.name == "font"
        assert character_set.characters == [letter_a]

    def test_stdin(self, runner, tmp_path):
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli, ["import-text", "-", "-o", str(output)], input="0, 0, 0, 0, 0, 0, 0, 255"
        )
        assert result.exit_code == 0, result.output
        assert _load(output).metadata.name == "Pasted Data"

    def test_size_preset(self, runner, tmp_path):
        source = tmp_path / "lcd.txt"
        source.write_text(", ".join(["0xF8"] * 10), encoding="utf-8")
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli, ["import-text", str(source), "-o", str(output), "--preset", "5x10"]
        )
        assert result.exit_code == 0, result.output
        character_set = _load(output)
        assert (character_set.config.width, character_set.config.height) == (5, 10)
        assert character_set.characters[0].pixels[0] == [True] * 5

    def test_no_values(self, runner, tmp_path):
        source = tmp_path / "empty.txt"
        source.write_text("hello", encoding="utf-8")
        result = runner.invoke(cli, ["import-text", str(source)])
        assert result.exit_code == 1
        assert "No valid byte values found in input" in result.output

    def test_not_enough_bytes(self, runner, tmp_path):
        source = tmp_path / "short.txt"
        source.write_text("1, 2, 3", encoding="utf-8")
        result = runner.invoke(cli, ["import-text", str(source)])
        assert result.exit_code == 1
        assert "Not enough bytes" in result.output


class TestImportImage:
    def test_import(self, runner, tmp_path, sheet_image, letter_a):
        path = tmp_path / "sheet.png"
        sheet_image.save(path)
        output = tmp_path / "out.json"
        result = runner.invoke(cli, ["import-image", str(path), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "Grid: 2 columns x 1 rows" in result.output
        assert _load(output).characters[0] == letter_a

    def test_suggest(self, runner, tmp_path):
        from PIL import Image

        path = tmp_path / "sheet.png"
        Image.new("L", (128, 64), 255).save(path)
        result = runner.invoke(cli, ["import-image", str(path), "--suggest"])
        assert result.exit_code == 0
        assert "8x8: 16 x 8 = 128" in result.output

    def test_suggest_names_systems(self, runner, tmp_path):
        from PIL import Image

        path = tmp_path / "sheet.png"
        Image.new("L", (128, 64), 255).save(path)
        result = runner.invoke(cli, ["import-image", str(path), "--suggest"])
        assert result.exit_code == 0
        assert "8x8: 16 x 8 = 128  (C64, VIC-20" in result.output

    def test_unknown_preset(self, runner, tmp_path, sheet_image):
        path = tmp_path / "sheet.png"
        sheet_image.save(path)
        result = runner.invoke(cli, ["import-image", str(path), "--preset", "Amiga"])
        assert result.exit_code == 1
        assert "Unknown preset" in result.output

    def test_zero_pixel_width(self, runner, tmp_path, sheet_image):
        path = tmp_path / "sheet.png"
        sheet_image.save(path)
        result = runner.invoke(cli, ["import-image", str(path), "--pixel-width", "0"])
        assert result.exit_code == 1
        assert "pixel_width must be >= 1" in result.output

    def test_blank_image_too_small(self, runner, tmp_path):
        from PIL import Image

        path = tmp_path / "tiny.png"
        Image.new("L", (4, 4), 255).save(path)
        result = runner.invoke(cli, ["import-image", str(path)])
        assert result.exit_code == 1
        assert "No characters found" in result.output


@skip_no_font
class TestImportFont:
    def test_import(self, runner, tmp_path):
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli,
            ["import-font", DEJAVU_SANS, "-o", str(output), "--start", "65", "--end", "70"]
            + ["--width", "16", "--height", "16", "--font-size", "16"],
        )
        assert result.exit_code == 0, result.output
        assert "Font: DejaVu Sans" in result.output
        character_set = _load(output)
        assert len(character_set.characters) == 6
        assert character_set.config.width == 16

    def test_range_and_preset(self, runner, tmp_path):
        output = tmp_path / "out.json"
        result = runner.invoke(
            cli,
            ["import-font", DEJAVU_SANS, "-o", str(output)]
            + ["--range", "digits-only", "--preset", "8x16"],
        )
        assert result.exit_code == 0, result.output
        assert "Imported: 10" in result.output
        character_set = _load(output)
        assert len(character_set.characters) == 10
        assert character_set.config.height == 16


# ---------------------------------------------------------------------------
# export / preview / validate
# ---------------------------------------------------------------------------


class TestExport:
    def test_binary(self, runner, tmp_path, record_file):
        output = tmp_path / "rom.bin"
        result = runner.invoke(cli, ["export", str(record_file), "-o", str(output)])
        assert result.exit_code == 0, result.output
        data = output.read_bytes()
        assert len(data) == 24
        assert data[8:16] == LETTER_A_BYTES

    def test_c_header(self, runner, tmp_path, record_file):
        output = tmp_path / "font.h"
        result = runner.invoke(
            cli, ["export", str(record_file), "-f", "c", "-o", str(output), "--label", "font"]
        )
        assert result.exit_code == 0, result.output
        assert "static const unsigned char FONT[] = {" in output.read_text(encoding="utf-8")

    def test_assembly_decimal(self, runner, tmp_path, record_file):
        output = tmp_path / "font.asm"
        result = runner.invoke(
            cli,
            ["export", str(record_file), "-f", "asm", "-o", str(output)]
            + ["--directive", "db", "--decimal"],
        )
        assert result.exit_code == 0, result.output
        assert "    db 24, 60, 102" in output.read_text(encoding="utf-8")

    def test_png(self, runner, tmp_path, record_file):
        from PIL import Image

        output = tmp_path / "sheet.png"
        result = runner.invoke(
            cli, ["export", str(record_file), "-f", "png", "-o", str(output), "--scale", "1"]
        )
        assert result.exit_code == 0, result.output
        with Image.open(output) as img:
            assert img.size == (16 * 8 + 17, 8 + 2)

    def test_reference_sheet(self, runner, tmp_path, record_file):
        from PIL import Image

        output = tmp_path / "reference.png"
        result = runner.invoke(
            cli,
            ["export", str(record_file), "-f", "sheet", "-o", str(output)]
            + ["--columns", "4", "--scale", "1", "--no-title", "--labels", "hex,binary"],
        )
        assert result.exit_code == 0, result.output
        with Image.open(output) as img:
            # 4 cells of 8 + 2*8 px; one row of 8 + 2*8 + 2 label lines
            assert img.size == (80 + 4 * 24 + 8, 40 + 80 + 8)

    def test_reference_sheet_unknown_label(self, runner, tmp_path, record_file):
        output = tmp_path / "reference.png"
        result = runner.invoke(
            cli, ["export", str(record_file), "-f", "sheet", "-o", str(output), "--labels", "roman"]
        )
        assert result.exit_code == 1
        assert "Unknown sheet labels: roman" in result.output
        assert not output.exists()

    def test_reference_sheet_zero_scale(self, runner, tmp_path, record_file):
        output = tmp_path / "reference.png"
        result = runner.invoke(
            cli, ["export", str(record_file), "-f", "sheet", "-o", str(output), "--scale", "0"]
        )
        assert result.exit_code == 1
        assert "must be >= 1" in result.output

    def test_bad_record(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{}", encoding="utf-8")
        result = runner.invoke(cli, ["export", str(path)])
        assert result.exit_code == 1
        assert "Error reading" in result.output


class TestPreviewCommand:
    def test_all(self, runner, record_file):
        result = runner.invoke(cli, ["preview", str(record_file)])
        assert result.exit_code == 0
        assert "Set: Test Set (3 characters, 8x8)" in result.output
        assert "NUL #0 (8×8)" in result.output

    def test_selected_chars(self, runner, record_file):
        result = runner.invoke(cli, ["preview", str(record_file), "--chars", "1-2"])
        assert result.exit_code == 0
        assert "SOH #1" in result.output
        assert "NUL #0" not in result.output

    def test_text(self, runner, record_file):
        result = runner.invoke(
            cli, ["preview", str(record_file), "--text", "AB", "--start-code", "64"]
        )
        assert result.exit_code == 0
        assert "██" in result.output

    def test_bad_indices(self, runner, record_file):
        result = runner.invoke(cli, ["preview", str(record_file), "--chars", "a-b"])
        assert result.exit_code == 1


class TestPresetsCommand:
    def test_lists_everything(self, runner):
        result = runner.invoke(cli, ["presets"])
        assert result.exit_code == 0, result.output
        assert "8x16   IBM VGA, PC BIOS" in result.output
        assert "printable-ascii  32-126 (95)" in result.output
        assert "Amstrad: CPC 464 8x16, CPC 6128 8x16" in result.output

    def test_maker(self, runner):
        result = runner.invoke(cli, ["presets", "--maker", "sinclair"])
        assert result.exit_code == 0, result.output
        assert "  ZX Spectrum: 8x8" in result.output
        assert "  QL\n" in result.output

    def test_unknown_maker(self, runner):
        result = runner.invoke(cli, ["presets", "--maker", "Xerox"])
        assert result.exit_code == 1
        assert "Unknown maker: Xerox" in result.output


class TestValidateCommand:
    def test_valid_record(self, runner, record_file):
        result = runner.invoke(cli, ["validate", str(record_file)])
        assert result.exit_code == 0
        assert "Validation passed" in result.output

    def test_invalid_record(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"metadata": {"id": "x"}}), encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Missing required field: 'config'" in result.output

    def test_nonexistent_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["validate", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# similar / share / unshare / transform
# ---------------------------------------------------------------------------


class TestSimilarCommand:
    def test_identical_copy_ranks_100(self, runner, tmp_path, record_file, sample_set):
        library = tmp_path / "library.json"
        copy = make_record(sample_set.characters, name="Copy")
        other = make_record([Character.from_rows(["#......."] * 8)] * 3, name="Bars")
        library.write_text(
            json.dumps({"characterSets": [other.to_dict(), copy.to_dict()]}), encoding="utf-8"
        )
        result = runner.invoke(cli, ["similar", str(record_file), str(library)])
        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if "%" in line]
        assert "100%  Copy" in lines[0]
        assert "3/3 chars" in lines[0]

    def test_nothing_comparable(self, runner, tmp_path, record_file):
        library = tmp_path / "library.json"
        library.write_text(json.dumps({"characterSets": []}), encoding="utf-8")
        result = runner.invoke(cli, ["similar", str(record_file), str(library)])
        assert result.exit_code == 0
        assert "No comparable character sets" in result.output


class TestShareCommands:
    def test_share_url(self, runner, record_file):
        result = runner.invoke(cli, ["share", str(record_file), "--origin", "https://example.com"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("https://example.com/tools/character-rom-editor/shared#2:")

    def test_share_v1_blob(self, runner, record_file):
        result = runner.invoke(cli, ["share", str(record_file), "--format", "v1", "--blob-only"])
        assert result.exit_code == 0
        assert not result.output.startswith("2:")

    def test_share_then_unshare(self, runner, tmp_path, record_file, sample_set):
        shared = runner.invoke(cli, ["share", str(record_file)])
        url = shared.output.strip()
        output = tmp_path / "out.json"
        result = runner.invoke(cli, ["unshare", url, "-o", str(output)])
        assert result.exit_code == 0, result.output
        character_set = _load(output)
        assert character_set.metadata.name == "Test Set"
        assert character_set.metadata.source == "shared"
        assert character_set.characters == sample_set.characters

    def test_unshare_garbage(self, runner):
        result = runner.invoke(cli, ["unshare", "2:!!!!"])
        assert result.exit_code == 1
        assert "Failed to decode" in result.output


class TestTransformCommand:
    def test_invert_selected_in_place(self, runner, record_file):
        result = runner.invoke(cli, ["transform", str(record_file), "invert", "--indices", "0"])
        assert result.exit_code == 0, result.output
        characters = _load(record_file).characters
        assert all(all(row) for row in characters[0].pixels)
        assert characters[2] == Character(pixels=[[True] * 8 for _ in range(8)])

    def test_shift_to_output(self, runner, tmp_path, record_file, letter_a):
        output = tmp_path / "shifted.json"
        result = runner.invoke(
            cli, ["transform", str(record_file), "shift-right", "--indices", "1", "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        assert _load(output).characters[1].to_rows()[0] == "....##.."
        assert _load(record_file).characters[1] == letter_a

    def test_resize(self, runner, tmp_path, record_file):
        output = tmp_path / "small.json"
        result = runner.invoke(
            cli,
            ["transform", str(record_file), "resize", "--size", "4x4", "--anchor", "br"]
            + ["-o", str(output)],
        )
        assert result.exit_code == 0, result.output
        character_set = _load(output)
        assert (character_set.config.width, character_set.config.height) == (4, 4)
        assert all(all(row) for row in character_set.characters[2].pixels)
        assert len(base64_to_binary(json.loads(output.read_text())["binaryData"])) == 12

    def test_resize_needs_size(self, runner, record_file):
        result = runner.invoke(cli, ["transform", str(record_file), "resize"])
        assert result.exit_code == 1
        assert "resize needs --size" in result.output

    def test_resize_to_zero_width_leaves_record(self, runner, record_file):
        before = record_file.read_text(encoding="utf-8")
        result = runner.invoke(cli, ["transform", str(record_file), "resize", "--size", "0x8"])
        assert result.exit_code == 1
        assert "Character dimensions must be >= 1" in result.output
        assert record_file.read_text(encoding="utf-8") == before

    def test_unknown_operation(self, runner, record_file):
        result = runner.invoke(cli, ["transform", str(record_file), "melt"])
        assert result.exit_code != 0
