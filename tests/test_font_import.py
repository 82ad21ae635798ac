"""Tests for font rasterization and the threaded font parse controller."""

import threading

import pytest
from PIL import ImageFont

from charrom.font_import import (
    FontImportOptions,
    FontParseCancelled,
    FontParseController,
    FontParseHandle,
    get_character_range_preview,
    is_valid_font_file,
    parse_font_to_characters,
    read_font_info,
    render_glyph,
)
from tests.conftest import DEJAVU_SANS, skip_no_font


@pytest.fixture()
def no_threads(monkeypatch):
    """Make worker threads fail to start, as on a platform without threads."""

    def fail_start(self):
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr(threading.Thread, "start", fail_start)


class TestHelpers:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [("a.ttf", True), ("a.OTF", True), ("a.woff2", True), ("a.bin", False), ("ttf", False)],
    )
    def test_is_valid_font_file(self, path, expected):
        assert is_valid_font_file(path) is expected

    def test_range_preview_short(self):
        assert get_character_range_preview(65, 70) == ["A", "B", "C", "D", "E", "F"]

    def test_range_preview_control_codes(self):
        assert get_character_range_preview(30, 34) == ["·", "·", " ", "!", '"']

    def test_range_preview_truncated(self):
        preview = get_character_range_preview(0, 255)
        assert len(preview) == 21
        assert preview[-1] == "..."

    def test_missing_font_error_reaches_caller(self, tmp_path):
        handle = FontParseController().start(tmp_path / "missing.ttf", FontImportOptions())
        with pytest.raises(OSError):
            handle.result(timeout=10)
        assert handle.done()

    def test_without_worker_parse_waits_for_result(self, tmp_path, no_threads):
        handle = FontParseController().start(tmp_path / "missing.ttf", FontImportOptions())
        assert not handle.done()
        with pytest.raises(OSError):
            handle.result()
        assert handle.done()

    def test_without_worker_cancel_before_result(self, tmp_path, no_threads):
        handle = FontParseController().start(tmp_path / "missing.ttf", FontImportOptions())
        handle.cancel()
        with pytest.raises(FontParseCancelled):
            handle.result()
        assert handle.done()


@skip_no_font
class TestFontParsing:
    def test_read_font_info(self):
        family, codes = read_font_info(DEJAVU_SANS)
        assert family == "DejaVu Sans"
        assert ord("A") in codes

    def test_render_glyph(self):
        options = FontImportOptions(char_width=16, char_height=16, font_size=16)
        pil_font = ImageFont.truetype(DEJAVU_SANS, size=16)
        glyph = render_glyph(pil_font, ord("A"), options)
        assert (glyph.width, glyph.height) == (16, 16)
        assert not glyph.is_blank()

    def test_space_is_blank(self):
        options = FontImportOptions()
        pil_font = ImageFont.truetype(DEJAVU_SANS, size=8)
        assert render_glyph(pil_font, 32, options).is_blank()

    def test_parse_range(self):
        options = FontImportOptions(
            char_width=16, char_height=16, font_size=16, start_code=32, end_code=33
        )
        result = parse_font_to_characters(DEJAVU_SANS, options)
        assert len(result.characters) == 2
        assert result.font_family == "DejaVu Sans"
        assert result.imported_count == 1
        assert result.missing_count == 0

    def test_unmapped_code_points_are_empty(self):
        # plane 16 private use: not mapped by DejaVu Sans
        options = FontImportOptions(start_code=0x10FFFC, end_code=0x10FFFD)
        result = parse_font_to_characters(DEJAVU_SANS, options)
        assert all(c.is_blank() for c in result.characters)
        assert result.missing_count == 2

    def test_progress_in_batches(self):
        calls = []
        options = FontImportOptions(start_code=32, end_code=50)
        parse_font_to_characters(
            DEJAVU_SANS, options, on_progress=lambda p, t: calls.append((p, t))
        )
        assert calls == [(8, 19), (16, 19), (19, 19)]

    def test_cancel_event(self):
        event = threading.Event()
        event.set()
        with pytest.raises(FontParseCancelled):
            parse_font_to_characters(DEJAVU_SANS, FontImportOptions(), cancel_event=event)

    def test_controller_result(self):
        options = FontImportOptions(start_code=65, end_code=70)
        handle = FontParseController().start(DEJAVU_SANS, options)
        result = handle.result(timeout=30)
        assert len(result.characters) == 6
        assert handle.done()
        assert not handle.cancelled

    def test_cancelled_handle_suppresses_progress(self):
        calls = []
        handle = FontParseHandle(on_progress=lambda p, t: calls.append(p))
        handle.cancel()
        handle._run(DEJAVU_SANS, FontImportOptions())
        assert calls == []
        assert handle.cancelled
        with pytest.raises(FontParseCancelled):
            handle.result()

    def test_without_worker_result_parses_inline(self, no_threads):
        calls = []
        options = FontImportOptions(start_code=65, end_code=70)
        handle = FontParseController().start(
            DEJAVU_SANS, options, on_progress=lambda p, t: calls.append(p)
        )
        assert calls == []
        assert len(handle.result().characters) == 6
        assert calls == [6]

    def test_without_worker_cancel_between_batches(self, no_threads):
        calls = []
        handle = None

        def on_progress(processed, total):
            calls.append(processed)
            handle.cancel()

        options = FontImportOptions(start_code=32, end_code=50)
        handle = FontParseController().start(DEJAVU_SANS, options, on_progress=on_progress)
        with pytest.raises(FontParseCancelled):
            handle.result()
        assert calls == [8]
        assert handle.cancelled
