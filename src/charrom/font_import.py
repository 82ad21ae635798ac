"""Rasterize a TTF/OTF font into fixed-size character cells.

Each code point in ``[start_code, end_code]`` is drawn with Pillow into a
``char_width x char_height`` greyscale cell and thresholded: pixels darker
than ``threshold`` are lit. fontTools supplies the family name and the cmap
used to tell missing glyphs from intentionally blank ones.

Usage:
    result = parse_font_to_characters("font.ttf", FontImportOptions(end_code=90))

    handle = FontParseController().start("font.ttf", options, on_progress=print)
    handle.cancel()  # result() now raises FontParseCancelled
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from fontTools.ttLib import TTFont
from PIL import Image, ImageDraw, ImageFont

from charrom.config import DEFAULT_FONT_THRESHOLD, FONT_CHUNK_SIZE, FONT_EXTENSIONS
from charrom.schema import Character

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class FontParseCancelled(Exception):
    """The parse was cancelled before it produced a result."""


@dataclass
class FontImportOptions:
    char_width: int = 8
    char_height: int = 8
    start_code: int = 32
    end_code: int = 126
    font_size: int = 8
    threshold: int = DEFAULT_FONT_THRESHOLD
    center_glyphs: bool = True
    baseline_offset: int = 0


@dataclass
class FontParseResult:
    characters: list[Character] = field(default_factory=list)
    font_family: str = "Unknown Font"
    imported_count: int = 0
    missing_count: int = 0


def _get_name_entry(font: TTFont, name_id: int) -> str | None:
    name_table = font["name"]
    record = name_table.getName(name_id, 3, 1, 0x0409)  # Windows, Unicode BMP, English
    if record is None:
        record = name_table.getName(name_id, 1, 0, 0)  # Mac, Roman, English
    return str(record) if record is not None else None


def read_font_info(font_path: str | Path) -> tuple[str, set[int]]:
    """Return (family name, mapped code points) from the font's name and cmap tables."""
    font = TTFont(str(font_path), fontNumber=0)
    try:
        family = _get_name_entry(font, 1) or _get_name_entry(font, 4) or "Unknown Font"
        cmap = font.getBestCmap() or {}
        return family, set(cmap)
    finally:
        font.close()


def render_glyph(
    pil_font: ImageFont.FreeTypeFont,
    code: int,
    options: FontImportOptions,
) -> Character:
    """Draw one code point into a cell and binarize it."""
    width, height = options.char_width, options.char_height
    ascent, descent = pil_font.getmetrics()
    text = chr(code)

    x = 0.0
    baseline = height - descent + options.baseline_offset
    if options.center_glyphs:
        x = (width - pil_font.getlength(text)) / 2
        baseline -= (height - (ascent + descent)) / 2

    img = Image.new("L", (width, height), 255)
    draw = ImageDraw.Draw(img)
    draw.text((x, baseline), text, font=pil_font, fill=0, anchor="ls")

    pixels = img.load()
    return Character(
        pixels=[[pixels[px, py] < options.threshold for px in range(width)] for py in range(height)]
    )


def parse_font_to_characters(
    font_path: str | Path,
    options: FontImportOptions,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> FontParseResult:
    """Render every code point of the requested range.

    Work is done in batches of ``FONT_CHUNK_SIZE`` code points. Cancellation
    is checked before each batch and progress ``(processed, total)`` is
    reported after each.

    Raises:
        FontParseCancelled: If ``cancel_event`` is set before the last batch.
        OSError: If the font cannot be read.
    """
    family, mapped = read_font_info(font_path)
    pil_font = ImageFont.truetype(str(font_path), size=options.font_size)

    codes = list(range(options.start_code, options.end_code + 1))
    total = len(codes)
    result = FontParseResult(font_family=family)

    for start in range(0, total, FONT_CHUNK_SIZE):
        if cancel_event is not None and cancel_event.is_set():
            raise FontParseCancelled(f"Font parse cancelled after {start}/{total} glyphs")

        for code in codes[start : start + FONT_CHUNK_SIZE]:
            if code in mapped:
                char = render_glyph(pil_font, code, options)
            else:
                char = Character.empty(options.char_width, options.char_height)
            result.characters.append(char)

            if not char.is_blank():
                result.imported_count += 1
            elif code >= 33:
                # space and control codes are expected to be blank
                result.missing_count += 1

        if on_progress is not None:
            on_progress(min(start + FONT_CHUNK_SIZE, total), total)

    return result


class FontParseHandle:
    """A running (or finished) font parse.

    ``cancel()`` is terminal: afterwards no progress is delivered and
    :meth:`result` raises :class:`FontParseCancelled`. A handle started
    without a worker thread parses on the thread that calls :meth:`result`.
    """

    def __init__(self, on_progress: ProgressCallback | None = None) -> None:
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._on_progress = on_progress
        self._result: FontParseResult | None = None
        self._error: Exception | None = None
        self._thread: threading.Thread | None = None
        self._pending: tuple[str | Path, FontImportOptions] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def _report(self, processed: int, total: int) -> None:
        if self._on_progress is not None and not self._cancel.is_set():
            self._on_progress(processed, total)

    def _run(self, font_path: str | Path, options: FontImportOptions) -> None:
        try:
            self._result = parse_font_to_characters(
                font_path, options, on_progress=self._report, cancel_event=self._cancel
            )
        except FontParseCancelled as e:
            logger.info("%s", e)
            self._error = e
        except Exception as e:  # re-raised by result()
            self._error = e
        finally:
            self._done.set()

    def _run_pending(self) -> None:
        pending, self._pending = self._pending, None
        if pending is None:
            return
        if self._cancel.is_set():
            self._done.set()
            return
        self._run(*pending)

    def result(self, timeout: float | None = None) -> FontParseResult:
        """Wait for the parse to finish.

        Raises:
            FontParseCancelled: If the parse was cancelled.
            TimeoutError: If ``timeout`` elapses first.
        """
        self._run_pending()
        if not self._done.wait(timeout):
            if self._cancel.is_set():
                raise FontParseCancelled("Font parse cancelled")
            msg = f"Font parse did not finish within {timeout}s"
            raise TimeoutError(msg)
        if self._cancel.is_set():
            raise FontParseCancelled("Font parse cancelled")
        if self._error is not None:
            raise self._error
        if self._result is None:
            msg = "Font parse finished without a result"
            raise RuntimeError(msg)
        return self._result


class FontParseController:
    """Starts font parses on worker threads.

    When a worker thread cannot be started, the returned handle defers the
    parse to :meth:`FontParseHandle.result`, which runs it in batches on the
    calling thread with the same cancellation checks.
    """

    def start(
        self,
        font_path: str | Path,
        options: FontImportOptions,
        on_progress: ProgressCallback | None = None,
    ) -> FontParseHandle:
        handle = FontParseHandle(on_progress)
        thread = threading.Thread(
            target=handle._run, args=(font_path, options), name="charrom-font-parse", daemon=True
        )
        try:
            thread.start()
        except RuntimeError as e:
            logger.warning("Font worker unavailable (%s), parsing on result()", e)
            handle._pending = (font_path, options)
            return handle

        handle._thread = thread
        return handle


def is_valid_font_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in FONT_EXTENSIONS


def get_character_range_preview(start_code: int, end_code: int, max_preview: int = 20) -> list[str]:
    """First few characters of a range; control codes show as ``·``."""
    preview = [
        "·" if code < 32 else chr(code)
        for code in range(start_code, min(end_code, start_code + max_preview - 1) + 1)
    ]
    if end_code - start_code >= max_preview:
        preview.append("...")
    return preview
