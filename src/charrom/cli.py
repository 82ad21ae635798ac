"""CLI entry point for charrom - import, edit, export and share character ROM fonts."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from charrom.cli_helpers import (
    _CONFIG_OPTION_NAMES,
    _METADATA_OPTION_NAMES,
    ANCHOR_CHOICE,
    _apply_size_preset,
    _build_config,
    _build_metadata,
    _default_output,
    _load_character_set,
    _load_library,
    _parse_indices,
    _print_set_summary,
    _show_output,
    _split_kwargs,
    _write_character_set,
    shared_config_options,
    shared_metadata_options,
    shared_output_options,
    size_preset_option,
)
from charrom.config import MAX_BINARY_FILE_SIZE, READING_ORDERS, SCALE_ALGORITHMS
from charrom.presets import (
    CHARACTER_RANGE_PRESETS,
    find_character_range,
    find_dimension_preset,
    get_dimension_examples,
)
from charrom.schema import CharacterSet, CharacterSetConfig, CharacterSetMetadata, now_ms

logger = logging.getLogger(__name__)

# -- CLI group --------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="charrom")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Import, edit, export and share bitmap character ROM fonts."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def _finish_import(character_set: CharacterSet, cmd: dict) -> None:
    output = cmd["output"] or _default_output(character_set.metadata.name)
    data = _write_character_set(character_set, output)
    _print_set_summary(character_set, output)
    _show_output(character_set.characters, data, cmd["preview"], cmd["do_validate"])


# -- import-binary ---------------------------------------------------------------------


@cli.command("import-binary")
@click.argument("rom_path", type=click.Path(exists=True, dir_okay=False))
@shared_config_options
@shared_metadata_options
@shared_output_options
def import_binary(rom_path, **all_kwargs):
    """Import a raw character ROM dump (.bin, .rom, .chr, .fnt, .dat)."""
    from charrom.binary import parse_character_rom
    from charrom.utils import format_file_size, is_valid_binary_file

    cfg_opts, rest = _split_kwargs(all_kwargs, _CONFIG_OPTION_NAMES)
    meta_opts, cmd = _split_kwargs(rest, _METADATA_OPTION_NAMES)
    path = Path(rom_path)

    if not is_valid_binary_file(path):
        click.secho(f"Error: Unsupported file type: {path.suffix}", fg="red", err=True)
        sys.exit(1)

    size = path.stat().st_size
    if size > MAX_BINARY_FILE_SIZE:
        limit = format_file_size(MAX_BINARY_FILE_SIZE)
        click.secho(
            f"Error: File too large ({format_file_size(size)}), maximum is {limit}",
            fg="red",
            err=True,
        )
        sys.exit(1)

    try:
        cfg_opts["width"], cfg_opts["height"] = _apply_size_preset(
            cmd["preset"], cfg_opts["width"], cfg_opts["height"]
        )
        config = _build_config(cfg_opts)
        metadata = _build_metadata(meta_opts, path.stem)
        characters = parse_character_rom(path.read_bytes(), config)
    except (ValueError, OSError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    _finish_import(CharacterSet(metadata=metadata, config=config, characters=characters), cmd)


# -- import-text -----------------------------------------------------------------------


@cli.command("import-text")
@click.argument("text_file", type=click.File("r", encoding="utf-8"))
@click.option("--width", type=int, default=8, help="Character width in px")
@click.option("--height", type=int, default=8, help="Character height in px")
@click.option("--padding", type=click.Choice(["left", "right"]), default="right")
@click.option("--bit-direction", type=click.Choice(["msb", "lsb"]), default="msb")
@size_preset_option
@shared_metadata_options
@shared_output_options
def import_text(text_file, width, height, padding, bit_direction, **all_kwargs):
    """Import byte values pasted from C, assembly or plain lists ('-' reads stdin)."""
    from charrom.text_import import (
        TextImportOptions,
        get_parse_result_summary,
        parse_text_to_characters,
    )

    meta_opts, cmd = _split_kwargs(all_kwargs, _METADATA_OPTION_NAMES)

    try:
        width, height = _apply_size_preset(cmd["preset"], width, height)
        options = TextImportOptions(
            char_width=width, char_height=height, padding=padding, bit_direction=bit_direction
        )
        result = parse_text_to_characters(text_file.read(), options)
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    if result.error:
        click.secho(f"Error: {result.error}", fg="red", err=True)
        sys.exit(1)

    click.echo(get_parse_result_summary(result))
    if not result.characters:
        click.secho(
            f"Error: Not enough bytes for one {width}x{height} character", fg="red", err=True
        )
        sys.exit(1)

    default_name = "Pasted Data" if text_file.name.startswith("<") else Path(text_file.name).stem
    metadata = _build_metadata(meta_opts, default_name)
    _finish_import(
        CharacterSet(metadata=metadata, config=result.config, characters=result.characters), cmd
    )


# -- import-font -----------------------------------------------------------------------


@cli.command("import-font")
@click.argument("font_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--width", type=int, default=8, help="Character width in px")
@click.option("--height", type=int, default=8, help="Character height in px")
@size_preset_option
@click.option("--start", "start_code", type=int, default=32, help="First code point")
@click.option("--end", "end_code", type=int, default=126, help="Last code point")
@click.option(
    "--range",
    "code_range",
    type=click.Choice([r.slug for r in CHARACTER_RANGE_PRESETS]),
    default=None,
    help="Named code point range (overrides --start/--end)",
)
@click.option(
    "--font-size", type=int, default=None, help="Render size in px (default: suits the size)"
)
@click.option("--threshold", type=int, default=128, help="Pixel threshold 0-255")
@click.option("--center/--no-center", default=True, help="Center glyphs in their cells")
@click.option("--baseline-offset", type=int, default=0, help="Move the baseline down by N px")
@shared_metadata_options
@shared_output_options
def import_font(font_path, **all_kwargs):
    """Rasterize a TTF/OTF font into fixed-size characters."""
    from charrom.font_import import (
        FontImportOptions,
        FontParseCancelled,
        FontParseController,
        is_valid_font_file,
    )

    meta_opts, cmd = _split_kwargs(all_kwargs, _METADATA_OPTION_NAMES)

    if not is_valid_font_file(font_path):
        click.secho(f"Warning: {font_path} does not look like a font file", fg="yellow")

    try:
        width, height = _apply_size_preset(cmd["preset"], cmd["width"], cmd["height"])
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    start_code, end_code = cmd["start_code"], cmd["end_code"]
    if cmd["code_range"]:
        code_range = find_character_range(cmd["code_range"])
        start_code, end_code = code_range.start_code, code_range.end_code

    font_size = cmd["font_size"]
    if font_size is None:
        preset = find_dimension_preset(width, height)
        font_size = (preset and preset.recommended_font_size) or FontImportOptions.font_size

    options = FontImportOptions(
        char_width=width,
        char_height=height,
        start_code=start_code,
        end_code=end_code,
        font_size=font_size,
        threshold=cmd["threshold"],
        center_glyphs=cmd["center"],
        baseline_offset=cmd["baseline_offset"],
    )

    def report(processed: int, total: int) -> None:
        logger.info("Rendered %d/%d glyphs", processed, total)

    try:
        result = FontParseController().start(font_path, options, on_progress=report).result()
    except FontParseCancelled as e:
        click.secho(f"Cancelled: {e}", fg="yellow", err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    click.echo(f"Font: {result.font_family}")
    click.echo(f"  Imported: {result.imported_count}, Missing: {result.missing_count}")

    config = CharacterSetConfig(width=options.char_width, height=options.char_height)
    metadata = _build_metadata(meta_opts, result.font_family)
    _finish_import(
        CharacterSet(metadata=metadata, config=config, characters=result.characters), cmd
    )


# -- import-image ----------------------------------------------------------------------


@cli.command("import-image")
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--width", type=int, default=8, help="Character width in px")
@click.option("--height", type=int, default=8, help="Character height in px")
@size_preset_option
@click.option("--offset-x", type=int, default=0, help="Left margin of the grid")
@click.option("--offset-y", type=int, default=0, help="Top margin of the grid")
@click.option("--gap-x", type=int, default=0, help="Horizontal gap between cells")
@click.option("--gap-y", type=int, default=0, help="Vertical gap between cells")
@click.option("--columns", type=int, default=0, help="Force the column count (0 = auto)")
@click.option("--rows", type=int, default=0, help="Force the row count (0 = auto)")
@click.option("--threshold", type=int, default=128, help="Brightness threshold 0-255")
@click.option("--invert", is_flag=True, help="Light pixels are foreground")
@click.option("--max-chars", type=int, default=256, help="Maximum characters to import")
@click.option("--pixel-width", type=int, default=1, help="Image px per character px (x)")
@click.option("--pixel-height", type=int, default=1, help="Image px per character px (y)")
@click.option("--rotation", type=float, default=0.0, help="Rotate the sheet first (degrees)")
@click.option("--order", type=click.Choice(READING_ORDERS), default="ltr-ttb")
@click.option("--suggest", is_flag=True, help="Only print suggested cell sizes")
@shared_metadata_options
@shared_output_options
def import_image(image_path, **all_kwargs):
    """Slice a character sheet image (PNG, GIF, BMP, ...) into characters."""
    from charrom.image_import import (
        ImageImportOptions,
        detect_character_dimensions,
        is_valid_image_file,
        load_image,
        parse_image_to_characters,
    )

    meta_opts, cmd = _split_kwargs(all_kwargs, _METADATA_OPTION_NAMES)

    if not is_valid_image_file(image_path):
        click.secho(f"Warning: {image_path} does not look like an image file", fg="yellow")

    try:
        image = load_image(image_path)
    except OSError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    if cmd["suggest"]:
        click.echo(f"Image: {image.width}x{image.height}")
        for s in detect_character_dimensions(image.width, image.height):
            line = f"  {s.width}x{s.height}: {s.columns} x {s.rows} = {s.columns * s.rows}"
            examples = get_dimension_examples(s.width, s.height)
            click.echo(f"{line}  ({examples})" if examples else line)
        return

    try:
        width, height = _apply_size_preset(cmd["preset"], cmd["width"], cmd["height"])
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    options = ImageImportOptions(
        char_width=width,
        char_height=height,
        offset_x=cmd["offset_x"],
        offset_y=cmd["offset_y"],
        gap_x=cmd["gap_x"],
        gap_y=cmd["gap_y"],
        force_columns=cmd["columns"],
        force_rows=cmd["rows"],
        threshold=cmd["threshold"],
        invert=cmd["invert"],
        max_characters=cmd["max_chars"],
        pixel_width=cmd["pixel_width"],
        pixel_height=cmd["pixel_height"],
        rotation=cmd["rotation"],
        reading_order=cmd["order"],
    )

    try:
        result = parse_image_to_characters(image, options)
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    if not result.characters:
        click.secho("Error: No characters found in image", fg="red", err=True)
        sys.exit(1)

    click.echo(f"Grid: {result.columns} columns x {result.rows} rows")
    config = CharacterSetConfig(width=options.char_width, height=options.char_height)
    metadata = _build_metadata(meta_opts, Path(image_path).stem)
    _finish_import(
        CharacterSet(metadata=metadata, config=config, characters=result.characters), cmd
    )


# -- export ----------------------------------------------------------------------------

_EXPORT_EXTENSIONS = {"bin": ".bin", "c": ".h", "asm": ".asm", "png": ".png", "sheet": ".png"}

# --labels names for reference sheets
_SHEET_LABELS = ("hex", "decimal", "octal", "binary", "ascii", "control")


@cli.command()
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-f", "--format", "fmt", type=click.Choice(list(_EXPORT_EXTENSIONS)), default="bin"
)
@click.option("-o", "--output", type=click.Path(), default=None, help="Output path")
@click.option("--label", default=None, help="C array / assembly label name")
@click.option(
    "--directive", type=click.Choice([".byte", "db", ".db", "DC.B"]), default=".byte"
)
@click.option("--decimal", is_flag=True, help="Assembly: decimal instead of $hex values")
@click.option("--columns", type=int, default=16, help="PNG/sheet: characters per row")
@click.option("--scale", type=int, default=4, help="PNG/sheet: image px per character px")
@click.option("--no-grid", is_flag=True, help="PNG: omit grid lines")
@click.option("--title", default=None, help="Sheet: title (default: set name)")
@click.option("--no-title", is_flag=True, help="Sheet: omit the title block")
@click.option(
    "--labels",
    default="hex,ascii",
    help="Sheet: comma-separated labels from " + ", ".join(_SHEET_LABELS),
)
def export(
    record_path, fmt, output, label, directive, decimal, columns, scale, no_grid, **sheet_kwargs
):
    """Export a character set record as a ROM binary, C header, assembly, PNG or reference sheet."""
    from charrom.binary import serialize_character_rom
    from charrom.exports import (
        export_to_assembly,
        export_to_c_header,
        get_default_assembly_options,
        get_default_c_header_options,
        get_default_png_options,
        get_default_reference_sheet_options,
        save_png,
        save_reference_sheet,
    )
    from charrom.utils import get_suggested_filename

    try:
        character_set = _load_character_set(record_path)
    except (ValueError, OSError) as e:
        click.secho(f"Error reading {record_path}: {e}", fg="red", err=True)
        sys.exit(1)

    name = character_set.metadata.name
    chars, config = character_set.characters, character_set.config
    out = Path(output or get_suggested_filename(name, _EXPORT_EXTENSIONS[fmt]))

    if fmt == "bin":
        out.write_bytes(serialize_character_rom(chars, config))
    elif fmt == "c":
        c_opts = get_default_c_header_options(label or name)
        out.write_text(export_to_c_header(chars, config, c_opts), encoding="utf-8")
    elif fmt == "asm":
        asm_opts = get_default_assembly_options(label or name)
        asm_opts.directive = directive
        asm_opts.use_hex = not decimal
        out.write_text(export_to_assembly(chars, config, asm_opts), encoding="utf-8")
    elif fmt == "png":
        png_opts = get_default_png_options()
        png_opts.columns = columns
        png_opts.scale = scale
        png_opts.show_grid = not no_grid
        save_png(chars, config, out, png_opts)
    else:
        labels = {part.strip() for part in sheet_kwargs["labels"].split(",") if part.strip()}
        unknown = sorted(labels - set(_SHEET_LABELS))
        if unknown:
            click.secho(f"Error: Unknown sheet labels: {', '.join(unknown)}", fg="red", err=True)
            sys.exit(1)

        sheet_opts = get_default_reference_sheet_options(sheet_kwargs["title"] or name)
        sheet_opts.columns = columns
        sheet_opts.scale = scale
        sheet_opts.show_title = not sheet_kwargs["no_title"]
        sheet_opts.show_hex = "hex" in labels
        sheet_opts.show_decimal = "decimal" in labels
        sheet_opts.show_octal = "octal" in labels
        sheet_opts.show_binary = "binary" in labels
        sheet_opts.show_ascii = "ascii" in labels
        sheet_opts.show_non_printable_ascii = "control" in labels
        try:
            save_reference_sheet(chars, config, out, sheet_opts)
        except ValueError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(1)

    click.secho(f"Wrote {out}", fg="green")


# -- preview ---------------------------------------------------------------------------


@cli.command("preview")
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--chars", default=None, help="Indices to preview, e.g. '0,65-70' (default: all)")
@click.option("--text", default=None, help="Render a line of text horizontally")
@click.option("--start-code", type=int, default=0, help="Code of the first character")
def preview_cmd(record_path, chars, text, start_code):
    """Show ASCII preview of the characters in a record."""
    from charrom.preview import preview_characters, preview_text

    try:
        character_set = _load_character_set(record_path)
        count = len(character_set.characters)
        indices = _parse_indices(chars, count)
    except (ValueError, OSError) as e:
        click.secho(f"Error reading {record_path}: {e}", fg="red", err=True)
        sys.exit(1)

    config = character_set.config
    click.echo(
        f"Set: {character_set.metadata.name} ({count} characters, {config.width}x{config.height})\n"
    )

    if text:
        click.echo(preview_text(character_set.characters, text, start_code=start_code))
    else:
        click.echo(preview_characters(character_set.characters, indices, start_code=start_code))


# -- presets ---------------------------------------------------------------------------


@cli.command("presets")
@click.option("--maker", default=None, help="Only list the systems of this maker")
def presets_cmd(maker):
    """List known character sizes, code ranges, makers and systems."""
    from charrom.presets import (
        DIMENSION_PRESETS,
        SYSTEM_PRESETS,
        get_system_presets_by_maker,
        get_systems_for_maker,
        is_known_maker,
    )

    if maker:
        if not is_known_maker(maker):
            click.secho(f"Error: Unknown maker: {maker}", fg="red", err=True)
            sys.exit(1)
        sizes = {p.system: f"{p.width}x{p.height}" for p in SYSTEM_PRESETS}
        for system in get_systems_for_maker(maker):
            size = sizes.get(system)
            click.echo(f"  {system}: {size}" if size else f"  {system}")
        return

    click.secho("Sizes:", bold=True)
    for p in sorted(DIMENSION_PRESETS, key=lambda p: -p.priority):
        examples = ", ".join(p.examples)
        click.echo(f"  {p.label:<6} {examples}".rstrip())

    click.secho("\nRanges (import-font --range):", bold=True)
    for r in CHARACTER_RANGE_PRESETS:
        click.echo(f"  {r.slug:<16} {r.start_code}-{r.end_code} ({r.count}) {r.description}")

    click.secho("\nSystems (--preset):", bold=True)
    for group_maker, group in get_system_presets_by_maker().items():
        listed = ", ".join(f"{p.system} {p.width}x{p.height}" for p in group)
        click.echo(f"  {group_maker}: {listed}")


# -- validate --------------------------------------------------------------------------


@cli.command("validate")
@click.argument("json_path", type=click.Path(exists=True))
def validate_cmd(json_path):
    """Validate a character set record or library JSON file."""
    from charrom.validator import validate_file

    issues = validate_file(json_path)
    if not issues:
        click.secho(f"Validation passed: {json_path}", fg="green")
        return

    click.secho(f"Validation issues in {json_path} ({len(issues)}):", fg="yellow")
    for issue in issues:
        click.echo(f"  - {issue}")
    sys.exit(1)


# -- similar ---------------------------------------------------------------------------


@cli.command()
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("library_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", type=int, default=5, help="Number of matches to show")
def similar(record_path, library_path, limit):
    """Rank the sets of a library by similarity to a record."""
    from charrom.similarity import calculate_similarities

    try:
        source = _load_character_set(record_path)
        library = _load_library(library_path)
    except (ValueError, OSError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    results = calculate_similarities(
        source.characters, source.config, library, exclude_id=source.metadata.id
    )
    if not results:
        click.secho("No comparable character sets found", fg="yellow")
        return

    for r in results[:limit]:
        click.echo(
            f"  {r.match_percentage:3d}%  {r.character_set_name}"
            f"  (avg diff {r.average_difference:.2f},"
            f" {r.matched_characters}/{r.total_characters} chars)"
        )


# -- share / unshare -------------------------------------------------------------------


@cli.command()
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", type=click.Choice(["v1", "v2"]), default="v2")
@click.option("--origin", default="", help="Site origin, e.g. https://example.com")
@click.option("--blob-only", is_flag=True, help="Print the encoded blob instead of a URL")
def share(record_path, fmt, origin, blob_only):
    """Encode a record as a share URL."""
    from charrom.sharing import (
        create_share_url,
        encode_character_set,
        encode_character_set_v2,
        get_url_length_status,
    )

    try:
        character_set = _load_character_set(record_path)
        encode = encode_character_set_v2 if fmt == "v2" else encode_character_set
        encoded = encode(
            character_set.metadata.name,
            character_set.metadata.description,
            character_set.characters,
            character_set.config,
        )
    except (ValueError, OSError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    if blob_only:
        click.echo(encoded)
        return

    url = create_share_url(encoded, origin)
    click.echo(url)

    status = get_url_length_status(url)
    if status == "warning":
        click.secho(
            f"URL is {len(url)} characters and may be too long for some platforms",
            fg="yellow",
            err=True,
        )
    elif status == "error":
        click.secho(f"Error: URL is too long to share ({len(url)} characters)", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.argument("blob")
@click.option("-o", "--output", type=click.Path(), default=None, help="Output JSON path")
@click.option("--preview/--no-preview", default=False, help="Show ASCII preview")
def unshare(blob, output, preview):
    """Decode a share URL (or bare blob) into a character set record."""
    from charrom.sharing import decode_character_set, extract_from_url

    encoded = extract_from_url(blob) if "#" in blob else blob
    try:
        shared = decode_character_set(encoded or "")
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    metadata = CharacterSetMetadata(
        name=shared.name.strip() or "Shared Character Set",
        description=shared.description,
        source="shared",
    )
    character_set = CharacterSet(
        metadata=metadata, config=shared.config, characters=shared.characters
    )
    _finish_import(character_set, {"output": output, "preview": preview, "do_validate": False})


# -- transform -------------------------------------------------------------------------

_OPERATIONS = (
    "rotate-left",
    "rotate-right",
    "shift-up",
    "shift-down",
    "shift-left",
    "shift-right",
    "flip-horizontal",
    "flip-vertical",
    "invert",
    "center",
    "clear",
    "fill",
    "scale",
    "resize",
)


def _character_transform(operation: str, wrap: bool, scale: float, anchor: str, algorithm: str):
    """Map an operation name to a Character -> Character function."""
    from charrom import transforms as t

    if operation.startswith("rotate-"):
        return lambda c: t.rotate_character(c, operation.removeprefix("rotate-"))
    if operation.startswith("shift-"):
        return lambda c: t.shift_character(c, operation.removeprefix("shift-"), wrap=wrap)
    if operation == "scale":
        return lambda c: t.scale_character(c, scale, anchor, algorithm)
    simple = {
        "flip-horizontal": t.flip_horizontal,
        "flip-vertical": t.flip_vertical,
        "invert": t.invert_character,
        "center": t.center_character,
        "clear": lambda c: t.clear_character(c.width, c.height),
        "fill": lambda c: t.fill_character(c.width, c.height),
    }
    return simple[operation]


@cli.command()
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("operation", type=click.Choice(_OPERATIONS))
@click.option("-o", "--output", type=click.Path(), default=None, help="Output (default: in place)")
@click.option("--indices", default=None, help="Characters to change, e.g. '0,65-70'")
@click.option("--no-wrap", is_flag=True, help="shift: drop pixels leaving the grid")
@click.option("--scale", "scale_factor", type=float, default=1.0, help="scale: factor")
@click.option("--algorithm", type=click.Choice(SCALE_ALGORITHMS), default="nearest")
@click.option("--anchor", type=ANCHOR_CHOICE, default="mc", help="scale/resize: anchor point")
@click.option("--size", default=None, help="resize: new size, e.g. 8x16")
def transform(
    record_path, operation, output, indices, no_wrap, scale_factor, algorithm, anchor, size
):
    """Apply a pixel transform to characters of a record.

    'resize' changes the size of the whole set; the other operations act on
    the characters selected by --indices (default: all).
    """
    from charrom.binary import convert_character
    from charrom.transforms import batch_transform
    from charrom.utils import parse_size

    try:
        character_set = _load_character_set(record_path)
        selected = _parse_indices(indices, len(character_set.characters))

        if operation == "resize":
            new_size = parse_size(size or "")
            if new_size is None:
                msg = f"resize needs --size WIDTHxHEIGHT, got {size!r}"
                raise ValueError(msg)
            source_config = character_set.config
            config = CharacterSetConfig(
                width=new_size[0],
                height=new_size[1],
                padding=source_config.padding,
                bit_direction=source_config.bit_direction,
                byte_order=source_config.byte_order,
            )
            characters = [
                convert_character(c, source_config, config, anchor)
                for c in character_set.characters
            ]
        else:
            config = character_set.config
            fn = _character_transform(operation, not no_wrap, scale_factor, anchor, algorithm)
            characters = batch_transform(character_set.characters, selected, fn)
    except (ValueError, OSError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    metadata = character_set.metadata.model_copy(update={"updated_at": now_ms()})
    updated = CharacterSet(metadata=metadata, config=config, characters=characters)
    out = output or record_path
    _write_character_set(updated, out)
    click.secho(f"Wrote {out} ({operation})", fg="green")
