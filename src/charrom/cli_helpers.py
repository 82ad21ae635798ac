"""CLI helper functions, decorators, and option definitions for charrom."""

from __future__ import annotations

import json
from pathlib import Path

import click

from charrom.binary import deserialize_character_set, serialize_character_set
from charrom.config import (
    ANCHOR_POINTS,
    BIT_DIRECTIONS,
    BYTE_ORDERS,
    DEFAULT_BIT_DIRECTION,
    DEFAULT_HEIGHT,
    DEFAULT_PADDING,
    DEFAULT_WIDTH,
    PADDING_DIRECTIONS,
)
from charrom.presets import (
    find_dimension_preset,
    find_maker_for_system,
    format_dimension_preset,
    resolve_size_preset,
)
from charrom.schema import (
    Character,
    CharacterSet,
    CharacterSetConfig,
    CharacterSetMetadata,
    SerializedCharacterSet,
)

# Names of the shared layout options (used to split kwargs in commands)
_CONFIG_OPTION_NAMES = ("width", "height", "padding", "bit_direction", "byte_order")

# Characters shown by --preview after an import
PREVIEW_LIMIT = 4

# Names of the shared metadata options
_METADATA_OPTION_NAMES = ("name", "description", "source", "manufacturer", "system", "tags")


def shared_config_options(func):
    """Decorator that adds the character layout options to a command."""
    options = [
        click.option("--width", type=int, default=DEFAULT_WIDTH, help="Character width in px"),
        click.option("--height", type=int, default=DEFAULT_HEIGHT, help="Character height in px"),
        click.option(
            "--padding",
            type=click.Choice(PADDING_DIRECTIONS),
            default=DEFAULT_PADDING,
            help="Side of each row byte holding the unused bits",
        ),
        click.option(
            "--bit-direction",
            type=click.Choice(BIT_DIRECTIONS),
            default=DEFAULT_BIT_DIRECTION,
            help="ltr/msb: column 0 is the high bit; rtl/lsb: column 0 is the low bit",
        ),
        click.option(
            "--byte-order",
            type=click.Choice(BYTE_ORDERS),
            default="big",
            help="Byte order of rows wider than 8 pixels",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return size_preset_option(func)


def size_preset_option(func):
    """Decorator that adds --preset (a WxH size or a system name such as C64)."""
    return click.option(
        "--preset",
        default=None,
        help="Size preset: WxH or a system, e.g. C64 (overrides --width/--height)",
    )(func)


def shared_metadata_options(func):
    """Decorator that adds library metadata options to an import command."""
    options = [
        click.option("--name", default=None, help="Character set name (default: file stem)"),
        click.option("--description", default="", help="Description"),
        click.option("--source", default="yourself", help="Attribution text"),
        click.option("--manufacturer", default=None, help="Manufacturer, e.g. Commodore"),
        click.option("--system", default=None, help="System, e.g. C64"),
        click.option("--tags", default=None, help="Comma-separated tags"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def shared_output_options(func):
    """Decorator that adds -o/--output, --preview and --validate."""
    options = [
        click.option("-o", "--output", type=click.Path(), default=None, help="Output JSON path"),
        click.option("--preview/--no-preview", default=False, help="Show ASCII preview"),
        click.option(
            "--validate/--no-validate", "do_validate", default=False, help="Validate output"
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _split_kwargs(all_kwargs: dict, names: tuple[str, ...]) -> tuple[dict, dict]:
    """Split kwargs into (named group, remaining command opts)."""
    group = {k: all_kwargs[k] for k in names}
    rest = {k: v for k, v in all_kwargs.items() if k not in names}
    return group, rest


def _apply_size_preset(preset: str | None, width: int, height: int) -> tuple[int, int]:
    """Width and height after ``--preset``; raises ValueError for unknown presets."""
    if not preset:
        return width, height
    return resolve_size_preset(preset)


def _build_config(opts: dict) -> CharacterSetConfig:
    """Build a CharacterSetConfig from a CLI option dict."""
    return CharacterSetConfig(
        width=opts["width"],
        height=opts["height"],
        padding=opts["padding"],
        bit_direction=opts["bit_direction"],
        byte_order=opts["byte_order"],
    )


def _build_metadata(opts: dict, default_name: str) -> CharacterSetMetadata:
    """Build library metadata from a CLI option dict."""
    tags_raw = opts.get("tags")
    tag_list = [t.strip() for t in tags_raw.split(",") if t.strip()] if tags_raw else []
    system = opts.get("system")
    manufacturer = opts.get("manufacturer")
    if system and not manufacturer:
        manufacturer = find_maker_for_system(system)

    return CharacterSetMetadata(
        name=opts.get("name") or default_name,
        description=opts.get("description") or "",
        source=opts.get("source") or "yourself",
        manufacturer=manufacturer,
        system=system,
        tags=tag_list,
    )


def _load_record(path: str) -> SerializedCharacterSet:
    """Read one persisted record (``{metadata, config, binaryData}``)."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return SerializedCharacterSet.model_validate(data)


def _load_character_set(path: str) -> CharacterSet:
    return deserialize_character_set(_load_record(path))


def _load_library(path: str) -> list[SerializedCharacterSet]:
    """Read a library document, or a single record as a one-set library."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict) and "characterSets" in data:
        return [SerializedCharacterSet.model_validate(r) for r in data["characterSets"]]
    return [SerializedCharacterSet.model_validate(data)]


def _write_character_set(character_set: CharacterSet, output_path: str) -> dict:
    """Write a character set record to JSON, return the serialized data dict."""
    data = serialize_character_set(character_set).to_dict()
    Path(output_path).write_text(
        json.dumps(data, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return data


def _default_output(name: str) -> str:
    from charrom.utils import get_suggested_filename

    return get_suggested_filename(name, ".json")


def _print_set_summary(character_set: CharacterSet, output_path: str) -> None:
    """Print standard summary after writing a character set."""
    config = character_set.config
    click.secho(f"Wrote {output_path}", fg="green")
    click.echo(f"  Set: {character_set.metadata.name} ({character_set.metadata.id})")
    click.echo(f"  Characters: {len(character_set.characters)}")
    preset = find_dimension_preset(config.width, config.height)
    size = format_dimension_preset(preset) if preset else f"{config.width}x{config.height}"
    click.echo(f"  Size: {size}")
    click.echo(f"  Layout: padding={config.padding}, bits={config.bit_direction}")


def _show_output(
    characters: list[Character], data: dict, preview: bool, do_validate: bool
) -> None:
    """Show optional preview and/or validation results."""
    if preview:
        from charrom.preview import preview_characters

        shown = list(range(min(PREVIEW_LIMIT, len(characters))))
        click.echo("\n" + preview_characters(characters, indices=shown))

    if do_validate:
        from charrom.validator import validate_record

        issues = validate_record(data)
        if issues:
            click.secho(f"\n  Validation issues ({len(issues)}):", fg="yellow")
            for issue in issues:
                click.echo(f"    - {issue}")
        else:
            click.secho("  Validation passed", fg="green")


def _parse_indices(raw: str | None, count: int) -> list[int]:
    """Parse ``"0,2,65-70"`` into indices; None selects every character."""
    if not raw:
        return list(range(count))

    indices: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, _, end = part.partition("-")
            indices.extend(range(int(start), int(end) + 1))
        else:
            indices.append(int(part))
    return indices


ANCHOR_CHOICE = click.Choice(ANCHOR_POINTS)
