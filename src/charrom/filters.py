"""Library filtering and sorting for serialized character sets.

All functions are pure and work on :class:`SerializedCharacterSet` records,
so a library can be filtered without decoding any ROM data.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from charrom.binary import base64_to_binary, bytes_per_character
from charrom.schema import SerializedCharacterSet

SortField = Literal[
    "name",
    "description",
    "source",
    "updatedAt",
    "createdAt",
    "width",
    "height",
    "size",
    "characters",
    "manufacturer",
    "system",
    "chip",
    "locale",
]
SortDirection = Literal["asc", "desc"]

SORT_FIELDS = (
    "name",
    "description",
    "source",
    "updatedAt",
    "createdAt",
    "width",
    "height",
    "size",
    "characters",
    "manufacturer",
    "system",
    "chip",
    "locale",
)


@dataclass
class LibraryFilterState:
    """Active library filters. Empty lists mean "no constraint"."""

    search_query: str = ""
    width_filters: list[int] = field(default_factory=list)
    height_filters: list[int] = field(default_factory=list)
    character_count_filters: list[int] = field(default_factory=list)
    manufacturer_filters: list[str] = field(default_factory=list)
    system_filters: list[str] = field(default_factory=list)
    chip_filters: list[str] = field(default_factory=list)
    locale_filters: list[str] = field(default_factory=list)
    tag_filters: list[str] = field(default_factory=list)


def get_character_count(serialized: SerializedCharacterSet) -> int:
    """Number of whole characters stored in a record."""
    data = base64_to_binary(serialized.binary_data)
    return len(data) // bytes_per_character(serialized.config)


def has_active_filters(filters: LibraryFilterState) -> bool:
    return bool(
        filters.search_query
        or filters.width_filters
        or filters.height_filters
        or filters.character_count_filters
        or filters.manufacturer_filters
        or filters.system_filters
        or filters.chip_filters
        or filters.locale_filters
        or filters.tag_filters
    )


def matches_search_query(record: SerializedCharacterSet, query: str) -> bool:
    """Case-insensitive substring match over the descriptive metadata fields."""
    if not query.strip():
        return True

    needle = query.lower()
    meta = record.metadata
    haystack = [
        meta.name,
        meta.description,
        meta.source,
        meta.manufacturer,
        meta.system,
        meta.chip,
        meta.locale,
        *meta.tags,
    ]
    return any(value and needle in value.lower() for value in haystack)


def matches_size_filters(
    record: SerializedCharacterSet,
    width_filters: list[int],
    height_filters: list[int],
) -> bool:
    if width_filters and record.config.width not in width_filters:
        return False
    return not (height_filters and record.config.height not in height_filters)


def _matches_optional(value: str | None, allowed: list[str]) -> bool:
    if not allowed:
        return True
    return bool(value) and value in allowed


def matches_manufacturer_filter(record: SerializedCharacterSet, manufacturers: list[str]) -> bool:
    return _matches_optional(record.metadata.manufacturer, manufacturers)


def matches_system_filter(record: SerializedCharacterSet, systems: list[str]) -> bool:
    return _matches_optional(record.metadata.system, systems)


def matches_chip_filter(record: SerializedCharacterSet, chips: list[str]) -> bool:
    return _matches_optional(record.metadata.chip, chips)


def matches_locale_filter(record: SerializedCharacterSet, locales: list[str]) -> bool:
    return _matches_optional(record.metadata.locale, locales)


def matches_character_count_filter(record: SerializedCharacterSet, counts: list[int]) -> bool:
    if not counts:
        return True
    return get_character_count(record) in counts


def matches_tag_filter(record: SerializedCharacterSet, tags: list[str]) -> bool:
    """True when any of ``tags`` is on the record."""
    if not tags:
        return True
    return any(tag in record.metadata.tags for tag in tags)


def matches_all_filters(record: SerializedCharacterSet, filters: LibraryFilterState) -> bool:
    return (
        matches_search_query(record, filters.search_query)
        and matches_size_filters(record, filters.width_filters, filters.height_filters)
        and matches_manufacturer_filter(record, filters.manufacturer_filters)
        and matches_system_filter(record, filters.system_filters)
        and matches_chip_filter(record, filters.chip_filters)
        and matches_locale_filter(record, filters.locale_filters)
        and matches_character_count_filter(record, filters.character_count_filters)
        and matches_tag_filter(record, filters.tag_filters)
    )


def filter_character_sets(
    records: list[SerializedCharacterSet],
    filters: LibraryFilterState,
) -> list[SerializedCharacterSet]:
    return [r for r in records if matches_all_filters(r, filters)]


def _sort_key(record: SerializedCharacterSet, sort_field: str):
    meta, config = record.metadata, record.config
    if sort_field == "updatedAt":
        return meta.updated_at
    if sort_field == "createdAt":
        return meta.created_at
    if sort_field == "width":
        return config.width
    if sort_field == "height":
        return config.height
    if sort_field == "size":
        return config.width * config.height
    if sort_field == "characters":
        return get_character_count(record)
    # text fields: name, description, source, manufacturer, system, chip, locale
    return (getattr(meta, sort_field) or "").casefold()


def sort_character_sets(
    records: list[SerializedCharacterSet],
    sort_field: SortField,
    direction: SortDirection,
) -> list[SerializedCharacterSet]:
    """Sort by ``sort_field``; pinned sets always come first.

    Raises:
        ValueError: If sort_field or direction is unknown.
    """
    if sort_field not in SORT_FIELDS:
        msg = f"Unknown sort field '{sort_field}', expected one of: {', '.join(SORT_FIELDS)}"
        raise ValueError(msg)
    if direction not in ("asc", "desc"):
        msg = f"Unknown sort direction '{direction}', expected 'asc' or 'desc'"
        raise ValueError(msg)

    ordered = sorted(
        records, key=lambda r: _sort_key(r, sort_field), reverse=direction == "desc"
    )
    # sorted() is stable, so this keeps the field order within each group
    return sorted(ordered, key=lambda r: not r.metadata.is_pinned)


def filter_and_sort_character_sets(
    records: list[SerializedCharacterSet],
    filters: LibraryFilterState,
    sort_field: SortField,
    direction: SortDirection,
) -> list[SerializedCharacterSet]:
    return sort_character_sets(filter_character_sets(records, filters), sort_field, direction)


def _unique_sorted(values: Iterable[str | None]) -> list[str]:
    return sorted({v for v in values if v})


def get_available_manufacturers(records: list[SerializedCharacterSet]) -> list[str]:
    return _unique_sorted(r.metadata.manufacturer for r in records)


def get_available_systems(
    records: list[SerializedCharacterSet],
    manufacturer_filters: list[str] | None = None,
) -> list[str]:
    """Distinct systems, limited to the given manufacturers when any are given."""
    if manufacturer_filters:
        records = [r for r in records if r.metadata.manufacturer in manufacturer_filters]
    return _unique_sorted(r.metadata.system for r in records)


def get_available_chips(records: list[SerializedCharacterSet]) -> list[str]:
    return _unique_sorted(r.metadata.chip for r in records)


def get_available_locales(records: list[SerializedCharacterSet]) -> list[str]:
    return _unique_sorted(r.metadata.locale for r in records)


def get_available_tags(records: list[SerializedCharacterSet]) -> list[str]:
    return _unique_sorted(tag for r in records for tag in r.metadata.tags)


def get_available_character_counts(records: list[SerializedCharacterSet]) -> list[int]:
    return sorted({get_character_count(r) for r in records})


def filter_invalid_systems(
    current_systems: list[str],
    records: list[SerializedCharacterSet],
    manufacturer_filters: list[str],
) -> list[str]:
    """Drop selected systems that no record of the selected manufacturers has."""
    if not manufacturer_filters:
        return current_systems
    valid = set(get_available_systems(records, manufacturer_filters))
    return [s for s in current_systems if s in valid]
