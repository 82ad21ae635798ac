"""Validation of character set configs and persisted records."""

from __future__ import annotations

import binascii
import json
from pathlib import Path
from typing import Any

from charrom.binary import base64_to_binary, bytes_per_line
from charrom.config import BIT_DIRECTIONS, MAX_DIMENSION, MIN_DIMENSION, PADDING_DIRECTIONS

REQUIRED_FIELDS = ("metadata", "config", "binaryData")
REQUIRED_METADATA_FIELDS = ("id", "name")


def validate_config(config: dict[str, Any]) -> list[str]:
    """Check a config dict (camelCase or snake_case keys). Returns list of issues."""
    issues: list[str] = []

    for key in ("width", "height"):
        value = config.get(key)
        if not isinstance(value, int) or isinstance(value, bool):
            issues.append(f"{key.capitalize()} must be an integer")
        elif not MIN_DIMENSION <= value <= MAX_DIMENSION:
            issues.append(
                f"{key.capitalize()} must be between {MIN_DIMENSION} and {MAX_DIMENSION} pixels"
            )

    if config.get("padding") not in PADDING_DIRECTIONS:
        issues.append("Padding must be 'left' or 'right'")

    bit_direction = config.get("bitDirection", config.get("bit_direction"))
    if bit_direction not in BIT_DIRECTIONS:
        issues.append(f"Bit direction must be one of: {', '.join(BIT_DIRECTIONS)}")

    byte_order = config.get("byteOrder", config.get("byte_order", "big"))
    if byte_order not in ("big", "little"):
        issues.append("Byte order must be 'big' or 'little'")

    return issues


def validate_record(data: dict[str, Any]) -> list[str]:
    """Run all checks on one persisted record. Returns list of issues (empty = valid)."""
    issues: list[str] = []

    _check_schema(data, issues)
    _check_metadata(data, issues)

    config = data.get("config")
    if isinstance(config, dict):
        issues.extend(validate_config(config))
        _check_binary_data(data, config, issues)
    elif config is not None:
        issues.append("'config' must be an object")

    return issues


def validate_file(path: str | Path) -> list[str]:
    """Validate a JSON file holding one record or a library ``{"characterSets": [...]}``."""
    filepath = Path(path)

    if not filepath.exists():
        return [f"File not found: {path}"]

    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        return [f"Invalid JSON: {e}"]

    if not isinstance(data, dict):
        return ["Root element must be a JSON object"]

    if "characterSets" not in data:
        return validate_record(data)

    records = data["characterSets"]
    if not isinstance(records, list):
        return ["'characterSets' must be a list"]

    issues: list[str] = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            issues.append(f"Set {i}: must be an object")
            continue
        issues.extend(f"Set {i}: {issue}" for issue in validate_record(record))
    return issues


# --- Individual checks ---


def _check_schema(data: dict[str, Any], issues: list[str]) -> None:
    for field in REQUIRED_FIELDS:
        if field not in data:
            issues.append(f"Missing required field: '{field}'")


def _check_metadata(data: dict[str, Any], issues: list[str]) -> None:
    metadata = data.get("metadata")
    if metadata is None:
        return
    if not isinstance(metadata, dict):
        issues.append("'metadata' must be an object")
        return

    for field in REQUIRED_METADATA_FIELDS:
        if field not in metadata:
            issues.append(f"Missing required metadata field: '{field}'")

    name = metadata.get("name")
    if isinstance(name, str) and not name.strip():
        issues.append("Name must not be empty")

    tags = metadata.get("tags")
    if tags is not None and not (isinstance(tags, list) and all(isinstance(t, str) for t in tags)):
        issues.append("Tags must be a list of strings")


def _check_binary_data(data: dict[str, Any], config: dict[str, Any], issues: list[str]) -> None:
    """binaryData must be base64 and hold a whole number of characters."""
    encoded = data.get("binaryData")
    if not isinstance(encoded, str):
        if encoded is not None:
            issues.append("'binaryData' must be a base64 string")
        return

    try:
        raw = base64_to_binary(encoded)
    except binascii.Error as e:
        issues.append(f"Invalid base64 in binaryData: {e}")
        return

    width, height = config.get("width"), config.get("height")
    if not isinstance(width, int) or not isinstance(height, int) or width < 1 or height < 1:
        return

    char_size = bytes_per_line(width) * height
    if len(raw) % char_size:
        issues.append(
            f"binaryData length {len(raw)} is not a multiple of {char_size} bytes per character"
        )
