"""Character set library storage and snapshots.

:class:`CharacterSetStorage` is the interface the rest of the package
depends on. Two implementations ship here: an in-memory store (tests,
scratch sessions) and a single-JSON-document file store.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from charrom.binary import (
    base64_to_binary,
    binary_to_base64,
    parse_character_rom,
    serialize_character_rom,
)
from charrom.config import MAX_SNAPSHOTS
from charrom.filters import matches_search_query
from charrom.schema import (
    Character,
    CharacterSetConfig,
    SerializedCharacterSet,
    generate_id,
    now_ms,
)

logger = logging.getLogger(__name__)


class CharacterSetStorage(ABC):
    """Library of serialized character sets, keyed by ``metadata.id``.

    Subclasses provide the primitive record operations; queries are built on
    top of :meth:`get_all`.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the backend. Safe to call more than once."""

    @abstractmethod
    def _records(self) -> list[SerializedCharacterSet]:
        """All stored records, in no particular order."""

    @abstractmethod
    def _put(self, record: SerializedCharacterSet) -> None: ...

    @abstractmethod
    def _remove(self, set_id: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...

    def get_all(self) -> list[SerializedCharacterSet]:
        """Pinned sets first, then most recently updated."""
        self.initialize()
        return sorted(
            self._records(),
            key=lambda r: (not r.metadata.is_pinned, -r.metadata.updated_at),
        )

    def get_by_id(self, set_id: str) -> SerializedCharacterSet | None:
        self.initialize()
        for record in self._records():
            if record.metadata.id == set_id:
                return record
        return None

    def save(self, record: SerializedCharacterSet) -> str:
        """Insert or replace a record; returns its id."""
        self.initialize()
        self._put(record)
        return record.metadata.id

    def save_as(self, record: SerializedCharacterSet, new_name: str) -> str:
        """Store a copy under a new id and name, owned by the user."""
        now = now_ms()
        metadata = record.metadata.model_copy(
            update={
                "id": generate_id(),
                "name": new_name,
                "created_at": now,
                "updated_at": now,
                "is_built_in": False,
                "source": "yourself",
            }
        )
        return self.save(record.model_copy(update={"metadata": metadata}))

    def delete(self, set_id: str) -> None:
        self.initialize()
        self._remove(set_id)

    def toggle_pinned(self, set_id: str) -> bool:
        """Flip ``is_pinned`` and return the new state.

        Raises:
            KeyError: If no set has this id.
        """
        record = self.get_by_id(set_id)
        if record is None:
            raise KeyError(f"Character set not found: {set_id}")

        pinned = not record.metadata.is_pinned
        metadata = record.metadata.model_copy(update={"is_pinned": pinned})
        self.save(record.model_copy(update={"metadata": metadata}))
        return pinned

    def search(self, query: str) -> list[SerializedCharacterSet]:
        return [r for r in self.get_all() if matches_search_query(r, query)]

    def filter_by_size(
        self, width: int | None, height: int | None
    ) -> list[SerializedCharacterSet]:
        return [
            r
            for r in self.get_all()
            if (width is None or r.config.width == width)
            and (height is None or r.config.height == height)
        ]

    def filter_by_manufacturers(self, manufacturers: list[str]) -> list[SerializedCharacterSet]:
        """Case-insensitive OR match; an empty list returns everything."""
        wanted = {m.lower() for m in manufacturers}
        records = self.get_all()
        if not wanted:
            return records
        return [r for r in records if (r.metadata.manufacturer or "").lower() in wanted]

    def filter_by_systems(self, systems: list[str]) -> list[SerializedCharacterSet]:
        wanted = {s.lower() for s in systems}
        records = self.get_all()
        if not wanted:
            return records
        return [r for r in records if (r.metadata.system or "").lower() in wanted]

    def get_available_sizes(self) -> list[tuple[int, int]]:
        """Distinct (width, height) pairs, sorted."""
        return sorted({(r.config.width, r.config.height) for r in self.get_all()})

    def get_available_manufacturers(self) -> list[str]:
        return sorted({r.metadata.manufacturer for r in self.get_all() if r.metadata.manufacturer})

    def get_available_systems(self) -> list[str]:
        return sorted({r.metadata.system for r in self.get_all() if r.metadata.system})

    def name_exists(self, name: str, exclude_id: str | None = None) -> bool:
        lowered = name.lower()
        return any(
            r.metadata.name.lower() == lowered and r.metadata.id != exclude_id
            for r in self.get_all()
        )

    def count(self) -> int:
        return len(self.get_all())

    def is_empty(self) -> bool:
        return self.count() == 0


class MemoryCharacterSetStorage(CharacterSetStorage):
    def __init__(self) -> None:
        self._data: dict[str, SerializedCharacterSet] = {}

    def initialize(self) -> None:
        pass

    def _records(self) -> list[SerializedCharacterSet]:
        return list(self._data.values())

    def _put(self, record: SerializedCharacterSet) -> None:
        self._data[record.metadata.id] = record

    def _remove(self, set_id: str) -> None:
        self._data.pop(set_id, None)

    def clear(self) -> None:
        self._data.clear()


class JsonFileCharacterSetStorage(CharacterSetStorage):
    """All records in one JSON document: ``{"characterSets": [record, ...]}``.

    The file is loaded lazily on first access and rewritten atomically
    (temp file + ``os.replace``) after every change.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, SerializedCharacterSet] | None = None

    def initialize(self) -> None:
        if self._data is not None:
            return

        self._data = {}
        if not self.path.exists():
            return

        with open(self.path, encoding="utf-8") as f:
            document = json.load(f)
        for raw in document.get("characterSets", []):
            record = SerializedCharacterSet.model_validate(raw)
            self._data[record.metadata.id] = record
        logger.info("Loaded %d character sets from %s", len(self._data), self.path)

    def _store(self) -> dict[str, SerializedCharacterSet]:
        self.initialize()
        if self._data is None:
            self._data = {}
        return self._data

    def _records(self) -> list[SerializedCharacterSet]:
        return list(self._store().values())

    def _put(self, record: SerializedCharacterSet) -> None:
        updated = dict(self._store())
        updated[record.metadata.id] = record
        self._commit(updated)

    def _remove(self, set_id: str) -> None:
        if set_id in self._store():
            updated = dict(self._store())
            del updated[set_id]
            self._commit(updated)

    def clear(self) -> None:
        self._commit({})

    def _commit(self, data: dict[str, SerializedCharacterSet]) -> None:
        """Write ``data`` to disk, then make it the in-memory state."""
        self._flush(data)
        self._data = data

    def _flush(self, data: dict[str, SerializedCharacterSet]) -> None:
        document = {"characterSets": [r.to_dict() for r in data.values()]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise


# -- Snapshots ---------------------------------------------------------------------------


class Snapshot(BaseModel):
    """A named copy of a character set's ROM data at one point in time."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id)
    character_set_id: str = Field(alias="characterSetId")
    name: str
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    binary_data: str = Field(alias="binaryData")
    config: CharacterSetConfig
    character_count: int = Field(alias="characterCount")


def create_snapshot(
    character_set_id: str,
    name: str,
    characters: list[Character],
    config: CharacterSetConfig,
) -> Snapshot:
    return Snapshot(
        character_set_id=character_set_id,
        name=name,
        binary_data=binary_to_base64(serialize_character_rom(characters, config)),
        config=config,
        character_count=len(characters),
    )


def restore_snapshot(snapshot: Snapshot) -> list[Character]:
    return parse_character_rom(base64_to_binary(snapshot.binary_data), snapshot.config)


class MemorySnapshotStorage:
    """Snapshots grouped by character set, at most ``max_snapshots`` per set."""

    def __init__(self, max_snapshots: int = MAX_SNAPSHOTS) -> None:
        self.max_snapshots = max_snapshots
        self._data: dict[str, Snapshot] = {}

    def save(self, snapshot: Snapshot) -> None:
        """Store a snapshot.

        Raises:
            ValueError: If the character set already has ``max_snapshots``
                snapshots and this one is new.
        """
        if snapshot.id not in self._data and self.is_at_capacity(snapshot.character_set_id):
            msg = (
                f"Maximum of {self.max_snapshots} snapshots per character set. "
                "Delete an existing snapshot first."
            )
            raise ValueError(msg)
        self._data[snapshot.id] = snapshot

    def get_for_character_set(self, character_set_id: str) -> list[Snapshot]:
        """Snapshots of one set, newest first."""
        found = [s for s in self._data.values() if s.character_set_id == character_set_id]
        return sorted(found, key=lambda s: s.created_at, reverse=True)

    def get_by_id(self, snapshot_id: str) -> Snapshot | None:
        return self._data.get(snapshot_id)

    def delete(self, snapshot_id: str) -> None:
        self._data.pop(snapshot_id, None)

    def delete_all_for_character_set(self, character_set_id: str) -> None:
        for snapshot in self.get_for_character_set(character_set_id):
            del self._data[snapshot.id]

    def rename(self, snapshot_id: str, new_name: str) -> None:
        snapshot = self._data.get(snapshot_id)
        if snapshot is None:
            raise KeyError(f"Snapshot not found: {snapshot_id}")
        self._data[snapshot_id] = snapshot.model_copy(update={"name": new_name})

    def get_count(self, character_set_id: str) -> int:
        return len(self.get_for_character_set(character_set_id))

    def is_at_capacity(self, character_set_id: str) -> bool:
        return self.get_count(character_set_id) >= self.max_snapshots

    def get_max_snapshots(self) -> int:
        return self.max_snapshots
