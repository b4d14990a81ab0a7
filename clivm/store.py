"""
Record persistence: one JSON file per registered tool.

Each record lives in ``<data_dir>/<id>.json`` and is rewritten atomically
(temp file then rename), so an interrupted save leaves either the previous
record or the new one on disk, never a truncated file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import InvalidName, NotFound, StoreError

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"

# Selects every tool in listings, so no tool may use it as its name
ALL = "all"


def validate_name(name: str) -> str:
    """Check that a tool name can be used as a file and link name.

    Args:
        name: Tool name

    Returns:
        The name, unchanged

    Raises:
        InvalidName: If the name is empty, hidden, reserved, or contains a path
            separator
    """
    if not name or not name.strip():
        raise InvalidName("Tool name must not be empty")
    if name.startswith("."):
        raise InvalidName(f"Invalid tool name '{name}': must not start with '.'")
    if name == ALL:
        raise InvalidName(f"Invalid tool name '{name}': reserved for listing every tool")
    if "/" in name or (os.altsep and os.altsep in name) or "\0" in name:
        raise InvalidName(f"Invalid tool name '{name}': must not contain a path separator")
    return name


@dataclass
class ToolRecord:
    """Persisted state for one tool: its versions and which one is active."""

    id: str
    versions: list[str] = field(default_factory=list)
    active: int = 0

    @property
    def active_version(self) -> str:
        return self.versions[self.active]

    def index_of(self, version: str) -> int:
        """Position of ``version``, or -1 when it is not registered."""
        try:
            return self.versions.index(version)
        except ValueError:
            return -1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "active": self.active,
            "versions": list(self.versions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolRecord":
        """Create from dictionary.

        Files written by older releases store the active index under
        ``version``; it is read when ``active`` is missing.

        Raises:
            StoreError: If the data does not describe a valid record
        """
        record_id = data.get("id")
        versions = data.get("versions")
        active = data.get("active", data.get("version", 0))

        if not isinstance(record_id, str) or not record_id:
            raise StoreError("Record has no id")
        if not isinstance(versions, list) or not versions:
            raise StoreError(f"Record '{record_id}' has no versions")
        if not all(isinstance(v, str) for v in versions):
            raise StoreError(f"Record '{record_id}' has non-string versions")
        if isinstance(active, str) and active.isdigit():
            active = int(active)
        if not isinstance(active, int) or isinstance(active, bool) or not 0 <= active < len(versions):
            raise StoreError(
                f"Record '{record_id}' has invalid active index {active!r} "
                f"for {len(versions)} version(s)"
            )

        return cls(id=record_id, versions=list(versions), active=active)


class RecordStore:
    """JSON file store keyed by tool id."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    def _path(self, record_id: str) -> Path:
        validate_name(record_id)
        return self.data_dir / f"{record_id}{RECORD_SUFFIX}"

    def _read(self, path: Path) -> ToolRecord:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read record {path}: {e}")
        if not isinstance(data, dict):
            raise StoreError(f"Failed to read record {path}: not a JSON object")
        try:
            return ToolRecord.from_dict(data)
        except StoreError as e:
            raise StoreError(f"Failed to read record {path}: {e.message}")

    def exists(self, record_id: str) -> bool:
        return self._path(record_id).is_file()

    def list(self) -> list[ToolRecord]:
        """Load every record, sorted by id.

        Returns:
            All records; empty when the data directory does not exist yet
        """
        if not self.data_dir.is_dir():
            return []
        records = [
            self._read(path)
            for path in sorted(self.data_dir.glob(f"*{RECORD_SUFFIX}"))
            if path.is_file()
        ]
        return sorted(records, key=lambda r: r.id)

    def load(self, record_id: str) -> ToolRecord:
        """Load one record.

        Raises:
            NotFound: If no record exists for ``record_id``
            StoreError: If the record file is unreadable or malformed
        """
        path = self._path(record_id)
        if not path.is_file():
            raise NotFound(f"No entries found for {record_id}")
        record = self._read(path)
        if record.id != record_id:
            raise StoreError(f"Record {path} belongs to '{record.id}', expected '{record_id}'")
        return record

    def save(self, record: ToolRecord) -> None:
        """Create or fully overwrite a record.

        Atomic write: write to temp file then rename.

        Raises:
            StoreError: If the record cannot be written
        """
        path = self._path(record.id)
        temp_path = path.with_name(path.name + TEMP_SUFFIX)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2, ensure_ascii=False, sort_keys=True)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise StoreError(f"Failed to write record {path}: {e}")
        logger.debug(f"Saved record {record.id}: {record.to_dict()}")

    def delete(self, record_id: str) -> None:
        """Delete a record.

        Raises:
            NotFound: If no record exists for ``record_id``
            StoreError: If the file cannot be removed
        """
        path = self._path(record_id)
        if not path.is_file():
            raise NotFound(f"No entries found for {record_id}")
        try:
            path.unlink()
        except OSError as e:
            raise StoreError(f"Failed to delete record {path}: {e}")
        logger.debug(f"Deleted record {record_id}")
