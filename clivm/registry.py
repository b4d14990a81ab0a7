"""
Version registry: add, switch, remove and list tool versions.

The registry keeps the record store and the managed symlinks in step. Every
mutation updates the link first and writes the record second; when the
record write fails the link is put back to what it was, so a failure leaves
the previous consistent state on disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .errors import ClivmError, InvalidVersion
from .store import ALL, RecordStore, ToolRecord, validate_name
from .symlinks import SymlinkManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddResult:
    """
    Outcome of adding one version.

    Attributes:
        name: Tool name
        version: Version that was added
        record: Record after the add
        created: True when the tool was registered by this add
        duplicate: True when the version was already registered
    """
    name: str
    version: str
    record: ToolRecord
    created: bool = False
    duplicate: bool = False


@dataclass(frozen=True)
class RemoveResult:
    """
    Outcome of removing one version.

    Attributes:
        name: Tool name
        removed: Version that was removed
        record: Updated record, or None when the tool was removed entirely
        switched_to: New active version when the removed one was active
    """
    name: str
    removed: str
    record: ToolRecord | None
    switched_to: str | None = None

    @property
    def deleted(self) -> bool:
        return self.record is None


class Registry:
    """Domain operations over an injected record store and symlink manager."""

    def __init__(self, store: RecordStore, links: SymlinkManager):
        self.store = store
        self.links = links

    def list_versions(self, name: str | None = None) -> list[ToolRecord]:
        """
        List registered tools.

        Args:
            name: Tool name, or None / "all" for every tool

        Returns:
            Matching records; empty only when listing all on an empty store

        Raises:
            NotFound: If a name is given and not registered
        """
        if name is None or name == ALL:
            return self.store.list()
        return [self.get(name)]

    def get(self, name: str) -> ToolRecord:
        """Return the record of one tool.

        Raises:
            InvalidName: If ``name`` is not a valid tool name
            NotFound: If ``name`` is not registered
        """
        return self.store.load(name)

    def names(self) -> list[str]:
        return [record.id for record in self.store.list()]

    def current(self, name: str) -> str:
        """Return the active version of ``name``."""
        return self.store.load(name).active_version

    def add_version(self, name: str, version: str) -> AddResult:
        """
        Register ``version`` for ``name``.

        A new tool is created with this version active and its link in place.
        For an existing tool the version is appended and the active version
        is left alone. Adding an already registered version changes nothing.

        Raises:
            InvalidName: If ``name`` is not usable as a link name
            InvalidVersion: If ``version`` is empty
        """
        validate_name(name)
        if not version:
            raise InvalidVersion("Version must not be empty")

        if self.store.exists(name):
            record = self.store.load(name)
            if record.index_of(version) >= 0:
                logger.info(f"{version} is already registered for {name}")
                return AddResult(name=name, version=version, record=record, duplicate=True)
            record.versions.append(version)
            self.store.save(record)
            logger.info(f"Added {version} to {name}")
            return AddResult(name=name, version=version, record=record)

        record = ToolRecord(id=name, versions=[version], active=0)
        self._commit(name, version, lambda: self.store.save(record))
        logger.info(f"Created {name} with version {version}")
        return AddResult(name=name, version=version, record=record, created=True)

    def switch_version(self, name: str, version: str) -> ToolRecord:
        """
        Make ``version`` the active version of ``name``.

        Raises:
            NotFound: If ``name`` is not registered
            InvalidVersion: If ``version`` is not registered for ``name``
        """
        record = self.store.load(name)
        index = self._index(record, version)
        record.active = index
        self._commit(name, version, lambda: self.store.save(record))
        logger.info(f"Switched {name} to {version}")
        return record

    def remove_version(self, name: str, version: str) -> RemoveResult:
        """
        Unregister ``version`` from ``name``.

        Removing the last version removes the tool and its link. Removing the
        active version makes the first remaining version active. Removing a
        version listed before the active one keeps the same version active.

        Raises:
            NotFound: If ``name`` is not registered
            InvalidVersion: If ``version`` is not registered for ``name``
        """
        record = self.store.load(name)
        index = self._index(record, version)

        if len(record.versions) == 1:
            self._commit(name, None, lambda: self.store.delete(name))
            logger.info(f"Removed {name}")
            return RemoveResult(name=name, removed=version, record=None)

        was_active = index == record.active
        del record.versions[index]

        if was_active:
            record.active = 0
            fallback = record.versions[0]
            self._commit(name, fallback, lambda: self.store.save(record))
            logger.info(f"Removed {version} from {name}, switched to {fallback}")
            return RemoveResult(name=name, removed=version, record=record, switched_to=fallback)

        if index < record.active:
            record.active -= 1
        self.store.save(record)
        logger.info(f"Removed {version} from {name}")
        return RemoveResult(name=name, removed=version, record=record)

    def sync(self) -> list[str]:
        """
        Relink every tool whose link is missing or points elsewhere.

        Returns:
            Names of the tools whose link was repaired
        """
        repaired = []
        for record in self.store.list():
            if self.links.target(record.id) != record.active_version:
                self.links.activate(record.id, record.active_version)
                logger.info(f"Relinked {record.id} -> {record.active_version}")
                repaired.append(record.id)
        return repaired

    def _index(self, record: ToolRecord, version: str) -> int:
        index = record.index_of(version)
        if index < 0:
            raise InvalidVersion(f"Version {version} does not exist for {record.id}")
        return index

    def _commit(self, name: str, target: str | None, write: Callable[[], None]) -> None:
        """Point the link at ``target`` (None removes it), then run ``write``.

        If ``write`` fails the link is restored before the error propagates.
        """
        previous = self.links.target(name)
        if target is None:
            self.links.deactivate(name)
        else:
            self.links.activate(name, target)

        try:
            write()
        except Exception:
            try:
                self.links.restore(name, previous)
            except ClivmError as e:
                logger.error(f"Could not restore link for {name}: {e.message}")
            raise
