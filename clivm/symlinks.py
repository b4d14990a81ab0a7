"""
Managed bin directory: one symlink per registered tool.

The link ``<bin_dir>/<name>`` points at the active version of ``name``. Only
symlinks are ever replaced or removed; a regular file or directory with the
same name is reported instead of being clobbered.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import FilesystemError
from .store import TEMP_SUFFIX, validate_name

logger = logging.getLogger(__name__)


class SymlinkManager:
    """Maintains the tool symlinks inside ``bin_dir``."""

    def __init__(self, bin_dir: str | Path):
        self.bin_dir = Path(bin_dir)

    def link_path(self, name: str) -> Path:
        validate_name(name)
        return self.bin_dir / name

    def target(self, name: str) -> str | None:
        """Return the current link target for ``name``, or None if there is no link.

        Raises:
            FilesystemError: If ``name`` exists but is not a symlink
        """
        path = self.link_path(name)
        if not path.is_symlink():
            if os.path.lexists(path):
                raise FilesystemError(
                    f"{path} exists and is not a symlink",
                    remediation=f"Move {path} out of the clivm bin directory",
                )
            return None
        try:
            return os.readlink(path)
        except OSError as e:
            raise FilesystemError(f"Failed to read link {path}: {e}")

    def _unlink(self, path: Path) -> None:
        if not path.is_symlink():
            if os.path.lexists(path):
                raise FilesystemError(
                    f"{path} exists and is not a symlink",
                    remediation=f"Move {path} out of the clivm bin directory",
                )
            return
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(f"Failed to remove link {path}: {e}")

    def activate(self, name: str, version: str) -> None:
        """Point ``<bin_dir>/<name>`` at ``version``.

        Creates the bin directory if needed and replaces any existing link.
        The new link is built under a temporary name and renamed over the old
        one, so on failure the previous link is still in place.

        Raises:
            FilesystemError: If the directory or link cannot be created
        """
        path = self.link_path(name)
        # Refuses to replace anything that is not a symlink
        self.target(name)
        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Failed to create {self.bin_dir}: {e}")

        # Tool names never start with '.', so this cannot collide with a link
        temp_path = self.bin_dir / f".{name}{TEMP_SUFFIX}"
        try:
            if os.path.lexists(temp_path):
                temp_path.unlink()
            os.symlink(version, temp_path)
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path.is_symlink():
                temp_path.unlink()
            raise FilesystemError(f"Failed to link {path} -> {version}: {e}")
        logger.debug(f"Linked {path} -> {version}")

    def deactivate(self, name: str) -> None:
        """Remove the link for ``name``; a missing link is not an error.

        Raises:
            FilesystemError: If the link cannot be removed
        """
        path = self.link_path(name)
        self._unlink(path)
        logger.debug(f"Unlinked {path}")

    def restore(self, name: str, target: str | None) -> None:
        """Put the link for ``name`` back to a previously read ``target``."""
        if target is None:
            self.deactivate(name)
        else:
            self.activate(name, target)
