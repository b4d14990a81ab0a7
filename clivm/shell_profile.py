"""
Shell profile patching so the managed bin directory ends up on PATH.

Patching is idempotent: a profile that already contains the exact patch
text is left untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import FilesystemError

logger = logging.getLogger(__name__)

PATCH_HEADER = "# CLI Version Manager"

# Profiles checked per shell, relative to the home directory
PROFILE_FILES = {
    "bash": (".bashrc", ".bash_profile"),
    "zsh": (".zshrc",),
    "fish": (".config/fish/config.fish",),
}


@dataclass(frozen=True)
class PatchResult:
    """
    Result of patching one profile.

    Attributes:
        shell: Shell the profile belongs to
        path: Profile file
        already_patched: True when the profile already contained the patch
    """
    shell: str
    path: Path
    already_patched: bool = False


def path_patch(shell: str, bin_dir: str | Path) -> str:
    """
    Build the profile snippet that prepends ``bin_dir`` to PATH.

    Raises:
        ValueError: If the shell is not supported
    """
    if shell in ("bash", "zsh"):
        return f'\n{PATCH_HEADER}\nexport PATH="{bin_dir}":$PATH\n'
    if shell == "fish":
        return f'\n{PATCH_HEADER}\nset -gx PATH "{bin_dir}" $PATH\n'
    raise ValueError(f"Unsupported shell: {shell}")


def default_profiles(home: str | Path) -> dict[str, list[Path]]:
    """Profile paths per supported shell under ``home``."""
    home = Path(home)
    return {
        shell: [home / name for name in names]
        for shell, names in PROFILE_FILES.items()
    }


def patch_profile(patch: str, path: Path, shell: str = "") -> PatchResult:
    """
    Append ``patch`` to ``path`` unless it is already present.

    Raises:
        FilesystemError: If the profile does not exist or cannot be read/written
    """
    if not path.is_file():
        raise FilesystemError(f"{path} does not exist")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Failed to read {path}: {e}")

    if patch in content:
        logger.debug(f"{path} already patched")
        return PatchResult(shell=shell, path=path, already_patched=True)

    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(patch)
    except OSError as e:
        raise FilesystemError(f"Failed to patch {path}: {e}")

    logger.debug(f"Patched {path}")
    return PatchResult(shell=shell, path=path)


def setup_shells(
    bin_dir: str | Path,
    shells: Iterable[str],
    home: str | Path | None = None,
) -> list[PatchResult]:
    """
    Create ``bin_dir`` and patch every existing profile of ``shells``.

    Profiles that do not exist are skipped; nothing is created for shells
    the user does not have set up.

    Returns:
        One PatchResult per profile that exists
    """
    bin_dir = Path(bin_dir)
    try:
        bin_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create {bin_dir}: {e}")

    profiles = default_profiles(home if home is not None else Path.home())
    results = []
    for shell in shells:
        patch = path_patch(shell, bin_dir)
        for path in profiles.get(shell, []):
            if not path.is_file():
                logger.debug(f"Skipping missing profile {path}")
                continue
            results.append(patch_profile(patch, path, shell=shell))
    return results
