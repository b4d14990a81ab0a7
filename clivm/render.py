"""
Output rendering and formatting.
"""

import os
import sys
from typing import Iterable

from .store import ToolRecord


# ANSI color codes
BOLD = "\033[1m"
GREEN = "\033[32m"
BLUE = "\033[34m"
RED = "\033[31m"
RESET = "\033[0m"

ACTIVE_MARKER = "▸"

_color_enabled = True


def set_color(enabled: bool) -> None:
    """Turn colored output on or off for this process (config ``color``)."""
    global _color_enabled
    _color_enabled = enabled


def use_color() -> bool:
    if not _color_enabled or os.environ.get("CLIVM_COLOR", "1") != "1":
        return False
    return sys.stdout.isatty()


def colorize(text: str, color: str) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code

    Returns:
        Colored text or plain text if colors disabled
    """
    if not use_color() or not text:
        return text
    return f"{color}{text}{RESET}"


def bold(text: str) -> str:
    return colorize(text, BOLD)


def format_record(record: ToolRecord) -> list[str]:
    """Render one tool: its name, then numbered versions with the active one marked."""
    lines = [colorize(record.id, BLUE)]
    for index, version in enumerate(record.versions):
        marker = ACTIVE_MARKER if index == record.active else " "
        lines.append(f" {marker} {index + 1}: {version}")
    lines.append("")
    return lines


def format_listing(records: Iterable[ToolRecord]) -> list[str]:
    lines = []
    for record in records:
        lines.extend(format_record(record))
    return lines


def no_entries_message(name: str | None = None) -> str:
    suffix = f" for {bold(name)}" if name else ""
    return f"No entries found{suffix}"


def error_line(message: str) -> str:
    return colorize(f"✗ {message}", RED)
