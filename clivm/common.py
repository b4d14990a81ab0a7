"""
Common utilities shared across clivm modules.
"""

from __future__ import annotations

import os
import sys


def is_debug_enabled() -> bool:
    """
    Check whether debug output was requested through the environment.

    Returns:
        True if CLIVM_DEBUG is set to 1, False otherwise.
    """
    return os.environ.get("CLIVM_DEBUG", "0") == "1"


def is_interactive() -> bool:
    """
    Check if stdin is attached to a terminal.

    Returns:
        True if prompts can be answered, False otherwise.
    """
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        # Closed or replaced stdin
        return False


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or is_debug_enabled():
        from .logging_config import get_logger
        get_logger().debug(msg)
