"""
clivm - CLI Version Manager.

Core Modules:
- Records: JSON record store, one file per registered tool
- Links: managed bin directory with one symlink per tool
- Registry: add, switch, remove and list versions
- Front end: prompt, shell profile setup, rendering, argparse CLI
"""

__version__ = "1.0.0"

from .errors import (
    ClivmError,
    NotFound,
    InvalidVersion,
    InvalidName,
    FilesystemError,
    StoreError,
    Cancelled,
    ConfigError,
)
from .store import ToolRecord, RecordStore, validate_name
from .symlinks import SymlinkManager
from .registry import Registry, AddResult, RemoveResult
from .config import Config, load_config, load_config_file
from .prompt import Chooser, Option, TerminalChooser, options_for
from .shell_profile import PatchResult, path_patch, patch_profile, setup_shells
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    # Errors
    "ClivmError",
    "NotFound",
    "InvalidVersion",
    "InvalidName",
    "FilesystemError",
    "StoreError",
    "Cancelled",
    "ConfigError",
    # Records and links
    "ToolRecord",
    "RecordStore",
    "validate_name",
    "SymlinkManager",
    # Registry
    "Registry",
    "AddResult",
    "RemoveResult",
    # Configuration
    "Config",
    "load_config",
    "load_config_file",
    # Prompt
    "Chooser",
    "Option",
    "TerminalChooser",
    "options_for",
    # Shell profiles
    "PatchResult",
    "path_patch",
    "patch_profile",
    "setup_shells",
    # Logging
    "setup_logging",
    "get_logger",
]
