"""
Configuration file parsing and management.

Supports YAML configuration files (and plain JSON for ``.json`` paths).
Merges configurations from multiple sources (custom → user → system → defaults)
and applies the CLIVM_HOME environment override last.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .common import vlog
from .errors import ConfigError


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    "~/.config/clivm/config.yml",    # User global
    "~/.config/clivm/config.yaml",
    "~/.config/clivm/config.json",
    "/etc/clivm/config.yml",         # System global
    "/etc/clivm/config.yaml",
]

DEFAULT_HOME = "~/.clivm"
SUPPORTED_SHELLS = ("bash", "zsh", "fish")


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for clivm.

    Attributes:
        home: Application directory holding records and links
        bin_dir: Managed bin directory (one symlink per tool), defaults to <home>/bin
        data_dir: Record directory (one JSON file per tool), defaults to <home>/data
        shells: Shells whose profiles ``clivm setup`` patches
        log_file: Optional file receiving DEBUG logs
        color: Whether terminal output may be colored
        source: Path to the configuration file that was loaded
    """
    home: str = DEFAULT_HOME
    bin_dir: str | None = None
    data_dir: str | None = None
    shells: tuple[str, ...] = SUPPORTED_SHELLS
    log_file: str | None = None
    color: bool = True
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if not self.home:
            raise ValueError("Invalid home: must not be empty")

        unknown = [s for s in self.shells if s not in SUPPORTED_SHELLS]
        if unknown:
            raise ValueError(
                f"Invalid shells: {', '.join(unknown)}. "
                f"Must be one of: {', '.join(SUPPORTED_SHELLS)}"
            )

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        shells = data.get("shells", SUPPORTED_SHELLS)
        if isinstance(shells, str):
            shells = [shells]

        return Config(
            home=data.get("home", DEFAULT_HOME),
            bin_dir=data.get("bin_dir"),
            data_dir=data.get("data_dir"),
            shells=tuple(shells),
            log_file=data.get("log_file"),
            color=bool(data.get("color", True)),
            source=source,
        )

    @property
    def home_path(self) -> Path:
        return Path(self.home).expanduser()

    @property
    def bin_path(self) -> Path:
        """Managed bin directory, expected on the user's PATH."""
        if self.bin_dir:
            return Path(self.bin_dir).expanduser()
        return self.home_path / "bin"

    @property
    def data_path(self) -> Path:
        """Directory holding one record file per tool."""
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return self.home_path / "data"

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        return Config(
            home=self.home if self.home != DEFAULT_HOME else other.home,
            bin_dir=self.bin_dir or other.bin_dir,
            data_dir=self.data_dir or other.data_dir,
            shells=self.shells if self.shells != SUPPORTED_SHELLS else other.shells,
            log_file=self.log_file or other.log_file,
            color=self.color and other.color,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed configuration dictionary (empty for an empty file)

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config {file_path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {file_path} must contain a mapping")
    return data


def _load_json(file_path: str) -> dict[str, Any]:
    """
    Load JSON configuration file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read config {file_path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config {file_path} must contain a mapping")
    return data


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if the file does not exist

    Raises:
        ConfigError: If the file exists but is invalid
    """
    path = os.path.expanduser(file_path)
    if not os.path.exists(path):
        return None

    vlog(f"Loading config from: {path}", verbose)

    if path.endswith(".json"):
        data = _load_json(path)
    else:
        data = _load_yaml(path)

    try:
        return Config.from_dict(data, source=path)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Config validation failed for {path}: {e}")


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (argument, or CLIVM_CONFIG)
    2. User ~/.config/clivm/config.yml
    3. System /etc/clivm/config.yml
    4. Default configuration

    CLIVM_HOME, when set, replaces the merged ``home``.

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ConfigError: If a custom path is given but cannot be loaded, or any
            config file that exists is invalid
    """
    configs: list[Config] = []

    custom_path = custom_path or os.environ.get("CLIVM_CONFIG")
    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ConfigError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)
        vlog(f"Using custom config: {custom_path}", verbose)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    if configs:
        merged = configs[0]
        for config in configs[1:]:
            merged = merged.merge_with(config)
        vlog(f"Merged {len(configs)} config files", verbose)
    else:
        vlog("No config files found, using defaults", verbose)
        merged = Config()

    env_home = os.environ.get("CLIVM_HOME")
    if env_home:
        vlog(f"CLIVM_HOME override: {env_home}", verbose)
        merged = replace(merged, home=env_home)

    return merged
