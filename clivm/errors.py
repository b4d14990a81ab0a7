"""
Exception hierarchy for clivm.

Every operational failure surfaces as a ClivmError subclass so the command
line front end can report it on one line and exit with status 1.
"""

from __future__ import annotations


class ClivmError(Exception):
    """
    Base exception for clivm errors.

    Attributes:
        message: Human-readable error message
        remediation: Suggested fix for the error
    """
    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(message)


class NotFound(ClivmError):
    """Tool or version is not registered."""


class InvalidVersion(ClivmError):
    """Version is empty or not part of the tool's version list."""


class InvalidName(ClivmError):
    """Tool name cannot be used as a record key or link name."""


class FilesystemError(ClivmError):
    """Symlink, directory or profile operation failed."""


class StoreError(ClivmError):
    """Record could not be read, parsed or written."""


class Cancelled(ClivmError):
    """Interactive selection was aborted or is not possible."""


class ConfigError(ClivmError):
    """Configuration file could not be loaded or failed validation."""
