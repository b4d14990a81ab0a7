"""
clivm - CLI Version Manager.

Register several versions of a command line tool and switch between them
through a symlink in a bin directory on PATH.

Usage:
    clivm add <cli-path>      # Add a cli version (asks for the cli name)
    clivm ls [cli-name]       # List all versions of one or every cli
    clivm sw <cli-name>       # Switch version of a cli
    clivm rm <cli-name>       # Remove version of a cli
    clivm current <cli-name>  # Print the active version
    clivm sync                # Repair links that drifted from the records
    clivm setup               # Put the clivm bin directory on PATH
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Sequence

from . import __version__
from .common import is_debug_enabled
from .config import Config, load_config
from .errors import ClivmError
from .logging_config import get_logger, setup_logging
from .prompt import Chooser, TerminalChooser, options_for
from .registry import Registry
from .render import bold, error_line, format_listing, no_entries_message, set_color
from .shell_profile import setup_shells
from .store import RecordStore
from .symlinks import SymlinkManager

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class CommandParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with the operational exit code."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        print(error_line(message), file=sys.stderr)
        sys.exit(EXIT_FAILURE)


def build_registry(config: Config) -> Registry:
    return Registry(RecordStore(config.data_path), SymlinkManager(config.bin_path))


def normalize_version_arg(version: str) -> str:
    """Store paths to existing files as absolute paths so links work from anywhere."""
    path = Path(version).expanduser()
    if os.path.lexists(path):
        return os.path.abspath(path)
    return version


def bin_dir_on_path(bin_dir: Path) -> bool:
    entries = os.environ.get("PATH", "").split(os.pathsep)
    return any(entry and Path(entry).expanduser() == bin_dir for entry in entries)


def cmd_list(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """List versions of one tool, or of every tool."""
    records = registry.list_versions(args.name)
    if not records:
        print(f"\n{no_entries_message()}\n")
        return EXIT_SUCCESS

    print("")
    for line in format_listing(records):
        print(line)
    return EXIT_SUCCESS


def cmd_add(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """Add a version, asking which tool it belongs to unless --name is given."""
    version = normalize_version_arg(args.version)

    name = args.name
    if not name:
        name = chooser.choose(
            "To which CLI do you want to add this version?",
            options_for(registry.names()),
            default=Path(version).name or None,
            allow_new=True,
        )

    result = registry.add_version(name, version)
    if result.created:
        print(f"\nCreated {bold(name)} with version {bold(version)}\n")
        if not bin_dir_on_path(config.bin_path):
            get_logger().warning(
                f"{config.bin_path} is not on PATH; run 'clivm setup' and open a new shell"
            )
    elif result.duplicate:
        print(f"\n{bold(version)} is already registered for {bold(name)}\n")
    else:
        print(f"\nAdded {bold(version)} to {bold(name)}\n")
    return EXIT_SUCCESS


def cmd_switch(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """Switch the active version, asking which one unless --to is given."""
    record = registry.get(args.name)

    version = args.to
    if not version:
        version = chooser.choose(
            f"To which {bold(record.id)} version do you want to switch?",
            options_for(record.versions),
            default=record.active_version,
        )

    registry.switch_version(record.id, version)
    print(f"\nSuccessfully switched {bold(record.id)} to version {bold(version)}\n")
    return EXIT_SUCCESS


def cmd_remove(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """Remove a version; a tool with a single version is removed without asking."""
    record = registry.get(args.name)

    version = args.version
    if not version:
        if len(record.versions) == 1:
            version = record.versions[0]
        else:
            version = chooser.choose(
                "Which version do you want to remove?",
                options_for(record.versions),
            )

    result = registry.remove_version(record.id, version)
    if result.deleted:
        print(f"\nSuccessfully removed {bold(record.id)} from CLI Version Manager\n")
        return EXIT_SUCCESS

    print(f"\nSuccessfully removed {bold(version)} from {bold(record.id)}")
    if result.switched_to:
        print(f"Switched {record.id} from {bold(version)} to {bold(result.switched_to)}")
    print("")
    return EXIT_SUCCESS


def cmd_current(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """Print the active version of a tool."""
    print(registry.current(args.name))
    return EXIT_SUCCESS


def cmd_sync(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """Relink tools whose symlink is missing or stale."""
    repaired = registry.sync()
    if not repaired:
        print("✓ All links up to date")
        return EXIT_SUCCESS

    for name in repaired:
        print(f"✓ Relinked {bold(name)} -> {registry.current(name)}")
    return EXIT_SUCCESS


def cmd_setup(args: argparse.Namespace, registry: Registry, chooser: Chooser, config: Config) -> int:
    """Patch shell profiles so the managed bin directory is on PATH."""
    shells = args.shell or list(config.shells)
    results = setup_shells(config.bin_path, shells)

    if not results:
        print(f"No profiles found for {', '.join(shells)}", file=sys.stderr)
        return EXIT_FAILURE

    for result in results:
        state = "Already patched" if result.already_patched else "Successfully patched"
        print(f"✓ {state} {result.shell} – {result.path}")

    print("\nYou have to reset your current shell or open a new shell to use clivm.\n")
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    parser = CommandParser(
        prog="clivm",
        description="CLI Version Manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=__version__,
        help="Version of clivm",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file (default: ~/.config/clivm/config.yml)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>", parser_class=CommandParser)

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List all versions of a cli")
    list_parser.add_argument("name", nargs="?", default=None, metavar="cli-name")
    list_parser.set_defaults(func=cmd_list)

    switch_parser = subparsers.add_parser("switch", aliases=["sw"], help="Switch version of a cli")
    switch_parser.add_argument("name", metavar="cli-name")
    switch_parser.add_argument("--to", metavar="VERSION", help="Version to switch to (skips the prompt)")
    switch_parser.set_defaults(func=cmd_switch)

    add_parser = subparsers.add_parser("add", help="Add a cli version to clivm")
    add_parser.add_argument("version", metavar="cli-path")
    add_parser.add_argument(
        "--name",
        metavar="CLI",
        help="Tool name (skips the prompt; needed for a new tool named like a list number)",
    )
    add_parser.set_defaults(func=cmd_add)

    remove_parser = subparsers.add_parser("remove", aliases=["rm"], help="Remove version of a cli")
    remove_parser.add_argument("name", metavar="cli-name")
    remove_parser.add_argument("--version", dest="version", metavar="VERSION",
                               help="Version to remove (skips the prompt)")
    remove_parser.set_defaults(func=cmd_remove)

    current_parser = subparsers.add_parser("current", help="Print the active version of a cli")
    current_parser.add_argument("name", metavar="cli-name")
    current_parser.set_defaults(func=cmd_current)

    sync_parser = subparsers.add_parser("sync", help="Repair links that do not match the records")
    sync_parser.set_defaults(func=cmd_sync)

    setup_parser = subparsers.add_parser("setup", help="Add the clivm bin directory to shell profiles")
    setup_parser.add_argument(
        "--shell",
        action="append",
        choices=["bash", "zsh", "fish"],
        help="Shell to patch (repeatable, default: from config)",
    )
    setup_parser.set_defaults(func=cmd_setup)

    return parser


def main(argv: Sequence[str] | None = None, chooser: Chooser | None = None) -> int:
    """Main entry point for clivm."""
    parser = build_parser()
    args = parser.parse_args(argv)

    verbose = args.verbose or is_debug_enabled()
    setup_logging(verbose=verbose)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_SUCCESS

    try:
        config = load_config(args.config, verbose=verbose)
        if config.log_file:
            setup_logging(verbose=verbose, log_file=config.log_file)
        set_color(config.color)

        registry = build_registry(config)
        return args.func(args, registry, chooser or TerminalChooser(), config)
    except ClivmError as e:
        print(error_line(e.message), file=sys.stderr)
        if e.remediation:
            print(f"  {e.remediation}", file=sys.stderr)
        return EXIT_FAILURE
