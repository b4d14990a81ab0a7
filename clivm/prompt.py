"""
Interactive single-choice prompt.

Commands that need the user to pick a tool name or a version go through a
Chooser, so the registry never touches the terminal and tests can pass a
scripted chooser instead.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from .common import is_interactive
from .errors import Cancelled

MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class Option:
    """One selectable entry: what is shown and what is returned."""
    label: str
    value: str


def options_for(values: Sequence[str]) -> list[Option]:
    return [Option(label=v, value=v) for v in values]


class Chooser(Protocol):
    def choose(
        self,
        question: str,
        options: Sequence[Option],
        default: str | None = None,
        allow_new: bool = False,
    ) -> str:
        ...


def resolve_answer(
    answer: str,
    options: Sequence[Option],
    default: str | None = None,
    allow_new: bool = False,
) -> str | None:
    """
    Map a typed answer onto an option value.

    Resolution order: empty answer -> default; 1-based number -> that
    option; exact value -> that value; prefix of exactly one value -> that
    value; anything else -> the answer itself when ``allow_new``.

    A number within the list always picks by position, also with
    ``allow_new``, unless an option is literally named that number. A new
    value that looks like a position has to be given on the command line
    (``clivm add --name``).

    Returns:
        Selected value, or None if the answer matches nothing
    """
    answer = answer.strip()
    values = [o.value for o in options]

    if not answer:
        return default
    if answer.isdigit() and 1 <= int(answer) <= len(values) and answer not in values:
        return values[int(answer) - 1]
    if answer in values:
        return answer

    matches = [v for v in values if v.startswith(answer)]
    if len(matches) == 1 and not allow_new:
        return matches[0]
    if allow_new:
        return answer
    return None


class TerminalChooser:
    """Numbered-list prompt on stdin/stderr."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        interactive: Callable[[], bool] = is_interactive,
        stream=None,
    ):
        self.input_func = input_func
        self.interactive = interactive
        self.stream = stream

    def _print(self, text: str) -> None:
        print(text, file=self.stream or sys.stderr)

    def choose(
        self,
        question: str,
        options: Sequence[Option],
        default: str | None = None,
        allow_new: bool = False,
    ) -> str:
        """
        Ask the user to pick one option.

        Args:
            question: Question shown above the list
            options: Selectable entries
            default: Value returned for an empty answer
            allow_new: Accept a typed value that is not in ``options``

        Returns:
            The chosen value

        Raises:
            Cancelled: On EOF, Ctrl-C, a non-interactive stdin, or after
                repeated unmatched answers
        """
        if not self.interactive():
            raise Cancelled(
                "Cannot prompt: stdin is not a terminal",
                remediation="Pass the value explicitly on the command line",
            )
        if not options and not allow_new:
            raise Cancelled("Nothing to choose from")

        self._print("")
        self._print(question)
        for number, option in enumerate(options, start=1):
            marker = "▸" if option.value == default else " "
            self._print(f" {marker} {number}: {option.label}")

        prompt = f"> [{default}] " if default else "> "
        for _ in range(MAX_ATTEMPTS):
            try:
                answer = self.input_func(prompt)
            except (EOFError, KeyboardInterrupt):
                raise Cancelled("Selection cancelled")

            selected = resolve_answer(answer, options, default, allow_new)
            if selected:
                return selected
            self._print("This value does not exist!")

        raise Cancelled("No valid selection made")
