"""Lexical command-safety validation.

A command is unsafe when it contains any character a shell would use for
chaining, substitution or redirection. The check never executes anything and
never consults the environment, so it can run both before a command is stored
and again right before it is launched.
"""

from __future__ import annotations

from enum import StrEnum

from taskkit.core.exceptions import UnsafeCommandError

UNSAFE_CHARACTERS: frozenset[str] = frozenset({";", "&", "|", "`", "$", ">", "<"})


class CommandVerdict(StrEnum):
    """Outcome of command validation."""

    SAFE = "safe"
    UNSAFE = "unsafe"


def unsafe_characters(command: str) -> list[str]:
    """Return the unsafe characters found in command, in first-occurrence order."""
    found: list[str] = []
    for char in command:
        if char in UNSAFE_CHARACTERS and char not in found:
            found.append(char)
    return found


def validate_command(command: str) -> CommandVerdict:
    """Classify a command as safe or unsafe."""
    if UNSAFE_CHARACTERS.isdisjoint(command):
        return CommandVerdict.SAFE
    return CommandVerdict.UNSAFE


def ensure_safe(command: str) -> None:
    """Raise UnsafeCommandError unless the command is safe."""
    if validate_command(command) is CommandVerdict.UNSAFE:
        raise UnsafeCommandError(command, unsafe_characters(command))
