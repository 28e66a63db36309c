"""Structured dotnet command lines.

A command is a sequence of parts. Fixed vocabulary (verbs, flags, the
verbosity value) is kept literal; anything that comes from the user or the
filesystem is marked quoted. Processes are spawned from ``argv`` without a
shell, and ``to_shell()`` is the display/log form in which every quoted part
is single-quoted.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, NamedTuple

DOTNET: str = "dotnet"


def quote_argument(value: str) -> str:
    """Quote ``value`` as exactly one POSIX shell word.

    Unlike ``shlex.quote`` the result is always quoted, so paths render the
    same whether or not they contain metacharacters.
    """
    return "'" + value.replace("'", "'\"'\"'") + "'"


class CommandPart(NamedTuple):
    """One token of a command line."""

    value: str
    quoted: bool = False

    def render(self) -> str:
        return quote_argument(self.value) if self.quoted else self.value


def literal(*tokens: str) -> tuple[CommandPart, ...]:
    """Mark fixed vocabulary tokens."""
    return tuple(CommandPart(token) for token in tokens)


def argument(value: str | Path) -> CommandPart:
    """Mark a user- or filesystem-supplied value."""
    return CommandPart(str(value), quoted=True)


@dataclass(frozen=True)
class DotnetCommand:
    """A dotnet invocation and the directory it runs in."""

    parts: tuple[CommandPart, ...]
    cwd: Path

    @property
    def argv(self) -> list[str]:
        """Argument vector for exec, first element is the program."""
        return [part.value for part in self.parts]

    def argv_for(self, executable: str) -> list[str]:
        """Argument vector with the program replaced by ``executable``."""
        argv = self.argv
        if argv and argv[0] == DOTNET:
            argv[0] = executable
        return argv

    def to_shell(self) -> str:
        """Shell-safe rendering used for logs and display."""
        return " ".join(part.render() for part in self.parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"command": self.to_shell(), "cwd": str(self.cwd), "argv": self.argv}

    def __str__(self) -> str:
        return self.to_shell()
