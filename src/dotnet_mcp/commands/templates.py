"""Command templates and the engine that fills them in.

A template is a dotnet verb with fixed options and one slot for the target
file. The engine resolves the target, drops its path into the slot as a
quoted argument and runs the command from the target's directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ..target import Chooser, Target, TargetConstraint, TargetResolver
from .command import DOTNET, CommandPart, DotnetCommand, argument, literal

logger = logging.getLogger(__name__)

# Offered to users, not enforced; ``dotnet new list`` is authoritative
PROJECT_TEMPLATES: Final[tuple[str, ...]] = (
    "console",
    "classlib",
    "mstest",
    "xunit",
    "nunit",
    "web",
    "mvc",
    "webapi",
    "razor",
    "blazorserver",
    "worker",
    "wpf",
    "winforms",
)

LANGUAGES: Final[tuple[str, ...]] = ("C#", "F#", "VB")


@dataclass(frozen=True)
class CommandTemplate:
    """A dotnet command with a single target slot.

    Rendered as ``dotnet <verb> [-v V] <before> <target> <after> <extra>``.
    """

    name: str
    verb: tuple[str, ...]
    constraint: TargetConstraint
    before_target: tuple[str, ...] = ()
    after_target: tuple[str, ...] = ()
    verbose: bool = False

    def render(
        self,
        target: Path,
        verbosity: str,
        extra: Sequence[CommandPart] = (),
        cwd: Path | None = None,
    ) -> DotnetCommand:
        parts = list(literal(DOTNET, *self.verb))
        if self.verbose:
            parts.extend(literal("-v", verbosity))
        parts.extend(literal(*self.before_target))
        parts.append(argument(target))
        parts.extend(literal(*self.after_target))
        parts.extend(extra)
        return DotnetCommand(parts=tuple(parts), cwd=cwd or target.parent)


ANY = TargetConstraint.ANY
PROJECT_ONLY = TargetConstraint.PROJECT_ONLY
SOLUTION_ONLY = TargetConstraint.SOLUTION_ONLY

BUILD = CommandTemplate("build", ("build",), ANY, verbose=True)
CLEAN = CommandTemplate("clean", ("clean",), ANY, verbose=True)
RESTORE = CommandTemplate("restore", ("restore",), ANY, verbose=True)
PUBLISH = CommandTemplate("publish", ("publish",), ANY, verbose=True)
TEST = CommandTemplate("test", ("test",), ANY, verbose=True)
RUN = CommandTemplate("run", ("run",), PROJECT_ONLY, before_target=("--project",))
WATCH = CommandTemplate(
    "watch", ("watch",), PROJECT_ONLY, before_target=("--project",), after_target=("run",)
)
ADD_PACKAGE = CommandTemplate("add-package", ("add",), PROJECT_ONLY, after_target=("package",))
ADD_REFERENCE = CommandTemplate(
    "add-reference", ("add",), PROJECT_ONLY, after_target=("reference",)
)
SLN_LIST = CommandTemplate("sln-list", ("sln",), SOLUTION_ONLY, after_target=("list",))
SLN_ADD = CommandTemplate("sln-add", ("sln",), SOLUTION_ONLY, after_target=("add",))
SLN_REMOVE = CommandTemplate("sln-remove", ("sln",), SOLUTION_ONLY, after_target=("remove",))

TEMPLATES: Final[dict[str, CommandTemplate]] = {
    t.name: t
    for t in (
        BUILD,
        CLEAN,
        RESTORE,
        PUBLISH,
        TEST,
        RUN,
        WATCH,
        ADD_PACKAGE,
        ADD_REFERENCE,
        SLN_LIST,
        SLN_ADD,
        SLN_REMOVE,
    )
}


class CommandEngine:
    """Turns templates and plain verbs into ``DotnetCommand`` values."""

    def __init__(self, resolver: TargetResolver, verbosity: str):
        self._resolver = resolver
        self._verbosity = verbosity

    @property
    def verbosity(self) -> str:
        return self._verbosity

    async def targeted(
        self,
        template: CommandTemplate,
        chooser: Chooser,
        *,
        constraint: TargetConstraint | None = None,
        extra: Sequence[CommandPart] = (),
        force_prompt: bool = False,
    ) -> tuple[DotnetCommand, Target]:
        """Resolve the target and fill it into ``template``.

        Args:
            template: Command template
            chooser: Used if the target has to be (re)selected
            constraint: Overrides the template's own constraint
            extra: Parts appended after the template's fixed tokens
            force_prompt: Always ask for a target

        Returns:
            The command (cwd = the target's directory) and the target used
        """
        target = await self._resolver.get_or_prompt(
            constraint or template.constraint, chooser, force_prompt=force_prompt
        )
        command = template.render(target.path, self._verbosity, extra)
        logger.debug(f"Templated {template.name}: {command}")
        return command, target

    def plain(
        self,
        verb: str | Sequence[str],
        *args: str | os.PathLike[str] | CommandPart,
        cwd: Path,
    ) -> DotnetCommand:
        """Build a command that does not involve the current target.

        String arguments are quoted; ``CommandPart`` values pass through so
        callers can interleave literal flags.
        """
        verbs = (verb,) if isinstance(verb, str) else tuple(verb)
        parts = list(literal(DOTNET, *verbs))
        for arg in args:
            parts.append(arg if isinstance(arg, CommandPart) else argument(os.fspath(arg)))
        return DotnetCommand(parts=tuple(parts), cwd=cwd)
