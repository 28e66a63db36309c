"""dotnet session - the context object behind every user-facing action.

Owns the current target, the command history and the process runner. Each
action resolves what it needs, builds a command and dispatches it without
waiting for the process to finish.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from .commands import (
    AsyncProcessRunner,
    CommandEngine,
    CommandLog,
    CommandTemplate,
    Dispatcher,
    DotnetCommand,
    ProcessRunner,
    argument,
    literal,
)
from .commands import templates
from .config import DotnetSettings
from .errors import InvalidTargetError
from .target import (
    Chooser,
    PresetChooser,
    ProjectLocator,
    Target,
    TargetConstraint,
    TargetKind,
    TargetResolver,
    TargetState,
    enumerate_files,
)
from .target.locator import FileEnumerator, RootDetector
from .utils.project import detect_project_root

logger = logging.getLogger(__name__)


class DotnetSession:
    """Per-client dotnet context.

    Args:
        working_directory: Directory the user is working in (defaults to CWD)
        settings: CLI pass-through settings
        runner: Process runner; an ``AsyncProcessRunner`` by default
        root_detector: Project root detector, None to disable detection
        enumerator: Filesystem enumeration used by the locator
    """

    def __init__(
        self,
        working_directory: str | os.PathLike[str] | None = None,
        settings: DotnetSettings | None = None,
        runner: ProcessRunner | None = None,
        root_detector: RootDetector | None = detect_project_root,
        enumerator: FileEnumerator = enumerate_files,
    ):
        self._settings = settings or DotnetSettings()
        self._working_directory = Path(os.path.abspath(working_directory or os.getcwd()))
        self._targets = TargetState()
        self._locator = ProjectLocator(
            default_root=lambda: self._working_directory,
            root_detector=root_detector,
            enumerator=enumerator,
        )
        self._resolver = TargetResolver(self._targets, self._locator)
        self._engine = CommandEngine(self._resolver, self._settings.verbosity)
        self._runner = runner or AsyncProcessRunner(self._settings.dotnet_path)
        self._log = CommandLog()
        self._dispatcher = Dispatcher(self._runner, self._log, self._settings.output_name)

    @property
    def settings(self) -> DotnetSettings:
        return self._settings

    @property
    def working_directory(self) -> Path:
        """Directory plain commands run in and the default search root."""
        return self._working_directory

    def set_working_directory(self, path: str | os.PathLike[str]) -> None:
        new_dir = Path(os.path.abspath(path))
        if new_dir != self._working_directory:
            logger.info(f"Working directory: {self._working_directory} -> {new_dir}")
            self._working_directory = new_dir

    def search_root(self) -> Path:
        """Directory the locator scans from."""
        return self._locator.search_root()

    @property
    def targets(self) -> TargetState:
        return self._targets

    @property
    def current_target(self) -> Target | None:
        return self._targets.current

    @property
    def log(self) -> CommandLog:
        return self._log

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    def _resolve_path(self, path: str | os.PathLike[str]) -> Path:
        """Interpret a user-supplied path relative to the working directory."""
        return Path(os.path.abspath(self._working_directory / path))

    def _dispatch(self, command: DotnetCommand, target: Target | None = None) -> dict[str, Any]:
        self._dispatcher.run(command)
        result: dict[str, Any] = {"command": command.to_shell(), "cwd": str(command.cwd)}
        if target is not None:
            result["target"] = target.to_dict()
        return result

    async def _run_template(
        self,
        template: CommandTemplate,
        chooser: Chooser,
        *extra: Any,
        reselect: bool = False,
    ) -> dict[str, Any]:
        command, target = await self._engine.targeted(
            template, chooser, extra=extra, force_prompt=reselect
        )
        return self._dispatch(command, target)

    # ============== Build verbs (project or solution) ==============

    async def build(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """``dotnet build`` the current target."""
        return await self._run_template(templates.BUILD, chooser, reselect=reselect)

    async def clean(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """``dotnet clean`` the current target."""
        return await self._run_template(templates.CLEAN, chooser, reselect=reselect)

    async def restore(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """``dotnet restore`` the current target."""
        return await self._run_template(templates.RESTORE, chooser, reselect=reselect)

    async def publish(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """``dotnet publish`` the current target."""
        return await self._run_template(templates.PUBLISH, chooser, reselect=reselect)

    async def test(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """``dotnet test`` the current target."""
        return await self._run_template(templates.TEST, chooser, reselect=reselect)

    # ============== Project-only verbs ==============

    async def run(
        self,
        chooser: Chooser,
        args: Sequence[str] | None = None,
        reselect: bool = False,
    ) -> dict[str, Any]:
        """``dotnet run --project <target>``, forwarding ``args`` after ``--``."""
        extra = [*literal("--"), *(argument(a) for a in args)] if args else []
        return await self._run_template(templates.RUN, chooser, *extra, reselect=reselect)

    async def run_with_args(
        self, chooser: Chooser, args: Sequence[str], reselect: bool = False
    ) -> dict[str, Any]:
        if not args:
            raise ValueError("run_with_args requires at least one argument")
        return await self.run(chooser, args, reselect=reselect)

    async def watch(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """``dotnet watch --project <target> run``."""
        return await self._run_template(templates.WATCH, chooser, reselect=reselect)

    async def add_package(
        self,
        name: str,
        chooser: Chooser,
        version: str | None = None,
        reselect: bool = False,
    ) -> dict[str, Any]:
        """Add a NuGet package reference to the current project."""
        if not name:
            raise ValueError("Package name is required")
        extra = [argument(name)]
        if version:
            extra.extend([*literal("--version"), argument(version)])
        return await self._run_template(templates.ADD_PACKAGE, chooser, *extra, reselect=reselect)

    async def add_reference(
        self, reference: str, chooser: Chooser, reselect: bool = False
    ) -> dict[str, Any]:
        """Add a project-to-project reference to the current project."""
        if not reference:
            raise ValueError("Reference path is required")
        return await self._run_template(
            templates.ADD_REFERENCE,
            chooser,
            argument(self._resolve_path(reference)),
            reselect=reselect,
        )

    # ============== Solution verbs ==============

    async def sln_list(self, chooser: Chooser, reselect: bool = False) -> dict[str, Any]:
        """List the projects of the current solution."""
        return await self._run_template(templates.SLN_LIST, chooser, reselect=reselect)

    async def _change_membership(
        self,
        template: CommandTemplate,
        chooser: Chooser,
        project: str | None,
        reselect: bool,
    ) -> dict[str, Any]:
        solution = await self._resolver.get_or_prompt(
            template.constraint, chooser, force_prompt=reselect
        )
        if project:
            member = Target.from_path(self._resolve_path(project))
            if member.kind is not TargetKind.PROJECT:
                raise InvalidTargetError(f"Not a project file: {project}")
            member_path = member.path
        else:
            # Picked through the locator only; the session target stays the solution
            member_path = await self._locator.locate(TargetConstraint.PROJECT_ONLY, chooser)
        command = template.render(solution.path, self._engine.verbosity, [argument(member_path)])
        return self._dispatch(command, solution)

    async def sln_add(
        self,
        chooser: Chooser,
        project: str | None = None,
        reselect: bool = False,
    ) -> dict[str, Any]:
        """Add a project to the current solution."""
        return await self._change_membership(templates.SLN_ADD, chooser, project, reselect)

    async def sln_remove(
        self,
        chooser: Chooser,
        project: str | None = None,
        reselect: bool = False,
    ) -> dict[str, Any]:
        """Remove a project from the current solution."""
        return await self._change_membership(templates.SLN_REMOVE, chooser, project, reselect)

    # ============== Scaffolding (no target) ==============

    def new_project(
        self, template: str, output: str, language: str = "C#"
    ) -> dict[str, Any]:
        """``dotnet new <template> -o <output> -lang <language>``."""
        if not template or not output:
            raise ValueError("Template and output directory are required")
        command = self._engine.plain(
            "new",
            template,
            *literal("-o"),
            self._resolve_path(output),
            *literal("-lang"),
            language,
            cwd=self._working_directory,
        )
        return self._dispatch(command)

    def new_solution(self, name: str | None = None) -> dict[str, Any]:
        """``dotnet new sln`` in the working directory."""
        args = [*literal("-n"), name] if name else []
        command = self._engine.plain(
            ("new", "sln"), *args, cwd=self._working_directory
        )
        return self._dispatch(command)

    # ============== Target management ==============

    async def select_target(
        self,
        chooser: Chooser,
        constraint: TargetConstraint = TargetConstraint.ANY,
        path: str | None = None,
    ) -> Target:
        """Choose a new target, always rescanning.

        With ``path`` the choice is made for the user, but the file must still
        be found by the scan.
        """
        if path is not None:
            chooser = PresetChooser(self._resolve_path(path))
        return await self._resolver.get_or_prompt(constraint, chooser, force_prompt=True)

    def clear_target(self) -> bool:
        return self._targets.clear()

    # ============== History and output ==============

    def history(self) -> list[str]:
        return self._log.entries()

    def output(self, tail: int | None = None) -> str:
        """Text written by dispatched processes to this session's channel."""
        if isinstance(self._runner, AsyncProcessRunner):
            return self._runner.get_channel(self._settings.output_name).read(tail)
        return ""

    def cancel_all(self) -> int:
        """Kill running dotnet processes."""
        if isinstance(self._runner, AsyncProcessRunner):
            return self._runner.cancel_all()
        return 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        running = self._runner.running if isinstance(self._runner, AsyncProcessRunner) else None
        return {
            "workingDirectory": str(self._working_directory),
            "searchRoot": str(self.search_root()),
            "target": self._targets.to_dict(),
            "verbosity": self._settings.verbosity,
            "historyLength": len(self._log),
            "running": running,
        }
