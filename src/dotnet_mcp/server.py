"""MCP Server exposing the dotnet CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import Context, FastMCP
from pydantic import AnyUrl

from .commands import templates
from .commands.templates import LANGUAGES, PROJECT_TEMPLATES
from .config import DotnetSettings
from .elicitation import ElicitationChooser
from .session import DotnetSession
from .target import Chooser, TargetConstraint
from .utils.project import get_project_root

logger = logging.getLogger(__name__)

# Global session (single client mode)
_session: DotnetSession | None = None
_initial_project_path: str | None = None
_settings: DotnetSettings | None = None


def get_session() -> DotnetSession:
    """Get or create the dotnet session.

    Note: Single client mode - one current target per server process.
    """
    global _session
    if _session is None:
        _session = DotnetSession(_initial_project_path, settings=_settings)
    return _session


async def resolve_project_root(ctx: Context, session: DotnetSession) -> Path | None:
    """Refresh the session working directory from client roots or startup config."""
    project_root = await get_project_root(ctx)
    if project_root:
        session.set_working_directory(project_root)
    return project_root


def create_server(
    project_path: str | None = None,
    settings: DotnetSettings | None = None,
) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        project_path: Initial working directory. Replaced by client roots
            when the client advertises them.
        settings: dotnet CLI settings (verbosity, executable, output channel)
    """
    global _initial_project_path, _settings, _session
    _initial_project_path = project_path
    _settings = settings
    _session = None
    mcp = FastMCP("dotnet-mcp")
    session = get_session()

    async def notify_changed(ctx: Context, *uris: str) -> None:
        """Tell the client that resources have changed."""
        try:
            if ctx.session:
                for uri in uris:
                    await ctx.session.send_resource_updated(AnyUrl(uri))
        except Exception as e:
            logger.debug(f"Resource update notification failed: {e}")

    async def prepare(
        ctx: Context, constraint: TargetConstraint, target: str | None
    ) -> Chooser:
        """Refresh the working directory, apply an explicit target, return a chooser."""
        await resolve_project_root(ctx, session)
        chooser = ElicitationChooser(ctx, session.search_root())
        if target:
            await session.select_target(chooser, constraint, path=target)
        return chooser

    async def run_action(
        ctx: Context,
        constraint: TargetConstraint,
        target: str | None,
        action: Callable[[Chooser], Awaitable[dict[str, Any]]],
    ) -> dict:
        try:
            chooser = await prepare(ctx, constraint, target)
            result = await action(chooser)
            await notify_changed(ctx, "dotnet://target", "dotnet://history")
            return {"success": True, "data": result}
        except Exception as e:
            return {"success": False, "error": str(e)}

    # ============== Build Tools ==============

    @mcp.tool()
    async def dotnet_build(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        Build the current project or solution with `dotnet build`.

        The first call (or reselect=True) asks the user to pick a .csproj/.sln
        under the project root; later calls reuse that choice. The command runs
        in the background; read dotnet_get_output for its output.

        Args:
            target: Path to a .csproj/.sln to use instead of asking
            reselect: Ask for a new target even if one is selected
        """
        return await run_action(
            ctx,
            templates.BUILD.constraint,
            target,
            lambda chooser: session.build(chooser, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_clean(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        Clean build outputs of the current project or solution (`dotnet clean`).

        Args:
            target: Path to a .csproj/.sln to use instead of asking
            reselect: Ask for a new target even if one is selected
        """
        return await run_action(
            ctx,
            templates.CLEAN.constraint,
            target,
            lambda chooser: session.clean(chooser, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_restore(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        Restore NuGet packages for the current project or solution (`dotnet restore`).

        Args:
            target: Path to a .csproj/.sln to use instead of asking
            reselect: Ask for a new target even if one is selected
        """
        return await run_action(
            ctx,
            templates.RESTORE.constraint,
            target,
            lambda chooser: session.restore(chooser, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_publish(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        Publish the current project or solution (`dotnet publish`).

        Args:
            target: Path to a .csproj/.sln to use instead of asking
            reselect: Ask for a new target even if one is selected
        """
        return await run_action(
            ctx,
            templates.PUBLISH.constraint,
            target,
            lambda chooser: session.publish(chooser, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_test(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        Run tests of the current project or solution (`dotnet test`).

        Args:
            target: Path to a .csproj/.sln to use instead of asking
            reselect: Ask for a new target even if one is selected
        """
        return await run_action(
            ctx,
            templates.TEST.constraint,
            target,
            lambda chooser: session.test(chooser, reselect=reselect and not target),
        )

    # ============== Project Tools ==============

    @mcp.tool()
    async def dotnet_run(
        ctx: Context,
        args: list[str] | None = None,
        target: str | None = None,
        reselect: bool = False,
    ) -> dict:
        """
        Run the current project (`dotnet run --project <csproj>`).

        Requires a .csproj. If a solution is selected, the user is asked for a
        project instead.

        Args:
            args: Arguments passed to the program after `--`
            target: Path to a .csproj to use instead of asking
            reselect: Ask for a new project even if one is selected
        """
        return await run_action(
            ctx,
            templates.RUN.constraint,
            target,
            lambda chooser: session.run(chooser, args, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_watch(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        Run the current project with hot reload (`dotnet watch run`).

        Args:
            target: Path to a .csproj to use instead of asking
            reselect: Ask for a new project even if one is selected
        """
        return await run_action(
            ctx,
            templates.WATCH.constraint,
            target,
            lambda chooser: session.watch(chooser, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_add_package(
        ctx: Context,
        name: str,
        version: str | None = None,
        target: str | None = None,
        reselect: bool = False,
    ) -> dict:
        """
        Add a NuGet package to the current project (`dotnet add package`).

        Args:
            name: Package id, e.g. "Newtonsoft.Json"
            version: Specific version (latest if omitted)
            target: Path to a .csproj to use instead of asking
            reselect: Ask for a new project even if one is selected
        """
        return await run_action(
            ctx,
            templates.ADD_PACKAGE.constraint,
            target,
            lambda chooser: session.add_package(
                name, chooser, version=version, reselect=reselect and not target
            ),
        )

    @mcp.tool()
    async def dotnet_add_reference(
        ctx: Context,
        reference: str,
        target: str | None = None,
        reselect: bool = False,
    ) -> dict:
        """
        Add a project reference to the current project (`dotnet add reference`).

        Args:
            reference: Path of the referenced .csproj (relative to the working directory)
            target: Path to the referencing .csproj to use instead of asking
            reselect: Ask for a new project even if one is selected
        """
        return await run_action(
            ctx,
            templates.ADD_REFERENCE.constraint,
            target,
            lambda chooser: session.add_reference(
                reference, chooser, reselect=reselect and not target
            ),
        )

    # ============== Solution Tools ==============

    @mcp.tool()
    async def dotnet_sln_list(ctx: Context, target: str | None = None, reselect: bool = False) -> dict:
        """
        List projects in the current solution (`dotnet sln list`).

        Args:
            target: Path to a .sln to use instead of asking
            reselect: Ask for a new solution even if one is selected
        """
        return await run_action(
            ctx,
            templates.SLN_LIST.constraint,
            target,
            lambda chooser: session.sln_list(chooser, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_sln_add(
        ctx: Context,
        project: str | None = None,
        target: str | None = None,
        reselect: bool = False,
    ) -> dict:
        """
        Add a project to the current solution (`dotnet sln add`).

        Args:
            project: .csproj to add; the user is asked if omitted
            target: Path to a .sln to use instead of asking
            reselect: Ask for a new solution even if one is selected
        """
        return await run_action(
            ctx,
            templates.SLN_ADD.constraint,
            target,
            lambda chooser: session.sln_add(chooser, project, reselect=reselect and not target),
        )

    @mcp.tool()
    async def dotnet_sln_remove(
        ctx: Context,
        project: str | None = None,
        target: str | None = None,
        reselect: bool = False,
    ) -> dict:
        """
        Remove a project from the current solution (`dotnet sln remove`).

        Args:
            project: .csproj to remove; the user is asked if omitted
            target: Path to a .sln to use instead of asking
            reselect: Ask for a new solution even if one is selected
        """
        return await run_action(
            ctx,
            templates.SLN_REMOVE.constraint,
            target,
            lambda chooser: session.sln_remove(
                chooser, project, reselect=reselect and not target
            ),
        )

    # ============== Scaffolding Tools ==============

    @mcp.tool()
    async def dotnet_new(
        ctx: Context,
        template: str,
        output: str,
        language: str = "C#",
    ) -> dict:
        """
        Create a new project from a template (`dotnet new`).

        Common templates: console, classlib, mstest, xunit, nunit, web, mvc,
        webapi, razor, blazorserver, worker, wpf, winforms.
        Languages: C#, F#, VB.

        Args:
            template: Template short name
            output: Output directory (relative to the working directory)
            language: Project language
        """
        try:
            await resolve_project_root(ctx, session)
            result = session.new_project(template, output, language)
            await notify_changed(ctx, "dotnet://history")
            return {"success": True, "data": result}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @mcp.tool()
    async def dotnet_new_sln(ctx: Context, name: str | None = None) -> dict:
        """
        Create a solution file in the working directory (`dotnet new sln`).

        Args:
            name: Solution name (defaults to the directory name)
        """
        try:
            await resolve_project_root(ctx, session)
            result = session.new_solution(name)
            await notify_changed(ctx, "dotnet://history")
            return {"success": True, "data": result}
        except Exception as e:
            return {"success": False, "error": str(e)}

    # ============== Target Tools ==============

    @mcp.tool()
    async def dotnet_select_target(
        ctx: Context,
        kind: str = "any",
        path: str | None = None,
    ) -> dict:
        """
        Choose the project or solution later commands operate on.

        Always rescans the project root. Without a path the user picks from
        the list.

        Args:
            kind: "any", "project" or "solution"
            path: File to select without asking (must be under the project root)
        """
        try:
            constraint = TargetConstraint(kind)
            await resolve_project_root(ctx, session)
            chooser = ElicitationChooser(ctx, session.search_root())
            target = await session.select_target(chooser, constraint, path=path)
            await notify_changed(ctx, "dotnet://target")
            return {"success": True, "data": target.to_dict()}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @mcp.tool()
    async def dotnet_get_target() -> dict:
        """
        Get the currently selected project or solution and the session settings.
        """
        return {"success": True, "data": session.to_dict()}

    @mcp.tool()
    async def dotnet_clear_target(ctx: Context) -> dict:
        """
        Forget the current target. The next command asks again.
        """
        cleared = session.clear_target()
        await notify_changed(ctx, "dotnet://target")
        return {"success": True, "data": {"cleared": cleared}}

    # ============== Output Tools ==============

    @mcp.tool()
    async def dotnet_get_output(tail: int | None = None) -> dict:
        """
        Get output of dispatched dotnet commands.

        Commands run in the background, so output may still be arriving.

        Args:
            tail: Only return the last N lines
        """
        return {"success": True, "data": {"output": session.output(tail)}}

    @mcp.tool()
    async def dotnet_get_history() -> dict:
        """
        Get every command dispatched in this session, each preceded by its `cd` line.
        """
        return {"success": True, "data": {"history": session.history()}}

    @mcp.tool()
    async def dotnet_cancel() -> dict:
        """
        Kill all running dotnet processes started by this server.
        """
        return {"success": True, "data": {"killed": session.cancel_all()}}

    # ============== Prompts (slash commands) ==============

    @mcp.prompt(
        name="dotnet",
        description="Workflow guide for building and running .NET projects",
    )
    def dotnet_prompt() -> list[dict]:
        """Start here when working on a .NET codebase."""
        return [
            {
                "role": "user",
                "content": f"""# dotnet Workflow Guide

## Targets
Most tools act on the *current target*, a .csproj or .sln file.
The first tool that needs one asks the user to pick it; later calls reuse it.
- `dotnet_select_target(kind="project")` to choose explicitly
- Project-only tools (run, watch, add package/reference) ask again if a
  solution is selected; solution tools (sln list/add/remove) do the reverse.

## Commands run in the background
Tools return as soon as the command is started. Call `dotnet_get_output()`
to read what it printed and SUMMARIZE IT FOR THE USER.

## Typical session
```
dotnet_restore()
dotnet_build()
dotnet_test()
dotnet_get_output(tail=50)
```

## Scaffolding
Templates: {", ".join(PROJECT_TEMPLATES)}
Languages: {", ".join(LANGUAGES)}
```
dotnet_new_sln(name="App")
dotnet_new(template="console", output="src/App")
dotnet_sln_add(project="src/App/App.csproj")
```
""",
            }
        ]

    # ============== Resources ==============

    @mcp.resource("dotnet://target", mime_type="application/json")
    async def target_resource() -> str:
        """Current target and session settings (JSON).

        Updates when: a target is selected, invalidated or cleared.
        """
        return json.dumps(session.to_dict(), indent=2)

    @mcp.resource("dotnet://history", mime_type="text/plain")
    async def history_resource() -> str:
        """Dispatched commands, one per line, each after its `cd` line."""
        return session.log.render()

    @mcp.resource("dotnet://output", mime_type="text/plain")
    async def output_resource() -> str:
        """Output of dispatched dotnet processes (plain text)."""
        return session.output()

    logger.info("dotnet MCP Server initialized")
    return mcp
