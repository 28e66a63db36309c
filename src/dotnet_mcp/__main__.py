"""Entry point for dotnet-mcp server."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from .config import load_settings
from .server import create_server, get_session
from .utils.project import configure_project_root, detect_project_root


def find_project_root(start: str | Path | None = None) -> str:
    """Find the .NET project root above ``start`` (CWD by default).

    Prefers a directory holding a .sln, then one holding a project file, then
    a git root. Falls back to the start directory.
    """
    start_dir = Path(start or Path.cwd()).resolve()
    return str(detect_project_root(start_dir) or start_dir)


def configure_logging() -> None:
    """Configure logging based on environment."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="dotnet MCP Server - build, run and test .NET projects via MCP"
    )
    parser.add_argument(
        "--project",
        type=str,
        default=None,
        help="Working directory for dotnet commands and project discovery.",
    )
    parser.add_argument(
        "--project-from-cwd",
        action="store_true",
        default=False,
        help="Auto-detect the working directory from the current directory. "
        "Searches upward for .sln, .csproj/.fsproj/.vbproj, or .git markers. "
        "Cannot be used with --project.",
    )
    parser.add_argument(
        "--verbosity",
        type=str,
        default=None,
        help="Value passed to `-v` of build/clean/restore/publish/test "
        "(default: $DOTNET_MCP_VERBOSITY or 'normal').",
    )
    parser.add_argument(
        "--dotnet-path",
        type=str,
        default=None,
        help="dotnet executable to run (default: $DOTNET_MCP_DOTNET_PATH or 'dotnet').",
    )
    return parser.parse_args(argv)


async def main() -> None:
    """Main entry point."""
    configure_logging()
    logger = logging.getLogger(__name__)

    args = parse_args()

    if args.project_from_cwd:
        if args.project is not None:
            logger.error("--project-from-cwd cannot be used with --project")
            sys.exit(1)
        project_path = find_project_root()
        logger.info(f"Auto-detected project root: {project_path}")
    else:
        project_path = args.project or os.getcwd()

    configure_project_root(
        use_project_from_cwd=args.project_from_cwd,
        explicit_project_path=args.project,
        startup_cwd=os.getcwd(),
    )
    settings = load_settings(verbosity=args.verbosity, dotnet_path=args.dotnet_path)
    logger.info(
        f"Starting dotnet MCP Server (project: {project_path}, verbosity: {settings.verbosity})..."
    )

    mcp = create_server(project_path, settings)

    try:
        await mcp.run_stdio_async()
    except Exception:
        logger.exception("Server error")
        raise
    finally:
        killed = get_session().cancel_all()
        if killed:
            logger.info(f"Killed {killed} dotnet processes on shutdown")
        logger.info("Server stopped")


def run() -> None:
    """Run the server."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
