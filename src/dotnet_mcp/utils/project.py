"""Working directory and project root detection.

The working directory (the directory a user "is in") comes from, in order:
1. MCP roots advertised by the client (roots/list request)
2. Environment variables (DOTNET_MCP_PROJECT_ROOT, MCP_PROJECT_ROOT)
3. The --project path given at startup
4. The CWD captured at startup

The project root is a separate, optional notion: the nearest ancestor of a
directory carrying a .NET or VCS marker. The locator searches from there when
one exists.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

if TYPE_CHECKING:
    from mcp.server.fastmcp import Context

logger = logging.getLogger(__name__)

# Marker groups, checked group by group from the start directory upward
ROOT_MARKER_GROUPS: tuple[tuple[str, ...], ...] = (
    ("*.sln",),
    ("*.csproj", "*.fsproj", "*.vbproj"),
)


@dataclass
class ProjectRootConfig:
    """Startup configuration for working directory detection."""

    startup_cwd: Path | None = None
    """CWD captured when the server started."""

    explicit_project_path: Path | None = None
    """Directory passed with --project."""

    use_project_from_cwd: bool = False
    """Whether --project-from-cwd was given (walk up to a marker)."""

    env_var_names: tuple[str, ...] = field(
        default_factory=lambda: ("DOTNET_MCP_PROJECT_ROOT", "MCP_PROJECT_ROOT")
    )
    """Environment variables consulted for an explicit root."""


_config: ProjectRootConfig = ProjectRootConfig()


def configure_project_root(
    *,
    use_project_from_cwd: bool = False,
    explicit_project_path: str | Path | None = None,
    startup_cwd: str | Path | None = None,
) -> None:
    """Record startup settings. Called once from the entry point."""
    global _config
    _config = ProjectRootConfig(
        startup_cwd=Path(startup_cwd) if startup_cwd else None,
        explicit_project_path=Path(explicit_project_path) if explicit_project_path else None,
        use_project_from_cwd=use_project_from_cwd,
    )
    logger.debug(f"Project root configured: {_config}")


def get_config() -> ProjectRootConfig:
    """Get current configuration."""
    return _config


def parse_file_uri(uri: str) -> Path | None:
    """Convert a ``file://`` URI into an absolute Path.

    Returns None for other schemes or relative results.
    """
    try:
        parsed = urlparse(str(uri))
    except ValueError as e:
        logger.warning(f"Failed to parse URI '{uri}': {e}")
        return None

    if parsed.scheme != "file":
        logger.warning(f"Not a file URI: {uri}")
        return None

    path_str = unquote(parsed.path)
    if sys.platform == "win32":
        # file:///C:/x parses to "/C:/x"
        if len(path_str) > 2 and path_str[0] == "/" and path_str[2] == ":":
            path_str = path_str[1:]
        if parsed.netloc:
            path_str = f"\\\\{parsed.netloc}{path_str}"

    path = Path(path_str)
    if not path.is_absolute():
        logger.warning(f"Parsed path is not absolute: {path}")
        return None
    return path


def _walk_up(start: Path, boundary: Path | None = None) -> Iterator[Path]:
    """Yield ``start`` and its ancestors up to the nearest VCS root or ``boundary``."""
    for directory in (start, *start.parents):
        yield directory
        # .git is a file inside worktrees
        if directory == boundary or (directory / ".git").exists():
            return


def detect_project_root(
    start_dir: Path | None = None, boundary: Path | None = None
) -> Path | None:
    """Find the nearest ancestor holding a solution, project file, or .git.

    Solutions win over project files, which win over a git root, even when
    the weaker marker is closer. The walk never passes the enclosing git
    root or ``boundary``, so markers outside the repository are ignored.

    Args:
        start_dir: Directory to start from (CWD by default)
        boundary: Highest directory to consider

    Returns:
        The marker directory, or None if the walk finds no marker.
    """
    start = (start_dir or Path.cwd()).resolve()
    limit = boundary.resolve() if boundary is not None else None

    for patterns in ROOT_MARKER_GROUPS:
        for directory in _walk_up(start, limit):
            if any(any(directory.glob(pattern)) for pattern in patterns):
                return directory

    for directory in _walk_up(start, limit):
        if (directory / ".git").exists():
            return directory

    return None


def _usable_dir(path: Path) -> bool:
    return path.exists() and path.is_dir()


def get_project_root_sync() -> Path | None:
    """Resolve the working directory without consulting MCP roots."""
    config = get_config()

    for env_var in config.env_var_names:
        env_value = os.environ.get(env_var)
        if not env_value:
            continue
        path = Path(env_value)
        if _usable_dir(path):
            logger.debug(f"Using working directory from {env_var}: {path}")
            return path
        logger.warning(f"{env_var}={env_value} is not a directory")

    if config.explicit_project_path:
        if _usable_dir(config.explicit_project_path):
            return config.explicit_project_path
        logger.warning(f"Explicit project path not valid: {config.explicit_project_path}")

    if config.startup_cwd:
        if config.use_project_from_cwd:
            return detect_project_root(config.startup_cwd) or config.startup_cwd
        return config.startup_cwd

    return None


async def get_project_root(ctx: Context | None = None) -> Path | None:
    """Resolve the working directory, preferring roots advertised by the client.

    Args:
        ctx: MCP context of the current tool call, if any

    Returns:
        Working directory, or None if no source provides one
    """
    if ctx is not None:
        try:
            roots = (await ctx.session.list_roots()).roots
        except Exception as e:
            # Clients are not required to support roots
            logger.info(f"Could not get roots from client: {e}")
            roots = None
        if roots:
            path = parse_file_uri(str(roots[0].uri))
            if path and _usable_dir(path):
                logger.debug(f"Using working directory from MCP client: {path}")
                return path
            logger.warning(f"MCP root path invalid or not accessible: {path}")

    return get_project_root_sync()
