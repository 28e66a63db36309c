"""Runtime settings for dotnet-mcp.

Values come from the environment and can be overridden by CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_VERBOSITY = "normal"
DEFAULT_OUTPUT_NAME = "dotnet"
DEFAULT_DOTNET_PATH = "dotnet"


@dataclass(frozen=True)
class DotnetSettings:
    """Pass-through settings for the dotnet CLI."""

    verbosity: str = DEFAULT_VERBOSITY
    """Value for ``-v``; accepted values are defined by the dotnet CLI."""

    dotnet_path: str = DEFAULT_DOTNET_PATH
    """Executable used in place of ``dotnet`` when spawning processes."""

    output_name: str = DEFAULT_OUTPUT_NAME
    """Name of the output channel dispatched commands write to."""


def load_settings(
    *,
    verbosity: str | None = None,
    dotnet_path: str | None = None,
) -> DotnetSettings:
    """Build settings from ``DOTNET_MCP_*`` variables and explicit overrides."""
    settings = DotnetSettings(
        verbosity=os.environ.get("DOTNET_MCP_VERBOSITY") or DEFAULT_VERBOSITY,
        dotnet_path=os.environ.get("DOTNET_MCP_DOTNET_PATH") or DEFAULT_DOTNET_PATH,
        output_name=os.environ.get("DOTNET_MCP_OUTPUT") or DEFAULT_OUTPUT_NAME,
    )
    if verbosity:
        settings = replace(settings, verbosity=verbosity)
    if dotnet_path:
        settings = replace(settings, dotnet_path=dotnet_path)
    return settings
