"""Exceptions raised while resolving targets and building commands."""

from __future__ import annotations

from pathlib import Path


class DotnetToolError(Exception):
    """Base exception for dotnet-mcp errors."""

    pass


class SelectionCancelled(DotnetToolError):
    """Raised when the user declines or cancels a selection prompt."""

    pass


class NoMatchingFiles(DotnetToolError):
    """Raised when the locator finds no candidate files under the search root."""

    def __init__(self, root: Path, patterns: tuple[str, ...]):
        super().__init__(f"No {', '.join(patterns)} files found under {root}")
        self.root = root
        self.patterns = patterns


class InvalidTargetError(DotnetToolError):
    """Raised when a path is not a recognized project or solution file."""

    pass


class TargetStateError(DotnetToolError):
    """Raised on an illegal target state transition."""

    pass
