"""dotnet-mcp: run the dotnet CLI against a tracked project or solution."""

from .session import DotnetSession

__version__ = "0.1.0"

__all__ = ["DotnetSession", "__version__"]
