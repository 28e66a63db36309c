"""dotnet command construction and dispatch.

- Structured command lines with quoting at the part boundary
- Templates for targeted commands (build, test, sln, ...)
- Fire-and-forget dispatcher with an append-only history
- asyncio process runner streaming to named output channels
"""

from .command import CommandPart, DotnetCommand, argument, literal, quote_argument
from .dispatcher import CommandLog, Dispatcher
from .runner import AsyncProcessRunner, OutputChannel, ProcessRunner
from .templates import TEMPLATES, CommandEngine, CommandTemplate

__all__ = [
    "AsyncProcessRunner",
    "CommandEngine",
    "CommandLog",
    "CommandPart",
    "CommandTemplate",
    "Dispatcher",
    "DotnetCommand",
    "OutputChannel",
    "ProcessRunner",
    "TEMPLATES",
    "argument",
    "literal",
    "quote_argument",
]
