"""Fire-and-forget dispatch of finished commands, with a history log."""

from __future__ import annotations

import logging

from .command import DotnetCommand, quote_argument
from .runner import ProcessRunner

logger = logging.getLogger(__name__)


class CommandLog:
    """Append-only history of dispatched commands.

    Lives as long as the process; never truncated or written to disk.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []

    def append(self, entry: str) -> None:
        self._entries.append(entry)

    def entries(self) -> list[str]:
        """Copy of all entries, oldest first."""
        return list(self._entries)

    def render(self) -> str:
        """One entry per line."""
        return "\n".join(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class Dispatcher:
    """Logs a command and hands it to the process runner without waiting."""

    def __init__(self, runner: ProcessRunner, log: CommandLog, output_name: str = "dotnet"):
        self._runner = runner
        self._log = log
        self._output_name = output_name

    @property
    def log(self) -> CommandLog:
        return self._log

    @property
    def output_name(self) -> str:
        return self._output_name

    def run(self, command: DotnetCommand) -> None:
        """Record ``command`` and start it in its working directory."""
        shell = command.to_shell()
        self._log.append(f"cd {quote_argument(str(command.cwd))}")
        self._log.append(shell)
        logger.info(f"Dispatching in {command.cwd}: {shell}")
        self._runner.start(command, self._output_name)
