"""Asynchronous process runner streaming into named output channels.

Owns the whole process lifecycle: spawning, output capture and killing.
Exit codes are written to the channel as text and otherwise ignored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from .command import DotnetCommand

logger = logging.getLogger(__name__)

# Output buffer limits (security: prevent DoS)
MAX_OUTPUT_BYTES: int = 5_000_000  # 5MB per channel
MAX_OUTPUT_LINE: int = 10_000  # 10KB per line


class ProcessRunner(Protocol):
    """Runs a command in the background, writing output to a named channel."""

    def start(self, command: DotnetCommand, output_name: str) -> None: ...


class OutputChannel:
    """Bounded text buffer shared by every process writing to one name."""

    def __init__(self, name: str, max_bytes: int = MAX_OUTPUT_BYTES):
        self.name = name
        self._max_bytes = max_bytes
        self._lines: list[str] = []
        self._size = 0

    def write(self, line: str) -> None:
        if len(line) > MAX_OUTPUT_LINE:
            line = line[:MAX_OUTPUT_LINE] + "...[truncated]\n"
        if not line.endswith("\n"):
            line += "\n"
        self._lines.append(line)
        self._size += len(line)
        # Drop oldest lines once over budget
        while self._size > self._max_bytes and self._lines:
            self._size -= len(self._lines.pop(0))

    def read(self, tail: int | None = None) -> str:
        if tail is None:
            return "".join(self._lines)
        lines = self._lines[-tail:] if tail > 0 else []
        return "".join(lines)

    def clear(self) -> None:
        self._lines.clear()
        self._size = 0

    def __len__(self) -> int:
        return len(self._lines)


class AsyncProcessRunner:
    """``ProcessRunner`` backed by asyncio subprocesses.

    ``start`` must be called from a running event loop. Each process runs as
    an independent task; several may run at once.
    """

    def __init__(self, executable: str = "dotnet"):
        self._executable = executable
        self._channels: dict[str, OutputChannel] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._processes: set[asyncio.subprocess.Process] = set()

    @property
    def running(self) -> int:
        """Number of commands still in flight."""
        return len(self._tasks)

    def get_channel(self, name: str) -> OutputChannel:
        """Get or create the channel called ``name``."""
        if name not in self._channels:
            self._channels[name] = OutputChannel(name)
        return self._channels[name]

    def start(self, command: DotnetCommand, output_name: str) -> None:
        channel = self.get_channel(output_name)
        task = asyncio.get_running_loop().create_task(self._execute(command, channel))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, command: DotnetCommand, channel: OutputChannel) -> None:
        argv = command.argv_for(self._executable)
        channel.write(f"$ {command.to_shell()}")
        try:
            # Never use a shell
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(command.cwd),
            )
        except OSError as e:
            logger.warning(f"Failed to start {argv[0]}: {e}")
            channel.write(f"Failed to start {argv[0]}: {e}")
            return

        self._processes.add(process)
        try:
            await self._pump(process.stdout, channel)
            exit_code = await process.wait()
        finally:
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            self._processes.discard(process)

        channel.write(f"[Process exited with code {exit_code}]")
        logger.info(f"{command.to_shell()} exited with code {exit_code}")

    @staticmethod
    async def _pump(stream: asyncio.StreamReader | None, channel: OutputChannel) -> None:
        if stream is None:
            return
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # Line over the stream limit; the reader has already discarded it
                channel.write("...[line exceeded buffer limit, dropped]")
                continue
            if not line:
                break
            channel.write(line.decode("utf-8", errors="replace"))

    def cancel_all(self) -> int:
        """Kill every running process.

        Returns:
            Number of processes killed
        """
        killed = 0
        for process in list(self._processes):
            if process.returncode is not None:
                continue
            try:
                process.kill()
                killed += 1
            except ProcessLookupError:
                pass
        if killed:
            logger.info(f"Killed {killed} running dotnet processes")
        return killed

    async def wait_idle(self) -> None:
        """Wait for every started command to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
