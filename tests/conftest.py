"""Pytest fixtures for dotnet-mcp tests."""

import os
import sys
from pathlib import Path, PurePath
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp.server.fastmcp import Context
from mcp.server.session import ServerSession
from mcp.types import ListRootsResult, Root

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from dotnet_mcp.config import DotnetSettings  # noqa: E402
from dotnet_mcp.session import DotnetSession  # noqa: E402


class FakeChooser:
    """Chooser that records prompts and answers from a script.

    ``answer`` is a candidate index, a path, or None (cancel).
    """

    def __init__(self, answer=0):
        self.answer = answer
        self.calls: list[tuple[str, list[Path]]] = []

    async def choose(self, prompt, candidates):
        self.calls.append((prompt, list(candidates)))
        if self.answer is None:
            return None
        if isinstance(self.answer, int):
            return candidates[self.answer]
        return Path(self.answer)


class RecordingRunner:
    """Process runner that only records what it was asked to start."""

    def __init__(self):
        self.started = []

    def start(self, command, output_name):
        self.started.append((command, output_name))


def roots_context(*uris, error=None):
    """MCP context whose client answers roots/list with ``uris``.

    Spec'd on the real classes so calls the SDK does not offer fail.
    """
    ctx = MagicMock(spec=Context)
    ctx.session = MagicMock(spec=ServerSession)
    if error is not None:
        ctx.session.list_roots = AsyncMock(side_effect=error)
    else:
        result = ListRootsResult(roots=[Root(uri=uri) for uri in uris])
        ctx.session.list_roots = AsyncMock(return_value=result)
    return ctx


def fake_tree(*paths):
    """Enumerator returning fixed paths that match the requested patterns."""

    def enumerate_paths(root, patterns):
        return [
            Path(p) for p in paths if any(PurePath(p).match(pattern) for pattern in patterns)
        ]

    return enumerate_paths


@pytest.fixture
def chooser():
    return FakeChooser()


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def make_session(runner):
    """Factory for sessions over a fake file tree rooted at /r."""

    def factory(*paths, working_directory="/r", verbosity="normal"):
        return DotnetSession(
            working_directory,
            settings=DotnetSettings(verbosity=verbosity),
            runner=runner,
            root_detector=None,
            enumerator=fake_tree(*paths),
        )

    return factory


@pytest.fixture
def dotnet_tree(tmp_path):
    """A small real solution layout on disk."""
    (tmp_path / "App.sln").touch()
    for name in ("App", "Lib"):
        project_dir = tmp_path / "src" / name
        project_dir.mkdir(parents=True)
        (project_dir / f"{name}.csproj").touch()
    (tmp_path / "README.md").touch()
    return tmp_path
