"""Tests for elicitation-backed file selection."""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from dotnet_mcp.elicitation import ElicitationChooser, FileSelection, format_candidates
from dotnet_mcp.target import Chooser

CANDIDATES = [Path("/r/App.sln"), Path("/r/src/Lib/Lib.csproj")]


def make_ctx(action="accept", choice=1):
    ctx = MagicMock()
    data = FileSelection(choice=choice) if action == "accept" else None
    ctx.elicit = AsyncMock(return_value=SimpleNamespace(action=action, data=data))
    return ctx


class TestFormatCandidates:
    def test_numbered_relative_to_root(self):
        assert format_candidates(CANDIDATES, Path("/r")) == "1. App.sln\n2. src/Lib/Lib.csproj"

    def test_outside_root_kept_absolute(self):
        text = format_candidates([Path("/other/X.csproj")], Path("/r"))
        assert text == f"1. {Path('/other/X.csproj')}"


class TestElicitationChooser:
    """Tests for ElicitationChooser.choose()."""

    def test_is_a_chooser(self):
        assert isinstance(ElicitationChooser(make_ctx()), Chooser)

    @pytest.mark.asyncio
    async def test_accept_returns_candidate(self):
        ctx = make_ctx(choice=2)
        chooser = ElicitationChooser(ctx, Path("/r"))

        result = await chooser.choose("Select a project file", CANDIDATES)

        assert result == CANDIDATES[1]
        kwargs = ctx.elicit.call_args.kwargs
        assert kwargs["schema"] is FileSelection
        assert kwargs["message"].startswith("Select a project file:\n1. App.sln")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["decline", "cancel"])
    async def test_not_accepted_is_cancel(self, action):
        chooser = ElicitationChooser(make_ctx(action=action))
        assert await chooser.choose("Select", CANDIDATES) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("choice", [0, 3, -1])
    async def test_out_of_range_is_cancel(self, choice):
        chooser = ElicitationChooser(make_ctx(choice=choice))
        assert await chooser.choose("Select", CANDIDATES) is None

    @pytest.mark.asyncio
    async def test_unsupported_client_error_propagates(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(side_effect=RuntimeError("elicitation not supported"))

        with pytest.raises(RuntimeError):
            await ElicitationChooser(ctx).choose("Select", CANDIDATES)
