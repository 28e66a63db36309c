"""Tests for project/solution discovery and selection."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import FakeChooser, fake_tree
from dotnet_mcp.errors import InvalidTargetError, NoMatchingFiles, SelectionCancelled
from dotnet_mcp.target.locator import PresetChooser, ProjectLocator, enumerate_files
from dotnet_mcp.target.state import TargetConstraint


class TestEnumerateFiles:
    """Tests for the default filesystem enumerator."""

    def test_finds_nested_files(self, dotnet_tree):
        found = enumerate_files(dotnet_tree, ("*.csproj", "*.sln"))
        assert found == sorted(
            [
                dotnet_tree / "App.sln",
                dotnet_tree / "src" / "App" / "App.csproj",
                dotnet_tree / "src" / "Lib" / "Lib.csproj",
            ]
        )

    def test_filters_by_pattern(self, dotnet_tree):
        assert enumerate_files(dotnet_tree, ("*.sln",)) == [dotnet_tree / "App.sln"]

    def test_skips_directories(self, tmp_path):
        (tmp_path / "Weird.csproj").mkdir()
        assert enumerate_files(tmp_path, ("*.csproj",)) == []

    def test_suffix_case_ignored(self, tmp_path):
        """Upper-case suffixes are offered, since they are valid targets."""
        (tmp_path / "App.CSPROJ").touch()
        (tmp_path / "All.Sln").touch()

        assert enumerate_files(tmp_path, ("*.csproj",)) == [tmp_path / "App.CSPROJ"]
        assert enumerate_files(tmp_path, ("*.sln",)) == [tmp_path / "All.Sln"]


class TestSearchRoot:
    """Tests for search root selection."""

    def test_without_detector_uses_default(self, tmp_path):
        locator = ProjectLocator(lambda: tmp_path)
        assert locator.search_root() == tmp_path

    def test_detected_root_preferred(self, tmp_path):
        detected = tmp_path / "repo"
        detector = MagicMock(return_value=detected)
        locator = ProjectLocator(lambda: tmp_path / "repo" / "src", root_detector=detector)

        assert locator.search_root() == detected
        detector.assert_called_once_with(tmp_path / "repo" / "src")

    def test_detector_returning_none_falls_back(self, tmp_path):
        locator = ProjectLocator(lambda: tmp_path, root_detector=lambda start: None)
        assert locator.search_root() == tmp_path

    def test_detector_failure_falls_back(self, tmp_path):
        detector = MagicMock(side_effect=OSError("permission denied"))
        locator = ProjectLocator(lambda: tmp_path, root_detector=detector)
        assert locator.search_root() == tmp_path

    def test_default_root_read_each_time(self, tmp_path):
        current = {"dir": tmp_path / "a"}
        locator = ProjectLocator(lambda: current["dir"])
        current["dir"] = tmp_path / "b"
        assert locator.search_root() == tmp_path / "b"


class TestLocate:
    """Tests for locate()."""

    @pytest.mark.asyncio
    async def test_returns_chosen_path(self):
        locator = ProjectLocator(lambda: Path("/r"), enumerator=fake_tree("/r/App.sln", "/r/Lib.csproj"))
        chooser = FakeChooser(answer="/r/Lib.csproj")

        result = await locator.locate(TargetConstraint.ANY, chooser)

        assert result == Path("/r/Lib.csproj")

    @pytest.mark.asyncio
    async def test_solution_only_offers_solutions(self):
        locator = ProjectLocator(lambda: Path("/r"), enumerator=fake_tree("/r/App.sln", "/r/Lib.csproj"))
        chooser = FakeChooser()

        await locator.locate(TargetConstraint.SOLUTION_ONLY, chooser)

        prompt, candidates = chooser.calls[0]
        assert candidates == [Path("/r/App.sln")]
        assert "solution" in prompt

    @pytest.mark.asyncio
    async def test_no_files_raises(self):
        locator = ProjectLocator(lambda: Path("/r"), enumerator=fake_tree())
        chooser = FakeChooser()

        with pytest.raises(NoMatchingFiles) as exc_info:
            await locator.locate(TargetConstraint.ANY, chooser)

        assert exc_info.value.root == Path("/r")
        assert chooser.calls == []

    @pytest.mark.asyncio
    async def test_cancel_raises(self):
        locator = ProjectLocator(lambda: Path("/r"), enumerator=fake_tree("/r/Lib.csproj"))

        with pytest.raises(SelectionCancelled):
            await locator.locate(TargetConstraint.ANY, FakeChooser(answer=None))

    @pytest.mark.asyncio
    async def test_choice_outside_candidates_rejected(self):
        locator = ProjectLocator(lambda: Path("/r"), enumerator=fake_tree("/r/Lib.csproj"))

        with pytest.raises(SelectionCancelled):
            await locator.locate(TargetConstraint.ANY, FakeChooser(answer="/elsewhere/X.csproj"))

    @pytest.mark.asyncio
    async def test_rescans_every_call(self):
        enumerator = MagicMock(return_value=[Path("/r/Lib.csproj")])
        locator = ProjectLocator(lambda: Path("/r"), enumerator=enumerator)

        await locator.locate(TargetConstraint.ANY, FakeChooser())
        await locator.locate(TargetConstraint.ANY, FakeChooser())

        assert enumerator.call_count == 2

    @pytest.mark.asyncio
    async def test_real_filesystem(self, dotnet_tree):
        locator = ProjectLocator(lambda: dotnet_tree / "src")
        chooser = FakeChooser()

        result = await locator.locate(TargetConstraint.PROJECT_ONLY, chooser)

        assert result == dotnet_tree / "src" / "App" / "App.csproj"
        assert len(chooser.calls[0][1]) == 2


class TestPresetChooser:
    """Tests for choosing a caller-supplied path."""

    @pytest.mark.asyncio
    async def test_picks_matching_candidate(self):
        chooser = PresetChooser("/r/Lib.csproj")
        candidates = [Path("/r/App.sln"), Path("/r/Lib.csproj")]

        assert await chooser.choose("Select", candidates) == Path("/r/Lib.csproj")

    @pytest.mark.asyncio
    async def test_unknown_path_raises(self):
        chooser = PresetChooser("/other/Lib.csproj")

        with pytest.raises(InvalidTargetError, match="not among"):
            await chooser.choose("Select", [Path("/r/Lib.csproj")])
