"""Project/solution discovery and selection.

Every call rescans the filesystem; nothing is cached.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors import InvalidTargetError, NoMatchingFiles, SelectionCancelled
from .state import TargetConstraint

logger = logging.getLogger(__name__)

RootDetector = Callable[[Path], Path | None]
FileEnumerator = Callable[[Path, tuple[str, ...]], Iterable[Path]]


@runtime_checkable
class Chooser(Protocol):
    """Asks the user to pick one path from a list."""

    async def choose(self, prompt: str, candidates: list[Path]) -> Path | None:
        """Return the chosen candidate, or None if the user cancelled."""
        ...


class PresetChooser:
    """Chooser answering with a path the caller already supplied.

    The path still has to turn up in the scan, so explicit selections obey
    the same search root as prompted ones.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self._path = Path(os.path.abspath(path))

    async def choose(self, prompt: str, candidates: list[Path]) -> Path | None:
        wanted = os.path.normcase(str(self._path))
        for candidate in candidates:
            if os.path.normcase(str(candidate)) == wanted:
                return candidate
        raise InvalidTargetError(
            f"{self._path} is not among the {len(candidates)} candidate files"
        )


def enumerate_files(root: Path, patterns: tuple[str, ...]) -> list[Path]:
    """Recursively list files under ``root`` matching any of ``patterns``.

    Matching ignores case, as ``Target.from_path`` does.
    """
    wanted = [pattern.lower() for pattern in patterns]
    return sorted(
        p
        for p in root.rglob("*")
        if any(fnmatch.fnmatchcase(p.name.lower(), pattern) for pattern in wanted)
        and p.is_file()
    )


class ProjectLocator:
    """Finds candidate project/solution files and asks a chooser to pick one.

    Args:
        default_root: Callable returning the directory to search when no
            project root is detected (typically the session working directory)
        root_detector: Optional project root detector. None means the
            capability is not available.
        enumerator: Filesystem enumeration, ``enumerate_files`` by default
    """

    def __init__(
        self,
        default_root: Callable[[], Path],
        root_detector: RootDetector | None = None,
        enumerator: FileEnumerator = enumerate_files,
    ):
        self._default_root = default_root
        self._root_detector = root_detector
        self._enumerator = enumerator

    def search_root(self) -> Path:
        """Directory the next scan will start from."""
        default = self._default_root()
        if self._root_detector is None:
            return default
        try:
            detected = self._root_detector(default)
        except (OSError, RuntimeError) as e:
            logger.warning(f"Project root detection failed, using {default}: {e}")
            return default
        return detected if detected is not None else default

    def candidates(self, constraint: TargetConstraint) -> list[Path]:
        """Scan the search root for files matching ``constraint``.

        Raises:
            NoMatchingFiles: If the scan finds nothing
        """
        root = self.search_root()
        patterns = constraint.patterns
        found = [Path(os.path.abspath(p)) for p in self._enumerator(root, patterns)]
        logger.debug(f"Found {len(found)} {constraint.label} files under {root}")
        if not found:
            raise NoMatchingFiles(root, patterns)
        return found

    async def locate(self, constraint: TargetConstraint, chooser: Chooser) -> Path:
        """Scan and let the user pick a single file.

        Returns:
            Absolute path of the chosen file

        Raises:
            NoMatchingFiles: If there is nothing to choose from
            SelectionCancelled: If the chooser returns nothing usable
        """
        found = self.candidates(constraint)
        choice = await chooser.choose(f"Select a {constraint.label} file", found)
        if choice is None:
            raise SelectionCancelled(f"No {constraint.label} file selected")
        choice = Path(os.path.abspath(choice))
        if choice not in found:
            raise SelectionCancelled(f"{choice} is not a {constraint.label} candidate")
        return choice
