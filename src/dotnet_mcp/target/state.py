"""Target model and the session's current-target state machine.

State machine:
UNSET → BOUND(path, kind)
  ↑________|   (clear / constraint violation)

A bound target of one kind never turns directly into a bound target of the
other kind; it is cleared first.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from ..errors import InvalidTargetError, TargetStateError

logger = logging.getLogger(__name__)


class TargetKind(str, Enum):
    """Kinds of file the dotnet CLI can operate on."""

    PROJECT = "project"
    SOLUTION = "solution"

    @property
    def suffix(self) -> str:
        return ".csproj" if self is TargetKind.PROJECT else ".sln"


class TargetConstraint(str, Enum):
    """Which target kinds an operation accepts."""

    ANY = "any"
    PROJECT_ONLY = "project"
    SOLUTION_ONLY = "solution"

    def allows(self, kind: TargetKind) -> bool:
        """Check whether a target of ``kind`` satisfies this constraint."""
        if self is TargetConstraint.ANY:
            return True
        if self is TargetConstraint.PROJECT_ONLY:
            return kind is TargetKind.PROJECT
        return kind is TargetKind.SOLUTION

    @property
    def patterns(self) -> tuple[str, ...]:
        """Glob patterns for candidate files."""
        if self is TargetConstraint.PROJECT_ONLY:
            return ("*.csproj",)
        if self is TargetConstraint.SOLUTION_ONLY:
            return ("*.sln",)
        return ("*.csproj", "*.sln")

    @property
    def label(self) -> str:
        """Human-readable description used in prompts."""
        if self is TargetConstraint.PROJECT_ONLY:
            return "project"
        if self is TargetConstraint.SOLUTION_ONLY:
            return "solution"
        return "project or solution"


_KINDS_BY_SUFFIX: dict[str, TargetKind] = {kind.suffix: kind for kind in TargetKind}


@dataclass(frozen=True)
class Target:
    """A project or solution file the dotnet CLI is pointed at."""

    path: Path
    kind: TargetKind

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> Target:
        """Classify a file path by its suffix.

        Raises:
            InvalidTargetError: If the suffix is neither .csproj nor .sln
        """
        candidate = Path(os.path.abspath(path))
        kind = _KINDS_BY_SUFFIX.get(candidate.suffix.lower())
        if kind is None:
            raise InvalidTargetError(
                f"Not a project or solution file (.csproj/.sln): {path}"
            )
        return cls(path=candidate, kind=kind)

    @property
    def directory(self) -> Path:
        """Directory commands against this target run in."""
        return self.path.parent

    def satisfies(self, constraint: TargetConstraint) -> bool:
        return constraint.allows(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": str(self.path),
            "kind": self.kind.value,
            "directory": str(self.directory),
        }


class TargetState:
    """Holds the single current target of a session.

    ``current`` is None while unset. Listeners receive the new value on every
    transition.
    """

    def __init__(self) -> None:
        self._current: Target | None = None
        self._listeners: list[Callable[[Target | None], None]] = []

    @property
    def current(self) -> Target | None:
        """Current target, or None when unset."""
        return self._current

    @property
    def is_bound(self) -> bool:
        return self._current is not None

    def on_change(self, listener: Callable[[Target | None], None]) -> None:
        """Register a transition listener."""
        self._listeners.append(listener)

    def _set(self, target: Target | None) -> None:
        old = self._current
        self._current = target
        if old == target:
            return
        logger.info(
            f"Target: {old.path if old else 'unset'} -> {target.path if target else 'unset'}"
        )
        for listener in self._listeners:
            try:
                listener(target)
            except Exception:
                logger.exception("Target listener error")

    def bind(self, target: Target) -> None:
        """Bind a target.

        Raises:
            TargetStateError: If a target of a different kind is still bound
        """
        current = self._current
        if current is not None and current.kind is not target.kind:
            raise TargetStateError(
                f"Cannot rebind {current.kind.value} target to a {target.kind.value} "
                f"without clearing it first"
            )
        self._set(target)

    def clear(self) -> bool:
        """Reset to unset. Returns True if a target was bound."""
        was_bound = self._current is not None
        self._set(None)
        return was_bound

    def invalidate_if_violates(self, constraint: TargetConstraint) -> bool:
        """Clear the current target if it does not satisfy ``constraint``.

        Returns:
            True if the target was cleared
        """
        current = self._current
        if current is None or current.satisfies(constraint):
            return False
        logger.debug(f"Invalidating {current.kind.value} target for {constraint.value} operation")
        self._set(None)
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if self._current is None:
            return {"state": "unset"}
        return {"state": "bound", **self._current.to_dict()}
