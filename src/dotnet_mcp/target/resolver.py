"""Resolves the current target, prompting through the locator when needed."""

from __future__ import annotations

import logging

from ..errors import InvalidTargetError
from .locator import Chooser, ProjectLocator
from .state import Target, TargetConstraint, TargetState

logger = logging.getLogger(__name__)


class TargetResolver:
    """Returns a target satisfying a constraint, asking the user when needed."""

    def __init__(self, state: TargetState, locator: ProjectLocator):
        self._state = state
        self._locator = locator

    @property
    def state(self) -> TargetState:
        return self._state

    @property
    def locator(self) -> ProjectLocator:
        return self._locator

    async def get_or_prompt(
        self,
        constraint: TargetConstraint,
        chooser: Chooser,
        force_prompt: bool = False,
    ) -> Target:
        """Return the current target, or locate a new one.

        The locator runs when ``force_prompt`` is set, when nothing is bound,
        or when the bound target violates ``constraint``. A violating target is
        cleared before prompting so a cancelled prompt never leaves it behind.

        Raises:
            SelectionCancelled: If the user cancelled the prompt
            NoMatchingFiles: If there was nothing to choose from
        """
        self._state.invalidate_if_violates(constraint)
        current = self._state.current
        if current is not None and not force_prompt:
            return current

        path = await self._locator.locate(constraint, chooser)
        target = Target.from_path(path)
        if not target.satisfies(constraint):
            raise InvalidTargetError(f"{path} is not a {constraint.label} file")

        if current is not None and current.kind is not target.kind:
            self._state.clear()
        self._state.bind(target)
        return target
