"""File selection through MCP elicitation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from mcp.server.fastmcp import Context

logger = logging.getLogger(__name__)


class FileSelection(BaseModel):
    """Form shown to the user when a target has to be picked."""

    choice: int = Field(description="Number of the file to use")


def format_candidates(candidates: list[Path], root: Path | None = None) -> str:
    """Numbered list of candidates, relative to ``root`` where possible."""
    lines = []
    for number, candidate in enumerate(candidates, start=1):
        shown = candidate
        if root is not None:
            try:
                shown = candidate.relative_to(root)
            except ValueError:
                pass
        lines.append(f"{number}. {shown}")
    return "\n".join(lines)


class ElicitationChooser:
    """Chooser that asks the MCP client's user to pick from a numbered list.

    Declining, cancelling or answering with an out-of-range number counts as
    a cancelled selection. Clients without elicitation support raise from
    ``ctx.elicit``; that error propagates.
    """

    def __init__(self, ctx: Context, root: Path | None = None):
        self._ctx = ctx
        self._root = root

    async def choose(self, prompt: str, candidates: list[Path]) -> Path | None:
        message = f"{prompt}:\n{format_candidates(candidates, self._root)}"
        result = await self._ctx.elicit(message=message, schema=FileSelection)
        if result.action != "accept":
            logger.info(f"Selection not accepted: {result.action}")
            return None
        index = result.data.choice
        if not 1 <= index <= len(candidates):
            logger.warning(f"Selection {index} out of range 1..{len(candidates)}")
            return None
        return candidates[index - 1]
