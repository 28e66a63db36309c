"""Current-target tracking for the dotnet CLI.

- Target model (project or solution file) and constraints
- Session-scoped target state machine
- Filesystem locator with pluggable user selection
"""

from .locator import Chooser, PresetChooser, ProjectLocator, enumerate_files
from .resolver import TargetResolver
from .state import Target, TargetConstraint, TargetKind, TargetState

__all__ = [
    "Chooser",
    "PresetChooser",
    "ProjectLocator",
    "Target",
    "TargetConstraint",
    "TargetKind",
    "TargetResolver",
    "TargetState",
    "enumerate_files",
]
