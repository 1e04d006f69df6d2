"""Repair command objects and the pass that applies them."""

from jobber.repair.actions import (
    Archive,
    Relink,
    RepairAction,
    RepairScope,
    ReplaceWithSymlink,
    RewriteCounter,
    Unlink,
)
from jobber.repair.executor import RepairOutcome, apply_solutions

__all__ = [
    "Archive",
    "Relink",
    "RepairAction",
    "RepairOutcome",
    "RepairScope",
    "ReplaceWithSymlink",
    "RewriteCounter",
    "Unlink",
    "apply_solutions",
]
