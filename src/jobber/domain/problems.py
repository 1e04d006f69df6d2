"""Problem reports and the solutions proposed for them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from jobber.errors import SolutionAlreadyAppliedError

if TYPE_CHECKING:
    from jobber.repair.actions import RepairAction


class ProblemTag(StrEnum):
    """Fixed set of invariant violations a job can report."""

    NOJOB = "NOJOB"
    NOTLINK = "NOTLINK"
    BROKEN = "BROKEN"
    ORDER = "ORDER"
    STOLEN = "STOLEN"
    NONUM = "NONUM"
    NUMBAD = "NUMBAD"
    BADDATE = "BADDATE"
    NEXT = "NEXT"


@dataclass(frozen=True, slots=True)
class Problem:
    """One invariant violation found in a job. Purely a report."""

    tag: ProblemTag
    message: str
    path: str | None = None
    check_id: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "tag": self.tag.value,
            "message": self.message,
            "path": self.path,
            "check_id": self.check_id,
        }

    def __str__(self) -> str:
        return f"{self.tag.value}: {self.message}"


@dataclass(slots=True)
class Solution:
    """A described, deferred repair. Applied at most once, and only in repair mode."""

    message: str
    action: RepairAction
    applied: bool = field(default=False, init=False)

    def apply(self) -> None:
        if self.applied:
            raise SolutionAlreadyAppliedError(f"solution already applied: {self.message}")
        self.action.apply()
        self.applied = True

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "action": self.action.to_dict(),
            "applied": self.applied,
        }

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class Finding:
    """A problem together with the solutions proposed for it, in application order."""

    problem: Problem
    solutions: tuple[Solution, ...] = ()


__all__ = ["Finding", "Problem", "ProblemTag", "Solution"]
