"""
Dated directories without a numbered link pointing at them.

Each unlinked dated directory gets exactly one of four diagnoses, tried in order:

- STOLEN: its recorded number is held by a valid link to a different directory.
- NONUM: nothing (or only a dangling link) holds its recorded number.
- NUMBAD: a real file or directory sits where its numbered link should be.
- BADDATE: no usable recorded number at all.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from jobber.domain.problems import Finding, Problem, ProblemTag, Solution
from jobber.repair.actions import Archive, Relink

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from jobber.domain.builds import DatedDir, NumberedLink
    from jobber.domain.job import Job


class UnlinkedDateCheck:
    """Every dated directory must be the target of some numbered symlink."""

    check_id = "dates_without_numbers"
    tags = (ProblemTag.STOLEN, ProblemTag.NONUM, ProblemTag.NUMBAD, ProblemTag.BADDATE)

    def run(self, job: Job) -> Iterator[Finding]:
        linked = linked_dates(job)
        for date in job.dates:
            if date.canonical_path in linked:
                continue
            yield self._diagnose(job, date)

    def _diagnose(self, job: Job, date: DatedDir) -> Finding:
        scope = job.repair_scope
        occupant = date.numbered
        previous = occupant.dated if occupant is not None else None

        if occupant is not None and previous is not None and _is_stolen(occupant, date):
            return Finding(
                self._problem(
                    ProblemTag.STOLEN,
                    f"The date build {date} had its number stolen by {occupant}",
                    date,
                ),
                (
                    Solution(
                        f"Relink {occupant.number} to {date}",
                        Relink(scope, occupant.path, target_name=date.name),
                    ),
                    Solution(
                        f"Archive newer build {previous}",
                        Archive(scope, previous.path, keep=date.path),
                    ),
                ),
            )

        if occupant is not None and (not occupant.lexists or occupant.is_symlink):
            return Finding(
                self._problem(
                    ProblemTag.NONUM,
                    f"The date build {date} doesn't have a matching number link {occupant.path}",
                    date,
                ),
                (
                    Solution(
                        f"Link {occupant.number} to {date}",
                        Relink(scope, occupant.path, target_name=date.name),
                    ),
                ),
            )

        if occupant is not None:
            return Finding(
                self._problem(
                    ProblemTag.NUMBAD,
                    f"The number entry {occupant.path} for date build {date} is not a symlink",
                    date,
                ),
                (
                    Solution(f"Archive non-link {occupant.path}", Archive(scope, occupant.path)),
                    Solution(
                        f"Link {occupant.number} to {date}",
                        Relink(scope, occupant.path, target_name=date.name),
                    ),
                ),
            )

        return Finding(
            self._problem(
                ProblemTag.BADDATE,
                f"The date build {date} has no readable build number",
                date,
            ),
            (Solution(f"Archive malformed {date}", Archive(scope, date.path)),),
        )

    def _problem(self, tag: ProblemTag, message: str, date: DatedDir) -> Problem:
        return Problem(tag, message, path=str(date.path), check_id=self.check_id)


def linked_dates(job: Job) -> frozenset[Path]:
    """Canonical paths of every directory some numbered symlink resolves to."""

    return frozenset(number.canonical_path for number in job.numbers if number.is_symlink)


def _is_stolen(occupant: NumberedLink, date: DatedDir) -> bool:
    if not occupant.is_valid or occupant.dated is None:
        return False
    previous = occupant.dated.path
    return os.path.realpath(previous) != os.path.realpath(date.path)


__all__ = ["UnlinkedDateCheck", "linked_dates"]
