"""The persisted ``nextBuildNumber`` must stay ahead of every existing build."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from jobber.domain.problems import Finding, Problem, ProblemTag, Solution
from jobber.repair.actions import RewriteCounter

if TYPE_CHECKING:
    from collections.abc import Iterator

    from jobber.domain.job import Job


class NextBuildNumberCheck:
    """``nextBuildNumber`` must be at least the highest valid build number plus one."""

    check_id = "next_build_number"
    tags = (ProblemTag.NEXT,)

    def run(self, job: Job) -> Iterator[Finding]:
        if job.is_empty:
            return

        expected = expected_next_build_number(job)
        given = job.next_build_number
        if given is not None and given >= expected:
            return

        if given is not None:
            shown = str(given)
        elif os.path.lexists(job.counter_path):
            shown = "an unreadable value"
        else:
            shown = "nothing (the file is missing)"

        yield Finding(
            Problem(
                ProblemTag.NEXT,
                f"The nextBuildNumber is set to {shown} but I expected at least {expected}",
                path=str(job.counter_path),
                check_id=self.check_id,
            ),
            (
                Solution(
                    "Reset nextBuildNumber",
                    RewriteCounter(job.repair_scope, job.counter_path, value=expected),
                ),
            ),
        )


def expected_next_build_number(job: Job) -> int:
    valid = job.valid_numbers
    highest = valid[-1].number if valid else 0
    return highest + 1


__all__ = ["NextBuildNumberCheck", "expected_next_build_number"]
