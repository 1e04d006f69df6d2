"""Build numbers must increase monotonically with build time."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from jobber.domain.problems import Finding, Problem, ProblemTag, Solution
from jobber.repair.actions import Archive

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from jobber.domain.builds import NumberedLink
    from jobber.domain.job import Job


class NumberOrderCheck:
    """
    Flag valid numbered links whose build time is later than some higher-numbered build.

    Walking the valid links by number, a link is out of order when its timestamp is
    strictly greater than the minimum timestamp of every link at or after it. Equal
    timestamps are not violations, and links without a usable timestamp take no part
    in the comparison.
    """

    check_id = "number_order"
    tags = (ProblemTag.ORDER,)

    def run(self, job: Job) -> Iterator[Finding]:
        scope = job.repair_scope
        for number in out_of_order(job.valid_numbers):
            solutions = [Solution(f"Archive out-of-order {number}", Archive(scope, number.path))]
            dated = number.dated
            if dated is not None:
                solutions.append(
                    Solution(f"Archive out-of-order build {dated}", Archive(scope, dated.path))
                )
            yield Finding(
                Problem(
                    ProblemTag.ORDER,
                    f"The link {number} is out of order.",
                    path=str(number.path),
                    check_id=self.check_id,
                ),
                tuple(solutions),
            )


def out_of_order(numbers: Sequence[NumberedLink]) -> list[NumberedLink]:
    """Return the links in ``numbers`` (sorted by number) that break time ordering."""

    timed: list[tuple[NumberedLink, datetime]] = []
    for number in numbers:
        timestamp = number.timestamp
        if timestamp is not None:
            timed.append((number, timestamp))

    flagged: list[NumberedLink] = []
    suffix_min: datetime | None = None
    for number, timestamp in reversed(timed):
        if suffix_min is None or timestamp < suffix_min:
            suffix_min = timestamp
        elif timestamp > suffix_min:
            flagged.append(number)
    flagged.reverse()
    return flagged


__all__ = ["NumberOrderCheck", "out_of_order"]
