"""
Layout checks: the job directory itself, convenience links, and numbered entries.

Functional requirements:
- NOJOB is report-only; every other problem carries at least one solution.
- A numbered symlink with a missing target is reported as BROKEN and nothing else here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from jobber.domain.problems import Finding, Problem, ProblemTag, Solution
from jobber.repair.actions import Archive, ReplaceWithSymlink, Unlink

if TYPE_CHECKING:
    from collections.abc import Iterator

    from jobber.domain.job import Job


class JobDirectoryCheck:
    """The job root must hold ``config.xml``."""

    check_id = "job_directory"
    tags = (ProblemTag.NOJOB,)

    def run(self, job: Job) -> Iterator[Finding]:
        if job.config_path.exists():
            return
        yield Finding(
            Problem(
                ProblemTag.NOJOB,
                f"{job.path} is not a job directory; 'config.xml' is missing.",
                path=str(job.path),
                check_id=self.check_id,
            )
        )


class ConvenienceLinkCheck:
    """``lastStableBuild`` and friends must be symlinks when present."""

    check_id = "convenience_links"
    tags = (ProblemTag.NOTLINK,)

    def run(self, job: Job) -> Iterator[Finding]:
        scope = job.repair_scope
        for name in job.settings.last_link_names:
            path = job.builds_path / name
            if path.is_symlink() or not path.exists():
                continue
            yield Finding(
                Problem(
                    ProblemTag.NOTLINK,
                    f"{path} should be a symlink but isn't.",
                    path=str(path),
                    check_id=self.check_id,
                ),
                (
                    Solution(
                        f"Relink {path}",
                        ReplaceWithSymlink(scope, path, target=job.settings.last_link_target),
                    ),
                ),
            )


class NumberedEntryCheck:
    """Every ``builds/<N>`` entry must be a symlink."""

    check_id = "numbers_are_links"
    tags = (ProblemTag.NOTLINK,)

    def run(self, job: Job) -> Iterator[Finding]:
        scope = job.repair_scope
        for number in job.numbers:
            if number.is_symlink:
                continue
            yield Finding(
                Problem(
                    ProblemTag.NOTLINK,
                    f"The number link {number} is not a symlink!",
                    path=str(number.path),
                    check_id=self.check_id,
                ),
                (Solution(f"Archive non-link {number}", Archive(scope, number.path)),),
            )


class BrokenLinkCheck:
    """Every numbered symlink must point at something that exists."""

    check_id = "broken_number_links"
    tags = (ProblemTag.BROKEN,)

    def run(self, job: Job) -> Iterator[Finding]:
        scope = job.repair_scope
        for number in job.numbers:
            if not number.is_symlink or number.exists:
                continue
            yield Finding(
                Problem(
                    ProblemTag.BROKEN,
                    f"The number link {number} is broken.",
                    path=str(number.path),
                    check_id=self.check_id,
                ),
                (Solution(f"Unlink {number}", Unlink(scope, number.path)),),
            )


__all__ = [
    "BrokenLinkCheck",
    "ConvenienceLinkCheck",
    "JobDirectoryCheck",
    "NumberedEntryCheck",
]
