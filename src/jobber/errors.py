"""Error taxonomy shared by the scanner, the checks, the repair layer and the CLI."""

from __future__ import annotations

from pathlib import Path


class JobberError(Exception):
    """Base class for every error raised deliberately by ``jobber``."""


class UsageError(JobberError, ValueError):
    """A supplied job path cannot be audited at all (raised before any scan)."""


class CheckExecutionError(JobberError):
    """A check failed with an unexpected filesystem error while reading a job."""

    def __init__(self, check_id: str, job_path: Path | str, cause: BaseException) -> None:
        self.check_id = check_id
        self.job_path = str(job_path)
        self.cause = cause
        super().__init__(f"check {check_id!r} failed for {self.job_path}: {cause}")


class RepairError(JobberError):
    """A repair action could not be applied."""


class ArchiveCollisionError(RepairError):
    """The quarantine already holds an entry with the archived basename."""


class MissingSourceError(RepairError):
    """The entry to archive or relink no longer exists."""


class RepairScopeError(RepairError):
    """A repair action targeted a path outside the job it belongs to."""


class SolutionAlreadyAppliedError(RepairError):
    """A solution was applied a second time."""


__all__ = [
    "ArchiveCollisionError",
    "CheckExecutionError",
    "JobberError",
    "MissingSourceError",
    "RepairError",
    "RepairScopeError",
    "SolutionAlreadyAppliedError",
    "UsageError",
]
