"""
Apply a job's proposed solutions once all of its checks have run.

Every application is logged through ``structlog`` as a machine-parseable decision
record carrying the action's verb and target paths. The first failure stops the
job's repair pass; the caller decides what to do with the outcome. Two checks may
propose the same action for one entry; it is applied once and the repeat is recorded
as a duplicate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from jobber.errors import RepairError

if TYPE_CHECKING:
    from jobber.domain.job import Job
    from jobber.domain.problems import Solution
    from jobber.repair.actions import RepairAction


@dataclass(slots=True)
class RepairOutcome:
    """What a repair pass over one job did."""

    job_path: str
    applied: list[Solution] = field(default_factory=list)
    failed: Solution | None = None
    error: str | None = None
    skipped: list[Solution] = field(default_factory=list)
    duplicates: list[Solution] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        return {
            "job_path": self.job_path,
            "applied": [item.to_dict() for item in self.applied],
            "failed": self.failed.to_dict() if self.failed is not None else None,
            "error": self.error,
            "skipped": [item.to_dict() for item in self.skipped],
            "duplicates": [item.to_dict() for item in self.duplicates],
        }


def apply_solutions(job: Job, *, logger: Any | None = None) -> RepairOutcome:
    """Apply every solution of an already-checked ``job``, in order."""

    if not job.checks_ran:
        raise RepairError(f"checks have not run for {job.path}; refusing to repair")

    log = logger if logger is not None else structlog.get_logger(__name__)
    outcome = RepairOutcome(job_path=str(job.path))
    pending = list(job.solutions)
    done: set[RepairAction] = set()

    while pending:
        solution = pending.pop(0)
        if solution.action in done:
            outcome.duplicates.append(solution)
            log.info(
                "repair_action_duplicate",
                job=str(job.path),
                solution=solution.message,
                action=solution.action.to_dict(),
            )
            continue
        try:
            solution.apply()
        except (RepairError, OSError) as exc:
            outcome.failed = solution
            outcome.error = f"{solution.message}: {exc}"
            outcome.skipped = pending
            log.error(
                "repair_action_failed",
                job=str(job.path),
                solution=solution.message,
                action=solution.action.to_dict(),
                error=str(exc),
                error_type=type(exc).__name__,
                skipped=len(pending),
            )
            break
        outcome.applied.append(solution)
        done.add(solution.action)
        log.info(
            "repair_action_applied",
            job=str(job.path),
            solution=solution.message,
            action=solution.action.to_dict(),
        )

    return outcome


__all__ = ["RepairOutcome", "apply_solutions"]
