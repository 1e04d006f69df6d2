"""
jobber: audit driver

File: src/jobber/runner.py
Last updated: 2026-10-19

Purpose
- Audit a list of job directories: scan each, run its checks, and in repair mode apply
  the proposed solutions once every check of that job has run.

Functional requirements
- Every path is validated as a directory before any job is scanned.
- Jobs are audited sequentially and independently; one job's failure never stops
  the audit of the jobs after it.
- The run's exit status is derived from the per-job reports only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jobber.domain.job import JobSettings, scan
from jobber.errors import CheckExecutionError, RepairError, UsageError
from jobber.main import ExitCode
from jobber.observability.logging import correlation_scope
from jobber.repair.executor import RepairOutcome, apply_solutions

if TYPE_CHECKING:
    from jobber.checks.base import CheckRegistry
    from jobber.domain.problems import Problem, Solution

_LOGGER = logging.getLogger(__name__)

JobCallback = Callable[["JobReport"], None]


@dataclass(slots=True)
class JobReport:
    """Outcome of auditing one job directory."""

    name: str
    path: Path
    problems: tuple[Problem, ...] = ()
    solutions: tuple[Solution, ...] = ()
    repair: RepairOutcome | None = None
    error: str | None = None

    @property
    def has_problems(self) -> bool:
        return bool(self.problems)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def applied_count(self) -> int:
        return len(self.repair.applied) if self.repair is not None else 0

    @property
    def mark(self) -> str:
        """Progress mark: ``!`` failed, ``*`` problems found, ``.`` clean."""

        if self.failed:
            return "!"
        if self.has_problems:
            return "*"
        return "."

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "path": str(self.path),
            "problems": [item.to_dict() for item in self.problems],
            "solutions": [item.to_dict() for item in self.solutions],
            "applied": self.applied_count,
            "repair": self.repair.to_dict() if self.repair is not None else None,
            "error": self.error,
        }


@dataclass(slots=True)
class RunReport:
    """Outcome of one invocation over several jobs."""

    repair: bool = False
    jobs: list[JobReport] = field(default_factory=list)

    @property
    def problem_count(self) -> int:
        return sum(len(item.problems) for item in self.jobs)

    @property
    def exit_code(self) -> int:
        if any(item.failed for item in self.jobs):
            return int(ExitCode.REPAIR_FAILED)
        if any(item.has_problems for item in self.jobs):
            return int(ExitCode.PROBLEMS_FOUND)
        return int(ExitCode.SUCCESS)

    def to_dict(self) -> dict[str, object]:
        return {
            "mode": "repair" if self.repair else "report",
            "problem_count": self.problem_count,
            "exit_code": self.exit_code,
            "jobs": [item.to_dict() for item in self.jobs],
        }


def audit_job(
    path: Path | str,
    *,
    settings: JobSettings | None = None,
    repair: bool = False,
    registry: CheckRegistry | None = None,
    logger: Any | None = None,
) -> JobReport:
    """Scan one job, run its checks and, when ``repair`` is set, apply its solutions."""

    job_path = Path(path)
    with correlation_scope(job=job_path.name or str(job_path)):
        job = scan(job_path, settings)
        report = JobReport(name=job.name, path=job.path)
        try:
            findings = job.run_checks(registry)
        except CheckExecutionError as exc:
            _LOGGER.error("check failed", extra={"check_id": exc.check_id, "error": str(exc)})
            report.error = str(exc)
            return report

        report.problems = tuple(item.problem for item in findings)
        report.solutions = tuple(
            solution for item in findings for solution in item.solutions
        )
        _LOGGER.info(
            "job audited",
            extra={"problem_count": len(report.problems), "solution_count": len(report.solutions)},
        )

        if repair and report.solutions:
            try:
                outcome = apply_solutions(job, logger=logger)
            except RepairError as exc:
                report.error = str(exc)
                return report
            report.repair = outcome
            report.error = outcome.error
        return report


def audit_jobs(
    paths: Iterable[Path | str],
    *,
    settings: JobSettings | None = None,
    repair: bool = False,
    registry_factory: Callable[[], CheckRegistry] | None = None,
    logger: Any | None = None,
    on_job: JobCallback | None = None,
) -> RunReport:
    """Audit every job in ``paths`` in the given order.

    Raises ``UsageError`` before scanning anything if a path is not a directory.
    ``on_job`` is called with each report as soon as that job is done.
    """

    job_paths = [Path(item) for item in paths]
    if not job_paths:
        raise UsageError("no job directories given")
    missing = [str(item) for item in job_paths if not item.is_dir()]
    if missing:
        raise UsageError(f"not a job directory: {', '.join(missing)}")

    run = RunReport(repair=repair)
    for job_path in job_paths:
        registry = registry_factory() if registry_factory is not None else None
        report = audit_job(
            job_path,
            settings=settings,
            repair=repair,
            registry=registry,
            logger=logger,
        )
        run.jobs.append(report)
        if on_job is not None:
            on_job(report)
    return run


__all__ = ["JobReport", "RunReport", "audit_job", "audit_jobs"]
