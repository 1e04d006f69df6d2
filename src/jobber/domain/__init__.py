"""Build identity model, job scanner, and problem/solution records."""

from jobber.domain.builds import BuildRef, DatedDir, NumberedLink, classify_entry
from jobber.domain.job import Job, JobSettings, scan
from jobber.domain.problems import Finding, Problem, ProblemTag, Solution

__all__ = [
    "BuildRef",
    "DatedDir",
    "Finding",
    "Job",
    "JobSettings",
    "NumberedLink",
    "Problem",
    "ProblemTag",
    "Solution",
    "classify_entry",
    "scan",
]
