"""Output rendering for the jobber CLI.

File: src/jobber/ui/render.py
Last updated: 2026-10-19

Purpose
- Provide a thin rendering layer for the audit report: a progress line while jobs
  are scanned, then the problems and solutions grouped by job.
- Respect NO_COLOR environment variable and --no-color CLI flag.

Functional requirements
- Plain-text rendering must always work without external dependencies.
- Quiet mode suppresses the progress line only; it is a renderer flag, not a
  redirected stream.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

    from jobber.runner import JobReport, RunReport

_MARK_COLORS = {"*": "\033[33m", "!": "\033[31m"}
_RESET = "\033[0m"


def _color_allowed(no_color_flag: bool, stream: TextIO) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


class CLIRenderer:
    """Thin CLI output renderer.

    Produces clean, deterministic plain-text output.
    Respects ``NO_COLOR`` env var and ``--no-color`` flag.
    """

    def __init__(
        self,
        *,
        no_color: bool = False,
        verbose: bool = False,
        quiet: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        self.verbose = verbose
        self.quiet = quiet
        self._stream = stream if stream is not None else sys.stdout
        self._color = _color_allowed(no_color, self._stream)

    def text(self, line: str) -> None:
        """Print a plain text line."""

        print(line, file=self._stream)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        print(f"\n{title}", file=self._stream)

    def items(self, entries: Sequence[str], *, prefix: str = " * ") -> None:
        """Print a bulleted list."""

        for entry in entries:
            print(f"{prefix}{entry}", file=self._stream)

    def progress_start(self) -> None:
        if self.quiet:
            return
        print("Scanning: ", end="", file=self._stream)
        self._stream.flush()

    def progress_mark(self, report: JobReport) -> None:
        if self.quiet:
            return
        mark = report.mark
        if self._color and mark in _MARK_COLORS:
            mark = f"{_MARK_COLORS[mark]}{mark}{_RESET}"
        print(mark, end="", file=self._stream)
        self._stream.flush()

    def progress_end(self) -> None:
        if self.quiet:
            return
        print(file=self._stream)

    def run_report(self, run: RunReport) -> None:
        """Print problems, solutions and failures for a finished run."""

        failed = [job for job in run.jobs if job.failed]
        with_problems = sorted(
            (job for job in run.jobs if job.has_problems), key=lambda job: job.name
        )

        if not with_problems:
            self.text("No problems!")
        else:
            self.section("**** PROBLEMS ****")
            for job in with_problems:
                self.text(f"{job.name}:")
                self.items([str(problem) for problem in job.problems])
            self.section(f"Found {run.problem_count} problems.")

            self.section("**** SOLUTIONS ****")
            for job in with_problems:
                if not job.solutions:
                    continue
                self.text(f"{job.name}: ")
                self.items([self._solution_line(solution) for solution in job.solutions])

        if failed:
            self.section("**** FAILURES ****")
            for job in sorted(failed, key=lambda item: item.name):
                self.text(f"{job.name}: {job.error}")
                if self.verbose and job.repair is not None and job.repair.skipped:
                    self.items(
                        [f"skipped: {solution}" for solution in job.repair.skipped],
                        prefix="   ",
                    )

    def _solution_line(self, solution: object) -> str:
        line = str(solution)
        if not self.verbose:
            return line
        action = getattr(solution, "action", None)
        applied = getattr(solution, "applied", False)
        detail = action.describe() if action is not None else ""
        state = "applied" if applied else "pending"
        return f"{line} [{state}: {detail}]"


def create_renderer(
    *,
    no_color: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    stream: TextIO | None = None,
) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color, verbose=verbose, quiet=quiet, stream=stream)


__all__ = ["CLIRenderer", "create_renderer"]
