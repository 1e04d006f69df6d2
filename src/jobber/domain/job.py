"""
jobber: job scanner

File: src/jobber/domain/job.py
Last updated: 2026-10-19

Purpose
- Snapshot one job's ``builds`` directory into two sorted indexes (by number, by date)
  and collect what the invariant checks report about it.

Functional requirements
- ``scan`` lists only the immediate children of ``<job>/builds``.
- Entries that are neither numbered nor dated are left out of both indexes.
- Checks run exactly once per scanned job; a job is re-scanned, never patched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from jobber.constants import (
    BUILDS_DIR,
    CONFIG_XML,
    DEFAULT_LAST_LINK_TARGET,
    DEFAULT_QUARANTINE_DIR,
    LAST_LINK_NAMES,
    NEXT_BUILD_NUMBER_FILE,
)
from jobber.domain.builds import DatedDir, NumberedLink, classify_entry
from jobber.repair.actions import RepairScope

if TYPE_CHECKING:
    from jobber.checks.base import CheckRegistry
    from jobber.domain.problems import Finding, Problem, Solution

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JobSettings:
    """Names a job's checks and repairs rely on."""

    quarantine_dir_name: str = DEFAULT_QUARANTINE_DIR
    last_link_target: str = DEFAULT_LAST_LINK_TARGET
    last_link_names: tuple[str, ...] = LAST_LINK_NAMES

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> JobSettings:
        """Build settings from the ``[repair]`` section of a validated config."""

        repair = config.get("repair")
        if not isinstance(repair, Mapping):
            return cls()
        quarantine = repair.get("quarantine_dir", DEFAULT_QUARANTINE_DIR)
        target = repair.get("last_link_target", DEFAULT_LAST_LINK_TARGET)
        return cls(
            quarantine_dir_name=str(quarantine),
            last_link_target=str(target),
        )


@dataclass(slots=True)
class Job:
    """A scanned job directory plus the findings of its checks."""

    path: Path
    settings: JobSettings = field(default_factory=JobSettings)
    numbers: tuple[NumberedLink, ...] = ()
    dates: tuple[DatedDir, ...] = ()
    _findings: tuple[Finding, ...] | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def builds_path(self) -> Path:
        return self.path / BUILDS_DIR

    @property
    def config_path(self) -> Path:
        return self.path / CONFIG_XML

    @property
    def counter_path(self) -> Path:
        return self.path / NEXT_BUILD_NUMBER_FILE

    @property
    def quarantine_path(self) -> Path:
        return self.path / self.settings.quarantine_dir_name

    @property
    def repair_scope(self) -> RepairScope:
        return RepairScope(job_root=self.path, quarantine_name=self.settings.quarantine_dir_name)

    @property
    def is_empty(self) -> bool:
        return not self.numbers and not self.dates

    @property
    def valid_numbers(self) -> tuple[NumberedLink, ...]:
        """Numbered links that are symlinks with an existing target, by number."""

        return tuple(item for item in self.numbers if item.is_valid)

    @property
    def next_build_number(self) -> int | None:
        """The persisted counter, or ``None`` when missing or not an integer."""

        try:
            raw = self.counter_path.read_text(encoding="utf-8")
        except OSError:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            return None

    @property
    def checks_ran(self) -> bool:
        return self._findings is not None

    def run_checks(self, registry: CheckRegistry | None = None) -> tuple[Finding, ...]:
        """Run every registered check once, in order; later calls reuse the findings."""

        if self._findings is None:
            if registry is None:
                from jobber.checks import default_registry

                registry = default_registry()
            self._findings = registry.run_all(self)
            _LOGGER.debug(
                "checks finished",
                extra={"job": str(self.path), "finding_count": len(self._findings)},
            )
        return self._findings

    def has_problems(self, registry: CheckRegistry | None = None) -> bool:
        return bool(self.run_checks(registry))

    @property
    def findings(self) -> tuple[Finding, ...]:
        return self.run_checks()

    @property
    def problems(self) -> tuple[Problem, ...]:
        return tuple(item.problem for item in self.findings)

    @property
    def solutions(self) -> tuple[Solution, ...]:
        return tuple(solution for item in self.findings for solution in item.solutions)

    def rescan(self) -> Job:
        return scan(self.path, self.settings)


def scan(job_path: Path | str, settings: JobSettings | None = None) -> Job:
    """Snapshot ``<job_path>/builds`` into numbered and dated indexes."""

    path = Path(job_path)
    resolved_settings = settings if settings is not None else JobSettings()
    builds_path = path / BUILDS_DIR

    numbers: list[NumberedLink] = []
    dates: list[DatedDir] = []
    if builds_path.is_dir():
        for child in sorted(builds_path.iterdir()):
            build = classify_entry(child)
            if isinstance(build, NumberedLink):
                numbers.append(build)
            elif isinstance(build, DatedDir):
                dates.append(build)
    else:
        _LOGGER.debug("job has no builds directory", extra={"job": str(path)})

    numbers.sort(key=lambda item: item.sort_key())
    dates.sort(key=lambda item: item.sort_key())
    return Job(
        path=path,
        settings=resolved_settings,
        numbers=tuple(numbers),
        dates=tuple(dates),
    )


__all__ = ["Job", "JobSettings", "scan"]
