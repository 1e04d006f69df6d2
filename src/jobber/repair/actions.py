"""
jobber: repair actions

File: src/jobber/repair/actions.py
Last updated: 2026-10-19

Purpose
- Describe each filesystem mutation a check may propose as an explicit command object
  (verb + target paths) so it can be inspected, logged, and only later applied.

What should be included in this file
- The job-scoped ``RepairScope`` that every action is bound to.
- One action per verb: replace-with-symlink, unlink, relink, archive, rewrite-counter.

Functional requirements
- Actions are idempotent for their own problem: unlink-if-exists before relinking,
  create-if-absent for the quarantine directory.
- Archiving never overwrites: a basename already present in the quarantine is an
  ``ArchiveCollisionError``.
- Actions never touch anything outside ``<job>/builds``, the quarantine directory,
  and ``<job>/nextBuildNumber``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from jobber.constants import BUILDS_DIR, DEFAULT_QUARANTINE_DIR, NEXT_BUILD_NUMBER_FILE
from jobber.errors import (
    ArchiveCollisionError,
    MissingSourceError,
    RepairError,
    RepairScopeError,
)
from jobber.utils.fs import atomic_write, entry_path, is_within, safe_delete


@dataclass(frozen=True, slots=True)
class RepairScope:
    """The part of one job directory that repairs may mutate."""

    job_root: Path
    quarantine_name: str = DEFAULT_QUARANTINE_DIR

    @property
    def builds_dir(self) -> Path:
        return self.job_root / BUILDS_DIR

    @property
    def quarantine_dir(self) -> Path:
        return self.job_root / self.quarantine_name

    @property
    def counter_path(self) -> Path:
        return self.job_root / NEXT_BUILD_NUMBER_FILE

    def require_build_entry(self, path: Path) -> Path:
        """Return ``path`` if it names an entry directly inside ``builds``."""

        if entry_path(path).parent != Path(os.path.realpath(self.builds_dir)):
            raise RepairScopeError(f"{path} is not an entry of {self.builds_dir}")
        return path

    def require_counter(self, path: Path) -> Path:
        if entry_path(path) != entry_path(self.counter_path):
            raise RepairScopeError(f"{path} is not the build counter of {self.job_root}")
        return path


@dataclass(frozen=True, slots=True)
class RepairAction:
    """Base command object. Subclasses set ``verb`` and implement ``apply``."""

    verb: ClassVar[str] = "repair"

    scope: RepairScope
    path: Path

    def targets(self) -> tuple[Path, ...]:
        return (self.path,)

    def describe(self) -> str:
        return f"{self.verb} {self.path}"

    def apply(self) -> None:
        raise NotImplementedError

    def to_dict(self) -> dict[str, object]:
        return {
            "verb": self.verb,
            "targets": [str(item) for item in self.targets()],
            "description": self.describe(),
        }


@dataclass(frozen=True, slots=True)
class ReplaceWithSymlink(RepairAction):
    """Remove whatever sits at ``path`` (file, tree or link) and link it to ``target``."""

    verb: ClassVar[str] = "replace_with_symlink"

    target: str = ""

    def describe(self) -> str:
        return f"replace {self.path} with symlink to {self.target}"

    def apply(self) -> None:
        self.scope.require_build_entry(self.path)
        safe_delete(self.path, self.scope.builds_dir)
        os.symlink(self.target, self.path)


@dataclass(frozen=True, slots=True)
class Unlink(RepairAction):
    """Remove a symlink. Missing entries are fine; real files and directories are refused."""

    verb: ClassVar[str] = "unlink"

    def apply(self) -> None:
        self.scope.require_build_entry(self.path)
        if self.path.is_symlink():
            self.path.unlink()
            return
        if os.path.lexists(self.path):
            raise RepairError(f"refusing to unlink {self.path}: not a symlink")


@dataclass(frozen=True, slots=True)
class Relink(RepairAction):
    """Point the numbered symlink ``path`` at the sibling ``target_name``."""

    verb: ClassVar[str] = "relink"

    target_name: str = ""

    def targets(self) -> tuple[Path, ...]:
        return (self.path, self.path.parent / self.target_name)

    def describe(self) -> str:
        return f"symlink {self.path} -> {self.target_name}"

    def apply(self) -> None:
        self.scope.require_build_entry(self.path)
        target = self.path.parent / self.target_name
        self.scope.require_build_entry(target)
        if not target.exists():
            raise MissingSourceError(f"relink target {target} does not exist")

        if self.path.is_symlink():
            self.path.unlink()
        elif os.path.lexists(self.path):
            raise RepairError(f"refusing to relink {self.path}: not a symlink")
        os.symlink(self.target_name, self.path)


@dataclass(frozen=True, slots=True)
class Archive(RepairAction):
    """Move ``path`` into the job's quarantine directory under its own basename."""

    verb: ClassVar[str] = "archive"

    # Guard only; two archives of the same entry are the same action.
    keep: Path | None = field(default=None, compare=False)

    @property
    def destination(self) -> Path:
        return self.scope.quarantine_dir / self.path.name

    def targets(self) -> tuple[Path, ...]:
        return (self.path, self.destination)

    def describe(self) -> str:
        return f"move {self.path} to {self.destination}"

    def apply(self) -> None:
        self.scope.require_build_entry(self.path)
        if self.keep is not None and _same_entry(self.path, self.keep):
            raise RepairError(f"refusing to archive {self.path}: it is the entry being kept")

        quarantine = self.scope.quarantine_dir
        if not is_within(quarantine, self.scope.job_root):
            raise RepairScopeError(f"quarantine {quarantine} is outside {self.scope.job_root}")
        quarantine.mkdir(exist_ok=True)

        destination = self.destination
        if os.path.lexists(destination):
            raise ArchiveCollisionError(f"cannot archive {self.path}: {destination} already exists")
        if not os.path.lexists(self.path):
            raise MissingSourceError(f"cannot archive {self.path}: it no longer exists")
        os.rename(self.path, destination)


@dataclass(frozen=True, slots=True)
class RewriteCounter(RepairAction):
    """Rewrite ``nextBuildNumber`` with ``value`` and a trailing newline."""

    verb: ClassVar[str] = "rewrite_counter"

    value: int = 1

    def describe(self) -> str:
        return f"write {self.value} to {self.path}"

    def apply(self) -> None:
        self.scope.require_counter(self.path)
        atomic_write(self.path, f"{self.value}\n")


def _same_entry(left: Path, right: Path) -> bool:
    return Path(os.path.realpath(left)) == Path(os.path.realpath(right))


__all__ = [
    "Archive",
    "Relink",
    "RepairAction",
    "RepairScope",
    "ReplaceWithSymlink",
    "RewriteCounter",
    "Unlink",
]
