"""Shared fixtures: build synthetic Jenkins job directories under ``tmp_path``."""

from __future__ import annotations

import os
from pathlib import Path

import pytest


class JobTree:
    """A job directory under construction: ``config.xml``, ``builds/`` and friends."""

    def __init__(self, root: Path, *, with_config: bool = True) -> None:
        self.path = root
        self.builds = root / "builds"
        self.builds.mkdir(parents=True, exist_ok=True)
        if with_config:
            (root / "config.xml").write_text("<project/>\n", encoding="utf-8")

    @staticmethod
    def stamp(day: int, hour: int = 10) -> str:
        """Dated-directory name for 2024-01-<day> <hour>:00:00."""

        return f"2024-01-{day:02d}_{hour:02d}-00-00"

    @property
    def quarantine(self) -> Path:
        return self.path / "outOfOrderBuilds"

    @property
    def counter_path(self) -> Path:
        return self.path / "nextBuildNumber"

    def dated(self, name: str, number: int | str | None = None) -> Path:
        """Create a dated directory; ``number`` goes into its ``build.xml`` when given."""

        directory = self.builds / name
        directory.mkdir()
        if number is not None:
            (directory / "build.xml").write_text(
                f"<?xml version='1.0' encoding='UTF-8'?>\n<build>\n  <number>{number}</number>\n</build>\n",
                encoding="utf-8",
            )
        return directory

    def link(self, number: int | str, target: str) -> Path:
        path = self.builds / str(number)
        os.symlink(target, path)
        return path

    def build(self, number: int, name: str) -> Path:
        """Create a dated directory recording ``number`` and the numbered link to it."""

        self.dated(name, number)
        return self.link(number, name)

    def counter(self, value: int | str) -> None:
        self.counter_path.write_text(f"{value}\n", encoding="utf-8")


@pytest.fixture
def job_tree(tmp_path: Path) -> JobTree:
    return JobTree(tmp_path / "job")


@pytest.fixture
def make_job_tree(tmp_path: Path):
    def _make(name: str, *, with_config: bool = True) -> JobTree:
        return JobTree(tmp_path / "jobs" / name, with_config=with_config)

    return _make
