"""
jobber: build identity model

File: src/jobber/domain/builds.py
Last updated: 2026-10-19

Purpose
- Represent one build as seen through either of its on-disk identities: the numbered
  symlink (``builds/<N>``) or the dated directory (``builds/<YYYY-MM-DD_HH-MM-SS>``).
- Resolve lazily from one identity to the other.

Functional requirements
- Classification is by entry name only; unmatched names are not builds.
- Equality is canonical (symlink-resolved) path identity, so a numbered link and the
  dated directory it resolves to compare equal.
- Data-shape failures (dangling link, missing or malformed ``build.xml``) never raise
  from this layer; they surface as ``None`` values.

Non-functional requirements
- Every lazy accessor is memoized per instance; instances are snapshots of the tree
  at first access.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from functools import cached_property
from pathlib import Path
from typing import ClassVar

from lxml import etree

from jobber.constants import (
    BUILD_NUMBER_XPATH,
    BUILD_XML,
    DATE_NAME_FORMAT,
    DATE_NAME_PATTERN,
    NUMBER_NAME_PATTERN,
)

_LOGGER = logging.getLogger(__name__)


class BuildRef(ABC):
    """Capability set shared by both build identities."""

    kind: ClassVar[str] = "build"

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def builds_dir(self) -> Path:
        return self.path.parent

    @cached_property
    def is_symlink(self) -> bool:
        return self.path.is_symlink()

    @cached_property
    def exists(self) -> bool:
        """``True`` when the entry exists, following symlinks."""

        return self.path.exists()

    @cached_property
    def lexists(self) -> bool:
        """``True`` when the entry itself exists, even as a dangling symlink."""

        return os.path.lexists(self.path)

    @cached_property
    def canonical_path(self) -> Path:
        return Path(os.path.realpath(self.path))

    @abstractmethod
    def sort_key(self) -> tuple[object, ...]:
        """Order key among builds of the same kind."""

    def display(self) -> str:
        return str(self.path)

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "path": str(self.path)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BuildRef):
            return NotImplemented
        return self.canonical_path == other.canonical_path

    def __hash__(self) -> int:
        return hash(self.canonical_path)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BuildRef) or type(other) is not type(self):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.display()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


class NumberedLink(BuildRef):
    """``builds/<N>``: the canonical index entry for build ``N``."""

    kind: ClassVar[str] = "number"

    def __init__(self, path: Path | str) -> None:
        super().__init__(path)
        if not NUMBER_NAME_PATTERN.match(self.name):
            raise ValueError(f"not a build number entry: {self.name!r}")
        self.number = int(self.name)

    @cached_property
    def link_target(self) -> str | None:
        """Raw symlink target, or ``None`` when the entry is not a readable symlink."""

        try:
            return os.readlink(self.path)
        except OSError:
            return None

    @property
    def target_path(self) -> Path | None:
        target = self.link_target
        if target is None:
            return None
        candidate = Path(target)
        if candidate.is_absolute():
            return candidate
        return self.builds_dir / candidate

    @cached_property
    def dated(self) -> DatedDir | None:
        target = self.target_path
        if target is None:
            return None
        return DatedDir(target)

    @property
    def timestamp(self) -> datetime | None:
        dated = self.dated
        return dated.timestamp if dated is not None else None

    @property
    def is_valid(self) -> bool:
        """A symlink whose target exists."""

        return self.is_symlink and self.exists

    def sort_key(self) -> tuple[object, ...]:
        return (self.number, self.name)

    def display(self) -> str:
        if self.is_symlink and self.link_target is not None:
            return f"{self.path} -> {self.link_target}"
        return str(self.path)

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["number"] = self.number
        payload["target"] = self.link_target
        return payload


class DatedDir(BuildRef):
    """``builds/<timestamp>``: the directory that holds a build's data."""

    kind: ClassVar[str] = "date"

    @cached_property
    def timestamp(self) -> datetime | None:
        if not DATE_NAME_PATTERN.match(self.name):
            return None
        try:
            return datetime.strptime(self.name, DATE_NAME_FORMAT)
        except ValueError:
            return None

    @cached_property
    def recorded_number(self) -> int | None:
        """Build number recorded in ``build.xml``; ``None`` when it cannot be read."""

        return read_build_number(self.path / BUILD_XML)

    @cached_property
    def numbered(self) -> NumberedLink | None:
        number = self.recorded_number
        if number is None:
            return None
        return NumberedLink(self.builds_dir / str(number))

    def sort_key(self) -> tuple[object, ...]:
        timestamp = self.timestamp
        return (timestamp is not None, timestamp or datetime.min, self.name)

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        timestamp = self.timestamp
        payload["timestamp"] = timestamp.isoformat() if timestamp is not None else None
        payload["recorded_number"] = self.recorded_number
        return payload


def classify_entry(path: Path | str) -> NumberedLink | DatedDir | None:
    """Classify a ``builds`` child by name; ``None`` for entries that are not builds."""

    candidate = Path(path)
    name = candidate.name
    if NUMBER_NAME_PATTERN.match(name):
        return NumberedLink(candidate)
    if DATE_NAME_PATTERN.match(name):
        return DatedDir(candidate)
    return None


def read_build_number(build_xml: Path) -> int | None:
    """Return the integer held at ``/*/number`` in ``build_xml``, or ``None``."""

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        tree = etree.parse(str(build_xml), parser)
    except (OSError, etree.ParseError) as exc:
        _LOGGER.debug("build.xml unreadable", extra={"path": str(build_xml), "error": str(exc)})
        return None

    matches = tree.xpath(BUILD_NUMBER_XPATH)
    if not isinstance(matches, list) or not matches:
        return None
    element = matches[0]
    text = (getattr(element, "text", None) or "").strip()
    if not NUMBER_NAME_PATTERN.match(text):
        return None
    return int(text)


__all__ = [
    "BuildRef",
    "DatedDir",
    "NumberedLink",
    "classify_entry",
    "read_build_number",
]
