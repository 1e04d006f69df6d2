"""
jobber: filesystem utilities

File: src/jobber/utils/fs.py
Last updated: 2026-10-19

Purpose
- Guarded filesystem primitives the repair actions build on.

Functional requirements
- Counter rewrites go through a sibling temp file and ``os.replace`` so readers never
  see a half-written ``nextBuildNumber``.
- Containment is judged on the entry itself: the parent is canonicalized, the final
  component is not followed, so a link inside a job counts as inside the job.
- Deletion refuses entries outside the given root and never recurses through a link.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path

PathLike = str | os.PathLike[str]


def atomic_write(path: PathLike, text: str, *, encoding: str = "utf-8") -> None:
    """Replace the contents of ``path`` with ``text`` in one step.

    The parent directory must already exist.
    """

    target = Path(path)
    directory = target.parent.resolve(strict=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding=encoding,
        dir=directory,
        prefix=f".{target.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        handle.write(text)
        handle.flush()
        os.fsync(handle.fileno())
        staged = Path(handle.name)

    try:
        os.replace(staged, target)
    except OSError:
        with contextlib.suppress(OSError):
            staged.unlink()
        raise
    _sync_dir(directory)


def entry_path(path: PathLike) -> Path:
    """Canonicalize the parent of ``path``; keep its final component as written."""

    candidate = Path(path)
    return Path(os.path.realpath(candidate.parent)) / candidate.name


def is_within(child: PathLike, parent: PathLike) -> bool:
    """``True`` when the entry ``child`` sits at or below ``parent``."""

    root = Path(os.path.realpath(parent))
    entry = entry_path(child)
    return entry == root or root in entry.parents


def safe_delete(path: PathLike, root: PathLike) -> None:
    """Remove a link, file or directory tree at ``path`` if it lives under ``root``.

    A missing entry is ignored.
    """

    target = Path(path)
    if not is_within(target, root):
        raise ValueError(f"refusing to delete path outside root: {target}")

    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)


def _sync_dir(directory: Path) -> None:
    # Directory fsync is unsupported on Windows and some filesystems.
    if os.name == "nt":
        return
    try:
        fd = os.open(directory, os.O_RDONLY | getattr(os, "O_DIRECTORY", 0))
    except OSError:
        return
    try:
        with contextlib.suppress(OSError):
            os.fsync(fd)
    finally:
        os.close(fd)


__all__ = ["atomic_write", "entry_path", "is_within", "safe_delete"]
