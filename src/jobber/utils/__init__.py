"""Utility exports for guarded filesystem helpers."""

from jobber.utils.fs import atomic_write, entry_path, is_within, safe_delete

__all__ = [
    "atomic_write",
    "entry_path",
    "is_within",
    "safe_delete",
]
