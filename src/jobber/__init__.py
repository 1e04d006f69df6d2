"""
jobber: Jenkins build-history auditor

File: src/jobber/__init__.py
Last updated: 2026-10-19

Purpose
- Package root. Audits Jenkins job directories for inconsistencies between the
  numbered build symlinks, the dated build directories and ``nextBuildNumber``,
  and optionally repairs them.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
