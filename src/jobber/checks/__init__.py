"""
jobber: invariant checks

File: src/jobber/checks/__init__.py
Last updated: 2026-10-19

Purpose
- The fixed battery of checks run against every scanned job, in diagnostic order.

Functional requirements
- ``DEFAULT_CHECKS`` is the single, explicit source of check order; nothing is
  discovered by name or reflection.
"""

from jobber.checks.base import (
    BaseCheck,
    CheckFactory,
    CheckRegistration,
    CheckRegistry,
    CheckSource,
)
from jobber.checks.counter import NextBuildNumberCheck, expected_next_build_number
from jobber.checks.dates import UnlinkedDateCheck, linked_dates
from jobber.checks.layout import (
    BrokenLinkCheck,
    ConvenienceLinkCheck,
    JobDirectoryCheck,
    NumberedEntryCheck,
)
from jobber.checks.ordering import NumberOrderCheck, out_of_order

DEFAULT_CHECKS: tuple[type[BaseCheck], ...] = (
    JobDirectoryCheck,
    ConvenienceLinkCheck,
    NumberedEntryCheck,
    BrokenLinkCheck,
    NumberOrderCheck,
    UnlinkedDateCheck,
    NextBuildNumberCheck,
)


def default_registry() -> CheckRegistry:
    """Return a fresh registry holding the built-in checks in diagnostic order."""

    registry = CheckRegistry()
    for check_cls in DEFAULT_CHECKS:
        registry.register_builtin(check_cls.check_id, check_cls)
    return registry


__all__ = [
    "DEFAULT_CHECKS",
    "BaseCheck",
    "BrokenLinkCheck",
    "CheckFactory",
    "CheckRegistration",
    "CheckRegistry",
    "CheckSource",
    "ConvenienceLinkCheck",
    "JobDirectoryCheck",
    "NextBuildNumberCheck",
    "NumberOrderCheck",
    "NumberedEntryCheck",
    "UnlinkedDateCheck",
    "default_registry",
    "expected_next_build_number",
    "linked_dates",
    "out_of_order",
]
