"""
jobber: check interface

File: src/jobber/checks/base.py
Last updated: 2026-10-19

Purpose
- Defines the check interface: input is a scanned ``Job``, output is a sequence of
  ``Finding`` records (problem + proposed solutions).

What should be included in this file
- The ``BaseCheck`` protocol implemented by built-in and external checks.
- An explicitly ordered registry; registration order is execution order.

Functional requirements
- Checks only read the job; all mutations are deferred into solutions.
- Unexpected filesystem errors inside a check surface as ``CheckExecutionError``
  naming the check and the job.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, NoReturn, Protocol, runtime_checkable

from jobber.domain.problems import Finding, ProblemTag
from jobber.errors import CheckExecutionError

if TYPE_CHECKING:
    from jobber.domain.job import Job

CheckSource = Literal["builtin", "external"]
CheckFactory = Callable[[], "BaseCheck"]


@runtime_checkable
class BaseCheck(Protocol):
    """Check protocol implemented by built-ins and external plugins."""

    check_id: str
    tags: tuple[ProblemTag, ...]

    def run(self, job: Job) -> Iterable[Finding]: ...


@dataclass(frozen=True, slots=True)
class CheckRegistration:
    check_id: str
    source: CheckSource
    factory: CheckFactory


class CheckRegistry:
    """Check factory registry that preserves registration order."""

    def __init__(self) -> None:
        self._registrations: dict[str, CheckRegistration] = {}

    def register(self, check_id: str, factory: CheckFactory, *, source: CheckSource) -> None:
        normalized_id = _as_check_id(check_id)
        if not callable(factory):
            _fail("factory", "must be callable")

        existing = self._registrations.get(normalized_id)
        if existing is not None:
            _fail(
                "check_id",
                f"already registered by {existing.source} check '{existing.check_id}'",
            )

        self._registrations[normalized_id] = CheckRegistration(
            check_id=normalized_id,
            source=source,
            factory=factory,
        )

    def register_builtin(self, check_id: str, factory: CheckFactory) -> None:
        self.register(check_id, factory, source="builtin")

    def register_external(self, check_id: str, factory: CheckFactory) -> None:
        self.register(check_id, factory, source="external")

    def get_registration(self, check_id: str) -> CheckRegistration:
        normalized_id = _as_check_id(check_id)
        registration = self._registrations.get(normalized_id)
        if registration is None:
            known = ", ".join(self.registered_ids())
            _fail("check_id", f"unknown check {normalized_id!r}; registered: [{known}]")
        return registration

    def create(self, check_id: str) -> BaseCheck:
        check = self.get_registration(check_id).factory()
        if not isinstance(check, BaseCheck):
            _fail("factory", f"'{check_id}' factory did not return a BaseCheck")
        return check

    def registered_ids(self) -> tuple[str, ...]:
        return tuple(self._registrations)

    def run_all(self, job: Job) -> tuple[Finding, ...]:
        """Run every check against ``job`` in registration order."""

        findings: list[Finding] = []
        for check_id in self.registered_ids():
            check = self.create(check_id)
            try:
                produced = tuple(check.run(job))
            except OSError as exc:
                raise CheckExecutionError(check_id, job.path, exc) from exc
            for index, item in enumerate(produced):
                if not isinstance(item, Finding):
                    _fail(
                        f"{check_id}[{index}]",
                        f"expected Finding, got {type(item).__name__}",
                    )
            findings.extend(produced)
        return tuple(findings)


def _as_check_id(value: object) -> str:
    if not isinstance(value, str):
        _fail("check_id", f"expected string, got {type(value).__name__}")
    parsed = value.strip()
    if not parsed:
        _fail("check_id", "must not be empty")
    if len(parsed) > 128:
        _fail("check_id", "must be <= 128 characters")
    return parsed


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


__all__ = [
    "BaseCheck",
    "CheckFactory",
    "CheckRegistration",
    "CheckRegistry",
    "CheckSource",
]
