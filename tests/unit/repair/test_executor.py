"""Unit tests for applying a job's solutions and the decision log it emits."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from structlog.testing import capture_logs

from jobber.domain.job import scan
from jobber.domain.problems import ProblemTag
from jobber.errors import RepairError
from jobber.repair.executor import apply_solutions

if TYPE_CHECKING:
    from conftest import JobTree


def test_repair_requires_checks_to_have_run(job_tree: JobTree) -> None:
    with pytest.raises(RepairError, match="checks have not run"):
        apply_solutions(scan(job_tree.path))


def test_applied_actions_are_logged_with_verb_and_targets(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.link(2, job_tree.stamp(2))
    job_tree.counter(2)
    job = scan(job_tree.path)
    job.run_checks()

    with capture_logs() as logs:
        outcome = apply_solutions(job)

    assert outcome.ok
    assert len(outcome.applied) == 1
    [event] = logs
    assert event["event"] == "repair_action_applied"
    assert event["log_level"] == "info"
    assert event["job"] == str(job_tree.path)
    assert event["action"]["verb"] == "unlink"
    assert event["action"]["targets"] == [str(job_tree.builds / "2")]


def test_first_failure_stops_the_pass_and_reports_skipped(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.build(2, job_tree.stamp(9))
    job_tree.build(3, job_tree.stamp(3))
    job_tree.counter(4)
    job_tree.quarantine.mkdir()
    (job_tree.quarantine / "2").write_text("already here", encoding="utf-8")
    job = scan(job_tree.path)
    job.run_checks()

    with capture_logs() as logs:
        outcome = apply_solutions(job)

    assert not outcome.ok
    assert outcome.applied == []
    assert outcome.failed is not None
    assert "already exists" in (outcome.error or "")
    assert len(outcome.skipped) == 1
    assert (job_tree.builds / "2").is_symlink()
    assert [event["event"] for event in logs] == ["repair_action_failed"]
    assert logs[0]["error_type"] == "ArchiveCollisionError"


def test_identical_actions_from_two_checks_apply_once(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.dated(job_tree.stamp(2), 2)
    (job_tree.builds / "2").write_text("junk", encoding="utf-8")
    job_tree.counter(3)
    job = scan(job_tree.path)
    assert {problem.tag for problem in job.problems} == {ProblemTag.NOTLINK, ProblemTag.NUMBAD}

    with capture_logs() as logs:
        outcome = apply_solutions(job)

    assert outcome.ok
    assert len(outcome.duplicates) == 1
    assert "repair_action_duplicate" in [event["event"] for event in logs]
    assert (job_tree.quarantine / "2").read_text(encoding="utf-8") == "junk"
    assert (job_tree.builds / "2").readlink().as_posix() == job_tree.stamp(2)
    assert not job.rescan().has_problems()


def test_injected_logger_receives_decisions(job_tree: JobTree) -> None:
    class _Recorder:
        def __init__(self) -> None:
            self.events: list[tuple[str, str]] = []

        def info(self, event: str, **fields: object) -> None:
            self.events.append(("info", event))

        def error(self, event: str, **fields: object) -> None:
            self.events.append(("error", event))

    job_tree.build(1, job_tree.stamp(1))
    job = scan(job_tree.path)
    job.run_checks()
    recorder = _Recorder()

    outcome = apply_solutions(job, logger=recorder)

    assert outcome.ok
    assert recorder.events == [("info", "repair_action_applied")]
    assert job_tree.counter_path.read_text(encoding="utf-8") == "2\n"
