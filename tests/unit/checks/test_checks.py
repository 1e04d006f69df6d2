"""
jobber: unit tests for the invariant checks

File: tests/unit/checks/test_checks.py
Last updated: 2026-10-19

Purpose
- Drive every built-in check against synthetic job trees and assert the exact set of
  problem tags, their messages and the solutions proposed for them.

What this test file should cover
- An empty job is clean.
- A dangling numbered link is BROKEN and nothing else; unlinking it clears the job.
- Time-ordering violations are reported once per offending link.
- STOLEN takes precedence over NONUM for a number held by another build.
- ``nextBuildNumber`` is checked against the highest valid build number.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from jobber.checks import DEFAULT_CHECKS, default_registry
from jobber.checks.counter import expected_next_build_number
from jobber.domain.job import JobSettings, scan
from jobber.domain.problems import ProblemTag
from jobber.errors import CheckExecutionError
from jobber.repair.actions import Archive, Relink, ReplaceWithSymlink, RewriteCounter, Unlink

if TYPE_CHECKING:
    from conftest import JobTree

    from jobber.domain.job import Job


def _tags(job: Job) -> list[ProblemTag]:
    return [problem.tag for problem in job.problems]


def _apply_all(job: Job) -> None:
    for solution in job.solutions:
        solution.apply()


def test_registry_order_is_the_declared_order() -> None:
    registry = default_registry()

    assert registry.registered_ids() == tuple(check.check_id for check in DEFAULT_CHECKS)
    assert registry.registered_ids()[0] == "job_directory"
    assert registry.registered_ids()[-1] == "next_build_number"


def test_empty_job_has_no_problems(job_tree: JobTree) -> None:
    job = scan(job_tree.path)

    assert not job.has_problems()
    assert job.solutions == ()


def test_missing_config_xml_is_nojob_without_solution(make_job_tree) -> None:
    tree = make_job_tree("orphan", with_config=False)

    job = scan(tree.path)

    assert _tags(job) == [ProblemTag.NOJOB]
    assert "config.xml" in job.problems[0].message
    assert job.solutions == ()


def test_healthy_job_is_clean(job_tree: JobTree) -> None:
    for number in (1, 2, 3):
        job_tree.build(number, job_tree.stamp(number))
    (job_tree.builds / "lastSuccessfulBuild").symlink_to("3")
    job_tree.counter(4)

    assert not scan(job_tree.path).has_problems()


def test_counter_ahead_of_builds_is_fine(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.counter(50)

    assert not scan(job_tree.path).has_problems()


def test_dangling_number_link_is_broken_only(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.link(2, job_tree.stamp(2))
    job_tree.counter(2)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.BROKEN]
    assert job.problems[0].check_id == "broken_number_links"
    [solution] = job.solutions
    assert isinstance(solution.action, Unlink)


def test_unlinking_the_only_broken_link_leaves_a_clean_job(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    broken = job_tree.link(2, job_tree.stamp(2))
    job_tree.counter(2)
    job = scan(job_tree.path)
    assert _tags(job) == [ProblemTag.BROKEN]

    _apply_all(job)

    assert not broken.is_symlink()
    assert not job.rescan().has_problems()


def test_convenience_file_is_notlink_and_relinked_to_minus_one(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.counter(2)
    stable = job_tree.builds / "lastStableBuild"
    stable.mkdir()
    (stable / "log").write_text("old", encoding="utf-8")

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.NOTLINK]
    [solution] = job.solutions
    assert isinstance(solution.action, ReplaceWithSymlink)
    solution.apply()
    assert stable.is_symlink()
    assert stable.readlink().as_posix() == "-1"


def test_convenience_target_is_configurable(job_tree: JobTree) -> None:
    (job_tree.builds / "lastFailedBuild").write_text("", encoding="utf-8")

    job = scan(job_tree.path, JobSettings(last_link_target="0"))

    [solution] = job.solutions
    assert isinstance(solution.action, ReplaceWithSymlink)
    assert solution.action.target == "0"


def test_real_directory_at_a_number_is_notlink(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    (job_tree.builds / "2").mkdir()
    job_tree.counter(2)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.NOTLINK]
    [solution] = job.solutions
    assert isinstance(solution.action, Archive)
    solution.apply()
    assert (job_tree.quarantine / "2").is_dir()
    assert not job.rescan().has_problems()


def test_monotonic_numbers_have_no_order_problem(job_tree: JobTree) -> None:
    for number in (1, 2, 3):
        job_tree.build(number, job_tree.stamp(number))
    job_tree.counter(4)

    assert ProblemTag.ORDER not in _tags(scan(job_tree.path))


def test_link_later_than_a_higher_number_is_out_of_order_once(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.build(2, job_tree.stamp(9))
    job_tree.build(3, job_tree.stamp(3))
    job_tree.counter(4)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.ORDER]
    problem = job.problems[0]
    assert problem.path == str(job_tree.builds / "2")
    assert f"{job_tree.builds / '2'} -> {job_tree.stamp(9)}" in problem.message
    archived = [solution.action.path.name for solution in job.solutions]
    assert archived == ["2", job_tree.stamp(9)]


def test_order_repair_quarantines_link_and_build(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.build(2, job_tree.stamp(9))
    job_tree.build(3, job_tree.stamp(3))
    job_tree.counter(4)
    job = scan(job_tree.path)

    _apply_all(job)

    assert (job_tree.quarantine / "2").is_symlink()
    assert (job_tree.quarantine / job_tree.stamp(9)).is_dir()
    assert not job.rescan().has_problems()


def test_equal_timestamps_are_not_out_of_order(make_job_tree) -> None:
    tree = make_job_tree("same-time")
    tree.build(1, tree.stamp(5))
    tree.dated(tree.stamp(4), 2)
    tree.link(2, tree.stamp(5))
    tree.counter(3)

    job = scan(tree.path)

    assert ProblemTag.ORDER not in _tags(job)


def test_number_held_by_another_build_is_stolen_not_nonum(job_tree: JobTree) -> None:
    original = job_tree.stamp(1)
    newer = job_tree.stamp(2)
    job_tree.dated(original, 5)
    job_tree.build(5, newer)
    job_tree.counter(6)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.STOLEN]
    assert ProblemTag.NONUM not in _tags(job)
    relink, archive = job.solutions
    assert isinstance(relink.action, Relink)
    assert relink.action.target_name == original
    assert isinstance(archive.action, Archive)
    assert archive.action.path.name == newer


def test_stolen_repair_restores_the_original_build(job_tree: JobTree) -> None:
    original = job_tree.stamp(1)
    newer = job_tree.stamp(2)
    job_tree.dated(original, 5)
    job_tree.build(5, newer)
    job_tree.counter(6)
    job = scan(job_tree.path)

    _apply_all(job)

    assert (job_tree.builds / "5").readlink().as_posix() == original
    assert (job_tree.quarantine / newer).is_dir()
    assert not job.rescan().has_problems()


def test_missing_number_link_is_nonum_and_created(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.dated(job_tree.stamp(2), 2)
    job_tree.counter(3)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.NONUM]
    _apply_all(job)
    assert (job_tree.builds / "2").readlink().as_posix() == job_tree.stamp(2)
    assert not job.rescan().has_problems()


def test_real_entry_at_recorded_number_is_numbad(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.dated(job_tree.stamp(2), 2)
    (job_tree.builds / "2").write_text("junk", encoding="utf-8")
    job_tree.counter(3)

    job = scan(job_tree.path)

    assert sorted(_tags(job)) == sorted([ProblemTag.NOTLINK, ProblemTag.NUMBAD])
    numbad = [item for item in job.findings if item.problem.tag is ProblemTag.NUMBAD][0]
    actions = [solution.action for solution in numbad.solutions]
    assert isinstance(actions[0], Archive)
    assert isinstance(actions[1], Relink)


def test_dated_dir_without_readable_number_is_baddate(job_tree: JobTree) -> None:
    job_tree.build(1, job_tree.stamp(1))
    job_tree.dated(job_tree.stamp(2))
    job_tree.counter(2)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.BADDATE]
    _apply_all(job)
    assert (job_tree.quarantine / job_tree.stamp(2)).is_dir()
    assert not job.rescan().has_problems()


def test_low_counter_is_next_with_exact_expected_value(job_tree: JobTree) -> None:
    for number in (1, 2, 3):
        job_tree.build(number, job_tree.stamp(number))
    job_tree.counter(2)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.NEXT]
    assert job.problems[0].message == (
        "The nextBuildNumber is set to 2 but I expected at least 4"
    )
    [solution] = job.solutions
    assert isinstance(solution.action, RewriteCounter)
    solution.apply()
    assert job_tree.counter_path.read_text(encoding="utf-8") == "4\n"


@pytest.mark.parametrize(
    ("content", "shown"),
    [(None, "nothing (the file is missing)"), ("garbage", "an unreadable value")],
)
def test_missing_or_unreadable_counter_is_next(
    job_tree: JobTree, content: str | None, shown: str
) -> None:
    job_tree.build(1, job_tree.stamp(1))
    if content is not None:
        job_tree.counter(content)

    job = scan(job_tree.path)

    assert _tags(job) == [ProblemTag.NEXT]
    assert shown in job.problems[0].message


def test_expected_counter_ignores_broken_links(job_tree: JobTree) -> None:
    job_tree.build(3, job_tree.stamp(3))
    job_tree.link(8, job_tree.stamp(8))

    assert expected_next_build_number(scan(job_tree.path)) == 4


def test_check_filesystem_error_names_the_check(job_tree: JobTree) -> None:
    class _Exploding:
        check_id = "exploding"
        tags = (ProblemTag.NEXT,)

        def run(self, job: Job) -> list[object]:
            raise PermissionError("denied")

    registry = default_registry()
    registry.register_external("exploding", _Exploding)

    with pytest.raises(CheckExecutionError, match="exploding") as excinfo:
        scan(job_tree.path).run_checks(registry)

    assert isinstance(excinfo.value.cause, PermissionError)
