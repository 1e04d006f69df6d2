"""
jobber: unit tests for the build identity model

File: tests/unit/domain/test_builds.py
Last updated: 2026-10-19

Purpose
- Validate name classification, lazy cross-resolution between numbered links and dated
  directories, canonical equality and ordering keys.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import pytest

from jobber.domain.builds import (
    BuildRef,
    DatedDir,
    NumberedLink,
    classify_entry,
    read_build_number,
)

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import JobTree


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("42", NumberedLink),
        ("0", NumberedLink),
        ("2024-01-02_03-04-05", DatedDir),
        ("lastStableBuild", type(None)),
        ("2024-01-02", type(None)),
        ("42a", type(None)),
    ],
)
def test_classify_entry_by_name_only(tmp_path: Path, name: str, expected: type) -> None:
    assert isinstance(classify_entry(tmp_path / name), expected)


def test_numbered_link_rejects_non_numeric_names(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not a build number entry"):
        NumberedLink(tmp_path / "builds" / "abc")


def test_numbered_link_resolves_to_dated_dir(job_tree: JobTree) -> None:
    name = job_tree.stamp(3)
    link_path = job_tree.build(7, name)

    link = NumberedLink(link_path)

    assert link.number == 7
    assert link.is_valid
    assert link.link_target == name
    assert link.dated is not None
    assert link.dated.name == name
    assert link.timestamp == datetime(2024, 1, 3, 10, 0, 0)
    assert link.display() == f"{link_path} -> {name}"


def test_link_and_its_dated_dir_compare_equal(job_tree: JobTree) -> None:
    name = job_tree.stamp(1)
    link = NumberedLink(job_tree.build(1, name))
    dated = DatedDir(job_tree.builds / name)

    assert link == dated
    assert hash(link) == hash(dated)
    assert link.dated == dated


def test_dangling_link_has_no_timestamp_and_is_not_valid(job_tree: JobTree) -> None:
    link = NumberedLink(job_tree.link(3, job_tree.stamp(9)))

    assert link.is_symlink
    assert not link.exists
    assert link.lexists
    assert not link.is_valid
    assert link.timestamp is None


def test_real_directory_under_a_number_is_not_a_symlink(job_tree: JobTree) -> None:
    (job_tree.builds / "5").mkdir()
    link = NumberedLink(job_tree.builds / "5")

    assert not link.is_symlink
    assert link.link_target is None
    assert link.dated is None
    assert not link.is_valid


def test_dated_dir_reads_recorded_number_and_resolves_back(job_tree: JobTree) -> None:
    name = job_tree.stamp(2)
    job_tree.dated(name, 12)
    dated = DatedDir(job_tree.builds / name)

    assert dated.recorded_number == 12
    assert dated.numbered is not None
    assert dated.numbered.path == job_tree.builds / "12"
    assert not dated.numbered.lexists


def test_dated_dir_with_impossible_date_has_no_timestamp(job_tree: JobTree) -> None:
    dated = DatedDir(job_tree.dated("2024-13-45_10-00-00", 1))

    assert dated.timestamp is None
    assert dated.recorded_number == 1


@pytest.mark.parametrize(
    "content",
    [
        None,
        "",
        "<build><number>abc</number></build>",
        "<build><number>-3</number></build>",
        "<build><result>SUCCESS</result></build>",
        "<build><number>4</number>",
    ],
)
def test_unusable_build_xml_yields_none(tmp_path: Path, content: str | None) -> None:
    build_xml = tmp_path / "build.xml"
    if content is not None:
        build_xml.write_text(content, encoding="utf-8")

    assert read_build_number(build_xml) is None


def test_build_xml_version_1_1_is_accepted(tmp_path: Path) -> None:
    build_xml = tmp_path / "build.xml"
    build_xml.write_text(
        "<?xml version='1.1' encoding='UTF-8'?>\n<build><number> 31 </number></build>\n",
        encoding="utf-8",
    )

    assert read_build_number(build_xml) == 31


def test_only_the_top_level_number_counts(tmp_path: Path) -> None:
    build_xml = tmp_path / "build.xml"
    build_xml.write_text(
        "<run><actions><number>99</number></actions><number>8</number></run>",
        encoding="utf-8",
    )

    assert read_build_number(build_xml) == 8


def test_sort_keys_order_numbers_numerically_and_dates_chronologically(
    job_tree: JobTree,
) -> None:
    links = [NumberedLink(job_tree.builds / name) for name in ("10", "9", "100")]
    dates = [
        DatedDir(job_tree.builds / job_tree.stamp(5)),
        DatedDir(job_tree.builds / "2024-99-99_00-00-00"),
        DatedDir(job_tree.builds / job_tree.stamp(1)),
    ]

    assert [item.number for item in sorted(links)] == [9, 10, 100]
    assert [item.name for item in sorted(dates)] == [
        "2024-99-99_00-00-00",
        job_tree.stamp(1),
        job_tree.stamp(5),
    ]


def test_links_and_dates_do_not_order_against_each_other(job_tree: JobTree) -> None:
    link = NumberedLink(job_tree.builds / "1")
    dated = DatedDir(job_tree.builds / job_tree.stamp(1))

    with pytest.raises(TypeError):
        sorted([link, dated])


def test_build_ref_is_abstract(job_tree: JobTree) -> None:
    with pytest.raises(TypeError):
        BuildRef(job_tree.builds / "1")
