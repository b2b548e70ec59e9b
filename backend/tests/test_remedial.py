"""
Tests for core/remedial.py - remedial lists, student reports, group follow-up.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import SUBJECTS
from core.analysis import ABOVE, BELOW, EQUAL, AnalysisCache
from core.models import Student
from core.parser import ingest_grid
from core.remedial import (
    failed_subjects,
    group_analysis,
    remedial_candidates,
    remedial_range_ids,
    repeater_ids,
    student_report,
)

MATH, PHYSICS, ARABIC = SUBJECTS


@pytest.fixture
def small_class(small_class_grid):
    students, subjects, _ = ingest_grid(small_class_grid)
    return students, subjects


def _student(sid, average, **grades):
    return Student(id=sid, name=sid, gender="أنثى", grades=grades, semester_average=average)


class TestRemedialCandidates:

    def test_default_range(self, small_class):
        students, subjects = small_class
        candidates = remedial_candidates(students, subjects)
        assert [c["student"].name for c in candidates] == ["سعدي كريم"]
        assert candidates[0]["failed_subjects"] == [MATH, PHYSICS]
        assert candidates[0]["failed_count"] == 2

    def test_best_average_first(self):
        students = [_student("a", 9.1), _student("b", 9.9), _student("c", 9.5), _student("d", 10)]
        assert [c["student"].id for c in remedial_candidates(students, [])] == ["b", "c", "a"]

    def test_bounds_are_inclusive(self):
        students = [_student("a", 9.0), _student("b", 9.99), _student("c", 8.99)]
        assert {c["student"].id for c in remedial_candidates(students, [])} == {"a", "b"}

    def test_min_failed_subjects(self):
        students = [_student("a", 9.5, m=8, p=12), _student("b", 9.4, m=8, p=7)]
        result = remedial_candidates(students, ["m", "p"], min_failed_subjects=2)
        assert [c["student"].id for c in result] == ["b"]

    def test_missing_grade_counts_as_failed(self):
        assert failed_subjects(_student("a", 9.5, m=14), ["m", "p"]) == ["p"]

    def test_custom_range(self, small_class):
        students, subjects = small_class
        result = remedial_candidates(students, subjects, min_average=6, max_average=10)
        assert [c["student"].id for c in result] == ["student-1", "student-3"]


class TestStudentReport:

    def test_unknown_student(self, small_class):
        assert student_report(*small_class, "student-99") is None

    def test_rows_and_rank(self, small_class):
        students, subjects = small_class
        report = student_report(students, subjects, "student-0")
        assert report["rank"] == 2
        assert report["total_students"] == 4
        assert (report["highest"], report["lowest"]) == (16.0, 6.75)
        assert report["class_average"] == pytest.approx(11.605)
        assert [r["subject"] for r in report["rows"]] == [*SUBJECTS, "semester_average"]
        assert [r["comparison"] for r in report["rows"]] == [ABOVE, ABOVE, ABOVE, ABOVE]
        assert report["rows"][-1]["is_total"]

    def test_missing_grade(self, small_class):
        students, subjects = small_class
        rows = student_report(students, subjects, "student-3")["rows"]
        assert rows[1]["student_grade"] is None
        assert rows[1]["comparison"] == EQUAL
        assert rows[0]["comparison"] == BELOW

    def test_uses_given_cache(self, small_class):
        students, subjects = small_class
        cache = AnalysisCache()
        analysis = cache.subject_analysis(students, subjects)
        report = student_report(students, subjects, "student-2", cache=cache)
        assert report["rows"][0]["class_average"] == analysis[0].average
        assert report["rank"] == 1


class TestGroups:

    def test_repeater_ids(self, small_class):
        assert repeater_ids(small_class[0]) == ["student-1", "student-3"]

    def test_remedial_range_ids(self, small_class):
        assert remedial_range_ids(small_class[0]) == ["student-1"]
        assert remedial_range_ids(small_class[0], min_average=6) == ["student-1", "student-3"]

    def test_empty_group(self, small_class):
        assert group_analysis(*small_class, []) is None
        assert group_analysis(*small_class, ["nobody"]) is None

    def test_repeater_group(self, small_class):
        students, subjects = small_class
        result = group_analysis(students, subjects, repeater_ids(students))
        assert [s.id for s in result["students"]] == ["student-1", "student-3"]
        assert result["group_average"] == pytest.approx(8.125)
        assert result["class_average"] == pytest.approx(11.605)
        assert result["passed_count"] == 0
        assert result["success_rate"] == 0
        math = result["subject_analysis"][0]
        assert math["subject"] == MATH
        assert math["group_average"] == pytest.approx(7.0)
        assert math["difference"] == pytest.approx(7.0 - 11.25)

    def test_group_keeps_class_order(self, small_class):
        students, subjects = small_class
        result = group_analysis(students, subjects, ["student-2", "student-0"])
        assert [s.id for s in result["students"]] == ["student-0", "student-2"]
        assert result["success_rate"] == pytest.approx(100.0)
