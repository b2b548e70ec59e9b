"""
Shared grade sheet fixtures, laid out like the administration software's export.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

SUBJECTS = ["الرياضيات", "العلوم الفيزيائية", "اللغة العربية"]

CLASS_LINE = "كشف النقاط الفصل الأول 2023/2024 السنة الأولى جذع مشترك علوم وتكنولوجيا 2"


def class_line(level="السنة الأولى", stream="جذع مشترك علوم وتكنولوجيا", number="2"):
    return f"كشف النقاط الفصل الأول 2023/2024 {level} {stream} {number}"


def student_row(number, name, gender, grades, average, repeater=""):
    return [number, name, "2008-03-14", gender, repeater, *grades, average]


def build_grid(rows, subjects=SUBJECTS, line=CLASS_LINE, summary=True):
    """
    Title rows 0-4, header at row 5, one row per student, then the totals
    row the software appends (unless ``summary`` is False).
    """
    grid = [
        ["الجمهورية الجزائرية الديمقراطية الشعبية"],
        ["وزارة التربية الوطنية"],
        ["مديرية التربية", "لولاية", "  الجزائر  وسط"],
        ["ثانوية", "الإخوة عمروش"],
        [line],
        ["الرقم", "اللقب و الاسم", "تاريخ الميلاد", "الجنس", "الإعادة", *subjects, "معدل الفصل"],
    ]
    grid.extend(rows)
    if summary:
        grid.append([None, None, None, None, "معدل القسم", *([11.5] * len(subjects)), 11.2])
    grid.extend([[], [None, None]])
    return grid


def class_of(size, passing, gender_pattern=("أنثى", "ذكر")):
    """``size`` students, the first ``passing`` of them with an average >= 10."""
    rows = []
    for i in range(size):
        avg = 12.0 if i < passing else 8.5
        gender = gender_pattern[i % len(gender_pattern)]
        rows.append(student_row(i + 1, f"Student {i + 1}", gender, [avg, avg - 1, avg + 1], avg))
    return rows


@pytest.fixture
def small_class_rows():
    return [
        student_row(1, "بن علي أمينة", "أنثى", [14, "12,5", 16], "14,17"),
        student_row(2, "سعدي كريم", "ذكر", [8, 9.5, 11], 9.5, repeater="نعم"),
        student_row(3, "مرابط سارة", "أنثى", [17, 15, None], 16.0),
        student_row(4, "حداد يوسف", "ذكر", [6, "غ", 7.25], 6.75, repeater="نعم"),
    ]


@pytest.fixture
def small_class_grid(small_class_rows):
    return build_grid(small_class_rows)


@pytest.fixture
def ten_student_grid():
    return build_grid(class_of(10, passing=7))
