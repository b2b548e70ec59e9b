"""
remedial.py - Individual follow-up: remedial lists, student reports, groups.

Remedial candidates are students just under the pass line (semester average
between 9 and 9.99 by default) who may also be required to have failed a
minimum number of subjects. A missing grade counts as a failed subject.

Student report: each subject grade against the class subject average, then
the semester average against the class mean, with rank and class extremes.

Group analysis follows a hand-picked group (typically last year's remedial
students or the repeaters) against the whole class.
"""

from typing import Any, Dict, List, Optional, Sequence

from core.analysis import (
    EQUAL,
    AnalysisCache,
    compare_to,
    grades_frame,
    semester_averages,
    subject_grades,
)
from core.models import Student
from core.stats import PASS_MARK, average

REMEDIAL_MIN_AVERAGE = 9.0
REMEDIAL_MAX_AVERAGE = 9.99


def failed_subjects(
    student: Student, subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> List[str]:
    return [s for s in subjects if student.grades.get(s, 0) < pass_mark]


def remedial_candidates(
    students: Sequence[Student],
    subjects: Sequence[str],
    min_average: float = REMEDIAL_MIN_AVERAGE,
    max_average: float = REMEDIAL_MAX_AVERAGE,
    min_failed_subjects: int = 0,
    pass_mark: float = PASS_MARK,
) -> List[Dict[str, Any]]:
    """Students concerned by remediation, best average first."""
    selected = []
    for student in students:
        if not min_average <= student.semester_average <= max_average:
            continue
        failed = failed_subjects(student, subjects, pass_mark)
        if len(failed) < min_failed_subjects:
            continue
        selected.append({
            "student": student,
            "failed_subjects": failed,
            "failed_count": len(failed),
        })
    selected.sort(key=lambda entry: entry["student"].semester_average, reverse=True)
    return selected


def student_report(
    students: Sequence[Student],
    subjects: Sequence[str],
    student_id: str,
    cache: Optional[AnalysisCache] = None,
) -> Optional[Dict[str, Any]]:
    """Per-subject comparison of one student with the class. None if unknown."""
    student = next((s for s in students if s.id == student_id), None)
    if student is None:
        return None

    analysis = (cache or AnalysisCache()).subject_analysis(students, subjects)
    class_averages = {stat.subject: stat.average for stat in analysis}

    rows = []
    for subject in subjects:
        grade = student.grades.get(subject)
        class_average = class_averages.get(subject, 0.0)
        rows.append({
            "subject": subject,
            "student_grade": grade,
            "class_average": class_average,
            "comparison": EQUAL if grade is None else compare_to(grade, class_average),
            "is_total": False,
        })

    averages = semester_averages(students)
    class_mean = average(averages)
    rows.append({
        "subject": "semester_average",
        "student_grade": student.semester_average,
        "class_average": class_mean,
        "comparison": compare_to(student.semester_average, class_mean),
        "is_total": True,
    })

    return {
        "student": student,
        "rows": rows,
        "student_average": student.semester_average,
        "class_average": class_mean,
        "rank": sum(1 for a in averages if a > student.semester_average) + 1,
        "total_students": len(students),
        "highest": max(averages),
        "lowest": min(averages),
    }


# ── Group follow-up ─────────────────────────────────────────────────

def repeater_ids(students: Sequence[Student]) -> List[str]:
    return [s.id for s in students if s.is_repeater]


def remedial_range_ids(
    students: Sequence[Student],
    min_average: float = REMEDIAL_MIN_AVERAGE,
    pass_mark: float = PASS_MARK,
) -> List[str]:
    return [s.id for s in students if min_average <= s.semester_average < pass_mark]


def group_analysis(
    students: Sequence[Student],
    subjects: Sequence[str],
    student_ids: Sequence[str],
    pass_mark: float = PASS_MARK,
) -> Optional[Dict[str, Any]]:
    """Compare a selected group with the whole class. None for an empty group."""
    wanted = set(student_ids)
    group = [s for s in students if s.id in wanted]
    if not group:
        return None

    passed = sum(1 for s in group if s.semester_average >= pass_mark)
    group_frame = grades_frame(group, subjects)
    class_frame = grades_frame(students, subjects)

    breakdown = []
    for subject in subjects:
        group_avg = average(subject_grades(group_frame, subject))
        class_avg = average(subject_grades(class_frame, subject))
        breakdown.append({
            "subject": subject,
            "group_average": group_avg,
            "class_average": class_avg,
            "difference": group_avg - class_avg,
        })

    return {
        "students": group,
        "group_average": average(semester_averages(group)),
        "class_average": average(semester_averages(students)),
        "passed_count": passed,
        "success_rate": passed / len(group) * 100,
        "subject_analysis": breakdown,
    }
