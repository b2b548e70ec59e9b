"""
Analyze routes - statistic views over an uploaded dataset.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from core.analysis import compare_subjects, grade_intervals
from core.remedial import group_analysis, remedial_candidates, student_report
from core.stats import sanitize
from routes.upload import get_session

router = APIRouter()


def _dataset(session_id: str):
    session = get_session(session_id)
    dataset = session["dataset"]
    return session, dataset.students, dataset.subjects


@router.get("/{session_id}/subjects")
async def subjects(session_id: str):
    """Per-subject statistics: mean, pass rate, spread, mode, grade bands."""
    session, students, subject_list = _dataset(session_id)
    return sanitize(session["cache"].subject_analysis(students, subject_list))


@router.get("/{session_id}/semester")
async def semester(session_id: str):
    """Statistics over the students' semester averages."""
    session, students, _ = _dataset(session_id)
    return sanitize(session["cache"].global_semester_stats(students))


@router.get("/{session_id}/categories")
async def categories(session_id: str):
    """Headcounts and success rates by gender."""
    session, students, _ = _dataset(session_id)
    return sanitize(session["cache"].category_global_stats(students))


@router.get("/{session_id}/optional")
async def optional_subjects(session_id: str, subject: Optional[List[str]] = Query(None)):
    """Activity subjects. A selection passed here is kept for the session."""
    session, students, _ = _dataset(session_id)
    if subject and tuple(subject) != session["optional_subjects"]:
        session["optional_subjects"] = tuple(subject)
    selected = session["optional_subjects"]
    return sanitize(session["cache"].optional_subjects_stats(students, selected))


@router.get("/{session_id}/summary")
async def summary(session_id: str):
    """General subject summary: mean, highest, lowest, ≥15 and <10 counts."""
    session, students, subject_list = _dataset(session_id)
    return sanitize(session["cache"].general_subject_summary(students, subject_list))


@router.get("/{session_id}/repeaters")
async def repeaters(session_id: str):
    """Repeaters vs non-repeaters, weakest subjects of the repeaters first."""
    session, students, subject_list = _dataset(session_id)
    return sanitize(session["cache"].repeater_stats(students, subject_list))


@router.get("/{session_id}/distribution")
async def distribution(session_id: str):
    """Grade bands and pass rate per subject."""
    session, students, subject_list = _dataset(session_id)
    return sanitize(session["cache"].distribution_stats(students, subject_list))


@router.get("/{session_id}/intervals/{subject}")
async def intervals(session_id: str, subject: str):
    """Histogram of one subject over the fixed report intervals."""
    _, students, subject_list = _dataset(session_id)
    if subject not in subject_list:
        raise HTTPException(404, f"Subject '{subject}' not found.")
    return sanitize(grade_intervals(students, subject))


@router.get("/{session_id}/compare")
async def compare(session_id: str, a: str, b: str):
    """Two subjects side by side with their correlation."""
    session, students, subject_list = _dataset(session_id)
    for name in (a, b):
        if name not in subject_list:
            raise HTTPException(404, f"Subject '{name}' not found.")
    return sanitize(compare_subjects(students, subject_list, a, b, cache=session["cache"]))


@router.get("/{session_id}/student/{student_id}")
async def student(session_id: str, student_id: str):
    """One student against the class, subject by subject."""
    session, students, subject_list = _dataset(session_id)
    result = student_report(students, subject_list, student_id, cache=session["cache"])
    if result is None:
        raise HTTPException(404, f"Student '{student_id}' not found.")
    return sanitize(result)


@router.get("/{session_id}/remedial")
async def remedial(
    session_id: str,
    min_average: float = 9.0,
    max_average: float = 9.99,
    min_failed: int = 0,
):
    """Students concerned by remediation and follow-up."""
    session, students, subject_list = _dataset(session_id)
    return sanitize(remedial_candidates(
        students, subject_list,
        min_average=min_average,
        max_average=max_average,
        min_failed_subjects=min_failed,
        pass_mark=session["cache"].pass_mark,
    ))


@router.post("/{session_id}/group")
async def group(session_id: str, payload: dict):
    """
    Follow-up of a hand-picked group against the class.
    Expects: { "student_ids": ["student-0", ...] }
    """
    session, students, subject_list = _dataset(session_id)
    ids = payload.get("student_ids")
    if not ids:
        raise HTTPException(400, "No student ids provided.")
    result = group_analysis(students, subject_list, ids, pass_mark=session["cache"].pass_mark)
    if result is None:
        raise HTTPException(404, "None of the selected students were found.")
    return sanitize(result)
