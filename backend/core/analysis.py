"""
analysis.py - Statistic views behind every class report, plus their cache.

Computes:
- Per-subject analysis (mean, pass rate, spread, mode, grade bands)
- Semester-average statistics
- Gender breakdown of success
- Optional/activity subject statistics
- General subject summary (mean, best, worst, bands)
- Repeater comparison
- Grade distribution table and per-subject histogram
- Two-subject comparison with correlation

All views are pure functions of (students, subjects[, extra]). AnalysisCache
memoizes the last result of each view for the same argument objects.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from core.models import (
    FEMALE,
    GeneralSubjectStats,
    GlobalStats,
    OptionalSubjectStats,
    RepeaterStats,
    SemesterStats,
    Student,
    SubjectAverage,
    SubjectStats,
)
from core.stats import (
    PASS_MARK,
    average,
    coefficient_of_variation,
    correlation,
    correlation_strength,
    mode,
    pass_percentage,
    standard_deviation,
)

EXCELLENT_MARK = 15.0
WEAK_MARK = 8.0

ABOVE = "above"
BELOW = "below"
EQUAL = "equal"

OPTIONAL_SUBJECT_KEYWORDS = [
    "تشكيلية", "رسم", "موسيقى", "موسيقية", "أمازيغية", "امازيغية", "بدنية", "رياضة",
]

# (label, lower bound inclusive, upper bound exclusive)
GRADE_INTERVALS = [
    ("< 8", 0.0, 8.0),
    ("8 - 10", 8.0, 10.0),
    ("10 - 12", 10.0, 12.0),
    ("12 - 15", 12.0, 15.0),
    ("15 - 20", 15.0, 21.0),
]


# ── Helpers ─────────────────────────────────────────────────────────

def grades_frame(students: Sequence[Student], subjects: Sequence[str]) -> pd.DataFrame:
    """One row per student (in order), one column per subject, NaN when ungraded."""
    columns = list(dict.fromkeys(subjects))
    frame = pd.DataFrame(
        [s.grades for s in students],
        index=[s.id for s in students],
        dtype=float,
    )
    return frame.reindex(columns=columns)


def subject_grades(frame: pd.DataFrame, subject: str) -> List[float]:
    """Grades recorded for ``subject`` in student order."""
    if subject not in frame.columns:
        return []
    return [float(g) for g in frame[subject].dropna()]


def semester_averages(students: Sequence[Student]) -> List[float]:
    return [s.semester_average for s in students]


def compare_to(value: float, reference: float) -> str:
    if value > reference:
        return ABOVE
    if value < reference:
        return BELOW
    return EQUAL


def _bands(grades: Sequence[float], pass_mark: float) -> Dict[str, int]:
    return {
        "count_above_15": sum(1 for g in grades if g >= EXCELLENT_MARK),
        "count_10_to_14": sum(1 for g in grades if pass_mark <= g < EXCELLENT_MARK),
        "count_8_to_9": sum(1 for g in grades if WEAK_MARK <= g < pass_mark),
        "count_below_8": sum(1 for g in grades if g < WEAK_MARK),
        "count_above_10": sum(1 for g in grades if g >= pass_mark),
    }


def _success_rate(successful: int, total: int) -> float:
    return successful / total * 100 if total else 0.0


def detect_optional_subjects(subjects: Sequence[str]) -> List[str]:
    """Activity subjects (arts, music, Amazigh, sport) guessed from their names."""
    return [
        subject for subject in subjects
        if any(keyword in subject for keyword in OPTIONAL_SUBJECT_KEYWORDS)
    ]


# ── Views ───────────────────────────────────────────────────────────

def compute_subject_analysis(
    students: Sequence[Student], subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> List[SubjectStats]:
    """Detailed statistics per subject, compared with the class semester average."""
    global_average = average(semester_averages(students))
    frame = grades_frame(students, subjects)

    results = []
    for subject in subjects:
        grades = subject_grades(frame, subject)
        avg = average(grades)
        std_dev = standard_deviation(grades)
        results.append(SubjectStats(
            subject=subject,
            average=avg,
            pass_percentage=pass_percentage(grades, pass_mark),
            std_dev=std_dev,
            cv=coefficient_of_variation(avg, std_dev),
            mode=mode(grades),
            comparison=compare_to(avg, global_average),
            **_bands(grades, pass_mark),
        ))
    return results


def compute_global_semester_stats(
    students: Sequence[Student], pass_mark: float = PASS_MARK
) -> SemesterStats:
    """Statistics over the semester-average column, not over subject grades."""
    averages = semester_averages(students)
    return SemesterStats(
        average=average(averages),
        pass_percentage=pass_percentage(averages, pass_mark),
        count_above_10=sum(1 for a in averages if a >= pass_mark),
        std_dev=standard_deviation(averages),
        mode=mode(averages),
    )


def compute_category_global_stats(
    students: Sequence[Student], pass_mark: float = PASS_MARK
) -> GlobalStats:
    """
    Headcounts and success rates by gender. Anyone not labelled female is
    counted with the males.
    """
    total = len(students)
    females = sum(1 for s in students if s.gender == FEMALE)
    males = total - females

    successful = [s for s in students if s.semester_average >= pass_mark]
    successful_females = sum(1 for s in successful if s.gender == FEMALE)
    successful_males = len(successful) - successful_females

    return GlobalStats(
        total_students=total,
        total_females=females,
        total_males=males,
        successful_students=len(successful),
        successful_females=successful_females,
        successful_males=successful_males,
        overall_success_rate=_success_rate(len(successful), total),
        female_success_rate=_success_rate(successful_females, females),
        male_success_rate=_success_rate(successful_males, males),
    )


def compute_optional_subjects_stats(
    students: Sequence[Student], optional_subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> List[OptionalSubjectStats]:
    frame = grades_frame(students, optional_subjects)
    results = []
    for subject in optional_subjects:
        grades = subject_grades(frame, subject)
        results.append(OptionalSubjectStats(
            subject=subject,
            count=len(grades),
            average=average(grades),
            pass_percentage=pass_percentage(grades, pass_mark),
        ))
    return results


def compute_general_subject_summary(
    students: Sequence[Student], subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> List[GeneralSubjectStats]:
    frame = grades_frame(students, subjects)
    results = []
    for subject in subjects:
        grades = subject_grades(frame, subject)
        results.append(GeneralSubjectStats(
            subject=subject,
            average=average(grades),
            highest=max(grades) if grades else 0.0,
            lowest=min(grades) if grades else 0.0,
            count_above_15=sum(1 for g in grades if g >= EXCELLENT_MARK),
            count_below_10=sum(1 for g in grades if g < pass_mark),
            student_count=len(grades),
        ))
    return results


def compute_repeater_stats(
    students: Sequence[Student], subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> RepeaterStats:
    """Repeaters vs the rest; subject averages are for repeaters only, weakest first."""
    repeaters = [s for s in students if s.is_repeater]
    others = [s for s in students if not s.is_repeater]
    females = sum(1 for s in repeaters if s.gender == FEMALE)
    passed = sum(1 for s in repeaters if s.semester_average >= pass_mark)

    frame = grades_frame(repeaters, subjects)
    performance = [
        SubjectAverage(subject=subject, average=average(subject_grades(frame, subject)))
        for subject in subjects
    ]
    performance.sort(key=lambda p: p.average)

    return RepeaterStats(
        repeaters=repeaters,
        total_repeaters=len(repeaters),
        female_repeaters=females,
        male_repeaters=len(repeaters) - females,
        repeater_average=average(semester_averages(repeaters)),
        non_repeater_average=average(semester_averages(others)),
        success_rate=_success_rate(passed, len(repeaters)),
        subject_performance=performance,
    )


def compute_distribution_stats(
    students: Sequence[Student], subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> List[SubjectStats]:
    """Grade bands and pass rate per subject; spread, mode and comparison stay empty."""
    frame = grades_frame(students, subjects)
    results = []
    for subject in subjects:
        grades = subject_grades(frame, subject)
        results.append(SubjectStats(
            subject=subject,
            average=average(grades),
            pass_percentage=pass_percentage(grades, pass_mark),
            std_dev=0.0,
            cv=0.0,
            mode=0.0,
            comparison="",
            **_bands(grades, pass_mark),
        ))
    return results


def grade_intervals(students: Sequence[Student], subject: str) -> List[Dict[str, Any]]:
    """Histogram of one subject's grades over the report's fixed intervals."""
    grades = subject_grades(grades_frame(students, [subject]), subject)
    return [
        {"label": label, "min": low, "max": high,
         "count": sum(1 for g in grades if low <= g < high)}
        for label, low, high in GRADE_INTERVALS
    ]


def paired_grades(
    students: Sequence[Student], subject_a: str, subject_b: str
) -> Tuple[List[float], List[float]]:
    """Aligned grades of the students graded in both subjects."""
    frame = grades_frame(students, [subject_a, subject_b]).dropna()
    if subject_a == subject_b:
        values = frame[subject_a].tolist() if subject_a in frame.columns else []
        return list(values), list(values)
    return frame[subject_a].tolist(), frame[subject_b].tolist()


def compare_subjects(
    students: Sequence[Student],
    subjects: Sequence[str],
    subject_a: str,
    subject_b: str,
    cache: Optional["AnalysisCache"] = None,
) -> Dict[str, Any]:
    """Side-by-side statistics of two subjects and their correlation."""
    analysis = (cache or AnalysisCache()).subject_analysis(students, subjects)
    by_subject = {stat.subject: stat for stat in analysis}
    xs, ys = paired_grades(students, subject_a, subject_b)
    r = correlation(xs, ys)
    return {
        "subject_a": by_subject.get(subject_a),
        "subject_b": by_subject.get(subject_b),
        "paired_count": len(xs),
        "correlation": r,
        "strength": correlation_strength(r),
    }


# ── Cache ───────────────────────────────────────────────────────────

class _LastCall:
    """Single-slot memo: hits only when every argument is the very same object."""

    def __init__(self, fn: Callable[..., Any]):
        self.fn = fn
        self.args: Optional[Tuple[Any, ...]] = None
        self.result: Any = None

    def __call__(self, *args: Any) -> Any:
        if self.args is not None and len(args) == len(self.args) and all(
            a is b for a, b in zip(args, self.args)
        ):
            return self.result
        self.result = self.fn(*args)
        # Holding the arguments keeps their ids from being reused while cached.
        self.args = args
        return self.result

    def clear(self) -> None:
        self.args = None
        self.result = None


class AnalysisCache:
    """
    Memoized views for one loaded dataset.

    Each view keeps its most recent result and returns it again when called
    with the same student/subject containers (identity, not equality). Any
    new container recomputes. Callers must never mutate a container they
    passed in; build a new one instead, or call ``invalidate()``.
    """

    def __init__(self, pass_mark: float = PASS_MARK):
        self.pass_mark = pass_mark
        self.version = 0
        self._subject_analysis = _LastCall(
            lambda st, su: compute_subject_analysis(st, su, self.pass_mark))
        self._semester = _LastCall(
            lambda st: compute_global_semester_stats(st, self.pass_mark))
        self._categories = _LastCall(
            lambda st: compute_category_global_stats(st, self.pass_mark))
        self._optional = _LastCall(
            lambda st, opt: compute_optional_subjects_stats(st, opt, self.pass_mark))
        self._summary = _LastCall(
            lambda st, su: compute_general_subject_summary(st, su, self.pass_mark))
        self._repeaters = _LastCall(
            lambda st, su: compute_repeater_stats(st, su, self.pass_mark))
        self._distribution = _LastCall(
            lambda st, su: compute_distribution_stats(st, su, self.pass_mark))
        self._slots = [
            self._subject_analysis, self._semester, self._categories, self._optional,
            self._summary, self._repeaters, self._distribution,
        ]

    def invalidate(self) -> None:
        """Forget every cached view, e.g. when the dataset is replaced."""
        for slot in self._slots:
            slot.clear()
        self.version += 1

    def subject_analysis(self, students, subjects) -> List[SubjectStats]:
        return self._subject_analysis(students, subjects)

    def global_semester_stats(self, students) -> SemesterStats:
        return self._semester(students)

    def category_global_stats(self, students) -> GlobalStats:
        return self._categories(students)

    def optional_subjects_stats(self, students, optional_subjects) -> List[OptionalSubjectStats]:
        return self._optional(students, optional_subjects)

    def general_subject_summary(self, students, subjects) -> List[GeneralSubjectStats]:
        return self._summary(students, subjects)

    def repeater_stats(self, students, subjects) -> RepeaterStats:
        return self._repeaters(students, subjects)

    def distribution_stats(self, students, subjects) -> List[SubjectStats]:
        return self._distribution(students, subjects)
