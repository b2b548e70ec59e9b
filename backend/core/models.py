"""
models.py - Records produced by ingestion and consumed by the analysis views.

Students, metadata and subject lists are built once per upload and never
mutated afterwards; a new upload builds new containers. The analysis cache
relies on that.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

# Labels as written by the school administration software.
FEMALE = "أنثى"
MALE = "ذكر"
UNSPECIFIED_GENDER = "غير محدد"
REPEATER_MARKER = "نعم"
ALL_CLASSES_MARKER = "كل الأقسام"
AGGREGATED_MARKER = "(مجمع)"


@dataclass(frozen=True)
class Student:
    id: str
    name: str
    gender: str
    grades: Dict[str, float]
    semester_average: float
    is_repeater: bool = False
    source_class: Optional[str] = None
    original_row: Tuple[Any, ...] = field(default=(), repr=False, compare=False)


@dataclass(frozen=True)
class ClassMetadata:
    school_year: str = ""
    semester: str = ""
    class_name: str = ""
    level: str = ""
    stream: str = ""
    class_number: str = ""
    directorate: str = ""
    school_name: str = ""
    is_aggregated: bool = False


@dataclass
class IngestionResult:
    """Outcome of one worksheet; unpacks as ``(students, subjects, metadata)``."""
    students: Tuple[Student, ...]
    subjects: Tuple[str, ...]
    metadata: ClassMetadata
    header_row_index: int = 0
    dropped_row: Optional[List[Any]] = None

    def __iter__(self) -> Iterator[Any]:
        return iter((self.students, self.subjects, self.metadata))


# ── Statistic views ─────────────────────────────────────────────────

@dataclass
class SubjectStats:
    subject: str
    average: float
    pass_percentage: float
    std_dev: float
    cv: float
    mode: float
    count_above_15: int
    count_10_to_14: int
    count_8_to_9: int
    count_below_8: int
    count_above_10: int
    comparison: str


@dataclass
class SemesterStats:
    average: float
    pass_percentage: float
    count_above_10: int
    std_dev: float
    mode: float


@dataclass
class GlobalStats:
    total_students: int
    total_females: int
    total_males: int
    successful_students: int
    successful_females: int
    successful_males: int
    overall_success_rate: float
    female_success_rate: float
    male_success_rate: float


@dataclass
class OptionalSubjectStats:
    subject: str
    count: int
    average: float
    pass_percentage: float


@dataclass
class GeneralSubjectStats:
    subject: str
    average: float
    highest: float
    lowest: float
    count_above_15: int
    count_below_10: int
    student_count: int


@dataclass
class SubjectAverage:
    subject: str
    average: float


@dataclass
class RepeaterStats:
    repeaters: List[Student]
    total_repeaters: int
    female_repeaters: int
    male_repeaters: int
    repeater_average: float
    non_repeater_average: float
    success_rate: float
    subject_performance: List[SubjectAverage]
