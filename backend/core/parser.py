"""
parser.py - Grade sheet ingestion with layout heuristics.

Supports:
- Excel (.xlsx, .xls), ODS and CSV; first worksheet only
- Header row auto-detection (name-column keywords, then fallbacks)
- Totals-row pruning below the student table
- Subject columns between the fixed identity columns and the average column
- Subjects nobody was graded in are dropped

Column layout of the student table:
    0 row number | 1 name | 2 birth date | 3 gender | 4 repeater |
    5 .. n-1 one column per subject | n semester average
"""

import csv
import io
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from core.cleaner import (
    Cell,
    Grid,
    Row,
    cell_to_text,
    coerce_number,
    collapse_spaces,
    frame_to_grid,
    is_blank,
    normalize_gender,
    normalize_row,
)
from core.errors import (
    EmptyInputError,
    InsufficientDataError,
    ReadFailureError,
    UnsupportedHeaderError,
)
from core.metadata import MetadataParser, PositionalMetadataParser
from core.models import REPEATER_MARKER, IngestionResult, Student

logger = logging.getLogger(__name__)

EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd", ".ods": "odf"}
SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".ods", ".csv")

HEADER_SCAN_ROWS = 20
HEADER_SCAN_COLUMNS = 10
FALLBACK_HEADER_ROW = 5
NAME_KEYWORDS = ("الاسم", "اللقب", "nom", "prénom")

NAME_COL = 1
GENDER_COL = 3
REPEATER_COL = 4
FIRST_GRADE_COL = 5
MIN_HEADER_CELLS = 3

# What to do with the last row of the table once blank rows are gone.
TRAILING_ALWAYS = "always"
TRAILING_AUTO = "auto"
TRAILING_NEVER = "never"
TRAILING_ROW_POLICIES = (TRAILING_ALWAYS, TRAILING_AUTO, TRAILING_NEVER)
SUMMARY_KEYWORDS = ("المعدل", "المجموع", "معدل", "moyenne", "total")


# ── File reading ────────────────────────────────────────────────────

def read_grid(file_path: Union[str, Path]) -> Grid:
    """Read the first worksheet of a spreadsheet file into a grid."""
    path = Path(file_path)
    _check_extension(path.name)
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise ReadFailureError(f"Failed to read file '{path.name}'.") from exc
    return decode_grid(payload, path.name)


def decode_grid(payload: bytes, filename: str) -> Grid:
    """Decode spreadsheet bytes (as uploaded) into a grid."""
    ext = _check_extension(filename)
    try:
        if ext == ".csv":
            return _csv_grid(payload)
        df = pd.read_excel(
            io.BytesIO(payload),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=EXCEL_ENGINES[ext],
        )
    except Exception as exc:
        raise ReadFailureError(
            f"Failed to read '{filename}' as a spreadsheet: {exc}"
        ) from exc
    return frame_to_grid(df)


def _csv_grid(payload: bytes) -> Grid:
    # csv keeps ragged title rows that a DataFrame reader would reject.
    text = payload.decode("utf-8-sig")
    return [normalize_row(values) for values in csv.reader(io.StringIO(text))]


def _check_extension(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ReadFailureError(
            f"Unsupported file type: {ext or filename}. Use .xlsx, .xls, .ods or .csv."
        )
    return ext


# ── Layout heuristics ───────────────────────────────────────────────

def detect_header_row(grid: Sequence[Sequence[Cell]]) -> int:
    """
    Index of the header row: the first of the top 20 rows whose first 10
    cells mention a name-column keyword. Otherwise row 5 when it holds some
    text, otherwise row 0.
    """
    for index, row in enumerate(grid[:HEADER_SCAN_ROWS]):
        if not row:
            continue
        text = " ".join(cell_to_text(c) for c in row[:HEADER_SCAN_COLUMNS]).lower()
        if any(keyword in text for keyword in NAME_KEYWORDS):
            return index

    if len(grid) > FALLBACK_HEADER_ROW and any(
        isinstance(c, str) for c in grid[FALLBACK_HEADER_ROW] or []
    ):
        return FALLBACK_HEADER_ROW
    return 0


def looks_like_summary(row: Sequence[Cell]) -> bool:
    """A totals row has no student name or is labelled as an average/total."""
    if is_blank(_cell(row, NAME_COL)):
        return True
    text = " ".join(cell_to_text(c) for c in row[:FIRST_GRADE_COL]).lower()
    return any(keyword in text for keyword in SUMMARY_KEYWORDS)


def prune_trailing_rows(
    block: Sequence[Row], policy: str = TRAILING_AUTO
) -> Tuple[List[Row], Optional[Row]]:
    """
    Drop trailing blank rows, then possibly the totals row appended by the
    administration software. Returns (rows, dropped_row).
    """
    if policy not in TRAILING_ROW_POLICIES:
        raise ValueError(
            f"Unknown trailing row policy {policy!r}; expected one of {TRAILING_ROW_POLICIES}."
        )
    rows = list(block)
    while rows and all(is_blank(c) for c in rows[-1]):
        rows.pop()

    if len(rows) <= 1 or policy == TRAILING_NEVER:
        return rows, None
    if policy == TRAILING_AUTO and not looks_like_summary(rows[-1]):
        return rows, None
    return rows, rows.pop()


def subject_columns(header: Sequence[Cell]) -> List[Tuple[int, str]]:
    """
    (offset into the grade area, subject name) for every subject column.
    The last header cell labels the semester average and is not a subject.
    """
    if len(header) <= FIRST_GRADE_COL:
        return []
    columns = []
    for offset, cell in enumerate(header[FIRST_GRADE_COL:-1]):
        name = collapse_spaces(cell_to_text(cell))
        if name:
            columns.append((offset, name))
    return columns


def active_subjects(subjects: Iterable[str], grades: Sequence[Dict[str, float]]) -> List[str]:
    """Subjects at least one student has a positive grade in, in column order."""
    return [
        subject
        for subject in dict.fromkeys(subjects)
        if any(g.get(subject, 0) > 0 for g in grades)
    ]


# ── Ingestion ───────────────────────────────────────────────────────

def ingest_grid(
    grid: Sequence[Optional[Sequence]],
    *,
    metadata_parser: Optional[MetadataParser] = None,
    trailing_row_policy: str = TRAILING_AUTO,
) -> IngestionResult:
    """
    Turn one worksheet into students, active subjects and class metadata.
    Raises an IngestionError subclass when the sheet cannot be used.
    """
    rows = _as_grid(grid)
    if not rows:
        raise EmptyInputError("The file is empty.")

    metadata = (metadata_parser or PositionalMetadataParser()).parse(rows)

    header_index = detect_header_row(rows)
    block, dropped = prune_trailing_rows(rows[header_index:], trailing_row_policy)
    if dropped is not None:
        logger.debug("Dropped trailing totals row: %s", dropped)
    if len(block) < 2:
        raise InsufficientDataError(
            "The file does not contain enough data: no student rows were found "
            "below the header."
        )

    header = block[0]
    if len(header) < MIN_HEADER_CELLS:
        raise UnsupportedHeaderError(
            f"Unsupported file layout: the header row (row {header_index + 1}) has "
            f"only {len(header)} cell(s)."
        )
    columns = subject_columns(header)

    parsed = []
    for row in block[1:]:
        entry = _parse_student_row(row, columns)
        if entry is not None:
            parsed.append((row, entry))

    subjects = active_subjects([name for _, name in columns], [e["grades"] for _, e in parsed])
    active = set(subjects)
    students = tuple(
        Student(
            id=f"student-{position}",
            name=entry["name"],
            gender=entry["gender"],
            grades={s: g for s, g in entry["grades"].items() if s in active},
            semester_average=entry["semester_average"],
            is_repeater=entry["is_repeater"],
            source_class=metadata.class_number,
            original_row=tuple(row),
        )
        for position, (row, entry) in enumerate(parsed)
    )

    logger.info(
        "Ingested %d students, %d/%d active subjects (header at row %d)",
        len(students), len(subjects), len(columns), header_index,
    )
    return IngestionResult(
        students=students,
        subjects=tuple(subjects),
        metadata=metadata,
        header_row_index=header_index,
        dropped_row=dropped,
    )


def ingest_file(file_path: Union[str, Path], **options) -> IngestionResult:
    return ingest_grid(read_grid(file_path), **options)


def _parse_student_row(row: Row, columns: List[Tuple[int, str]]) -> Optional[dict]:
    name_cell = _cell(row, NAME_COL)
    name = collapse_spaces(cell_to_text(name_cell))
    if is_blank(name_cell) or not name:
        return None

    grade_area = row[FIRST_GRADE_COL:]
    grades: Dict[str, float] = {}
    for offset, subject in columns:
        value = coerce_number(_cell(grade_area, offset))
        if value is not None:
            grades[subject] = value

    semester_average = coerce_number(grade_area[-1]) if grade_area else None

    return {
        "name": name,
        "gender": normalize_gender(_cell(row, GENDER_COL)),
        "is_repeater": cell_to_text(_cell(row, REPEATER_COL)).strip() == REPEATER_MARKER,
        "grades": grades,
        "semester_average": 0.0 if semester_average is None else semester_average,
    }


def _as_grid(grid: Sequence[Optional[Sequence]]) -> Grid:
    return [normalize_row(raw or []) for raw in grid]


def _cell(row: Sequence[Cell], index: int) -> Cell:
    return row[index] if len(row) > index else None
