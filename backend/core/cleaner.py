"""
cleaner.py - Cell-level normalisation shared by every ingestion path.

Handles:
- Raw reader values → Cell (None, text or number)
- Text rendering of cells for joining and keyword matching
- Numeric coercion of grade and semester-average cells
- Gender label standardization
- DataFrame → grid conversion
"""

import math
import re
from datetime import date, datetime, time
from numbers import Real
from typing import Any, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from core.models import FEMALE, MALE, UNSPECIFIED_GENDER

Cell = Union[None, str, int, float]
Row = List[Cell]
Grid = List[Row]

# Leading float, the way a spreadsheet formula would read "12.5 (abs)".
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_WHITESPACE = re.compile(r"\s+")


# ── Cells ───────────────────────────────────────────────────────────

def normalize_cell(value: Any) -> Cell:
    """Map whatever the spreadsheet reader produced to a Cell."""
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (int, float)):
        return value
    if value is pd.NaT:
        return None
    if isinstance(value, (datetime, date, time)):
        return str(value)
    text = str(value)
    return text if text.strip() else None


def cell_to_text(cell: Cell) -> str:
    """Render a cell as text; 2024.0 renders as '2024'."""
    if cell is None:
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell)


def clean_text(cells: Sequence[Cell]) -> str:
    """Join cells with spaces and collapse runs of whitespace."""
    return collapse_spaces(" ".join(cell_to_text(c) for c in cells))


def collapse_spaces(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def is_blank(cell: Cell) -> bool:
    """Falsy in the spreadsheet sense: absent, empty text or zero."""
    if cell is None:
        return True
    if isinstance(cell, str):
        return cell == ""
    return cell == 0


def coerce_number(cell: Cell) -> Optional[float]:
    """
    Single numeric coercion for grade and semester-average cells.

    Numbers pass through; text gets its first comma turned into a dot and its
    leading number parsed. Non-finite results are rejected.
    """
    if cell is None or isinstance(cell, bool):
        return None
    if isinstance(cell, Real):
        number = float(cell)
    elif isinstance(cell, str):
        match = _LEADING_NUMBER.match(cell.replace(",", ".", 1))
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    return number if math.isfinite(number) else None


# ── Gender Standardization ──────────────────────────────────────────

GENDER_MAP = {
    "أنثى": FEMALE, "انثى": FEMALE, "أنثي": FEMALE, "انثي": FEMALE,
    "f": FEMALE, "female": FEMALE, "fille": FEMALE, "féminin": FEMALE,
    "ذكر": MALE, "m": MALE, "male": MALE, "garçon": MALE, "masculin": MALE,
}


def normalize_gender(cell: Cell) -> str:
    """Map gender variants to the two labels used by the reports."""
    text = collapse_spaces(cell_to_text(cell))
    if not text:
        return UNSPECIFIED_GENDER
    return GENDER_MAP.get(text.lower(), text)


# ── DataFrame → grid ────────────────────────────────────────────────

def frame_to_grid(df: pd.DataFrame) -> Grid:
    """
    Convert a header-less DataFrame into rows of cells.
    Each row stops at its last non-empty cell.
    """
    return [normalize_row(values) for values in df.itertuples(index=False, name=None)]


def normalize_row(values: Iterable[Any]) -> Row:
    """Normalise every cell and drop the absent cells at the end of the row."""
    row = [normalize_cell(v) for v in values]
    while row and row[-1] is None:
        row.pop()
    return row
