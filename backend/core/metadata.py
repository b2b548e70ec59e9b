"""
metadata.py - Class metadata recovered from the title rows of a grade sheet.

The administration software writes free text above the grade table:

    row 2   directorate                 e.g. "مديرية التربية لولاية ..."
    row 3   school name                 e.g. "ثانوية ..."
    row 4   one line of words w0 w1 ... wN, read as:
              w2 w3          semester       ("الفصل الأول")
              w4             school year    ("2023/2024")
              w5 w6          level          ("السنة الأولى")
              w7 .. w(N-1)   stream, only when the line has more than 8 words
              wN             class number

A line of fewer than 7 words leaves every row-4 field empty. Parsers never
raise: anything they cannot read stays an empty string.
"""

from typing import List, Sequence

from core.cleaner import Cell, cell_to_text, clean_text, collapse_spaces, is_blank
from core.models import ClassMetadata

DIRECTORATE_ROW = 2
SCHOOL_ROW = 3
CLASS_LINE_ROW = 4
MIN_CLASS_LINE_WORDS = 7


class MetadataParser:
    """Reads ClassMetadata out of a raw grid. Subclass to support other layouts."""

    def parse(self, grid: Sequence[Sequence[Cell]]) -> ClassMetadata:
        raise NotImplementedError


class PositionalMetadataParser(MetadataParser):
    """The fixed row layout described in the module docstring."""

    def parse(self, grid: Sequence[Sequence[Cell]]) -> ClassMetadata:
        directorate = clean_text(_row(grid, DIRECTORATE_ROW))
        school_name = clean_text(_row(grid, SCHOOL_ROW))

        words = self.class_line_words(_row(grid, CLASS_LINE_ROW))
        if len(words) < MIN_CLASS_LINE_WORDS:
            return ClassMetadata(directorate=directorate, school_name=school_name)

        semester = f"{words[2]} {words[3]}".strip()
        school_year = words[4]
        level = f"{words[5]} {words[6]}".strip()
        class_number = words[-1]
        stream = " ".join(words[7:-1]) if len(words) > 8 else ""

        return ClassMetadata(
            school_year=school_year,
            semester=semester,
            class_name=compose_class_name(level, stream, class_number),
            level=level,
            stream=stream,
            class_number=class_number,
            directorate=directorate,
            school_name=school_name,
        )

    @staticmethod
    def class_line_words(row: Sequence[Cell]) -> List[str]:
        text = collapse_spaces(" ".join(cell_to_text(c) for c in row if not is_blank(c)))
        return text.split(" ") if text else []


def compose_class_name(*parts: str) -> str:
    return collapse_spaces(" ".join(parts))


def _row(grid: Sequence[Sequence[Cell]], index: int) -> Sequence[Cell]:
    if len(grid) > index and grid[index]:
        return grid[index]
    return []
