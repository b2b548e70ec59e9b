"""
Tests for core/metadata.py - title-row grammar of the grade sheet export.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import build_grid, class_line
from core.metadata import MetadataParser, PositionalMetadataParser
from core.models import ClassMetadata
from core.parser import ingest_grid


def _grid_with_line(line_cells):
    return [["r0"], ["r1"], ["مديرية التربية"], ["ثانوية النجاح"], line_cells]


@pytest.fixture
def parser():
    return PositionalMetadataParser()


class TestPositionalMetadataParser:

    def test_full_class_line(self, parser):
        meta = parser.parse(_grid_with_line([class_line()]))
        assert meta.semester == "الفصل الأول"
        assert meta.school_year == "2023/2024"
        assert meta.level == "السنة الأولى"
        assert meta.stream == "جذع مشترك علوم وتكنولوجيا"
        assert meta.class_number == "2"
        assert meta.class_name == "السنة الأولى جذع مشترك علوم وتكنولوجيا 2"
        assert not meta.is_aggregated

    def test_directorate_and_school_rows_are_joined(self, parser):
        grid = build_grid([])
        meta = parser.parse(grid)
        assert meta.directorate == "مديرية التربية لولاية الجزائر وسط"
        assert meta.school_name == "ثانوية الإخوة عمروش"

    def test_line_split_over_cells(self, parser):
        cells = ["كشف النقاط", None, "الفصل الثاني", "", 2025, "السنة الثالثة", "رياضيات", 1]
        meta = parser.parse(_grid_with_line(cells))
        assert meta.semester == "الفصل الثاني"
        assert meta.school_year == "2025"
        assert meta.level == "السنة الثالثة"
        assert meta.stream == "رياضيات"
        assert meta.class_number == "1"

    def test_eight_words_leave_stream_empty(self, parser):
        meta = parser.parse(_grid_with_line(["a b الفصل الأول 2023/2024 1AS x 3"]))
        assert meta.level == "1AS x"
        assert meta.stream == ""
        assert meta.class_number == "3"
        assert meta.class_name == "1AS x 3"

    def test_short_line_leaves_fields_empty(self, parser):
        meta = parser.parse(_grid_with_line(["كشف النقاط الفصل الأول 2023"]))
        assert meta.semester == ""
        assert meta.school_year == ""
        assert meta.level == ""
        assert meta.class_name == ""
        assert meta.directorate == "مديرية التربية"

    def test_missing_rows_never_raise(self, parser):
        assert parser.parse([["only one row"]]) == ClassMetadata()
        assert parser.parse([]) == ClassMetadata()


class TestSwappableParser:

    def test_ingestion_uses_given_parser(self, small_class_grid):
        class FixedParser(MetadataParser):
            def parse(self, grid):
                return ClassMetadata(level="2AS", stream="Lettres", class_number="4")

        result = ingest_grid(small_class_grid, metadata_parser=FixedParser())
        assert result.metadata.level == "2AS"
        assert all(s.source_class == "4" for s in result.students)
