"""
aggregator.py - Merge several class sheets of one level/stream into one dataset.

Files are handled strictly one after the other: each is ingested and
validated against the first before the next one is even read, and any
failure aborts the whole batch. Nothing is returned for a partial batch.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from core.cleaner import Grid
from core.errors import InsufficientDataError, MetadataMismatchError
from core.metadata import compose_class_name
from core.models import (
    AGGREGATED_MARKER,
    ALL_CLASSES_MARKER,
    ClassMetadata,
    IngestionResult,
    Student,
)
from core.parser import ingest_grid, read_grid

logger = logging.getLogger(__name__)

# Fields that must agree across every file of a batch.
MATCHED_FIELDS = ("level", "stream")


class BatchAggregator:
    """
    Accumulates class sheets one at a time.

    ``add`` ingests and validates a file before the caller reads the next
    one. The merged students only leave through ``result()``, so a batch
    aborted by an error is simply dropped with the aggregator.
    """

    def __init__(self, **ingest_options):
        self.ingest_options = ingest_options
        self.first: Optional[IngestionResult] = None
        self._students: List[Student] = []
        self._files = 0

    def add(self, filename: str, grid: Grid) -> IngestionResult:
        result = ingest_grid(grid, **self.ingest_options)
        if self.first is None:
            self.first = result
        else:
            _check_same_cohort(filename, result.metadata, self.first.metadata)

        class_label = result.metadata.class_number or "?"
        file_index = self._files
        self._students.extend(
            dataclasses.replace(student, id=f"f{file_index}-s{position}", source_class=class_label)
            for position, student in enumerate(result.students)
        )
        self._files += 1
        logger.info(
            "Merged '%s' (class %s): %d students", filename, class_label, len(result.students)
        )
        return result

    def result(self) -> IngestionResult:
        """The merged dataset; the first file's subjects are authoritative."""
        if self.first is None:
            raise InsufficientDataError("No valid data could be extracted from the uploaded files.")
        return IngestionResult(
            students=tuple(self._students),
            subjects=self.first.subjects,
            metadata=aggregated_metadata(self.first.metadata),
            header_row_index=self.first.header_row_index,
        )


def aggregate(sources: Iterable[Tuple[str, Grid]], **ingest_options) -> IngestionResult:
    """
    Ingest ``(filename, grid)`` pairs in order and merge them.

    ``sources`` is consumed lazily, so a generator that reads files on demand
    reads file i+1 only once file i was accepted.
    """
    batch = BatchAggregator(**ingest_options)
    for filename, grid in sources:
        batch.add(filename, grid)
    return batch.result()


def aggregate_files(paths: Sequence[Union[str, Path]], **ingest_options) -> IngestionResult:
    return aggregate(_read_in_order(paths), **ingest_options)


def aggregated_metadata(master: ClassMetadata) -> ClassMetadata:
    return dataclasses.replace(
        master,
        class_number=ALL_CLASSES_MARKER,
        class_name=compose_class_name(master.level, master.stream, AGGREGATED_MARKER),
        is_aggregated=True,
    )


def _check_same_cohort(filename: str, metadata: ClassMetadata, master: ClassMetadata) -> None:
    for field in MATCHED_FIELDS:
        found = getattr(metadata, field)
        expected = getattr(master, field)
        if found != expected:
            logger.warning(
                "Rejecting batch: '%s' has %s %r, first file has %r",
                filename, field, found, expected,
            )
            raise MetadataMismatchError(filename, field, found, expected)


def _read_in_order(paths: Sequence[Union[str, Path]]) -> Iterator[Tuple[str, Grid]]:
    for path in paths:
        yield Path(path).name, read_grid(path)
