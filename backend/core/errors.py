"""
errors.py - Ingestion failures surfaced to the user.

Every error carries a message that can be shown as-is. None of them is
retried: the caller fixes the file (or picks other files) and uploads again.
"""


class IngestionError(ValueError):
    """Base class for anything that aborts an ingestion or a merge."""


class EmptyInputError(IngestionError):
    """The worksheet has no rows at all."""


class InsufficientDataError(IngestionError):
    """No student row is left once the header and the totals row are handled."""


class UnsupportedHeaderError(IngestionError):
    """The detected header row is too short to describe a grade sheet."""


class ReadFailureError(IngestionError):
    """The file could not be read or decoded as a spreadsheet."""


class MetadataMismatchError(IngestionError):
    """A file of a multi-class batch belongs to another level or stream."""

    def __init__(self, filename: str, field: str, found: str, expected: str):
        self.filename = filename
        self.field = field
        self.found = found
        self.expected = expected
        super().__init__(
            f"File '{filename}' has a different {field} ({found!r}) than the first "
            f"file ({expected!r}). All files must belong to the same level and stream."
        )
