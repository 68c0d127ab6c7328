"""
Exceptions raised by the CSV import pipeline.

Row-level errors never escape the executor's per-row guard. Structural errors
fail the whole job. Undo errors carry the HTTP status the admin API answers
with.
"""

from rest_framework import status


class ImportServiceError(Exception):
    """Base exception for import pipeline errors."""
    pass


class CSVStructureError(ImportServiceError):
    """The uploaded file cannot be read as a CSV table."""
    pass


class RowValidationError(ImportServiceError):
    """A single row failed validation; the message is shown to operators."""
    pass


# =============================================================================
# UNDO PRECONDITIONS
# =============================================================================

class UndoError(ImportServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ImportJobNotFound(UndoError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message='Import job not found'):
        super().__init__(message)


class ImportAlreadyUndone(UndoError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message='Import has already been undone'):
        super().__init__(message)


class NothingToUndo(UndoError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message='No records to undo for this import'):
        super().__init__(message)


class ImportNotUndoable(UndoError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message='Only completed imports can be undone'):
        super().__init__(message)
