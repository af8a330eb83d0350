"""Fatal annotation errors.

These signal inconsistent input data rather than transient failures; the CLI
reports them and aborts the run.
"""

from __future__ import annotations


class AnnotationError(RuntimeError):
    """Base class for errors that abort an annotation run."""


class UnknownStrandError(AnnotationError):
    """Raised when a transcript's strand is neither ``+`` nor ``-``."""

    def __init__(self, strand: str, *, transcript_id: str | None = None) -> None:
        msg = f"Unknown strand {strand!r}"
        if transcript_id is not None:
            msg += f" for transcript {transcript_id}"
        super().__init__(msg)
        self.strand = strand
        self.transcript_id = transcript_id


class MissingExonsError(AnnotationError):
    """Raised when the feature store has a transcript without exons."""

    def __init__(self, transcript_id: str) -> None:
        super().__init__(f"Unexpected error. No exons for transcript {transcript_id}")
        self.transcript_id = transcript_id
