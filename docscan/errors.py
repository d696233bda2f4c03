"""Error taxonomy for the extraction pipeline.

Each component raises the error matching its own failure; the pipeline
converts them into an ``ExtractionResult`` so nothing reaches the caller
as an exception.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Machine-readable category of a non-successful extraction."""

    INVALID_IMAGE = "invalid_image"
    TIMEOUT = "timeout"
    NO_TEXT_FOUND = "no_text_found"
    NO_FIELDS_RESOLVED = "no_fields_resolved"
    LOW_CONFIDENCE = "low_confidence"
    INTERNAL_ERROR = "internal_error"


class ExtractionError(Exception):
    """Base class for failures raised inside the extraction pipeline."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR


class InvalidImageError(ExtractionError):
    """Raised when the input image is empty, malformed, or undecodable."""

    kind = ErrorKind.INVALID_IMAGE


class RecognitionTimeoutError(ExtractionError):
    """Raised when no recognition backend answered within the deadline."""

    kind = ErrorKind.TIMEOUT


class NoTextFoundError(ExtractionError):
    """Raised when recognition produced no usable text."""

    kind = ErrorKind.NO_TEXT_FOUND


class NoFieldsResolvedError(ExtractionError):
    """Raised when text was recognized but no field could be resolved."""

    kind = ErrorKind.NO_FIELDS_RESOLVED
