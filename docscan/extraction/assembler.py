"""Assembly of parser, decoder and scorer output into an ExtractionResult."""

from docscan.errors import ErrorKind
from docscan.models import (
    DocumentType,
    ExtractionResult,
    IdentityCardFields,
    VehicleIdentifierFields,
)
from docscan.parsing.national_id import decode_national_id, is_valid_national_id
from docscan.parsing.vehicle_parser import VehicleMatch
from docscan.scoring.confidence import ConfidenceScorer
from docscan.utils.logger import get_logger

logger = get_logger(__name__)


class ResultAssembler:
    """Builds the caller-facing result. Never raises.

    Hard failures yield ``success=False`` with confidence 0 and no
    fields. Results that resolved something but fall short of the
    success rule keep their fields and score and are flagged
    ``LOW_CONFIDENCE`` so the caller can pre-fill manual entry.

    Args:
        scorer: Confidence scorer providing scores and the threshold.
    """

    def __init__(self, scorer: ConfidenceScorer) -> None:
        self.scorer = scorer

    def assemble_identity_card(
        self,
        fields: IdentityCardFields,
        elapsed_ms: int,
        raw_text: str = "",
    ) -> ExtractionResult:
        """Decode the national ID, score the card and gate on success.

        A card succeeds only with a valid national ID and a score at or
        above the minimum confidence.
        """
        document_type = DocumentType.IDENTITY_CARD
        try:
            has_national_id = is_valid_national_id(fields.national_id)
            if has_national_id:
                info = decode_national_id(fields.national_id)
                fields.birth_date = info.birth_date
                fields.gender = info.gender
            else:
                fields.birth_date = None
                fields.gender = None

            confidence = self.scorer.score_identity_card(fields)
            if confidence == 0:
                return self.failure(
                    document_type,
                    "No identity card fields found in text",
                    ErrorKind.NO_FIELDS_RESOLVED,
                    elapsed_ms,
                    raw_text,
                )

            if not has_national_id:
                return self._low_confidence(
                    document_type,
                    fields,
                    confidence,
                    "National ID not found on card",
                    elapsed_ms,
                    raw_text,
                )
            if not self.scorer.meets_threshold(confidence):
                return self._low_confidence(
                    document_type,
                    fields,
                    confidence,
                    f"Confidence {confidence} below threshold "
                    f"{self.scorer.config.min_confidence}",
                    elapsed_ms,
                    raw_text,
                )

            return ExtractionResult(
                success=True,
                fields=fields,
                confidence=confidence,
                document_type=document_type,
                processing_time_ms=elapsed_ms,
                raw_text=raw_text,
            )
        except Exception as exc:
            logger.exception("Failed to assemble identity card result")
            return self.failure(
                document_type, str(exc), ErrorKind.INTERNAL_ERROR, elapsed_ms, raw_text
            )

    def assemble_vehicle(
        self,
        document_type: DocumentType,
        match: VehicleMatch | None,
        elapsed_ms: int,
        raw_text: str = "",
    ) -> ExtractionResult:
        """Score a vehicle identifier match and gate on success."""
        try:
            if match is None or not match.code:
                return self.failure(
                    document_type,
                    f"No valid {document_type.value.replace('_', ' ')} found",
                    ErrorKind.NO_FIELDS_RESOLVED,
                    elapsed_ms,
                    raw_text,
                )

            fields = VehicleIdentifierFields(code=match.code)
            confidence = self.scorer.score_vehicle(match)
            if not self.scorer.meets_threshold(confidence):
                return self._low_confidence(
                    document_type,
                    fields,
                    confidence,
                    f"Confidence {confidence} below threshold "
                    f"{self.scorer.config.min_confidence}",
                    elapsed_ms,
                    raw_text,
                )

            return ExtractionResult(
                success=True,
                fields=fields,
                confidence=confidence,
                document_type=document_type,
                processing_time_ms=elapsed_ms,
                raw_text=raw_text,
            )
        except Exception as exc:
            logger.exception("Failed to assemble vehicle identifier result")
            return self.failure(
                document_type, str(exc), ErrorKind.INTERNAL_ERROR, elapsed_ms, raw_text
            )

    def failure(
        self,
        document_type: DocumentType,
        error: str,
        kind: ErrorKind,
        elapsed_ms: int,
        raw_text: str = "",
    ) -> ExtractionResult:
        """Build a hard-failure result with zero confidence."""
        logger.info("Extraction failed (%s): %s", kind.value, error)
        return ExtractionResult(
            success=False,
            fields=None,
            confidence=0,
            document_type=document_type,
            processing_time_ms=elapsed_ms,
            error=error,
            error_kind=kind,
            raw_text=raw_text,
        )

    def _low_confidence(
        self,
        document_type: DocumentType,
        fields: IdentityCardFields | VehicleIdentifierFields,
        confidence: int,
        error: str,
        elapsed_ms: int,
        raw_text: str,
    ) -> ExtractionResult:
        logger.info("Low confidence extraction (%d): %s", confidence, error)
        return ExtractionResult(
            success=False,
            fields=fields,
            confidence=confidence,
            document_type=document_type,
            processing_time_ms=elapsed_ms,
            error=error,
            error_kind=ErrorKind.LOW_CONFIDENCE,
            raw_text=raw_text,
        )
