"""End-to-end extraction pipeline.

Preprocess → race recognizers → parse by document type → decode →
score → assemble. ``extract`` always returns an ``ExtractionResult``;
every failure is reported inside it.
"""

import time

from docscan.errors import (
    ErrorKind,
    ExtractionError,
    InvalidImageError,
    NoTextFoundError,
)
from docscan.models import DocumentType, ExtractionResult, RawImage
from docscan.parsing.id_card_parser import IdCardParser
from docscan.parsing.vehicle_parser import VehicleIdentifierParser
from docscan.preprocessing.image_preprocessor import ImagePreprocessor
from docscan.recognition.dispatcher import RecognitionDispatcher
from docscan.scoring.confidence import ConfidenceScorer
from docscan.utils.config import AppConfig
from docscan.utils.logger import get_logger

from .assembler import ResultAssembler

logger = get_logger(__name__)

ImageInput = RawImage | bytes | str


def to_raw_image(image: ImageInput, mime_type: str = "image/jpeg") -> RawImage:
    """Normalize the accepted image inputs to a ``RawImage``.

    Args:
        image: A ``RawImage``, encoded bytes, or a base64 data URI.
        mime_type: MIME type recorded for raw bytes.

    Raises:
        InvalidImageError: If the input is of an unsupported kind or
            an invalid data URI.
    """
    if isinstance(image, RawImage):
        return image
    if isinstance(image, (bytes, bytearray)):
        return RawImage(data=bytes(image), mime_type=mime_type)
    if isinstance(image, str):
        return RawImage.from_data_uri(image)
    raise InvalidImageError(f"Unsupported image input: {type(image).__name__}")


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class ExtractionPipeline:
    """Extracts structured fields from a photographed document.

    Args:
        config: Application configuration.
        dispatcher: Recognition dispatcher; built from ``config`` if omitted.
        preprocessor: Image preprocessor; built from ``config`` if omitted.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        dispatcher: RecognitionDispatcher | None = None,
        preprocessor: ImagePreprocessor | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.preprocessor = preprocessor or ImagePreprocessor(self.config.preprocessing)
        self.dispatcher = dispatcher or RecognitionDispatcher.from_config(
            self.config.recognition
        )
        self.scorer = ConfidenceScorer(self.config.scoring)
        self.assembler = ResultAssembler(self.scorer)
        self.id_card_parser = IdCardParser()
        self.vehicle_parsers = {
            DocumentType.MOTOR_FINGERPRINT: VehicleIdentifierParser(
                DocumentType.MOTOR_FINGERPRINT
            ),
            DocumentType.CHASSIS_NUMBER: VehicleIdentifierParser(
                DocumentType.CHASSIS_NUMBER
            ),
        }

    def extract(
        self, image: ImageInput, document_type: DocumentType | str
    ) -> ExtractionResult:
        """Run the full pipeline on one image.

        Args:
            image: A ``RawImage``, encoded bytes, or a base64 data URI.
            document_type: Which kind of document the image shows.

        Returns:
            The extraction result; failures are reported, not raised.

        Raises:
            ValueError: If ``document_type`` is not a known type.
        """
        document_type = DocumentType(document_type)
        start = time.perf_counter()
        logger.info("Extracting %s", document_type.value)

        try:
            text = self.recognize_text(image)
        except ExtractionError as exc:
            return self.assembler.failure(
                document_type, str(exc), exc.kind, _elapsed_ms(start)
            )
        except Exception as exc:
            logger.exception("Unexpected failure during recognition")
            return self.assembler.failure(
                document_type, str(exc), ErrorKind.INTERNAL_ERROR, _elapsed_ms(start)
            )

        result = self.parse_text(text, document_type, start)
        logger.info(
            "Extraction of %s finished: success=%s confidence=%d in %d ms",
            document_type.value,
            result.success,
            result.confidence,
            result.processing_time_ms,
        )
        return result

    def extract_composite(
        self, image: ImageInput
    ) -> dict[DocumentType, ExtractionResult]:
        """Read every document type from a single composite photo.

        Text is recognized once and handed to each parser.

        Args:
            image: A ``RawImage``, encoded bytes, or a base64 data URI.

        Returns:
            One result per document type.
        """
        start = time.perf_counter()
        try:
            text = self.recognize_text(image)
        except ExtractionError as exc:
            return {
                dt: self.assembler.failure(dt, str(exc), exc.kind, _elapsed_ms(start))
                for dt in DocumentType
            }
        except Exception as exc:
            logger.exception("Unexpected failure during recognition")
            return {
                dt: self.assembler.failure(
                    dt, str(exc), ErrorKind.INTERNAL_ERROR, _elapsed_ms(start)
                )
                for dt in DocumentType
            }

        return {dt: self.parse_text(text, dt, start) for dt in DocumentType}

    def recognize_text(self, image: ImageInput) -> str:
        """Preprocess an image and return the winning recognized text.

        Raises:
            InvalidImageError: If the image cannot be decoded.
            RecognitionTimeoutError: If no backend answered in time.
            NoTextFoundError: If every backend failed or found nothing.
        """
        raw = to_raw_image(image)
        preprocessed = self.preprocessor.process(raw)
        result = self.dispatcher.recognize(preprocessed)
        if not result.usable:
            raise NoTextFoundError(result.error or "No text found in image")
        logger.debug("Recognized text from %s: %r", result.backend, result.text)
        return result.text

    def parse_text(
        self,
        text: str,
        document_type: DocumentType | str,
        start: float | None = None,
    ) -> ExtractionResult:
        """Parse already recognized text; deterministic for a given input.

        Args:
            text: Recognized text.
            document_type: Which parser to apply.
            start: ``time.perf_counter()`` value the timing is measured from.

        Returns:
            The assembled extraction result.
        """
        document_type = DocumentType(document_type)
        if start is None:
            start = time.perf_counter()

        if not text.strip():
            return self.assembler.failure(
                document_type,
                "No text found in image",
                ErrorKind.NO_TEXT_FOUND,
                _elapsed_ms(start),
            )

        try:
            if document_type is DocumentType.IDENTITY_CARD:
                fields = self.id_card_parser.parse(text)
                return self.assembler.assemble_identity_card(
                    fields, _elapsed_ms(start), raw_text=text
                )
            match = self.vehicle_parsers[document_type].parse(text)
            return self.assembler.assemble_vehicle(
                document_type, match, _elapsed_ms(start), raw_text=text
            )
        except Exception as exc:
            logger.exception("Unexpected failure while parsing %s", document_type)
            return self.assembler.failure(
                document_type,
                str(exc),
                ErrorKind.INTERNAL_ERROR,
                _elapsed_ms(start),
                raw_text=text,
            )
