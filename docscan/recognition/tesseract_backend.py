"""Local Tesseract recognizer used as the offline fallback strategy."""

import io

import pytesseract
from PIL import Image, UnidentifiedImageError

from docscan.models import PreprocessedImage, RecognitionResult
from docscan.utils.config import TesseractConfig
from docscan.utils.logger import get_logger

from .base import RecognitionBackend

logger = get_logger(__name__)


class TesseractBackend(RecognitionBackend):
    """Wrapper around Tesseract OCR for plain-text extraction.

    Args:
        config: Tesseract configuration. ``tesseract_cmd`` overrides the
            executable found on ``PATH``.
    """

    name = "tesseract"

    def __init__(self, config: TesseractConfig | None = None) -> None:
        self.config = config or TesseractConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        """Run Tesseract on the image.

        Args:
            image: Preprocessed JPEG image.

        Returns:
            Recognition result; a missing binary or Tesseract error is
            reported as an unsuccessful result.
        """
        try:
            with Image.open(io.BytesIO(image.data)) as pil_image:
                text = pytesseract.image_to_string(
                    pil_image,
                    lang=self.config.default_lang,
                    config=f"--psm {self.config.psm}",
                )
        except pytesseract.TesseractNotFoundError:
            return self._failure("Tesseract is not installed")
        except (pytesseract.TesseractError, RuntimeError) as exc:
            return self._failure(f"Tesseract failed: {exc}")
        except (UnidentifiedImageError, OSError) as exc:
            return self._failure(f"Cannot read image: {exc}")

        text = text.strip()
        if not text:
            return self._failure("No text found in image")

        logger.debug("Tesseract returned %d characters", len(text))
        return RecognitionResult(success=True, text=text, backend=self.name)

    def _failure(self, error: str) -> RecognitionResult:
        logger.warning("Tesseract recognition failed: %s", error)
        return RecognitionResult(success=False, text="", error=error, backend=self.name)
