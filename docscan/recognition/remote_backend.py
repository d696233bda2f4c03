"""Network recognizer speaking the OCR.space ``parse/image`` protocol."""

import httpx

from docscan.models import PreprocessedImage, RecognitionResult
from docscan.utils.config import RemoteOCRConfig
from docscan.utils.logger import get_logger

from .base import RecognitionBackend

logger = get_logger(__name__)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class RemoteOCRBackend(RecognitionBackend):
    """Sends images to a remote OCR service over HTTP.

    Connection failures and timeouts are retried up to
    ``config.max_retries`` times; every other failure is reported
    immediately as an unsuccessful result.

    Args:
        config: Remote recognizer configuration.
        client: Optional pre-built HTTP client, mainly for tests.
    """

    name = "remote"

    def __init__(
        self,
        config: RemoteOCRConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or RemoteOCRConfig()
        self._client = client or httpx.Client(
            timeout=self.config.request_timeout_seconds
        )

    def close(self) -> None:
        self._client.close()

    def _form_fields(self) -> dict[str, str]:
        return {
            "apikey": self.config.api_key,
            "language": self.config.language,
            "isOverlayRequired": "false",
            "detectOrientation": _flag(self.config.detect_orientation),
            "scale": _flag(self.config.scale),
            "OCREngine": str(self.config.engine),
        }

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        """Post the image to the remote service and parse its answer."""
        attempts = self.config.max_retries + 1
        last_error = "OCR request not sent"

        for attempt in range(1, attempts + 1):
            try:
                response = self._client.post(
                    self.config.api_url,
                    data=self._form_fields(),
                    files={"file": ("image.jpg", image.data, image.mime_type)},
                )
            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                last_error = f"OCR service unreachable: {exc}"
                logger.warning(
                    "Remote OCR attempt %d/%d failed: %s", attempt, attempts, exc
                )
                continue
            except httpx.HTTPError as exc:
                return self._failure(f"OCR request failed: {exc}")
            return self._parse_response(response)

        return self._failure(last_error)

    def _parse_response(self, response: httpx.Response) -> RecognitionResult:
        """Translate an OCR.space JSON payload into a recognition result."""
        if response.status_code >= 400:
            return self._failure(f"OCR API error: {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            return self._failure("OCR API returned a non-JSON response")

        if payload.get("IsErroredOnProcessing"):
            messages = payload.get("ErrorMessage") or []
            if not isinstance(messages, list):
                messages = [messages]
            error = ", ".join(str(m) for m in messages) or "OCR processing failed"
            return self._failure(error)

        parsed = payload.get("ParsedResults") or []
        text = (parsed[0].get("ParsedText") or "").strip() if parsed else ""
        if not text:
            return self._failure("No text found in image")

        logger.debug("Remote OCR returned %d characters", len(text))
        return RecognitionResult(success=True, text=text, backend=self.name)

    def _failure(self, error: str) -> RecognitionResult:
        logger.warning("Remote OCR failed: %s", error)
        return RecognitionResult(success=False, text="", error=error, backend=self.name)
