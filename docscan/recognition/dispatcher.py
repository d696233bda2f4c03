"""Races recognition backends and keeps the first usable answer.

Every backend is started at once on its own copy of the image. The
first result with non-empty text wins; slower backends are abandoned,
not interrupted, and whatever they return later is ignored. Backends
only produce a value, so an abandoned call cannot disturb anything.
"""

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from docscan.errors import RecognitionTimeoutError
from docscan.models import PreprocessedImage, RecognitionResult
from docscan.utils.config import RecognitionConfig
from docscan.utils.logger import get_logger

from .base import RecognitionBackend
from .remote_backend import RemoteOCRBackend
from .tesseract_backend import TesseractBackend

logger = get_logger(__name__)


def _run_backend(
    backend: RecognitionBackend, image: PreprocessedImage
) -> RecognitionResult:
    try:
        return backend.recognize(image)
    except Exception as exc:
        logger.exception("Recognition backend %s raised", backend.name)
        return RecognitionResult(
            success=False,
            text="",
            error=str(exc) or type(exc).__name__,
            backend=backend.name,
        )


class RecognitionDispatcher:
    """Runs several recognition strategies concurrently under one deadline.

    Args:
        backends: Strategies to race, in no particular order.
        deadline_seconds: Budget for the whole call.
    """

    def __init__(
        self,
        backends: list[RecognitionBackend],
        deadline_seconds: float = 15.0,
    ) -> None:
        self.backends = list(backends)
        self.deadline_seconds = deadline_seconds

    @classmethod
    def from_config(cls, config: RecognitionConfig) -> "RecognitionDispatcher":
        """Build a dispatcher with the backends enabled in ``config``."""
        backends: list[RecognitionBackend] = []
        if config.remote.enabled:
            backends.append(RemoteOCRBackend(config.remote))
        if config.tesseract.enabled:
            backends.append(TesseractBackend(config.tesseract))
        return cls(backends, deadline_seconds=config.deadline_seconds)

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        """Return the first usable recognition result.

        Args:
            image: Preprocessed image; each backend receives its own copy.

        Returns:
            The winning result, or an unsuccessful result carrying the
            last observed error when every backend failed.

        Raises:
            RecognitionTimeoutError: If no usable result arrived before
                the deadline.
        """
        if not self.backends:
            return RecognitionResult(
                success=False, text="", error="No recognition backends configured"
            )

        start = time.monotonic()
        deadline = start + self.deadline_seconds
        executor = ThreadPoolExecutor(
            max_workers=len(self.backends), thread_name_prefix="recognition"
        )
        pending: set[Future[RecognitionResult]] = {
            executor.submit(_run_backend, backend, image.copy())
            for backend in self.backends
        }
        last_error: str | None = None

        try:
            while pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                done, pending = wait(
                    pending, timeout=remaining, return_when=FIRST_COMPLETED
                )
                for future in done:
                    result = future.result()
                    if result.usable:
                        logger.info(
                            "Recognition won by %s in %.0f ms",
                            result.backend,
                            (time.monotonic() - start) * 1000,
                        )
                        return result
                    last_error = result.error or "No text found in image"
                    logger.info(
                        "Backend %s produced no usable text: %s",
                        result.backend,
                        last_error,
                    )
        finally:
            # Losers keep running in the background; their results are dropped.
            executor.shutdown(wait=False, cancel_futures=True)

        if pending:
            message = f"No recognition result within {self.deadline_seconds:g}s"
            if last_error:
                message = f"{message} (last error: {last_error})"
            raise RecognitionTimeoutError(message)

        return RecognitionResult(success=False, text="", error=last_error)
