"""Contract shared by all text recognition backends."""

from abc import ABC, abstractmethod

from docscan.models import PreprocessedImage, RecognitionResult


class RecognitionBackend(ABC):
    """A strategy that turns an image into raw text."""

    name: str = "backend"

    @abstractmethod
    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        """Recognize text in an image.

        Implementations report failures through the returned result
        rather than raising; the dispatcher still guards against
        unexpected exceptions.

        Args:
            image: Preprocessed JPEG image.

        Returns:
            The backend's verbatim recognition result.
        """
