"""Image normalization applied before text recognition.

Bounds the long edge of a captured photo, applies a fixed
contrast/brightness transform and re-encodes it as JPEG so every
recognition backend receives the same reproducible input.
"""

import io

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from docscan.errors import InvalidImageError
from docscan.models import PreprocessedImage, RawImage
from docscan.utils.config import PreprocessingConfig
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

# Mid-grey pivot used by the contrast stretch.
_PIVOT = 128.0


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if len(image.shape) == 3 else image
    return float(cv2.Laplacian(gray, cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate contrast as the standard deviation of pixel intensities."""
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if len(image.shape) == 3 else image
    return float(gray.std())


def decode_image(raw: RawImage) -> np.ndarray:
    """Decode an encoded image into a BGR array.

    EXIF orientation is applied so phone photos come out upright.

    Args:
        raw: Encoded image bytes.

    Returns:
        Decoded BGR image.

    Raises:
        InvalidImageError: If the buffer is empty or cannot be decoded.
    """
    if not raw.data:
        raise InvalidImageError("Image file is empty")
    try:
        with Image.open(io.BytesIO(raw.data)) as pil_image:
            pil_image = ImageOps.exif_transpose(pil_image)
            rgb = np.array(pil_image.convert("RGB"))
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise InvalidImageError(f"Cannot decode image: {exc}") from exc
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


def resize_to_bound(image: np.ndarray, max_dimension: int) -> np.ndarray:
    """Downscale an image so its long edge is at most ``max_dimension``.

    Aspect ratio is preserved. Images that already fit are returned as is.
    """
    h, w = image.shape[:2]
    long_edge = max(h, w)
    if long_edge <= max_dimension:
        return image

    ratio = max_dimension / long_edge
    size = (max(1, round(w * ratio)), max(1, round(h * ratio)))
    logger.debug("Resizing %dx%d -> %dx%d", w, h, size[0], size[1])
    return cv2.resize(image, size, interpolation=cv2.INTER_AREA)


def adjust_contrast_brightness(
    image: np.ndarray, contrast: float, brightness: float
) -> np.ndarray:
    """Apply a fixed contrast stretch around mid-grey, then scale brightness.

    The transform does not depend on image content, so the same input
    always yields the same output.
    """
    stretched = (image.astype(np.float32) - _PIVOT) * contrast + _PIVOT
    return np.clip(stretched * brightness, 0, 255).astype(np.uint8)


class ImagePreprocessor:
    """Bounds, normalizes and re-encodes images for recognition.

    Args:
        config: Preprocessing configuration.
    """

    def __init__(self, config: PreprocessingConfig | None = None) -> None:
        self.config = config or PreprocessingConfig()

    def process(self, raw: RawImage) -> PreprocessedImage:
        """Normalize a raw image.

        Args:
            raw: Caller-supplied encoded image.

        Returns:
            JPEG-encoded normalized image.

        Raises:
            InvalidImageError: If the image cannot be decoded or re-encoded.
        """
        image = decode_image(raw)
        contrast_before = calculate_contrast(image)
        sharpness_before = calculate_sharpness(image)

        result = resize_to_bound(image, self.config.max_dimension)
        result = adjust_contrast_brightness(
            result, self.config.contrast, self.config.brightness
        )

        ok, encoded = cv2.imencode(
            ".jpg", result, [cv2.IMWRITE_JPEG_QUALITY, self.config.jpeg_quality]
        )
        if not ok:
            raise InvalidImageError("Failed to encode preprocessed image")

        h, w = result.shape[:2]
        logger.info(
            "Preprocessed image %dx%d: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            w,
            h,
            sharpness_before,
            calculate_sharpness(result),
            contrast_before,
            calculate_contrast(result),
        )
        return PreprocessedImage(data=encoded.tobytes(), width=w, height=h)
