"""Configuration management for the document scanning system.

Loads and validates YAML configuration with defaults for image
normalization, recognition backends, and confidence scoring.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

_API_KEY_ENV = "DOCSCAN_OCR_API_KEY"
_DEMO_API_KEY = "helloworld"


def _default_api_key() -> str:
    return os.environ.get(_API_KEY_ENV, _DEMO_API_KEY)


class PreprocessingConfig(BaseModel):
    """Configuration for image normalization before recognition."""

    max_dimension: int = Field(default=1200, gt=0)
    contrast: float = Field(default=1.2, gt=0)
    brightness: float = Field(default=1.1, gt=0)
    jpeg_quality: int = Field(default=90, ge=1, le=100)


class RemoteOCRConfig(BaseModel):
    """Configuration for the OCR.space-compatible network recognizer."""

    enabled: bool = True
    api_url: str = "https://api.ocr.space/parse/image"
    api_key: str = Field(default_factory=_default_api_key)
    language: str = "eng"
    engine: int = 2
    detect_orientation: bool = True
    scale: bool = True
    request_timeout_seconds: float = 15.0
    max_retries: int = Field(default=2, ge=0)


class TesseractConfig(BaseModel):
    """Configuration for the local Tesseract recognizer."""

    enabled: bool = True
    tesseract_cmd: str | None = None
    default_lang: str = "ara+eng"
    psm: int = 6


class RecognitionConfig(BaseModel):
    """Configuration for the recognition dispatcher and its backends."""

    deadline_seconds: float = Field(default=15.0, gt=0)
    remote: RemoteOCRConfig = Field(default_factory=RemoteOCRConfig)
    tesseract: TesseractConfig = Field(default_factory=TesseractConfig)


class ScoringConfig(BaseModel):
    """Confidence weights and thresholds.

    Identity-card weights must sum to 100 so a fully recovered card
    scores exactly 100.
    """

    national_id_weight: int = 40
    name_weight: int = 30
    address_weight: int = 20
    phone_weight: int = 10
    min_confidence: int = Field(default=40, ge=0, le=100)
    pattern_confidence: int = Field(default=90, ge=0, le=100)
    fallback_confidence: int = Field(default=50, ge=0, le=100)

    @model_validator(mode="after")
    def _check_weights(self) -> "ScoringConfig":
        total = (
            self.national_id_weight
            + self.name_weight
            + self.address_weight
            + self.phone_weight
        )
        if total != 100:
            raise ValueError(f"Identity card weights must sum to 100, got {total}")
        return self


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
