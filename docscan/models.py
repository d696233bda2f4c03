"""Data model shared by every stage of the extraction pipeline."""

import base64
import binascii
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from docscan.errors import ErrorKind, InvalidImageError

# Display sentinels kept in the same language as the cards themselves.
UNKNOWN = "غير محدد"
MALE = "ذكر"
FEMALE = "أنثى"

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>image/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<payload>.*)$",
    re.DOTALL,
)


class DocumentType(StrEnum):
    """Kind of photographed document, selecting the parser to apply."""

    IDENTITY_CARD = "identity_card"
    MOTOR_FINGERPRINT = "motor_fingerprint"
    CHASSIS_NUMBER = "chassis_number"


@dataclass(frozen=True)
class RawImage:
    """An encoded image as supplied by the caller."""

    data: bytes
    mime_type: str = "image/jpeg"

    @classmethod
    def from_data_uri(cls, data_uri: str) -> "RawImage":
        """Decode a ``data:image/...;base64,`` URI.

        Args:
            data_uri: Base64 data URI, as produced by browser camera capture.

        Returns:
            The decoded image.

        Raises:
            InvalidImageError: If the URI is not a base64 image data URI.
        """
        match = _DATA_URI_RE.match(data_uri.strip()) if data_uri else None
        if match is None:
            raise InvalidImageError("Invalid image data URL")
        try:
            data = base64.b64decode(match.group("payload"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImageError(f"Invalid base64 image payload: {exc}") from exc
        if not data:
            raise InvalidImageError("Image file is empty")
        return cls(data=data, mime_type=match.group("mime"))


@dataclass(frozen=True)
class PreprocessedImage:
    """A bounded, contrast-normalized JPEG derived from a ``RawImage``."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"

    def copy(self) -> "PreprocessedImage":
        """Return an instance backed by its own buffer."""
        return PreprocessedImage(
            data=bytes(bytearray(self.data)),
            width=self.width,
            height=self.height,
            mime_type=self.mime_type,
        )


@dataclass(frozen=True)
class RecognitionResult:
    """Verbatim output of a single recognition backend."""

    success: bool
    text: str
    error: str | None = None
    backend: str = ""

    @property
    def usable(self) -> bool:
        """Whether this result carries non-empty text."""
        return self.success and bool(self.text.strip())


@dataclass
class IdentityCardFields:
    """Fields read from a national identity card."""

    name: str
    national_id: str
    address: str
    phone: str | None = None
    birth_date: str | None = None
    gender: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "nationalId": self.national_id,
            "address": self.address,
        }
        for key, value in (
            ("phone", self.phone),
            ("birthDate", self.birth_date),
            ("gender", self.gender),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass
class VehicleIdentifierFields:
    """A motor fingerprint or chassis number."""

    code: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code}


ExtractedFields = IdentityCardFields | VehicleIdentifierFields


@dataclass
class ExtractionResult:
    """Externally visible outcome of one extraction call.

    Always returned, including on failure. A result with
    ``error_kind == LOW_CONFIDENCE`` still carries whatever fields were
    recovered so the caller can seed its manual-entry form.
    """

    success: bool
    fields: ExtractedFields | None
    confidence: int
    document_type: DocumentType
    processing_time_ms: int = 0
    error: str | None = None
    error_kind: ErrorKind | None = None
    raw_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "documentType": self.document_type.value,
            "fields": self.fields.to_dict() if self.fields is not None else None,
            "confidence": self.confidence,
            "error": self.error,
            "errorKind": self.error_kind.value if self.error_kind else None,
            "processingTimeMs": self.processing_time_ms,
        }
