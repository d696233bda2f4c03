"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel

from docscan.errors import ErrorKind
from docscan.models import (
    DocumentType,
    ExtractionResult,
    IdentityCardFields,
    VehicleIdentifierFields,
)


class IdentityCardFieldsResponse(BaseModel):
    """Fields read from an identity card."""

    name: str
    national_id: str
    address: str
    phone: str | None = None
    birth_date: str | None = None
    gender: str | None = None


class VehicleIdentifierFieldsResponse(BaseModel):
    """A motor fingerprint or chassis number."""

    code: str


class ExtractionResponse(BaseModel):
    """Response schema for a single extraction.

    ``requires_manual_review`` is true whenever ``success`` is false; the
    client must then show an editable form seeded with ``fields``.
    """

    success: bool
    document_type: DocumentType
    fields: IdentityCardFieldsResponse | VehicleIdentifierFieldsResponse | None
    confidence: int
    error: str | None = None
    error_kind: ErrorKind | None = None
    processing_time_ms: int
    requires_manual_review: bool
    raw_text: str = ""

    @classmethod
    def from_result(cls, result: ExtractionResult) -> "ExtractionResponse":
        fields: IdentityCardFieldsResponse | VehicleIdentifierFieldsResponse | None
        if isinstance(result.fields, IdentityCardFields):
            fields = IdentityCardFieldsResponse(
                name=result.fields.name,
                national_id=result.fields.national_id,
                address=result.fields.address,
                phone=result.fields.phone,
                birth_date=result.fields.birth_date,
                gender=result.fields.gender,
            )
        elif isinstance(result.fields, VehicleIdentifierFields):
            fields = VehicleIdentifierFieldsResponse(code=result.fields.code)
        else:
            fields = None

        return cls(
            success=result.success,
            document_type=result.document_type,
            fields=fields,
            confidence=result.confidence,
            error=result.error,
            error_kind=result.error_kind,
            processing_time_ms=result.processing_time_ms,
            requires_manual_review=not result.success,
            raw_text=result.raw_text,
        )


class DataUriExtractionRequest(BaseModel):
    """Request body for extraction from a base64 data URI."""

    image: str
    document_type: DocumentType


class CompositeExtractionResponse(BaseModel):
    """Per-document-type results read from one composite photo."""

    success: bool
    results: dict[DocumentType, ExtractionResponse]


class DocumentTypeInfo(BaseModel):
    """Information about a supported document type."""

    name: DocumentType
    description: str
    supported_fields: list[str]


class DocumentTypesResponse(BaseModel):
    """Response schema listing supported document types."""

    document_types: list[DocumentTypeInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    remote_ocr_enabled: bool
