"""FastAPI application exposing the extraction pipeline.

Extraction failures are returned as ``success=false`` bodies, never as
server errors, so clients can always fall back to manual entry.
"""

import shutil
from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from docscan import __version__
from docscan.extraction.pipeline import ExtractionPipeline
from docscan.models import DocumentType, RawImage
from docscan.utils.config import AppConfig, load_config
from docscan.utils.logger import get_logger

from .schemas import (
    CompositeExtractionResponse,
    DataUriExtractionRequest,
    DocumentTypeInfo,
    DocumentTypesResponse,
    ExtractionResponse,
    HealthResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Document Scan API",
    description=(
        "Extract fields from identity cards, motor fingerprints "
        "and chassis numbers"
    ),
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_config: AppConfig | None = None


def configure(config: AppConfig | None) -> None:
    """Serve with ``config`` instead of the default configuration file.

    Passing ``None`` goes back to loading ``configs/config.yaml``.
    """
    global _config
    _config = config
    _get_pipeline.cache_clear()


def _get_config() -> AppConfig:
    return _config if _config is not None else load_config()


@lru_cache(maxsize=1)
def _get_pipeline() -> ExtractionPipeline:
    """Build the shared extraction pipeline on first use."""
    return ExtractionPipeline(_get_config())


_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/tiff",
    "image/bmp",
    "application/octet-stream",
}


async def _read_upload(file: UploadFile) -> RawImage:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )
    content = await file.read()
    return RawImage(data=content, mime_type=file.content_type or "image/jpeg")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    config = _get_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
        remote_ocr_enabled=config.recognition.remote.enabled,
    )


@app.get("/document-types", response_model=DocumentTypesResponse)
async def list_document_types() -> DocumentTypesResponse:
    """List supported document types and the fields read from each."""
    return DocumentTypesResponse(
        document_types=[
            DocumentTypeInfo(
                name=DocumentType.IDENTITY_CARD,
                description="National identity card",
                supported_fields=[
                    "name",
                    "national_id",
                    "address",
                    "phone",
                    "birth_date",
                    "gender",
                ],
            ),
            DocumentTypeInfo(
                name=DocumentType.MOTOR_FINGERPRINT,
                description="Engraved motor fingerprint plate",
                supported_fields=["code"],
            ),
            DocumentTypeInfo(
                name=DocumentType.CHASSIS_NUMBER,
                description="Chassis / VIN plate",
                supported_fields=["code"],
            ),
        ]
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
    document_type: Annotated[DocumentType, Query()],
) -> ExtractionResponse:
    """Extract fields from an uploaded photo.

    Args:
        file: Uploaded image (PNG, JPEG, WebP, TIFF or BMP).
        document_type: Kind of document shown in the photo.

    Returns:
        Extraction result, successful or not.
    """
    raw = await _read_upload(file)
    result = await run_in_threadpool(_get_pipeline().extract, raw, document_type)
    return ExtractionResponse.from_result(result)


@app.post("/extract/data-uri", response_model=ExtractionResponse)
async def extract_data_uri(request: DataUriExtractionRequest) -> ExtractionResponse:
    """Extract fields from a base64 data URI, as sent by camera capture."""
    result = await run_in_threadpool(
        _get_pipeline().extract, request.image, request.document_type
    )
    return ExtractionResponse.from_result(result)


@app.post("/extract/composite", response_model=CompositeExtractionResponse)
async def extract_composite(
    file: Annotated[UploadFile, File(...)],
) -> CompositeExtractionResponse:
    """Read every document type from one photo showing several documents."""
    raw = await _read_upload(file)
    results = await run_in_threadpool(_get_pipeline().extract_composite, raw)
    responses = {dt: ExtractionResponse.from_result(r) for dt, r in results.items()}
    return CompositeExtractionResponse(
        success=any(r.success for r in responses.values()),
        results=responses,
    )
