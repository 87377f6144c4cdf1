"""
Audit API Router
POST /api/v1/audits

Request (multipart/form-data):
  production_file : PDF — production record (batching sheet + process record)
  filing_file     : PDF — regulatory filing record (optional)
  demo_text       : plain-text fallback document (optional)
  use_demo        : "true" to audit the built-in demo documents

Request lifecycle:
  ┌─────────────────────────────────────────────────────────┐
  │ 1. Read uploads (size ceiling + %PDF magic bytes)        │
  │ 2. Load equipment registry snapshot + provider settings  │
  │ 3. Build AuditRequestContext                             │
  │ 4. AuditOrchestrator.run()  — one provider call          │
  │ 5. 200 + AuditResponse (camelCase JSON)                  │
  └─────────────────────────────────────────────────────────┘

Pipeline errors (PreconditionError, ExtractionError, ProviderError,
ReportParseError) are not caught here; the app-level handler maps them to
structured ErrorResponse bodies.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from gmpc_audit.api.dependencies import get_config_repository, get_orchestrator
from gmpc_audit.audit.orchestrator import AuditOrchestrator
from gmpc_audit.core.config import settings
from gmpc_audit.models.defaults import demo_text as builtin_demo_text
from gmpc_audit.schemas.audit import AuditRequestContext, AuditResponse
from gmpc_audit.schemas.errors import AuditErrors, ErrorResponse
from gmpc_audit.storage.config_store import ConfigRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/audits",
    tags=["Audit"],
)

PDF_MAGIC = b"%PDF"


class _RejectedUpload(Exception):
    def __init__(self, status_code: int, body: ErrorResponse) -> None:
        super().__init__(body.message)
        self.status_code = status_code
        self.body = body


async def _read_pdf(upload: UploadFile | None, field: str) -> bytes | None:
    """Read an optional PDF upload; None when the field is absent or empty."""
    if upload is None:
        return None

    data = await upload.read(settings.max_upload_bytes + 1)
    if not data:
        return None
    if len(data) > settings.max_upload_bytes:
        raise _RejectedUpload(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            AuditErrors.file_too_large(field, len(data), settings.max_upload_bytes),
        )
    if not data.startswith(PDF_MAGIC):
        raise _RejectedUpload(
            status.HTTP_400_BAD_REQUEST,
            AuditErrors.not_a_pdf(field, upload.filename or "upload"),
        )
    return data


@router.post(
    "",
    response_model=AuditResponse,
    summary="Audit a production record (optionally against a filing record)",
    responses={
        200: {"model": AuditResponse, "description": "Structured audit report"},
        400: {"model": ErrorResponse, "description": "No input document, no API key, or not a PDF"},
        413: {"model": ErrorResponse, "description": "File exceeds the upload limit"},
        422: {"model": ErrorResponse, "description": "PDF has no readable text layer"},
        502: {"model": ErrorResponse, "description": "Provider failure or unparseable reply"},
        504: {"model": ErrorResponse, "description": "Provider timed out"},
    },
)
async def run_audit(
    production_file: Optional[UploadFile] = File(None, description="Production record PDF"),
    filing_file:     Optional[UploadFile] = File(None, description="Regulatory filing PDF (optional)"),
    demo_text:       Optional[str]        = Form(None, description="Plain-text fallback document"),
    use_demo:        bool                 = Form(False, description="Audit the built-in demo documents"),
    repo:            ConfigRepository     = Depends(get_config_repository),
    orchestrator:    AuditOrchestrator    = Depends(get_orchestrator),
):
    try:
        production_bytes = await _read_pdf(production_file, "production_file")
        filing_bytes     = await _read_pdf(filing_file, "filing_file")
    except _RejectedUpload as rejected:
        return JSONResponse(
            status_code=rejected.status_code,
            content=rejected.body.model_dump(mode="json"),
        )

    fallback_text = demo_text or (builtin_demo_text() if use_demo else None)

    # configuration snapshot; the whole call reads only this copy
    context = AuditRequestContext(
        production_file=production_bytes,
        filing_file=filing_bytes,
        demo_text=fallback_text,
        equipment=repo.load_registry(),
        settings=repo.load_provider_settings(),
    )

    logger.info(
        "Audit request | provider=%s production=%s filing=%s demo_text=%s profiles=%d",
        context.settings.provider.value,
        context.has_production_file, context.has_filing_file,
        bool(fallback_text), len(context.equipment),
    )

    report = await orchestrator.run(context, environment_default_key=settings.api_key)
    return report
