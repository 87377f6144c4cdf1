"""
Structured error bodies for the HTTP boundary.

Every 4xx/5xx response uses the same envelope so the UI can branch on
``error_code`` and show ``message`` to the user. Audit pipeline errors are
mapped here, in one place:

  PreconditionError   → 400 PRECONDITION_FAILED
  ExtractionError     → 422 EXTRACTION_FAILED
  ProviderError       → 502 PROVIDER_ERROR   (504 when it was a timeout)
  ReportParseError    → 502 REPORT_PARSE_ERROR
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from gmpc_audit.core.exceptions import (
    AuditError,
    ExtractionError,
    PreconditionError,
    ProviderError,
    ReportParseError,
)

# Raw provider bodies / replies can be large; the exception keeps all of it
MAX_DIAGNOSTIC_CHARS: int = 2_000


class ErrorDetail(BaseModel):
    """Single structured error — may appear in a list."""
    field:   str | None = Field(None, description="Request field that caused the error, if applicable")
    message: str
    code:    str         = Field(..., description="Machine-readable error code for client handling")


class ErrorResponse(BaseModel):
    """
    Uniform error envelope for all 4xx/5xx responses.
    Clients should check `error_code` for programmatic handling.
    """
    error_code: str               = Field(..., description="Stable machine-readable code")
    message:    str               = Field(..., description="Human-readable summary")
    details:    list[ErrorDetail] = Field(default_factory=list)
    request_id: str | None        = Field(None, description="Trace ID for log correlation")


def _truncate(text: str) -> str:
    if len(text) <= MAX_DIAGNOSTIC_CHARS:
        return text
    return text[:MAX_DIAGNOSTIC_CHARS] + "…"


class AuditErrors:
    """Factories for every documented error case."""

    @staticmethod
    def status_for(exc: AuditError) -> int:
        if isinstance(exc, PreconditionError):
            return 400
        if isinstance(exc, ExtractionError):
            return 422
        if isinstance(exc, ProviderError):
            return 504 if exc.is_timeout else 502
        if isinstance(exc, ReportParseError):
            return 502
        return 500

    @staticmethod
    def from_audit_error(exc: AuditError, request_id: str | None = None) -> ErrorResponse:
        details: list[ErrorDetail] = [
            ErrorDetail(field=None, message=exc.message, code=exc.error_code)
        ]
        if isinstance(exc, ProviderError):
            status_part = f"HTTP {exc.status_code}" if exc.status_code is not None else exc.kind.value
            message = f"{exc.provider} {status_part}"
            if exc.body:
                message += f": {_truncate(exc.body)}"
            details.append(ErrorDetail(
                field="provider",
                message=message,
                code=f"PROVIDER_{exc.kind.value.upper()}",
            ))
        elif isinstance(exc, ReportParseError):
            details.append(ErrorDetail(
                field="raw_reply",
                message=_truncate(exc.raw_reply),
                code="RAW_REPLY",
            ))
        elif isinstance(exc, ExtractionError) and exc.page_number is not None:
            details.append(ErrorDetail(
                field="page",
                message=f"extraction failed on page {exc.page_number}",
                code="PAGE_EXTRACTION_FAILED",
            ))

        return ErrorResponse(
            error_code=exc.error_code,
            message=exc.user_message,
            details=details,
            request_id=request_id,
        )

    @staticmethod
    def validation_failed(errors: list[dict], request_id: str | None = None) -> ErrorResponse:
        """Flatten pydantic error dicts (``loc``/``msg``) into the envelope."""
        return ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="The request body or form fields are invalid.",
            details=[
                ErrorDetail(
                    field=".".join(str(part) for part in err.get("loc", ())) or None,
                    message=err.get("msg", "invalid value"),
                    code="VALIDATION_ERROR",
                )
                for err in errors
            ],
            request_id=request_id,
        )

    @staticmethod
    def not_a_pdf(field: str, filename: str) -> ErrorResponse:
        return ErrorResponse(
            error_code="UNSUPPORTED_FILE_TYPE",
            message="Only PDF files are accepted.",
            details=[
                ErrorDetail(
                    field=field,
                    message=f"'{filename}' is not a PDF (missing %PDF header).",
                    code="UNSUPPORTED_FILE_TYPE",
                )
            ],
        )

    @staticmethod
    def file_too_large(field: str, size_bytes: int, limit_bytes: int) -> ErrorResponse:
        return ErrorResponse(
            error_code="FILE_TOO_LARGE",
            message=f"Uploaded file exceeds the {limit_bytes // (1024 * 1024)} MB limit.",
            details=[
                ErrorDetail(
                    field=field,
                    message=f"Received {size_bytes:,} bytes; limit is {limit_bytes:,} bytes.",
                    code="FILE_TOO_LARGE",
                )
            ],
        )

    @staticmethod
    def internal_error(request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="An unexpected error occurred.",
            details=[],
            request_id=request_id,
        )
