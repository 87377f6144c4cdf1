"""
Audit pipeline error taxonomy.

Every failure of one audit call surfaces as exactly one of four kinds.
None of them is retried inside the pipeline and none of them leaves state
behind: the caller decides whether to present a message or re-run the
whole audit.

  PreconditionError  — no input document/text, or no usable credential.
                       Raised before any I/O.
  ExtractionError    — PDF is unreadable, encrypted or has no text layer
                       (text-only provider path only).
  ProviderError      — remote model call failed: non-2xx, timeout,
                       transport failure, or an unusable envelope.
  ReportParseError   — the reply could not be recovered into AuditResponse.
"""

from __future__ import annotations

from enum import Enum


class AuditError(Exception):
    """Base class — carries a stable machine code and a user-facing message."""

    error_code: str = "AUDIT_ERROR"
    user_message: str = "The audit could not be completed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class PreconditionError(AuditError):
    error_code = "PRECONDITION_FAILED"
    user_message = "Upload a production record PDF or load the demo text, and configure an API key."


class ExtractionError(AuditError):
    error_code = "EXTRACTION_FAILED"
    user_message = (
        "PDF text extraction failed: the file may be encrypted or a scan without a "
        "text layer. The text-only provider needs a PDF with selectable text; "
        "re-try with a text-layer PDF."
    )

    def __init__(self, message: str | None = None, page_number: int | None = None) -> None:
        super().__init__(message)
        self.page_number = page_number


class ProviderErrorKind(str, Enum):
    HTTP             = "http"               # non-2xx / API error status
    TIMEOUT          = "timeout"
    NETWORK          = "network"            # connection / transport failure
    INVALID_RESPONSE = "invalid_response"   # 2xx but unusable envelope


class ProviderError(AuditError):
    error_code = "PROVIDER_ERROR"
    user_message = "The AI provider request failed. Check the API key, quota and network, then retry."

    def __init__(
        self,
        message:     str,
        provider:    str,
        kind:        ProviderErrorKind = ProviderErrorKind.HTTP,
        status_code: int | None = None,
        body:        str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider    = provider
        self.kind        = kind
        self.status_code = status_code
        self.body        = body

    @property
    def is_timeout(self) -> bool:
        return self.kind == ProviderErrorKind.TIMEOUT


class ReportParseError(AuditError):
    error_code = "REPORT_PARSE_ERROR"
    user_message = "The AI reply could not be parsed into an audit report. Please retry."

    def __init__(self, message: str, raw_reply: str) -> None:
        super().__init__(message)
        self.raw_reply = raw_reply
