"""
Document Processing Package
════════════════════════════

PDF → page-delimited plain text, for providers that cannot accept binary
attachments.

Modules
───────
  extractor.py  PyMuPDF text-layer extraction with page markers; rejects
                encrypted and scanned (no text layer) documents
"""

from gmpc_audit.processing.extractor import (
    ExtractionResult,
    PageText,
    PageTextSequence,
    PdfTextExtractor,
)

__all__ = [
    "ExtractionResult",
    "PageText",
    "PageTextSequence",
    "PdfTextExtractor",
]
