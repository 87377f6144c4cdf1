"""
PDF Text Extraction — text-layer reader for text-only providers
═══════════════════════════════════════════════════════════════

Providers that cannot take binary attachments receive the documents as
plain text instead. This module turns a PDF payload into page-delimited text:

    --- Page 1 ---
    <page 1 text>
    --- Page 2 ---
    <page 2 text>

The page markers stay in the output so the model can cite locations.

Strategy: PyMuPDF (fitz) native text layer only. There is no
OCR fallback here — a scanned document is rejected with ExtractionError so
the caller can ask for a text-layer PDF.

Failure policy:
  - encrypted (password-protected) document        → ExtractionError
  - corrupt / non-PDF payload                      → ExtractionError
  - any single page fails to extract               → ExtractionError for the
                                                     whole document, no
                                                     partial text returned
  - average chars/page below threshold (scanned)   → ExtractionError
No retries: a failed extraction fails the audit call.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from gmpc_audit.core.config import settings
from gmpc_audit.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)

PAGE_MARKER = "--- Page {number} ---"


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageText:
    """
    page_number : 1-based page index
    text        : stripped text-layer content (may be empty)
    """
    page_number: int
    text:        str

    def render(self) -> str:
        return f"{PAGE_MARKER.format(number=self.page_number)}\n{self.text}"


@dataclass(frozen=True)
class ExtractionResult:
    """
    pages       : every page in document order
    total_chars : sum of len(page.text)
    elapsed_ms  : wall time of the extraction (ms)
    """
    pages:       tuple[PageText, ...]
    total_chars: int
    elapsed_ms:  float = 0.0

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def avg_chars_per_page(self) -> float:
        if not self.pages:
            return 0.0
        return self.total_chars / len(self.pages)

    @property
    def text(self) -> str:
        """All pages joined, each prefixed with its page marker."""
        return "\n".join(p.render() for p in self.pages)


# ---------------------------------------------------------------------------
# Lazy page sequence
# ---------------------------------------------------------------------------

@contextmanager
def _open_pdf(pdf_bytes: bytes):
    import fitz  # PyMuPDF; imported here to avoid module-level import cost

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as exc:
        raise ExtractionError(f"PDF could not be opened: {exc}") from exc

    try:
        if doc.needs_pass:
            raise ExtractionError("PDF is encrypted (password required)")
        yield doc
    finally:
        doc.close()


class PageTextSequence:
    """
    Lazy, finite, restartable sequence of page texts.

    Nothing is parsed until iteration starts; each new iteration re-opens the
    document from the original bytes, so the sequence can be walked any number
    of times. A page that fails to extract raises ExtractionError mid-iteration.
    """

    def __init__(self, pdf_bytes: bytes) -> None:
        self._pdf_bytes = pdf_bytes

    def __iter__(self) -> Iterator[PageText]:
        with _open_pdf(self._pdf_bytes) as doc:
            for page_number, page in enumerate(doc, start=1):
                try:
                    raw = page.get_text("text") or ""
                except Exception as exc:
                    raise ExtractionError(
                        f"text extraction failed on page {page_number}: {exc}",
                        page_number=page_number,
                    ) from exc
                yield PageText(page_number=page_number, text=raw.strip())

    def render(self) -> str:
        return "\n".join(p.render() for p in self)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class PdfTextExtractor:
    """
    Stateless text-layer extractor.

    Usage::

        extractor = PdfTextExtractor()
        result = await extractor.extract(pdf_bytes)
        prompt_section = result.text

    Thread-safety: every call opens an independent fitz document — safe for
    concurrent audits.
    """

    def __init__(self, min_chars_per_page: float | None = None) -> None:
        self._min_chars_per_page = (
            settings.pdf_min_chars_per_page
            if min_chars_per_page is None
            else min_chars_per_page
        )

    def pages(self, pdf_bytes: bytes) -> PageTextSequence:
        return PageTextSequence(pdf_bytes)

    async def extract(self, pdf_bytes: bytes) -> ExtractionResult:
        """Extract all pages off the event loop; raises ExtractionError."""
        if not pdf_bytes:
            raise ExtractionError("PDF payload is empty")

        loop = asyncio.get_running_loop()
        t0 = time.monotonic()
        result = await loop.run_in_executor(None, self._extract_sync, pdf_bytes)
        elapsed_ms = (time.monotonic() - t0) * 1000

        logger.info(
            "Extraction | strategy=pymupdf pages=%d total_chars=%d "
            "avg_chars_per_page=%.0f elapsed_ms=%.0f",
            result.page_count, result.total_chars,
            result.avg_chars_per_page, elapsed_ms,
        )
        return ExtractionResult(
            pages=result.pages,
            total_chars=result.total_chars,
            elapsed_ms=elapsed_ms,
        )

    def _extract_sync(self, pdf_bytes: bytes) -> ExtractionResult:
        """Blocking extraction — runs in thread executor."""
        pages = tuple(self.pages(pdf_bytes))
        result = ExtractionResult(
            pages=pages,
            total_chars=sum(len(p.text) for p in pages),
        )

        if not pages:
            raise ExtractionError("PDF has no pages")

        if result.avg_chars_per_page < self._min_chars_per_page:
            logger.warning(
                "Extraction | no usable text layer | pages=%d total_chars=%d",
                result.page_count, result.total_chars,
            )
            raise ExtractionError(
                "PDF has no text layer (scanned image?); a text-layer PDF is required"
            )
        return result
