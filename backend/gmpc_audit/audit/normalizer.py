"""
Response Normalizer — recover an AuditResponse from a raw model reply.

Model replies are untrusted text. Even with a JSON response mode requested,
text-only providers sometimes wrap the object in a markdown fence or add
prose around it. Recovery, in order of preference:

  1. a ```json fenced block            → its inner content
  2. first "{" … last "}" inclusive     → that substring
  3. otherwise                          → text with stray fence markers removed

Step 2 is plain first/last bracket matching, not nesting-aware: braces in
prose outside the intended object can make it grab the wrong span. That
case then fails schema validation with ReportParseError rather than
producing a guessed report.

The candidate is decoded strictly into AuditResponse. Anything that fails
(bad JSON, missing field, bad enum, score outside 0–100) raises
ReportParseError carrying the untouched raw reply. No defaults are filled in.
"""

from __future__ import annotations

import logging
import re

from pydantic import ValidationError

from gmpc_audit.core.exceptions import ReportParseError
from gmpc_audit.schemas.audit import AuditResponse

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCE_MARKER_RE = re.compile(r"```json\n?|\n?```", re.IGNORECASE)

_LOG_EXCERPT_CHARS = 200


def extract_json_candidate(raw: str) -> str:
    """Apply the three recovery steps and return the text to decode."""
    fenced = _JSON_FENCE_RE.search(raw)
    if fenced:
        return fenced.group(1).strip()

    first_open = raw.find("{")
    last_close = raw.rfind("}")
    if first_open != -1 and last_close > first_open:
        return raw[first_open:last_close + 1]

    return _FENCE_MARKER_RE.sub("", raw).strip()


def normalize_reply(raw: str | None) -> AuditResponse:
    """
    Parse *raw* into an AuditResponse.

    Raises:
        ReportParseError: no valid report could be recovered.
    """
    raw = raw or ""
    candidate = extract_json_candidate(raw)

    try:
        return AuditResponse.model_validate_json(candidate)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()[:5]
        )
        logger.warning(
            "Normalizer | reply rejected | errors=%d first=%s excerpt=%r",
            exc.error_count(), problems, raw[:_LOG_EXCERPT_CHARS],
        )
        raise ReportParseError(
            f"model reply is not a valid audit report: {problems}",
            raw_reply=raw,
        ) from exc
