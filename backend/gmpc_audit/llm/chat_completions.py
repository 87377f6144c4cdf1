"""
Chat-completions client — text-only variant (DeepSeek and compatible APIs).

The backend cannot take binary attachments, so every attached PDF is first
run through the PDF text extractor and inlined after the task prompt:

    <task prompt>

    [File 1: production record content]
    --- Page 1 ---
    ...

    [File 2: filing content]
    --- Page 1 ---
    ...

Then ONE POST to ``{base_url}/chat/completions``::

    Authorization: Bearer <api_key>
    {"model": ..., "messages": [system, user], "stream": false,
     "response_format": {"type": "json_object"}}

All extraction happens before the request is sent — an unreadable PDF fails
the call with ExtractionError and no network traffic. Non-2xx responses raise
ProviderError carrying the status code and the response body verbatim (the
body is what explains quota/auth failures).
"""

from __future__ import annotations

import logging
import time

import httpx

from gmpc_audit.core.config import settings
from gmpc_audit.core.exceptions import ProviderError, ProviderErrorKind
from gmpc_audit.llm.base import ProviderClient
from gmpc_audit.processing.extractor import PdfTextExtractor
from gmpc_audit.schemas.audit import AuditRequestContext

logger = logging.getLogger(__name__)

_SECTION_LABELS: dict[str, str] = {
    "production": "[File 1: production record content]",
    "filing":     "[File 2: filing content]",
}


class ChatCompletionsClient(ProviderClient):
    """
    Usage::

        client = ChatCompletionsClient()
        raw = await client.complete(context, api_key, instruction, task_prompt)

    Tests inject ``transport`` (e.g. ``httpx.MockTransport``) to fake the API.
    """

    def __init__(
        self,
        extractor:       PdfTextExtractor | None = None,
        transport:       httpx.AsyncBaseTransport | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._extractor = extractor or PdfTextExtractor()
        self._transport = transport
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.llm_timeout_seconds

    @property
    def provider_name(self) -> str:
        return "deepseek"

    @staticmethod
    def endpoint(base_url: str | None) -> str:
        base = (base_url or settings.deepseek_base_url).rstrip("/")
        return f"{base}/chat/completions"

    async def build_user_content(self, context: AuditRequestContext, task_prompt: str) -> str:
        """Task prompt followed by the extracted text of every attached file."""
        content = task_prompt + "\n\n"
        for role, payload in context.attachments():
            extracted = await self._extractor.extract(payload)
            content += f"{_SECTION_LABELS[role]}\n{extracted.text}\n\n"
        return content

    async def _complete(
        self,
        context:     AuditRequestContext,
        api_key:     str,
        instruction: str,
        task_prompt: str,
    ) -> str:
        user_content = await self.build_user_content(context, task_prompt)

        url = self.endpoint(context.settings.base_url)
        model = context.settings.model_name or settings.deepseek_default_model
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": instruction},
                {"role": "user",   "content": user_content},
            ],
            "stream": False,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Content-Type":  "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as http:
                response = await http.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderError(
                f"{self.provider_name} request timed out after {self._timeout:.0f}s",
                provider=self.provider_name,
                kind=ProviderErrorKind.TIMEOUT,
            ) from exc
        except httpx.RequestError as exc:
            raise ProviderError(
                f"{self.provider_name} request failed before receiving a response: {exc}",
                provider=self.provider_name,
                kind=ProviderErrorKind.NETWORK,
            ) from exc

        latency_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            "ChatCompletionsClient | url=%s model=%s status=%d latency_ms=%.1f",
            url, model, response.status_code, latency_ms,
        )

        if not response.is_success:
            raise ProviderError(
                f"{self.provider_name} API error ({response.status_code}): {response.text}",
                provider=self.provider_name,
                kind=ProviderErrorKind.HTTP,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError(
                f"{self.provider_name} response did not contain choices[0].message.content",
                provider=self.provider_name,
                kind=ProviderErrorKind.INVALID_RESPONSE,
                status_code=response.status_code,
                body=response.text,
            ) from exc
