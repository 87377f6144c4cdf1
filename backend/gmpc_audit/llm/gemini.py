"""
Gemini client — native multimodal variant.

The production record and (optionally) the filing record are attached as
``application/pdf`` parts, in that order, followed by the task prompt as a
text part. The system instruction travels in the generation config together
with ``response_mime_type="application/json"``.

Uses the google-genai SDK async surface (``client.aio``). The call is bounded
by ``llm_timeout_seconds``; a timeout surfaces as ProviderError(kind=timeout).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from gmpc_audit.core.config import settings
from gmpc_audit.core.exceptions import ProviderError, ProviderErrorKind
from gmpc_audit.llm.base import ProviderClient
from gmpc_audit.schemas.audit import AuditRequestContext

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

ClientFactory = Callable[[str, str | None], Any]


def _default_client_factory(api_key: str, base_url: str | None) -> genai.Client:
    http_options = types.HttpOptions(base_url=base_url) if base_url else None
    return genai.Client(api_key=api_key, http_options=http_options)


class GeminiClient(ProviderClient):
    """
    Usage::

        client = GeminiClient()
        raw = await client.complete(context, api_key, instruction, task_prompt)

    ``client_factory(api_key, base_url)`` builds the SDK client per call so the
    key and base URL always come from the settings of that call.
    """

    def __init__(
        self,
        client_factory:  ClientFactory | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client_factory = client_factory or _default_client_factory
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.llm_timeout_seconds

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def accepts_binary_attachments(self) -> bool:
        return True

    @staticmethod
    def build_parts(context: AuditRequestContext, task_prompt: str) -> list[types.Part]:
        parts = [
            types.Part.from_bytes(data=payload, mime_type=PDF_MIME_TYPE)
            for _, payload in context.attachments()
        ]
        parts.append(types.Part.from_text(text=task_prompt))
        return parts

    async def _complete(
        self,
        context:     AuditRequestContext,
        api_key:     str,
        instruction: str,
        task_prompt: str,
    ) -> str:
        model = context.settings.model_name or settings.gemini_default_model
        client = self._client_factory(api_key, context.settings.base_url or None)
        parts = self.build_parts(context, task_prompt)

        t0 = time.perf_counter()
        try:
            response = await self._generate(client, model, parts, instruction)
        finally:
            await client.aio.aclose()

        latency_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            "GeminiClient | model=%s attachments=%d latency_ms=%.1f",
            model, len(parts) - 1, latency_ms,
        )
        return response.text or ""

    async def _generate(self, client: genai.Client, model: str, parts: list, instruction: str):
        try:
            return await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=model,
                    contents=types.Content(role="user", parts=parts),
                    config=types.GenerateContentConfig(
                        system_instruction=instruction,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError(
                f"Gemini request timed out after {self._timeout:.0f}s",
                provider=self.provider_name,
                kind=ProviderErrorKind.TIMEOUT,
            ) from exc
        except genai_errors.APIError as exc:
            raise ProviderError(
                f"Gemini API error ({exc.code}): {exc.message}",
                provider=self.provider_name,
                kind=ProviderErrorKind.HTTP,
                status_code=exc.code,
                body=str(exc.details) if exc.details is not None else exc.message,
            ) from exc
        except httpx.TimeoutException as exc:
            raise ProviderError(
                "Gemini request timed out",
                provider=self.provider_name,
                kind=ProviderErrorKind.TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"Gemini request failed before receiving a response: {exc}",
                provider=self.provider_name,
                kind=ProviderErrorKind.NETWORK,
            ) from exc
