"""
Provider Client interface.

Every LLM backend exposes one coroutine::

    raw_reply = await client.complete(context, api_key, instruction, task_prompt)

and returns the backend's raw textual reply. Parsing is NOT the client's job —
the Response Normalizer owns that. Clients raise:

  PreconditionError  empty api_key (checked before any I/O)
  ExtractionError    text-only variant could not read an attached PDF
  ProviderError      remote failure of any kind (status, timeout, transport)

The orchestrator depends only on this interface; adding a provider means
adding a subclass and registering it in ``gmpc_audit.llm.router``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from gmpc_audit.core.exceptions import PreconditionError
from gmpc_audit.schemas.audit import AuditRequestContext


class ProviderClient(ABC):

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name for logging and error attribution."""

    @property
    def accepts_binary_attachments(self) -> bool:
        """True for native-multimodal backends that take PDFs as-is."""
        return False

    async def complete(
        self,
        context:     AuditRequestContext,
        api_key:     str,
        instruction: str,
        task_prompt: str,
    ) -> str:
        if not api_key:
            raise PreconditionError(f"{self.provider_name}: an API key is required")
        return await self._complete(context, api_key, instruction, task_prompt)

    @abstractmethod
    async def _complete(
        self,
        context:     AuditRequestContext,
        api_key:     str,
        instruction: str,
        task_prompt: str,
    ) -> str:
        """Perform exactly one remote call and return the reply text."""
