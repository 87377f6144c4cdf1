"""
LLM Provider Package

Provider-agnostic access to the two audit backends:
  - Google Gemini    (native multimodal — PDFs attached as binary parts)
  - DeepSeek         (OpenAI-style chat completions — PDFs sent as extracted text)

Public API::

    from gmpc_audit.llm import ProviderRouter

    router = ProviderRouter()
    client = router.build_client(provider_settings.provider)
    raw    = await client.complete(context, api_key, instruction, task_prompt)
"""

from gmpc_audit.llm.base import ProviderClient
from gmpc_audit.llm.chat_completions import ChatCompletionsClient
from gmpc_audit.llm.gemini import GeminiClient
from gmpc_audit.llm.router import ProviderRouter, ProviderSpec

__all__ = [
    "ProviderClient",
    "ChatCompletionsClient",
    "GeminiClient",
    "ProviderRouter",
    "ProviderSpec",
]
