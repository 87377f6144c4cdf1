"""
Provider Router — maps ProviderSettings.provider to a Provider Client.

Each supported backend is described by a ProviderSpec:

  provider                 : the settings enum value
  factory                  : builds the ProviderClient
  default_model            : used when settings.model_name is empty
  default_base_url         : used when settings.base_url is empty (None = SDK default)
  allows_environment_key   : whether the process-level API_KEY may stand in for
                             an empty explicit key (native Gemini only)

Design principles:
  - The router is pure Python (no I/O) — selection is fast and testable.
  - The orchestrator never branches on the provider tag; it asks the router.

Adding a provider:
  Add a Provider enum value and a ProviderSpec to _REGISTERED_PROVIDERS
  (or call ProviderRouter.register at runtime).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from gmpc_audit.core.config import settings
from gmpc_audit.llm.base import ProviderClient
from gmpc_audit.llm.chat_completions import ChatCompletionsClient
from gmpc_audit.llm.gemini import GeminiClient
from gmpc_audit.schemas.audit import Provider, ProviderSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSpec:
    provider:               Provider
    factory:                Callable[[], ProviderClient]
    default_model:          str
    default_base_url:       str | None = None
    allows_environment_key: bool       = False


_REGISTERED_PROVIDERS: list[ProviderSpec] = [
    ProviderSpec(
        provider               = Provider.GOOGLE,
        factory                = GeminiClient,
        default_model          = settings.gemini_default_model,
        default_base_url       = None,
        allows_environment_key = True,
    ),
    ProviderSpec(
        provider               = Provider.DEEPSEEK,
        factory                = ChatCompletionsClient,
        default_model          = settings.deepseek_default_model,
        default_base_url       = settings.deepseek_base_url,
        allows_environment_key = False,
    ),
]


class ProviderRouter:
    """
    Usage::

        router = ProviderRouter()
        spec   = router.spec(settings.provider)
        client = router.build_client(settings.provider)
    """

    def __init__(self, specs: list[ProviderSpec] | None = None) -> None:
        self._specs: dict[Provider, ProviderSpec] = {
            s.provider: s for s in (specs if specs is not None else _REGISTERED_PROVIDERS)
        }

    def register(self, spec: ProviderSpec) -> None:
        self._specs[spec.provider] = spec

    def spec(self, provider: Provider) -> ProviderSpec:
        try:
            return self._specs[provider]
        except KeyError:
            raise ValueError(f"Unsupported provider: {provider}") from None

    def build_client(self, provider: Provider) -> ProviderClient:
        client = self.spec(provider).factory()
        logger.info("ProviderRouter | selected provider=%s client=%s", provider.value, type(client).__name__)
        return client

    def resolve_api_key(self, provider_settings: ProviderSettings, environment_key: str | None) -> str:
        """
        Explicit key wins; otherwise the environment default, but only for
        providers that allow it. Returns "" when nothing usable is available.
        """
        if provider_settings.api_key:
            return provider_settings.api_key
        if environment_key and self.spec(provider_settings.provider).allows_environment_key:
            return environment_key
        return ""

    def defaults_for(self, provider: Provider) -> ProviderSettings:
        """Fresh settings for *provider*: its default model and base URL, no key."""
        spec = self.spec(provider)
        return ProviderSettings(
            provider=provider,
            base_url=spec.default_base_url,
            model_name=spec.default_model,
        )
