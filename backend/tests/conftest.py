"""
Root conftest.py — Shared fixtures for ALL tests (unit + integration)

Fixture hierarchy:
  session-scoped  : text_pdf_bytes, encrypted_pdf_bytes, blank_pdf_bytes
  function-scoped : registry, provider settings, contexts, fake provider
                    client + router, config repository, async_client

Environment strategy:
  - No test talks to a real LLM: the native-multimodal path gets a fake
    genai client, the chat-completions path an httpx.MockTransport.
  - PDFs are generated in-process with PyMuPDF, so extraction tests exercise
    the real text layer / encryption handling.
  - The configuration store is a JsonFileStore under pytest's tmp_path.

How to run:
  pytest                          # all tests
  pytest -m unit                  # unit tests only (fast, no I/O)
  pytest -m integration           # API tests through the FastAPI stack
  pytest backend/tests/unit/test_normalizer.py
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient

# ─────────────────────────────────────────────────────────────────────────────
# Patch settings BEFORE any app imports so modules read test config
# ─────────────────────────────────────────────────────────────────────────────

os.environ.setdefault("APP_ENV",             "development")
os.environ.setdefault("DEBUG",               "true")
os.environ.setdefault("API_KEY",             "")
os.environ.setdefault("DEFAULT_PROVIDER",    "google")
os.environ.setdefault("LLM_TIMEOUT_SECONDS", "5")
os.environ.setdefault(
    "CONFIG_STORE_PATH",
    os.path.join(tempfile.gettempdir(), f"gmpc_audit_test_{os.getpid()}.json"),
)


# ─────────────────────────────────────────────────────────────────────────────
# PDF payloads (generated with PyMuPDF)
# ─────────────────────────────────────────────────────────────────────────────

PRODUCTION_PAGES = (
    "Semi-finished product batch batching sheet\n"
    "Formula no.: 202067   Planned quantity: 3000kg\n"
    "YZ001 Oil A 30.00 900.00",
    "Production process record\n"
    "Production equipment code: FMA130\n"
    "Homogenizer speed 2000rpm",
)


def _build_pdf(pages: tuple[str, ...], **save_options) -> bytes:
    import fitz

    doc = fitz.open()
    try:
        for text in pages:
            page = doc.new_page()
            if text:
                page.insert_text((72, 72), text, fontsize=11)
        return doc.tobytes(**save_options)
    finally:
        doc.close()


@pytest.fixture(scope="session")
def text_pdf_bytes() -> bytes:
    """Two-page PDF with a real text layer."""
    return _build_pdf(PRODUCTION_PAGES)


@pytest.fixture(scope="session")
def filing_pdf_bytes() -> bytes:
    return _build_pdf(("Filing record\nOil A 30.00%\nEmulsifying temperature 80-85 C",))


@pytest.fixture(scope="session")
def encrypted_pdf_bytes() -> bytes:
    """Password-protected PDF — opening it requires the user password."""
    import fitz

    return _build_pdf(
        PRODUCTION_PAGES,
        encryption=fitz.PDF_ENCRYPT_AES_256,
        owner_pw="owner-secret",
        user_pw="user-secret",
    )


@pytest.fixture(scope="session")
def blank_pdf_bytes() -> bytes:
    """Pages without any text layer, like a scanned image."""
    return _build_pdf(("", ""))


# ─────────────────────────────────────────────────────────────────────────────
# Domain fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def registry():
    from gmpc_audit.models.defaults import default_registry
    return default_registry()


@pytest.fixture
def google_settings():
    from gmpc_audit.schemas.audit import Provider, ProviderSettings
    return ProviderSettings(provider=Provider.GOOGLE, model_name="gemini-test", api_key="g-key-1234")


@pytest.fixture
def deepseek_settings():
    from gmpc_audit.schemas.audit import Provider, ProviderSettings
    return ProviderSettings(
        provider=Provider.DEEPSEEK,
        base_url="https://llm.example.test/v1/",
        model_name="deepseek-test",
        api_key="sk-test-5678",
    )


@pytest.fixture
def make_context(registry, google_settings, text_pdf_bytes):
    """
    Factory fixture: build an AuditRequestContext.

    Usage:
        ctx = make_context()                               # production PDF only
        ctx = make_context(filing_file=b"%PDF...")
        ctx = make_context(production_file=None, demo_text="...")
    """
    from gmpc_audit.schemas.audit import AuditRequestContext

    _unset = object()

    def _build(
        production_file=_unset,
        filing_file=None,
        demo_text=None,
        settings=None,
        equipment=None,
    ):
        return AuditRequestContext(
            production_file=text_pdf_bytes if production_file is _unset else production_file,
            filing_file=filing_file,
            demo_text=demo_text,
            equipment=equipment if equipment is not None else registry,
            settings=settings or google_settings,
        )

    return _build


@pytest.fixture
def valid_reply_payload() -> dict:
    return {
        "summary": "Batching sheet totals 100%; homogenizer speed exceeds the FMA130 limit.",
        "detectedEquipment": "FMA130",
        "complianceScore": 72,
        "gmpcNotes": "Record exact stirring times (GMPC Art. 47).",
        "issues": [
            {
                "type": "error",
                "category": "equipment",
                "title": "Homogenizer speed above limit",
                "description": "Set 2000 rpm; FMA130 allows 0-1500 rpm.",
                "location": "Process step 3.2",
            },
            {
                "type": "warning",
                "category": "process",
                "title": "Vague wording",
                "description": "'appropriate time' is not a defined duration.",
            },
        ],
    }


@pytest.fixture
def valid_reply(valid_reply_payload) -> str:
    return json.dumps(valid_reply_payload)


# ─────────────────────────────────────────────────────────────────────────────
# Fake provider client + router
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def fake_client(valid_reply):
    """
    ProviderClient that records every call instead of touching the network.
    Set ``.reply`` or ``.error`` per test; ``call_count`` counts remote calls.
    """
    from gmpc_audit.llm.base import ProviderClient

    class _Fake(ProviderClient):
        def __init__(self) -> None:
            self.reply = valid_reply
            self.error: Exception | None = None
            self.calls: list[dict] = []

        @property
        def provider_name(self) -> str:
            return "fake"

        async def _complete(self, context, api_key, instruction, task_prompt):
            self.calls.append({
                "context":     context,
                "api_key":     api_key,
                "instruction": instruction,
                "task_prompt": task_prompt,
            })
            if self.error is not None:
                raise self.error
            return self.reply

        @property
        def call_count(self) -> int:
            return len(self.calls)

    return _Fake()


@pytest.fixture
def fake_router(fake_client):
    """ProviderRouter whose two providers both resolve to fake_client."""
    from gmpc_audit.llm.router import ProviderRouter, ProviderSpec
    from gmpc_audit.schemas.audit import Provider

    return ProviderRouter(specs=[
        ProviderSpec(
            provider=Provider.GOOGLE,
            factory=lambda: fake_client,
            default_model="gemini-test",
            allows_environment_key=True,
        ),
        ProviderSpec(
            provider=Provider.DEEPSEEK,
            factory=lambda: fake_client,
            default_model="deepseek-test",
            default_base_url="https://llm.example.test/v1",
            allows_environment_key=False,
        ),
    ])


# ─────────────────────────────────────────────────────────────────────────────
# Configuration store
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def config_repo(tmp_path):
    from gmpc_audit.storage.config_store import ConfigRepository, JsonFileStore
    return ConfigRepository(JsonFileStore(tmp_path / "config.json"))


# ─────────────────────────────────────────────────────────────────────────────
# FastAPI test client with dependency overrides
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def app_with_overrides(config_repo, fake_router):
    """
    FastAPI app with ALL external dependencies overridden:
      - get_config_repository → tmp_path JsonFileStore
      - get_orchestrator      → AuditOrchestrator over fake_router

    No test reaches a real LLM or the real config file.
    """
    from gmpc_audit.api.dependencies import get_config_repository, get_orchestrator
    from gmpc_audit.audit.orchestrator import AuditOrchestrator
    from gmpc_audit.main import app

    app.dependency_overrides[get_config_repository] = lambda: config_repo
    app.dependency_overrides[get_orchestrator]      = lambda: AuditOrchestrator(router=fake_router)

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app_with_overrides) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client using the overridden app."""
    from httpx import ASGITransport
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
