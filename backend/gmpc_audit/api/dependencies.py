"""
FastAPI dependencies shared by the v1 routers.

Both are plain factories so tests can swap them through
``app.dependency_overrides``:

    app.dependency_overrides[get_config_repository] = lambda: repo
    app.dependency_overrides[get_orchestrator]      = lambda: orchestrator
"""

from __future__ import annotations

from gmpc_audit.audit.orchestrator import AuditOrchestrator
from gmpc_audit.storage.config_store import ConfigRepository, JsonFileStore


def get_config_repository() -> ConfigRepository:
    return ConfigRepository(JsonFileStore())


def get_orchestrator() -> AuditOrchestrator:
    return AuditOrchestrator()
