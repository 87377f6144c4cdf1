"""
Configuration API Router

  GET  /api/v1/equipment          current equipment registry (ids included)
  PUT  /api/v1/equipment          replace the registry (validated: min ≤ max,
                                  non-blank code/name)
  POST /api/v1/equipment/reset    restore the factory registry
  GET  /api/v1/settings           provider settings, API key masked
  PUT  /api/v1/settings           update provider settings
  GET  /api/v1/demo               demo documents as plain text

Provider switch rule (PUT /settings): when the provider changes and the
request leaves model_name / base_url empty, the new provider's defaults are
filled in. A masked key ("****abcd") sent back unchanged keeps the stored key.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from gmpc_audit.api.dependencies import get_config_repository
from gmpc_audit.llm.router import ProviderRouter
from gmpc_audit.models.defaults import demo_text
from gmpc_audit.models.equipment import EquipmentProfile, EquipmentRegistry
from gmpc_audit.schemas.audit import ProviderSettings
from gmpc_audit.storage.config_store import ConfigRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Configuration"])

_MASK_PREFIX = "****"


@router.get("/equipment", response_model=list[EquipmentProfile], summary="List equipment profiles")
async def list_equipment(repo: ConfigRepository = Depends(get_config_repository)):
    return list(repo.load_registry())


@router.put("/equipment", response_model=list[EquipmentProfile], summary="Replace equipment profiles")
async def replace_equipment(
    profiles: list[EquipmentProfile],
    repo:     ConfigRepository = Depends(get_config_repository),
):
    registry = EquipmentRegistry(profiles)
    repo.save_registry(registry)
    logger.info("Configuration | equipment registry saved | profiles=%d", len(registry))
    return list(registry)


@router.post("/equipment/reset", response_model=list[EquipmentProfile], summary="Restore default equipment")
async def reset_equipment(repo: ConfigRepository = Depends(get_config_repository)):
    registry = repo.reset_registry()
    logger.info("Configuration | equipment registry reset to defaults")
    return list(registry)


@router.get("/settings", response_model=ProviderSettings, summary="Get provider settings")
async def get_provider_settings(repo: ConfigRepository = Depends(get_config_repository)):
    return repo.load_provider_settings().masked()


@router.put("/settings", response_model=ProviderSettings, summary="Update provider settings")
async def update_provider_settings(
    update: ProviderSettings,
    repo:   ConfigRepository = Depends(get_config_repository),
):
    current = repo.load_provider_settings()

    changes: dict = {}
    if update.provider != current.provider:
        defaults = ProviderRouter().defaults_for(update.provider)
        if not update.model_name:
            changes["model_name"] = defaults.model_name
        if not update.base_url:
            changes["base_url"] = defaults.base_url
    if update.api_key and update.api_key.startswith(_MASK_PREFIX):
        changes["api_key"] = current.api_key

    new_settings = update.model_copy(update=changes) if changes else update
    repo.save_provider_settings(new_settings)
    logger.info(
        "Configuration | provider settings saved | provider=%s model=%s base_url=%s key_set=%s",
        new_settings.provider.value, new_settings.model_name,
        new_settings.base_url or "-", bool(new_settings.api_key),
    )
    return new_settings.masked()


@router.get("/demo", summary="Demo documents (batching sheet + process record)")
async def get_demo_text() -> dict:
    return {"text": demo_text()}
