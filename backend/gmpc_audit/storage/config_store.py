"""
Configuration store — persisted equipment registry and provider settings.

The audit core never touches persistence: the API layer loads a registry
snapshot and the provider settings here, builds an AuditRequestContext and
hands it to the orchestrator. Writes happen only when the user changes the
configuration.

Layers:
  KeyValueStore     protocol: load(key) -> value | None, save(key, value)
  JsonFileStore     one JSON document on disk, atomic replace on write
  ConfigRepository  typed access for the two keys, with factory defaults

Keys:
  equipment_profiles : list of EquipmentProfile objects (ids included)
  provider_settings  : ProviderSettings object (camelCase)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from gmpc_audit.core.config import settings
from gmpc_audit.llm.router import ProviderRouter
from gmpc_audit.models.defaults import default_registry
from gmpc_audit.models.equipment import EquipmentRegistry
from gmpc_audit.schemas.audit import Provider, ProviderSettings

logger = logging.getLogger(__name__)

EQUIPMENT_PROFILES_KEY = "equipment_profiles"
PROVIDER_SETTINGS_KEY  = "provider_settings"


class KeyValueStore(Protocol):
    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any) -> None: ...


class JsonFileStore:
    """
    Whole-file JSON key-value store.

    Every save rewrites the file through a temp file + os.replace, so a
    reader never sees a half-written document.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path or settings.config_store_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"config store {self._path} does not contain a JSON object")
        return data

    def load(self, key: str) -> Any | None:
        return self._read_all().get(key)

    def save(self, key: str, value: Any) -> None:
        try:
            data = self._read_all()
        except ValueError as exc:
            logger.warning("JsonFileStore | unreadable store replaced on save path=%s: %s", self._path, exc)
            data = {}
        data[key] = value

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("JsonFileStore | saved key=%s path=%s", key, self._path)


class ConfigRepository:
    """
    Typed configuration access with factory defaults.

    Usage::

        repo = ConfigRepository(JsonFileStore())
        registry = repo.load_registry()
        provider_settings = repo.load_provider_settings()
    """

    def __init__(self, store: KeyValueStore, router: ProviderRouter | None = None) -> None:
        self._store  = store
        self._router = router or ProviderRouter()

    def _load_raw(self, key: str) -> Any | None:
        try:
            return self._store.load(key)
        except ValueError as exc:
            logger.warning("ConfigRepository | config store unreadable, using defaults for %s: %s", key, exc)
            return None

    def load_registry(self) -> EquipmentRegistry:
        raw = self._load_raw(EQUIPMENT_PROFILES_KEY)
        if raw is None:
            return default_registry()
        try:
            return EquipmentRegistry.from_json(raw)
        except (ValidationError, TypeError) as exc:
            logger.warning("ConfigRepository | stored equipment profiles invalid, using defaults: %s", exc)
            return default_registry()

    def save_registry(self, registry: EquipmentRegistry) -> None:
        self._store.save(EQUIPMENT_PROFILES_KEY, registry.to_json())

    def reset_registry(self) -> EquipmentRegistry:
        registry = default_registry()
        self.save_registry(registry)
        return registry

    def load_provider_settings(self) -> ProviderSettings:
        raw = self._load_raw(PROVIDER_SETTINGS_KEY)
        if raw is None:
            return self._router.defaults_for(Provider(settings.default_provider))
        try:
            return ProviderSettings.model_validate(raw)
        except ValidationError as exc:
            logger.warning("ConfigRepository | stored provider settings invalid, using defaults: %s", exc)
            return self._router.defaults_for(Provider(settings.default_provider))

    def save_provider_settings(self, provider_settings: ProviderSettings) -> None:
        self._store.save(
            PROVIDER_SETTINGS_KEY,
            provider_settings.model_dump(mode="json", by_alias=True),
        )
