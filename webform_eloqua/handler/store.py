"""Persistence of handler configurations.

Configurations are stored as JSON blobs in a key/value backend. The
in-memory dict mirrors the key pattern
``webform:handler:{webform_id}:{handler_id}`` a host store would use.
Saves overwrite unconditionally; concurrent editors get last-write-wins.

Older handler revisions stored the mapping under different keys. Those
blobs are converted on load by ``migrate_legacy_configuration``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from webform_eloqua.handler.models import FieldMapping, HandlerConfiguration, is_unmapped

logger = logging.getLogger(__name__)

CANONICAL_KEYS = frozenset(HandlerConfiguration.model_fields)


class ConfigurationStoreError(ValueError):
    """Raised when a stored configuration cannot be decoded."""


def migrate_legacy_configuration(raw: Mapping[str, Any]) -> HandlerConfiguration:
    """Convert a stored configuration in any historical shape.

    Supported shapes:

    - canonical: ``{"remote_form_id", "field_mapping"}``
    - structured: ``{"eloqua_form_id", "eloqua_field_mapping"}``
    - oldest: ``{"eloqua_formid", "eloqua_field_ids"}`` where the mapping
      is a JSON-serialized string, plus flat ``{remote_field_id: local_key}``
      entries keyed by numeric Eloqua field ids.

    Unmapped sentinel entries are dropped from migrated mappings.
    """
    if set(raw) <= CANONICAL_KEYS:
        return HandlerConfiguration.model_validate(raw)

    if "eloqua_form_id" in raw or "eloqua_field_mapping" in raw:
        structured = raw.get("eloqua_field_mapping") or {}
        return HandlerConfiguration(
            remote_form_id=str(raw.get("eloqua_form_id") or ""),
            field_mapping=_drop_unmapped(structured),
        )

    mapping: dict[str, Any] = {}
    blob = raw.get("eloqua_field_ids")
    if isinstance(blob, str) and blob:
        try:
            decoded = json.loads(blob)
        except json.JSONDecodeError as e:
            raise ConfigurationStoreError(f"Unreadable eloqua_field_ids blob: {e}") from e
        if not isinstance(decoded, dict):
            raise ConfigurationStoreError("eloqua_field_ids must decode to a mapping")
        mapping.update(decoded)
    elif isinstance(blob, Mapping):
        mapping.update(blob)

    # Flat per-field entries point the other way: remote field id -> local key.
    for key, local_key in raw.items():
        if str(key).isdigit() and isinstance(local_key, str) and local_key:
            mapping[local_key] = str(key)

    return HandlerConfiguration(
        remote_form_id=str(raw.get("eloqua_formid") or ""),
        field_mapping=_drop_unmapped(mapping),
    )


def _drop_unmapped(mapping: Mapping[str, Any]) -> FieldMapping:
    return {str(k): str(v) for k, v in mapping.items() if not is_unmapped(v)}


class ConfigurationStore:
    """Store for handler configurations, one entry per (webform, handler)."""

    def __init__(self, backend: dict[str, str] | None = None) -> None:
        self._store: dict[str, str] = backend if backend is not None else {}

    @staticmethod
    def _key(webform_id: str, handler_id: str) -> str:
        return f"webform:handler:{webform_id}:{handler_id}"

    def load(self, webform_id: str, handler_id: str) -> HandlerConfiguration:
        """Load a configuration, or the defaults if none is stored.

        Raises:
            ConfigurationStoreError: If the stored blob cannot be decoded.
        """
        key = self._key(webform_id, handler_id)
        blob = self._store.get(key)
        if blob is None:
            return HandlerConfiguration()

        try:
            raw = json.loads(blob)
        except json.JSONDecodeError as e:
            raise ConfigurationStoreError(f"Stored configuration {key} is not valid JSON") from e
        if not isinstance(raw, dict):
            raise ConfigurationStoreError(f"Stored configuration {key} is not a mapping")

        try:
            return migrate_legacy_configuration(raw)
        except ValidationError as e:
            raise ConfigurationStoreError(f"Stored configuration {key} is invalid: {e}") from e

    def save(self, webform_id: str, handler_id: str, configuration: HandlerConfiguration) -> None:
        """Persist a configuration, replacing any existing one."""
        key = self._key(webform_id, handler_id)
        self._store[key] = configuration.model_dump_json()
        logger.info(
            "Saved Eloqua handler configuration %s (form %s, %d mapped fields)",
            key, configuration.remote_form_id or "-", len(configuration.field_mapping),
        )

    def delete(self, webform_id: str, handler_id: str) -> bool:
        """Remove a configuration. Returns True if one was stored."""
        return self._store.pop(self._key(webform_id, handler_id), None) is not None
