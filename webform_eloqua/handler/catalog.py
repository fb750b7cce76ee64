"""Field catalog: remote Eloqua forms/fields and local submission fields.

Remote lookups are cached for the lifetime of the catalog instance, which
is one configuration session of one handler. There is no time-based
expiry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from webform_eloqua.handler.models import FormsService, LocalField, RemoteField
from webform_eloqua.integrations.exceptions import ConnectorError

REQUIRED_CONDITION_TYPE = "IsRequiredCondition"

# ValueError covers response bodies that are not JSON.
FETCH_ERRORS = (ConnectorError, httpx.HTTPError, ValueError)


def parse_remote_field(raw: Mapping[str, Any]) -> RemoteField:
    """Build a RemoteField from a raw Eloqua field definition.

    A field is required when any of its validations carries an
    ``IsRequiredCondition``.
    """
    is_required = False
    for validation in raw.get("validations") or []:
        condition = validation.get("condition") or {}
        if condition.get("type") == REQUIRED_CONDITION_TYPE:
            is_required = True
    return RemoteField(id=str(raw["id"]), name=str(raw.get("name", "")), is_required=is_required)


def compute_destination_options(remote_fields: Iterable[RemoteField]) -> list[tuple[str, str]]:
    """Return ``(field id, label)`` options sorted alphabetically by label."""
    options = [(f.id, f.label) for f in remote_fields]
    return sorted(options, key=lambda option: option[1])


def list_local_fields(
    submission_fields: Mapping[str, Mapping[str, Any]],
    elements: Mapping[str, Mapping[str, Any]],
) -> list[LocalField]:
    """List the submission values available as mapping sources.

    Submission base fields come first, then the webform's own elements.
    An element replaces a base field with the same key.
    """
    fields: dict[str, LocalField] = {}
    for key, definition in submission_fields.items():
        fields[key] = LocalField(key=key, label=definition.get("title") or key)
    for key, element in elements.items():
        label = element.get("admin_title") or element.get("title") or key
        fields[key] = LocalField(key=key, label=label)
    return list(fields.values())


def compute_source_options(local_fields: Iterable[LocalField]) -> dict[str, str]:
    return {f.key: f.label for f in local_fields}


class FieldCatalog:
    """Read-through cache over the Eloqua forms service."""

    def __init__(self, service: FormsService, logger: logging.Logger | None = None) -> None:
        self._service = service
        self._logger = logger or logging.getLogger(__name__)
        self._forms: dict[str, str] | None = None
        self._fields: dict[str, dict[str, RemoteField]] = {}
        self._forms_by_id: dict[str, dict[str, Any]] = {}
        self._unavailable: set[str] = set()

    async def list_forms(self) -> dict[str, str]:
        """Return Eloqua forms as an ordered ``{id: name}`` dict, sorted by name."""
        if self._forms is not None:
            return self._forms

        forms: dict[str, str] = {}
        try:
            result = await self._service.get_forms(order_by="name")
        except FETCH_ERRORS as e:
            self._logger.warning("Could not list Eloqua forms: %s", e)
            result = None

        for form in (result or {}).get("elements") or []:
            forms[str(form["id"])] = form.get("name", "")

        self._forms = forms
        return forms

    async def list_fields(self, form_id: str) -> dict[str, RemoteField]:
        """Return the fields of an Eloqua form keyed by field id.

        A failed fetch yields an empty dict and marks the form as
        unavailable (see ``is_available``). Only successful fetches are
        cached, so the next call retries a failed one.
        """
        if form_id in self._fields:
            return self._fields[form_id]

        try:
            raw_fields = await self._service.get_fields_raw(form_id)
        except FETCH_ERRORS as e:
            self._logger.warning("Could not load fields for Eloqua form %s: %s", form_id, e)
            raw_fields = None

        if raw_fields is None:
            self._unavailable.add(form_id)
            return {}
        self._unavailable.discard(form_id)

        fields: dict[str, RemoteField] = {}
        for raw in raw_fields:
            remote_field = parse_remote_field(raw)
            fields[remote_field.id] = remote_field

        self._fields[form_id] = fields
        return fields

    async def get_form(self, form_id: str) -> dict[str, Any] | None:
        """Look up a form; a miss is not cached."""
        if form_id in self._forms_by_id:
            return self._forms_by_id[form_id]
        try:
            form = await self._service.get_form(form_id)
        except FETCH_ERRORS as e:
            self._logger.warning("Could not load Eloqua form %s: %s", form_id, e)
            return None
        if form:
            self._forms_by_id[form_id] = form
        return form

    def is_available(self, form_id: str) -> bool:
        """False if the last field fetch for ``form_id`` failed."""
        return form_id not in self._unavailable
