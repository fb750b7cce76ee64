"""Webform handler that posts submissions to an Eloqua form.

Wires the field catalog, mapping validator, configuration store and
submission relay for one handler instance attached to one webform. The
host renders ``ConfigurationForm`` and feeds the submitted values back
as ``ConfigurationFormValues``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from webform_eloqua.core.config import Settings, get_settings
from webform_eloqua.core.logging_config import configure_logging
from webform_eloqua.handler.catalog import (
    FieldCatalog,
    compute_destination_options,
    compute_source_options,
    list_local_fields,
)
from webform_eloqua.handler.models import (
    FieldMapping,
    FormsService,
    HandlerConfiguration,
    SubmissionState,
    Webform,
)
from webform_eloqua.handler.relay import SubmissionRelay, TokenReplacer
from webform_eloqua.handler.store import ConfigurationStore
from webform_eloqua.handler.validation import (
    ValidationResult,
    merge_mappings,
    unknown_field_errors,
    validate_mapping,
)
from webform_eloqua.integrations.eloqua import EloquaFormsService

logger = logging.getLogger(__name__)

FORM_NOT_FOUND_MESSAGE = "Could not find the Eloqua form with ID {id}"
CATALOG_UNAVAILABLE_MESSAGE = "Could not load the fields of Eloqua form {id}, try again later"


class ConfigurationFormValues(BaseModel):
    """Values submitted from the handler configuration form."""

    remote_form_id: str = ""
    default_mapping: FieldMapping = Field(default_factory=dict)
    user_mapping: FieldMapping = Field(default_factory=dict)

    def merged_mapping(self) -> FieldMapping:
        return merge_mappings(self.default_mapping, self.user_mapping)


@dataclass
class ConfigurationForm:
    """Everything the host needs to render the mapping UI."""

    form_options: dict[str, str]
    remote_form_id: str
    destination_options: list[tuple[str, str]] = field(default_factory=list)
    default_source_options: dict[str, str] = field(default_factory=dict)
    user_source_options: dict[str, str] = field(default_factory=dict)
    field_mapping: FieldMapping = field(default_factory=dict)


class WebformEloquaHandler:
    """Eloqua handler instance for a single webform."""

    def __init__(
        self,
        webform: Webform,
        handler_id: str,
        catalog: FieldCatalog,
        store: ConfigurationStore,
        relay: SubmissionRelay,
    ) -> None:
        self.webform = webform
        self.handler_id = handler_id
        self._catalog = catalog
        self._store = store
        self._relay = relay

    @staticmethod
    def default_configuration() -> HandlerConfiguration:
        return HandlerConfiguration()

    @property
    def configuration(self) -> HandlerConfiguration:
        """The stored configuration, reloaded on every access."""
        return self._store.load(self.webform.id, self.handler_id)

    async def build_configuration_form(self, remote_form_id: str | None = None) -> ConfigurationForm:
        """Collect the options for the configuration form.

        Args:
            remote_form_id: Form id chosen in the current (AJAX) form state.
                Falls back to the stored form id.
        """
        configuration = self.configuration
        selected = remote_form_id or configuration.remote_form_id

        destination_options: list[tuple[str, str]] = []
        if selected:
            remote_fields = await self._catalog.list_fields(selected)
            destination_options = compute_destination_options(remote_fields.values())

        return ConfigurationForm(
            form_options=await self._catalog.list_forms(),
            remote_form_id=selected,
            destination_options=destination_options,
            default_source_options=compute_source_options(
                list_local_fields(self.webform.submission_fields, {})
            ),
            user_source_options=compute_source_options(
                list_local_fields({}, self.webform.elements)
            ),
            field_mapping=dict(configuration.field_mapping),
        )

    async def validate_configuration(self, values: ConfigurationFormValues) -> ValidationResult:
        """Validate submitted configuration values.

        Besides the mapping rules, a chosen Eloqua form must exist and its
        field list must have been fetched; otherwise required fields
        cannot be checked and the save is refused.

        Required fields are checked on the merged mapping that gets saved.
        Unknown remote ids are reported for both groups, including default
        rows that a user row with the same key overrides.
        """
        form_id = values.remote_form_id
        if not form_id:
            return validate_mapping(form_id, values.merged_mapping(), {})

        remote_fields = await self._catalog.list_fields(form_id)
        if not self._catalog.is_available(form_id):
            result = ValidationResult()
            result.add_form_error(CATALOG_UNAVAILABLE_MESSAGE.format(id=form_id))
            return result

        result = validate_mapping(form_id, values.merged_mapping(), remote_fields)
        overridden = {k: v for k, v in values.default_mapping.items() if k in values.user_mapping}
        for local_key, message in unknown_field_errors(overridden, remote_fields).items():
            result.field_errors.setdefault(local_key, message)
        if not await self._catalog.get_form(form_id):
            result.add_form_error(FORM_NOT_FOUND_MESSAGE.format(id=form_id))
        return result

    async def submit_configuration(self, values: ConfigurationFormValues) -> ValidationResult:
        """Validate and, if valid, persist the submitted configuration."""
        result = await self.validate_configuration(values)
        if not result.is_valid:
            logger.info(
                "Eloqua handler %s on %s not saved: %s",
                self.handler_id, self.webform.id, "; ".join(result.messages),
            )
            return result

        configuration = HandlerConfiguration(
            remote_form_id=values.remote_form_id,
            field_mapping=values.merged_mapping(),
        )
        self._store.save(self.webform.id, self.handler_id, configuration)
        return result

    async def post_save(self, record: Mapping[str, Any], state: SubmissionState | str) -> bool:
        """Host callback after a submission was saved.

        Webforms with results disabled never store submissions, so every
        save is treated as a completed submission.
        """
        if self.webform.results_disabled:
            state = SubmissionState.COMPLETED
        return await self._relay.relay(state, record, self.configuration, self.webform.label)

    def detach(self) -> None:
        """Forget the stored configuration when the handler is removed."""
        if self._store.delete(self.webform.id, self.handler_id):
            logger.info("Removed Eloqua handler %s from %s", self.handler_id, self.webform.id)


def create_handler(
    webform: Webform,
    handler_id: str,
    store: ConfigurationStore,
    *,
    service: FormsService | None = None,
    settings: Settings | None = None,
    token_replacer: TokenReplacer | None = None,
    logger: logging.Logger | None = None,
) -> WebformEloquaHandler:
    """Build a handler with its collaborators.

    The forms service defaults to an ``EloquaFormsService`` configured from
    ``settings`` (or the process settings). The settings log level is
    applied to the package loggers.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    if service is None:
        service = EloquaFormsService.from_settings(settings)
    return WebformEloquaHandler(
        webform,
        handler_id,
        catalog=FieldCatalog(service, logger=logger),
        store=store,
        relay=SubmissionRelay(service, token_replacer=token_replacer, logger=logger),
    )
