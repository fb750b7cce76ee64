"""Mapping validation against an Eloqua form's field catalog.

Checks run when a handler configuration is saved. Errors are returned as
data so the host can attach them to the offending form rows; nothing
here raises.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from webform_eloqua.handler.models import FieldMapping, RemoteField, is_unmapped

logger = logging.getLogger(__name__)

UNKNOWN_FIELD_MESSAGE = "Could not find field in Eloqua with the specified ID {id}"
MISSING_REQUIRED_MESSAGE = "The following fields are required in Eloqua: {fields}"


@dataclass
class ValidationResult:
    """Outcome of validating a candidate mapping.

    Attributes:
        field_errors: Row level errors keyed by local field key.
        form_errors: Errors that apply to the configuration as a whole.
    """

    field_errors: dict[str, str] = field(default_factory=dict)
    form_errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.field_errors and not self.form_errors

    def add_form_error(self, message: str) -> None:
        self.form_errors.append(message)

    @property
    def messages(self) -> list[str]:
        """All error messages, row errors first."""
        return [*self.field_errors.values(), *self.form_errors]


def merge_mappings(default: Mapping[str, str], user: Mapping[str, str]) -> FieldMapping:
    """Merge the submission-field and element mapping groups.

    Element (user) entries win when both groups map the same key.
    """
    return {**default, **user}


def unknown_field_errors(
    mapping: Mapping[str, str],
    remote_fields: Mapping[str, RemoteField],
) -> dict[str, str]:
    """Row errors for mapped remote ids missing from ``remote_fields``."""
    return {
        local_key: UNKNOWN_FIELD_MESSAGE.format(id=remote_field_id)
        for local_key, remote_field_id in mapping.items()
        if not is_unmapped(remote_field_id) and remote_field_id not in remote_fields
    }


def validate_mapping(
    remote_form_id: str,
    mapping: Mapping[str, str],
    remote_fields: Mapping[str, RemoteField],
) -> ValidationResult:
    """Validate a candidate mapping for ``remote_form_id``.

    Every mapped remote field id must exist in ``remote_fields`` and every
    required remote field must be the destination of some local field.
    With no remote form selected there is nothing to check yet.

    Args:
        remote_form_id: The selected Eloqua form id, "" if none.
        mapping: Local field key -> remote field id (or an unmapped sentinel).
        remote_fields: The form's fields keyed by id.

    Returns:
        ValidationResult with one row error per unknown destination and at
        most one aggregate error listing the missing required fields.
    """
    result = ValidationResult()
    if not remote_form_id:
        return result

    result.field_errors.update(unknown_field_errors(mapping, remote_fields))
    mapped_ids = {
        remote_field_id for remote_field_id in mapping.values()
        if not is_unmapped(remote_field_id) and remote_field_id in remote_fields
    }

    missing = [f.name for f in remote_fields.values() if f.is_required and f.id not in mapped_ids]
    if missing:
        result.add_form_error(MISSING_REQUIRED_MESSAGE.format(fields=", ".join(missing)))

    if not result.is_valid:
        logger.debug(
            "Mapping for Eloqua form %s rejected: %d unknown, %d required missing",
            remote_form_id, len(result.field_errors), len(missing),
        )
    return result

