"""Domain types shared by the catalog, validator, store and relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

# Local field key -> remote field id.
FieldMapping = dict[str, str]

UNMAPPED_VALUES: frozenset[str] = frozenset({"", "-"})


def is_unmapped(remote_field_id: str | None) -> bool:
    """Return True for the "no destination selected" sentinel values."""
    return remote_field_id is None or remote_field_id in UNMAPPED_VALUES


class SubmissionState(StrEnum):
    """Lifecycle state of a webform submission after its last save."""

    NEW = "unsaved"
    DRAFT = "draft"
    COMPLETED = "completed"
    UPDATED = "updated"
    CONVERTED = "converted"


@dataclass(frozen=True)
class RemoteField:
    """A field defined on an Eloqua form."""

    id: str
    name: str
    is_required: bool = False

    @property
    def label(self) -> str:
        """Option label, flagged with ``(*)`` when Eloqua requires the field."""
        return f"{self.name} (*)" if self.is_required else self.name


@dataclass(frozen=True)
class LocalField:
    """A submission value that can be mapped to a remote field."""

    key: str
    label: str


@dataclass
class Webform:
    """The webform a handler instance is attached to.

    Attributes:
        id: Webform machine name.
        label: Human readable title, used in log messages.
        elements: Flattened form elements that hold a value, keyed by element key.
        submission_fields: Submission base field definitions (sid, created, ...).
        results_disabled: True when the webform does not store submissions.
    """

    id: str
    label: str
    elements: dict[str, dict[str, Any]] = field(default_factory=dict)
    submission_fields: dict[str, dict[str, Any]] = field(default_factory=dict)
    results_disabled: bool = False


class HandlerConfiguration(BaseModel):
    """Persisted configuration of one handler instance."""

    remote_form_id: str = ""
    field_mapping: FieldMapping = Field(default_factory=dict)


@runtime_checkable
class FormsService(Protocol):
    """Outbound contract of the Eloqua forms API client.

    ``EloquaFormsService`` implements it over httpx; tests and hosts may
    pass any object with the same coroutines.
    """

    async def get_forms(self, order_by: str = "name") -> dict[str, Any]:
        """Return ``{"elements": [{id, name, ...}, ...]}``."""
        ...

    async def get_form(self, form_id: str) -> dict[str, Any] | None:
        """Return the form asset, or None if unknown."""
        ...

    async def get_fields_raw(self, form_id: str) -> list[dict[str, Any]] | None:
        """Return ``[{id, name, validations?}, ...]``, or None on failure."""
        ...

    async def create_form_data(self, form_id: str, form_data: dict[str, Any]) -> dict[str, Any] | None:
        """Create a form submission; falsy result means delivery failed."""
        ...
