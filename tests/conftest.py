"""Shared test fixtures for the webform Eloqua handler suite.

Provides raw Eloqua field definitions, a mocked forms service and a
sample webform.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from webform_eloqua.handler.models import Webform


@pytest.fixture(autouse=True)
def _restore_package_log_level() -> Iterator[None]:
    """Undo log levels applied by create_handler or configure_logging."""
    package_logger = logging.getLogger("webform_eloqua")
    level = package_logger.level
    yield
    package_logger.setLevel(level)


def _required() -> list[dict[str, Any]]:
    return [{"type": "FieldValidation", "condition": {"type": "IsRequiredCondition"}}]


@pytest.fixture
def raw_fields() -> list[dict[str, Any]]:
    """Raw field elements of Eloqua form 42, as returned by the REST API."""
    return [
        {"id": "101", "name": "First Name", "validations": _required()},
        {"id": "102", "name": "Email Address", "validations": _required()},
        {
            "id": "103",
            "name": "Company",
            "validations": [{"type": "FieldValidation", "condition": {"type": "TextLengthCondition"}}],
        },
        {"id": "104", "name": "Age"},
    ]


@pytest.fixture
def forms_service(raw_fields: list[dict[str, Any]]) -> AsyncMock:
    """Mocked Eloqua forms service knowing a single form, 42."""
    service = AsyncMock()
    service.get_forms.return_value = {
        "elements": [
            {"id": "42", "name": "Contact Us"},
            {"id": "7", "name": "Newsletter"},
        ]
    }
    service.get_form.return_value = {"id": "42", "name": "Contact Us"}
    service.get_fields_raw.return_value = raw_fields
    service.create_form_data.return_value = {"id": "9001", "type": "FormData"}
    return service


@pytest.fixture
def webform() -> Webform:
    return Webform(
        id="contact",
        label="Contact",
        elements={
            "first_name": {"title": "First name"},
            "email": {"title": "Email", "admin_title": "Email (admin)"},
            "age": {},
        },
        submission_fields={
            "sid": {"title": "Submission ID", "type": "integer"},
            "remote_addr": {"title": "", "type": "string"},
        },
    )
