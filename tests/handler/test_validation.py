"""Tests for mapping validation (webform_eloqua.handler.validation)."""

from __future__ import annotations

import pytest

from webform_eloqua.handler.models import RemoteField
from webform_eloqua.handler.validation import (
    ValidationResult,
    merge_mappings,
    unknown_field_errors,
    validate_mapping,
)


@pytest.fixture
def remote_fields() -> dict[str, RemoteField]:
    return {
        "101": RemoteField("101", "First Name", is_required=True),
        "102": RemoteField("102", "Email Address", is_required=True),
        "103": RemoteField("103", "Company"),
    }


class TestValidateMapping:
    """Tests for validate_mapping()."""

    def test_complete_mapping_is_valid(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("42", {"first_name": "101", "email": "102", "company": "103"}, remote_fields)
        assert result.is_valid
        assert result.messages == []

    def test_no_form_selected_always_passes(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("", {"first_name": "does-not-exist"}, remote_fields)
        assert result.is_valid

    def test_unknown_field_is_row_error(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("42", {"first_name": "101", "email": "102", "age": "999"}, remote_fields)

        assert not result.is_valid
        assert result.field_errors == {"age": "Could not find field in Eloqua with the specified ID 999"}
        assert result.form_errors == []

    def test_missing_required_is_single_aggregate_error(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("42", {"company": "103"}, remote_fields)

        assert result.field_errors == {}
        assert result.form_errors == ["The following fields are required in Eloqua: First Name, Email Address"]

    @pytest.mark.parametrize("sentinel", ["", "-"])
    def test_unmapped_sentinel_is_ignored(self, remote_fields: dict[str, RemoteField], sentinel: str) -> None:
        result = validate_mapping("42", {"first_name": "101", "email": "102", "age": sentinel}, remote_fields)
        assert result.is_valid

    def test_sentinel_does_not_satisfy_required(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("42", {"first_name": "101", "email": "-"}, remote_fields)
        assert result.form_errors == ["The following fields are required in Eloqua: Email Address"]

    def test_required_mapped_twice_counts_once(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("42", {"a": "101", "b": "101", "c": "102"}, remote_fields)
        assert result.is_valid

    def test_empty_catalog_with_empty_mapping_passes(self) -> None:
        assert validate_mapping("42", {}, {}).is_valid

    def test_empty_catalog_rejects_any_mapped_value(self) -> None:
        result = validate_mapping("42", {"email": "102"}, {})
        assert list(result.field_errors) == ["email"]

    def test_both_error_kinds_reported_together(self, remote_fields: dict[str, RemoteField]) -> None:
        result = validate_mapping("42", {"first_name": "101", "age": "999"}, remote_fields)
        assert list(result.field_errors) == ["age"]
        assert len(result.form_errors) == 1
        assert len(result.messages) == 2


class TestValidationResult:
    """Tests for the ValidationResult container."""

    def test_empty_result_is_valid(self) -> None:
        assert ValidationResult().is_valid

    def test_form_error_invalidates(self) -> None:
        result = ValidationResult()
        result.add_form_error("boom")
        assert not result.is_valid
        assert result.messages == ["boom"]


class TestMergeMappings:
    """Tests for merge_mappings()."""

    def test_user_entries_win(self) -> None:
        merged = merge_mappings({"sid": "1", "uid": "2"}, {"uid": "3", "email": "4"})
        assert merged == {"sid": "1", "uid": "3", "email": "4"}

    def test_inputs_untouched(self) -> None:
        default = {"sid": "1"}
        merge_mappings(default, {"sid": "2"})
        assert default == {"sid": "1"}


class TestUnknownFieldErrors:
    """Tests for unknown_field_errors()."""

    def test_reports_only_unknown_ids(self, remote_fields: dict[str, RemoteField]) -> None:
        errors = unknown_field_errors({"email": "102", "age": "999", "sid": "-", "ip": ""}, remote_fields)
        assert errors == {"age": "Could not find field in Eloqua with the specified ID 999"}

    def test_ignores_required_fields(self, remote_fields: dict[str, RemoteField]) -> None:
        assert unknown_field_errors({}, remote_fields) == {}
