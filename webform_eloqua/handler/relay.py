"""Submission relay: posts completed webform submissions to Eloqua.

Delivery is best effort and at most once. A failed post is logged and
never raised to the caller, and the host's submission save is not
affected.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from webform_eloqua.handler.models import FormsService, HandlerConfiguration, SubmissionState, is_unmapped
from webform_eloqua.integrations.exceptions import ConnectorError

FIELD_VALUE_TYPE = "FormField"
DELIVERY_FAILED_MESSAGE = "Could not create Eloqua Form submission"


class TokenReplacer(Protocol):
    """Replaces tokens in submission values (e.g. ``[webform_submission:sid]``)."""

    def replace(self, data: dict[str, Any], record: Mapping[str, Any]) -> dict[str, Any]: ...


class PassThroughTokenReplacer:
    """Token replacer for hosts without token support."""

    def replace(self, data: dict[str, Any], record: Mapping[str, Any]) -> dict[str, Any]:
        return data


def flatten_submission(record: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a structured submission into one key/value dict.

    Element values live under ``record["data"]``; everything else is
    submission metadata. Element values win on key collision.
    """
    metadata = {key: value for key, value in record.items() if key != "data"}
    element_data = record.get("data") or {}
    return {**metadata, **element_data}


def build_payload(mapping: Mapping[str, str], data: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Build the Eloqua ``fieldValues`` list in mapping order.

    Unmapped entries are skipped. A mapped key missing from ``data``
    is sent with a None value.
    """
    return [
        {"type": FIELD_VALUE_TYPE, "id": remote_field_id, "value": data.get(local_key)}
        for local_key, remote_field_id in mapping.items()
        if not is_unmapped(remote_field_id)
    ]


class SubmissionRelay:
    """Relays completed submissions to an Eloqua form."""

    def __init__(
        self,
        service: FormsService,
        token_replacer: TokenReplacer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._service = service
        self._token_replacer = token_replacer or PassThroughTokenReplacer()
        self._logger = logger or logging.getLogger(__name__)

    async def relay(
        self,
        state: SubmissionState | str,
        record: Mapping[str, Any],
        configuration: HandlerConfiguration,
        form_label: str,
    ) -> bool:
        """Post a submission to Eloqua if it has just been completed.

        Args:
            state: Submission state after the last save.
            record: Structured submission, element values under ``"data"``.
            configuration: The handler's stored configuration.
            form_label: Webform label used in the failure log entry.

        Returns:
            True if Eloqua accepted the submission, False otherwise
            (including when nothing was sent).
        """
        if state != SubmissionState.COMPLETED:
            return False

        form_id = configuration.remote_form_id
        if not form_id:
            self._logger.warning("%s webform has no Eloqua form configured, submission not posted", form_label)
            return False

        data = self._token_replacer.replace(flatten_submission(record), record)
        form_data = {"fieldValues": build_payload(configuration.field_mapping, data)}

        try:
            submission = await self._service.create_form_data(form_id, form_data)
        except (ConnectorError, httpx.HTTPError, ValueError) as e:
            self._logger.debug("Eloqua client raised during form data post: %s", e)
            submission = None

        if not submission:
            self._logger.error(
                "%s webform remote post to Eloqua failed. %s",
                form_label, DELIVERY_FAILED_MESSAGE,
            )
            return False

        self._logger.info("%s webform submission posted to Eloqua form %s", form_label, form_id)
        return True
