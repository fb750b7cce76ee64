"""Eloqua forms service.

Talks to the Eloqua REST 2.0 API to list forms, read a form's field
definitions and post form submissions. Authentication is either an
OAuth bearer token or HTTP Basic with the ``site\\user`` login Eloqua
expects.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from webform_eloqua.core.config import Settings
from webform_eloqua.integrations.base import BaseConnector, ConnectionConfig
from webform_eloqua.integrations.exceptions import AuthenticationError
from webform_eloqua.integrations.utils import DEFAULT_TIMEOUT, paginate_pages, retry_request

logger = logging.getLogger(__name__)

API_PREFIX = "/api/REST/2.0"


class EloquaFormsService(BaseConnector):
    """Connector for Eloqua form assets and form data."""

    description = "Eloqua - Form assets, form fields and form submissions"

    def __init__(self, config: ConnectionConfig) -> None:
        super().__init__(config)
        self._base_url = (config.base_url or config.extra.get("base_url", "")).rstrip("/")
        self._access_token = config.api_key or config.extra.get("access_token", "")
        self._site_name = config.extra.get("site_name", "")
        self._username = config.extra.get("username", "")
        self._password = config.extra.get("password", "")
        self._timeout = float(config.extra.get("timeout", DEFAULT_TIMEOUT))
        self._read_retries = int(config.extra.get("read_retries", 2))
        self._page_size = int(config.extra.get("page_size", 100))

    @classmethod
    def from_settings(cls, settings: Settings) -> EloquaFormsService:
        """Build a service from application settings."""
        config = ConnectionConfig(
            base_url=settings.eloqua_base_url,
            api_key=settings.eloqua_access_token.get_secret_value() or None,
            extra={
                "site_name": settings.eloqua_site_name,
                "username": settings.eloqua_username,
                "password": settings.eloqua_password.get_secret_value(),
                "timeout": settings.eloqua_timeout_seconds,
                "read_retries": settings.eloqua_read_retries,
                "page_size": settings.eloqua_forms_page_size,
            },
        )
        return cls(config)

    def _url(self, path: str) -> str:
        return f"{self._base_url}{API_PREFIX}{path}"

    def _headers(self) -> dict[str, str]:
        """Build request headers.

        Raises:
            AuthenticationError: If neither a token nor Basic credentials are set.
        """
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
            return headers

        if not self._site_name or not self._username or not self._password:
            raise AuthenticationError(
                "No Eloqua credentials configured",
                credential_field="eloqua_access_token",
                remediation_hint="Set ELOQUA_ACCESS_TOKEN or ELOQUA_SITE_NAME, ELOQUA_USERNAME and ELOQUA_PASSWORD",
            )
        login = f"{self._site_name}\\{self._username}"
        token = base64.b64encode(f"{login}:{self._password}".encode()).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any] | None:
        """Decode a JSON object body; None for an empty or non-object body.

        Raises:
            ValueError: If the body is not JSON (e.g. an HTML error page from a proxy).
        """
        if not response.content:
            return None
        data = response.json()
        return data if isinstance(data, dict) and data else None

    async def test_connection(self) -> bool:
        """Test connectivity to the Eloqua REST API."""
        if not self._base_url:
            logger.warning("Eloqua connector: missing base_url")
            return False

        headers = self._headers()
        try:
            async with self._client() as client:
                response = await retry_request(
                    client,
                    "GET",
                    self._url("/assets/forms"),
                    params={"count": 1},
                    headers=headers,
                    max_retries=1,
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Eloqua connection test failed: %s", e)
            return False

    async def get_forms(self, order_by: str = "name") -> dict[str, Any]:
        """List all form assets.

        Args:
            order_by: Form attribute to sort by.

        Returns:
            Dict with an ``elements`` list of ``{id, name, ...}`` form dicts.
            The list is empty when the API call fails.
        """
        headers = self._headers()
        elements: list[dict[str, Any]] = []

        try:
            async with self._client() as client:
                async for page in paginate_pages(
                    client,
                    self._url("/assets/forms"),
                    params={"orderBy": order_by, "depth": "minimal"},
                    headers=headers,
                    page_size=self._page_size,
                    max_retries=self._read_retries,
                ):
                    elements.extend(page)
        except httpx.HTTPError as e:
            logger.warning("Eloqua form listing failed: %s", e)
            return {"elements": []}
        except ValueError as e:
            logger.warning("Eloqua form listing returned a non-JSON body: %s", e)
            return {"elements": []}

        return {"elements": elements}

    async def get_form(self, form_id: str, depth: str = "minimal") -> dict[str, Any] | None:
        """Load a single form asset, or None if it could not be loaded."""
        headers = self._headers()
        try:
            async with self._client() as client:
                response = await retry_request(
                    client,
                    "GET",
                    self._url(f"/assets/form/{form_id}"),
                    params={"depth": depth},
                    headers=headers,
                    max_retries=self._read_retries,
                )
                return self._json_object(response)
        except httpx.HTTPStatusError as e:
            logger.warning("Eloqua form %s lookup returned %d", form_id, e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning("Eloqua form %s lookup failed: %s", form_id, e)
        except ValueError as e:
            logger.warning("Eloqua form %s lookup returned a non-JSON body: %s", form_id, e)
        return None

    async def get_fields_raw(self, form_id: str) -> list[dict[str, Any]] | None:
        """Return the raw field definitions (``elements``) of a form.

        Returns:
            The list of field dicts, or None when the form could not be loaded.
        """
        form = await self.get_form(form_id, depth="complete")
        if form is None:
            return None
        return list(form.get("elements") or [])

    async def create_form_data(self, form_id: str, form_data: dict[str, Any]) -> dict[str, Any] | None:
        """Post one form submission.

        The request is sent exactly once. A failed post is logged as a
        warning and reported as None; the caller owns the error entry.

        Args:
            form_id: The Eloqua form id.
            form_data: Body of the form data request (``{"fieldValues": [...]}``).

        Returns:
            The created submission, or None on failure.
        """
        headers = self._headers()
        try:
            async with self._client() as client:
                response = await retry_request(
                    client,
                    "POST",
                    self._url(f"/data/form/{form_id}"),
                    json=form_data,
                    headers=headers,
                    max_retries=0,
                )
                return self._json_object(response)
        except httpx.HTTPStatusError as e:
            logger.warning("Eloqua form data post to form %s returned %d", form_id, e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning("Eloqua form data post to form %s failed: %s", form_id, e)
        except ValueError as e:
            logger.warning("Eloqua form data post to form %s returned a non-JSON body: %s", form_id, e)
        return None
