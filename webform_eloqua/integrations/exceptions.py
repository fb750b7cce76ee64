"""Exceptions raised by the Eloqua integration layer."""

from __future__ import annotations


class ConnectorError(Exception):
    """Base exception for connector errors."""


class AuthenticationError(ConnectorError):
    """Raised when no usable credentials are configured.

    Attributes:
        credential_field: The credential field that caused the failure.
        remediation_hint: Suggestion for fixing the issue.
    """

    def __init__(
        self,
        message: str,
        credential_field: str = "",
        remediation_hint: str = "",
    ) -> None:
        self.credential_field = credential_field
        self.remediation_hint = remediation_hint
        full_msg = message
        if credential_field:
            full_msg += f" (field: {credential_field})"
        if remediation_hint:
            full_msg += f". Hint: {remediation_hint}"
        super().__init__(full_msg)
