"""Abstract base connector for external system integrations.

Provides the interface and connection lifecycle management shared by
the Eloqua forms service and any other connector plugged into a handler.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ConnectionConfig:
    """Configuration for a connector connection.

    Attributes:
        base_url: The base URL for the external API.
        api_key: Optional API key or bearer token for authentication.
        extra: Additional configuration parameters.
    """

    base_url: str = ""
    api_key: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class BaseConnector(abc.ABC):
    """Abstract base class for integration connectors.

    Subclasses must implement:
    - description: Class-level string describing the connector.
    - test_connection(): Verify connectivity.
    """

    description: str = "Base connector"

    def __init__(self, config: ConnectionConfig) -> None:
        self._config = config

    @abc.abstractmethod
    async def test_connection(self) -> bool:
        """Test connectivity to the external system.

        Returns:
            True if the connection is successful.
        """
        ...
