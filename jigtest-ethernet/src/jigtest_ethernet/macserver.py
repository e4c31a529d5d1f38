"""HTTP client for the factory MAC allocation service.

The service hands out one UUID per request, keyed by device model, whose node
field is a fresh MAC address from the manufacturer's block:

    GET /mac/m1s  ->  {"uuid": "6a1b2c3d-4e5f-6071-8293-001e06a1b2c3", "model": "m1s"}
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from jigtest_core.errors import ProvisioningError

logger = logging.getLogger(__name__)

DEFAULT_MAC_SERVER_URL = "http://192.168.20.45:8080"
DEFAULT_MODEL = "m1s"


class MacAllocation(BaseModel):
    """Allocation service response."""

    uuid: str = Field(..., min_length=36, max_length=36)
    model: str | None = None


class MacServerClient:
    """Synchronous HTTP client for the MAC allocation service.

    Example:
        >>> with MacServerClient("http://192.168.20.45:8080") as client:
        ...     uuid = client.request_uuid("m1s")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_MAC_SERVER_URL,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the allocation client.

        Args:
            base_url: Base URL of the allocation service.
            timeout: Request timeout in seconds.
            client: Optional httpx client (for testing).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        """Return the service base URL."""
        return self._base_url

    def __enter__(self) -> "MacServerClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self._base_url, timeout=self._timeout)
        return self._client

    def request_uuid(self, model: str) -> str:
        """Allocate a UUID for one unit.

        Args:
            model: Device model identifier.

        Returns:
            The allocated UUID text.

        Raises:
            ProvisioningError: If the service cannot be reached, answers with
                an error status or returns a malformed body.
        """
        client = self._get_client()
        try:
            response = client.get(f"/mac/{model}")
            response.raise_for_status()
            allocation = MacAllocation.model_validate(response.json())
        except httpx.HTTPError as exc:
            raise ProvisioningError(f"MAC allocation request failed: {exc}") from exc
        except (ValidationError, ValueError) as exc:
            raise ProvisioningError(f"Malformed MAC allocation response: {exc}") from exc

        logger.info("Allocated %s for model %s", allocation.uuid, model)
        return allocation.uuid
