"""
Base API Client
===============

Shared base class for every external HTTP collaborator (vision model, video
generator, publishing platform, image host).

Features:
- Explicitly injected ``httpx.AsyncClient`` (or a lazily created private one)
- API key resolution from the environment
- Transport and timeout failures mapped onto the package exception hierarchy
- Async context manager protocol
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any

import httpx

from ..core.exceptions import ConfigurationError, ProviderError, TimeoutError
from ..core.security import redact_api_key

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 60


class BaseApiClient(ABC):
    """
    Abstract base class for external API clients.

    A single ``httpx.AsyncClient`` can be constructed once at startup and
    passed to every collaborator; when none is given the client creates and
    owns its own.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: API key (or read from environment)
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            http_client: Shared HTTP client; a private one is created if omitted
        """
        self.api_key = api_key or self._get_api_key_from_env()
        self.base_url = (base_url or self._get_default_base_url()).rstrip("/")
        self.timeout = timeout

        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None
        self._client_lock = asyncio.Lock()

        self._validate_config()

    # -------------------------------------------------------------------------
    # Abstract Members
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @property
    @abstractmethod
    def env_key_name(self) -> Optional[str]:
        """Return the environment variable name for the API key, if any."""
        pass

    @abstractmethod
    def _get_default_base_url(self) -> str:
        """Return the default base URL for this provider."""
        pass

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    @property
    def has_credentials(self) -> bool:
        """Whether the client has everything it needs to authenticate."""
        return bool(self.api_key) or self.env_key_name is None

    def _get_api_key_from_env(self) -> Optional[str]:
        """Get API key from environment variable."""
        if not self.env_key_name:
            return None
        return os.getenv(self.env_key_name)

    def _validate_config(self) -> None:
        """Warn early about missing credentials; calls fail later."""
        if not self.has_credentials:
            logger.warning(
                f"No API key found for {self.provider_name}. "
                f"Set {self.env_key_name} environment variable or pass api_key parameter."
            )

    def _require_credentials(self) -> None:
        """Raise if credentials are missing, before any network call."""
        if not self.has_credentials:
            raise ConfigurationError(
                f"{self.env_key_name} environment variable is not set",
                config_key=self.env_key_name,
            )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
                self._owns_client = True
            return self._client

    def _get_headers(self) -> Dict[str, str]:
        """Get default headers for requests."""
        return {"Content-Type": "application/json"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Issue one HTTP request with this client's headers and timeout.

        Raises:
            TimeoutError: If the request exceeds the timeout
            ProviderError: On any other transport failure
        """
        headers = {**self._get_headers(), **kwargs.pop("headers", {})}
        kwargs.setdefault("timeout", self.timeout)
        client = await self._get_client()

        try:
            return await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise TimeoutError(
                f"{self.provider_name} request timed out",
                operation=f"{method} {redact_api_key(url)}",
                timeout_seconds=self.timeout,
            ) from e
        except httpx.TransportError as e:
            raise ProviderError(
                f"{self.provider_name} request failed: {redact_api_key(str(e))}",
                provider=self.provider_name,
                transport=True,
            ) from e

    def _extract_error(self, response: httpx.Response) -> str:
        """Extract an error message from a failed response body."""
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"

        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                return error.get("message") or str(error)
            return error or data.get("message") or data.get("detail") or str(data)
        return str(data)

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise ProviderError for non-2xx responses."""
        if response.is_success:
            return
        message = self._extract_error(response)
        logger.error(f"{self.provider_name} API error {response.status_code}: {redact_api_key(message)}")
        raise ProviderError(
            f"{self.provider_name} API error: {message}",
            provider=self.provider_name,
            status_code=response.status_code,
            response_body=response.text,
        )

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        async with self._client_lock:
            if self._client is not None and self._owns_client:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
