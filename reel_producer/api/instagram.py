"""
Instagram Graph Client
======================

Two-phase Reels publishing through the Facebook Graph API:
a media container is created from a hosted video, then published.
"""

import logging
import os
from typing import Optional, Dict, Any

import httpx

from .base import BaseApiClient
from ..core.config import InstagramSettings
from ..core.exceptions import ConfigurationError, PublishError
from ..core.security import preview

logger = logging.getLogger(__name__)


class InstagramGraphClient(BaseApiClient):
    """Publishing platform backed by the Instagram Graph API."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        account_id: Optional[str] = None,
        settings: Optional[InstagramSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or InstagramSettings()
        self.account_id = account_id or os.getenv("INSTAGRAM_ACCOUNT_ID")
        super().__init__(
            api_key=access_token,
            base_url=f"{self.settings.base_url.rstrip('/')}/{self.settings.graph_version}",
            timeout=self.settings.request_timeout,
            http_client=http_client,
        )

    @property
    def provider_name(self) -> str:
        return "Instagram"

    @property
    def env_key_name(self) -> Optional[str]:
        return "INSTAGRAM_ACCESS_TOKEN"

    def _get_default_base_url(self) -> str:
        return "https://graph.facebook.com/v20.0"

    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/x-www-form-urlencoded"}

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key) and bool(self.account_id)

    def _require_credentials(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                "INSTAGRAM_ACCESS_TOKEN environment variable is not set",
                config_key="INSTAGRAM_ACCESS_TOKEN",
            )
        if not self.account_id:
            raise ConfigurationError(
                "INSTAGRAM_ACCOUNT_ID environment variable is not set",
                config_key="INSTAGRAM_ACCOUNT_ID",
            )

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Graph API errors carry message, type and code under ``error``."""
        if response.is_success:
            return

        error: Dict[str, Any] = {}
        try:
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                error = body["error"]
        except ValueError:
            pass

        message = error.get("message") or response.text or f"HTTP {response.status_code}"
        logger.error(f"Instagram API error {response.status_code}: {message}")
        raise PublishError(
            message,
            error_type=error.get("type"),
            error_code=error.get("code"),
            details={"status_code": response.status_code},
        )

    async def _post_form(self, path: str, data: Dict[str, str]) -> Dict[str, Any]:
        self._require_credentials()
        response = await self._request(
            "POST",
            f"{self.base_url}/{self.account_id}/{path}",
            data={**data, "access_token": self.api_key},
        )
        self._raise_for_status(response)
        try:
            return response.json()
        except ValueError:
            return {}

    async def create_container(self, video_url: str, caption: str) -> str:
        """
        Create a REELS media container.

        Args:
            video_url: Publicly reachable video URL
            caption: Full caption text

        Returns:
            Container (creation) id

        Raises:
            PublishError: If the Graph API rejects the request
        """
        logger.info(f"Creating container for video: {video_url}")
        logger.info(f"Caption: {preview(caption)}")

        data = await self._post_form(
            "media",
            {"media_type": "REELS", "video_url": video_url, "caption": caption},
        )
        container_id = data.get("id")
        if not container_id:
            raise PublishError("No container ID returned from Facebook API")
        return str(container_id)

    async def publish(self, container_id: str) -> str:
        """Publish a container and return the resulting media id."""
        data = await self._post_form("media_publish", {"creation_id": container_id})
        media_id = data.get("id")
        if not media_id:
            raise PublishError("No media ID returned from publish API")
        return str(media_id)
