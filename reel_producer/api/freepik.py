"""
Freepik Video Generator
=======================

Image-to-video generation via Freepik's Kling v2.1 Pro endpoint.

Generation is a two-step asynchronous job:
1. POST the image and prompt to create a task
2. Poll the task until it is COMPLETED, FAILED or the attempts run out
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

import httpx

from .base import BaseApiClient
from ..core.config import FreepikSettings
from ..core.exceptions import (
    ReelProducerError,
    ValidationError,
    ProviderError,
    GenerationError,
    TimeoutError,
)
from ..core.security import sanitize_prompt, preview

logger = logging.getLogger(__name__)


DATA_URI_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")
FAILED_STATUSES = {"FAILED", "ERROR"}


@dataclass
class VideoOptions:
    """Optional Kling generation parameters; None fields are not sent."""

    webhook_url: Optional[str] = None
    image_tail: Optional[str] = None
    negative_prompt: Optional[str] = None
    cfg_scale: Optional[float] = None
    static_mask: Optional[str] = None
    dynamic_masks: Optional[List[Dict[str, Any]]] = None


@dataclass
class VideoResult:
    """Finished video."""

    video_url: str
    task_id: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"videoUrl": self.video_url, "taskId": self.task_id}


class FreepikVideoGenerator(BaseApiClient):
    """Creates Kling video tasks and polls them to completion."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[FreepikSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or FreepikSettings()
        super().__init__(
            api_key=api_key,
            base_url=self.settings.create_url,
            timeout=self.settings.timeout,
            http_client=http_client,
        )

    @property
    def provider_name(self) -> str:
        return "Freepik"

    @property
    def env_key_name(self) -> Optional[str]:
        return "FREEPIK_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://api.freepik.com/v1/ai/image-to-video/kling-v2-1-pro"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-freepik-api-key": self.api_key or "",
        }

    def build_payload(
        self,
        image: str,
        prompt: str,
        duration: str,
        options: Optional[VideoOptions] = None,
    ) -> Dict[str, Any]:
        """
        Build the task creation body.

        Args:
            image: Base64 image, with or without a data URI prefix
            prompt: Motion prompt
            duration: "5" or "10"
            options: Optional generation parameters

        Returns:
            Request body with unset optional fields removed
        """
        options = options or VideoOptions()
        base64_data = DATA_URI_PREFIX.sub("", image or "")
        if not base64_data:
            raise ValidationError("Image base64 data is required", field="image")

        body = {
            "webhook_url": options.webhook_url or self.settings.webhook_url,
            "image": base64_data,
            "image_tail": options.image_tail,
            "prompt": sanitize_prompt(prompt),
            "negative_prompt": options.negative_prompt,
            "duration": str(duration),
            "cfg_scale": options.cfg_scale if options.cfg_scale is not None else self.settings.cfg_scale,
            "static_mask": options.static_mask,
            "dynamic_masks": options.dynamic_masks,
        }
        return {key: value for key, value in body.items() if value is not None}

    async def create_task(
        self,
        image: str,
        prompt: str,
        duration: str = "5",
        options: Optional[VideoOptions] = None,
    ) -> str:
        """Create a generation task and return its id."""
        self._require_credentials()
        payload = self.build_payload(image, prompt, duration, options)
        logger.info(f"Creating video task (fields: {', '.join(payload)})")

        response = await self._request("POST", self.settings.create_url, json=payload)
        self._raise_for_status(response)

        try:
            task_id = response.json()["data"]["task_id"]
        except (ValueError, KeyError, TypeError):
            task_id = None
        if not task_id:
            raise GenerationError("Invalid response from Freepik API", stage="create")

        logger.info(f"Video task created: {task_id}")
        return task_id

    async def get_task(self, task_id: str) -> Dict[str, Any]:
        """Fetch the task record (the ``data`` object)."""
        response = await self._request(
            "GET",
            f"{self.settings.status_url.rstrip('/')}/{task_id}",
            headers={"x-freepik-api-key": self.api_key or ""},
        )
        if response.status_code == 404:
            raise GenerationError("Task not found", job_id=task_id, stage="poll")
        self._raise_for_status(response)

        try:
            return response.json()["data"]
        except (ValueError, KeyError, TypeError):
            raise ProviderError(
                "Invalid task status response from Freepik API",
                provider=self.provider_name,
                status_code=response.status_code,
                response_body=response.text,
            )

    async def poll_task_status(self, task_id: str) -> VideoResult:
        """
        Poll a task until it finishes.

        Transient polling errors are retried on the same schedule; a missing
        task or a FAILED/ERROR status ends polling immediately.

        Raises:
            GenerationError: If the task is missing or fails
            TimeoutError: If attempts are exhausted
        """
        max_attempts = self.settings.max_poll_attempts
        interval = self.settings.poll_interval

        for attempt in range(1, max_attempts + 1):
            logger.info(f"Polling task {task_id} ({attempt}/{max_attempts})")
            try:
                data = await self.get_task(task_id)
            except GenerationError:
                raise
            except ReelProducerError as e:
                logger.warning(f"Error polling task status (attempt {attempt}): {e.message}")
                if attempt == max_attempts:
                    raise TimeoutError(
                        f"Failed to get task status after {max_attempts} attempts",
                        operation=f"freepik task {task_id}",
                        timeout_seconds=max_attempts * interval,
                    )
                await asyncio.sleep(interval)
                continue

            status = str(data.get("status", "")).upper()
            generated = data.get("generated") or []
            logger.debug(f"Task {task_id} status: {status}")

            if status == "COMPLETED" and generated:
                logger.info(f"Video generation completed: {generated[0]}")
                return VideoResult(video_url=generated[0], task_id=task_id, raw=data)

            if status in FAILED_STATUSES:
                raise GenerationError(
                    f"Video generation failed with status: {status}",
                    job_id=task_id,
                    stage="generate",
                )

            if attempt < max_attempts:
                await asyncio.sleep(interval)

        raise TimeoutError(
            f"Video generation timed out after {max_attempts} attempts",
            operation=f"freepik task {task_id}",
            timeout_seconds=max_attempts * interval,
        )

    async def generate(
        self,
        image: str,
        prompt: str,
        duration: str = "5",
        options: Optional[VideoOptions] = None,
    ) -> VideoResult:
        """
        Generate a video from an image and a motion prompt.

        Args:
            image: Base64 image or data URI (typically the cropped frame)
            prompt: Motion prompt
            duration: "5" or "10" seconds
            options: Optional generation parameters

        Returns:
            VideoResult with the hosted video URL and task id
        """
        logger.info(f"Generating {duration}s video: {preview(prompt)}")
        task_id = await self.create_task(image, prompt, duration, options)
        return await self.poll_task_status(task_id)
