"""
Publish Register
================

Tracks publish containers created on the platform and confirms each one
after a fixed delay, without any caller involvement.

Lifecycle of a container::

    create-call ok -> processing -(publish ok)-> published
                                 -(publish fails)-> failed

Both end states are terminal. Containers live in memory for the life of the
process; callers wanting the final outcome poll ``get_status``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, List, Dict, Any

from ..api.instagram import InstagramGraphClient
from ..core.exceptions import PublishError
from ..core.security import preview

logger = logging.getLogger(__name__)


DEFAULT_PUBLISH_DELAY = 60.0


class ContainerStatus(str, Enum):
    """Container states. Only processing, published and failed are assigned."""

    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    PUBLISHED = "published"
    FAILED = "failed"


@dataclass
class ApprovalResult:
    """Outcome of a container create request."""

    success: bool
    container_id: Optional[str] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.container_id:
            data["containerId"] = self.container_id
        return data


@dataclass
class PublishContainer:
    """One platform-side staged upload."""

    container_id: str
    video_url: str
    caption: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: ContainerStatus = ContainerStatus.PROCESSING
    published_media_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def time_elapsed_ms(self) -> int:
        return int((datetime.now(timezone.utc) - self.created_at).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "containerId": self.container_id,
            "videoUrl": self.video_url,
            "caption": self.caption,
            "createdAt": self.created_at.isoformat(),
            "status": self.status.value,
            "publishedMediaId": self.published_media_id,
            "error": self.error,
            "timeElapsed": self.time_elapsed_ms,
        }


@dataclass
class PublishJob:
    """A one-shot deferred publish armed for a container."""

    container_id: str
    due_at: datetime
    task: "asyncio.Task[None]" = field(repr=False)

    @property
    def done(self) -> bool:
        return self.task.done()


def describe_delay(seconds: float) -> str:
    """Human wording for a delay, e.g. "1 minute" or "30 seconds"."""
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds:g} seconds"


class PublishRegister:
    """
    Owns publish containers and their deferred publish jobs.

    Public operations never raise; failures become ``ApprovalResult`` values
    or a terminal ``failed`` container status.
    """

    def __init__(self, platform: InstagramGraphClient, publish_delay: float = DEFAULT_PUBLISH_DELAY):
        self.platform = platform
        self.publish_delay = publish_delay
        self._containers: Dict[str, PublishContainer] = {}
        self._jobs: Dict[str, PublishJob] = {}

    @property
    def publish_in(self) -> str:
        return describe_delay(self.publish_delay)

    async def create_container(self, media_url: str, caption: str) -> ApprovalResult:
        """
        Create a container and arm its deferred publish.

        Args:
            media_url: Hosted video URL
            caption: Full caption (hashtags included)

        Returns:
            ApprovalResult with the platform container id on success
        """
        logger.info("Creating Instagram media container")

        if not self.platform.has_credentials:
            message = "Failed to create Instagram container: Instagram credentials are not configured"
            logger.error(message)
            return ApprovalResult(success=False, message=message)

        try:
            container_id = await self.platform.create_container(media_url, caption)
        except PublishError as e:
            message = f"Instagram API error: {e.message} (Type: {e.error_type}, Code: {e.error_code})"
            logger.error(message)
            return ApprovalResult(success=False, message=message)
        except Exception as e:
            message = f"Failed to create Instagram container: {e}"
            logger.exception(message)
            return ApprovalResult(success=False, message=message)

        self._containers[container_id] = PublishContainer(
            container_id=container_id,
            video_url=media_url,
            caption=caption,
        )
        self._schedule_publish(container_id)

        logger.info(f"Container created: {container_id}, publishing in {self.publish_in}")
        return ApprovalResult(
            success=True,
            container_id=container_id,
            message=f"Instagram container created successfully. Will be published in {self.publish_in}.",
        )

    def _schedule_publish(self, container_id: str) -> None:
        task = asyncio.create_task(self._run_job(container_id))
        job = PublishJob(
            container_id=container_id,
            due_at=datetime.now(timezone.utc) + timedelta(seconds=self.publish_delay),
            task=task,
        )
        self._jobs[container_id] = job

        def forget(_: "asyncio.Task[None]") -> None:
            # A reused container id may already have a newer job armed
            if self._jobs.get(container_id) is job:
                del self._jobs[container_id]

        task.add_done_callback(forget)

    async def _run_job(self, container_id: str) -> None:
        await asyncio.sleep(self.publish_delay)
        await self._publish_container(container_id)

    async def _publish_container(self, container_id: str) -> None:
        """Confirm a container once; any failure is terminal."""
        container = self._containers.get(container_id)
        if container is None:
            logger.error(f"Container {container_id} not found in register")
            return

        logger.info(f"Publishing Instagram container: {container_id}")
        try:
            media_id = await self.platform.publish(container_id)
        except Exception as e:
            container.status = ContainerStatus.FAILED
            container.error = str(e)
            logger.error(f"Failed to publish container {container_id}: {e}")
            return

        container.status = ContainerStatus.PUBLISHED
        container.published_media_id = media_id
        logger.info(f"Instagram reel published: media {media_id} (caption: {preview(container.caption)})")

    def get_status(self, container_id: str) -> Optional[PublishContainer]:
        return self._containers.get(container_id)

    def list_all(self) -> List[PublishContainer]:
        return list(self._containers.values())

    @property
    def pending_jobs(self) -> List[str]:
        """Container ids whose publish job has not finished yet."""
        return [job.container_id for job in self._jobs.values() if not job.done]

    async def join(self) -> None:
        """Wait for every armed publish job to finish."""
        while self._jobs:
            await asyncio.gather(*(job.task for job in list(self._jobs.values())))
