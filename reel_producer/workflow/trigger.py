"""Manual workflow trigger over a pool of default source images."""

import logging
import random
from typing import Optional, List

from .models import WorkflowConfig, WorkflowResult, VideoDuration
from .orchestrator import WorkflowOrchestrator
from ..core.config import WorkflowSettings
from ..core.exceptions import ValidationError
from ..core.security import validate_url

logger = logging.getLogger(__name__)


class WorkflowTrigger:
    """Starts a workflow run on demand, picking a random default image when none is given."""

    def __init__(
        self,
        orchestrator: WorkflowOrchestrator,
        settings: Optional[WorkflowSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.orchestrator = orchestrator
        self.settings = settings or orchestrator.settings
        self._images: List[str] = list(self.settings.default_images)
        self._rng = rng or random.Random()

    def pick_image(self) -> str:
        if not self._images:
            raise ValidationError("No default images configured", field="default_images")
        return self._rng.choice(self._images)

    async def trigger_now(
        self,
        image_url: Optional[str] = None,
        auto_publish: bool = False,
    ) -> WorkflowResult:
        """
        Run the workflow now.

        Args:
            image_url: Source image; a random default is used when omitted
            auto_publish: Create the Instagram container without approval

        Returns:
            The workflow result

        Raises:
            ValidationError: If no recipient or no image is available
        """
        recipient = self.settings.default_recipient
        if not recipient:
            raise ValidationError("No recipient email configured", field="default_recipient")

        image = image_url or self.pick_image()
        logger.info(f"Triggering workflow with image: {image}")

        config = WorkflowConfig(
            image_url=image,
            recipient_email=recipient,
            video_duration=VideoDuration(self.settings.default_duration),
            auto_publish_to_instagram=auto_publish,
        )
        return await self.orchestrator.execute_complete_workflow(config)

    def update_default_images(self, image_urls: List[str]) -> None:
        for url in image_urls:
            validate_url(url, field="imageUrls")
        self._images = list(image_urls)
        logger.info(f"Updated default image URLs ({len(self._images)} images)")

    def add_default_image(self, image_url: str) -> None:
        validate_url(image_url, field="imageUrl")
        self._images.append(image_url)
        logger.info(f"Added default image: {image_url}")

    def get_default_images(self) -> List[str]:
        return list(self._images)
