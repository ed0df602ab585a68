"""
Workflow Orchestrator
=====================

Runs the daily content pipeline and handles approval callbacks.

Pipeline steps (fixed order)::

    1. image_conversion     crop the source image to the target aspect ratio
    2. prompt_generation    static motion template or a generated one
    3. caption_generation   caption + hashtags from the image or the prompt
    4. video_generation     image + prompt -> hosted video
    5. email_sending        approval email (best-effort)
    6. instagram_upload     container create when auto-publish is on (best-effort)

Steps 1-4 are required: the first failure among them ends the run. Every
step outcome is recorded as an ``Ok``/``Err`` value; nothing raises out of
``execute_complete_workflow`` or ``handle_approval_callback``.
"""

import logging
import time
from typing import Optional, List, Dict, Any, Callable, Awaitable

import httpx

from .models import (
    WorkflowConfig,
    WorkflowResult,
    WorkflowSteps,
    FinalOutput,
    StepOutcome,
    ApprovalResult,
)
from ..api.freepik import FreepikVideoGenerator
from ..api.gemini import GeminiClient, CaptionOptions, compose_caption
from ..api.instagram import InstagramGraphClient
from ..api.media import MediaTransform
from ..core.config import Config, WorkflowSettings
from ..core.exceptions import ValidationError, PublishError
from ..core.result import Ok, Err
from ..notify.email import EmailNotifier
from ..publish.register import PublishRegister, PublishContainer

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """
    Sequences the leaf collaborators into one workflow run.

    All collaborators are injected; ``from_config`` wires the default ones.
    """

    def __init__(
        self,
        media: MediaTransform,
        prompts: GeminiClient,
        captions: GeminiClient,
        video: FreepikVideoGenerator,
        notifier: EmailNotifier,
        register: PublishRegister,
        settings: Optional[WorkflowSettings] = None,
        caption_options: Optional[CaptionOptions] = None,
    ):
        self.media = media
        self.prompts = prompts
        self.captions = captions
        self.video = video
        self.notifier = notifier
        self.register = register
        self.settings = settings or WorkflowSettings()
        self.caption_options = caption_options or CaptionOptions()

    @classmethod
    def from_config(
        cls,
        config: Config,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "WorkflowOrchestrator":
        """
        Build an orchestrator with the default HTTP/SMTP collaborators.

        Args:
            config: Loaded configuration
            http_client: Shared HTTP client for every API collaborator

        Returns:
            Ready-to-use orchestrator
        """
        media = MediaTransform(http_client=http_client)
        gemini = GeminiClient(
            model=config.gemini.model,
            base_url=config.gemini.base_url,
            timeout=config.gemini.timeout,
            http_client=http_client,
            media=media,
            motion_instruction=config.gemini.motion_instruction,
        )
        platform = InstagramGraphClient(settings=config.instagram, http_client=http_client)

        return cls(
            media=media,
            prompts=gemini,
            captions=gemini,
            video=FreepikVideoGenerator(settings=config.freepik, http_client=http_client),
            notifier=EmailNotifier(config.email),
            register=PublishRegister(platform, publish_delay=config.instagram.publish_delay_seconds),
            settings=config.workflow,
            caption_options=CaptionOptions.from_settings(config.caption),
        )

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _run_step(
        self,
        steps: WorkflowSteps,
        name: str,
        action: Callable[[], Awaitable[Dict[str, Any]]],
    ) -> StepOutcome:
        """Run one step and record its outcome before returning it."""
        try:
            outcome: StepOutcome = Ok(await action())
            logger.info(f"Step {name} completed")
        except Exception as e:
            outcome = Err.from_exception(e)
            logger.error(f"Step {name} failed ({outcome.kind.value}): {outcome.message}")
        return steps.record(name, outcome)

    async def execute_complete_workflow(self, config: WorkflowConfig) -> WorkflowResult:
        """
        Run the full pipeline for one source image.

        Args:
            config: Run input

        Returns:
            WorkflowResult; ``final_output`` is set only when every required
            step succeeded
        """
        started = time.monotonic()
        result = WorkflowResult()
        logger.info(f"Starting content workflow for {config.image_url}")

        try:
            await self._run_pipeline(config, result)
        except Exception:
            logger.exception("Workflow aborted unexpectedly")
            result.success = False
            result.final_output = None
        finally:
            result.execution_time_ms = int((time.monotonic() - started) * 1000)

        logger.info(f"Workflow finished (success={result.success}) in {result.execution_time_ms}ms")
        return result

    async def _run_pipeline(self, config: WorkflowConfig, result: WorkflowResult) -> None:
        steps = result.steps

        async def convert_image() -> Dict[str, Any]:
            image = await self.media.crop_to_aspect_ratio(config.image_url, self.settings.aspect_ratio)
            return {"convertedImage": image}

        outcome = await self._run_step(steps, "image_conversion", convert_image)
        if isinstance(outcome, Err):
            return
        converted_image = outcome.value["convertedImage"]

        async def obtain_prompt() -> Dict[str, Any]:
            if self.settings.prompt_source == "generated":
                return {"prompt": await self.prompts.describe_motion(config.image_url), "source": "generated"}
            return {"prompt": self.settings.video_prompt, "source": "static"}

        outcome = await self._run_step(steps, "prompt_generation", obtain_prompt)
        if isinstance(outcome, Err):
            return
        prompt = outcome.value["prompt"]

        async def generate_caption() -> Dict[str, Any]:
            if self.settings.caption_source == "prompt":
                generated = await self.captions.generate(prompt, self.caption_options, source_type="prompt")
            else:
                generated = await self.captions.generate(config.image_url, self.caption_options, source_type="image")
            return generated.to_dict()

        outcome = await self._run_step(steps, "caption_generation", generate_caption)
        if isinstance(outcome, Err):
            return
        caption = outcome.value["caption"]
        hashtags = outcome.value["hashtags"]

        async def generate_video() -> Dict[str, Any]:
            video = await self.video.generate(converted_image, prompt, config.video_duration.value)
            return video.to_dict()

        outcome = await self._run_step(steps, "video_generation", generate_video)
        if isinstance(outcome, Err):
            return
        video_url = outcome.value["videoUrl"]

        async def send_email() -> Dict[str, Any]:
            recipient = config.recipient_email or self.settings.default_recipient
            if not recipient:
                raise ValidationError("Recipient email is required (no default configured)", field="recipientEmail")
            await self.notifier.send_content_package(recipient, video_url, caption, hashtags)
            return {"emailSent": True, "recipientEmail": recipient}

        email_outcome = await self._run_step(steps, "email_sending", send_email)

        async def upload_to_instagram() -> Dict[str, Any]:
            if not config.auto_publish_to_instagram:
                return {"skipped": True, "reason": "autoPublishToInstagram disabled"}
            approval = await self.register.create_container(video_url, compose_caption(caption, hashtags))
            if not approval.success:
                raise PublishError(approval.message)
            return {
                "containerId": approval.container_id,
                "message": approval.message,
                "scheduled": True,
                "publishIn": self.register.publish_in,
            }

        upload_outcome = await self._run_step(steps, "instagram_upload", upload_to_instagram)

        published = isinstance(upload_outcome, Ok) and not upload_outcome.value.get("skipped")
        result.final_output = FinalOutput(
            converted_image=converted_image,
            prompt=prompt,
            caption=caption,
            hashtags=hashtags,
            video_url=video_url,
            email_sent=isinstance(email_outcome, Ok),
            instagram_container_id=upload_outcome.value.get("containerId") if published else None,
            instagram_published=published,
        )
        result.success = steps.required_ok()

    # -------------------------------------------------------------------------
    # Approval
    # -------------------------------------------------------------------------

    async def handle_approval_callback(
        self,
        video_url: str,
        caption: str,
        hashtags: Optional[List[str]] = None,
    ) -> ApprovalResult:
        """
        Publish approved content.

        Hashtags are appended after a blank line when present. The register's
        result is returned unchanged; any exception becomes a failed result.
        """
        try:
            logger.info(f"Approval received for {video_url}")
            return await self.register.create_container(video_url, compose_caption(caption, hashtags))
        except Exception as e:
            logger.exception("Approval callback failed")
            return ApprovalResult(success=False, message=f"Failed to upload to Instagram: {e}")

    def get_container_status(self, container_id: str) -> Optional[PublishContainer]:
        return self.register.get_status(container_id)

    def list_containers(self) -> List[PublishContainer]:
        return self.register.list_all()
