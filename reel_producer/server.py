"""
HTTP Server
===========

FastAPI application exposing the workflow, the approval landing page,
container status and the manual trigger.

Usage:
    uvicorn reel_producer.server:app --port 9000
    reel-producer serve
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, List

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .api.freepik import VideoOptions
from .api.gemini import CaptionOptions, CaptionTone
from .core.config import Config, get_config
from .core.exceptions import ReelProducerError
from .core.result import ErrorKind
from .notify import templates
from .workflow import WorkflowConfig, WorkflowOrchestrator, WorkflowTrigger

logger = logging.getLogger(__name__)


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.INTERNAL: 500,
}


# =============================================================================
# Request Models
# =============================================================================


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WorkflowRequest(CamelModel):
    """Request model for a workflow run."""
    image_url: str = Field(alias="imageUrl")
    recipient_email: Optional[str] = Field(default=None, alias="recipientEmail")
    video_duration: str = Field(default="5", alias="videoDuration", pattern="^(5|10)$")
    auto_publish_to_instagram: bool = Field(default=False, alias="autoPublishToInstagram")


class ApprovalRequest(CamelModel):
    """Request model for approving content for Instagram."""
    video_url: str = Field(alias="videoUrl")
    caption: str
    hashtags: List[str] = Field(default_factory=list)


class ContainerRequest(CamelModel):
    video_url: str = Field(alias="videoUrl")
    caption: str


class ContentEmailRequest(CamelModel):
    """Content delivery email with approve/reject links."""
    recipient_email: Optional[str] = Field(default=None, alias="recipientEmail")
    video_url: str = Field(alias="videoUrl")
    caption: str
    hashtags: List[str] = Field(default_factory=list)


class CaptionOptionsModel(CamelModel):
    tone: CaptionTone = CaptionTone.CASUAL
    max_hashtags: int = Field(default=15, alias="maxHashtags", ge=1, le=30)
    max_caption_length: int = Field(default=300, alias="maxCaptionLength", ge=1)
    target_audience: str = Field(default="social media users", alias="targetAudience")
    include_call_to_action: bool = Field(default=True, alias="includeCallToAction")


class CaptionRequest(CamelModel):
    image_url: str = Field(alias="imageUrl")
    options: Optional[CaptionOptionsModel] = None


class VideoRequest(CamelModel):
    """Request model for image-to-video generation."""
    image_base64: str = Field(alias="imageBase64")
    prompt: str
    duration: str = Field(default="5", pattern="^(5|10)$")


class Trajectory(BaseModel):
    x: int
    y: int


class DynamicMask(BaseModel):
    mask: str
    trajectories: List[Trajectory]


class AdvancedVideoRequest(VideoRequest):
    webhook_url: Optional[str] = Field(default=None, alias="webhookUrl")
    image_tail: Optional[str] = Field(default=None, alias="imageTail")
    negative_prompt: Optional[str] = Field(default=None, alias="negativePrompt")
    cfg_scale: Optional[float] = Field(default=None, alias="cfgScale", ge=0, le=1)
    static_mask: Optional[str] = Field(default=None, alias="staticMask")
    dynamic_masks: Optional[List[DynamicMask]] = Field(default=None, alias="dynamicMasks")

    def video_options(self) -> VideoOptions:
        return VideoOptions(
            webhook_url=self.webhook_url,
            image_tail=self.image_tail,
            negative_prompt=self.negative_prompt,
            cfg_scale=self.cfg_scale,
            static_mask=self.static_mask,
            dynamic_masks=[m.model_dump() for m in self.dynamic_masks] if self.dynamic_masks else None,
        )


class TriggerRequest(CamelModel):
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    auto_publish_to_instagram: bool = Field(default=False, alias="autoPublishToInstagram")


class ImagesRequest(CamelModel):
    image_urls: List[str] = Field(alias="imageUrls")


class ImageRequest(CamelModel):
    image_url: str = Field(alias="imageUrl")


# =============================================================================
# Application
# =============================================================================


def create_app(
    orchestrator: Optional[WorkflowOrchestrator] = None,
    trigger: Optional[WorkflowTrigger] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator; built from config at startup if omitted
        trigger: Pre-built trigger; built around the orchestrator if omitted
        config: Configuration used when building defaults

    Returns:
        FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_client: Optional[httpx.AsyncClient] = None
        if orchestrator is None:
            cfg = config or get_config()
            http_client = httpx.AsyncClient(timeout=httpx.Timeout(60))
            app.state.orchestrator = WorkflowOrchestrator.from_config(cfg, http_client)
        else:
            app.state.orchestrator = orchestrator
        app.state.trigger = trigger or WorkflowTrigger(app.state.orchestrator)
        logger.info("Reel producer server started")
        try:
            yield
        finally:
            pending = app.state.orchestrator.register.pending_jobs
            if pending:
                logger.warning(f"Shutting down with {len(pending)} unpublished containers: {pending}")
            if http_client is not None:
                await http_client.aclose()

    app = FastAPI(
        title="Daily Reel Producer API",
        description="Image to Instagram Reel content pipeline with email approval",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(ReelProducerError)
    async def handle_producer_error(request: Request, exc: ReelProducerError):
        return JSONResponse(status_code=STATUS_BY_KIND.get(exc.kind, 500), content=exc.to_dict())

    def services(request: Request):
        return request.app.state.orchestrator, request.app.state.trigger

    def container_view(request: Request, container_id: Optional[str]):
        """One container's status when an id is given, otherwise every container."""
        orch, _ = services(request)
        if container_id:
            container = orch.get_container_status(container_id)
            return {
                "containerId": container_id,
                "status": container.to_dict() if container else "Container not found",
            }
        containers = orch.list_containers()
        return {"containers": [c.to_dict() for c in containers], "count": len(containers)}

    # -------------------------------------------------------------------------
    # Image
    # -------------------------------------------------------------------------

    @app.post("/image/aspect-ratio")
    async def convert_aspect_ratio(body: ImageRequest, request: Request):
        orch, _ = services(request)
        ratio = orch.settings.aspect_ratio
        image = await orch.media.crop_to_aspect_ratio(body.image_url, ratio)
        return {"message": f"Image converted successfully to {ratio} aspect ratio.", "image": image}

    @app.post("/image/generate-caption-from-url")
    async def generate_caption_from_url(body: CaptionRequest, request: Request):
        """Caption and hashtags for an image; omitted options use configured defaults."""
        orch, _ = services(request)
        options = CaptionOptions(**body.options.model_dump()) if body.options else orch.caption_options
        result = await orch.captions.generate(body.image_url, options, source_type="image")
        return result.to_dict()

    # -------------------------------------------------------------------------
    # Video
    # -------------------------------------------------------------------------

    @app.post("/video/generate")
    async def generate_video(body: VideoRequest, request: Request):
        orch, _ = services(request)
        result = await orch.video.generate(body.image_base64, body.prompt, body.duration)
        return result.to_dict()

    @app.post("/video/generate/advanced")
    async def generate_advanced_video(body: AdvancedVideoRequest, request: Request):
        """Video generation with Kling options such as masks and a negative prompt."""
        orch, _ = services(request)
        result = await orch.video.generate(body.image_base64, body.prompt, body.duration, body.video_options())
        return result.to_dict()

    # -------------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------------

    @app.post("/workflow/execute")
    async def execute_workflow(body: WorkflowRequest, request: Request):
        """Run the complete pipeline and return every step outcome."""
        orch, _ = services(request)
        config = WorkflowConfig.from_dict(body.model_dump(by_alias=True))
        result = await orch.execute_complete_workflow(config)
        return result.to_dict()

    @app.post("/workflow/approve-with-instagram")
    async def approve_with_instagram(body: ApprovalRequest, request: Request):
        orch, _ = services(request)
        result = await orch.handle_approval_callback(body.video_url, body.caption, body.hashtags)
        return result.to_dict()

    @app.get("/workflow/instagram-containers")
    async def workflow_containers(request: Request, container_id: Optional[str] = Query(None, alias="containerId")):
        return container_view(request, container_id)

    # -------------------------------------------------------------------------
    # Email approval
    # -------------------------------------------------------------------------

    @app.get("/email-approval/content-action", response_class=HTMLResponse)
    async def content_action(
        request: Request,
        action: str = Query(""),
        video_url: Optional[str] = Query(None, alias="videoUrl"),
        caption: Optional[str] = Query(None),
        hashtags: Optional[str] = Query(None),
        content_id: Optional[str] = Query(None, alias="contentId"),
    ):
        """Landing page for the approve/reject links in the content email."""
        orch, _ = services(request)

        if action == "reject":
            logger.info(f"Content rejected: {content_id}")
            return HTMLResponse(templates.rejected_page(content_id))

        if action == "approve":
            logger.info(f"Content approved: {content_id}")
            result = None
            if video_url and caption:
                result = await orch.handle_approval_callback(video_url, caption, [hashtags] if hashtags else [])
            return HTMLResponse(templates.approved_page(video_url, caption, hashtags, result))

        return HTMLResponse(templates.invalid_action_page(), status_code=400)

    def resolve_recipient(orch: WorkflowOrchestrator, recipient: Optional[str]) -> str:
        recipient = recipient or orch.settings.default_recipient
        if not recipient:
            raise HTTPException(status_code=400, detail="recipientEmail is required")
        return recipient

    @app.get("/email-approval/send")
    async def send_approval_email(request: Request, to: Optional[str] = Query(None)):
        """Send a plain approve/reject request."""
        orch, _ = services(request)
        recipient = resolve_recipient(orch, to)
        await orch.notifier.send_approval(recipient)
        return {"message": "Approval email sent successfully!", "recipientEmail": recipient}

    @app.post("/email-approval/send-content")
    async def send_content_email(body: ContentEmailRequest, request: Request):
        orch, _ = services(request)
        recipient = resolve_recipient(orch, body.recipient_email)
        await orch.notifier.send_content_package(recipient, body.video_url, body.caption, body.hashtags)
        return {
            "message": "Content delivery email sent successfully!",
            "recipientEmail": recipient,
            "sentAt": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/email-approval/action", response_class=HTMLResponse)
    async def confirm_action_page(action_type: str = Query("", alias="type")):
        """Confirmation page shown before an approve or reject is finalized."""
        if action_type not in ("approve", "reject"):
            return HTMLResponse(templates.invalid_action_page(), status_code=400)
        return HTMLResponse(templates.confirmation_page(action_type))

    @app.get("/email-approval/confirm", response_class=HTMLResponse)
    async def finalize_action(action: str = Query("")):
        logger.info(f"Email action confirmed: {action or 'none'}")
        return HTMLResponse(templates.confirmed_page(action))

    @app.get("/email-approval/instagram-status")
    async def email_instagram_status(request: Request, container_id: Optional[str] = Query(None, alias="containerId")):
        return container_view(request, container_id)

    # -------------------------------------------------------------------------
    # Instagram
    # -------------------------------------------------------------------------

    @app.post("/instagram/create-container")
    async def create_container(body: ContainerRequest, request: Request):
        orch, _ = services(request)
        result = await orch.register.create_container(body.video_url, body.caption)
        return result.to_dict()

    @app.get("/instagram/container-status")
    async def container_status(request: Request, container_id: str = Query(..., alias="containerId")):
        orch, _ = services(request)
        container = orch.get_container_status(container_id)
        if container is None:
            raise HTTPException(status_code=404, detail="Container not found")
        return container.to_dict()

    @app.get("/instagram/all-containers")
    async def all_containers(request: Request):
        orch, _ = services(request)
        containers = orch.list_containers()
        return {"containers": [c.to_dict() for c in containers], "count": len(containers)}

    @app.get("/instagram/health-check")
    async def instagram_health(request: Request):
        orch, _ = services(request)
        register = orch.register
        return {
            "status": "healthy",
            "credentialsConfigured": register.platform.has_credentials,
            "containers": len(register.list_all()),
            "pendingJobs": len(register.pending_jobs),
        }

    # -------------------------------------------------------------------------
    # Manual trigger
    # -------------------------------------------------------------------------

    @app.post("/workflow-trigger/trigger")
    async def trigger_workflow(request: Request, body: Optional[TriggerRequest] = None):
        _, trig = services(request)
        body = body or TriggerRequest()
        result = await trig.trigger_now(body.image_url, auto_publish=body.auto_publish_to_instagram)
        return {"message": "Workflow triggered", "result": result.to_dict()}

    @app.get("/workflow-trigger/images")
    async def get_images(request: Request):
        _, trig = services(request)
        images = trig.get_default_images()
        return {"images": images, "count": len(images)}

    @app.post("/workflow-trigger/images")
    async def update_images(body: ImagesRequest, request: Request):
        _, trig = services(request)
        trig.update_default_images(body.image_urls)
        images = trig.get_default_images()
        return {"message": "Default images updated", "images": images, "count": len(images)}

    @app.post("/workflow-trigger/images/add")
    async def add_image(body: ImageRequest, request: Request):
        _, trig = services(request)
        trig.add_default_image(body.image_url)
        images = trig.get_default_images()
        return {"message": "Image added", "images": images, "count": len(images)}

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()
