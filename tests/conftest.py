"""Shared test fixtures for the reel producer."""

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from reel_producer.api.freepik import VideoResult
from reel_producer.api.gemini import CaptionResult
from reel_producer.core.config import WorkflowSettings, reset_config
from reel_producer.publish.register import PublishRegister
from reel_producer.workflow.orchestrator import WorkflowOrchestrator

SECRET_ENV = [
    "GEMINI_API_KEY",
    "FREEPIK_API_KEY",
    "INSTAGRAM_ACCESS_TOKEN",
    "INSTAGRAM_ACCOUNT_ID",
    "MAIL_USER",
    "MAIL_PASS",
    "BASE_DEPLOYED_URL",
    "PORT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure tests never pick up real credentials."""
    for name in SECRET_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def make_jpeg(width: int, height: int, color=(200, 80, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "JPEG")
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_jpeg


@pytest.fixture
def platform():
    """Publishing platform stub that accepts everything."""
    stub = MagicMock()
    stub.has_credentials = True
    stub.create_container = AsyncMock(return_value="C1")
    stub.publish = AsyncMock(return_value="M1")
    return stub


@pytest.fixture
def register(platform):
    return PublishRegister(platform, publish_delay=0)


@pytest.fixture
def collaborators():
    """Leaf collaborator stubs that all succeed."""
    media = MagicMock()
    media.crop_to_aspect_ratio = AsyncMock(return_value="data:image/jpeg;base64,AAAA")

    prompts = MagicMock()
    prompts.describe_motion = AsyncMock(return_value="slow pan across the scene")

    captions = MagicMock()
    captions.generate = AsyncMock(return_value=CaptionResult(caption="Hello", hashtags=["#a", "#b"]))

    video = MagicMock()
    video.generate = AsyncMock(return_value=VideoResult(video_url="https://v/1.mp4", task_id="t1"))

    notifier = MagicMock()
    notifier.send_content_package = AsyncMock(return_value=None)
    notifier.send_approval = AsyncMock(return_value=None)

    return {
        "media": media,
        "prompts": prompts,
        "captions": captions,
        "video": video,
        "notifier": notifier,
    }


@pytest.fixture
def make_orchestrator(collaborators, register):
    def factory(settings=None, **overrides):
        parts = {**collaborators, "register": register, **overrides}
        return WorkflowOrchestrator(settings=settings or WorkflowSettings(default_recipient=None), **parts)

    return factory
