"""Tests for the manual workflow trigger."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from reel_producer.core.config import WorkflowSettings
from reel_producer.core.exceptions import ValidationError
from reel_producer.workflow.models import VideoDuration, WorkflowResult
from reel_producer.workflow.trigger import WorkflowTrigger

IMAGES = ["https://img.example.com/a.jpg", "https://img.example.com/b.jpg"]


@pytest.fixture
def orchestrator():
    stub = MagicMock()
    stub.settings = WorkflowSettings(default_recipient="owner@example.com", default_images=IMAGES)
    stub.execute_complete_workflow = AsyncMock(return_value=WorkflowResult(success=True))
    return stub


class TestTriggerNow:
    async def test_explicit_image(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator)

        result = await trigger.trigger_now("https://img.example.com/c.jpg", auto_publish=True)

        assert result.success is True
        config = orchestrator.execute_complete_workflow.await_args.args[0]
        assert config.image_url == "https://img.example.com/c.jpg"
        assert config.recipient_email == "owner@example.com"
        assert config.video_duration is VideoDuration.SHORT
        assert config.auto_publish_to_instagram is True

    async def test_random_default_image(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator, rng=random.Random(7))

        await trigger.trigger_now()

        config = orchestrator.execute_complete_workflow.await_args.args[0]
        assert config.image_url in IMAGES
        assert config.auto_publish_to_instagram is False

    async def test_configured_duration(self, orchestrator):
        settings = WorkflowSettings(default_recipient="owner@example.com", default_duration="10", default_images=IMAGES)
        trigger = WorkflowTrigger(orchestrator, settings=settings)

        await trigger.trigger_now()

        assert orchestrator.execute_complete_workflow.await_args.args[0].video_duration is VideoDuration.LONG

    async def test_requires_recipient(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator, settings=WorkflowSettings(default_recipient=None, default_images=IMAGES))

        with pytest.raises(ValidationError):
            await trigger.trigger_now()
        orchestrator.execute_complete_workflow.assert_not_awaited()

    async def test_requires_images(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator, settings=WorkflowSettings(default_recipient="owner@example.com"))

        with pytest.raises(ValidationError):
            await trigger.trigger_now()


class TestDefaultImages:
    def test_update_replaces_pool(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator)
        trigger.update_default_images(["https://img.example.com/z.jpg"])
        assert trigger.get_default_images() == ["https://img.example.com/z.jpg"]
        assert trigger.pick_image() == "https://img.example.com/z.jpg"

    def test_add_appends(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator)
        trigger.add_default_image("https://img.example.com/z.jpg")
        assert trigger.get_default_images() == IMAGES + ["https://img.example.com/z.jpg"]

    def test_invalid_urls_rejected(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator)
        with pytest.raises(ValidationError):
            trigger.update_default_images(["https://img.example.com/ok.jpg", "not a url"])
        with pytest.raises(ValidationError):
            trigger.add_default_image("ftp://img.example.com/a.jpg")
        assert trigger.get_default_images() == IMAGES

    def test_returns_copy(self, orchestrator):
        trigger = WorkflowTrigger(orchestrator)
        trigger.get_default_images().clear()
        assert trigger.get_default_images() == IMAGES
