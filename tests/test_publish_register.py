"""Tests for the publish register and its deferred publish jobs."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from reel_producer.core.exceptions import PublishError
from reel_producer.publish.register import (
    ApprovalResult,
    ContainerStatus,
    PublishRegister,
    describe_delay,
)


class TestDescribeDelay:
    @pytest.mark.parametrize("seconds,text", [
        (60, "1 minute"),
        (120, "2 minutes"),
        (30, "30 seconds"),
        (0, "0 seconds"),
        (90, "90 seconds"),
    ])
    def test_wording(self, seconds, text):
        assert describe_delay(seconds) == text


class TestCreateContainer:
    async def test_success_then_published(self, register, platform):
        result = await register.create_container("https://v/1.mp4", "Hello\n\n#a #b")

        assert result == ApprovalResult(
            success=True,
            container_id="C1",
            message="Instagram container created successfully. Will be published in 0 seconds.",
        )
        platform.create_container.assert_awaited_once_with("https://v/1.mp4", "Hello\n\n#a #b")

        container = register.get_status("C1")
        assert container.status is ContainerStatus.PROCESSING
        assert register.pending_jobs == ["C1"]

        await register.join()

        assert container.status is ContainerStatus.PUBLISHED
        assert container.published_media_id == "M1"
        assert container.error is None
        assert register.pending_jobs == []
        platform.publish.assert_awaited_once_with("C1")

    async def test_publish_failure_is_terminal(self, register, platform):
        platform.publish = AsyncMock(side_effect=PublishError("Media not ready"))

        await register.create_container("https://v/1.mp4", "Hello")
        await register.join()

        container = register.get_status("C1")
        assert container.status is ContainerStatus.FAILED
        assert container.error == "Media not ready"
        assert container.published_media_id is None
        platform.publish.assert_awaited_once()

    async def test_missing_credentials_makes_no_call(self, register, platform):
        platform.has_credentials = False

        result = await register.create_container("https://v/1.mp4", "Hello")

        assert result.success is False
        assert result.container_id is None
        assert result.message == (
            "Failed to create Instagram container: Instagram credentials are not configured"
        )
        platform.create_container.assert_not_awaited()
        assert register.list_all() == []

    async def test_platform_error_message(self, register, platform):
        platform.create_container = AsyncMock(
            side_effect=PublishError("Invalid OAuth access token", error_type="OAuthException", error_code=190)
        )

        result = await register.create_container("https://v/1.mp4", "Hello")

        assert result.success is False
        assert result.message == (
            "Instagram API error: Invalid OAuth access token (Type: OAuthException, Code: 190)"
        )
        assert register.pending_jobs == []

    async def test_platform_error_defaults(self, register, platform):
        platform.create_container = AsyncMock(side_effect=PublishError("boom"))

        result = await register.create_container("https://v/1.mp4", "Hello")

        assert result.message == "Instagram API error: boom (Type: Unknown, Code: N/A)"

    async def test_unexpected_error_message(self, register, platform):
        platform.create_container = AsyncMock(side_effect=RuntimeError("socket closed"))

        result = await register.create_container("https://v/1.mp4", "Hello")

        assert result.success is False
        assert result.message == "Failed to create Instagram container: socket closed"


class TestRegisterQueries:
    async def test_delayed_job_stays_processing(self, platform):
        register = PublishRegister(platform, publish_delay=60)
        result = await register.create_container("https://v/1.mp4", "Hello")

        assert result.message.endswith("Will be published in 1 minute.")
        assert register.get_status("C1").status is ContainerStatus.PROCESSING
        assert register.pending_jobs == ["C1"]
        platform.publish.assert_not_awaited()

        register._jobs["C1"].task.cancel()

    async def test_reused_id_keeps_newer_job(self, platform):
        register = PublishRegister(platform, publish_delay=60)
        await register.create_container("https://v/1.mp4", "first")
        first = register._jobs["C1"]

        await register.create_container("https://v/2.mp4", "second")
        second = register._jobs["C1"]
        assert second is not first

        first.task.cancel()
        await asyncio.gather(first.task, return_exceptions=True)

        assert register.pending_jobs == ["C1"]
        assert register._jobs["C1"] is second

        second.task.cancel()
        await asyncio.gather(second.task, return_exceptions=True)
        assert register.pending_jobs == []

    async def test_unknown_container(self, register):
        assert register.get_status("missing") is None
        await register._publish_container("missing")

    async def test_list_all_and_dict(self, register, platform):
        platform.create_container = AsyncMock(side_effect=["C1", "C2"])

        await register.create_container("https://v/1.mp4", "one")
        await register.create_container("https://v/2.mp4", "two")
        await register.join()

        containers = register.list_all()
        assert [c.container_id for c in containers] == ["C1", "C2"]

        data = containers[0].to_dict()
        assert data["containerId"] == "C1"
        assert data["videoUrl"] == "https://v/1.mp4"
        assert data["status"] == "published"
        assert data["publishedMediaId"] == "M1"
        assert data["timeElapsed"] >= 0

    def test_approval_result_dict(self):
        assert ApprovalResult(success=False, message="nope").to_dict() == {"success": False, "message": "nope"}
        assert ApprovalResult(success=True, container_id="C1", message="ok").to_dict() == {
            "success": True,
            "message": "ok",
            "containerId": "C1",
        }
