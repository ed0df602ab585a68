"""Tests for the Freepik video task client."""

import json

import httpx
import pytest

from reel_producer.api.freepik import FreepikVideoGenerator, VideoOptions
from reel_producer.core.config import FreepikSettings
from reel_producer.core.exceptions import ConfigurationError, GenerationError, TimeoutError, ValidationError

STATUS_PREFIX = "/v1/ai/image-to-video/kling-v2-1/"


def fast_settings(attempts: int = 3) -> FreepikSettings:
    return FreepikSettings(poll_interval=0, max_poll_attempts=attempts)


def task_handler(statuses, created=None):
    """Create returns task t1; each status poll pops the next scripted item.

    Items are (status, generated) tuples or an int HTTP error code.
    """
    statuses = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            if created is not None:
                created["body"] = json.loads(request.content)
                created["api_key"] = request.headers.get("x-freepik-api-key")
            return httpx.Response(200, json={"data": {"task_id": "t1", "status": "CREATED"}})
        assert request.url.path == STATUS_PREFIX + "t1"
        item = statuses.pop(0)
        if isinstance(item, int):
            return httpx.Response(item, json={"message": f"HTTP {item}"})
        status, generated = item
        return httpx.Response(200, json={"data": {"task_id": "t1", "status": status, "generated": generated}})

    return handler


class TestPayload:
    def test_defaults_and_dropped_fields(self):
        client = FreepikVideoGenerator(api_key="k")
        body = client.build_payload("data:image/jpeg;base64,QUJD", "slow pan", "5")
        assert body == {
            "webhook_url": "https://www.example.com/webhook",
            "image": "QUJD",
            "prompt": "slow pan",
            "duration": "5",
            "cfg_scale": 0.5,
        }

    def test_options_are_sent(self):
        client = FreepikVideoGenerator(api_key="k")
        body = client.build_payload(
            "QUJD", "pan", "10", VideoOptions(negative_prompt="blur", cfg_scale=0.0),
        )
        assert body["negative_prompt"] == "blur"
        assert body["cfg_scale"] == 0.0
        assert body["duration"] == "10"

    def test_empty_image(self):
        with pytest.raises(ValidationError):
            FreepikVideoGenerator(api_key="k").build_payload("data:image/png;base64,", "pan", "5")


class TestGenerate:
    async def test_polls_until_completed(self):
        created = {}
        handler = task_handler(
            [("IN_PROGRESS", []), ("COMPLETED", ["https://cdn.freepik.com/v.mp4"])],
            created,
        )
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(), http_client=http)
            result = await client.generate("data:image/jpeg;base64,QUJD", "pan", "5")

        assert result.video_url == "https://cdn.freepik.com/v.mp4"
        assert result.task_id == "t1"
        assert result.to_dict() == {"videoUrl": "https://cdn.freepik.com/v.mp4", "taskId": "t1"}
        assert created["api_key"] == "fk"
        assert created["body"]["image"] == "QUJD"

    async def test_transient_poll_errors_are_retried(self):
        handler = task_handler([
            500,
            ("COMPLETED", ["https://cdn.freepik.com/v.mp4"]),
        ])
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(), http_client=http)
            result = await client.generate("QUJD", "pan")

        assert result.video_url == "https://cdn.freepik.com/v.mp4"

    @pytest.mark.parametrize("status", ["FAILED", "ERROR"])
    async def test_failed_status(self, status):
        handler = task_handler([(status, [])])
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(), http_client=http)
            with pytest.raises(GenerationError):
                await client.generate("QUJD", "pan")

    async def test_task_not_found(self):
        handler = task_handler([404])
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(), http_client=http)
            with pytest.raises(GenerationError, match="Task not found"):
                await client.generate("QUJD", "pan")

    async def test_attempts_exhausted(self):
        handler = task_handler([("IN_PROGRESS", [])] * 3)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(3), http_client=http)
            with pytest.raises(TimeoutError):
                await client.generate("QUJD", "pan")

    async def test_poll_errors_exhausted(self):
        handler = task_handler([503, 503])
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(2), http_client=http)
            with pytest.raises(TimeoutError):
                await client.generate("QUJD", "pan")

    async def test_create_without_task_id(self):
        def handler(request):
            return httpx.Response(200, json={"data": {}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FreepikVideoGenerator(api_key="fk", settings=fast_settings(), http_client=http)
            with pytest.raises(GenerationError):
                await client.create_task("QUJD", "pan")

    async def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            await FreepikVideoGenerator(settings=fast_settings()).create_task("QUJD", "pan")
