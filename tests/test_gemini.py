"""Tests for caption and motion prompt generation."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from reel_producer.api.gemini import (
    CaptionOptions,
    CaptionResult,
    CaptionTone,
    GeminiClient,
    build_caption_prompt,
    compose_caption,
    extract_json_from_markdown,
    normalize_hashtags,
)
from reel_producer.core.config import CaptionSettings
from reel_producer.core.exceptions import GenerationError, ProviderError


def gemini_response(text: str) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class TestHelpers:
    def test_compose_caption(self):
        assert compose_caption("Hello", ["#a", "#b"]) == "Hello\n\n#a #b"
        assert compose_caption("Hello", []) == "Hello"
        assert compose_caption("Hello", None) == "Hello"

    def test_extract_fenced_json(self):
        text = 'Sure!\n```json\n{"caption": "x"}\n```\nEnjoy'
        assert extract_json_from_markdown(text) == '{"caption": "x"}'

    def test_extract_plain_json(self):
        assert extract_json_from_markdown('  {"caption": "x"} ') == '{"caption": "x"}'

    def test_normalize_hashtags(self):
        assert normalize_hashtags(["sun", "#sea", " ", "sky"], limit=2) == ["#sun", "#sea"]

    def test_prompt_mentions_options(self):
        options = CaptionOptions(tone=CaptionTone.FUNNY, max_hashtags=7, include_call_to_action=False)
        prompt = build_caption_prompt(options, subject="a beach at dusk")
        assert "Tone: funny" in prompt
        assert "Generate 7 relevant hashtags" in prompt
        assert "no call-to-action" in prompt
        assert "a beach at dusk" in prompt

    def test_image_prompt_has_no_subject(self):
        assert "Analyze this image" in build_caption_prompt(CaptionOptions())

    def test_options_from_settings(self):
        options = CaptionOptions.from_settings(CaptionSettings(tone="trendy", max_hashtags=5))
        assert options.tone is CaptionTone.TRENDY
        assert options.max_hashtags == 5

    def test_caption_result_dict(self):
        result = CaptionResult(caption="Hi", hashtags=["#a"])
        assert result.to_dict() == {"caption": "Hi", "hashtags": ["#a"], "fullContent": "Hi\n\n#a"}


class TestGeminiClient:
    async def test_caption_from_prompt(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.url.params.get("key")
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return gemini_response('```json\n{"caption": "Golden hour", "hashtags": ["sunset", "#beach"]}\n```')

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GeminiClient(api_key="test-key", http_client=http)
            result = await client.generate("a beach at dusk", source_type="prompt")

        assert result.caption == "Golden hour"
        assert result.hashtags == ["#sunset", "#beach"]
        assert seen["key"] == "test-key"
        assert seen["path"].endswith("/models/gemini-2.0-flash:generateContent")
        assert "a beach at dusk" in seen["body"]["contents"][0]["parts"][0]["text"]

    async def test_caption_from_image_sends_inline_data(self, jpeg_bytes):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "img.example.com":
                return httpx.Response(200, content=jpeg_bytes(50, 50), headers={"content-type": "image/jpeg"})
            seen["parts"] = json.loads(request.content)["contents"][0]["parts"]
            return gemini_response('{"caption": "Nice", "hashtags": ["a"]}')

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GeminiClient(api_key="test-key", http_client=http)
            result = await client.generate("https://img.example.com/a.jpg")

        assert result.caption == "Nice"
        assert seen["parts"][1]["inlineData"]["mimeType"] == "image/jpeg"

    async def test_hashtags_capped(self):
        tags = json.dumps([f"tag{i}" for i in range(20)])

        def handler(request):
            return gemini_response(f'{{"caption": "x", "hashtags": {tags}}}')

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GeminiClient(api_key="test-key", http_client=http)
            result = await client.generate("x", CaptionOptions(max_hashtags=3), source_type="prompt")

        assert result.hashtags == ["#tag0", "#tag1", "#tag2"]

    async def test_describe_motion(self, jpeg_bytes):
        def handler(request):
            if request.url.host == "img.example.com":
                return httpx.Response(200, content=jpeg_bytes(50, 50))
            return gemini_response("  Slow dolly in while leaves sway.  ")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GeminiClient(api_key="test-key", http_client=http)
            prompt = await client.describe_motion("https://img.example.com/a.jpg")

        assert prompt == "Slow dolly in while leaves sway."

    @pytest.mark.parametrize("text", [
        "not json at all",
        '{"caption": "x"}',
        '{"caption": "", "hashtags": []}',
        '["caption", "hashtags"]',
    ])
    async def test_malformed_output(self, text):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: gemini_response(text))) as http:
            client = GeminiClient(api_key="test-key", http_client=http)
            with pytest.raises(GenerationError):
                await client.generate("x", source_type="prompt")

    async def test_no_candidates(self):
        def handler(request):
            return httpx.Response(200, json={"candidates": []})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(GenerationError):
                await GeminiClient(api_key="test-key", http_client=http).generate("x", source_type="prompt")

    async def test_http_error_carries_upstream_message(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "API key not valid"}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ProviderError) as exc_info:
                await GeminiClient(api_key="bad", http_client=http).generate("x", source_type="prompt")

        assert "API key not valid" in exc_info.value.message
        assert exc_info.value.details["status_code"] == 400

    async def test_missing_key_makes_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GeminiClient(http_client=http)
            assert client.has_credentials is False
            with pytest.raises(GenerationError):
                await client.generate("x", source_type="prompt")

    async def test_key_from_env(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        assert GeminiClient().api_key == "env-key"

    async def test_unknown_source_type(self):
        with pytest.raises(ValueError):
            await GeminiClient(api_key="k").generate("x", source_type="video")

    @pytest.mark.parametrize("call", [
        lambda client: client.generate("https://img.example.com/a.jpg"),
        lambda client: client.describe_motion("https://img.example.com/a.jpg"),
    ])
    async def test_missing_key_skips_image_download(self, call):
        media = MagicMock()
        media.download_image = AsyncMock(return_value=(b"jpeg", "image/jpeg"))
        client = GeminiClient(media=media)

        with pytest.raises(GenerationError):
            await call(client)

        media.download_image.assert_not_awaited()
