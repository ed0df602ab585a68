"""
Gemini Client
=============

Caption, hashtag and motion-prompt generation through the Gemini
``generateContent`` REST endpoint.

Two capabilities:
- ``describe_motion``: image -> cinematic motion prompt for the video model
- ``generate``: image URL or text prompt -> caption + hashtags
"""

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

import httpx

from .base import BaseApiClient
from .media import MediaTransform
from ..core.config import CaptionSettings, DEFAULT_MOTION_INSTRUCTION
from ..core.exceptions import GenerationError
from ..core.security import sanitize_prompt, preview

logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gemini-2.0-flash"


class CaptionTone(str, Enum):
    """Voice of the generated caption."""

    CASUAL = "casual"
    PROFESSIONAL = "professional"
    FUNNY = "funny"
    INSPIRATIONAL = "inspirational"
    TRENDY = "trendy"
    EDUCATIONAL = "educational"


@dataclass
class CaptionOptions:
    """Options for caption generation."""

    tone: CaptionTone = CaptionTone.CASUAL
    max_hashtags: int = 15
    max_caption_length: int = 300
    target_audience: str = "social media users"
    include_call_to_action: bool = True

    def __post_init__(self):
        self.tone = CaptionTone(self.tone)

    @classmethod
    def from_settings(cls, settings: CaptionSettings) -> "CaptionOptions":
        return cls(
            tone=CaptionTone(settings.tone),
            max_hashtags=settings.max_hashtags,
            max_caption_length=settings.max_caption_length,
            target_audience=settings.target_audience,
            include_call_to_action=settings.include_call_to_action,
        )


@dataclass
class CaptionResult:
    """Generated caption and hashtags."""

    caption: str
    hashtags: List[str] = field(default_factory=list)

    @property
    def full_content(self) -> str:
        return compose_caption(self.caption, self.hashtags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caption": self.caption,
            "hashtags": list(self.hashtags),
            "fullContent": self.full_content,
        }


# =============================================================================
# Helpers
# =============================================================================


def compose_caption(caption: str, hashtags: Optional[List[str]]) -> str:
    """Append hashtags after a blank line, only when there are any."""
    if hashtags:
        return f"{caption}\n\n{' '.join(hashtags)}"
    return caption


def extract_json_from_markdown(text: str) -> str:
    """Strip a ```json ... ``` fence if the model wrapped its answer in one."""
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if match:
        return match.group(1).strip()
    return text.strip()


def normalize_hashtags(tags: List[Any], limit: int) -> List[str]:
    """Ensure every tag starts with '#', drop blanks, cap at ``limit``."""
    normalized = []
    for tag in tags:
        tag = str(tag).strip()
        if not tag:
            continue
        normalized.append(tag if tag.startswith("#") else f"#{tag}")
    return normalized[:limit]


def build_caption_prompt(options: CaptionOptions, subject: Optional[str] = None) -> str:
    """
    Build the caption instruction.

    Args:
        options: Caption options
        subject: Text description of the content; None means an image is attached

    Returns:
        Instruction text for the model
    """
    cta = "a call-to-action" if options.include_call_to_action else "no call-to-action"
    requirements = (
        "Requirements:\n"
        f"- Tone: {options.tone.value}\n"
        f"- Target audience: {options.target_audience}\n"
        f"- Caption max length: {options.max_caption_length} characters\n"
        f"- Include {cta}\n"
        f"- Generate {options.max_hashtags} relevant hashtags\n"
    )
    json_format = (
        "Generate EXACTLY this JSON format:\n"
        "{\n"
        '  "caption": "<engaging caption>",\n'
        '  "hashtags": ["hashtag1", "hashtag2", "hashtag3"]\n'
        "}\n"
    )

    if subject is None:
        return (
            "Analyze this image and create engaging Instagram content.\n\n"
            f"{requirements}\n"
            "Look at this image carefully and create:\n"
            "1. An engaging caption that describes what you see and makes it appealing for social media\n"
            "2. Relevant hashtags based on the visual content\n\n"
            f"{json_format}\n"
            "Focus on what you actually see in the image, its mood and atmosphere, "
            "and popular Instagram hashtags for this type of content."
        )

    return (
        f'Create Instagram Reel content for: "{subject}"\n\n'
        f"{requirements}\n"
        f"{json_format}\n"
        "Focus on a hook in the first 3 words, value-driven storytelling, "
        "and current trending hashtags."
    )


# =============================================================================
# Gemini Client
# =============================================================================


class GeminiClient(BaseApiClient):
    """Vision/text model client used as both prompt and caption generator."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        timeout: float = 60,
        http_client: Optional[httpx.AsyncClient] = None,
        media: Optional[MediaTransform] = None,
        motion_instruction: str = DEFAULT_MOTION_INSTRUCTION,
    ):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, http_client=http_client)
        self.model = model
        self.motion_instruction = motion_instruction
        self.media = media or MediaTransform(http_client=http_client)

    @property
    def provider_name(self) -> str:
        return "Gemini"

    @property
    def env_key_name(self) -> Optional[str]:
        return "GEMINI_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://generativelanguage.googleapis.com/v1beta"

    def _require_credentials(self) -> None:
        if not self.has_credentials:
            raise GenerationError("GEMINI_API_KEY environment variable is not set", stage="credentials")

    async def _image_part(self, image_url: str) -> Dict[str, Any]:
        """Download an image and wrap it as an inline-data part."""
        data, mime_type = await self.media.download_image(image_url)
        return {
            "inlineData": {
                "data": base64.b64encode(data).decode("utf-8"),
                "mimeType": mime_type,
            }
        }

    async def _generate_content(self, parts: List[Dict[str, Any]]) -> str:
        """Call generateContent and return the first candidate's text."""
        self._require_credentials()

        logger.info(f"Calling Gemini API ({self.model})")
        response = await self._request(
            "POST",
            f"{self.base_url}/models/{self.model}:generateContent",
            params={"key": self.api_key},
            json={"contents": [{"parts": parts}]},
        )
        self._raise_for_status(response)

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise GenerationError("No content generated from Gemini API", stage="gemini")

        if not text or not text.strip():
            raise GenerationError("Gemini returned an empty response", stage="gemini")

        logger.debug(f"Gemini response preview: {preview(text, 200)}")
        return text

    async def describe_motion(self, image_url: str) -> str:
        """
        Generate a motion prompt for an image.

        Args:
            image_url: Source image URL

        Returns:
            Prompt text describing how to animate the image
        """
        self._require_credentials()
        logger.info("Generating video prompt from image")
        image_part = await self._image_part(image_url)
        text = await self._generate_content([{"text": self.motion_instruction}, image_part])
        return text.strip()

    async def generate(
        self,
        source: str,
        options: Optional[CaptionOptions] = None,
        source_type: str = "image",
    ) -> CaptionResult:
        """
        Generate a caption and hashtags.

        Args:
            source: Image URL (``source_type="image"``) or text prompt (``"prompt"``)
            options: Caption options (defaults apply when omitted)
            source_type: How to interpret ``source``

        Returns:
            CaptionResult with normalized hashtags

        Raises:
            GenerationError: If the model output is missing or malformed
        """
        self._require_credentials()
        options = options or CaptionOptions()

        if source_type == "image":
            logger.info(f"Generating caption from image: {source}")
            image_part = await self._image_part(source)
            parts = [{"text": build_caption_prompt(options)}, image_part]
        elif source_type == "prompt":
            logger.info(f"Generating caption from prompt: {preview(source)}")
            parts = [{"text": build_caption_prompt(options, subject=sanitize_prompt(source))}]
        else:
            raise ValueError(f"Unknown caption source type: {source_type}")

        text = await self._generate_content(parts)

        try:
            parsed = json.loads(extract_json_from_markdown(text))
        except json.JSONDecodeError:
            raise GenerationError("Invalid JSON in caption response", stage="caption", details={"response": preview(text, 200)})

        if not isinstance(parsed, dict) or not parsed.get("caption") or not isinstance(parsed.get("hashtags"), list):
            raise GenerationError("Invalid response format from Gemini", stage="caption")

        result = CaptionResult(
            caption=str(parsed["caption"]).strip(),
            hashtags=normalize_hashtags(parsed["hashtags"], options.max_hashtags),
        )
        logger.info(f"Caption generated: {len(result.caption)} characters, {len(result.hashtags)} hashtags")
        return result
