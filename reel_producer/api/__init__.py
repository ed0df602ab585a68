"""
API Module
==========

HTTP clients for the external services the pipeline calls.

Clients:
- MediaTransform: image download and aspect-ratio crop
- GeminiClient: motion prompts, captions and hashtags
- FreepikVideoGenerator: image-to-video (Kling v2.1 Pro)
- InstagramGraphClient: Reels container create and publish
"""

from .base import BaseApiClient
from .media import MediaTransform
from .gemini import GeminiClient, CaptionOptions, CaptionResult, CaptionTone
from .freepik import FreepikVideoGenerator, VideoOptions, VideoResult
from .instagram import InstagramGraphClient

__all__ = [
    "BaseApiClient",
    "MediaTransform",
    "GeminiClient",
    "CaptionOptions",
    "CaptionResult",
    "CaptionTone",
    "FreepikVideoGenerator",
    "VideoOptions",
    "VideoResult",
    "InstagramGraphClient",
]
