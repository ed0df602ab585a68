"""
Media Transform
===============

Downloads source images and centre-crops them to a target aspect ratio.

The crop itself is a pure function over bytes (``crop_to_ratio_bytes``);
``MediaTransform`` adds the network fetch around it.
"""

import base64
import io
import logging
import re
from typing import Optional, Tuple

import httpx
from PIL import Image, UnidentifiedImageError

from .base import BaseApiClient
from ..core.exceptions import ReelProducerError, ValidationError
from ..core.security import validate_url

logger = logging.getLogger(__name__)


MAX_IMAGE_BYTES = 10 * 1024 * 1024
DOWNLOAD_TIMEOUT = 15
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

GOOGLE_DRIVE_PATTERNS = [
    re.compile(r"drive\.google\.com/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"drive\.google\.com/open\?id=([a-zA-Z0-9_-]+)"),
    re.compile(r"drive\.google\.com/uc\?id=([a-zA-Z0-9_-]+)"),
]

MIME_BY_EXTENSION = {
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


# =============================================================================
# Pure Helpers
# =============================================================================


def convert_google_drive_url(url: str) -> str:
    """Convert a Google Drive sharing link to a direct download link."""
    for pattern in GOOGLE_DRIVE_PATTERNS:
        match = pattern.search(url)
        if match:
            return f"https://drive.google.com/uc?export=download&id={match.group(1)}"
    return url


def guess_mime_type(url: str, content_type: Optional[str] = None) -> str:
    """Pick an image MIME type from the response header, falling back to the URL."""
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        if mime.startswith("image/"):
            return mime

    url_lower = url.lower()
    for ext, mime in MIME_BY_EXTENSION.items():
        if ext in url_lower:
            return mime
    return "image/jpeg"


def parse_aspect_ratio(ratio: str) -> Tuple[int, int]:
    """Parse "W:H" into a tuple of positive integers."""
    try:
        width, height = (int(part) for part in ratio.split(":"))
    except (ValueError, AttributeError):
        raise ValidationError(f"Invalid aspect ratio: {ratio}", field="ratio", value=ratio)
    if width <= 0 or height <= 0:
        raise ValidationError(f"Invalid aspect ratio: {ratio}", field="ratio", value=ratio)
    return width, height


def compute_crop_box(width: int, height: int, ratio_w: int, ratio_h: int) -> Tuple[int, int, int, int]:
    """
    Compute the centred crop box that gives the target aspect ratio.

    Returns:
        (left, top, right, bottom) as accepted by ``Image.crop``
    """
    original = width / height
    desired = ratio_w / ratio_h

    if original > desired:
        # Too wide, crop width
        target_w = int(height * desired + 0.5)
        target_h = height
        left = int((width - target_w) / 2 + 0.5)
        top = 0
    else:
        # Too tall, crop height
        target_w = width
        target_h = int(width / desired + 0.5)
        left = 0
        top = int((height - target_h) / 2 + 0.5)

    return left, top, left + target_w, top + target_h


def crop_to_ratio_bytes(data: bytes, ratio: str = "9:16", quality: int = 90) -> bytes:
    """
    Centre-crop image bytes to the target aspect ratio and re-encode as JPEG.

    Args:
        data: Source image bytes (any format Pillow can decode)
        ratio: Target aspect ratio as "W:H"
        quality: JPEG quality (1-100)

    Returns:
        JPEG bytes

    Raises:
        ValidationError: If the bytes are empty or not a decodable image
    """
    if not data:
        raise ValidationError("Image data is empty", field="image")

    ratio_w, ratio_h = parse_aspect_ratio(ratio)

    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            if not width or not height:
                raise ValidationError("Invalid image metadata", field="image")

            box = compute_crop_box(width, height, ratio_w, ratio_h)
            logger.info(f"Cropping {width}x{height} to {box[2] - box[0]}x{box[3] - box[1]} (offset: {box[0]}, {box[1]})")

            cropped = img.convert("RGB").crop(box)
            out = io.BytesIO()
            cropped.save(out, "JPEG", quality=quality)
            return out.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Failed to process image: {e}", field="image")


def to_data_uri(data: bytes, mime_type: str = "image/jpeg") -> str:
    """Encode bytes as a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"


# =============================================================================
# Media Transform Client
# =============================================================================


class MediaTransform(BaseApiClient):
    """Fetches images from public URLs and crops them for vertical video."""

    @property
    def provider_name(self) -> str:
        return "Image Host"

    @property
    def env_key_name(self) -> Optional[str]:
        return None

    def _get_default_base_url(self) -> str:
        return ""

    def _get_headers(self):
        return {"User-Agent": USER_AGENT}

    async def download_image(self, image_url: str) -> Tuple[bytes, str]:
        """
        Download an image.

        Args:
            image_url: Public http(s) URL; Google Drive share links are accepted

        Returns:
            Tuple of (image bytes, MIME type)

        Raises:
            ValidationError: If the URL is invalid or the download fails
        """
        validate_url(image_url, field="image_url")
        direct_url = convert_google_drive_url(image_url)
        if direct_url != image_url:
            logger.info("Converted Google Drive URL to direct download link")

        try:
            response = await self._request(
                "GET", direct_url, timeout=DOWNLOAD_TIMEOUT, follow_redirects=True,
            )
        except ReelProducerError as e:
            raise ValidationError(f"Failed to download image from URL: {e.message}", field="image_url", value=image_url)

        if not response.is_success:
            raise ValidationError(
                f"Failed to download image from URL: HTTP {response.status_code}",
                field="image_url",
                value=image_url,
            )

        data = response.content
        if not data:
            raise ValidationError(
                "Downloaded image is empty (shared links may require permission)",
                field="image_url",
                value=image_url,
            )
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError(
                f"Image exceeds {MAX_IMAGE_BYTES // (1024 * 1024)}MB limit",
                field="image_url",
                value=image_url,
            )

        mime_type = guess_mime_type(image_url, response.headers.get("content-type"))
        logger.info(f"Downloaded image: {len(data)} bytes ({mime_type})")
        return data, mime_type

    async def crop_to_aspect_ratio(self, image_url: str, ratio: str = "9:16") -> str:
        """
        Download an image and crop it to the target aspect ratio.

        Args:
            image_url: Source image URL
            ratio: Target aspect ratio as "W:H"

        Returns:
            JPEG data URI of the cropped image
        """
        logger.info(f"Downloading image from: {image_url}")
        data, _ = await self.download_image(image_url)
        return to_data_uri(crop_to_ratio_bytes(data, ratio))
