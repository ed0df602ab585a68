"""
Security Utilities
==================

URL validation, input sanitization, and secret redaction.
"""

import re
import logging
from typing import Optional, Set
from urllib.parse import urlparse

from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def validate_url(url: str, allowed_hosts: Optional[Set[str]] = None, field: str = "url") -> str:
    """
    Validate a URL for safety.

    Args:
        url: URL to validate
        allowed_hosts: Set of allowed hostnames (None = any public host)
        field: Name of the input being validated, for error details

    Returns:
        Validated URL

    Raises:
        ValidationError: If URL is empty, malformed or points at a local address
    """
    if not url or not url.strip():
        raise ValidationError("URL is required", field=field)

    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {e}", field=field, value=url)

    # Only allow HTTP/HTTPS
    if parsed.scheme not in ("http", "https"):
        raise ValidationError(
            f"Invalid URL scheme: {parsed.scheme or 'none'}",
            field=field,
            value=url,
            constraint="http or https",
        )

    hostname = parsed.hostname or ""
    if not hostname:
        raise ValidationError("URL has no host", field=field, value=url)

    # Block local/private addresses
    blocked_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
    if hostname.lower() in blocked_hosts:
        raise ValidationError(
            "URLs to local addresses are not allowed",
            field=field,
            value=url,
        )

    if re.match(r"^(10\.|192\.168\.|172\.(1[6-9]|2\d|3[01])\.)", hostname):
        raise ValidationError(
            "URLs to private IP addresses are not allowed",
            field=field,
            value=url,
        )

    if allowed_hosts and hostname.lower() not in allowed_hosts:
        raise ValidationError(
            f"Host not in allowed list: {hostname}",
            field=field,
            value=url,
        )

    return url.strip()


def sanitize_prompt(prompt: str, max_length: int = 2000) -> str:
    """
    Sanitize a prompt string before embedding it in a model request.

    Args:
        prompt: User-provided prompt
        max_length: Maximum allowed length

    Returns:
        Sanitized prompt string
    """
    if not prompt:
        return ""

    # Remove control characters
    sanitized = "".join(char for char in prompt if char.isprintable() or char in "\n\t")

    injection_patterns = [
        r"ignore previous instructions",
        r"disregard above",
        r"system prompt",
        r"\[INST\]",
        r"\[/INST\]",
        r"<\|im_start\|>",
        r"<\|im_end\|>",
    ]

    for pattern in injection_patterns:
        sanitized = re.sub(pattern, "", sanitized, flags=re.IGNORECASE)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]
        logger.warning(f"Prompt truncated from {len(prompt)} to {max_length} characters")

    return sanitized.strip()


def redact_api_key(text: str) -> str:
    """
    Redact API keys and access tokens from text before it is logged.

    Args:
        text: Text that might contain secrets

    Returns:
        Text with secrets redacted
    """
    if not text:
        return text

    patterns = [
        # Generic Bearer tokens
        (r"Bearer\s+[A-Za-z0-9_\-\.]+", "Bearer ***REDACTED***"),
        # Google API keys (also appear as ?key=...)
        (r"AIza[A-Za-z0-9_\-]{35}", "AIza***REDACTED***"),
        (r"([?&]key=)[^&\s]+", r"\1***REDACTED***"),
        # Graph API access tokens
        (r"(access_token=)[^&\s]+", r"\1***REDACTED***"),
        (r"EAA[A-Za-z0-9]{20,}", "EAA***REDACTED***"),
        # Header style keys
        (r"(x-freepik-api-key['\"]?\s*[:=]\s*['\"]?)[A-Za-z0-9_\-]+", r"\1***REDACTED***"),
        (r"api[_-]?key['\"]?\s*[:=]\s*['\"]?[A-Za-z0-9_\-]+", "api_key: ***REDACTED***"),
        # Environment variable patterns
        (
            r"(GEMINI_API_KEY|FREEPIK_API_KEY|INSTAGRAM_ACCESS_TOKEN|MAIL_PASS)=[^\s]+",
            r"\1=***REDACTED***",
        ),
    ]

    result = text
    for pattern, replacement in patterns:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)

    return result


def preview(text: str, limit: int = 100) -> str:
    """Shorten text for log lines."""
    if text is None:
        return ""
    return text if len(text) <= limit else f"{text[:limit]}..."
