"""
Configuration System
====================

Centralized, validated configuration management with typed dataclasses.

Secrets (API keys, SMTP password, Instagram token) are never stored in the
YAML file directly; reference them as ``${VAR}`` and they are interpolated
from the environment at load time.
"""

import os
import re
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_VIDEO_PROMPT = (
    "Create a dynamic video from this image. Add natural movement and life to the scene: "
    "gentle camera motion, moving elements like leaves, water, clouds, or people if present. "
    "Keep it smooth and realistic. Focus on bringing the static image to life with subtle "
    "animations and flowing movements. Dont add anything not present in the image. "
    "The main aim of the video is to make the image dynamic by motion."
)

DEFAULT_MOTION_INSTRUCTION = (
    "Create a dynamic video from this image. Add natural movement and life to the scene: "
    "gentle camera motion, moving elements like leaves, water, clouds, or people. "
    "Keep it smooth and realistic. Focus on bringing the static image to life with subtle "
    "animations and flowing movements."
)


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class WorkflowSettings:
    """Pipeline behaviour settings."""

    aspect_ratio: str = "9:16"
    default_duration: str = "5"
    prompt_source: str = "static"
    caption_source: str = "image"
    video_prompt: str = DEFAULT_VIDEO_PROMPT
    default_recipient: Optional[str] = field(default_factory=lambda: os.getenv("MAIL_USER") or None)
    default_images: List[str] = field(default_factory=list)

    VALID_ASPECT_RATIOS = {"9:16", "4:5", "1:1", "16:9"}
    VALID_DURATIONS = {"5", "10"}
    VALID_PROMPT_SOURCES = {"static", "generated"}
    VALID_CAPTION_SOURCES = {"image", "prompt"}

    def __post_init__(self):
        self.default_duration = str(self.default_duration)
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if self.aspect_ratio not in self.VALID_ASPECT_RATIOS:
            raise ConfigurationError(
                f"Invalid aspect ratio: {self.aspect_ratio}",
                config_key="workflow.aspect_ratio",
            )
        if self.default_duration not in self.VALID_DURATIONS:
            raise ConfigurationError(
                f"Duration must be 5 or 10 seconds, got {self.default_duration}",
                config_key="workflow.default_duration",
            )
        if self.prompt_source not in self.VALID_PROMPT_SOURCES:
            raise ConfigurationError(
                f"Invalid prompt source: {self.prompt_source}",
                config_key="workflow.prompt_source",
            )
        if self.caption_source not in self.VALID_CAPTION_SOURCES:
            raise ConfigurationError(
                f"Invalid caption source: {self.caption_source}",
                config_key="workflow.caption_source",
            )


@dataclass
class CaptionSettings:
    """Default caption generation options."""

    tone: str = "casual"
    max_hashtags: int = 15
    max_caption_length: int = 300
    target_audience: str = "social media users"
    include_call_to_action: bool = True

    VALID_TONES = {"casual", "professional", "funny", "inspirational", "trendy", "educational"}

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if self.tone not in self.VALID_TONES:
            raise ConfigurationError(
                f"Invalid tone: {self.tone}",
                config_key="caption.tone",
            )
        if not 1 <= self.max_hashtags <= 30:
            raise ConfigurationError(
                f"max_hashtags must be 1-30, got {self.max_hashtags}",
                config_key="caption.max_hashtags",
            )
        if not 1 <= self.max_caption_length <= 2200:
            raise ConfigurationError(
                f"max_caption_length must be 1-2200, got {self.max_caption_length}",
                config_key="caption.max_caption_length",
            )


@dataclass
class GeminiSettings:
    """Vision/text model settings."""

    model: str = "gemini-2.0-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: int = 60
    motion_instruction: str = DEFAULT_MOTION_INSTRUCTION


@dataclass
class FreepikSettings:
    """Video generation provider settings."""

    create_url: str = "https://api.freepik.com/v1/ai/image-to-video/kling-v2-1-pro"
    status_url: str = "https://api.freepik.com/v1/ai/image-to-video/kling-v2-1"
    webhook_url: str = "https://www.example.com/webhook"
    cfg_scale: float = 0.5
    poll_interval: float = 20.0
    max_poll_attempts: int = 15
    timeout: int = 60

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if not 0.0 <= self.cfg_scale <= 1.0:
            raise ConfigurationError(
                f"cfg_scale must be 0.0-1.0, got {self.cfg_scale}",
                config_key="freepik.cfg_scale",
            )
        if self.max_poll_attempts < 1:
            raise ConfigurationError(
                f"max_poll_attempts must be positive, got {self.max_poll_attempts}",
                config_key="freepik.max_poll_attempts",
            )


@dataclass
class EmailSettings:
    """Outbound email settings."""

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    use_tls: bool = True
    username: str = field(default_factory=lambda: os.getenv("MAIL_USER", ""))
    password: str = field(default_factory=lambda: os.getenv("MAIL_PASS", ""), repr=False)
    sender_name: str = "Content Creator Bot"
    base_url: str = field(default_factory=lambda: os.getenv("BASE_DEPLOYED_URL", "http://localhost:9000"))
    max_attempts: int = 3
    backoff_step: float = 2.0
    timeout: int = 60

    def __post_init__(self):
        self.smtp_port = int(self.smtp_port)
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if not 1 <= self.max_attempts <= 10:
            raise ConfigurationError(
                f"max_attempts must be 1-10, got {self.max_attempts}",
                config_key="email.max_attempts",
            )


@dataclass
class InstagramSettings:
    """Publishing platform settings."""

    base_url: str = "https://graph.facebook.com"
    graph_version: str = "v20.0"
    publish_delay_seconds: float = 60.0
    request_timeout: int = 60

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if self.publish_delay_seconds < 0:
            raise ConfigurationError(
                f"publish_delay_seconds must not be negative, got {self.publish_delay_seconds}",
                config_key="instagram.publish_delay_seconds",
            )


@dataclass
class ServerSettings:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "9000")))
    log_level: str = "info"

    def __post_init__(self):
        self.port = int(self.port)


# =============================================================================
# Main Configuration Class
# =============================================================================


SECTIONS = ["workflow", "caption", "gemini", "freepik", "email", "instagram", "server"]


@dataclass
class Config:
    """
    Main configuration container with validation and loading.

    Provides a unified interface to all configuration settings with:
    - Type-safe access to configuration values
    - Validation on load and modification
    - Environment variable interpolation
    - Sensible defaults for all values
    """

    workflow: WorkflowSettings = field(default_factory=WorkflowSettings)
    caption: CaptionSettings = field(default_factory=CaptionSettings)
    gemini: GeminiSettings = field(default_factory=GeminiSettings)
    freepik: FreepikSettings = field(default_factory=FreepikSettings)
    email: EmailSettings = field(default_factory=EmailSettings)
    instagram: InstagramSettings = field(default_factory=InstagramSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from file with environment variable interpolation.

        Args:
            path: Path to YAML config file (defaults.yaml)

        Returns:
            Validated Config instance
        """
        search_paths = [
            Path("./config/defaults.yaml"),
            Path("./defaults.yaml"),
            Path.home() / ".reel-producer" / "config.yaml",
        ]

        if path:
            search_paths.insert(0, Path(path))

        config_data = {}

        for search_path in search_paths:
            if search_path.exists():
                logger.info(f"Loading config from: {search_path}")
                try:
                    with open(search_path, "r") as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except yaml.YAMLError as e:
                    raise ConfigurationError(
                        f"Invalid YAML in config file: {e}",
                        config_key=str(search_path),
                    )
        else:
            logger.info("No config file found, using defaults")

        config_data = cls._interpolate_env_vars(config_data)

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary with validation."""
        try:
            return cls(
                workflow=WorkflowSettings(**_drop_empty(data.get("workflow") or {})),
                caption=CaptionSettings(**(data.get("caption") or {})),
                gemini=GeminiSettings(**(data.get("gemini") or {})),
                freepik=FreepikSettings(**(data.get("freepik") or {})),
                email=EmailSettings(**_drop_empty(data.get("email") or {})),
                instagram=InstagramSettings(**(data.get("instagram") or {})),
                server=ServerSettings(**(data.get("server") or {})),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @staticmethod
    def _interpolate_env_vars(data: Any) -> Any:
        """Recursively interpolate ${VAR} patterns with environment variables."""
        if isinstance(data, str):
            # Handle ${VAR} and ${VAR:-default} patterns
            pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

            def replace(match):
                var_name = match.group(1)
                default = match.group(2) or ""
                return os.environ.get(var_name, default)

            return re.sub(pattern, replace, data)
        elif isinstance(data, dict):
            return {k: Config._interpolate_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [Config._interpolate_env_vars(item) for item in data]
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, without secrets."""
        result = {section: asdict(getattr(self, section)) for section in SECTIONS}
        result["email"].pop("password", None)
        return result


def _drop_empty(section: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose interpolated value is empty so dataclass defaults apply."""
    return {k: v for k, v in section.items() if v != ""}


# =============================================================================
# Convenience Functions
# =============================================================================


_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance (lazily loaded)."""
    global _global_config
    if _global_config is None:
        _global_config = Config.load()
    return _global_config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset global configuration to None (forces reload on next access)."""
    global _global_config
    _global_config = None
