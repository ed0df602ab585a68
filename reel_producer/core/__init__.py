"""
Core Module
===========

Core utilities, configuration, result types and exceptions for the Reel Producer.
"""

from .config import (
    Config,
    WorkflowSettings,
    CaptionSettings,
    GeminiSettings,
    FreepikSettings,
    EmailSettings,
    InstagramSettings,
    ServerSettings,
    get_config,
    set_config,
    reset_config,
)
from .exceptions import (
    ReelProducerError,
    ConfigurationError,
    ValidationError,
    ProviderError,
    GenerationError,
    TimeoutError,
    NotificationError,
    PublishError,
)
from .result import ErrorKind, Ok, Err, Result
from .security import validate_url, sanitize_prompt, redact_api_key

__all__ = [
    # Configuration
    "Config",
    "WorkflowSettings",
    "CaptionSettings",
    "GeminiSettings",
    "FreepikSettings",
    "EmailSettings",
    "InstagramSettings",
    "ServerSettings",
    "get_config",
    "set_config",
    "reset_config",
    # Exceptions
    "ReelProducerError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "GenerationError",
    "TimeoutError",
    "NotificationError",
    "PublishError",
    # Results
    "ErrorKind",
    "Ok",
    "Err",
    "Result",
    # Security
    "validate_url",
    "sanitize_prompt",
    "redact_api_key",
]
