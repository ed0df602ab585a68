"""
Custom Exceptions
=================

Unified exception hierarchy for consistent error handling across the pipeline.

Every exception carries an ``ErrorKind`` so the orchestrator can turn it into
a tagged step outcome without inspecting the concrete class.
"""

from typing import Optional, Dict, Any

from .result import ErrorKind


class ReelProducerError(Exception):
    """Base exception for all Reel Producer errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


class ConfigurationError(ReelProducerError):
    """Configuration-related errors (missing credentials, bad settings)."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(message, details=details, **kwargs)


class ValidationError(ReelProducerError):
    """Input validation errors, detected before any external call."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]
        if constraint:
            details["constraint"] = constraint
        super().__init__(message, details=details, **kwargs)


class ProviderError(ReelProducerError):
    """External API returned a non-success response, or could not be reached."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        transport: bool = False,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if provider:
            details["provider"] = provider
        if status_code:
            details["status_code"] = status_code
        if response_body:
            # Truncate large responses
            details["response_body"] = response_body[:500] if len(response_body) > 500 else response_body

        recoverable = kwargs.pop("recoverable", status_code in (429, 500, 502, 503, 504) if status_code else transport)
        super().__init__(message, recoverable=recoverable, details=details, **kwargs)
        if transport:
            self.kind = ErrorKind.TRANSPORT


class GenerationError(ReelProducerError):
    """Caption, prompt or video generation errors."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        stage: Optional[str] = None,
        prompt: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if job_id:
            details["job_id"] = job_id
        if stage:
            details["stage"] = stage
        if prompt:
            details["prompt"] = prompt[:200] if len(prompt) > 200 else prompt
        super().__init__(message, details=details, **kwargs)


class TimeoutError(ReelProducerError):
    """Operation timeout errors."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, recoverable=True, details=details, **kwargs)


class NotificationError(ReelProducerError):
    """Email delivery failed after exhausting retries."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        recipient: Optional[str] = None,
        attempts: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if recipient:
            details["recipient"] = recipient
        if attempts:
            details["attempts"] = attempts
        super().__init__(message, details=details, **kwargs)


class PublishError(ReelProducerError):
    """Publishing platform reported an error for a create or confirm call."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        error_type: Optional[str] = None,
        error_code: Optional[Any] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        self.error_type = error_type or "Unknown"
        self.error_code = error_code if error_code is not None else "N/A"
        details["error_type"] = self.error_type
        details["error_code"] = self.error_code
        super().__init__(message, details=details, **kwargs)
