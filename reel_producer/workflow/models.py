"""
Workflow data model: run input, per-step outcomes and the aggregated result.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, List, Dict, Any, Union

from ..core.exceptions import ValidationError
from ..core.result import Ok, Err
from ..publish.register import ApprovalResult

# Outcome of one pipeline stage; the data payload is a plain dict
StepOutcome = Union[Ok[Dict[str, Any]], Err]


class VideoDuration(str, Enum):
    SHORT = "5"
    LONG = "10"


TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off", ""}


def parse_flag(value: Any, field: str) -> bool:
    """Read a boolean flag from request data; strings like "false" parse as False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValidationError(f"Invalid boolean for {field}: {value!r}", field=field, value=value)


@dataclass(frozen=True)
class WorkflowConfig:
    """Input to one orchestration run."""

    image_url: str
    recipient_email: Optional[str] = None
    video_duration: VideoDuration = VideoDuration.SHORT
    auto_publish_to_instagram: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowConfig":
        """
        Build from request data; camelCase and snake_case keys are both accepted.

        Raises:
            ValidationError: If the image URL is missing or the duration is unknown
        """
        def pick(camel: str, snake: str, default: Any = None) -> Any:
            value = data.get(camel, data.get(snake))
            return default if value is None else value

        image_url = pick("imageUrl", "image_url")
        if not image_url:
            raise ValidationError("imageUrl is required", field="imageUrl")

        duration = str(pick("videoDuration", "video_duration", VideoDuration.SHORT.value))
        try:
            video_duration = VideoDuration(duration)
        except ValueError:
            raise ValidationError(
                f"Invalid video duration: {duration}",
                field="videoDuration",
                value=duration,
                constraint="must be 5 or 10",
            )

        return cls(
            image_url=image_url,
            recipient_email=pick("recipientEmail", "recipient_email"),
            video_duration=video_duration,
            auto_publish_to_instagram=parse_flag(
                pick("autoPublishToInstagram", "auto_publish_to_instagram", False),
                field="autoPublishToInstagram",
            ),
        )


STEP_KEYS = {
    "image_conversion": "imageConversion",
    "prompt_generation": "promptGeneration",
    "caption_generation": "captionGeneration",
    "video_generation": "videoGeneration",
    "email_sending": "emailSending",
    "instagram_upload": "instagramUpload",
}

REQUIRED_STEPS = ("image_conversion", "prompt_generation", "caption_generation", "video_generation")


@dataclass
class WorkflowSteps:
    """Ordered step outcomes; None means the step was never reached."""

    image_conversion: Optional[StepOutcome] = None
    prompt_generation: Optional[StepOutcome] = None
    caption_generation: Optional[StepOutcome] = None
    video_generation: Optional[StepOutcome] = None
    email_sending: Optional[StepOutcome] = None
    instagram_upload: Optional[StepOutcome] = None

    def record(self, name: str, outcome: StepOutcome) -> StepOutcome:
        if name not in STEP_KEYS:
            raise KeyError(f"Unknown workflow step: {name}")
        setattr(self, name, outcome)
        return outcome

    def required_ok(self) -> bool:
        return all(isinstance(getattr(self, name), Ok) for name in REQUIRED_STEPS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            STEP_KEYS[f.name]: getattr(self, f.name).to_dict()
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class FinalOutput:
    """Snapshot of everything a completed run produced."""

    converted_image: str
    prompt: str
    caption: str
    hashtags: List[str]
    video_url: str
    email_sent: bool = False
    instagram_container_id: Optional[str] = None
    instagram_published: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "convertedImage": self.converted_image,
            "prompt": self.prompt,
            "caption": self.caption,
            "hashtags": list(self.hashtags),
            "videoUrl": self.video_url,
            "emailSent": self.email_sent,
            "instagramContainerId": self.instagram_container_id,
            "instagramPublished": self.instagram_published,
        }


@dataclass
class WorkflowResult:
    success: bool = False
    steps: WorkflowSteps = field(default_factory=WorkflowSteps)
    final_output: Optional[FinalOutput] = None
    execution_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "steps": self.steps.to_dict(),
            "executionTime": self.execution_time_ms,
        }
        if self.final_output is not None:
            data["finalOutput"] = self.final_output.to_dict()
        return data


__all__ = [
    "StepOutcome",
    "VideoDuration",
    "WorkflowConfig",
    "WorkflowSteps",
    "FinalOutput",
    "WorkflowResult",
    "ApprovalResult",
    "STEP_KEYS",
    "REQUIRED_STEPS",
]
