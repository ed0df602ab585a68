"""
Daily Reel Producer
===================

Turns a source image into an Instagram Reel: crop to 9:16, motion prompt,
caption and hashtags, Freepik video, approval email, then a two-phase
Instagram publish.

Features:
- Fixed six-step pipeline with per-step Ok/Err outcomes
- Required vs best-effort steps (email and publish never fail a run)
- In-memory publish register with deferred, autonomous publish confirmation
- FastAPI server with email approval landing pages
- YAML configuration with environment variable interpolation

Quick Start:
    import asyncio
    import httpx
    from reel_producer import Config, WorkflowConfig, WorkflowOrchestrator

    async def main():
        async with httpx.AsyncClient() as http:
            orchestrator = WorkflowOrchestrator.from_config(Config.load(), http)
            result = await orchestrator.execute_complete_workflow(
                WorkflowConfig(image_url="https://example.com/photo.jpg")
            )
            print(result.to_dict())

    asyncio.run(main())
"""

__version__ = "0.1.0"

from .core.config import Config, get_config
from .core.exceptions import (
    ReelProducerError,
    ConfigurationError,
    ValidationError,
    ProviderError,
    GenerationError,
    TimeoutError,
    NotificationError,
    PublishError,
)
from .core.result import ErrorKind, Ok, Err, Result
from .publish import ContainerStatus, PublishContainer, PublishRegister
from .workflow import (
    ApprovalResult,
    FinalOutput,
    VideoDuration,
    WorkflowConfig,
    WorkflowOrchestrator,
    WorkflowResult,
    WorkflowSteps,
    WorkflowTrigger,
)

__all__ = [
    "__version__",
    # Core
    "Config",
    "get_config",
    "ErrorKind",
    "Ok",
    "Err",
    "Result",
    # Exceptions
    "ReelProducerError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "GenerationError",
    "TimeoutError",
    "NotificationError",
    "PublishError",
    # Workflow
    "WorkflowConfig",
    "WorkflowOrchestrator",
    "WorkflowResult",
    "WorkflowSteps",
    "FinalOutput",
    "VideoDuration",
    "WorkflowTrigger",
    # Publishing
    "ApprovalResult",
    "ContainerStatus",
    "PublishContainer",
    "PublishRegister",
]
