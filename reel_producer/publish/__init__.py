"""Publish container tracking and deferred publishing."""

from .register import (
    ApprovalResult,
    ContainerStatus,
    PublishContainer,
    PublishJob,
    PublishRegister,
)

__all__ = [
    "ApprovalResult",
    "ContainerStatus",
    "PublishContainer",
    "PublishJob",
    "PublishRegister",
]
