"""
Workflow Module
===============

Pipeline orchestration, its data model and the manual trigger.
"""

from .models import (
    StepOutcome,
    VideoDuration,
    WorkflowConfig,
    WorkflowSteps,
    FinalOutput,
    WorkflowResult,
    ApprovalResult,
)
from .orchestrator import WorkflowOrchestrator
from .trigger import WorkflowTrigger

__all__ = [
    "StepOutcome",
    "VideoDuration",
    "WorkflowConfig",
    "WorkflowSteps",
    "FinalOutput",
    "WorkflowResult",
    "ApprovalResult",
    "WorkflowOrchestrator",
    "WorkflowTrigger",
]
