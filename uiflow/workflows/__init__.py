"""
Workflow System

Ordered UI workflows declared in YAML and executed step by step against a
browser session.

This module provides:
- Workflow definition and validation (YAML-based)
- A fail-fast execution engine
- Named actions and assertions steps are built from
"""

from pathlib import Path

from ..runtime_data import RunState, StepResult, StepStatus
from .definition import WorkflowDefinition, StepDefinition, OperationSpec
from .engine import WorkflowEngine, WorkflowExecutionResult, WorkflowStatus

EXAMPLES_DIR = Path(__file__).parent / "examples"

__all__ = [
    "RunState",
    "StepResult",
    "StepStatus",
    "WorkflowDefinition",
    "StepDefinition",
    "OperationSpec",
    "WorkflowEngine",
    "WorkflowExecutionResult",
    "WorkflowStatus",
    "EXAMPLES_DIR",
]
