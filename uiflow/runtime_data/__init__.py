"""
Runtime Data Module

Per-run data for workflow execution: captured state and step results.
"""

from .state import RunState, StepResult, StepStatus

__all__ = [
    "RunState",
    "StepResult",
    "StepStatus",
]
