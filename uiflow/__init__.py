"""
uiflow: ordered UI workflow verification.

A workflow is a YAML file of named, numbered steps. Each step drives a
browser through a few actions and then checks what the page shows. Steps
run strictly in order against one browser session and the run stops at the
first failing step.
"""

from uiflow.config import RunConfig, env_manager
from uiflow.errors import (
    UIFlowError,
    NotFound,
    StaleElement,
    WaitTimeout,
    AssertionFailed,
    DriverFailure,
    SessionAcquisitionFailed,
    RunStateError,
    StepFailure,
)
from uiflow.session import Session, SessionManager, SessionState, with_session
from uiflow.workflows import (
    WorkflowDefinition,
    WorkflowEngine,
    WorkflowExecutionResult,
    WorkflowStatus,
)

__version__ = "0.1.0"

__all__ = [
    "RunConfig",
    "env_manager",
    "UIFlowError",
    "NotFound",
    "StaleElement",
    "WaitTimeout",
    "AssertionFailed",
    "DriverFailure",
    "SessionAcquisitionFailed",
    "RunStateError",
    "StepFailure",
    "Session",
    "SessionManager",
    "SessionState",
    "with_session",
    "WorkflowDefinition",
    "WorkflowEngine",
    "WorkflowExecutionResult",
    "WorkflowStatus",
]
