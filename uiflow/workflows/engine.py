"""
Workflow Engine

Execute ordered UI workflows against a browser session, fail-fast.
"""

import logging
import os
import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from uiflow.errors import StepFailure
from uiflow.runtime_data import RunState, StepResult, StepStatus
from uiflow.session import Session
from .definition import WorkflowDefinition
from .steps import BrowserStep

# Exit statuses above this are reserved by shells for signals and the like
MAX_ORDINAL_EXIT_CODE = 125
GENERIC_FAILURE_EXIT_CODE = 1


class WorkflowStatus(str, Enum):
    """Workflow execution status."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class WorkflowExecutionResult:
    """Result of workflow execution."""

    workflow_id: str
    execution_id: str
    status: WorkflowStatus
    step_results: List[StepResult] = field(default_factory=list)
    failure: Optional[StepFailure] = None
    screenshot_path: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def passed(self) -> bool:
        return self.status == WorkflowStatus.PASSED

    @property
    def first_failure(self) -> Optional[StepResult]:
        """Result of the first step that failed, in declared order."""
        for step_result in self.step_results:
            if step_result.status == StepStatus.FAILED:
                return step_result
        return None

    @property
    def exit_code(self) -> int:
        """0 on success, else the first failing ordinal (or 1 if out of range)."""
        if self.passed:
            return 0
        failed = self.first_failure
        if failed is not None and 1 <= failed.ordinal <= MAX_ORDINAL_EXIT_CODE:
            return failed.ordinal
        return GENERIC_FAILURE_EXIT_CODE

    def raise_for_status(self):
        """
        Raise the first step failure, if any.

        Raises:
            StepFailure: If a step failed
        """
        if self.failure is not None:
            raise self.failure

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "workflow_id": self.workflow_id,
            "execution_id": self.execution_id,
            "status": self.status.value,
            "exit_code": self.exit_code,
            "step_results": [result.to_dict() for result in self.step_results],
            "error": str(self.failure) if self.failure else None,
            "screenshot_path": self.screenshot_path,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }


class WorkflowEngine:
    """
    Workflow execution engine.

    Runs steps strictly in declared order. Sibling steps sharing an ordinal
    all run; after the first group containing a failure the remaining steps
    are skipped. There are no retries.
    """

    def __init__(self, screenshot_dir: Optional[str] = None):
        """
        Initialize workflow engine.

        Args:
            screenshot_dir: Where to save a screenshot of the first failing
                            step. Falls back to the session's configuration.
        """
        self.logger = logging.getLogger(__name__)
        self.screenshot_dir = screenshot_dir

    def run(
        self,
        workflow: WorkflowDefinition,
        session: Session,
        inputs: Optional[Dict[str, Any]] = None,
    ) -> WorkflowExecutionResult:
        """
        Execute a workflow.

        Args:
            workflow: Workflow definition
            session: Live browser session
            inputs: Workflow inputs

        Returns:
            WorkflowExecutionResult with one StepResult per declared step

        Raises:
            ValueError: If the workflow or its inputs are invalid
        """
        errors = workflow.validate()
        if errors:
            raise ValueError(f"Invalid workflow: {'; '.join(errors)}")

        resolved_inputs = self._resolve_inputs(workflow, inputs or {})
        groups = [[BrowserStep(d) for d in group] for group in workflow.ordinal_groups()]

        execution_id = str(uuid.uuid4())
        state = RunState(
            inputs=resolved_inputs,
            config=session.config.model_dump(),
            workflow_id=workflow.name,
            execution_id=execution_id,
        )
        result = WorkflowExecutionResult(
            workflow_id=workflow.name,
            execution_id=execution_id,
            status=WorkflowStatus.RUNNING,
            started_at=datetime.utcnow(),
        )

        self.logger.info(
            f"Starting workflow '{workflow.name}' (execution: {execution_id})"
        )

        try:
            self._execute_groups(groups, session, state, result)
        finally:
            result.completed_at = datetime.utcnow()
            state.clear()

        if result.failure is None:
            result.status = WorkflowStatus.PASSED
        else:
            result.status = WorkflowStatus.FAILED
            session.mark_failed()

        self.logger.info(
            f"Workflow '{workflow.name}' finished with status: {result.status.value}"
        )
        return result

    def _resolve_inputs(
        self, workflow: WorkflowDefinition, inputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Apply defaults and check required inputs.

        Raises:
            ValueError: If required inputs are missing
        """
        resolved = dict(inputs)
        for name, input_def in workflow.inputs.items():
            if name in resolved:
                continue
            if input_def.required:
                raise ValueError(f"Required input '{name}' not provided")
            resolved[name] = input_def.default
        return resolved

    def _execute_groups(
        self,
        groups: List[List[BrowserStep]],
        session: Session,
        state: RunState,
        result: WorkflowExecutionResult,
    ):
        """Run ordinal groups in order, stopping after the first failing group."""
        for index, group in enumerate(groups):
            for step in group:
                self.logger.info(f"Executing step {step.ordinal} '{step.name}'")
                step_result = step.execute(session, state)
                result.step_results.append(step_result)

                if step_result.status == StepStatus.PASSED:
                    self.logger.info(f"Step {step.ordinal} '{step.name}' passed")
                    continue

                self.logger.error(f"Step {step.ordinal} '{step.name}' failed: {step.error}")
                if result.failure is None:
                    result.failure = StepFailure(step.error, step.name, step.ordinal)
                    result.screenshot_path = self._capture_failure(session, state, step)

            if result.failure is not None:
                self._skip_remaining(groups[index + 1:], state, result)
                return

    def _skip_remaining(
        self,
        groups: List[List[BrowserStep]],
        state: RunState,
        result: WorkflowExecutionResult,
    ):
        for group in groups:
            for step in group:
                skipped = StepResult(
                    step_name=step.name, ordinal=step.ordinal, status=StepStatus.SKIPPED
                )
                state.set_step_result(skipped)
                result.step_results.append(skipped)
                self.logger.info(f"Step {step.ordinal} '{step.name}' skipped")

    def _capture_failure(
        self, session: Session, state: RunState, step: BrowserStep
    ) -> Optional[str]:
        """Save a screenshot of the page the step failed on, when configured."""
        directory = self.screenshot_dir or session.config.screenshot_dir
        if not directory:
            return None

        safe_name = re.sub(r"[^A-Za-z0-9_.-]+", "_", f"{state.workflow_id}-{step.ordinal}-{step.name}")
        path = os.path.join(directory, f"{safe_name}.png")
        if session.driver.save_screenshot(path):
            return path
        self.logger.warning(f"Could not save failure screenshot to {path}")
        return None
