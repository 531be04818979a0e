"""
Browser Step

Runs one step definition: its actions in order, then its assertions.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from uiflow.errors import UIFlowError
from uiflow.runtime_data import RunState, StepResult, StepStatus
from uiflow.session import Session
from .operations import ExecutionContext

if TYPE_CHECKING:
    from ..definition import StepDefinition

logger = logging.getLogger(__name__)


class BrowserStep:
    """
    Executable form of a StepDefinition.

    The first failing action or assertion ends the step. Failures are
    recorded on the StepResult together with the error object.
    """

    def __init__(self, definition: "StepDefinition"):
        """
        Initialize step.

        Raises:
            ValueError: If an operation is unknown
        """
        self.definition = definition
        self.name = definition.name
        self.ordinal = definition.ordinal
        self.operations = definition.build_operations()
        self.error: Optional[UIFlowError] = None

    def execute(self, session: Session, state: RunState) -> StepResult:
        """
        Run the step.

        Args:
            session: Live browser session
            state: Run state shared across steps

        Returns:
            StepResult with status PASSED or FAILED
        """
        result = StepResult(
            step_name=self.name,
            ordinal=self.ordinal,
            status=StepStatus.RUNNING,
            started_at=datetime.utcnow(),
        )
        state.set_step_result(result)
        ctx = ExecutionContext(
            session=session,
            state=state,
            step_name=self.name,
            wait_timeout=self.definition.wait_timeout,
        )

        try:
            for _, operation in self.operations:
                logger.debug(f"[{self.ordinal}:{self.name}] {operation.describe()}")
                operation.execute(ctx)
                result.captured.extend(sorted(operation.writes()))
        except UIFlowError as e:
            e.attach(self.name, self.ordinal)
            self.error = e
            result.status = StepStatus.FAILED
            result.error = e.message
            result.error_type = e.__class__.__name__
        else:
            result.status = StepStatus.PASSED
        finally:
            result.completed_at = datetime.utcnow()

        return result

    def __repr__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}(name='{self.name}', ordinal={self.ordinal})"
