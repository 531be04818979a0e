"""
Error types

Every failure a workflow run can report derives from UIFlowError.
"""

from typing import Any, Optional


class UIFlowError(Exception):
    """Base class for run failures.

    The engine attaches ``step_name`` and ``ordinal`` when the error escapes a step.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.step_name: Optional[str] = None
        self.ordinal: Optional[int] = None

    def attach(self, step_name: str, ordinal: int) -> "UIFlowError":
        """Record the step the error was raised in."""
        self.step_name = step_name
        self.ordinal = ordinal
        return self

    def __str__(self) -> str:
        if self.step_name is None:
            return self.message
        return f"[{self.ordinal}:{self.step_name}] {self.message}"


class NotFound(UIFlowError):
    """A locator matched nothing within the lookup budget."""


class StaleElement(NotFound):
    """A captured element was used after its page went away."""


class WaitTimeout(UIFlowError):
    """A wait predicate never became true before the deadline."""


class AssertionFailed(UIFlowError):
    """An observed value did not match the expected one."""

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class DriverFailure(UIFlowError):
    """The automation driver reported a transport or browser error."""


class SessionAcquisitionFailed(UIFlowError):
    """The browser session could not be started."""


class RunStateError(UIFlowError):
    """A RunState key was written twice or read before being written."""


class StepFailure(UIFlowError):
    """A step failed; wraps the original error with step context."""

    def __init__(self, cause: UIFlowError, step_name: str, ordinal: int):
        super().__init__(cause.message or str(cause))
        self.cause = cause
        self.attach(step_name, ordinal)
