"""
Run State

Per-run store of values captured by steps for later steps, plus template
resolution for step arguments.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from uiflow.errors import RunStateError


class StepStatus(str, Enum):
    """Status of a workflow step."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Result of a step execution."""

    step_name: str
    ordinal: int
    status: StepStatus = StepStatus.PENDING
    error: Optional[str] = None
    error_type: Optional[str] = None
    captured: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds() * 1000
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "step_name": self.step_name,
            "ordinal": self.ordinal,
            "status": self.status.value,
            "error": self.error,
            "error_type": self.error_type,
            "captured": list(self.captured),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_ms": self.duration_ms,
        }


_MISSING = object()


class RunState:
    """
    Run-scoped state.

    Each key has a single writer: the first step to store it. Later steps
    may read it any number of times. The state is discarded when the run ends.
    """

    TEMPLATE_PATTERN = re.compile(r"\{\{\s*([^}]+?)\s*\}\}")

    def __init__(
        self,
        inputs: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        workflow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ):
        """
        Initialize run state.

        Args:
            inputs: Workflow input parameters
            config: Run configuration values, readable as config.<key>
            workflow_id: Workflow name
            execution_id: Unique execution identifier
        """
        self.inputs = dict(inputs or {})
        self.config = dict(config or {})
        self.workflow_id = workflow_id
        self.execution_id = execution_id
        self.values: Dict[str, Any] = {}
        self.writers: Dict[str, str] = {}
        self.step_results: Dict[str, StepResult] = {}

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def set(self, key: str, value: Any, writer: str = ""):
        """
        Store a captured value.

        Raises:
            RunStateError: If the key was already written
        """
        if key in self.values:
            raise RunStateError(
                f"State key '{key}' was already written by step '{self.writers[key]}'"
            )
        self.values[key] = value
        self.writers[key] = writer

    def require(self, key: str) -> Any:
        """
        Read a captured value.

        Raises:
            RunStateError: If no earlier step wrote the key
        """
        if key not in self.values:
            raise RunStateError(f"State key '{key}' has not been captured by any earlier step")
        return self.values[key]

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get value using dot notation.

        Supports:
        - state.key[.attr]
        - inputs.key
        - config.key
        - steps.step_name.status / steps.step_name.error

        Args:
            path: Dot-notation path (e.g., "state.capturedPrice")
            default: Default value if path not found

        Returns:
            Value at path or default
        """
        parts = path.split(".")
        if parts[0] == "state":
            obj: Any = self.values
        elif parts[0] == "inputs":
            obj = self.inputs
        elif parts[0] == "config":
            obj = self.config
        elif parts[0] == "steps":
            if len(parts) != 3 or parts[1] not in self.step_results:
                return default
            result = self.step_results[parts[1]]
            if parts[2] == "status":
                return result.status.value
            if parts[2] == "error":
                return result.error
            return default
        else:
            return default

        for part in parts[1:]:
            if isinstance(obj, dict):
                obj = obj.get(part, _MISSING)
            else:
                obj = getattr(obj, part, _MISSING)
            if obj is _MISSING:
                return default

        return obj

    def resolve_template(self, template: Any) -> Any:
        """
        Resolve {{ expression }} templates.

        A string that is exactly one template resolves to the raw value;
        otherwise each template is substituted as text.

        Raises:
            RunStateError: If a referenced path does not exist
        """
        if not isinstance(template, str):
            return template

        matches = list(self.TEMPLATE_PATTERN.finditer(template))
        if not matches:
            return template

        if len(matches) == 1 and matches[0].group(0) == template:
            return self._evaluate(matches[0].group(1))

        return self.TEMPLATE_PATTERN.sub(
            lambda m: self._as_text(self._evaluate(m.group(1))), template
        )

    def resolve(self, value: Any) -> Any:
        """Resolve templates inside strings, lists and dicts."""
        if isinstance(value, str):
            return self.resolve_template(value)
        if isinstance(value, dict):
            return {key: self.resolve(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve(item) for item in value]
        return value

    @staticmethod
    def _as_text(value: Any) -> str:
        return "" if value is None else str(value)

    def _evaluate(self, expr: str) -> Any:
        value = self.get(expr.strip(), _MISSING)
        if value is _MISSING:
            raise RunStateError(f"Template reference '{expr.strip()}' has no value")
        return value

    def set_step_result(self, result: StepResult):
        self.step_results[result.step_name] = result

    def clear(self):
        """Discard captured values at the end of a run."""
        self.values.clear()
        self.writers.clear()

    def __repr__(self) -> str:
        return (
            f"RunState(workflow_id={self.workflow_id}, "
            f"execution_id={self.execution_id}, "
            f"keys={sorted(self.values)})"
        )
