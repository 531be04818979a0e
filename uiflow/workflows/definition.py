"""
Workflow Definition

Parse, validate, and represent ordered UI workflows from YAML files.
"""

import re
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field

from .steps.operations import BaseOperation, registry
from .steps.operations.base import iter_strings

INPUT_REFERENCE = re.compile(r"\{\{\s*inputs\.([A-Za-z0-9_]+)")


@dataclass
class WorkflowInput:
    """Workflow input parameter definition."""

    name: str
    type: str = "string"
    required: bool = False
    default: Any = None
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Optional[Dict[str, Any]]) -> "WorkflowInput":
        """Create from dictionary."""
        data = data or {}
        return cls(
            name=name,
            type=data.get("type", "string"),
            required=data.get("required", False),
            default=data.get("default"),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class OperationSpec:
    """One action or assertion as written in a step."""

    name: str
    args: Any = field(default=None, hash=False)

    @classmethod
    def from_item(cls, item: Any) -> "OperationSpec":
        """
        Parse ``{name: args}`` or a bare operation name.

        Raises:
            ValueError: If the item is not a single-key mapping or a string
        """
        if isinstance(item, str):
            return cls(name=item)
        if isinstance(item, dict) and len(item) == 1:
            name, args = next(iter(item.items()))
            return cls(name=name, args=args)
        raise ValueError(f"Operation must be a single-key mapping, got: {item!r}")

    def build(self) -> BaseOperation:
        """Instantiate the registered operation."""
        return registry.create(self.name, self.args)

    def to_item(self) -> Any:
        return self.name if self.args is None else {self.name: self.args}


@dataclass(frozen=True)
class StepDefinition:
    """A named, ordered step. Immutable once loaded."""

    name: str
    ordinal: int
    actions: Tuple[OperationSpec, ...] = ()
    assertions: Tuple[OperationSpec, ...] = ()
    description: str = ""
    # Lookup budget for this step, for known slow transitions
    wait_timeout: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_ordinal: int) -> "StepDefinition":
        """
        Create from dictionary.

        Args:
            data: Step definition dictionary
            default_ordinal: Ordinal used when the step gives none

        Returns:
            StepDefinition instance
        """
        return cls(
            name=data.get("name", ""),
            ordinal=data.get("ordinal", default_ordinal),
            actions=tuple(OperationSpec.from_item(a) for a in data.get("actions") or []),
            assertions=tuple(
                OperationSpec.from_item(a) for a in data.get("assertions") or []
            ),
            description=data.get("description", ""),
            wait_timeout=data.get("wait_timeout"),
        )

    def build_operations(self) -> List[Tuple[str, BaseOperation]]:
        """
        Instantiate the step's operations in execution order.

        Returns:
            (expected kind, operation) pairs, actions first

        Raises:
            ValueError: If an operation is unknown
        """
        return [("action", spec.build()) for spec in self.actions] + [
            ("assertion", spec.build()) for spec in self.assertions
        ]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "ordinal": self.ordinal}
        if self.description:
            result["description"] = self.description
        if self.wait_timeout is not None:
            result["wait_timeout"] = self.wait_timeout
        if self.actions:
            result["actions"] = [spec.to_item() for spec in self.actions]
        if self.assertions:
            result["assertions"] = [spec.to_item() for spec in self.assertions]
        return result


@dataclass
class WorkflowDefinition:
    """
    Workflow definition.

    Steps run in the order they are declared. Consecutive steps that share
    an ordinal are siblings: independent checks of state captured earlier.
    """

    name: str
    version: str = "1.0"
    description: str = ""
    inputs: Dict[str, WorkflowInput] = field(default_factory=dict)
    steps: List[StepDefinition] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "WorkflowDefinition":
        """
        Parse workflow from YAML string.

        Raises:
            ValueError: If YAML is invalid
        """
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}")

        if not isinstance(data, dict) or "workflow" not in data:
            raise ValueError("YAML must contain 'workflow' key")

        return cls.from_dict(data["workflow"])

    @classmethod
    def from_file(cls, file_path: str) -> "WorkflowDefinition":
        """
        Load workflow from YAML file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If YAML is invalid
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Workflow file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            yaml_str = f.read()

        return cls.from_yaml(yaml_str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowDefinition":
        """
        Create from dictionary.

        Steps without an ordinal get the previous step's ordinal plus one.
        """
        inputs = {
            name: WorkflowInput.from_dict(name, input_data)
            for name, input_data in (data.get("inputs") or {}).items()
        }

        steps = []
        previous = 0
        for step_data in data.get("steps") or []:
            if not isinstance(step_data, dict):
                raise ValueError(f"Step must be a mapping, got: {step_data!r}")
            step = StepDefinition.from_dict(step_data, default_ordinal=previous + 1)
            steps.append(step)
            if isinstance(step.ordinal, int):
                previous = step.ordinal

        return cls(
            name=data.get("name", "unnamed"),
            version=str(data.get("version", "1.0")),
            description=data.get("description", ""),
            inputs=inputs,
            steps=steps,
            metadata=data.get("metadata") or {},
        )

    def validate(self) -> List[str]:
        """
        Validate workflow definition.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.name:
            errors.append("Workflow must have a name")
        if not self.steps:
            errors.append("Workflow must have at least one step")

        names = [step.name for step in self.steps]
        if any(not name for name in names):
            errors.append("Every step must have a name")
        duplicates = sorted({name for name in names if name and names.count(name) > 1})
        if duplicates:
            errors.append(f"Duplicate step names found: {', '.join(duplicates)}")

        previous_ordinal = 0
        for step in self.steps:
            if isinstance(step.ordinal, bool) or not isinstance(step.ordinal, int) or step.ordinal < 1:
                errors.append(f"Step '{step.name}' must have a positive integer ordinal")
                continue
            if step.ordinal < previous_ordinal:
                errors.append(
                    f"Step '{step.name}' has ordinal {step.ordinal} after ordinal "
                    f"{previous_ordinal}; steps must be declared in order"
                )
            previous_ordinal = step.ordinal
            if not step.actions and not step.assertions:
                errors.append(f"Step '{step.name}' has no actions or assertions")
            timeout = step.wait_timeout
            if timeout is not None and (
                isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0
            ):
                errors.append(f"Step '{step.name}' wait_timeout must be a non-negative number")

        if errors:
            return errors

        errors.extend(self._validate_operations())
        return errors

    def _validate_operations(self) -> List[str]:
        """
        Check every operation and the flow of state keys between steps.

        Steps sharing an ordinal may only read the page and state captured
        by earlier ordinals, and may not read each other's captures.
        """
        errors = []
        written: Dict[str, str] = {}

        for group in self.ordinal_groups():
            group_writes: Dict[str, str] = {}
            shared = len(group) > 1
            for step in group:
                try:
                    operations = step.build_operations()
                except ValueError as e:
                    errors.append(f"Step '{step.name}': {e}")
                    continue

                own_writes: Set[str] = set()
                for expected_kind, operation in operations:
                    problem = operation.validate()
                    if problem:
                        errors.append(f"Step '{step.name}' {operation.name}: {problem}")
                        continue
                    if operation.kind != expected_kind:
                        errors.append(
                            f"Step '{step.name}': '{operation.name}' is an "
                            f"{operation.kind}, not an {expected_kind}"
                        )
                    if shared and operation.changes_page:
                        errors.append(
                            f"Step '{step.name}': '{operation.name}' changes the page, "
                            f"which steps sharing ordinal {step.ordinal} may not do"
                        )

                    for key in sorted(operation.reads()):
                        if key in own_writes or key in written:
                            continue
                        if key in group_writes:
                            errors.append(
                                f"Step '{step.name}' reads '{key}' written by sibling "
                                f"step '{group_writes[key]}' with the same ordinal"
                            )
                        else:
                            errors.append(
                                f"Step '{step.name}' reads '{key}' before any step captures it"
                            )

                    for text in iter_strings(operation.args):
                        for input_name in INPUT_REFERENCE.findall(text):
                            if input_name not in self.inputs:
                                errors.append(
                                    f"Step '{step.name}' references undeclared input '{input_name}'"
                                )

                    for key in sorted(operation.writes()):
                        owner = written.get(key) or group_writes.get(key)
                        if owner or key in own_writes:
                            errors.append(
                                f"Step '{step.name}' writes '{key}' already written by "
                                f"step '{owner or step.name}'"
                            )
                        own_writes.add(key)

                for key in own_writes:
                    group_writes.setdefault(key, step.name)

            written.update(group_writes)

        return errors

    def ordinal_groups(self) -> List[List[StepDefinition]]:
        """Consecutive steps sharing an ordinal, in declared order."""
        groups: List[List[StepDefinition]] = []
        for step in self.steps:
            if groups and groups[-1][0].ordinal == step.ordinal:
                groups[-1].append(step)
            else:
                groups.append([step])
        return groups

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary.

        Returns:
            Dictionary representation
        """
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "inputs": {
                name: {
                    "type": inp.type,
                    "required": inp.required,
                    "default": inp.default,
                    "description": inp.description,
                }
                for name, inp in self.inputs.items()
            },
            "steps": [step.to_dict() for step in self.steps],
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"WorkflowDefinition(name='{self.name}', "
            f"version='{self.version}', steps={len(self.steps)})"
        )
