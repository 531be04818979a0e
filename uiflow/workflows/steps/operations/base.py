"""Base operation class and registry for step actions and assertions."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Type

from uiflow.browser.types import Locator
from uiflow.locator import ElementHandle
from uiflow.runtime_data import RunState
from uiflow.session import Session
from uiflow.errors import RunStateError

STATE_REFERENCE = re.compile(r"\{\{\s*state\.([A-Za-z0-9_]+)")


def iter_strings(value: Any) -> Iterator[str]:
    """Yield every string nested inside an argument value."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_strings(item)


@dataclass
class ExecutionContext:
    """What an operation can touch while it runs."""

    session: Session
    state: RunState
    step_name: str
    # Step-level lookup budget overriding the implicit wait
    wait_timeout: Optional[float] = None

    @property
    def driver(self):
        return self.session.driver

    @property
    def resolver(self):
        return self.session.resolver

    @property
    def wait_gate(self):
        return self.session.wait_gate


class BaseOperation(ABC):
    """
    Base class for step operations.

    Subclasses declare their arguments and implement execute(). Actions
    change the page or the run state; assertions only read and raise
    AssertionFailed on mismatch.
    """

    kind: str = "action"
    required_args: Tuple[str, ...] = ()
    optional_args: Tuple[str, ...] = ()
    # Argument a scalar shorthand maps to, e.g. "- click: '#go'"
    shorthand: Optional[str] = None
    # Navigates or mutates the page, so sibling steps must not use it
    changes_page: bool = False

    def __init__(self, name: str, args: Dict[str, Any]):
        """
        Initialize operation.

        Args:
            name: Registered operation name
            args: Operation arguments from the step definition
        """
        self.name = name
        self.args = dict(args)

    def validate(self) -> Optional[str]:
        """
        Validate the arguments.

        Returns:
            Error message if invalid, None if valid
        """
        missing = [arg for arg in self.required_args if arg not in self.args]
        if missing:
            return f"missing argument(s): {', '.join(missing)}"
        allowed = set(self.required_args) | set(self.optional_args)
        unknown = sorted(set(self.args) - allowed)
        if unknown:
            return f"unknown argument(s): {', '.join(unknown)}"
        if "locator" in self.args:
            try:
                Locator.parse(self.args["locator"])
            except ValueError as e:
                return f"invalid locator: {e}"
        return None

    @abstractmethod
    def execute(self, ctx: ExecutionContext) -> Any:
        """
        Run the operation.

        Raises:
            UIFlowError: On any failure
        """

    @property
    def locator(self) -> Locator:
        return Locator.parse(self.args["locator"])

    def reads(self) -> Set[str]:
        """State keys this operation reads."""
        keys: Set[str] = set()
        if "locator" in self.args and self.locator.scope:
            keys.add(self.locator.scope)
        for text in iter_strings(self.args):
            keys.update(STATE_REFERENCE.findall(text))
        return keys

    def writes(self) -> Set[str]:
        """State keys this operation writes."""
        save_as = self.args.get("save_as")
        return {save_as} if save_as else set()

    def arg(self, ctx: ExecutionContext, name: str, default: Any = None) -> Any:
        """Argument value with templates resolved against the run state."""
        if name not in self.args:
            return default
        return ctx.state.resolve(self.args[name])

    def resolved_locator(self, ctx: ExecutionContext) -> Locator:
        """The locator with templates in its query resolved."""
        return Locator.parse(ctx.state.resolve(self.args["locator"]))

    def scope(self, ctx: ExecutionContext) -> Optional[ElementHandle]:
        """The captured element the locator is scoped to, if any."""
        key = self.locator.scope
        if not key:
            return None
        handle = ctx.state.require(key)
        if not isinstance(handle, ElementHandle):
            raise RunStateError(f"State key '{key}' does not hold a captured element")
        return handle

    def find(self, ctx: ExecutionContext) -> Any:
        return ctx.resolver.find(
            self.resolved_locator(ctx), self.scope(ctx), ctx.wait_timeout
        )

    def find_all(self, ctx: ExecutionContext) -> List[Any]:
        return ctx.resolver.find_all(
            self.resolved_locator(ctx), self.scope(ctx), ctx.wait_timeout
        )

    def describe(self) -> str:
        if "locator" in self.args:
            return f"{self.name}({self.locator})"
        return self.name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', args={self.args})"


class OperationRegistry:
    """Registry for step operations."""

    def __init__(self):
        """Initialize operation registry."""
        self._operations: Dict[str, Type[BaseOperation]] = {}

    def register(self, name: str, operation_class: Type[BaseOperation]):
        """
        Register an operation.

        Args:
            name: Operation name
            operation_class: Operation class
        """
        self._operations[name] = operation_class

    def get(self, name: str) -> Optional[Type[BaseOperation]]:
        """
        Get operation class by name.

        Args:
            name: Operation name

        Returns:
            Operation class or None if not found
        """
        return self._operations.get(name)

    def create(self, name: str, args: Any) -> BaseOperation:
        """
        Instantiate a registered operation.

        Scalar ``args`` are mapped onto the operation's shorthand argument;
        so is a bare locator mapping for operations whose shorthand is the locator.

        Raises:
            ValueError: If the operation is unknown or the shorthand is unsupported
        """
        operation_class = self.get(name)
        if operation_class is None:
            raise ValueError(
                f"Unknown operation '{name}'. "
                f"Available: {', '.join(self.list_operations())}"
            )
        if args is None:
            args = {}
        elif (
            isinstance(args, dict)
            and operation_class.shorthand == "locator"
            and "query" in args
            and set(args) <= set(Locator.model_fields)
        ):
            # "- click: {query: Paperback, by: link_text}"
            args = {"locator": args}
        elif not isinstance(args, dict):
            if operation_class.shorthand is None:
                raise ValueError(f"Operation '{name}' needs a mapping of arguments")
            args = {operation_class.shorthand: args}
        return operation_class(name, args)

    def list_operations(self, kind: Optional[str] = None) -> List[str]:
        """
        List registered operations, optionally filtered by kind.

        Returns:
            List of operation names
        """
        return [
            name
            for name, operation_class in self._operations.items()
            if kind is None or operation_class.kind == kind
        ]
