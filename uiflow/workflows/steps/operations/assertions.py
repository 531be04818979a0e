"""Assertions: read-only checks that raise AssertionFailed on mismatch."""

import re
from typing import Any, Optional, Set

from uiflow.errors import AssertionFailed
from .base import BaseOperation, ExecutionContext


class BaseAssertion(BaseOperation):
    """Compare an observed value against ``expected``."""

    kind = "assertion"
    required_args = ("expected",)
    shorthand = "expected"
    verb = "equal"

    def observe(self, ctx: ExecutionContext) -> Any:
        raise NotImplementedError

    def check(self, actual: Any, expected: Any) -> bool:
        return actual == expected

    def subject(self) -> str:
        return self.describe()

    def execute(self, ctx: ExecutionContext) -> Any:
        expected = self.arg(ctx, "expected")
        actual = self.observe(ctx)
        if not self.check(actual, expected):
            raise AssertionFailed(
                f"{self.subject()}: expected value to {self.verb} {expected!r}, got {actual!r}",
                expected=expected,
                actual=actual,
            )
        return actual


class _StartsWith:
    verb = "start with"

    def check(self, actual: Any, expected: Any) -> bool:
        return str(actual).startswith(str(expected))


class _Contains:
    verb = "contain"

    def check(self, actual: Any, expected: Any) -> bool:
        return str(expected) in str(actual)


class _Matches:
    """Full-match of ``expected`` as a regular expression."""

    verb = "match"

    def validate(self) -> Optional[str]:
        error = super().validate()
        if error:
            return error
        expected = self.args["expected"]
        if isinstance(expected, str) and "{{" not in expected:
            try:
                re.compile(expected)
            except re.error as e:
                return f"invalid regular expression {expected!r}: {e}"
        return None

    def check(self, actual: Any, expected: Any) -> bool:
        return re.fullmatch(str(expected), str(actual)) is not None


class UrlEquals(BaseAssertion):
    """Current URL equals ``expected``."""

    def subject(self) -> str:
        return "current URL"

    def observe(self, ctx: ExecutionContext) -> Any:
        return ctx.driver.current_url()


class UrlStartsWith(_StartsWith, UrlEquals):
    pass


class UrlContains(_Contains, UrlEquals):
    pass


class TextEquals(BaseAssertion):
    """Text of the matched element equals ``expected``."""

    required_args = ("locator", "expected")
    shorthand = None

    def observe(self, ctx: ExecutionContext) -> Any:
        return ctx.driver.text(self.find(ctx))


class TextStartsWith(_StartsWith, TextEquals):
    pass


class TextContains(_Contains, TextEquals):
    pass


class TextMatches(_Matches, TextEquals):
    pass


class SelectedOptionEquals(TextEquals):
    """Visible text of the dropdown's selected option equals ``expected``."""

    def observe(self, ctx: ExecutionContext) -> Any:
        return ctx.driver.selected_option_text(self.find(ctx))


class CountEquals(BaseAssertion):
    """Number of elements matching the locator equals ``expected``."""

    required_args = ("locator", "expected")
    shorthand = None

    def validate(self) -> Optional[str]:
        error = super().validate()
        if error:
            return error
        expected = self.args["expected"]
        if isinstance(expected, bool) or not isinstance(expected, int):
            return "expected must be an integer"
        return None

    def observe(self, ctx: ExecutionContext) -> Any:
        return len(self.find_all(ctx))


class CountGreaterThan(CountEquals):
    verb = "be greater than"

    def check(self, actual: Any, expected: Any) -> bool:
        return actual > expected


class IsDisplayed(BaseAssertion):
    """The matched element exists and is visible."""

    required_args = ("locator",)
    shorthand = "locator"

    def execute(self, ctx: ExecutionContext) -> Any:
        if not ctx.driver.is_displayed(self.find(ctx)):
            raise AssertionFailed(
                f"{self.describe()}: element is not displayed", expected=True, actual=False
            )
        return True


class StateEquals(BaseAssertion):
    """A captured state value equals ``expected``."""

    required_args = ("key", "expected")
    shorthand = None

    def reads(self) -> Set[str]:
        key = self.args.get("key")
        return super().reads() | ({key} if key else set())

    def subject(self) -> str:
        return f"state '{self.args['key']}'"

    def observe(self, ctx: ExecutionContext) -> Any:
        return ctx.state.require(self.args["key"])


class StateMatches(_Matches, StateEquals):
    pass
