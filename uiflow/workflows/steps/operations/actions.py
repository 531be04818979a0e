"""Actions: operations that drive the page or capture values."""

import logging
from typing import Any, Optional

from .base import BaseOperation, ExecutionContext

logger = logging.getLogger(__name__)


class NavigateAction(BaseOperation):
    """Open a URL."""

    changes_page = True
    required_args = ("url",)
    shorthand = "url"

    def execute(self, ctx: ExecutionContext) -> Any:
        url = self.arg(ctx, "url")
        ctx.driver.navigate(url)
        return url


class ClickAction(BaseOperation):
    """Click the element matched by ``locator``."""

    changes_page = True
    required_args = ("locator",)
    shorthand = "locator"

    def execute(self, ctx: ExecutionContext) -> Any:
        ctx.driver.click(self.find(ctx))


class TypeAction(BaseOperation):
    """Type ``text`` into an input, optionally pressing Enter."""

    changes_page = True
    required_args = ("locator",)
    optional_args = ("text", "submit")

    def validate(self) -> Optional[str]:
        error = super().validate()
        if error:
            return error
        if "text" not in self.args and not self.args.get("submit"):
            return "needs 'text' or 'submit: true'"
        return None

    def execute(self, ctx: ExecutionContext) -> Any:
        text = str(self.arg(ctx, "text", ""))
        ctx.driver.send_keys(self.find(ctx), text, submit=bool(self.args.get("submit")))
        return text


class SelectOptionAction(BaseOperation):
    """Select a dropdown option by its visible text."""

    changes_page = True
    required_args = ("locator", "text")

    def execute(self, ctx: ExecutionContext) -> Any:
        text = str(self.arg(ctx, "text"))
        ctx.driver.select_option(self.find(ctx), text)
        return text


class CaptureAction(BaseOperation):
    """Store a handle to the matched element under ``save_as``."""

    required_args = ("locator", "save_as")

    def execute(self, ctx: ExecutionContext) -> Any:
        handle = ctx.resolver.capture(
            self.resolved_locator(ctx), self.scope(ctx), ctx.wait_timeout
        )
        ctx.state.set(self.args["save_as"], handle, writer=ctx.step_name)
        logger.debug(f"Captured {handle} as '{self.args['save_as']}'")
        return handle


class CaptureTextAction(BaseOperation):
    """Store the matched element's text under ``save_as``."""

    required_args = ("locator", "save_as")

    def execute(self, ctx: ExecutionContext) -> Any:
        text = ctx.driver.text(self.find(ctx))
        ctx.state.set(self.args["save_as"], text, writer=ctx.step_name)
        return text


class SetAction(BaseOperation):
    """Store a (templated) value under ``save_as``."""

    required_args = ("value", "save_as")

    def execute(self, ctx: ExecutionContext) -> Any:
        value = self.arg(ctx, "value")
        ctx.state.set(self.args["save_as"], value, writer=ctx.step_name)
        return value


class WaitVisibleAction(BaseOperation):
    """
    Wait until the matched element is present and displayed.

    Bounded by ``timeout``, else the step's wait_timeout, else the
    explicit wait. Lookup and visibility share that one deadline.
    """

    required_args = ("locator",)
    optional_args = ("timeout",)
    shorthand = "locator"

    def validate(self) -> Optional[str]:
        error = super().validate()
        if error:
            return error
        timeout = self.args.get("timeout")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout < 0):
            return "timeout must be a non-negative number"
        return None

    def execute(self, ctx: ExecutionContext) -> Any:
        timeout = self.args.get("timeout")
        if timeout is None:
            timeout = ctx.wait_timeout
        return ctx.resolver.find_visible(
            self.resolved_locator(ctx), self.scope(ctx), timeout
        )
