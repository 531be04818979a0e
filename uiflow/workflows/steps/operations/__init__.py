"""
Step operations.

Actions drive the page or capture values; assertions check what the page
shows. Both are looked up by name from the global registry.
"""

from .base import BaseOperation, ExecutionContext, OperationRegistry
from .actions import (
    NavigateAction,
    ClickAction,
    TypeAction,
    SelectOptionAction,
    CaptureAction,
    CaptureTextAction,
    SetAction,
    WaitVisibleAction,
)
from .assertions import (
    BaseAssertion,
    UrlEquals,
    UrlStartsWith,
    UrlContains,
    TextEquals,
    TextStartsWith,
    TextContains,
    TextMatches,
    SelectedOptionEquals,
    CountEquals,
    CountGreaterThan,
    IsDisplayed,
    StateEquals,
    StateMatches,
)

# Global operation registry
registry = OperationRegistry()

# Actions
registry.register("navigate", NavigateAction)
registry.register("click", ClickAction)
registry.register("type", TypeAction)
registry.register("select_option", SelectOptionAction)
registry.register("capture", CaptureAction)
registry.register("capture_text", CaptureTextAction)
registry.register("set", SetAction)
registry.register("wait_visible", WaitVisibleAction)

# Assertions
registry.register("url_equals", UrlEquals)
registry.register("url_starts_with", UrlStartsWith)
registry.register("url_contains", UrlContains)
registry.register("text_equals", TextEquals)
registry.register("text_starts_with", TextStartsWith)
registry.register("text_contains", TextContains)
registry.register("text_matches", TextMatches)
registry.register("selected_option_equals", SelectedOptionEquals)
registry.register("count_equals", CountEquals)
registry.register("count_greater_than", CountGreaterThan)
registry.register("is_displayed", IsDisplayed)
registry.register("state_equals", StateEquals)
registry.register("state_matches", StateMatches)

__all__ = [
    "BaseOperation",
    "BaseAssertion",
    "ExecutionContext",
    "OperationRegistry",
    "registry",
]
