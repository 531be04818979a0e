"""Automation driver interface definitions.

This module defines the capability set the runner needs from a browser
automation driver. The runner never talks to a browser directly.
"""

from abc import ABC, abstractmethod
from typing import Any, List

from uiflow.browser.types import Locator


class IAutomationDriver(ABC):
    """Interface for automation drivers.

    Element arguments and return values are opaque driver objects. Lookups
    are single attempts; waiting is the caller's job.
    """

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Open a URL in the current window."""

    @abstractmethod
    def find_element(self, locator: Locator, scope: Any = None) -> Any:
        """Return the first match for ``locator``.

        Args:
            locator: What to look for
            scope: Element to search inside, or None for the whole page

        Raises:
            NotFound: If nothing matches right now
        """

    @abstractmethod
    def find_elements(self, locator: Locator, scope: Any = None) -> List[Any]:
        """Return every current match for ``locator``, possibly none."""

    @abstractmethod
    def click(self, element: Any) -> None:
        """Click an element."""

    @abstractmethod
    def send_keys(self, element: Any, text: str, submit: bool = False) -> None:
        """Type text into an element, pressing Enter afterwards if ``submit``."""

    @abstractmethod
    def select_option(self, dropdown: Any, visible_text: str) -> None:
        """Select the dropdown option whose visible text matches exactly."""

    @abstractmethod
    def selected_option_text(self, dropdown: Any) -> str:
        """Visible text of the first selected option."""

    @abstractmethod
    def text(self, element: Any) -> str:
        """Rendered text of an element."""

    @abstractmethod
    def is_displayed(self, element: Any) -> bool:
        """Whether the element is currently visible."""

    @abstractmethod
    def current_url(self) -> str:
        """URL of the current page."""

    @abstractmethod
    def maximize(self) -> None:
        """Maximize the browser window."""

    @abstractmethod
    def save_screenshot(self, path: str) -> bool:
        """Save a screenshot of the viewport; returns True on success."""

    @abstractmethod
    def quit(self) -> None:
        """Close the browser and end the driver process."""
