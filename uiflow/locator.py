"""
Locator Resolver

Resolves symbolic element queries against the current page within the
implicit lookup budget.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from uiflow.browser.interface import IAutomationDriver
from uiflow.browser.types import Locator
from uiflow.errors import NotFound, StaleElement, WaitTimeout
from uiflow.wait import WaitGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementHandle:
    """An element captured by a step, tagged with the page it lives on.

    The handle does not own the element; it is only valid while the browser
    stays on ``page_url``.
    """

    element: Any
    page_url: str
    locator: Optional[Locator] = None

    def __str__(self) -> str:
        return f"<{self.locator or 'element'} @ {self.page_url}>"


Scope = Union[ElementHandle, Any, None]


class LocatorResolver:
    """Find elements, polling for up to the implicit wait budget."""

    def __init__(
        self,
        driver: IAutomationDriver,
        wait_gate: WaitGate,
        implicit_wait: float = 5.0,
    ):
        self.driver = driver
        self.wait_gate = wait_gate
        self.implicit_wait = implicit_wait

    def find(
        self,
        locator: Union[Locator, str],
        scope: Scope = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Return the first element matching ``locator``.

        Args:
            locator: What to look for
            scope: Captured element to search inside
            timeout: Lookup budget; defaults to the implicit wait

        Raises:
            NotFound: If nothing matched within the lookup budget
            StaleElement: If ``scope`` was captured on another page
        """
        locator = Locator.parse(locator)
        root = self.dereference(scope)
        budget = self.implicit_wait if timeout is None else timeout
        try:
            matches = self.wait_gate.wait_until(
                lambda: self.driver.find_elements(locator, root),
                budget,
                message=str(locator),
            )
        except WaitTimeout as e:
            raise NotFound(f"No element matched {locator} within {budget}s") from e
        return matches[0]

    def find_all(
        self,
        locator: Union[Locator, str],
        scope: Scope = None,
        timeout: Optional[float] = None,
    ) -> List[Any]:
        """
        Return every element matching ``locator``.

        Never fails on zero matches; an empty list is returned once the
        lookup budget is spent.
        """
        locator = Locator.parse(locator)
        root = self.dereference(scope)
        try:
            return self.wait_gate.wait_until(
                lambda: self.driver.find_elements(locator, root),
                self.implicit_wait if timeout is None else timeout,
                message=str(locator),
            )
        except WaitTimeout:
            logger.debug(f"No elements matched {locator}")
            return []

    def capture(
        self,
        locator: Union[Locator, str],
        scope: Scope = None,
        timeout: Optional[float] = None,
    ) -> ElementHandle:
        """Find an element and wrap it in a handle bound to the current page."""
        locator = Locator.parse(locator)
        element = self.find(locator, scope, timeout)
        return ElementHandle(element=element, page_url=self.driver.current_url(), locator=locator)

    def find_visible(
        self,
        locator: Union[Locator, str],
        scope: Scope = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Wait until an element matching ``locator`` exists and is displayed.

        Presence and visibility share one deadline, so an element inserted
        late still counts as long as it shows up before ``timeout``.

        Raises:
            WaitTimeout: If no displayed match appeared in time
            StaleElement: If ``scope`` was captured on another page
        """
        locator = Locator.parse(locator)
        root = self.dereference(scope)
        return self.wait_gate.wait_for_visible(
            lambda: self.driver.find_elements(locator, root),
            timeout,
            description=str(locator),
        )

    def dereference(self, scope: Scope) -> Any:
        """
        Turn a scope into a raw element.

        Raises:
            StaleElement: If a handle is used after the page navigated away
        """
        if not isinstance(scope, ElementHandle):
            return scope
        current = self.driver.current_url()
        if current != scope.page_url:
            raise StaleElement(
                f"{scope} was captured on another page (now at {current})"
            )
        return scope.element
