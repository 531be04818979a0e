"""
Wait Gate

Deadline-bounded polling used for every element lookup and for explicit
waits after actions that trigger client-side rendering.
"""

import logging
from typing import Any, Callable, List, Optional

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.support.ui import WebDriverWait

from uiflow.browser.interface import IAutomationDriver
from uiflow.errors import WaitTimeout

logger = logging.getLogger(__name__)


class WaitGate:
    """
    Block until a predicate holds or a timeout elapses.

    The predicate is re-evaluated at a fixed interval; there is no backoff
    and no retry count. Errors raised by the predicate propagate at once.
    """

    def __init__(
        self,
        driver: Optional[IAutomationDriver],
        default_timeout: float = 5.0,
        poll_interval: float = 0.25,
    ):
        """
        Initialize the wait gate.

        Args:
            driver: Driver used by the element-level helpers
            default_timeout: Timeout applied when a call gives none
            poll_interval: Seconds between predicate evaluations
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self.driver = driver
        self.default_timeout = default_timeout
        self.poll_interval = poll_interval

    def wait_until(
        self,
        predicate: Callable[[], Any],
        timeout: Optional[float] = None,
        message: str = "",
    ) -> Any:
        """
        Wait for ``predicate`` to return a truthy value.

        Args:
            predicate: Zero-argument callable
            timeout: Seconds to wait; defaults to the gate's default timeout
            message: Description used in the timeout error

        Returns:
            The first truthy value returned by the predicate

        Raises:
            WaitTimeout: If the predicate never returned a truthy value
        """
        timeout = self.default_timeout if timeout is None else timeout
        wait = WebDriverWait(self.driver, timeout, poll_frequency=self.poll_interval)
        try:
            return wait.until(lambda _: predicate(), message)
        except TimeoutException as e:
            what = message or "condition"
            raise WaitTimeout(f"Timed out after {timeout}s waiting for {what}") from e

    def wait_for_visible(
        self,
        lookup: Callable[[], List[Any]],
        timeout: Optional[float] = None,
        description: str = "element",
    ) -> Any:
        """
        Wait until ``lookup`` returns an element that is displayed.

        Args:
            lookup: Zero-argument callable returning the current matches
            timeout: Seconds to wait; defaults to the gate's default timeout
            description: What is being waited for, used in logs and errors

        Returns:
            The first displayed match
        """

        def first_displayed():
            for element in lookup():
                if self.driver.is_displayed(element):
                    return element
            return None

        element = self.wait_until(
            first_displayed, timeout, message=f"{description} to become visible"
        )
        logger.debug(f"{description} is visible")
        return element
