"""Automation driver factory.

This module provides a factory for creating automation drivers.
"""

from typing import Optional

from uiflow.browser.interface import IAutomationDriver
from uiflow.browser.selenium_client import SeleniumDriver
from uiflow.browser.types import BrowserOptions
from uiflow.config.types import RunConfig


class DriverFactory:
    """Factory for creating automation drivers."""

    @staticmethod
    def create_driver(
        client_type: str = "selenium",
        browser_type: Optional[str] = None,
        options: Optional[BrowserOptions] = None,
    ) -> IAutomationDriver:
        """Create an automation driver of the specified type.

        Args:
            client_type: Type of driver to create (only 'selenium' is supported)
            browser_type: 'chrome' or 'edge'
            options: Browser options

        Returns:
            A started automation driver

        Raises:
            ValueError: If an unsupported client or browser type is specified
        """
        client_type = client_type.lower()

        if client_type == "selenium":
            if browser_type not in [None, "chrome", "edge"]:
                raise ValueError(
                    f"Unsupported browser type for Selenium: {browser_type}"
                )
            return SeleniumDriver(browser_type or "chrome", options)
        raise ValueError(f"Unsupported client type: {client_type}")

    @staticmethod
    def from_config(config: RunConfig) -> IAutomationDriver:
        """Create the driver described by a run configuration."""
        options = BrowserOptions(
            headless=config.headless,
            start_maximized=config.start_maximized,
        )
        return DriverFactory.create_driver("selenium", config.browser_type, options)
