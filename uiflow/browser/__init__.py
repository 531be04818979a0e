"""Browser automation module.

This module provides the automation driver the runner drives pages with.
"""

from uiflow.browser.interface import IAutomationDriver
from uiflow.browser.selenium_client import SeleniumDriver
from uiflow.browser.factory import DriverFactory
from uiflow.browser.types import Locator, BrowserOptions

__all__ = [
    "IAutomationDriver",
    "SeleniumDriver",
    "DriverFactory",
    "Locator",
    "BrowserOptions",
]
