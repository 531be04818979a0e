"""Selenium-based automation driver.

This module provides the IAutomationDriver implementation backed by
Selenium WebDriver. It supports Chrome and Edge browsers.
"""

import os
import shutil
import socket
import logging
import platform
from typing import Any, List, Literal, Optional, Union

from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
    UnexpectedTagNameException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.edge.options import Options as EdgeOptions
from selenium.webdriver.edge.service import Service as EdgeService
from selenium.webdriver.support.ui import Select
from webdriver_manager.chrome import ChromeDriverManager
from webdriver_manager.microsoft import EdgeChromiumDriverManager

from uiflow.browser.interface import IAutomationDriver
from uiflow.browser.types import BrowserOptions, Locator
from uiflow.errors import DriverFailure, NotFound, StaleElement

logger = logging.getLogger(__name__)

BY_STRATEGIES = {
    "css": By.CSS_SELECTOR,
    "link_text": By.LINK_TEXT,
    "partial_link_text": By.PARTIAL_LINK_TEXT,
    "xpath": By.XPATH,
    "id": By.ID,
    "name": By.NAME,
    "tag": By.TAG_NAME,
    "class": By.CLASS_NAME,
}


def _translate(action: str, error: WebDriverException) -> Exception:
    """Map a Selenium exception onto the runner's error types."""
    lines = (error.msg or "").strip().splitlines()
    detail = lines[0] if lines else error.__class__.__name__
    if isinstance(error, StaleElementReferenceException):
        return StaleElement(f"{action}: element is no longer attached to the page")
    if isinstance(error, NoSuchElementException):
        return NotFound(f"{action}: {detail}")
    return DriverFailure(f"{action}: {detail}")


class SeleniumDriver(IAutomationDriver):
    """Selenium WebDriver implementation of IAutomationDriver.

    The WebDriver's own implicit wait is pinned to zero; lookup budgets are
    enforced by the locator resolver.
    """

    # Default browser type to use
    DEFAULT_BROWSER_TYPE: Literal["chrome", "edge"] = "chrome"

    # Class-level cache for WebDriver paths
    _driver_cache = {
        "chrome": {"windows": None, "macos": None, "linux": None},
        "edge": {"windows": None, "macos": None, "linux": None},
    }

    def __init__(
        self,
        browser_type: Optional[Literal["chrome", "edge"]] = None,
        options: Optional[BrowserOptions] = None,
        webdriver_instance: Any = None,
    ):
        """Initialize the Selenium driver.

        Args:
            browser_type: Type of browser to use ('chrome' or 'edge').
                         If None, uses DEFAULT_BROWSER_TYPE.
            options: Browser options; defaults to BrowserOptions()
            webdriver_instance: An already started WebDriver to wrap instead
                                of launching a browser
        """
        self.browser_type = browser_type or self.DEFAULT_BROWSER_TYPE
        self.options = options or BrowserOptions()
        if webdriver_instance is None:
            webdriver_instance = self._setup_browser()
        self._driver = webdriver_instance
        self._driver.implicitly_wait(0)

    def navigate(self, url: str) -> None:
        logger.info(f"Navigating to {url}")
        try:
            self._driver.get(url)
        except WebDriverException as e:
            raise _translate(f"navigate to {url}", e) from e

    def find_element(self, locator: Locator, scope: Any = None) -> Any:
        root = scope if scope is not None else self._driver
        try:
            return root.find_element(BY_STRATEGIES[locator.by], locator.query)
        except WebDriverException as e:
            raise _translate(f"find {locator}", e) from e

    def find_elements(self, locator: Locator, scope: Any = None) -> List[Any]:
        root = scope if scope is not None else self._driver
        try:
            return list(root.find_elements(BY_STRATEGIES[locator.by], locator.query))
        except WebDriverException as e:
            raise _translate(f"find all {locator}", e) from e

    def click(self, element: Any) -> None:
        try:
            element.click()
        except WebDriverException as e:
            raise _translate("click", e) from e

    def send_keys(self, element: Any, text: str, submit: bool = False) -> None:
        try:
            if text:
                element.send_keys(text)
            if submit:
                element.send_keys(Keys.ENTER)
        except WebDriverException as e:
            raise _translate("send keys", e) from e

    def select_option(self, dropdown: Any, visible_text: str) -> None:
        try:
            Select(dropdown).select_by_visible_text(visible_text)
        except UnexpectedTagNameException as e:
            raise DriverFailure(f"select '{visible_text}': element is not a <select>") from e
        except WebDriverException as e:
            raise _translate(f"select '{visible_text}'", e) from e

    def selected_option_text(self, dropdown: Any) -> str:
        try:
            return Select(dropdown).first_selected_option.text
        except UnexpectedTagNameException as e:
            raise DriverFailure("read selected option: element is not a <select>") from e
        except WebDriverException as e:
            raise _translate("read selected option", e) from e

    def text(self, element: Any) -> str:
        try:
            return element.text
        except WebDriverException as e:
            raise _translate("read text", e) from e

    def is_displayed(self, element: Any) -> bool:
        try:
            return element.is_displayed()
        except WebDriverException as e:
            raise _translate("check visibility", e) from e

    def current_url(self) -> str:
        try:
            return self._driver.current_url
        except WebDriverException as e:
            raise _translate("read current URL", e) from e

    def maximize(self) -> None:
        try:
            self._driver.maximize_window()
        except WebDriverException as e:
            # Headless browsers have no window manager to maximize against
            logger.warning(f"Could not maximize window: {e.msg}")
            self._driver.set_window_size(self.options.width, self.options.height)

    def save_screenshot(self, path: str) -> bool:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
            saved = self._driver.save_screenshot(path)
        except (WebDriverException, OSError) as e:
            logger.warning(f"Error taking screenshot: {e}")
            return False
        if saved:
            logger.info(f"Screenshot saved to {path}")
        return bool(saved)

    def quit(self) -> None:
        logger.info(f"Closing {self.browser_type.capitalize()} WebDriver")
        try:
            self._driver.quit()
        except WebDriverException as e:
            raise _translate("quit", e) from e

    def _build_options(self) -> Union[ChromeOptions, EdgeOptions]:
        """Build browser options for Chrome or Edge."""
        if self.browser_type == "chrome":
            options = ChromeOptions()
        elif self.browser_type == "edge":
            options = EdgeOptions()
        else:
            raise ValueError(f"Unsupported browser type: {self.browser_type}")

        # Default options for better stability and compatibility
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--disable-gpu")

        # Use a dynamic port for remote debugging to avoid conflicts
        options.add_argument(f"--remote-debugging-port={self._find_free_port()}")

        if self.options.start_maximized:
            options.add_argument("--start-maximized")
        else:
            options.add_argument(
                f"--window-size={self.options.width},{self.options.height}"
            )

        # Headless goes last so nothing above overrides it
        if self.options.headless:
            options.add_argument("--headless=new")

        return options

    def _setup_browser(self) -> Union[webdriver.Chrome, webdriver.Edge]:
        """Set up and return a WebDriver instance for Chrome or Edge.

        Raises:
            WebDriverException: If the browser or driver cannot be started
        """
        browser_type = self.browser_type
        options = self._build_options()

        logger.info(f"Setting up {browser_type.capitalize()} browser...")
        system = platform.system()
        driver_path = self._get_cached_driver_path(system, browser_type)
        if not driver_path:
            driver_path = self._find_driver_binary(browser_type)
            if driver_path and os.path.exists(driver_path):
                self._cache_driver_path(system, browser_type, driver_path)

        logger.info(f"Using {browser_type.capitalize()}Driver at: {driver_path}")
        try:
            if browser_type == "chrome":
                driver = webdriver.Chrome(service=ChromeService(driver_path), options=options)
            else:
                driver = webdriver.Edge(service=EdgeService(driver_path), options=options)
        except WebDriverException:
            logger.error(self._troubleshooting_info(browser_type))
            raise
        logger.info(f"{browser_type.capitalize()} WebDriver successfully created")
        return driver

    def _find_driver_binary(self, browser_type: str) -> Optional[str]:
        """Locate the driver executable on PATH, downloading it if missing."""
        binary = "chromedriver" if browser_type == "chrome" else "msedgedriver"
        driver_path = shutil.which(binary)
        if driver_path:
            logger.info(f"Found {binary} at: {driver_path}")
            return driver_path

        logger.info(f"{binary} not found in PATH, using webdriver_manager...")
        if browser_type == "chrome":
            driver_path = ChromeDriverManager().install()
        else:
            driver_path = EdgeChromiumDriverManager().install()

        if driver_path and not os.access(driver_path, os.X_OK):
            logger.info(f"Adding execute permission to {driver_path}")
            os.chmod(driver_path, 0o755)
        return driver_path

    def _get_cached_driver_path(self, system: str, browser_type: str) -> Optional[str]:
        """Get cached driver path for the given system and browser type."""
        cache_key = self._get_cache_key(system)
        if cache_key and self._driver_cache[browser_type][cache_key]:
            cached_path = self._driver_cache[browser_type][cache_key]
            if os.path.exists(cached_path) and os.access(cached_path, os.X_OK):
                return cached_path
        return None

    def _cache_driver_path(self, system: str, browser_type: str, driver_path: str):
        """Cache driver path for future use."""
        cache_key = self._get_cache_key(system)
        if cache_key:
            self._driver_cache[browser_type][cache_key] = driver_path

    def _get_cache_key(self, system: str) -> Optional[str]:
        """Get cache key for the given operating system."""
        if system == "Darwin":  # macOS
            return "macos"
        elif system == "Windows":
            return "windows"
        elif system == "Linux":
            return "linux"
        return None

    def _find_free_port(self) -> int:
        """Find a free port for remote debugging."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("", 0))
            return s.getsockname()[1]

    def _troubleshooting_info(self, browser_type: str) -> str:
        """Troubleshooting hints for browser setup failures."""
        lines = [
            f"Could not start {browser_type.capitalize()}. Troubleshooting steps:",
            f"1. Make sure {browser_type.capitalize()} is installed",
        ]
        if browser_type == "chrome":
            lines.append("2. On Linux, try: apt-get install chromium-chromedriver")
            lines.append("3. On macOS, try: brew install --cask chromedriver")
        else:
            lines.append(
                "2. Download EdgeDriver from: "
                "https://developer.microsoft.com/en-us/microsoft-edge/tools/webdriver/"
            )
            lines.append("3. Make sure the EdgeDriver version matches your Edge browser")
        lines.append(
            f"4. Kill stale browser processes (pkill {'chrome' if browser_type == 'chrome' else 'msedge'})"
        )
        return "\n".join(lines)
