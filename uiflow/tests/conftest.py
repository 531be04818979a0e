"""
Shared fixtures for uiflow tests.

FakeDriver is an in-memory IAutomationDriver: pages are dicts of
(strategy, query) -> elements and elements may nest children of their own.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from uiflow.browser.interface import IAutomationDriver
from uiflow.browser.types import Locator
from uiflow.config.types import RunConfig
from uiflow.errors import DriverFailure, NotFound
from uiflow.session import SessionManager

BASE_URL = "https://example-shop.test/"

Key = Tuple[str, str]


class FakeElement:
    """A fake page element."""

    def __init__(
        self,
        text: str = "",
        displayed: bool = True,
        children: Optional[Dict[Key, List["FakeElement"]]] = None,
        on_click: Optional[Callable[["FakeDriver"], None]] = None,
        on_submit: Optional[Callable[["FakeDriver", "FakeElement"], None]] = None,
        options: Optional[List[str]] = None,
    ):
        self.text = text
        self.displayed = displayed
        self.children = children or {}
        self.on_click = on_click
        self.on_submit = on_submit
        self.options = options
        self.selected = options[0] if options else None
        self.value = ""

    def add(self, query: str, *elements: "FakeElement", by: str = "css") -> "FakeElement":
        self.children.setdefault((by, query), []).extend(elements)
        return self

    def __repr__(self) -> str:
        return f"FakeElement(text={self.text!r})"


class FakeDriver(IAutomationDriver):
    """In-memory driver recording what the runner asked it to do."""

    def __init__(self):
        self.pages: Dict[str, Dict[Key, List[FakeElement]]] = {}
        self.url = "about:blank"
        self.history: List[str] = []
        self.clicks: List[FakeElement] = []
        self.screenshots: List[str] = []
        self.appear_at: Dict[Key, float] = {}
        self.lookups = 0
        self.quit_count = 0
        self.maximized = False
        self.fail_maximize = False
        self.fail_quit = False

    # Page setup helpers

    def add(self, url: str, query: str, *elements: FakeElement, by: str = "css") -> "FakeDriver":
        self.pages.setdefault(url, {}).setdefault((by, query), []).extend(elements)
        return self

    def reveal_after(self, query: str, seconds: float, by: str = "css"):
        """Hide matches for ``query`` until ``seconds`` from now."""
        self.appear_at[(by, query)] = time.monotonic() + seconds

    # IAutomationDriver

    def navigate(self, url: str) -> None:
        self.url = url
        self.history.append(url)

    def find_element(self, locator: Locator, scope: Any = None) -> Any:
        matches = self.find_elements(locator, scope)
        if not matches:
            raise NotFound(f"find {locator}: no such element")
        return matches[0]

    def find_elements(self, locator: Locator, scope: Any = None) -> List[Any]:
        self.lookups += 1
        key = (locator.by, locator.query)
        if key in self.appear_at and time.monotonic() < self.appear_at[key]:
            return []
        container = scope.children if scope is not None else self.pages.get(self.url, {})
        return list(container.get(key, []))

    def click(self, element: Any) -> None:
        self.clicks.append(element)
        if element.on_click:
            element.on_click(self)

    def send_keys(self, element: Any, text: str, submit: bool = False) -> None:
        element.value += text
        if submit and element.on_submit:
            element.on_submit(self, element)

    def select_option(self, dropdown: Any, visible_text: str) -> None:
        if dropdown.options is None:
            raise DriverFailure(f"select '{visible_text}': element is not a <select>")
        if visible_text not in dropdown.options:
            raise NotFound(f"select '{visible_text}': no such option")
        dropdown.selected = visible_text

    def selected_option_text(self, dropdown: Any) -> str:
        if dropdown.options is None:
            raise DriverFailure("read selected option: element is not a <select>")
        return dropdown.selected

    def text(self, element: Any) -> str:
        return element.text

    def is_displayed(self, element: Any) -> bool:
        return element.displayed

    def current_url(self) -> str:
        return self.url

    def maximize(self) -> None:
        if self.fail_maximize:
            raise DriverFailure("maximize: no window")
        self.maximized = True

    def save_screenshot(self, path: str) -> bool:
        self.screenshots.append(path)
        return True

    def quit(self) -> None:
        self.quit_count += 1
        if self.fail_quit:
            raise DriverFailure("quit: browser already gone")


def build_shop(driver: FakeDriver, base_url: str = BASE_URL) -> FakeDriver:
    """
    A tiny book shop: home page with department dropdown and search box,
    a results page, a paperback product page and a cart.
    """
    results_url = f"{base_url}s?k=Harry+Potter+and+the+Cursed+Child"
    product_url = f"{base_url}Harry-Potter-Cursed-Child-Parts/dp/1338216671"
    cart_url = f"{base_url}cart/add"
    cart_count = FakeElement(text="0")

    def submit_search(d: FakeDriver, box: FakeElement):
        d.navigate(f"{base_url}s?k={box.value.replace(' ', '+')}")

    def add_to_cart(d: FakeDriver):
        cart_count.text = str(int(cart_count.text) + 1)
        d.navigate(cart_url)

    driver.add(base_url, "#searchDropdownBox", FakeElement(options=["All Departments", "Books"]))
    driver.add(base_url, "#twotabsearchtextbox", FakeElement(on_submit=submit_search))
    driver.add(base_url, "#nav-cart-count", cart_count)

    top_result = FakeElement()
    top_result.add("[data-cy='title-recipe']",
                   FakeElement(text="Harry Potter and the Cursed Child, Parts One and Two"))
    top_result.add(".a-price-symbol", FakeElement(text="$"))
    top_result.add(".a-price-whole", FakeElement(text="10"))
    top_result.add(".a-price-fraction", FakeElement(text="39"))
    top_result.add("Paperback", FakeElement(text="Paperback",
                                            on_click=lambda d: d.navigate(product_url)),
                   by="link_text")
    top_result.add("Kindle", FakeElement(text="Kindle"), by="link_text")
    driver.add(results_url, "[data-cel-widget='search_result_1']", top_result)
    driver.add(results_url, "#departments .a-list-item", FakeElement(text="Books"),
               FakeElement(text="Kindle eBooks"))
    driver.add(results_url, "#search", FakeElement())

    driver.add(product_url, "#productTitle",
               FakeElement(text="Harry Potter and the Cursed Child, Parts One and Two (Paperback)"))
    driver.add(product_url, "#add-to-cart-button", FakeElement(on_click=add_to_cart))
    driver.add(product_url, "#nav-cart-count", cart_count)
    driver.add(cart_url, "#nav-cart-count", cart_count)
    driver.add(cart_url, "[data-itemtype='active']", FakeElement(text="Paperback"))
    return driver


# The shop flow from search to cart, runnable against build_shop()
SHOP_WORKFLOW = """
workflow:
  name: shop
  inputs:
    search_term:
      default: Harry Potter and the Cursed Child
    results_query:
      default: Harry+Potter
    expected_title:
      default: Harry Potter and the Cursed Child, Parts One and Two
    format:
      default: Paperback
  steps:
    - name: open_home
      ordinal: 1
      actions:
        - navigate: "{{ config.base_url }}"
      assertions:
        - url_equals: "{{ config.base_url }}"
    - name: select_books
      ordinal: 2
      actions:
        - select_option: {locator: "#searchDropdownBox", text: Books}
      assertions:
        - selected_option_equals: {locator: "#searchDropdownBox", expected: Books}
    - name: search
      ordinal: 3
      actions:
        - type: {locator: "#twotabsearchtextbox", text: "{{ inputs.search_term }}", submit: true}
        - wait_visible: "#search"
      assertions:
        - url_starts_with: "{{ config.base_url }}s?k={{ inputs.results_query }}"
        - count_greater_than: {locator: "#departments .a-list-item", expected: 0}
    - name: capture_top_result
      ordinal: 4
      actions:
        - capture: {locator: "[data-cel-widget='search_result_1']", save_as: topResult}
    - name: top_result_title
      ordinal: 5
      assertions:
        - text_starts_with:
            locator: {query: "[data-cy='title-recipe']", scope: topResult}
            expected: "{{ inputs.expected_title }}"
    - name: top_result_price
      ordinal: 5
      actions:
        - capture_text: {locator: {query: ".a-price-symbol", scope: topResult}, save_as: priceSymbol}
        - capture_text: {locator: {query: ".a-price-whole", scope: topResult}, save_as: priceWhole}
        - capture_text: {locator: {query: ".a-price-fraction", scope: topResult}, save_as: priceFraction}
        - set:
            value: "{{ state.priceSymbol }}{{ state.priceWhole }}.{{ state.priceFraction }}"
            save_as: capturedPrice
      assertions:
        - state_equals: {key: capturedPrice, expected: "$10.39"}
    - name: open_paperback
      ordinal: 6
      actions:
        - click: {query: "{{ inputs.format }}", by: link_text, scope: topResult}
      assertions:
        - url_starts_with: "{{ config.base_url }}Harry-Potter-Cursed-Child-Parts"
        - text_starts_with: {locator: "#productTitle", expected: "{{ inputs.expected_title }}"}
    - name: add_to_cart
      ordinal: 7
      actions:
        - click: "#add-to-cart-button"
      assertions:
        - url_starts_with: "{{ config.base_url }}cart"
    - name: cart_count
      ordinal: 8
      assertions:
        - text_equals: {locator: "#nav-cart-count", expected: "1"}
"""


@pytest.fixture
def run_config():
    """Short waits so lookups that must fail do so quickly."""
    return RunConfig(
        base_url=BASE_URL,
        implicit_wait_seconds=0.3,
        explicit_wait_seconds=0.3,
        poll_interval_seconds=0.05,
        headless=True,
    )


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def shop_driver(fake_driver):
    return build_shop(fake_driver)


@pytest.fixture
def session_manager(run_config, fake_driver):
    return SessionManager(run_config, driver_factory=lambda config: fake_driver)


@pytest.fixture
def session(session_manager):
    with session_manager.session() as live_session:
        yield live_session
