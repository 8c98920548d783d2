"""
In-memory doubles for the Playwright browser process.

FakeBrowser counts the rendering contexts it opens and closes so tests can
assert that no render leaks one.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError

MINIMAL_PDF = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF\n"


class FakePage:
    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser
        self.html: Optional[str] = None
        self.wait_until: Optional[str] = None
        self.default_timeout: Optional[float] = None
        self.evaluated: List[str] = []
        self.pdf_options: Dict[str, Any] = {}

    def _check_connected(self) -> None:
        if not self.browser.connected:
            raise PlaywrightError("Target page, context or browser has been closed")

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    async def set_content(self, html: str, wait_until: str = "load") -> None:
        self.html = html
        self.wait_until = wait_until
        if self.browser.content_delay:
            await asyncio.sleep(self.browser.content_delay)
        if self.browser.content_error:
            raise self.browser.content_error
        self._check_connected()

    async def evaluate(self, expression: str) -> None:
        self.evaluated.append(expression)

    async def pdf(self, **options: Any) -> bytes:
        self.pdf_options = options
        if self.browser.pdf_delay:
            await asyncio.sleep(self.browser.pdf_delay)
        if self.browser.pdf_error:
            raise self.browser.pdf_error
        self._check_connected()
        return self.browser.pdf_result


class FakeContext:
    def __init__(self, browser: "FakeBrowser", options: Dict[str, Any]):
        self.browser = browser
        self.options = options
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        page = FakePage(self.browser)
        self.pages.append(page)
        self.browser.pages.append(page)
        return page

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.browser.contexts_closed += 1


class FakeBrowser:
    def __init__(self):
        self.contexts: List[FakeContext] = []
        self.pages: List[FakePage] = []
        self.contexts_opened = 0
        self.contexts_closed = 0
        self.connected = True
        self.closed = False
        self.listeners: Dict[str, List[Callable]] = {}

        # Behaviour knobs
        self.context_delay = 0.0
        self.content_delay = 0.0
        self.content_error: Optional[Exception] = None
        self.pdf_delay = 0.0
        self.pdf_error: Optional[Exception] = None
        self.pdf_result = MINIMAL_PDF

    def on(self, event: str, callback: Callable) -> None:
        self.listeners.setdefault(event, []).append(callback)

    def is_connected(self) -> bool:
        return self.connected

    async def new_context(self, **options: Any) -> FakeContext:
        # Counted as soon as the browser starts creating it
        context = FakeContext(self, options)
        self.contexts.append(context)
        self.contexts_opened += 1
        if self.context_delay:
            await asyncio.sleep(self.context_delay)
        return context

    async def close(self) -> None:
        self.closed = True
        self.disconnect()

    def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        for callback in self.listeners.get("disconnected", []):
            callback(self)


class FakeLauncher:
    """Stands in for Chromium launch; counts launches and can fail or stall"""

    def __init__(self, delay: float = 0.0, fail: bool = False):
        self.delay = delay
        self.fail = fail
        self.calls = 0
        self.args: List[List[str]] = []
        self.browsers: List[FakeBrowser] = []

    async def __call__(self, browser_args) -> FakeBrowser:
        self.calls += 1
        self.args.append(list(browser_args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("Executable doesn't exist at /ms-playwright/chromium")
        browser = FakeBrowser()
        self.browsers.append(browser)
        return browser

    @property
    def browser(self) -> FakeBrowser:
        return self.browsers[-1]


@pytest.fixture
def launcher():
    return FakeLauncher()
