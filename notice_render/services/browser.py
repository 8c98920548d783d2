"""
Browser Manager for Playwright
Owns the single shared Chromium process used for PDF rendering
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from playwright.async_api import async_playwright, Browser

from notice_render.core.errors import ErrorFactory

logger = logging.getLogger(__name__)

# Container-friendly launch flags; not expected to vary per request
BROWSER_ARGS = [
    '--no-sandbox',  # Required for Docker
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',  # Overcome limited /dev/shm in containers
    '--disable-gpu',
    '--no-zygote',
    '--single-process',
]

Launcher = Callable[[Sequence[str]], Awaitable[Browser]]


class BrowserManager:
    """
    Lazily launches one Chromium process and hands the same handle to every caller.

    Concurrent first callers share a single in-flight launch. A failed launch is
    forgotten so the next acquire() starts a fresh one.
    """

    def __init__(
        self,
        launcher: Optional[Launcher] = None,
        browser_args: Optional[List[str]] = None,
        headless: bool = True,
    ):
        """
        Initialize browser manager

        Args:
            launcher: Coroutine function taking launch args and returning a Browser.
                Defaults to launching Playwright Chromium.
            browser_args: Chromium command-line flags
            headless: Run Chromium without a display
        """
        self.launcher = launcher or self._launch_chromium
        self.browser_args = list(browser_args) if browser_args is not None else list(BROWSER_ARGS)
        self.headless = headless
        self.playwright = None
        self.browser: Optional[Browser] = None
        self._launch_task: Optional[asyncio.Task] = None

    async def acquire(self) -> Browser:
        """
        Return the shared browser, launching it on first use

        Returns:
            Browser instance

        Raises:
            BrowserUnavailable: If the browser process could not be launched
        """
        if self._launch_task is None:
            self._launch_task = asyncio.ensure_future(self._launch())
            self._launch_task.add_done_callback(self._on_launch_done)
        task = self._launch_task

        try:
            # Shielded so a caller's deadline never cancels a launch others are waiting on
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._launch_task is task:
                self._launch_task = None
            raise ErrorFactory.browser_unavailable(original_error=str(e)) from e

    def _on_launch_done(self, task: asyncio.Task) -> None:
        """Forget a failed launch even when every waiter has already given up"""
        if task.cancelled():
            error = "launch cancelled"
        else:
            error = task.exception()
            if error is None:
                return
        if self._launch_task is task:
            logger.warning(f"Browser launch failed: {error}")
            self._launch_task = None

    async def _launch(self) -> Browser:
        logger.info("Launching headless browser")
        browser = await self.launcher(self.browser_args)
        browser.on("disconnected", self._on_disconnected)
        self.browser = browser
        logger.info("✅ Browser instance created")
        return browser

    async def _launch_chromium(self, browser_args: Sequence[str]) -> Browser:
        """Default launcher: Playwright Chromium"""
        if not self.playwright:
            self.playwright = await async_playwright().start()

        try:
            return await self.playwright.chromium.launch(
                headless=self.headless,
                args=list(browser_args),
                # Host process owns termination and calls shutdown()
                handle_sigint=False,
                handle_sigterm=False,
                handle_sighup=False,
            )
        except Exception as e:
            logger.error(f"Failed to create browser: {str(e)}")
            await self._stop_playwright()
            raise

    def _on_disconnected(self, browser: Browser) -> None:
        """Forget a browser that went away so the next acquire() relaunches"""
        if self.browser is not browser:
            return
        logger.warning("Browser disconnected, will relaunch on next render")
        self.browser = None
        self._launch_task = None

    def is_running(self) -> bool:
        """Whether a connected browser is currently held"""
        return self.browser is not None and self.browser.is_connected()

    async def shutdown(self) -> None:
        """
        Close the browser process if one exists or is being launched

        Safe to call more than once; a no-op when nothing was launched.
        """
        task = self._launch_task
        self._launch_task = None

        if task is not None and not task.done():
            logger.info("Waiting for in-flight browser launch before shutdown")
            try:
                await task
            except Exception as e:
                logger.warning(f"In-flight browser launch failed during shutdown: {str(e)}")

        browser = self.browser
        self.browser = None

        if browser is not None:
            try:
                await browser.close()
                logger.info("Browser closed")
            except Exception as e:
                logger.error(f"Error closing browser: {str(e)}")

        await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        if self.playwright:
            try:
                await self.playwright.stop()
                logger.debug("Playwright stopped")
            except Exception as e:
                logger.error(f"Error stopping Playwright: {str(e)}")
            self.playwright = None

    async def __aenter__(self):
        """Context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        await self.shutdown()
