"""
Render Pipeline
Turns a fully merged HTML document into a single fixed-size PDF page
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from notice_render.core.errors import ErrorFactory, RenderException

logger = logging.getLogger(__name__)

CSS_PX_PER_INCH = 96
MM_PER_INCH = 25.4
PDF_MAGIC = b"%PDF-"

# Resolves once every <img> has loaded or failed and web fonts are ready
WAIT_FOR_IMAGES_JS = """
async () => {
    const pending = Array.from(document.images)
        .filter((img) => !img.complete)
        .map((img) => new Promise((resolve) => {
            img.addEventListener('load', resolve, { once: true });
            img.addEventListener('error', resolve, { once: true });
        }));
    await Promise.all(pending);
    if (document.fonts) {
        await document.fonts.ready;
    }
}
"""


@dataclass(frozen=True)
class PageSize:
    """Physical page size; the viewport is derived at 96 CSS px per inch"""
    width_mm: float
    height_mm: float

    def __post_init__(self):
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ValueError(f"Page dimensions must be positive: {self.width_mm}x{self.height_mm}mm")

    @property
    def viewport(self) -> Dict[str, int]:
        return {
            "width": round(self.width_mm / MM_PER_INCH * CSS_PX_PER_INCH),
            "height": round(self.height_mm / MM_PER_INCH * CSS_PX_PER_INCH),
        }

    @property
    def css_width(self) -> str:
        return f"{self.width_mm:g}mm"

    @property
    def css_height(self) -> str:
        return f"{self.height_mm:g}mm"


A4 = PageSize(210, 297)

PAGE_SIZES = {
    "a4": A4,
    "letter": PageSize(215.9, 279.4),
    "legal": PageSize(215.9, 355.6),
}

ZERO_MARGINS = {"top": "0mm", "right": "0mm", "bottom": "0mm", "left": "0mm"}


@dataclass(frozen=True)
class RenderRequest:
    """A merged, escaped HTML document plus how to print it"""
    html: str
    page_size: PageSize = A4
    timeout: float = 60.0
    wait_for_images: bool = False

    def __post_init__(self):
        if self.timeout < 0:
            raise ValueError(f"timeout must not be negative: {self.timeout}")


@dataclass(frozen=True)
class RenderedDocument:
    """PDF bytes handed over to the caller; the pipeline keeps no copy"""
    content: bytes = field(repr=False)
    filename: str = "notice.pdf"
    mime_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)


class RenderPipeline:
    """Renders HTML to PDF in an isolated browser context per request"""

    def __init__(self, browser_manager, filename: str = "notice.pdf"):
        self.browser_manager = browser_manager
        self.filename = filename
        self._orphan_closes = set()

    async def render(self, request: RenderRequest) -> RenderedDocument:
        """
        Render a document to PDF

        Args:
            request: Document and print settings

        Returns:
            Rendered PDF document

        Raises:
            BrowserUnavailable: No browser process could be obtained
            RenderTimeout: The request deadline elapsed
            RenderFailed: The rendering engine failed
        """
        start_time = time.monotonic()

        # One deadline covers acquire, load and print together
        try:
            content = await asyncio.wait_for(self._render(request), timeout=request.timeout)
        except RenderException:
            raise
        except (asyncio.TimeoutError, PlaywrightTimeoutError) as e:
            logger.error(f"Render timed out after {request.timeout}s")
            raise ErrorFactory.rendering_timeout(timeout_seconds=request.timeout) from e
        except PlaywrightError as e:
            logger.error(f"Render failed: {e.message}")
            raise ErrorFactory.render_failed(original_error=e.message) from e
        except Exception as e:
            logger.error(f"Render failed: {str(e)}")
            raise ErrorFactory.render_failed(original_error=str(e)) from e

        if not content.startswith(PDF_MAGIC):
            raise ErrorFactory.render_failed(original_error="Engine returned empty or non-PDF output")

        logger.info(
            f"Generated PDF: {len(content)} bytes in {time.monotonic() - start_time:.2f}s"
        )
        return RenderedDocument(content=content, filename=self.filename)

    async def _render(self, request: RenderRequest) -> bytes:
        browser = await self.browser_manager.acquire()

        # Fresh context per render; never shared between requests
        context = await self._open_context(browser, request)
        try:
            page = await context.new_page()
            if request.timeout > 0:
                page.set_default_timeout(request.timeout * 1000)

            # Structural parse only; local assets attach fast enough
            await page.set_content(request.html, wait_until="domcontentloaded")

            if request.wait_for_images:
                await page.evaluate(WAIT_FOR_IMAGES_JS)

            return await page.pdf(
                width=request.page_size.css_width,
                height=request.page_size.css_height,
                print_background=True,
                margin=ZERO_MARGINS,
            )
        finally:
            await self._close_context(context)

    async def _open_context(self, browser, request: RenderRequest):
        """
        Create the render context.

        If the deadline fires while the browser is still creating it, the
        context is closed as soon as it arrives.
        """
        task = asyncio.ensure_future(browser.new_context(
            viewport=request.page_size.viewport,
            device_scale_factor=1,
        ))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(self._close_orphaned_context)
            raise

    def _close_orphaned_context(self, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is not None:
            return
        closing = asyncio.ensure_future(self._close_context(task.result()))
        # Strong reference until the close finishes
        self._orphan_closes.add(closing)
        closing.add_done_callback(self._orphan_closes.discard)

    async def _close_context(self, context) -> None:
        try:
            await context.close()
        except Exception as e:
            # Logged only; the render outcome stands
            logger.warning(f"Error closing render context: {str(e)}")
