"""Headless browser environments used by the PDF renderer.

The renderer only talks to the small protocols below, so tests can swap in
fake environments. :class:`PlaywrightLauncher` is the real implementation and
starts a fresh Chromium for every launch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from process_diagram.utils.config import Settings

logger = logging.getLogger(__name__)

# Mermaid replaces the container text with an <svg>; it is done once the svg has children.
DIAGRAM_READY_SCRIPT = """() => {
  const svg = document.querySelector('.mermaid svg');
  return svg !== null && svg.childElementCount > 0;
}"""


@dataclass(frozen=True)
class PdfOptions:
    format: str = "A4"
    margin: Dict[str, str] = field(
        default_factory=lambda: {"top": "2cm", "right": "2cm", "bottom": "2cm", "left": "2cm"}
    )
    print_background: bool = True
    prefer_css_page_size: bool = True

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PdfOptions":
        margin = {side: cfg.pdf_margin for side in ("top", "right", "bottom", "left")}
        return cls(format=cfg.pdf_format, margin=margin)


class RenderPage(Protocol):
    """A single page inside a rendering environment.

    Methods that wait raise the builtin ``TimeoutError`` when their deadline
    passes.
    """

    async def load_html(self, html: str, timeout_ms: int) -> None: ...

    async def wait_for_diagram(self, timeout_ms: int) -> None: ...

    async def screenshot(self, path: str, timeout_ms: int) -> None: ...

    async def export_pdf(self, options: PdfOptions) -> bytes: ...


class RenderingEnvironment(Protocol):
    async def new_page(self) -> RenderPage: ...

    async def close(self) -> None: ...


class BrowserLauncher(Protocol):
    async def launch(self, cfg: Settings) -> RenderingEnvironment: ...


class PlaywrightPage:
    def __init__(self, page: Page):
        self._page = page

    async def load_html(self, html: str, timeout_ms: int) -> None:
        # networkidle is only reached after DOMContentLoaded, so one wait covers both
        try:
            await self._page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def wait_for_diagram(self, timeout_ms: int) -> None:
        try:
            await self._page.wait_for_function(DIAGRAM_READY_SCRIPT, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def screenshot(self, path: str, timeout_ms: int) -> None:
        try:
            await self._page.screenshot(path=path, full_page=True, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def export_pdf(self, options: PdfOptions) -> bytes:
        return await self._page.pdf(
            format=options.format,
            print_background=options.print_background,
            margin=options.margin,
            prefer_css_page_size=options.prefer_css_page_size,
        )


class PlaywrightEnvironment:
    """One Playwright driver plus one Chromium process, closed together."""

    def __init__(self, playwright: Playwright, browser: Browser):
        self._playwright: Optional[Playwright] = playwright
        self._browser: Optional[Browser] = browser

    async def new_page(self) -> PlaywrightPage:
        if self._browser is None:
            raise RuntimeError("Browser already closed")
        return PlaywrightPage(await self._browser.new_page())

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()


class PlaywrightLauncher:
    async def launch(self, cfg: Settings) -> PlaywrightEnvironment:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=cfg.browser_headless,
                args=list(cfg.browser_args),
                timeout=cfg.launch_timeout_ms,
            )
        except BaseException:
            await playwright.stop()
            raise
        logger.debug("Launched Chromium", extra={"browser_args": cfg.browser_args})
        return PlaywrightEnvironment(playwright, browser)
