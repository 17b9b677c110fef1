"""Mermaid to PDF rendering through a headless browser.

Every call launches its own browser, loads a standalone HTML page that lets
Mermaid draw the diagram client side, and prints that page to PDF. Nothing is
pooled or cached between calls. The browser is closed on every exit path.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from process_diagram.diagram.mermaid_serializer import DIAGRAM_DIRECTIVE
from process_diagram.errors import (
    EnvironmentLaunchFailureError,
    ExportFailedError,
    InvalidDiagramFormatError,
    RenderError,
    RenderTimeoutError,
)
from process_diagram.renderers.browser import (
    BrowserLauncher,
    PdfOptions,
    PlaywrightLauncher,
    RenderingEnvironment,
    RenderPage,
)
from process_diagram.utils.config import Settings
from process_diagram.utils.config import settings as default_settings

logger = logging.getLogger(__name__)

# asyncio.TimeoutError is only an alias of TimeoutError from 3.11 on
_TIMEOUT_ERRORS = (TimeoutError, asyncio.TimeoutError)

_HTML_TEMPLATE = """<html>
  <head>
    <style>
      body {{
        padding: 2cm;
        font-family: "Arial", sans-serif !important;
        background: white;
      }}
      .mermaid-container {{
        width: 100%;
        min-height: 80vh;
      }}
      .mermaid svg {{
        background-color: white !important;
      }}
      .label text {{
        fill: black !important;
        font-family: Arial !important;
      }}
    </style>
    <script src="{script_url}"></script>
  </head>
  <body>
    <div class="mermaid-container">
      <div class="mermaid">{mermaid_code}</div>
    </div>
    <script>
      mermaid.initialize({{
        startOnLoad: true,
        securityLevel: 'loose',
        theme: 'neutral',
        flowchart: {{
          diagramPadding: 20
        }}
      }});
    </script>
  </body>
</html>
"""


@dataclass(frozen=True)
class RenderTimeouts:
    launch_ms: int
    content_ms: int
    render_ms: int
    export_ms: int
    screenshot_ms: int

    @classmethod
    def from_settings(cls, cfg: Settings) -> "RenderTimeouts":
        return cls(
            launch_ms=cfg.launch_timeout_ms,
            content_ms=cfg.content_timeout_ms,
            render_ms=cfg.render_timeout_ms,
            export_ms=cfg.export_timeout_ms,
            screenshot_ms=cfg.screenshot_timeout_ms,
        )


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    filename: str = "process-diagram.pdf"
    media_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)


def validate_description(description: Optional[str]) -> str:
    """Return the trimmed Mermaid text, or raise if it is not a top-down graph."""
    code = (description or "").strip()
    if not code or not code.startswith(DIAGRAM_DIRECTIVE):
        raise InvalidDiagramFormatError("Invalid Mermaid code format")
    return code


def build_render_html(mermaid_code: str, cfg: Settings) -> str:
    """Standalone page that draws ``mermaid_code`` on load.

    The code is embedded as is; Mermaid reads it from the container element.
    """
    return _HTML_TEMPLATE.format(script_url=cfg.mermaid_script_url, mermaid_code=mermaid_code)


async def _launch(
    launcher: BrowserLauncher,
    cfg: Settings,
    timeouts: RenderTimeouts,
) -> RenderingEnvironment:
    try:
        return await asyncio.wait_for(launcher.launch(cfg), timeout=timeouts.launch_ms / 1000)
    except _TIMEOUT_ERRORS as exc:
        logger.error("Rendering environment did not start", extra={"timeout_ms": timeouts.launch_ms})
        raise EnvironmentLaunchFailureError(
            "Could not launch rendering environment",
            f"Launch timed out after {timeouts.launch_ms} ms",
        ) from exc
    except Exception as exc:
        logger.exception("Rendering environment failed to launch")
        raise EnvironmentLaunchFailureError("Could not launch rendering environment", str(exc)) from exc


async def _capture_debug_screenshot(page: RenderPage, path: str, timeout_ms: int) -> None:
    try:
        await page.screenshot(path, timeout_ms)
    except Exception:
        logger.warning("Debug screenshot failed", extra={"path": path}, exc_info=True)


async def _render_in(
    environment: RenderingEnvironment,
    html: str,
    cfg: Settings,
    timeouts: RenderTimeouts,
) -> bytes:
    try:
        page = await environment.new_page()
    except Exception as exc:
        raise EnvironmentLaunchFailureError("Could not open a page", str(exc)) from exc

    try:
        await page.load_html(html, timeouts.content_ms)
    except _TIMEOUT_ERRORS as exc:
        raise RenderTimeoutError("content-load", timeouts.content_ms, str(exc)) from exc
    except Exception as exc:
        raise RenderError("Failed to load diagram page", str(exc)) from exc

    try:
        await page.wait_for_diagram(timeouts.render_ms)
    except _TIMEOUT_ERRORS as exc:
        raise RenderTimeoutError("render-completion", timeouts.render_ms, str(exc)) from exc
    except Exception as exc:
        raise RenderError("Diagram failed to render", str(exc)) from exc

    if cfg.debug_screenshot_path:
        await _capture_debug_screenshot(page, cfg.debug_screenshot_path, timeouts.screenshot_ms)

    try:
        return await asyncio.wait_for(
            page.export_pdf(PdfOptions.from_settings(cfg)),
            timeout=timeouts.export_ms / 1000,
        )
    except Exception as exc:
        raise ExportFailedError("PDF export failed", str(exc) or type(exc).__name__) from exc


async def _close_quietly(environment: RenderingEnvironment) -> None:
    try:
        await environment.close()
    except Exception:
        logger.warning("Failed to close rendering environment", exc_info=True)


async def render_pdf(
    description: Optional[str],
    *,
    settings: Optional[Settings] = None,
    launcher: Optional[BrowserLauncher] = None,
) -> RenderedDocument:
    """Render a Mermaid ``graph TD`` description to a PDF document.

    Raises ``InvalidDiagramFormatError`` before launching anything when the
    text is not a top-down graph; otherwise one of the ``RenderError``
    subclasses if any browser step fails.
    """
    cfg = settings or default_settings
    mermaid_code = validate_description(description)
    timeouts = RenderTimeouts.from_settings(cfg)
    html = build_render_html(mermaid_code, cfg)

    environment = await _launch(launcher or PlaywrightLauncher(), cfg, timeouts)
    try:
        content = await _render_in(environment, html, cfg, timeouts)
    except RenderError as exc:
        logger.error(
            "Diagram rendering failed: %s",
            exc.message,
            extra={"stage": getattr(exc, "stage", None), "details": exc.details},
        )
        raise
    finally:
        await _close_quietly(environment)

    document = RenderedDocument(content=content, filename=cfg.pdf_filename)
    logger.info("Rendered diagram PDF", extra={"bytes": document.size})
    return document
