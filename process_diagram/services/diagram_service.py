"""Diagram generation use cases shared by the API and the CLI."""
from __future__ import annotations

import logging
from typing import Optional

from process_diagram.diagram.mermaid_serializer import outline_to_mermaid
from process_diagram.errors import EmptyInputError, InternalError
from process_diagram.renderers.browser import BrowserLauncher
from process_diagram.renderers.pdf_renderer import RenderedDocument, render_pdf
from process_diagram.utils.config import Settings

logger = logging.getLogger(__name__)


def generate_diagram(process_text: Optional[str]) -> str:
    """Compile an outline into Mermaid text.

    Blank input is rejected with ``EmptyInputError``. Parsing itself does not
    raise, but anything unexpected is reported as ``InternalError``.
    """
    if not process_text or not process_text.strip():
        raise EmptyInputError("Empty input received")
    try:
        return outline_to_mermaid(process_text)
    except Exception as exc:
        logger.exception("Outline compilation failed")
        raise InternalError(f"Diagram error: {exc}", str(exc)) from exc


async def generate_pdf(
    mermaid_code: Optional[str],
    cfg: Optional[Settings] = None,
    launcher: Optional[BrowserLauncher] = None,
) -> RenderedDocument:
    code = (mermaid_code or "").strip()
    logger.info("Received Mermaid code: %s", code)
    return await render_pdf(code, settings=cfg, launcher=launcher)
