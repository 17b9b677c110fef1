"""REST API server."""
from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from process_diagram.errors import DiagramError, RenderError
from process_diagram.renderers.browser import BrowserLauncher
from process_diagram.schemas import ErrorResponse, HealthResponse
from process_diagram.services.diagram_service import generate_diagram, generate_pdf
from process_diagram.utils.config import Settings
from process_diagram.utils.config import settings as default_settings

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    payload = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


async def _read_text_body(request: Request, max_bytes: int) -> Optional[str]:
    """Return the request body as text, or None when it is over the size limit.

    JSON bodies holding a single string are unwrapped; any other JSON value is
    passed on in its serialized form.
    """
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        return None
    raw = await request.body()
    if len(raw) > max_bytes:
        return None
    text = raw.decode("utf-8", errors="replace")
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            decoded = json.loads(text)
        except ValueError:
            return text
        if isinstance(decoded, str):
            return decoded
    return text


def create_app(
    app_settings: Optional[Settings] = None,
    launcher: Optional[BrowserLauncher] = None,
) -> FastAPI:
    cfg = app_settings or default_settings
    app = FastAPI(title="Process Diagram API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        return HealthResponse()

    @app.post("/generate-diagram")
    async def generate_diagram_api(request: Request):
        process_text = await _read_text_body(request, cfg.max_body_bytes)
        if process_text is None:
            return _error(413, "Request body too large")
        try:
            mermaid_code = generate_diagram(process_text)
        except DiagramError as exc:
            return _error(exc.status_code, exc.message)
        except Exception as exc:
            logger.exception("Unexpected error while generating diagram")
            return _error(500, f"Diagram error: {exc}")
        return PlainTextResponse(mermaid_code)

    @app.post("/generate-pdf")
    async def generate_pdf_api(request: Request):
        mermaid_code = await _read_text_body(request, cfg.max_body_bytes)
        if mermaid_code is None:
            return _error(413, "Request body too large")
        try:
            document = await generate_pdf(mermaid_code, cfg, launcher)
        except RenderError as exc:
            details = f"{exc.message}: {exc.details}" if exc.details else exc.message
            return _error(exc.status_code, "PDF generation failed", details)
        except DiagramError as exc:
            return _error(exc.status_code, exc.message, exc.details)
        except Exception as exc:
            logger.exception("PDF generation error")
            return _error(500, "PDF generation failed", str(exc))
        return Response(
            content=document.content,
            media_type=document.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{document.filename}"',
                "Content-Length": str(document.size),
            },
        )

    return app


app = create_app()
