"""Tests for the /generate-diagram and /generate-pdf endpoints."""
from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from process_diagram.server import _read_text_body, create_app
from process_diagram.services import diagram_service
from process_diagram.utils.config import Settings


OUTLINE = "1. Collect requirements\n- Interview stakeholders\n2. Draft design\n"
MERMAID = 'graph TD\nstep0["Collect requirements"]\n'
FAKE_PDF = b"%PDF-1.4 fake"


class StubPage:
    def __init__(self, wait_error=None):
        self.wait_error = wait_error

    async def load_html(self, html, timeout_ms):
        self.html = html

    async def wait_for_diagram(self, timeout_ms):
        if self.wait_error:
            raise self.wait_error

    async def screenshot(self, path, timeout_ms):
        pass

    async def export_pdf(self, options):
        return FAKE_PDF


class StubEnvironment:
    def __init__(self, page):
        self.page = page
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class StubLauncher:
    def __init__(self, wait_error=None):
        self.environment = StubEnvironment(StubPage(wait_error))
        self.launch_count = 0

    async def launch(self, cfg):
        self.launch_count += 1
        return self.environment


def _client(launcher=None, **overrides):
    cfg = Settings(_env_file=None, **overrides)
    return TestClient(create_app(cfg, launcher or StubLauncher()))


def test_health():
    response = _client().get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_generate_diagram_plain_text():
    response = _client().post("/generate-diagram", content=OUTLINE, headers={"Content-Type": "text/plain"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == (
        "graph TD\n"
        'step0["Collect requirements"]\n'
        'sub1["Interview stakeholders"]\n'
        "step0 --> sub1\n"
        'step2["Draft design"]\n'
        "step0 --> step2\n"
    )


def test_generate_diagram_json_string_is_unwrapped():
    response = _client().post("/generate-diagram", json="1. Only step")
    assert response.status_code == 200
    assert response.text == 'graph TD\nstep0["Only step"]\n'


def test_generate_diagram_json_object_is_stringified():
    response = _client().post("/generate-diagram", json={"steps": ["a"]})
    assert response.status_code == 200
    assert response.text == "graph TD\n"


@pytest.mark.parametrize("body", ["", "   ", "\n\t\n"])
def test_generate_diagram_rejects_empty_input(body):
    response = _client().post("/generate-diagram", content=body, headers={"Content-Type": "text/plain"})
    assert response.status_code == 400
    assert response.json() == {"error": "Empty input received"}


def test_generate_diagram_internal_error(monkeypatch):
    def _boom(text):
        raise RuntimeError("boom")

    monkeypatch.setattr(diagram_service, "outline_to_mermaid", _boom)
    response = _client().post("/generate-diagram", content=OUTLINE, headers={"Content-Type": "text/plain"})
    assert response.status_code == 500
    assert response.json() == {"error": "Diagram error: boom"}


def test_generate_diagram_rejects_oversized_body():
    response = _client(max_body_bytes=8).post(
        "/generate-diagram", content=OUTLINE, headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 413


def test_generate_pdf_returns_document():
    launcher = StubLauncher()
    response = _client(launcher).post(
        "/generate-pdf", content="  " + MERMAID + "  ", headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 200
    assert response.content == FAKE_PDF
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="process-diagram.pdf"'
    assert response.headers["content-length"] == str(len(FAKE_PDF))
    assert launcher.environment.closed
    assert MERMAID.strip() in launcher.environment.page.html


def test_generate_pdf_rejects_invalid_format():
    launcher = StubLauncher()
    response = _client(launcher).post(
        "/generate-pdf", content="not a diagram", headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid Mermaid code format"}
    assert launcher.launch_count == 0


def test_generate_pdf_render_timeout_is_server_error():
    launcher = StubLauncher(wait_error=TimeoutError("waiting for function failed"))
    response = _client(launcher, render_timeout_ms=25).post(
        "/generate-pdf", content=MERMAID, headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "PDF generation failed"
    assert "render-completion" in body["details"]
    assert launcher.environment.closed


def test_cors_headers_present():
    response = _client().post(
        "/generate-diagram",
        content=OUTLINE,
        headers={"Content-Type": "text/plain", "Origin": "http://example.com"},
    )
    assert response.headers["access-control-allow-origin"] == "*"


def test_generate_pdf_error_details_include_cause():
    launcher = StubLauncher(wait_error=RuntimeError("Target page, context or browser has been closed"))
    response = _client(launcher).post("/generate-pdf", content=MERMAID, headers={"Content-Type": "text/plain"})
    assert response.status_code == 500
    assert response.json() == {
        "error": "PDF generation failed",
        "details": "Diagram failed to render: Target page, context or browser has been closed",
    }


class StubRequest:
    def __init__(self, headers, body=b""):
        self.headers = headers
        self._body = body
        self.body_read = False

    async def body(self):
        self.body_read = True
        return self._body


def test_declared_oversized_body_is_rejected_before_reading():
    request = StubRequest({"content-length": "2048", "content-type": "text/plain"})
    assert asyncio.run(_read_text_body(request, 1024)) is None
    assert not request.body_read


def test_body_within_declared_limit_is_read():
    request = StubRequest({"content-length": "9", "content-type": "text/plain"}, b"1. Start\n")
    assert asyncio.run(_read_text_body(request, 1024)) == "1. Start\n"
    assert request.body_read
