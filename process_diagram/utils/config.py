"""Application configuration.

Settings are resolved once at import time and are immutable afterwards; the
server and the PDF renderer receive the same instance.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        frozen=True,
    )

    host: str = "0.0.0.0"
    port: int = Field(default=5000, validation_alias=AliasChoices("PORT", "port"))
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    max_body_bytes: int = 10 * 1024 * 1024

    mermaid_script_url: str = "https://cdn.jsdelivr.net/npm/mermaid@10.6.1/dist/mermaid.min.js"
    browser_headless: bool = True
    browser_args: List[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))

    # Timeouts are in milliseconds, as Playwright expects them
    launch_timeout_ms: int = 60_000
    content_timeout_ms: int = 30_000
    render_timeout_ms: int = 30_000
    export_timeout_ms: int = 60_000
    screenshot_timeout_ms: int = 10_000
    debug_screenshot_path: Optional[str] = None

    pdf_format: str = "A4"
    pdf_margin: str = "2cm"
    pdf_filename: str = "process-diagram.pdf"


settings = Settings()
