"""Error taxonomy shared by the diagram service, the renderer and the API."""
from __future__ import annotations

from typing import Optional


class DiagramError(Exception):
    """Base class for every failure the API reports as a structured error."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class EmptyInputError(DiagramError):
    status_code = 400


class InvalidDiagramFormatError(DiagramError):
    status_code = 400


class InternalError(DiagramError):
    """Unexpected failure while compiling an outline."""


class RenderError(DiagramError):
    """Failure inside the browser rendering pipeline."""


class EnvironmentLaunchFailureError(RenderError):
    pass


class RenderTimeoutError(RenderError):
    def __init__(self, stage: str, timeout_ms: int, details: Optional[str] = None):
        super().__init__(f"Timed out after {timeout_ms} ms waiting for {stage}", details)
        self.stage = stage
        self.timeout_ms = timeout_ms


class ExportFailedError(RenderError):
    pass
