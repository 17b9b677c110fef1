"""CLI interface."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from process_diagram.errors import DiagramError
from process_diagram.services.diagram_service import generate_diagram, generate_pdf
from process_diagram.utils.config import settings

app = typer.Typer(add_completion=False)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def generate(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Outline text file.", show_default=False),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Outline text."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write Mermaid here instead of stdout."),
):
    """Compile a numbered outline into a Mermaid flowchart."""
    if file is None and text is None:
        raise typer.BadParameter("Provide --file or --text")
    outline = file.read_text(encoding="utf-8") if file is not None else text
    try:
        mermaid_code = generate_diagram(outline)
    except DiagramError as exc:
        typer.secho(exc.message, err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if output is not None:
        output.write_text(mermaid_code, encoding="utf-8")
        typer.echo(f"Wrote {output}")
    else:
        typer.echo(mermaid_code, nl=False)


@app.command()
def render(
    file: Path = typer.Option(..., "--file", "-f", help="Mermaid file to render."),
    output: Path = typer.Option(Path("process-diagram.pdf"), "--output", "-o"),
):
    """Render a Mermaid `graph TD` file to PDF."""
    _configure_logging()
    try:
        document = asyncio.run(generate_pdf(file.read_text(encoding="utf-8"), settings))
    except DiagramError as exc:
        message = f"{exc.message}: {exc.details}" if exc.details else exc.message
        typer.secho(message, err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    output.write_bytes(document.content)
    typer.echo(f"Wrote {output} ({document.size} bytes)")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port", help="Defaults to $PORT or 5000."),
):
    """Run the HTTP API."""
    import uvicorn

    from process_diagram.server import app as api_app

    _configure_logging()
    uvicorn.run(api_app, host=host or settings.host, port=port or settings.port)


if __name__ == "__main__":
    app()
