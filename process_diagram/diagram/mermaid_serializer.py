"""Mermaid flowchart serialization."""
from __future__ import annotations

from typing import List

from process_diagram.diagram.models import DiagramGraph
from process_diagram.diagram.outline_parser import parse_outline


DIAGRAM_DIRECTIVE = "graph TD"


def serialize_graph(graph: DiagramGraph) -> str:
    """Render the graph as Mermaid text.

    Each node declaration is followed by the edge that attached it, so the
    statements keep the order of the outline lines they came from.
    """
    incoming = graph.incoming_edges()
    lines: List[str] = [DIAGRAM_DIRECTIVE]
    for step in graph.nodes:
        lines.append(f'{step.id}["{step.label}"]')
        edge = incoming.get(step.id)
        if edge is not None:
            lines.append(f"{edge.source} --> {edge.target}")
    return "\n".join(lines) + "\n"


def outline_to_mermaid(raw_text: str) -> str:
    return serialize_graph(parse_outline(raw_text))
