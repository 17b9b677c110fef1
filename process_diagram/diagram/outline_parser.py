"""Outline parsing.

Turns a plain-text outline into a :class:`DiagramGraph`::

    1. Collect requirements
    - Interview stakeholders
    2. Draft design

Numbered lines are primary steps chained top to bottom; dashed lines are
secondary steps hanging off the most recent primary step. Ids come from the
line position after blank lines are removed, so lines that match neither
shape still shift the numbering of the steps after them.
"""
from __future__ import annotations

import re
from typing import List

from process_diagram.diagram.models import DiagramGraph, Step, StepTier


_PRIMARY_RE = re.compile(r"^[0-9]+\.")
_PRIMARY_MARKER_RE = re.compile(r"^[0-9]+\.\s*")
_SECONDARY_RE = re.compile(r"^-")
_SECONDARY_MARKER_RE = re.compile(r"^-\s*")

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
# str.strip() keeps the byte-order mark that some editors write at the start of a file
_EDGE_WHITESPACE_RE = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


def sanitize_label(text: str) -> str:
    """Reduce text to ASCII letters, digits, hyphens and single spaces.

    The result can be embedded in a quoted Mermaid label without escaping.
    """
    text = _UNSAFE_CHARS_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def _trim(line: str) -> str:
    return _EDGE_WHITESPACE_RE.sub("", line)


def _non_blank_lines(raw_text: str) -> List[str]:
    trimmed = (_trim(line) for line in raw_text.split("\n"))
    return [line for line in trimmed if line]


def parse_outline(raw_text: str) -> DiagramGraph:
    """Parse an outline into a graph. Never raises for string input."""
    graph = DiagramGraph()
    # Only primary ids are pushed; secondary steps cannot have children.
    parent_stack: List[str] = []

    for index, line in enumerate(_non_blank_lines(raw_text)):
        if _PRIMARY_RE.match(line):
            step = Step(
                id=f"step{index}",
                tier=StepTier.PRIMARY,
                label=sanitize_label(_PRIMARY_MARKER_RE.sub("", line, count=1)),
            )
            graph.add_step(step, parent_stack[-1] if parent_stack else None)
            parent_stack.append(step.id)
        elif _SECONDARY_RE.match(line):
            if not parent_stack:
                # orphaned sub-step, dropped
                continue
            step = Step(
                id=f"sub{index}",
                tier=StepTier.SECONDARY,
                label=sanitize_label(_SECONDARY_MARKER_RE.sub("", line, count=1)),
            )
            graph.add_step(step, parent_stack[-1])

    return graph
