"""Graph model produced by the outline parser."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class StepTier(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Step:
    id: str
    tier: StepTier
    label: str


@dataclass(frozen=True)
class Edge:
    source: str
    target: str


@dataclass
class DiagramGraph:
    """Steps in input order plus the parent -> child edges between them.

    A step is the target of at most one edge, the one added when the step
    was parsed.
    """

    nodes: List[Step] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def add_step(self, step: Step, parent_id: Optional[str] = None) -> None:
        self.nodes.append(step)
        if parent_id is not None:
            self.edges.append(Edge(parent_id, step.id))

    def incoming_edges(self) -> Dict[str, Edge]:
        return {edge.target: edge for edge in self.edges}

    def steps_by_tier(self, tier: StepTier) -> List[Step]:
        return [step for step in self.nodes if step.tier is tier]
