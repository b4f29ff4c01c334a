"""
Run events - what a traversal makes observable.

Two append-only channels: node visits and reported problems.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol


NO_START_NODE = "No start node found in the workflow."
NODE_NOT_FOUND = "Node {name} not found in the workflow."


def node_not_found(name: str) -> str:
    return NODE_NOT_FOUND.format(name=name)


@dataclass(frozen=True)
class VisitEvent:
    """A node executed `at` seconds after the run started."""
    node: str
    at: float = 0.0


@dataclass(frozen=True)
class ProblemEvent:
    """Non-fatal anomaly found during traversal."""
    message: str
    node: Optional[str] = None


class RunReporter(Protocol):
    """Sink for run events. Called from every branch of the run."""

    def node_visited(self, event: VisitEvent) -> None:
        ...

    def problem_reported(self, event: ProblemEvent) -> None:
        ...


@dataclass
class RecordingReporter:
    """Reporter that keeps every event in arrival order."""
    visits: List[VisitEvent] = field(default_factory=list)
    problems: List[ProblemEvent] = field(default_factory=list)

    def node_visited(self, event: VisitEvent) -> None:
        self.visits.append(event)

    def problem_reported(self, event: ProblemEvent) -> None:
        self.problems.append(event)

    @property
    def visit_order(self) -> List[str]:
        return [event.node for event in self.visits]

    @property
    def messages(self) -> List[str]:
        return [event.message for event in self.problems]


__all__ = [
    "NO_START_NODE",
    "NODE_NOT_FOUND",
    "node_not_found",
    "VisitEvent",
    "ProblemEvent",
    "RunReporter",
    "RecordingReporter",
]
