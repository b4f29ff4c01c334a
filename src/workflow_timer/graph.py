"""
Compiled Graph - Validated, read-only workflow graph.

Takes a WorkflowDefinition and compiles it into immutable nodes
stamped with their names, then runs structural validation.
A CompiledGraph that exists is always structurally valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .models import WorkflowInput, WorkflowNodeSpec, parse_workflow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """Outgoing edge: target node name and delay in seconds."""
    target: str
    weight: Union[int, float]


@dataclass(frozen=True)
class CompiledNode:
    """
    A node in the compiled graph.

    `edges` keeps declaration order, which is the tie-break for
    equal delays.
    """
    name: str
    is_start: bool
    edges: Tuple[Edge, ...] = ()

    @classmethod
    def from_record(cls, name: str, record: WorkflowNodeSpec) -> "CompiledNode":
        """Create from a node record, taking the name from its key."""
        return cls(
            name=name,
            is_start=record.start,
            edges=tuple(Edge(target, weight) for target, weight in record.edges.items()),
        )

    @property
    def downstream(self) -> List[str]:
        return [edge.target for edge in self.edges]


class CompiledGraph:
    """
    Compiled workflow ready for traversal.

    Construction raises WorkflowValidationError (cycle or negative
    delay) so no traversal can ever start over an invalid graph.
    """

    def __init__(self, workflow: WorkflowInput):
        """
        Compile workflow into a read-only graph and validate it.

        Args:
            workflow: Workflow definition or plain dict
        """
        from .validator import GraphValidator

        definition = parse_workflow(workflow)

        self._nodes: Dict[str, CompiledNode] = {
            name: CompiledNode.from_record(name, record)
            for name, record in definition.items()
        }

        GraphValidator().validate(self)

    def __iter__(self) -> Iterator[CompiledNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    @property
    def node_names(self) -> List[str]:
        """Get all node names in declaration order."""
        return list(self._nodes.keys())

    def get_node(self, name: str) -> Optional[CompiledNode]:
        """Get compiled node by name."""
        return self._nodes.get(name)

    def resolve_edge(self, edge: Edge) -> Optional[CompiledNode]:
        """
        Resolve an edge's target.

        Shared by validation and traversal so both phases agree on
        which edges dangle. Returns None when the target is missing.
        """
        return self._nodes.get(edge.target)

    def dangling_edges(self) -> List[Tuple[str, Edge]]:
        """(source name, edge) pairs whose target is not in the graph."""
        return [
            (node.name, edge)
            for node in self._nodes.values()
            for edge in node.edges
            if self.resolve_edge(edge) is None
        ]

    def get_start_nodes(self) -> List[CompiledNode]:
        """All nodes flagged as start, in declaration order."""
        return [node for node in self._nodes.values() if node.is_start]

    def find_start_node(self) -> Optional[CompiledNode]:
        """
        Find the node the run starts from.

        The first flagged node in declaration order wins; any further
        start flags are ignored with a warning.
        """
        starts = self.get_start_nodes()
        if not starts:
            return None
        if len(starts) > 1:
            logger.warning(
                "Multiple start nodes flagged, using %s and ignoring %s",
                starts[0].name,
                ", ".join(node.name for node in starts[1:]),
            )
        return starts[0]


__all__ = [
    "CompiledGraph",
    "CompiledNode",
    "Edge",
]
