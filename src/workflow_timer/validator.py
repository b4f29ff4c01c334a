"""
Graph Validator - Structural checks run when a graph is compiled.

Every node is used as a DFS root in turn, with an on-path set that
tracks only the current DFS stack. Cycles that the start node
cannot reach are still found.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Set, Tuple

from .errors import CycleDetectedError, NegativeWaitTimeError
from .events import node_not_found
from .graph import CompiledGraph, CompiledNode, Edge
from .models import WorkflowInput


logger = logging.getLogger(__name__)


class GraphValidator:
    """
    Validates a compiled graph.

    The walk keeps an explicit stack of (node, remaining edges) frames
    rather than recursing, so long chains stay within Python's
    recursion limit.

    Raises:
        CycleDetectedError: A node repeats on the active DFS path
        NegativeWaitTimeError: An edge has a delay below zero
    """

    def validate(self, graph: CompiledGraph) -> None:
        """Validate the whole graph. Read-only; safe to call repeatedly."""
        on_path: Set[str] = set()
        # Nodes whose whole reachable subgraph already passed
        settled: Set[str] = set()
        for node in graph:
            if node.name not in settled:
                self._walk(graph, node, on_path, settled)

        logger.debug("Workflow validated: %d nodes", len(graph))

    def _walk(
        self,
        graph: CompiledGraph,
        root: CompiledNode,
        on_path: Set[str],
        settled: Set[str],
    ) -> None:
        stack: List[Tuple[CompiledNode, Iterator[Edge]]] = []
        self._enter(root, stack, on_path)
        try:
            while stack:
                node, edges = stack[-1]
                edge = next(edges, None)
                if edge is None:
                    stack.pop()
                    on_path.discard(node.name)
                    settled.add(node.name)
                    continue

                self.validate_edge(edge)
                target = graph.resolve_edge(edge)
                if target is None:
                    logger.debug(node_not_found(edge.target))
                    continue
                if target.name in settled:
                    continue
                self._enter(target, stack, on_path)
        finally:
            for node, _ in stack:
                on_path.discard(node.name)

    @staticmethod
    def _enter(
        node: CompiledNode,
        stack: List[Tuple[CompiledNode, Iterator[Edge]]],
        on_path: Set[str],
    ) -> None:
        if node.name in on_path:
            raise CycleDetectedError(node.name)
        on_path.add(node.name)
        stack.append((node, iter(node.edges)))

    @staticmethod
    def validate_edge(edge: Edge) -> None:
        """Reject negative delays."""
        if edge.weight < 0:
            raise NegativeWaitTimeError(edge.target, edge.weight)


def validate_workflow(workflow: WorkflowInput) -> CompiledGraph:
    """
    Compile and validate a workflow without running it.

    Returns:
        The compiled graph

    Raises:
        WorkflowValidationError: On a cycle or negative delay
    """
    return CompiledGraph(workflow)


__all__ = [
    "GraphValidator",
    "validate_workflow",
]
