"""
Workflow Runner - Concurrent, delay-driven traversal.

Starting from the start node, every outgoing edge becomes its own
branch that waits for the edge delay and then processes the target.
A node is visited once per path that reaches it. A node's processing
finishes only after every branch it spawned has finished.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .clock import Clock, create_clock
from .config import Settings, get_settings
from .events import (
    NO_START_NODE,
    ProblemEvent,
    RecordingReporter,
    RunReporter,
    VisitEvent,
    node_not_found,
)
from .graph import CompiledGraph, CompiledNode
from .models import WorkflowInput
from .observability import get_logger, with_run_context


logger = get_logger(__name__)


class RunStatus(str, Enum):
    """Overall outcome of a run."""
    COMPLETED = "completed"
    NO_START = "no_start"


@dataclass
class RunResult:
    """
    Result of a workflow run.
    """
    run_id: str
    status: RunStatus
    start_node: Optional[str] = None
    visits: List[VisitEvent] = field(default_factory=list)
    problems: List[ProblemEvent] = field(default_factory=list)
    duration_ms: float = 0

    @property
    def visit_order(self) -> List[str]:
        return [event.node for event in self.visits]

    @property
    def messages(self) -> List[str]:
        return [event.message for event in self.problems]

    @property
    def is_completed(self) -> bool:
        return self.status == RunStatus.COMPLETED


@dataclass
class _RunState:
    """Per-run bookkeeping handed down every branch."""
    run_id: str
    recorder: RecordingReporter = field(default_factory=RecordingReporter)

    @property
    def log_extra(self) -> dict:
        return with_run_context(run_id=self.run_id)


class WorkflowRunner:
    """
    Runs a timed workflow.

    The graph is compiled and validated in the constructor, so a
    cycle or negative delay raises before a runner exists. The clock
    restarts on every run, so one runner executes one run at a time;
    overlapping calls raise RuntimeError.

    Usage:
        runner = WorkflowRunner({"A": {"start": True, "edges": {"B": 2}}, "B": {}})
        result = runner.run_sync()
        result.visit_order  # ["A", "B"]
    """

    def __init__(
        self,
        workflow: WorkflowInput | CompiledGraph,
        *,
        clock: Optional[Clock] = None,
        reporter: Optional[RunReporter] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize runner.

        Args:
            workflow: Workflow definition, plain dict or compiled graph
            clock: Delay source; defaults to the clock named in settings
            reporter: Extra sink for visit and problem events
            settings: Overrides the global settings
        """
        settings = settings or get_settings()
        self._graph = workflow if isinstance(workflow, CompiledGraph) else CompiledGraph(workflow)
        self._clock = clock or create_clock(settings.clock, settings.time_scale)
        self._reporter = reporter
        self._running = False

    @property
    def graph(self) -> CompiledGraph:
        return self._graph

    @property
    def clock(self) -> Clock:
        return self._clock

    async def run(self) -> RunResult:
        """
        Execute the traversal.

        Returns:
            RunResult with visits and problems in emission order

        Raises:
            RuntimeError: This runner is already running
        """
        if self._running:
            raise RuntimeError("WorkflowRunner is already running")

        self._running = True
        try:
            return await self._run(_RunState(run_id=uuid.uuid4().hex[:12]))
        finally:
            self._running = False

    def run_sync(self) -> RunResult:
        """Run to completion on a fresh event loop."""
        return asyncio.run(self.run())

    async def _run(self, state: _RunState) -> RunResult:
        started = time.perf_counter()

        start_node = self._graph.find_start_node()
        if start_node is None:
            self._report_problem(state, NO_START_NODE)
            return self._result(state, RunStatus.NO_START, None, started)

        logger.info(
            f"Starting run at node {start_node.name}",
            extra=with_run_context(run_id=state.run_id, workflow_node=start_node.name),
        )

        self._clock.start()
        await self._clock.drive(self._process_node(state, start_node))

        result = self._result(state, RunStatus.COMPLETED, start_node.name, started)
        logger.info(
            f"Run finished: {len(result.visits)} visits, {len(result.problems)} problems",
            extra=state.log_extra,
        )
        return result

    async def _process_node(self, state: _RunState, node: CompiledNode) -> None:
        """Visit node, then fan out over its edges and wait for all branches."""
        self._report_visit(state, node)

        branches: List[asyncio.Task[None]] = []
        for edge in node.edges:
            target = self._graph.resolve_edge(edge)
            if target is None:
                self._report_problem(state, node_not_found(edge.target), edge.target)
                continue
            # Register the delay now so declared order breaks ties.
            wake = self._clock.schedule(edge.weight)
            branches.append(asyncio.ensure_future(self._process_edge(state, target, wake)))

        if branches:
            await asyncio.gather(*branches)

    async def _process_edge(
        self,
        state: _RunState,
        target: CompiledNode,
        wake: "asyncio.Future[None]",
    ) -> None:
        await wake
        await self._process_node(state, target)

    def _report_visit(self, state: _RunState, node: CompiledNode) -> None:
        event = VisitEvent(node=node.name, at=self._clock.now())
        logger.debug(
            f"Visited {node.name} at {event.at:g}s",
            extra={**state.log_extra, "workflow_node": node.name},
        )
        state.recorder.node_visited(event)
        if self._reporter is not None:
            self._reporter.node_visited(event)

    def _report_problem(
        self,
        state: _RunState,
        message: str,
        node: Optional[str] = None,
    ) -> None:
        event = ProblemEvent(message=message, node=node)
        # Problems reach callers through the result and reporter.
        logger.debug(message, extra=state.log_extra)
        state.recorder.problem_reported(event)
        if self._reporter is not None:
            self._reporter.problem_reported(event)

    def _result(
        self,
        state: _RunState,
        status: RunStatus,
        start_node: Optional[str],
        started: float,
    ) -> RunResult:
        return RunResult(
            run_id=state.run_id,
            status=status,
            start_node=start_node,
            visits=list(state.recorder.visits),
            problems=list(state.recorder.problems),
            duration_ms=(time.perf_counter() - started) * 1000,
        )


def run_workflow(
    workflow: WorkflowInput,
    *,
    clock: Optional[Clock] = None,
    reporter: Optional[RunReporter] = None,
) -> RunResult:
    """Compile, validate and run a workflow synchronously."""
    return WorkflowRunner(workflow, clock=clock, reporter=reporter).run_sync()


__all__ = [
    "WorkflowRunner",
    "RunResult",
    "RunStatus",
    "run_workflow",
]
