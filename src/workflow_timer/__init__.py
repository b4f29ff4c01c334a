"""
Workflow Timer - Timed simulation of weighted workflow DAGs.

This package provides:
- WorkflowDefinition: Mapping of node name -> node record with delayed edges
- CompiledGraph: Validated, read-only graph (cycles and negative delays rejected)
- WorkflowRunner: Concurrent traversal where every edge waits for its delay

Runs are asyncio-based; SimulatedClock gives instant, deterministic runs.
"""

from .models import WorkflowDefinition, WorkflowNodeSpec, load_workflow, parse_workflow
from .errors import (
    CycleDetectedError,
    NegativeWaitTimeError,
    WorkflowError,
    WorkflowFileError,
    WorkflowValidationError,
)
from .graph import CompiledGraph, CompiledNode, Edge
from .validator import GraphValidator, validate_workflow
from .events import ProblemEvent, RecordingReporter, RunReporter, VisitEvent
from .clock import Clock, RealClock, SimulatedClock, create_clock
from .runner import RunResult, RunStatus, WorkflowRunner, run_workflow

__version__ = "1.0.0"

__all__ = [
    # Models
    "WorkflowDefinition",
    "WorkflowNodeSpec",
    "load_workflow",
    "parse_workflow",
    # Errors
    "WorkflowError",
    "WorkflowFileError",
    "WorkflowValidationError",
    "CycleDetectedError",
    "NegativeWaitTimeError",
    # Graph
    "CompiledGraph",
    "CompiledNode",
    "Edge",
    "GraphValidator",
    "validate_workflow",
    # Events
    "VisitEvent",
    "ProblemEvent",
    "RunReporter",
    "RecordingReporter",
    # Clocks
    "Clock",
    "RealClock",
    "SimulatedClock",
    "create_clock",
    # Runner
    "WorkflowRunner",
    "RunResult",
    "RunStatus",
    "run_workflow",
]
