"""
Workflow Timer CLI - Main entry point.

Provides commands for:
- Running a workflow file on the real or simulated clock
- Validating a workflow file
- Showing the simulated schedule of a workflow
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click
from pydantic import ValidationError

from workflow_timer.clock import RealClock, SimulatedClock
from workflow_timer.config import get_settings
from workflow_timer.errors import WorkflowError
from workflow_timer.events import ProblemEvent, VisitEvent, node_not_found
from workflow_timer.graph import CompiledGraph
from workflow_timer.models import load_workflow
from workflow_timer.observability import setup_logging
from workflow_timer.runner import WorkflowRunner


logger = logging.getLogger("workflow_timer")


class EchoReporter:
    """Prints visits to stdout and problems to stderr as they happen."""

    def __init__(self, show_times: bool = False):
        self.show_times = show_times

    def node_visited(self, event: VisitEvent) -> None:
        if self.show_times:
            click.echo(f"{event.at:>10.3f}s  {event.node}")
        else:
            click.echo(event.node)

    def problem_reported(self, event: ProblemEvent) -> None:
        click.echo(event.message, err=True)


def _compile(workflow_file: str) -> CompiledGraph:
    """Load and validate a workflow file, exiting 1 on any error."""
    try:
        return CompiledGraph(load_workflow(workflow_file))
    except (WorkflowError, ValidationError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Suppress log output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool):
    """Workflow Timer - Timed simulation of workflow graphs."""
    ctx.ensure_object(dict)

    setup_logging(stream=sys.stderr)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger().setLevel(logging.ERROR)

    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


@cli.command("run")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--simulate/--real",
    default=None,
    help="Use instant virtual time instead of waiting on the wall clock",
)
@click.option(
    "--time-scale", "-t",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Multiply real-clock delays by this factor",
)
@click.option("--times", is_flag=True, help="Prefix each visit with its time")
def workflow_run(
    workflow_file: str,
    simulate: Optional[bool],
    time_scale: Optional[float],
    times: bool,
):
    """
    Run a workflow from a JSON or YAML file.

    WORKFLOW_FILE: Path to workflow definition

    Examples:

        # Run in real time
        workflow-timer run ./workflow.json

        # Run instantly with simulated time
        workflow-timer run ./workflow.json --simulate --times
    """
    settings = get_settings()
    graph = _compile(workflow_file)

    if simulate is None:
        simulate = settings.clock == "simulated"
    clock = SimulatedClock() if simulate else RealClock(time_scale or settings.time_scale)

    runner = WorkflowRunner(graph, clock=clock, reporter=EchoReporter(show_times=times))
    result = runner.run_sync()

    logger.info(
        f"Run {result.run_id} {result.status.value}: "
        f"{len(result.visits)} visits, {len(result.problems)} problems "
        f"in {result.duration_ms:.2f}ms"
    )


@cli.command("validate")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False))
def workflow_validate(workflow_file: str):
    """
    Validate a workflow file without running it.

    WORKFLOW_FILE: Path to workflow definition
    """
    graph = _compile(workflow_file)

    starts = graph.get_start_nodes()
    click.echo(f"Valid workflow: {len(graph)} nodes")
    if not starts:
        click.echo("Warning: no start node flagged", err=True)
    elif len(starts) > 1:
        click.echo(
            f"Warning: {len(starts)} start nodes flagged, {starts[0].name} will be used",
            err=True,
        )
    for source, edge in graph.dangling_edges():
        click.echo(f"Warning: {source} -> {edge.target}: {node_not_found(edge.target)}", err=True)


@cli.command("show")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False))
def workflow_show(workflow_file: str):
    """
    Print the schedule a run would follow, without waiting.

    WORKFLOW_FILE: Path to workflow definition
    """
    graph = _compile(workflow_file)

    runner = WorkflowRunner(graph, clock=SimulatedClock())
    result = runner.run_sync()

    for event in result.visits:
        click.echo(f"{event.at:>10g}s  {event.node}")
    for problem in result.problems:
        click.echo(problem.message, err=True)


app = cli


if __name__ == "__main__":
    cli()
