"""Pytest configuration and fixtures."""
import os

import pytest

# Set test environment variables
os.environ["WORKFLOW_TIMER_ENV"] = "test"
os.environ["WORKFLOW_TIMER_CLOCK"] = "simulated"
os.environ["WORKFLOW_TIMER_LOG_FORMAT"] = "text"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached settings around every test."""
    from workflow_timer.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def simple_workflow():
    """A with a slow edge to B and a fast edge to C."""
    return {
        "A": {"start": True, "edges": {"B": 5, "C": 2}},
        "B": {"edges": {}},
        "C": {"edges": {}},
    }


@pytest.fixture
def parallel_workflow():
    """The two-level fan-out where E is reached by two paths."""
    return {
        "A": {"start": True, "edges": {"B": 8, "C": 2}},
        "B": {"edges": {"D": 9, "E": 12}},
        "C": {"edges": {"F": 1, "G": 2}},
        "D": {"edges": {"E": 3}},
        "E": {"edges": {}},
        "F": {"edges": {}},
        "G": {"edges": {}},
    }


@pytest.fixture
def simulate():
    """Run a workflow on the simulated clock and return the RunResult."""
    from workflow_timer import SimulatedClock, WorkflowRunner

    def _simulate(workflow, reporter=None):
        runner = WorkflowRunner(workflow, clock=SimulatedClock(), reporter=reporter)
        return runner.run_sync()

    return _simulate
