"""Tests for concurrent, delay-driven traversal."""
import asyncio

import pytest

from workflow_timer import (
    CompiledGraph,
    RealClock,
    RecordingReporter,
    RunStatus,
    SimulatedClock,
    WorkflowDefinition,
    WorkflowRunner,
    run_workflow,
)


class TestVisitOrdering:
    """Visit order follows cumulative delay with declared-order tie-break."""

    def test_smaller_delay_wins(self, simulate, simple_workflow):
        """A{B:5, C:2} visits C before B."""
        result = simulate(simple_workflow)

        assert result.visit_order == ["A", "C", "B"]

    def test_equal_delay_uses_declared_order(self, simulate):
        """A{B:2, C:2} visits B before C."""
        workflow = {
            "A": {"start": True, "edges": {"B": 2, "C": 2}},
            "B": {"edges": {}},
            "C": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "B", "C"]

    def test_equal_delay_reversed_declaration(self, simulate):
        """Declaring C first flips the tie."""
        workflow = {
            "A": {"start": True, "edges": {"C": 2, "B": 2}},
            "B": {"edges": {}},
            "C": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "C", "B"]

    def test_parallel_edges(self, simulate, parallel_workflow):
        """Deeper fan-out orders by cumulative delay along each path."""
        result = simulate(parallel_workflow)

        assert result.visit_order == ["A", "C", "F", "G", "B", "D", "E", "E"]
        assert [event.at for event in result.visits] == [0, 2, 3, 4, 8, 17, 20, 20]

    def test_multi_path_node_visited_once_per_path(self, simulate, parallel_workflow):
        """E is reached via B (8+12) and via B -> D (8+9+3), both at t=20."""
        result = simulate(parallel_workflow)

        e_visits = [event for event in result.visits if event.node == "E"]
        assert [event.at for event in e_visits] == [20, 20]

    def test_diamond_visits_shared_node_twice(self, simulate):
        workflow = {
            "A": {"start": True, "edges": {"B": 1, "C": 4}},
            "B": {"edges": {"D": 1}},
            "C": {"edges": {"D": 1}},
            "D": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "B", "D", "C", "D"]

    def test_root_before_children(self, simulate, parallel_workflow):
        """Each node's visit precedes the visits it causes."""
        result = simulate(parallel_workflow)
        order = result.visit_order

        assert order[0] == "A"
        assert order.index("B") < order.index("D")
        assert order.index("C") < order.index("F")
        assert order.index("C") < order.index("G")

    def test_zero_delay_child_runs_after_due_siblings(self, simulate):
        """
        B and C are both due at t=2. B's zero-delay child X is registered
        after C's wake-up, so C comes first.
        """
        workflow = {
            "A": {"start": True, "edges": {"B": 2, "C": 2}},
            "B": {"edges": {"X": 0}},
            "C": {"edges": {}},
            "X": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "B", "C", "X"]

    def test_cross_branch_tie_follows_registration_order(self, simulate):
        """F (2+1) and B (3) are both due at t=3; B's wake-up was registered first."""
        workflow = {
            "A": {"start": True, "edges": {"C": 2, "B": 3}},
            "B": {"edges": {}},
            "C": {"edges": {"F": 1}},
            "F": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "C", "B", "F"]

    def test_isolated_start_node(self, simulate):
        result = simulate({"A": {"start": True}})

        assert result.visit_order == ["A"]
        assert result.problems == []
        assert result.status == RunStatus.COMPLETED

    def test_run_waits_for_slowest_leaf(self):
        """run() returns only after the deepest, slowest branch has been visited."""
        workflow = {
            "A": {"start": True, "edges": {"B": 1, "C": 3}},
            "B": {"edges": {"D": 1}},
            "C": {"edges": {}},
            "D": {"edges": {"Leaf": 6}},
            "Leaf": {"edges": {}},
        }
        reporter = RecordingReporter()
        runner = WorkflowRunner(workflow, clock=RealClock(time_scale=0.01), reporter=reporter)

        async def run_and_snapshot():
            result = await runner.run()
            return result, list(reporter.visit_order)

        result, seen_on_return = asyncio.run(run_and_snapshot())

        assert seen_on_return == ["A", "B", "D", "C", "Leaf"]
        assert result.visit_order == seen_on_return
        assert result.duration_ms >= 70


class TestAnomalies:
    """Non-fatal traversal problems are reported, not raised."""

    def test_missing_target(self, simulate):
        """A dangling edge is skipped and reported exactly once."""
        workflow = {
            "A": {"start": True, "edges": {"B": 5, "D": 2}},
            "B": {"edges": {}},
            "C": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "B"]
        assert result.messages == ["Node D not found in the workflow."]
        assert result.problems[0].node == "D"
        assert result.is_completed

    def test_missing_start_node(self, simulate):
        """No start flag: zero visits and one problem."""
        workflow = {
            "B": {"edges": {}},
            "C": {"edges": {}},
        }

        result = simulate(workflow)

        assert result.visits == []
        assert result.messages == ["No start node found in the workflow."]
        assert result.status == RunStatus.NO_START
        assert result.start_node is None

    def test_missing_target_reported_per_path(self, simulate):
        """A dangling edge reached by two paths is reported twice."""
        workflow = {
            "A": {"start": True, "edges": {"B": 1, "C": 2}},
            "B": {"edges": {"M": 1}},
            "C": {"edges": {"M": 1}},
            "M": {"edges": {"Ghost": 1}},
        }

        result = simulate(workflow)

        assert result.visit_order == ["A", "B", "C", "M", "M"]
        assert result.messages == ["Node Ghost not found in the workflow."] * 2

    def test_multiple_start_nodes_uses_first(self, simulate, caplog):
        workflow = {
            "A": {"edges": {}},
            "B": {"start": True, "edges": {"A": 1}},
            "C": {"start": True, "edges": {}},
        }

        with caplog.at_level("WARNING", logger="workflow_timer.graph"):
            result = simulate(workflow)

        assert result.start_node == "B"
        assert result.visit_order == ["B", "A"]
        assert any("Multiple start nodes" in message for message in caplog.messages)


class TestReporters:
    """Events reach the optional reporter in emission order."""

    def test_reporter_receives_events(self, simulate):
        reporter = RecordingReporter()
        workflow = {
            "A": {"start": True, "edges": {"B": 5, "D": 2}},
            "B": {"edges": {}},
        }

        result = simulate(workflow, reporter=reporter)

        assert reporter.visit_order == ["A", "B"]
        assert reporter.messages == ["Node D not found in the workflow."]
        assert reporter.visits == result.visits

    def test_reporter_gets_no_start_problem(self, simulate):
        reporter = RecordingReporter()

        simulate({"A": {"edges": {}}}, reporter=reporter)

        assert reporter.visits == []
        assert reporter.messages == ["No start node found in the workflow."]


class TestRunner:
    """Runner construction and entry points."""

    def test_accepts_definition_model(self, simulate, simple_workflow):
        definition = WorkflowDefinition.model_validate(simple_workflow)

        result = simulate(definition)

        assert result.visit_order == ["A", "C", "B"]

    def test_runs_are_repeatable(self, simple_workflow):
        """Each run starts from a clean recorder and clock."""
        runner = WorkflowRunner(simple_workflow, clock=SimulatedClock())

        first = runner.run_sync()
        second = runner.run_sync()

        assert first.visits == second.visits
        assert first.run_id != second.run_id

    def test_overlapping_runs_rejected(self, simple_workflow):
        """A second run() while one is in flight raises instead of sharing events."""
        runner = WorkflowRunner(simple_workflow, clock=SimulatedClock())

        async def both():
            return await asyncio.gather(runner.run(), runner.run(), return_exceptions=True)

        first, second = asyncio.run(both())

        assert first.visit_order == ["A", "C", "B"]
        assert first.problems == []
        assert isinstance(second, RuntimeError)

    def test_runner_usable_after_rejected_overlap(self, simple_workflow):
        runner = WorkflowRunner(simple_workflow, clock=SimulatedClock())

        async def both():
            await asyncio.gather(runner.run(), runner.run(), return_exceptions=True)

        asyncio.run(both())
        result = runner.run_sync()

        assert result.visit_order == ["A", "C", "B"]

    def test_accepts_compiled_graph(self, simple_workflow):
        graph = CompiledGraph(simple_workflow)

        runner = WorkflowRunner(graph, clock=SimulatedClock())

        assert runner.graph is graph
        assert runner.run_sync().visit_order == ["A", "C", "B"]

    def test_problems_not_logged_as_warnings(self, simulate, caplog):
        """Traversal problems travel through the result, not the warning log."""
        workflow = {"A": {"start": True, "edges": {"D": 2}}}

        with caplog.at_level("DEBUG", logger="workflow_timer"):
            result = simulate(workflow)

        assert result.messages == ["Node D not found in the workflow."]
        assert "Node D not found in the workflow." in caplog.messages
        assert not [record for record in caplog.records if record.levelname == "WARNING"]

    def test_async_run(self, parallel_workflow):
        """run() can be awaited from an existing loop."""
        runner = WorkflowRunner(parallel_workflow, clock=SimulatedClock())

        result = asyncio.run(runner.run())

        assert result.visit_order == ["A", "C", "F", "G", "B", "D", "E", "E"]

    def test_default_clock_from_settings(self, simple_workflow):
        """conftest selects the simulated clock through the environment."""
        runner = WorkflowRunner(simple_workflow)

        assert isinstance(runner.clock, SimulatedClock)

    def test_run_workflow_helper(self, simple_workflow):
        result = run_workflow(simple_workflow, clock=SimulatedClock())

        assert result.visit_order == ["A", "C", "B"]

    def test_real_clock_ordering(self, simple_workflow):
        """Wall-clock run at 1/100 speed keeps the delay ordering."""
        runner = WorkflowRunner(simple_workflow, clock=RealClock(time_scale=0.01))

        result = runner.run_sync()

        assert result.visit_order == ["A", "C", "B"]
        assert result.visits[1].at == pytest.approx(2, abs=1.5)
        assert result.visits[2].at == pytest.approx(5, abs=1.5)
        assert result.duration_ms >= 40
