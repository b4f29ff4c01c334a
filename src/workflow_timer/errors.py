"""Exceptions raised by workflow_timer."""

from __future__ import annotations

from typing import Union


class WorkflowError(Exception):
    """Base exception for workflow_timer."""
    pass


class WorkflowFileError(WorkflowError):
    """Raised when a workflow file cannot be read or parsed."""
    pass


class WorkflowValidationError(WorkflowError, ValueError):
    """Structural problem in the workflow graph. Fatal at construction."""

    def __init__(self, message: str, node: str):
        super().__init__(message)
        self.node = node


class CycleDetectedError(WorkflowValidationError):
    """A node was reached again while still on the current DFS path."""

    def __init__(self, node: str):
        super().__init__(f"Cycle detected in the workflow involving node {node}", node)


class NegativeWaitTimeError(WorkflowValidationError):
    """An edge carries a negative delay."""

    def __init__(self, node: str, weight: Union[int, float]):
        super().__init__(
            f"Negative wait time ({weight} seconds) on edge to node {node}", node
        )
        self.weight = weight


__all__ = [
    "WorkflowError",
    "WorkflowFileError",
    "WorkflowValidationError",
    "CycleDetectedError",
    "NegativeWaitTimeError",
]
