"""
Workflow Models - Structures for timed workflow definitions.

A workflow is a mapping of node name -> node record:

    {
        "A": {"start": true, "edges": {"B": 8, "C": 2}},
        "B": {"edges": {}},
        "C": {"edges": {}}
    }

Edge weights are delays in seconds. Edge order is declaration order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, RootModel

from .errors import WorkflowFileError


class WorkflowNodeSpec(BaseModel):
    """
    A single node record as supplied by the caller.

    `name` is optional on input; compilation always stamps the node's key.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    start: bool = Field(False, alias="isStart", description="Entry point of the run")
    edges: Dict[str, Union[int, float]] = Field(
        default_factory=dict,
        description="Target node name -> delay in seconds, in declaration order",
    )
    name: Optional[str] = Field(None, description="Ignored on input, derived from key")


class WorkflowDefinition(RootModel[Dict[str, WorkflowNodeSpec]]):
    """
    Complete workflow definition: node name -> node record.

    Iteration order is the order in which nodes were declared.
    """
    root: Dict[str, WorkflowNodeSpec] = Field(default_factory=dict)

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __contains__(self, name: object) -> bool:
        return name in self.root

    def items(self) -> List[Tuple[str, WorkflowNodeSpec]]:
        return list(self.root.items())

    def get_node(self, name: str) -> Optional[WorkflowNodeSpec]:
        """Get node record by name."""
        return self.root.get(name)

    def get_start_nodes(self) -> List[str]:
        """Names of all nodes flagged as start, in declaration order."""
        return [name for name, node in self.root.items() if node.start]


WorkflowInput = Union[WorkflowDefinition, Dict[str, Any]]


def parse_workflow(data: WorkflowInput) -> WorkflowDefinition:
    """Parse a workflow dict into a WorkflowDefinition."""
    if isinstance(data, WorkflowDefinition):
        return data
    return WorkflowDefinition.model_validate(data)


def load_workflow(path: Union[str, Path]) -> WorkflowDefinition:
    """
    Load a workflow definition from a JSON or YAML file.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        WorkflowDefinition

    Raises:
        WorkflowFileError: If the file is missing or not parseable
    """
    path = Path(path)
    if not path.exists():
        raise WorkflowFileError(f"Workflow file not found: {path}")

    content = path.read_text()
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise WorkflowFileError(f"Invalid workflow file {path}: {e}") from e

    if not isinstance(data, dict):
        raise WorkflowFileError(
            f"Workflow file {path} must contain a mapping of node name to node"
        )

    return parse_workflow(data)


__all__ = [
    "WorkflowNodeSpec",
    "WorkflowDefinition",
    "WorkflowInput",
    "parse_workflow",
    "load_workflow",
]
