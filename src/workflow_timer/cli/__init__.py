"""
Workflow Timer CLI - Command-line interface.

Commands:
- run: Run a workflow file
- validate: Check a workflow file for cycles and negative delays
- show: Print the simulated schedule
"""

from .main import cli, app

__all__ = ["cli", "app"]
