"""CLI command handlers."""

from facecapture.cli.commands.capture import run_capture
from facecapture.cli.commands.info import run_info

__all__ = [
    "run_capture",
    "run_info",
]
