"""
Progress Display Module

Show step-by-step progress in the CI log during a deployment.

Security Requirements:
- No credential exposure in output
- Plain text only (CI logs do not render terminal control codes)
"""

import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import TextIO


class ProgressStage(Enum):
    """Progress stage indicators."""

    STARTED = "started"
    STEP = "step"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ProgressUpdate:
    """Progress update information."""

    stage: ProgressStage
    message: str
    timestamp: float


class ProgressDisplay:
    """
    Step-based progress output for the deployment pipeline.

    Example:
        >>> progress = ProgressDisplay()
        >>> progress.start_operation("Deploy manual")
        > Starting: Deploy manual
        >>> progress.step("Clone website repository")
        - Clone website repository
    """

    SYMBOLS = {
        ProgressStage.STARTED: ">",
        ProgressStage.STEP: "-",
        ProgressStage.COMPLETED: "OK",
        ProgressStage.SKIPPED: "SKIP",
        ProgressStage.FAILED: "FAIL",
    }

    def __init__(self, output_file: TextIO | None = None):
        """
        Args:
            output_file: Output file object (default: sys.stdout at print time)
        """
        self.output_file = output_file
        self.current_operation: str | None = None
        self.start_time: float | None = None
        self.updates: list[ProgressUpdate] = []

    def start_operation(self, name: str) -> None:
        self.current_operation = name
        self.start_time = time.time()
        self.update(f"Starting: {name}", ProgressStage.STARTED)

    def step(self, message: str) -> None:
        self.update(message, ProgressStage.STEP)

    def skip(self, message: str) -> None:
        self.update(message, ProgressStage.SKIPPED)

    def complete(self, success: bool = True, message: str | None = None) -> None:
        """
        Mark the current operation finished.

        Args:
            success: Whether operation succeeded
            message: Optional completion message
        """
        operation = self.current_operation or "operation"
        if success:
            stage = ProgressStage.COMPLETED
            final_message = message or f"{operation} completed"
        else:
            stage = ProgressStage.FAILED
            final_message = message or f"{operation} failed"

        if self.start_time:
            final_message += f" ({self._format_duration(time.time() - self.start_time)})"

        self.update(final_message, stage)
        self.current_operation = None
        self.start_time = None

    def update(self, message: str, stage: ProgressStage = ProgressStage.STEP) -> None:
        update = ProgressUpdate(stage=stage, message=message, timestamp=time.time())
        self.updates.append(update)
        print(f"{self.SYMBOLS[stage]} {message}", file=self.output_file or sys.stdout, flush=True)

    @property
    def messages(self) -> list[str]:
        """Messages printed so far, without stage symbols."""
        return [update.message for update in self.updates]

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """Format duration in human-readable format (e.g. "2m 30s")."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"


__all__ = ["ProgressDisplay", "ProgressStage", "ProgressUpdate"]
