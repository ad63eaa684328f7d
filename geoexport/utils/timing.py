"""Timing utilities for pipeline stages."""
import time
from geoexport.utils.logging import log_structured


class Timer:
    """Context manager for timing code blocks."""

    def __init__(self, operation: str):
        """
        Initialize timer.

        Args:
            operation: Name of the pipeline stage being timed
        """
        self.operation = operation
        self.start = None
        self.elapsed = None

    def __enter__(self):
        self.start = time.monotonic()
        log_structured("info", f"Starting {self.operation}", operation=self.operation)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = time.monotonic() - self.start
        log_structured(
            "info" if exc_type is None else "error",
            f"Operation {self.operation} {'completed' if exc_type is None else 'failed'}",
            operation=self.operation,
            elapsed_seconds=round(self.elapsed, 3)
        )
        return False
