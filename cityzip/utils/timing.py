"""Timing utilities for imports and batch runs."""
import time
from cityzip.utils.logging import log_structured


class Timer:
    """
    Context manager for timing code blocks.

    Extra fields are logged with the elapsed time; the block may add more
    (row counts, source name) through ``timer.fields`` before it exits.
    """

    def __init__(self, operation: str, **fields):
        """
        Initialize timer.

        Args:
            operation: Name of the operation being timed
            **fields: Structured fields logged with the timing
        """
        self.operation = operation
        self.fields = dict(fields)
        self.start = None
        self.elapsed = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed = time.perf_counter() - self.start
        log_structured(
            "info",
            f"Operation {self.operation} completed",
            operation=self.operation,
            elapsed_seconds=round(self.elapsed, 3),
            **self.fields
        )
